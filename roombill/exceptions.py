"""Billing error hierarchy.

Every error derives from ``ValueError`` so callers that only care about
"the request was invalid" can keep catching that.
"""


class BillingError(ValueError):
    pass


class NotFoundError(BillingError):
    pass


class AuthorizationError(BillingError):
    pass


class ConflictError(BillingError):
    pass


class DuplicateBillError(ConflictError):
    def __init__(self, rental_id: int, billing_period: str) -> None:
        super().__init__(f"Bill already exists for rental {rental_id} and period {billing_period}")
        self.rental_id = rental_id
        self.billing_period = billing_period


class PaidBillError(BillingError):
    pass


class IneligibleRentalError(BillingError):
    pass
