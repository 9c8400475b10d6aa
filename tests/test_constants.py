from roombill.constants import BILLABLE_RENTAL_STATUSES, format_period


class TestFormatPeriod:
    def test_month_name(self):
        assert format_period("2024-03") == "March 2024"

    def test_empty(self):
        assert format_period("") == ""

    def test_passthrough_without_dash(self):
        assert format_period("202403") == "202403"


def test_billable_statuses():
    assert BILLABLE_RENTAL_STATUSES == ("active", "pending_renewal")
