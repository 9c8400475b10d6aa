from __future__ import annotations

import logging

from roombill.exceptions import AuthorizationError
from roombill.models.rental import Rental
from roombill.models.room import Building

logger = logging.getLogger(__name__)


class AuthorizationService:
    """Landlord ownership checks for billing operations."""

    def can_manage_rental(self, user_id: int, rental: Rental) -> bool:
        result = rental.owner_id == user_id
        logger.debug("user=%s rental=%s can_manage=%s", user_id, rental.id, result)
        return result

    def can_manage_building(self, user_id: int, building: Building) -> bool:
        result = building.owner_id == user_id
        logger.debug("user=%s building=%s can_manage=%s", user_id, building.id, result)
        return result

    def ensure_can_manage_rental(self, user_id: int, rental: Rental, action: str) -> None:
        if not self.can_manage_rental(user_id, rental):
            logger.warning("%s failed: user=%s does not own rental=%s", action, user_id, rental.id)
            raise AuthorizationError(f"Not authorized to {action.lower()} for this rental")

    def ensure_can_manage_building(self, user_id: int, building: Building, action: str) -> None:
        if not self.can_manage_building(user_id, building):
            logger.warning("%s failed: user=%s does not own building=%s", action, user_id, building.id)
            raise AuthorizationError(f"Not authorized to {action.lower()} for this building")
