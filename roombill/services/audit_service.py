from __future__ import annotations

import logging

from roombill.models.audit_log import AuditEventType, AuditLog, AuditSource
from roombill.models.bill import Bill
from roombill.repositories.base import AuditLogRepository
from roombill.services.audit_serializers import serialize_bill

logger = logging.getLogger(__name__)

BILL_ENTITY = "bill"


class AuditService:
    """Bill history: who touched a bill, from where, and its state before and after."""

    def __init__(self, repo: AuditLogRepository) -> None:
        self.repo = repo

    def record(
        self,
        event_type: str,
        bill: Bill,
        *,
        actor_id: int | None = None,
        source: str = AuditSource.CLI,
        previous_state: dict | None = None,
        metadata: dict | None = None,
    ) -> AuditLog:
        """Store one bill event. The bill's current state is snapshotted unless it was deleted.

        Raises on repository failure; use ``safe_record`` from write paths.
        """
        new_state = None if event_type == AuditEventType.BILL_DELETE else serialize_bill(bill)
        entry = self.repo.create(
            AuditLog(
                event_type=event_type,
                actor_id=actor_id,
                source=source,
                entity_type=BILL_ENTITY,
                entity_id=bill.id,
                entity_uuid=bill.uuid,
                previous_state=previous_state,
                new_state=new_state,
                metadata=metadata or {},
            )
        )
        logger.info("Audit %s: bill=%s actor=%s source=%s", event_type, bill.id, actor_id, source)
        return entry

    def safe_record(self, event_type: str, bill: Bill, **kwargs) -> AuditLog | None:
        """Like ``record`` but never raises: a failed audit write must not undo a bill change."""
        try:
            return self.record(event_type, bill, **kwargs)
        except Exception:
            logger.exception("Failed to write audit entry %s for bill %s", event_type, bill.id)
            return None

    def history(self, bill_id: int) -> list[AuditLog]:
        return self.repo.list_by_entity(BILL_ENTITY, bill_id)
