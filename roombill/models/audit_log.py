from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class AuditEventType:
    BILL_GENERATE = "bill.generate"
    BILL_CREATE = "bill.create"
    BILL_UPDATE = "bill.update"
    BILL_METER_UPDATE = "bill.meter_update"
    BILL_PAID = "bill.paid"
    BILL_DELETE = "bill.delete"


class AuditSource:
    CLI = "cli"
    BATCH = "batch"


class AuditLog(BaseModel):
    """One bill event. States are ``serialize_bill`` snapshots."""

    id: int | None = None
    uuid: str = ""
    event_type: str
    actor_id: int | None = None  # None for batch runs without a landlord
    source: str = AuditSource.CLI
    entity_type: str = ""
    entity_id: int | None = None
    entity_uuid: str = ""
    previous_state: dict | None = None
    new_state: dict | None = None
    metadata: dict = {}
    created_at: datetime | None = None
