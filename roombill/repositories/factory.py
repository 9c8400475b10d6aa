from roombill.repositories.base import (
    AuditLogRepository,
    BillRepository,
    MeterReadingRepository,
    NotificationRepository,
    RentalRepository,
    RoomRepository,
    UserRepository,
)


def get_bill_repository() -> BillRepository:
    from roombill.db import get_connection
    from roombill.repositories.sqlalchemy import SQLAlchemyBillRepository

    return SQLAlchemyBillRepository(get_connection())


def get_rental_repository() -> RentalRepository:
    from roombill.db import get_connection
    from roombill.repositories.sqlalchemy import SQLAlchemyRentalRepository

    return SQLAlchemyRentalRepository(get_connection())


def get_room_repository() -> RoomRepository:
    from roombill.db import get_connection
    from roombill.repositories.sqlalchemy import SQLAlchemyRoomRepository

    return SQLAlchemyRoomRepository(get_connection())


def get_meter_reading_repository() -> MeterReadingRepository:
    from roombill.db import get_connection
    from roombill.repositories.sqlalchemy import SQLAlchemyMeterReadingRepository

    return SQLAlchemyMeterReadingRepository(get_connection())


def get_user_repository() -> UserRepository:
    from roombill.db import get_connection
    from roombill.repositories.sqlalchemy import SQLAlchemyUserRepository

    return SQLAlchemyUserRepository(get_connection())


def get_notification_repository() -> NotificationRepository:
    from roombill.db import get_connection
    from roombill.repositories.sqlalchemy import SQLAlchemyNotificationRepository

    return SQLAlchemyNotificationRepository(get_connection())


def get_audit_log_repository() -> AuditLogRepository:
    from roombill.db import get_connection
    from roombill.repositories.sqlalchemy import SQLAlchemyAuditLogRepository

    return SQLAlchemyAuditLogRepository(get_connection())
