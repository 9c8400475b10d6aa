import pytest
from sqlalchemy import Connection

from roombill.repositories.sqlalchemy import (
    SQLAlchemyAuditLogRepository,
    SQLAlchemyBillRepository,
    SQLAlchemyMeterReadingRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyRentalRepository,
    SQLAlchemyRoomRepository,
    SQLAlchemyUserRepository,
)


@pytest.fixture()
def bill_repo(db_connection: Connection) -> SQLAlchemyBillRepository:
    return SQLAlchemyBillRepository(db_connection)


@pytest.fixture()
def rental_repo(db_connection: Connection) -> SQLAlchemyRentalRepository:
    return SQLAlchemyRentalRepository(db_connection)


@pytest.fixture()
def room_repo(db_connection: Connection) -> SQLAlchemyRoomRepository:
    return SQLAlchemyRoomRepository(db_connection)


@pytest.fixture()
def meter_repo(db_connection: Connection) -> SQLAlchemyMeterReadingRepository:
    return SQLAlchemyMeterReadingRepository(db_connection)


@pytest.fixture()
def user_repo(db_connection: Connection) -> SQLAlchemyUserRepository:
    return SQLAlchemyUserRepository(db_connection)


@pytest.fixture()
def notification_repo(db_connection: Connection) -> SQLAlchemyNotificationRepository:
    return SQLAlchemyNotificationRepository(db_connection)


@pytest.fixture()
def audit_repo(db_connection: Connection) -> SQLAlchemyAuditLogRepository:
    return SQLAlchemyAuditLogRepository(db_connection)
