from unittest.mock import MagicMock, patch

from roombill.repositories.factory import (
    get_audit_log_repository,
    get_bill_repository,
    get_meter_reading_repository,
    get_notification_repository,
    get_rental_repository,
    get_room_repository,
    get_user_repository,
)
from roombill.repositories.sqlalchemy import (
    SQLAlchemyAuditLogRepository,
    SQLAlchemyBillRepository,
    SQLAlchemyMeterReadingRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyRentalRepository,
    SQLAlchemyRoomRepository,
    SQLAlchemyUserRepository,
)


class TestFactory:
    @patch("roombill.db.get_connection")
    def test_factories_share_connection(self, mock_get_conn):
        conn = MagicMock()
        mock_get_conn.return_value = conn

        pairs = [
            (get_bill_repository, SQLAlchemyBillRepository),
            (get_rental_repository, SQLAlchemyRentalRepository),
            (get_room_repository, SQLAlchemyRoomRepository),
            (get_meter_reading_repository, SQLAlchemyMeterReadingRepository),
            (get_user_repository, SQLAlchemyUserRepository),
            (get_notification_repository, SQLAlchemyNotificationRepository),
            (get_audit_log_repository, SQLAlchemyAuditLogRepository),
        ]
        for factory, expected in pairs:
            repo = factory()
            assert isinstance(repo, expected)
            assert repo.conn is conn
