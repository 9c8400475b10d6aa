import logging
from unittest.mock import patch

from roombill.logging import TEXT_FORMAT, configure_logging


class TestConfigureLogging:
    def test_json_format(self):
        with patch("roombill.logging.settings") as mock_settings:
            mock_settings.log_level = "INFO"
            mock_settings.log_json = True
            configure_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 1
        from pythonjsonlogger.json import JsonFormatter

        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_text_format_and_level(self):
        with patch("roombill.logging.settings") as mock_settings:
            mock_settings.log_level = "debug"
            mock_settings.log_json = False
            configure_logging()

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert root.handlers[0].formatter._fmt == TEXT_FORMAT

    def test_unknown_level_falls_back_to_info(self):
        with patch("roombill.logging.settings") as mock_settings:
            mock_settings.log_level = "LOUD"
            mock_settings.log_json = False
            configure_logging()

        assert logging.getLogger().level == logging.INFO

    def test_quiets_sqlalchemy_and_alembic(self):
        with patch("roombill.logging.settings") as mock_settings:
            mock_settings.log_level = "DEBUG"
            mock_settings.log_json = False
            configure_logging()

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("alembic.runtime.migration").level == logging.WARNING

    def test_explicit_level_overrides_settings(self):
        with patch("roombill.logging.settings") as mock_settings:
            mock_settings.log_level = "INFO"
            mock_settings.log_json = False
            configure_logging("warning")

        assert logging.getLogger().level == logging.WARNING
