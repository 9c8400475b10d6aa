import logging
import sys

from roombill.settings import settings

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Third-party loggers that are noisy below WARNING.
QUIET_LOGGERS = ("alembic.runtime.migration", "sqlalchemy.engine", "faker")


def _formatter() -> logging.Formatter:
    if settings.log_json:
        from pythonjsonlogger.json import JsonFormatter

        return JsonFormatter(
            fmt=JSON_FORMAT,
            rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        )
    return logging.Formatter(TEXT_FORMAT)


def configure_logging(level: str | None = None) -> None:
    """Send all logs to stderr, as text or JSON depending on ``settings.log_json``.

    ``level`` overrides ``settings.log_level``.  Alembic's ``fileConfig``
    replaces the root handlers, so call ``reconfigure()`` after migrations.
    """
    name = (level or settings.log_level).upper()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, name, logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)


reconfigure = configure_logging
