import logging
import os

from alembic.config import Config
from sqlalchemy import Connection, create_engine, event
from sqlalchemy.engine import Engine, make_url

from alembic import command
from roombill.settings import settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_connection: Connection | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # Meter readings and bill items rely on ON DELETE CASCADE.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = make_url(settings.db_url)
        backend = url.get_backend_name()
        if backend == "sqlite":
            _engine = create_engine(url)
            event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            _engine = create_engine(url, pool_pre_ping=True, pool_recycle=1800)
        logger.info("Database engine created: backend=%s", backend)
    return _engine


def get_connection() -> Connection:
    """Shared connection for the CLI and batch runs. Repositories commit per write."""
    global _connection
    if _connection is None:
        _connection = get_engine().connect()
        logger.debug("Shared DB connection opened")
    return _connection


def close_connection() -> None:
    global _connection
    if _connection is not None:
        _connection.close()
        _connection = None
        logger.debug("Shared DB connection closed")


def _get_alembic_config() -> Config:
    project_root = os.path.dirname(os.path.dirname(__file__))
    ini_path = os.path.join(project_root, "alembic.ini")
    if not os.path.exists(ini_path):
        ini_path = os.path.join(os.getcwd(), "alembic.ini")
    cfg = Config(ini_path)
    cfg.set_main_option("script_location", os.path.join(project_root, "alembic"))
    return cfg


def initialize_db() -> None:
    """Upgrade the schema to the latest migration."""
    logger.info("Running migrations on %s", make_url(settings.db_url).render_as_string(hide_password=True))
    command.upgrade(_get_alembic_config(), "head")
    logger.info("Schema up to date")
