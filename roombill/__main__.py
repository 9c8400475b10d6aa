import logging

from roombill.cli.app import main_menu
from roombill.db import close_connection, initialize_db
from roombill.logging import configure_logging, reconfigure

logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging()
    initialize_db()
    reconfigure()
    try:
        main_menu()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        close_connection()


if __name__ == "__main__":
    main()
