"""
CLI entrypoint for the reset-token retention job. Run from cron, e.g.:

  python -m app.retention

Or hourly: 0 * * * * cd /path/to/contabil-auth && .venv/bin/python -m app.retention
"""

import logging
import sys
from datetime import timedelta

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory
from app.core.logging import configure_logging
from app.services.reset_tokens import ResetTokenStore

logger = logging.getLogger(__name__)


def main() -> int:
    """Delete used or expired reset tokens older than RESET_TOKEN_RETENTION_HOURS."""
    load_dotenv()
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    engine = build_engine(settings)
    db = build_session_factory(engine)()
    try:
        deleted = ResetTokenStore(db).purge(
            timedelta(hours=settings.RESET_TOKEN_RETENTION_HOURS)
        )
        logger.info("Retention completed: tokens_deleted=%s", deleted)
        return 0
    except SQLAlchemyError as e:
        logger.exception("Retention job failed: %s", e)
        return 1
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
