# appointly/utils/my_logging.py
"""Logging configuration"""
import logging
import sys
from appointly.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "alembic",
    "httpx",
    "redis",
    "uvicorn.access",
)


class CorrelationIdFilter(logging.Filter):
    """Fills correlation_id for records logged outside a request"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return True


def setup_logging(verbose=True):
    """Configure application logging"""
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[handler])

    # Each booking re-check issues several queries; keep SQL echo out of INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if not verbose:
        for name in NOISY_LOGGERS:
            logger = logging.getLogger(name)
            logger.setLevel(logging.ERROR)
            logger.propagate = False
