"""
Logging configuration

Every log line carries the id of the HTTP request it belongs to ("-" outside
a request). RequestContextMiddleware sets the id through `request_id_var`.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Optional
from core.config import settings

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(request_id)s | %(name)s | %(message)s"


class RequestIdFilter(logging.Filter):
    """Adds `request_id` to every record passing through the handler"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging(level: Optional[str] = None):
    """Configure application logging (level defaults to settings.LOG_LEVEL)"""
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
        force=True
    )

    # sqlalchemy logs every statement, httpx every request
    for name in ("sqlalchemy.engine", "sqlalchemy.pool", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured at {level_name} level")
