"""Centralized logging setup."""

import logging
import sys
from contextvars import ContextVar


request_id_var: ContextVar[str] = ContextVar("request_id", default="")

QUIET_LOGGERS = ("urllib3", "httpx", "httpcore", "openai", "stripe", "botocore")


class RequestIdFilter(logging.Filter):
    """Stamp every record with the id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def _stdout_handler(logger: logging.Logger):
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) is sys.stdout:
            return handler
    return None


def configure_logging(*, environment: str, log_level: str) -> int:
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(level)

    handler = _stdout_handler(logger)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s.%(msecs)03d] [%(levelname)-5s] [%(name)-20s] [%(request_id)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        handler.addFilter(RequestIdFilter())
        logger.addHandler(handler)
    handler.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # Uvicorn logs through the root handler so request ids appear on its lines too
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True
        uv_logger.setLevel(level)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    if environment == "production":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return level
