import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Optional

from loan_manager.core.context import get_request_id, get_user_id
from loan_manager.core.settings import settings

AUDIT_LOGGER_NAME = "loan_manager.audit"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "user_id", "request_id"}


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        record.user_id = get_user_id()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, tagged with the stream it was written to."""

    def __init__(self, stream_label: str = "app") -> None:
        super().__init__()
        self.stream_label = stream_label

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "stream": self.stream_label,
            "logger": record.name,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
            "user_id": getattr(record, "user_id", "-"),
        }
        entry.update({key: value for key, value in vars(record).items() if key not in _RESERVED})
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _stdout_handler(formatter: str, level: str) -> dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "stream": "ext://sys.stdout",
        "level": level,
        "formatter": formatter,
        "filters": ["request_context"],
    }


def configure_logging(level: Optional[str] = None) -> None:
    log_level = (level or settings.log_level).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_context": {"()": RequestContextFilter}},
            "formatters": {
                "app": {"()": JsonFormatter, "stream_label": "app"},
                "audit": {"()": JsonFormatter, "stream_label": "audit"},
            },
            "handlers": {
                "app": _stdout_handler("app", log_level),
                "audit": _stdout_handler("audit", log_level),
            },
            "root": {"handlers": ["app"], "level": log_level},
            "loggers": {
                AUDIT_LOGGER_NAME: {"handlers": ["audit"], "level": "INFO", "propagate": False},
                "uvicorn.access": {"handlers": [], "propagate": False},
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )
    logging.getLogger(__name__).info("Logging configured (environment=%s, level=%s)", settings.environment, log_level)


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER_NAME)
