import json
import logging
import sys
from contextvars import ContextVar

from shop.core.config import settings

request_id_var = ContextVar("request_id", default="system")


class RequestIdFilter(logging.Filter):
    def filter(self, record):
        record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """Custom formatter to ensure valid JSON and proper escaping."""

    def __init__(self, service: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "file": f"{record.module}.py:{record.lineno}",
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "system"),
        }
        # Include stack traces if an error occurred
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record)


def setup_logging(service: str = settings.service_name, level: str = settings.log_level):
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JSONFormatter(service=f"{settings.app_name}-{service}"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.addHandler(handler)

    # Keep Uvicorn's critical info but hide the spammy access lines
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
