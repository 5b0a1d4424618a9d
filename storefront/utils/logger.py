"""Logging configuration."""

import logging
import sys

from pythonjsonlogger import jsonlogger

from storefront.config import get_settings

settings = get_settings()

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(requestId)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class RequestIdFilter(logging.Filter):
    """Give every record a ``requestId`` so the text format never breaks."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "requestId"):
            record.requestId = "-"
        return True


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines tagged with the service name and environment."""

    def add_fields(self, log_record, record, message_dict) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = log_record.pop("levelname", record.levelname)
        log_record["service"] = settings.app_name
        log_record["environment"] = settings.environment
        if log_record.get("requestId") == "-":
            log_record.pop("requestId")


def setup_logging() -> None:
    """Send application logs to stdout as JSON lines or plain text."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(RequestIdFilter())

    if settings.log_format == "json":
        handler.setFormatter(
            ServiceJsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s", datefmt=DATE_FORMAT)
        )
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT))

    root.addHandler(handler)

    # Driver and client chatter
    for name in ("uvicorn", "httpx", "httpcore", "pymongo"):
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(
        "Logging configured: level=%s, format=%s, environment=%s",
        settings.log_level,
        settings.log_format,
        settings.environment,
    )
