"""
Structured JSON logging for the API and the moderation worker.

Every record carries:
  - timestamp  : ISO 8601
  - level      : DEBUG / INFO / WARNING / ERROR / CRITICAL
  - logger     : logger name (e.g. "moderation.worker", "uvicorn.error")
  - message    : the log message
  - service    : static service identifier used for filtering
  - environment: from settings.ENVIRONMENT
  - plus any fields passed via logger.info(..., extra={...})
"""

import logging
import logging.config
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

from config import settings


class ServiceJsonFormatter(JsonFormatter):
    """Adds static service/environment fields to every record."""

    service_name = "scout-talent-api"

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict,
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["service"] = self.service_name
        log_record["environment"] = settings.ENVIRONMENT
        log_record["level"] = log_record.pop("levelname", record.levelname)
        log_record["logger"] = log_record.pop("name", record.name)


def setup_logging(level: Optional[str] = None, service: Optional[str] = None) -> None:
    """
    Configure the root logger and uvicorn loggers with the JSON formatter.

    Called once at process start (API lifespan or worker main).
    """
    log_level = (level or settings.LOG_LEVEL or "INFO").upper()
    if service:
        ServiceJsonFormatter.service_name = service

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "handlers": {
                "json": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": "ext://sys.stdout",
                },
            },
            "formatters": {
                "json": {
                    "()": ServiceJsonFormatter,
                    "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "rename_fields": {"asctime": "timestamp"},
                },
            },
            "root": {
                "handlers": ["json"],
                "level": log_level,
            },
            "loggers": {
                "uvicorn": {"handlers": ["json"], "level": log_level, "propagate": False},
                "uvicorn.error": {"handlers": ["json"], "level": log_level, "propagate": False},
                "uvicorn.access": {"handlers": ["json"], "level": log_level, "propagate": False},
                "sqlalchemy.engine": {"handlers": ["json"], "level": "WARNING", "propagate": False},
            },
        }
    )
