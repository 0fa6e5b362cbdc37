"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from bills_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_aggregation(
    request_id: str,
    user_id: str,
    record_count: int,
    partial: bool,
    failed_sources: list[str],
    duration_ms: float,
) -> None:
    """Log structured Bills view outcome for analysis"""
    logging.info(
        "Bills view aggregated",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "aggregation_complete",
            "outcome": "partial" if partial else "complete",
            "record_count": record_count,
            "failed_sources": failed_sources,
            "duration_ms": duration_ms,
        },
    )
