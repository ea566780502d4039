"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from bond_engine.config import settings

logger = logging.getLogger("bond_engine")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args, service_name: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name or settings.service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str | None = None) -> None:
    """Configure structured JSON logging"""
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers
    root.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def log_plan_created(case_id: str, installment_count: int, total: str, cancelled_count: int) -> None:
    """Log plan generation / restructure outcome"""
    logger.info(
        "Payment plan created",
        extra={
            "case_id": case_id,
            "step": "plan_created",
            "installment_count": installment_count,
            "plan_total": total,
            "cancelled_count": cancelled_count,
        },
    )


def log_transition(case_id: str, installment_id: str, status: str) -> None:
    logger.info(
        "Installment status changed",
        extra={
            "case_id": case_id,
            "installment_id": installment_id,
            "step": "installment_transition",
            "status": status,
        },
    )


def log_manual_payment(case_id: str, installment_id: str, status: str, amount: str) -> None:
    logger.info(
        "Manual payment recorded",
        extra={
            "case_id": case_id,
            "installment_id": installment_id,
            "step": "manual_payment",
            "status": status,
            "amount": amount,
        },
    )
