"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog
from pythonjsonlogger import jsonlogger

from ecoplate.config import get_settings


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    # Configure standard library logging
    log_level = getattr(logging, settings.log_level)

    if settings.log_format == "json":
        # JSON logging for production
        handler = logging.StreamHandler(sys.stdout)
        formatter = jsonlogger.JsonFormatter(
            fmt="%(timestamp)s %(level)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )
        handler.setFormatter(formatter)
    else:
        # Human-readable logging for development
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class LedgerLogger:
    """Logger for reservation and pickup-code state changes."""

    def __init__(self, component: str):
        self.component = component
        self.logger = get_logger(component)

    def log_transition(
        self,
        entity: str,
        entity_id: str,
        from_status: str | None,
        to_status: str,
        **kwargs: Any,
    ) -> None:
        """Log a status transition of a reservation or code."""
        log_data = {
            "component": self.component,
            "entity": entity,
            "entity_id": entity_id,
            "to_status": to_status,
        }

        if from_status is not None:
            log_data["from_status"] = from_status

        log_data.update(kwargs)
        self.logger.info("state_transition", **log_data)

    def log_rejected(
        self,
        operation: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        """Log an operation refused by a business rule."""
        self.logger.info(
            "operation_rejected",
            component=self.component,
            operation=operation,
            reason=reason,
            **kwargs,
        )

    def log_redemption(
        self,
        code: str,
        valid: bool,
        reason: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a redemption attempt at the counter."""
        self.logger.info(
            "redemption_attempt",
            component=self.component,
            code=code,
            valid=valid,
            reason=reason,
            **kwargs,
        )
