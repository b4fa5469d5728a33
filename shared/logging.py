"""
Shared logging configuration for the RES promoter.
"""

import sys
import structlog
import logging
import uuid
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Correlation ID for the promotion in progress
promotion_id_var: ContextVar[Optional[str]] = ContextVar('promotion_id', default=None)


def configure_logging(log_level: str = "info", log_format: str = "console") -> None:
    """Configure structured logging on standard error."""

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_correlation_context,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
        force=True,
    )


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the promotion correlation ID to log events."""
    promotion_id = promotion_id_var.get()
    if promotion_id:
        event_dict["promotion_id"] = promotion_id

    return event_dict


def set_promotion_id(promotion_id: Optional[str] = None) -> str:
    """Set promotion ID in context."""
    if promotion_id is None:
        promotion_id = str(uuid.uuid4())
    promotion_id_var.set(promotion_id)
    return promotion_id


def clear_context():
    """Clear all context variables."""
    promotion_id_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
