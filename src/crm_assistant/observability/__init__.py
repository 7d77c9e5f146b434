"""Observability layer for the CRM assistant.

Structured logging, request tracing via correlation IDs and redaction of
credentials before they reach the log.

Usage:
    from crm_assistant.observability import get_logger

    logger = get_logger(__name__)
    logger.info("aggregation.dataset.loaded", dataset="leads", items=10)
"""

from crm_assistant.observability.context import (
    correlation_id_var,
    get_correlation_id,
    set_correlation_id,
)
from crm_assistant.observability.logger import configure_logging, get_logger
from crm_assistant.observability.middleware import (
    CorrelationIDMiddleware,
    RequestLoggingMiddleware,
)
from crm_assistant.observability.sanitizer import sanitize, sanitize_headers

__all__ = [
    # Context
    "correlation_id_var",
    "get_correlation_id",
    "set_correlation_id",
    # Logger
    "configure_logging",
    "get_logger",
    # Middleware
    "CorrelationIDMiddleware",
    "RequestLoggingMiddleware",
    # Sanitizer
    "sanitize",
    "sanitize_headers",
]
