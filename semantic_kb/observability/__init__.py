"""Observability: logging configuration and structured logging helpers."""

from semantic_kb.observability.logger import ContextFormatter, configure_logging
from semantic_kb.observability.log_utils import log_exception_with_context, safe_log_value

__all__ = [
    "ContextFormatter",
    "configure_logging",
    "log_exception_with_context",
    "safe_log_value",
]
