"""
Structured logging helpers.

Context values are flattened to short strings before they reach a log
record; embedding vectors and blobs are summarised by size.

Dependencies: logging (stdlib), semantic_kb.core.exceptions
System role: Logging helper functions
"""

import logging
from typing import Any

from semantic_kb.core.exceptions import SemanticKBException


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Render a value for a log record.

    Args:
        value: Value to render
        max_length: Truncate longer renderings

    Returns:
        str: Short string form
    """
    if value is None:
        return "None"
    if isinstance(value, str):
        text = value
    elif isinstance(value, (bytes, bytearray)):
        text = f"{type(value).__name__}({len(value)} bytes)"
    elif isinstance(value, (list, tuple)):
        text = f"{type(value).__name__}({len(value)} items)"
    elif isinstance(value, dict):
        text = f"dict({len(value)} keys)"
    else:
        text = str(value)

    if len(text) > max_length:
        return text[:max_length] + f"... (truncated, {len(text)} total)"
    return text


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    **context,
) -> None:
    """
    Log an exception at ERROR with traceback and flattened context.

    Details carried by domain exceptions are merged into the context;
    explicit keyword context wins on conflicts.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception being handled
        **context: Additional key-value context
    """
    merged: dict[str, Any] = {}
    if isinstance(exc, SemanticKBException):
        merged.update(exc.details)
    merged.update(context)

    extra = {key: safe_log_value(val) for key, val in merged.items()}
    extra["error_type"] = type(exc).__name__
    extra["error_msg"] = safe_log_value(getattr(exc, "message", None) or str(exc))
    logger.exception(message, extra=extra)
