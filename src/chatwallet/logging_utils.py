"""Logging utilities with security and observability features.

Provides:
- Secret redaction for signing keys, bearer tokens and authorization headers
- Structured logging helpers
- Request ID context management
"""

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for request ID (thread-safe and async-safe)
_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Base58 strings of secret-key length (64-88 chars). Transaction signatures have the
# same shape and are masked too; public addresses (32-44) are left alone.
SECRET_KEY_PATTERN = re.compile(r"\b[1-9A-HJ-NP-Za-km-z]{64,88}\b")

BEARER_TOKEN_PATTERN = re.compile(r"(Bearer\s+)([A-Za-z0-9\-._~+/]+=*)", re.IGNORECASE)

# Pattern for Authorization header values
AUTH_HEADER_PATTERN = re.compile(
    r"(Authorization[:\s]+)([^\s,;]+)",
    re.IGNORECASE,
)


def redact_secrets(text: str | None) -> str:
    """Redact secrets from text (secret keys, bearer tokens, auth headers).

    Args:
        text: Text that may contain secrets

    Returns:
        Text with secrets redacted
    """
    if text is None:
        return ""

    if not isinstance(text, str):
        text = str(text)

    text = SECRET_KEY_PATTERN.sub("***REDACTED_KEY***", text)
    text = BEARER_TOKEN_PATTERN.sub(r"\1***REDACTED***", text)

    # Redact Authorization header values (skip ones already masked as bearer)
    text = AUTH_HEADER_PATTERN.sub(
        lambda m: m.group(0) if m.group(2).lower() == "bearer" else f"{m.group(1)}***REDACTED***",
        text,
    )

    return text


def short_id(value: str | None, length: int = 8) -> str:
    """Shorten an identifier (conversation id, address, signature) for logs."""
    if not value:
        return ""
    return value if len(value) <= length else f"{value[:length]}..."


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID (generates one if not provided)

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())

    _request_id_var.set(request_id)
    return request_id


def get_request_id() -> str | None:
    """Get the request ID for the current context."""
    return _request_id_var.get()


def clear_request_id() -> None:
    """Clear the request ID from the current context."""
    _request_id_var.set(None)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **kwargs: Any,
) -> None:
    """Log a message with structured context (request_id, conversation, etc.).

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, logging.ERROR, etc.)
        message: Log message
        **kwargs: Additional structured fields to include
    """
    parts = [message]

    request_id = get_request_id()
    if request_id:
        parts.append(f"request_id={request_id}")

    for key, value in kwargs.items():
        safe_value = redact_secrets(str(value))
        parts.append(f"{key}={safe_value}")

    logger.log(level, " | ".join(parts))


def log_info(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log an info message with structured context."""
    log_with_context(logger, logging.INFO, message, **kwargs)


def log_warning(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log a warning message with structured context."""
    log_with_context(logger, logging.WARNING, message, **kwargs)


def log_error(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log an error message with structured context."""
    log_with_context(logger, logging.ERROR, message, **kwargs)


def log_debug(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log a debug message with structured context."""
    log_with_context(logger, logging.DEBUG, message, **kwargs)
