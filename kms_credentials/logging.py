"""Structured logging for credential refresh.

Provides:
- JSON structured output for log aggregation
- Provider tagging via a context variable
- Masking of tokens, secrets and keys in structured fields
- Timing of provider fetches

Usage:
    from kms_credentials.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Azure token refreshed", expires_in=3599)
"""

import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable

from kms_credentials.config import get_settings
from kms_credentials.errors import KMSRequestError

# Provider currently being refreshed
provider_var: ContextVar[str | None] = ContextVar("kms_provider", default=None)

# Sensitive fields to mask in logs
SENSITIVE_FIELDS = {
    "password", "secret", "token", "key", "credential", "authorization",
    "access_token", "accesstoken", "session", "cookie",
}

# Third-party loggers quieted by setup_logging
QUIET_LOGGERS = ("httpx", "httpcore", "botocore", "urllib3")


def mask_sensitive(data: dict[str, Any]) -> dict[str, Any]:
    """Mask sensitive values in a dictionary."""
    masked = {}
    for key, value in data.items():
        key_lower = key.lower()
        if any(s in key_lower for s in SENSITIVE_FIELDS):
            if isinstance(value, str) and len(value) > 8:
                masked[key] = f"{value[:4]}...{value[-4:]}"
            else:
                masked[key] = "[REDACTED]"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive(value)
        else:
            masked[key] = value
    return masked


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Provider tag plus the record's masked keyword fields."""
    fields = {}
    if provider := provider_var.get():
        fields["provider"] = provider
    fields.update(mask_sensitive(getattr(record, "extra_fields", {})))
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_fields(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Plain text with trailing ``key=value`` fields."""

    def __init__(self):
        super().__init__(
            "%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
            datefmt="%H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        if fields := record_fields(record):
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


class StructuredLogger(logging.Logger):
    """Logger whose level methods accept keyword fields.

    ``logger.info("fetched", status_code=200)`` stores the keywords on the
    record as ``extra_fields``.
    """

    def _log(self, level, msg, args, exc_info=None, extra=None, stack_info=False,
             stacklevel=1, **fields):
        if fields:
            extra = {**(extra or {}), "extra_fields": fields}
        super()._log(
            level, msg, args,
            exc_info=exc_info, extra=extra, stack_info=stack_info, stacklevel=stacklevel,
        )


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module."""
    logging.setLoggerClass(StructuredLogger)
    logger = logging.getLogger(name)
    logging.setLoggerClass(logging.Logger)
    return logger


def setup_logging(json_output: bool | None = None, level: str | None = None):
    """Route records to stdout for applications and scripts.

    The library only emits records and never calls this itself.

    Args:
        json_output: Use JSON format (defaults to ``Settings.log_json``)
        level: Logging level (defaults to ``Settings.log_level``)
    """
    settings = get_settings()
    if json_output is None:
        json_output = settings.log_json

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if json_output else HumanFormatter())

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel((level or settings.log_level).upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _failure_fields(error: Exception) -> dict[str, Any]:
    fields: dict[str, Any] = {"error": str(error)}
    if isinstance(error, KMSRequestError):
        body = error.body
        if isinstance(body, str):
            # JSON text is logged as a mapping so its token fields get masked
            try:
                body = json.loads(body)
            except ValueError:
                pass
        fields.update(
            provider=error.provider,
            status_code=error.status_code,
            body=body,
        )
    return fields


def log_operation(operation: str, provider: str):
    """Decorator to log a provider fetch with timing.

    Sets ``provider_var`` for the duration of the call. Failures are logged
    at warning level, with status code and masked body for request errors,
    and re-raised.
    """
    def decorator(func: Callable):
        logger = get_logger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            token = provider_var.set(provider)
            start = time.monotonic()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.warning(
                    f"{operation} failed",
                    operation=operation,
                    duration_ms=round((time.monotonic() - start) * 1000, 2),
                    **_failure_fields(e),
                )
                raise
            else:
                logger.debug(
                    f"{operation} completed",
                    operation=operation,
                    duration_ms=round((time.monotonic() - start) * 1000, 2),
                )
                return result
            finally:
                provider_var.reset(token)

        return wrapper

    return decorator
