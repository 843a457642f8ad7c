"""
Logging configuration for the publishing API.

structlog on top of the stdlib logging tree, rendered as JSON. Secrets
(passwords, tokens, hashes, credentialed URLs) are redacted before
rendering.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog

SERVICE = "publishing_api"

_SECRET_KEYS = (
    "password",
    "token",
    "secret",
    "authorization",
    "password_hash",
    "database_url",
)

_SECRET_PATTERNS = (
    re.compile(r"(://[^:/\s]+:)[^@\s]+(?=@)"),  # URLs with credentials
    re.compile(r"((?:token|password)=)[^&\s]+"),
    re.compile(r"(Bearer\s+)\S+"),
)


def _redact_value(value: Any) -> Any:
    if isinstance(value, str):
        for pattern in _SECRET_PATTERNS:
            value = pattern.sub(r"\1***", value)
        return value
    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact_value(v) for v in value]
    return value


def redact_secrets(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Redact sensitive keys and credential-looking substrings."""
    for key in list(event_dict.keys()):
        if any(secret in key.lower() for secret in _SECRET_KEYS):
            event_dict[key] = "***REDACTED***"
        else:
            event_dict[key] = _redact_value(event_dict[key])
    return event_dict


def add_service(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE)
    return event_dict


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for JSON logging. Safe to call more than once."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)
    logging.getLogger().setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            add_service,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_secrets,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
