"""structlog setup: JSON lines, credential redaction, correlation IDs."""

import logging
import re
import sys
from typing import Any, Dict

import structlog

SERVICE_NAME = "review-auth"

# Substrings of field names whose values are never written out
SENSITIVE_KEYS = (
    "api_key",
    "authorization",
    "secret",
    "password",
    "token",
)

# Three base64url segments: a JWT pasted into an otherwise harmless field
_JWT_PATTERN = re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Blank out credential material before rendering.

    Fields named like a password, TOTP secret, bearer token or
    Authorization header become ``REDACTED``. JWTs embedded in any other
    string field (error messages, user agents) are cut out as well. The
    event name itself is left alone.
    """
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            event_dict[key] = "REDACTED"
        elif isinstance(value, str) and "eyJ" in value:
            event_dict[key] = _JWT_PATTERN.sub("REDACTED", value)

    return event_dict


def configure_logging(log_level: str = "INFO", environment: str | None = None) -> None:
    """Install the processor chain; every event renders as one JSON line.

    Args:
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        environment: Bound on every event when given
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    static_fields = {"service": SERVICE_NAME}
    if environment:
        static_fields["environment"] = environment

    def add_static_fields(logger: Any, method_name: str, event_dict: Dict[str, Any]):
        for key, value in static_fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_static_fields,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a logger, bound to ``logger_name`` when a name is given."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger_name=name)
    return logger
