"""Logging setup for processes embedding the Swarm driver.

Driver modules log through stdlib loggers; the auth module emits structlog
events. Both end up on the root handler installed here.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

from .config import SwarmSettings

REDACTED = "***"
SECRET_FIELDS = frozenset({"api_key", "api_secret", "password", "token", "authorization"})
# httpx logs every request URL at INFO; keep those at WARNING unless debugging.
CHATTY_LOGGERS = ("httpx", "httpcore")


def redact_secrets(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor masking credential fields bound to an event."""

    for key in SECRET_FIELDS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def configure_logging(settings: SwarmSettings | None = None) -> int:
    """Configure stdlib logging and route structlog events through it as JSON.

    The level comes from ``settings.log_level`` (``SWARM_LOG_LEVEL``). Returns
    the numeric level applied.
    """

    level = logging.getLevelName((settings or SwarmSettings()).log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger("bzzstore").setLevel(level)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            redact_secrets,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return level


__all__ = ["configure_logging", "redact_secrets"]
