from __future__ import annotations

import logging

import pytest
import structlog

from bzzstore.config import SwarmSettings
from bzzstore.logging import REDACTED, configure_logging, redact_secrets


@pytest.fixture
def restore_logging():
    names = ("bzzstore", "httpx", "httpcore")
    levels = {name: logging.getLogger(name).level for name in names}
    try:
        yield
    finally:
        for name, level in levels.items():
            logging.getLogger(name).setLevel(level)
        structlog.reset_defaults()


def test_configure_logging_applies_settings_level(restore_logging) -> None:
    level = configure_logging(SwarmSettings(log_level="DEBUG"))

    assert level == logging.DEBUG
    assert logging.getLogger("bzzstore").level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.DEBUG
    assert structlog.is_configured()


def test_configure_logging_quiets_http_client_by_default(restore_logging) -> None:
    level = configure_logging(SwarmSettings())

    assert level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_log_level_is_read_from_environment(monkeypatch, restore_logging) -> None:
    monkeypatch.setenv("SWARM_LOG_LEVEL", "ERROR")

    assert configure_logging() == logging.ERROR


def test_redact_secrets_masks_credentials() -> None:
    event = {"event": "auth.login", "endpoint": "http://bee", "password": "1234", "token": "t"}

    result = redact_secrets(None, "info", event)

    assert result["password"] == REDACTED
    assert result["token"] == REDACTED
    assert result["endpoint"] == "http://bee"
    assert result["event"] == "auth.login"
