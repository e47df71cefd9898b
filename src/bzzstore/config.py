"""Runtime configuration for the Swarm storage driver.

Values come from ``SWARM_*`` environment variables. Secrets (API key/secret,
CLI password) have no meaningful defaults outside local development.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .clients.auth import DEFAULT_TOKEN_EXPIRY_SECONDS
from .clients.cli import DEFAULT_CLI_BINARY
from .clients.swarm import UploadMode


class SwarmSettings(BaseSettings):
    """Pydantic settings container for one Swarm endpoint."""

    model_config = SettingsConfigDict(env_prefix="SWARM_")

    endpoint: str = Field(
        default="http://localhost:1633",
        description="Base URL of the Bee node API.",
    )
    api_key: str = Field(default="", description="Key exchanged for a bearer token.")
    api_secret: str = Field(
        default="",
        description="Secret paired with api_key, or a pre-issued bearer token when api_key is empty.",
    )
    stamp: str = Field(default="", description="Postage stamp for video segments.")
    feed_stamp: str = Field(default="", description="Postage stamp for playlist feed updates.")
    upload_mode: UploadMode = Field(
        default=UploadMode.API,
        description="Route for ordinary uploads: direct API call or swarm-cli.",
    )
    cli_binary: str = Field(default=DEFAULT_CLI_BINARY, min_length=1)
    cli_identity: str = Field(default="main", min_length=1)
    cli_password: str = Field(default="1234")
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for API calls; swarm-cli runs are not bounded.",
    )
    auth_expiry_seconds: int = Field(default=DEFAULT_TOKEN_EXPIRY_SECONDS, ge=1)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Level applied by bzzstore.logging.configure_logging.",
    )


def load_settings() -> SwarmSettings:
    """Load settings from the environment."""

    return SwarmSettings()


__all__ = ["SwarmSettings", "load_settings"]
