"""Construct Swarm drivers from settings or ``bzz://`` URLs."""

from __future__ import annotations

from urllib.parse import parse_qs, unquote, urlsplit

from ..clients.auth import PROCESS_TOKEN_CACHE, TokenCache
from ..clients.swarm import UploadMode
from ..config import SwarmSettings
from ..exceptions import ConfigurationError
from .swarm import URI_SCHEME, StampInfo, SwarmDriver

NODE_SCHEMES = ("http", "https")


def driver_from_settings(
    settings: SwarmSettings, *, token_cache: TokenCache | None = None
) -> SwarmDriver:
    """Instantiate a driver described by ``settings``."""

    if not settings.endpoint:
        raise ConfigurationError("SWARM_ENDPOINT is not configured")
    return SwarmDriver(
        endpoint=settings.endpoint,
        api_key=settings.api_key,
        api_secret=settings.api_secret,
        stamps=StampInfo(stamp=settings.stamp, feed_stamp=settings.feed_stamp),
        token_cache=token_cache or PROCESS_TOKEN_CACHE,
        upload_mode=settings.upload_mode,
        cli_binary=settings.cli_binary,
        cli_identity=settings.cli_identity,
        cli_password=settings.cli_password,
        timeout_seconds=settings.timeout_seconds,
        auth_expiry_seconds=settings.auth_expiry_seconds,
    )


def driver_from_url(
    url: str,
    *,
    settings: SwarmSettings | None = None,
    token_cache: TokenCache | None = None,
) -> SwarmDriver:
    """Instantiate a driver from ``bzz://[key:secret@]host[:port]?stamp=..&feedstamp=..``.

    ``mode`` (``api`` or ``cli``) and ``scheme`` (``http`` or ``https``, the
    protocol spoken to the Bee node) may be given in the query. Anything the URL
    leaves out is taken from ``settings``.
    """

    parts = urlsplit(url)
    if parts.scheme != URI_SCHEME:
        raise ConfigurationError(f"unsupported driver scheme '{parts.scheme}'")
    if not parts.hostname:
        raise ConfigurationError("driver URL has no host")

    base = settings or SwarmSettings()
    query = {key: values[-1] for key, values in parse_qs(parts.query).items()}
    try:
        port = parts.port
    except ValueError as exc:
        raise ConfigurationError(f"invalid port in driver URL: {exc}") from exc
    host = parts.hostname if port is None else f"{parts.hostname}:{port}"

    node_scheme = query.get("scheme", "http")
    if node_scheme not in NODE_SCHEMES:
        raise ConfigurationError(f"unsupported node scheme '{node_scheme}'")

    mode_value = query.get("mode", base.upload_mode.value)
    try:
        mode = UploadMode(mode_value)
    except ValueError as exc:
        raise ConfigurationError(f"unknown upload mode '{mode_value}'") from exc

    overrides = {
        "endpoint": f"{node_scheme}://{host}",
        "api_key": unquote(parts.username) if parts.username else base.api_key,
        "api_secret": unquote(parts.password) if parts.password else base.api_secret,
        "stamp": query.get("stamp", base.stamp),
        "feed_stamp": query.get("feedstamp", base.feed_stamp),
        "upload_mode": mode,
    }
    return driver_from_settings(base.model_copy(update=overrides), token_cache=token_cache)


__all__ = ["driver_from_settings", "driver_from_url"]
