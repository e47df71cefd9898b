"""Bee API authentication and bearer token caching."""

from __future__ import annotations

import asyncio
import base64
import threading
from dataclasses import dataclass, field
from typing import Awaitable, Callable

import httpx
import structlog

from ..exceptions import AuthenticationError

logger = structlog.get_logger(__name__)

AUTH_ROLE = "maintainer"
DEFAULT_TOKEN_EXPIRY_SECONDS = 3600


def basic_auth_header(user: str, password: str) -> str:
    """Return the ``Authorization`` value for HTTP Basic credentials."""

    encoded = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


async def authenticate(
    endpoint: str,
    user: str,
    password: str,
    *,
    expiry: int = DEFAULT_TOKEN_EXPIRY_SECONDS,
    timeout: float = 10.0,
) -> str:
    """Exchange API key/secret for a maintainer bearer token.

    A single ``POST {endpoint}/auth`` is issued. Any failure raises
    :class:`AuthenticationError` chained to its cause; there is no retry.
    """

    url = f"{endpoint.rstrip('/')}/auth"
    headers = {
        "Authorization": basic_auth_header(user, password),
        "Content-Type": "application/json",
    }
    payload = {"role": AUTH_ROLE, "expiry": expiry}

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, headers=headers, json=payload)
    except httpx.HTTPError as exc:
        logger.error("swarm.auth.failure", endpoint=endpoint, reason="transport", error=str(exc))
        raise AuthenticationError(f"authentication request failed: {exc}") from exc

    if response.status_code >= 300:
        logger.error(
            "swarm.auth.failure",
            endpoint=endpoint,
            reason="status",
            status_code=response.status_code,
        )
        raise AuthenticationError(f"authentication rejected with status {response.status_code}")

    try:
        body = response.json()
    except ValueError as exc:
        logger.error("swarm.auth.failure", endpoint=endpoint, reason="invalid_json")
        raise AuthenticationError("authentication response is not valid JSON") from exc

    token = body.get("key") if isinstance(body, dict) else None
    if not token or not isinstance(token, str):
        logger.error("swarm.auth.failure", endpoint=endpoint, reason="missing_key")
        raise AuthenticationError("authentication response carries no key")

    logger.info("swarm.auth.success", endpoint=endpoint, expires_in=expiry)
    return token


@dataclass(slots=True)
class TokenCache:
    """Write-once holder for a bearer token.

    The first stored token wins and is never replaced; a stale token is not
    refreshed. Drivers sharing one cache share its token even when they were
    configured with different credentials.

    Concurrent fetches are serialised per event loop, so a process-wide cache
    stays usable across successive ``asyncio.run`` calls.
    """

    _token: str = ""
    _guard: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _fetch_locks: dict[asyncio.AbstractEventLoop, asyncio.Lock] = field(
        default_factory=dict, repr=False
    )

    @property
    def token(self) -> str:
        with self._guard:
            return self._token

    @property
    def is_set(self) -> bool:
        return bool(self.token)

    def set(self, token: str) -> str:
        """Store ``token`` unless a token is already cached; return the cached one."""

        with self._guard:
            if not self._token and token:
                self._token = token
            return self._token

    async def get_or_fetch(self, fetch: Callable[[], Awaitable[str]]) -> str:
        """Return the cached token, awaiting ``fetch`` once when it is empty."""

        cached = self.token
        if cached:
            return cached
        async with self._fetch_lock():
            cached = self.token
            if cached:
                return cached
            return self.set(await fetch())

    def _fetch_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        with self._guard:
            for stale in [known for known in self._fetch_locks if known.is_closed()]:
                del self._fetch_locks[stale]
            lock = self._fetch_locks.get(loop)
            if lock is None:
                lock = self._fetch_locks[loop] = asyncio.Lock()
            return lock


PROCESS_TOKEN_CACHE = TokenCache()


__all__ = [
    "AUTH_ROLE",
    "DEFAULT_TOKEN_EXPIRY_SECONDS",
    "PROCESS_TOKEN_CACHE",
    "TokenCache",
    "authenticate",
    "basic_auth_header",
]
