"""Swarm storage driver.

Segments are immutable uploads stamped with the content stamp. Playlists
(``*.m3u8``) change over time, so they are published on a feed whose manifest
URL stays stable across updates; feed writes use the separate feed stamp.
"""

from __future__ import annotations

import io
import logging
import posixpath
import re
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import BinaryIO
from urllib.parse import urlsplit

import httpx

from ..clients.auth import (
    DEFAULT_TOKEN_EXPIRY_SECONDS,
    PROCESS_TOKEN_CACHE,
    TokenCache,
    authenticate,
)
from ..clients.cli import DEFAULT_CLI_BINARY, CliRunner, run_swarm_cli
from ..clients.swarm import SwarmClient, UploadMode
from ..exceptions import AuthenticationError, FetchError, NotSupported
from .base import (
    FileInfo,
    FileInfoReader,
    FileProperties,
    OSDriver,
    OSInfo,
    OSSession,
    SaveDataOutput,
    StorageType,
    SwarmOSInfo,
)
from .mime import HLS_PLAYLIST_TYPE, type_by_extension

logger = logging.getLogger(__name__)

URI_SCHEME = "bzz"
MANIFEST_SUFFIX = ".m3u8"
DEFAULT_NAME = "data"

_DUPLICATE_SEPARATORS = re.compile(r"/{2,}")


class ContentKind(str, Enum):
    """Upload route selected for a save target."""

    SEGMENT = "segment"
    MANIFEST = "manifest"


def classify(path: str) -> ContentKind:
    if path.endswith(MANIFEST_SUFFIX):
        return ContentKind.MANIFEST
    return ContentKind.SEGMENT


def effective_path(base_path: str, name: str) -> str:
    """Join ``name`` onto ``base_path`` and clean the result.

    ``.``/``..`` segments and repeated separators collapse the way a POSIX path
    clean does. The result is relative; a path that collapses to the root
    becomes ``""``.
    """

    joined = _DUPLICATE_SEPARATORS.sub("/", f"{base_path}/{name}")
    cleaned = posixpath.normpath(joined)
    if cleaned in ("/", "."):
        return ""
    return cleaned.lstrip("/")


def normalize_endpoint(endpoint: str) -> str:
    value = (endpoint or "").strip().rstrip("/")
    if value and "://" not in value:
        value = f"http://{value}"
    return value


def reference_from(target: str) -> str:
    """Return the ``/bzz/`` reference named by ``target``, or ``""``.

    ``target`` is either a bare reference (optionally followed by a path inside
    it) or an ``http(s)`` URL whose path contains ``/bzz/<ref>``. The host of a
    URL is ignored.
    """

    value = (target or "").strip()
    if "://" in value:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https"):
            return ""
        _, marker, value = parts.path.partition(f"/{URI_SCHEME}/")
        if not marker:
            return ""
    value = value.strip("/")
    if not value or value.split("/", 1)[0] in (".", ".."):
        return ""
    return value


@dataclass(slots=True)
class StampInfo:
    """Postage stamps authorising writes.

    ``stamp`` pays for video segments, ``feed_stamp`` for the feed carrying the
    latest playlist.
    """

    stamp: str = ""
    feed_stamp: str = ""


@dataclass(slots=True)
class SwarmDriver(OSDriver):
    """Driver for one Bee node plus the stamps used to write to it.

    With ``api_key`` set, the first session authenticates against the node and
    the key is cleared afterwards; later sessions reuse the token held by
    ``token_cache``. Without a key, ``api_secret`` is taken as a pre-issued
    bearer token.
    """

    endpoint: str
    api_key: str = field(default="", repr=False)
    api_secret: str = field(default="", repr=False)
    stamps: StampInfo = field(default_factory=StampInfo)
    token_cache: TokenCache = field(default_factory=lambda: PROCESS_TOKEN_CACHE, repr=False)
    upload_mode: UploadMode = UploadMode.API
    cli_binary: str = DEFAULT_CLI_BINARY
    cli_identity: str = "main"
    cli_password: str = field(default="1234", repr=False)
    timeout_seconds: float = 30.0
    auth_expiry_seconds: int = DEFAULT_TOKEN_EXPIRY_SECONDS
    run_cli: CliRunner = field(default=run_swarm_cli, repr=False)
    _uses_token_cache: bool = field(init=False, default=False, repr=False)

    def __post_init__(self) -> None:
        self.endpoint = normalize_endpoint(self.endpoint)
        self._uses_token_cache = bool(self.api_key)

    @property
    def hostname(self) -> str:
        return urlsplit(self.endpoint).netloc

    async def new_session(self, path: str = "") -> "SwarmSession":
        token = await self._bearer_token()
        client = SwarmClient(
            endpoint=self.endpoint,
            bearer_token=token,
            mode=self.upload_mode,
            cli_binary=self.cli_binary,
            cli_identity=self.cli_identity,
            cli_password=self.cli_password,
            timeout_seconds=self.timeout_seconds,
            run_cli=self.run_cli,
        )
        return SwarmSession(driver=self, base_path=path, client=client)

    async def _bearer_token(self) -> str:
        if self.api_key:
            key, secret = self.api_key, self.api_secret
            try:
                token = await self.token_cache.get_or_fetch(
                    lambda: authenticate(
                        self.endpoint,
                        key,
                        secret,
                        expiry=self.auth_expiry_seconds,
                        timeout=self.timeout_seconds,
                    )
                )
            except AuthenticationError:
                logger.error("Failed to create new session for %s", self.hostname)
                raise
            self.api_key = ""
            return token
        if self._uses_token_cache:
            return self.token_cache.token
        return self.api_secret

    def uri_schemes(self) -> list[str]:
        return [f"{URI_SCHEME}://{self.hostname}"]

    def description(self) -> str:
        return "Swarm Bee storage driver"

    async def publish(self) -> str:
        raise NotSupported("publish")


@dataclass(slots=True)
class SwarmSession(OSSession):
    """Session writing below ``base_path`` on the driver's node."""

    driver: SwarmDriver
    base_path: str
    client: SwarmClient

    @property
    def os(self) -> SwarmDriver:
        return self.driver

    def end_session(self) -> None:
        # Nothing is held server-side.
        return None

    async def save_data(
        self,
        name: str,
        data: BinaryIO | bytes,
        fields: FileProperties | None = None,
        timeout: float = 0,
    ) -> SaveDataOutput:
        full_path = effective_path(self.base_path, name)
        upload_name = full_path or DEFAULT_NAME
        kind = classify(full_path)
        logger.info("Saving data to %s", upload_name, extra={"kind": kind.value})

        if kind is ContentKind.MANIFEST:
            logger.info("Found m3u8 file, publishing feed manifest %s", upload_name)
            reference = await self.client.upload_feed_manifest(
                upload_name,
                upload_name,
                HLS_PLAYLIST_TYPE,
                self.driver.stamps.feed_stamp,
                data,
            )
            logger.info("Feed manifest uploaded to swarm: %s", reference)
        else:
            content_type = type_by_extension(posixpath.splitext(upload_name)[1])
            reference = await self.client.upload_file(
                upload_name,
                content_type,
                self.driver.stamps.stamp,
                data,
                timeout=timeout or None,
            )
        return SaveDataOutput(url=reference)

    async def read_data(self, name: str) -> FileInfoReader:
        """Fetch content by reference from the driver's own node.

        A URL returned from ``save_data`` is accepted too; only its ``/bzz/<ref>``
        part is used, so the request and its credentials never leave the node.
        """

        reference = reference_from(name)
        if not reference:
            logger.error("swarm.read.rejected target=%s", name)
            raise FetchError(f"not a swarm reference: {name}")
        url = f"{self.client.base_url}/bzz/{reference}"
        try:
            async with httpx.AsyncClient(timeout=self.driver.timeout_seconds) as http:
                response = await http.get(url, headers=self.client.auth_headers())
        except httpx.HTTPError as exc:
            logger.error("swarm.read.failed reference=%s error=%s", name, exc)
            raise FetchError(f"swarm read failed: {exc}") from exc
        if response.status_code >= 300:
            logger.error("swarm.read.error reference=%s status=%s", name, response.status_code)
            raise FetchError(f"swarm read of {name} failed with status {response.status_code}")
        content = response.content
        return FileInfoReader(
            info=FileInfo(name=self.base_path, size=len(content)),
            body=io.BytesIO(content),
            content_type=response.headers.get("content-type", ""),
        )

    async def read_data_range(self, name: str, byte_range: str) -> FileInfoReader:
        raise NotSupported("read_data_range")

    async def list_files(self, prefix: str, delim: str = "/") -> object:
        raise NotSupported("list_files")

    async def delete_file(self, name: str) -> None:
        raise NotSupported("delete_file")

    def presign(self, name: str, expire: timedelta) -> str:
        raise NotSupported("presign")

    def is_external(self) -> bool:
        return False

    def is_own(self, url: str) -> bool:
        return True

    def get_info(self) -> OSInfo:
        return OSInfo(
            storage_type=StorageType.SWARM,
            swarm_info=SwarmOSInfo(
                host=self.driver.hostname,
                video_stamp=self.driver.stamps.stamp,
                feed_stamp=self.driver.stamps.feed_stamp,
            ),
        )

    async def create_feed_manifest(
        self,
        topic: str | None = None,
        identity: str | None = None,
        stamp_id: str | None = None,
    ) -> str:
        """Create the feed manifest a playlist will be published on."""

        feed_topic = topic or effective_path(self.base_path, "") or DEFAULT_NAME
        return await self.client.create_feed(
            feed_topic,
            identity or self.driver.cli_identity,
            stamp_id or self.driver.stamps.feed_stamp,
        )


__all__ = [
    "ContentKind",
    "DEFAULT_NAME",
    "MANIFEST_SUFFIX",
    "StampInfo",
    "SwarmDriver",
    "SwarmSession",
    "URI_SCHEME",
    "classify",
    "effective_path",
    "normalize_endpoint",
    "reference_from",
]
