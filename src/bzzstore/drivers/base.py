"""Abstract storage driver/session interface shared by all backends.

A driver describes one configured storage endpoint and mints sessions. A
session is bound to one logical output path and performs the reads and writes.
Backends raise :class:`~bzzstore.exceptions.NotSupported` for operations they
do not implement instead of omitting them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import BinaryIO, Mapping


class StorageType(str, Enum):
    DIRECT = "direct"
    S3 = "s3"
    GOOGLE = "google"
    IPFS = "ipfs"
    SWARM = "swarm"


@dataclass(slots=True)
class FileProperties:
    """Optional attributes a caller may attach to saved content."""

    metadata: Mapping[str, str] = field(default_factory=dict)
    cache_control: str = ""
    content_type: str = ""


@dataclass(slots=True)
class FileInfo:
    name: str
    size: int | None = None
    etag: str = ""


@dataclass(slots=True)
class FileInfoReader:
    """Content returned by ``read_data`` together with its description."""

    info: FileInfo
    body: BinaryIO
    content_type: str = ""
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SaveDataOutput:
    """Durable identifier of saved content."""

    url: str


@dataclass(slots=True, frozen=True)
class SwarmOSInfo:
    host: str
    video_stamp: str
    feed_stamp: str


@dataclass(slots=True, frozen=True)
class OSInfo:
    """Backend descriptor used for diagnostics and serialisation."""

    storage_type: StorageType
    swarm_info: SwarmOSInfo | None = None


class OSSession(ABC):
    """Per-path handle performing storage operations."""

    @property
    @abstractmethod
    def os(self) -> "OSDriver":
        """Return the driver that created this session."""

    @abstractmethod
    def end_session(self) -> None:
        """Release session resources."""

    @abstractmethod
    async def save_data(
        self,
        name: str,
        data: BinaryIO | bytes,
        fields: FileProperties | None = None,
        timeout: float = 0,
    ) -> SaveDataOutput:
        """Persist ``data`` under ``name`` relative to the session path."""

    @abstractmethod
    async def read_data(self, name: str) -> FileInfoReader:
        """Fetch previously saved content."""

    @abstractmethod
    async def read_data_range(self, name: str, byte_range: str) -> FileInfoReader:
        """Fetch a byte range of previously saved content."""

    @abstractmethod
    async def list_files(self, prefix: str, delim: str = "/") -> object:
        """List stored objects below ``prefix``."""

    @abstractmethod
    async def delete_file(self, name: str) -> None:
        """Delete stored content."""

    @abstractmethod
    def presign(self, name: str, expire: timedelta) -> str:
        """Return a pre-signed URL for direct client access."""

    @abstractmethod
    def is_external(self) -> bool:
        """Whether content lives outside infrastructure owned by the caller."""

    @abstractmethod
    def is_own(self, url: str) -> bool:
        """Whether ``url`` points at storage handled by this session."""

    @abstractmethod
    def get_info(self) -> OSInfo:
        """Describe the backend behind this session."""


class OSDriver(ABC):
    """Process-wide descriptor of one configured storage backend."""

    @abstractmethod
    async def new_session(self, path: str = "") -> OSSession:
        """Create a session bound to ``path``."""

    @abstractmethod
    def uri_schemes(self) -> list[str]:
        """Return URI prefixes this driver answers to."""

    @abstractmethod
    def description(self) -> str:
        """Human-readable driver description."""

    @abstractmethod
    async def publish(self) -> str:
        """Make stored content publicly reachable."""


__all__ = [
    "FileInfo",
    "FileInfoReader",
    "FileProperties",
    "OSDriver",
    "OSInfo",
    "OSSession",
    "SaveDataOutput",
    "StorageType",
    "SwarmOSInfo",
]
