"""Storage drivers exposing the shared session interface."""

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
from .factory import driver_from_settings, driver_from_url
from .swarm import ContentKind, StampInfo, SwarmDriver, SwarmSession, classify, effective_path

__all__ = [
    "ContentKind",
    "FileInfo",
    "FileInfoReader",
    "FileProperties",
    "OSDriver",
    "OSInfo",
    "OSSession",
    "SaveDataOutput",
    "StampInfo",
    "StorageType",
    "SwarmDriver",
    "SwarmOSInfo",
    "SwarmSession",
    "classify",
    "driver_from_settings",
    "driver_from_url",
    "effective_path",
]
