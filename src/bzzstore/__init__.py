"""Swarm storage backend for media pipelines."""

from .config import SwarmSettings, load_settings
from .drivers import SwarmDriver, SwarmSession, driver_from_settings, driver_from_url
from .exceptions import (
    AuthenticationError,
    NotSupported,
    ReadError,
    StorageError,
    UploadError,
)

__all__ = [
    "AuthenticationError",
    "NotSupported",
    "ReadError",
    "StorageError",
    "SwarmDriver",
    "SwarmSession",
    "SwarmSettings",
    "UploadError",
    "driver_from_settings",
    "driver_from_url",
    "load_settings",
]
