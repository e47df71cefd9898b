"""Exception hierarchy shared by Swarm clients and storage drivers."""

from __future__ import annotations

__all__ = [
    "StorageError",
    "AuthenticationError",
    "ReadError",
    "UploadError",
    "FetchError",
    "NotSupported",
    "UnsupportedExtensionError",
    "ConfigurationError",
]


class StorageError(Exception):
    """Base class for storage backend failures."""


class AuthenticationError(StorageError):
    """Raised when the credential exchange against ``/auth`` fails."""


class ReadError(StorageError):
    """Raised when the payload stream cannot be buffered completely."""


class UploadError(StorageError):
    """Raised when the remote API or ``swarm-cli`` rejects an upload."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        output: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class FetchError(StorageError):
    """Raised when content cannot be retrieved by reference."""


class NotSupported(StorageError):
    """Raised for operations the Swarm backend does not implement."""

    def __init__(self, operation: str = "") -> None:
        message = f"{operation} is not supported by the swarm driver" if operation else "not supported"
        super().__init__(message)
        self.operation = operation


class UnsupportedExtensionError(StorageError):
    """Raised when no content type is known for a file extension."""


class ConfigurationError(StorageError):
    """Raised when driver settings or a driver URL are invalid."""
