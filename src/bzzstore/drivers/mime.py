"""Content type lookup for stored media."""

from __future__ import annotations

import mimetypes

from ..exceptions import UnsupportedExtensionError

DEFAULT_CONTENT_TYPE = "application/octet-stream"
HLS_PLAYLIST_TYPE = "application/x-mpegURL"

# Media types the platform's mimetypes database gets wrong or lacks.
_MEDIA_TYPES = {
    ".ts": "video/mp2t",
    ".m3u8": HLS_PLAYLIST_TYPE,
    ".mp4": "video/mp4",
    ".m4s": "video/iso.segment",
    ".fmp4": "video/mp4",
    ".mpd": "application/dash+xml",
    ".json": "application/json",
    ".txt": "text/plain",
    ".png": "image/png",
    ".jpg": "image/jpeg",
}


def type_by_extension(ext: str) -> str:
    """Return the content type for ``ext`` (``".ts"`` or ``"ts"``).

    An empty extension maps to ``application/octet-stream``; an extension
    nobody knows raises :class:`UnsupportedExtensionError`.
    """

    normalized = (ext or "").strip().lower()
    if not normalized:
        return DEFAULT_CONTENT_TYPE
    if not normalized.startswith("."):
        normalized = f".{normalized}"
    known = _MEDIA_TYPES.get(normalized)
    if known:
        return known
    guessed, _ = mimetypes.guess_type(f"file{normalized}", strict=False)
    if guessed:
        return guessed
    raise UnsupportedExtensionError(f"no content type known for extension '{normalized}'")


__all__ = ["DEFAULT_CONTENT_TYPE", "HLS_PLAYLIST_TYPE", "type_by_extension"]
