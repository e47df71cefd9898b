"""Extract Swarm references from ``swarm-cli`` output.

``swarm-cli`` reports results as human-readable lines, for example::

    Swarm hash: 6c3f...e2
    URL: http://bee:1633/bzz/6c3f...e2/
    Feed Manifest URL: http://bee:1633/bzz/deadbeef/

The manifest pattern is used for feed uploads only and the generic pattern for
ordinary uploads only; feed output may carry both lines. Every helper returns
an empty string when nothing matches, callers decide whether that is fatal.
"""

from __future__ import annotations

import re

FEED_MANIFEST_URL_RE = re.compile(r"Feed Manifest URL: (https?://\S+)")
URL_RE = re.compile(r"(?<!Manifest )URL: (https?://\S+)")
SWARM_HASH_RE = re.compile(r"Swarm hash: (\S+)")


def _first_group(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text or "")
    if match is None:
        return ""
    return match.group(1)


def parse_feed_manifest_url(text: str) -> str:
    """Return the first ``Feed Manifest URL`` value in ``text`` or ``""``."""

    return _first_group(FEED_MANIFEST_URL_RE, text)


def parse_url(text: str) -> str:
    """Return the first plain ``URL`` value in ``text`` or ``""``."""

    return _first_group(URL_RE, text)


def parse_swarm_hash(text: str) -> str:
    return _first_group(SWARM_HASH_RE, text)


__all__ = [
    "FEED_MANIFEST_URL_RE",
    "URL_RE",
    "SWARM_HASH_RE",
    "parse_feed_manifest_url",
    "parse_url",
    "parse_swarm_hash",
]
