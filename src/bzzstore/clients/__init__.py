"""Clients for the Bee HTTP API and the ``swarm-cli`` tool."""

from .auth import PROCESS_TOKEN_CACHE, TokenCache, authenticate
from .cli import run_swarm_cli
from .references import parse_feed_manifest_url, parse_swarm_hash, parse_url
from .swarm import SwarmClient, UploadMode

__all__ = [
    "PROCESS_TOKEN_CACHE",
    "SwarmClient",
    "TokenCache",
    "UploadMode",
    "authenticate",
    "parse_feed_manifest_url",
    "parse_swarm_hash",
    "parse_url",
    "run_swarm_cli",
]
