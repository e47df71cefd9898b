"""Upload client for the Swarm Bee API and ``swarm-cli``.

Ordinary content is uploaded either through ``POST /bytes`` or through
``swarm-cli upload``, chosen once per deployment with :class:`UploadMode`.
Feed manifests have no API equivalent and always go through
``swarm-cli feed upload``. Both paths buffer the payload completely before
submitting it and surface failures without retrying.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO

import httpx

from ..exceptions import ReadError, UploadError
from .cli import DEFAULT_CLI_BINARY, CliRunner, run_swarm_cli
from .references import parse_feed_manifest_url, parse_url

logger = logging.getLogger(__name__)

POSTAGE_BATCH_HEADER = "swarm-postage-batch-id"
SEPARATOR_SUBSTITUTE = "_"


class UploadMode(str, Enum):
    """How ordinary (non-manifest) content reaches the node."""

    API = "api"
    CLI = "cli"


def read_payload(data: BinaryIO | bytes | bytearray) -> bytes:
    """Buffer ``data`` completely; any failure raises :class:`ReadError`."""

    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    try:
        payload = data.read()
    except (OSError, ValueError) as exc:
        logger.error("swarm.upload.read_failed error=%s", exc)
        raise ReadError(f"error reading byte data, aborting upload: {exc}") from exc
    if isinstance(payload, str):
        return payload.encode("utf-8")
    if not isinstance(payload, (bytes, bytearray)):
        raise ReadError(f"payload stream returned {type(payload).__name__}, expected bytes")
    return bytes(payload)


def flatten_separators(value: str) -> str:
    """Replace path separators, which feed topics and names must not contain."""

    return value.replace("/", SEPARATOR_SUBSTITUTE)


@dataclass(slots=True)
class SwarmClient:
    """Authenticated handle used by a session to talk to one Bee node."""

    endpoint: str
    bearer_token: str = field(default="", repr=False)
    mode: UploadMode = UploadMode.API
    cli_binary: str = DEFAULT_CLI_BINARY
    cli_identity: str = "main"
    cli_password: str = field(default="1234", repr=False)
    timeout_seconds: float = 30.0
    run_cli: CliRunner = field(default=run_swarm_cli, repr=False)

    @property
    def base_url(self) -> str:
        return self.endpoint.rstrip("/")

    def auth_headers(self) -> dict[str, str]:
        if not self.bearer_token:
            return {}
        return {"Authorization": f"Bearer {self.bearer_token}"}

    def _node_args(self) -> list[str]:
        args = ["--bee-api-url", self.base_url, "--bee-debug-api-url", self.base_url]
        if self.bearer_token:
            args += ["-H", f"Authorization: Bearer {self.bearer_token}"]
        return args

    async def upload_file(
        self,
        name: str,
        content_type: str,
        stamp_id: str,
        data: BinaryIO | bytes,
        *,
        timeout: float | None = None,
    ) -> str:
        """Upload immutable content and return its reference."""

        payload = read_payload(data)
        logger.info(
            "swarm.upload.start",
            extra={"object_name": name, "size": len(payload), "mode": self.mode.value},
        )
        if self.mode is UploadMode.CLI:
            reference = await self._upload_file_cli(name, content_type, stamp_id, payload)
        else:
            reference = await self._upload_file_api(
                name, content_type, stamp_id, payload, timeout=timeout
            )
        logger.info("uploaded file to swarm: reference=%s name=%s", reference, name)
        return reference

    async def _upload_file_api(
        self,
        name: str,
        content_type: str,
        stamp_id: str,
        payload: bytes,
        *,
        timeout: float | None,
    ) -> str:
        url = f"{self.base_url}/bytes"
        headers = {POSTAGE_BATCH_HEADER: stamp_id, **self.auth_headers()}
        files = {"file": (name, payload, content_type)}
        effective_timeout = timeout if timeout else self.timeout_seconds
        try:
            async with httpx.AsyncClient(timeout=effective_timeout) as client:
                response = await client.post(url, headers=headers, files=files)
        except httpx.HTTPError as exc:
            logger.error("error uploading file to swarm: %s", exc, extra={"object_name": name})
            raise UploadError(f"swarm upload failed: {exc}") from exc

        if response.status_code >= 300:
            body_preview = (response.text or "")[:500]
            logger.error(
                "swarm.upload.error status=%s body_preview=%s",
                response.status_code,
                body_preview,
                extra={"object_name": name, "status_code": response.status_code},
            )
            raise UploadError(
                f"swarm upload rejected with status {response.status_code}",
                output=body_preview,
            )

        try:
            body = response.json()
        except ValueError as exc:
            logger.error("swarm.upload.invalid_json", extra={"object_name": name})
            raise UploadError("swarm upload response is not valid JSON") from exc
        reference = body.get("reference") if isinstance(body, dict) else None
        if not reference:
            logger.error("swarm.upload.missing_reference", extra={"object_name": name})
            raise UploadError("swarm upload response carries no reference")
        return str(reference)

    async def _upload_file_cli(
        self, name: str, content_type: str, stamp_id: str, payload: bytes
    ) -> str:
        args = [
            "upload",
            "--stamp",
            stamp_id,
            "--name",
            name,
            "--content-type",
            content_type,
            *self._node_args(),
            "--stdin",
        ]
        output = await self._run(payload, args, name=name)
        reference = parse_url(output)
        if not reference:
            logger.error("swarm.upload.unparsed_output", extra={"object_name": name})
            raise UploadError("no URL found in swarm-cli upload output", output=output)
        return reference

    async def upload_feed_manifest(
        self,
        topic: str,
        name: str,
        content_type: str,
        stamp_id: str,
        data: BinaryIO | bytes,
    ) -> str:
        """Publish ``data`` on the feed for ``topic`` and return the manifest URL."""

        payload = read_payload(data)
        args = [
            "feed",
            "upload",
            "--topic-string",
            flatten_separators(topic),
            "--stamp",
            stamp_id,
            "--name",
            flatten_separators(name),
            "--content-type",
            content_type,
            *self._node_args(),
            "--identity",
            self.cli_identity,
            "--password",
            self.cli_password,
            "--stdin",
        ]
        output = await self._run(payload, args, name=name)
        reference = parse_feed_manifest_url(output)
        if not reference:
            logger.error("swarm.feed.unparsed_output", extra={"object_name": name})
            raise UploadError("no Feed Manifest URL found in swarm-cli output", output=output)
        logger.info("uploaded manifest file to swarm: reference=%s name=%s", reference, name)
        return reference

    async def create_feed(self, topic: str, identity: str, stamp_id: str) -> str:
        """Create the feed manifest for ``identity``/``topic`` and return its URL."""

        args = [
            "feed",
            "print",
            "--topic-string",
            flatten_separators(topic),
            "--identity",
            identity,
            "--password",
            self.cli_password,
            "--stamp",
            stamp_id,
            *self._node_args(),
        ]
        output = await self._run(b"", args, name=identity)
        reference = parse_feed_manifest_url(output)
        if not reference:
            raise UploadError("no Feed Manifest URL found in swarm-cli output", output=output)
        return reference

    async def _run(self, payload: bytes, args: list[str], *, name: str) -> str:
        try:
            return await self.run_cli(payload, *args, binary=self.cli_binary)
        except UploadError:
            logger.error("error uploading file to swarm", extra={"object_name": name, "command": args[:2]})
            raise


__all__ = [
    "POSTAGE_BATCH_HEADER",
    "SEPARATOR_SUBSTITUTE",
    "SwarmClient",
    "UploadMode",
    "flatten_separators",
    "read_payload",
]
