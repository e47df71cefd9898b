"""Thin asyncio wrapper around the ``swarm-cli`` executable."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Protocol

from ..exceptions import UploadError

logger = logging.getLogger(__name__)

DEFAULT_CLI_BINARY = "swarm-cli"


class CliRunner(Protocol):
    """Callable running ``swarm-cli`` with ``payload`` on stdin."""

    def __call__(self, payload: bytes, *args: str, binary: str = ...) -> Awaitable[str]: ...


async def run_swarm_cli(payload: bytes, *args: str, binary: str = DEFAULT_CLI_BINARY) -> str:
    """Run ``binary`` with ``args``, feed ``payload`` to stdin and return its output.

    stdout and stderr are merged, as the tool prints results and diagnostics on
    either stream. The process has no deadline of its own; when the awaiting
    task is cancelled the child is killed and reaped before the cancellation
    propagates.
    """

    try:
        process = await asyncio.create_subprocess_exec(
            binary,
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except FileNotFoundError as exc:
        logger.error("swarm.cli.missing binary=%s", binary)
        raise UploadError(f"{binary} not found in PATH", returncode=127) from exc

    try:
        stdout, _ = await process.communicate(payload)
    except BaseException:
        # Caller gave up: kill and reap the child.
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await asyncio.shield(process.wait())
        logger.warning("swarm.cli.killed", extra={"command": args[:2]})
        raise
    output = (stdout or b"").decode("utf-8", errors="replace")
    if process.returncode != 0:
        logger.error(
            "swarm.cli.failed returncode=%s",
            process.returncode,
            extra={"command": args[:2], "returncode": process.returncode},
        )
        raise UploadError(
            f"{binary} exited with code {process.returncode}: {output.strip()}",
            returncode=process.returncode,
            output=output,
        )
    logger.debug("swarm.cli.output %s", output.strip())
    return output.strip()


__all__ = ["CliRunner", "DEFAULT_CLI_BINARY", "run_swarm_cli"]
