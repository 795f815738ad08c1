"""Async bridge to the external exiftool process.

WHY: The tag catalog only exists as the output of `exiftool -listx`. Each
request runs its own tool process and reads the XML from its stdout while
the tool is still writing it. The process must never outlive the request:
when the client disconnects, the tool is killed and its pipe released.

HOW: asyncio.create_subprocess_exec() starts the tool with stdout piped.
The OS pipe is the bounded, single-producer/single-consumer channel: when
the service stops reading (because the HTTP client is slow), the tool
blocks on write. ToolProcess is an async context manager; leaving it by
any path, including cancellation, kills a still-running tool and reaps it
inside a shielded, time-bounded scope.

RULES:
- Spawn failures raise ToolStartError, never pass silently
- read() returns b"" at end of output
- aclose() is idempotent and safe to call after cancellation
- stdin and stderr are detached so the tool cannot block on them
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Sequence

import anyio

from taginfo_stream.config import READ_CHUNK_SIZE, TOOL_LIST_ARGS
from taginfo_stream.errors import ToolStartError

logger = logging.getLogger(__name__)

# Upper bound for reaping a killed tool during cleanup.
_REAP_TIMEOUT_S = 5.0


@dataclass(frozen=True)
class ToolResult:
    """Exit status of a finished tool process."""

    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ToolProcess:
    """One run of the external tool, scoped to one request.

    Usage:
        async with ToolProcess(config.tool_path) as tool:
            while chunk := await tool.read():
                ...
            result = await tool.finish()
    """

    def __init__(
        self,
        tool_path: str,
        args: Sequence[str] = TOOL_LIST_ARGS,
        chunk_size: int = READ_CHUNK_SIZE,
    ) -> None:
        self.tool_path = tool_path
        self.args = tuple(args)
        self.chunk_size = chunk_size
        self._process: Optional[asyncio.subprocess.Process] = None
        self._closed = False

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        """Spawn the tool. Raises ToolStartError if it cannot be launched."""
        if self._process is not None:
            raise RuntimeError("ToolProcess already started")
        try:
            self._process = await asyncio.create_subprocess_exec(
                self.tool_path,
                *self.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            raise ToolStartError(self.tool_path, exc.strerror or str(exc)) from exc
        logger.debug("Started %s (pid %s)", self.tool_path, self._process.pid)

    async def read(self) -> bytes:
        """Read the next chunk of stdout; b"" means end of output."""
        if self._process is None or self._process.stdout is None:
            raise RuntimeError("ToolProcess not started")
        return await self._process.stdout.read(self.chunk_size)

    async def chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.read()
            if not chunk:
                return
            yield chunk

    async def finish(self) -> ToolResult:
        """Wait for the tool to exit and return its status."""
        if self._process is None:
            raise RuntimeError("ToolProcess not started")
        returncode = await self._process.wait()
        return ToolResult(returncode=returncode)

    async def aclose(self) -> None:
        """Kill the tool if it is still running and release its pipe."""
        if self._closed:
            return
        self._closed = True
        process = self._process
        if process is None:
            return

        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            else:
                logger.debug("Killed %s (pid %s)", self.tool_path, process.pid)

        with anyio.move_on_after(_REAP_TIMEOUT_S, shield=True):
            await process.wait()
        if process.returncode is None:
            logger.warning(
                "%s (pid %s) did not exit within %.0fs after kill",
                self.tool_path,
                process.pid,
                _REAP_TIMEOUT_S,
            )

    async def __aenter__(self) -> "ToolProcess":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
