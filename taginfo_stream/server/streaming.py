"""Per-request orchestration of the tag catalog stream.

WHY: GET /tags must start sending the JSON array before exiftool has
finished printing its catalog, and must always end with a syntactically
valid array, whether the tool succeeded, failed to start, printed broken
XML, or exited early. When the client goes away, the tool must die with
the request.

HOW: TagStream.body() is the async generator handed to Starlette's
StreamingResponse. It moves through three phases:

  Opening   — send "[" (the HTTP layer has already checked streaming support)
  Streaming — ToolProcess stdout → TableScanner → project_table → emitter,
              one body chunk per table
  Closing   — release the tool, send "]", log the terminal outcome

RULES:
- Every outcome except CANCELLED ends the body with "]"
- Tool start failure → TOOL_UNAVAILABLE, body is "[]"
- Broken XML → MALFORMED, records already sent are kept
- Output ending before </taginfo> → TRUNCATED, or TOOL_FAILED on non-zero exit
- Client disconnect → CANCELLED, tool killed, nothing more sent
- One TagStream per request; nothing is shared between requests
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import AsyncIterator, Callable, Dict, Optional, Sequence

import anyio

from taginfo_stream.config import ServiceConfig
from taginfo_stream.core.bridge import ToolProcess
from taginfo_stream.core.emitter import JsonArrayEmitter
from taginfo_stream.core.projector import project_table
from taginfo_stream.core.scanner import ScanOutcome, TableScanner, scan_tables
from taginfo_stream.errors import ToolStartError

logger = logging.getLogger(__name__)

STREAMING_DISABLED_MESSAGE = "Streaming disabled - Please try again at a later time"

STREAM_HEADERS: Dict[str, str] = {
    "Transfer-Encoding": "chunked",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

# How long to wait for the tool's exit status once its output has ended.
_EXIT_WAIT_S = 5.0

ToolFactory = Callable[[str, Sequence[str], int], ToolProcess]


class StreamOutcome(str, enum.Enum):
    """Terminal state of one /tags response."""

    COMPLETE = "complete"
    TRUNCATED = "truncated"
    MALFORMED = "malformed"
    TOOL_FAILED = "tool_failed"
    TOOL_UNAVAILABLE = "tool_unavailable"
    CANCELLED = "cancelled"


def supports_streaming(scope: dict) -> bool:
    """Whether the response can be sent incrementally.

    HTTP/1.0 has no chunked transfer coding, so a streamed body of unknown
    length cannot be framed for it.
    """
    return scope.get("type") == "http" and scope.get("http_version", "1.1") != "1.0"


class TagStream:
    """The body of one GET /tags response."""

    def __init__(
        self,
        config: ServiceConfig,
        tool_factory: ToolFactory = ToolProcess,
    ) -> None:
        self.config = config
        self._tool_factory = tool_factory
        self.scanner = TableScanner()
        self.emitter = JsonArrayEmitter()
        self.outcome: Optional[StreamOutcome] = None
        self.returncode: Optional[int] = None

    async def body(self) -> AsyncIterator[bytes]:
        yield self.emitter.open()

        tool = self._tool_factory(
            self.config.tool_path, self.config.tool_args, self.config.chunk_size
        )
        try:
            await tool.start()
            async for table in scan_tables(tool.read, self.scanner):
                chunk = self.emitter.emit_table(project_table(table))
                if chunk:
                    yield chunk
            self.outcome = await self._settle(tool)
        except ToolStartError as exc:
            logger.error("%s", exc)
            self.outcome = StreamOutcome.TOOL_UNAVAILABLE
        except OSError:
            logger.exception("Reading from %s failed", self.config.tool_path)
            self.outcome = StreamOutcome.TOOL_FAILED
        except (asyncio.CancelledError, GeneratorExit):
            self.outcome = StreamOutcome.CANCELLED
            logger.debug(
                "Client went away after %d records; stopping %s",
                self.emitter.count,
                self.config.tool_path,
            )
            raise
        finally:
            await tool.aclose()

        yield self.emitter.close()
        self._log_outcome()

    async def _settle(self, tool: ToolProcess) -> StreamOutcome:
        """Turn the scan result and tool exit status into an outcome."""
        if self.scanner.outcome is ScanOutcome.COMPLETE:
            return StreamOutcome.COMPLETE
        if self.scanner.outcome is ScanOutcome.MALFORMED:
            return StreamOutcome.MALFORMED

        # Output ended before the document did; the exit status says why.
        with anyio.move_on_after(_EXIT_WAIT_S):
            result = await tool.finish()
            self.returncode = result.returncode
            if not result.ok:
                return StreamOutcome.TOOL_FAILED
        return StreamOutcome.TRUNCATED

    def _log_outcome(self) -> None:
        counts = (self.emitter.count, self.scanner.tables_seen)
        if self.outcome is StreamOutcome.COMPLETE:
            logger.info("Streamed %d tags from %d tables", *counts)
        elif self.outcome is StreamOutcome.TOOL_UNAVAILABLE:
            logger.error("Sent an empty tag list: %s could not be started", self.config.tool_path)
        elif self.outcome is StreamOutcome.TOOL_FAILED:
            logger.warning(
                "%s exited with status %s; sent %d tags from %d tables",
                self.config.tool_path,
                self.returncode,
                *counts,
            )
        elif self.outcome is StreamOutcome.MALFORMED:
            logger.warning(
                "Malformed catalog (%s); sent %d tags from %d tables",
                self.scanner.error,
                *counts,
            )
        else:
            logger.warning("Catalog ended early; sent %d tags from %d tables", *counts)
