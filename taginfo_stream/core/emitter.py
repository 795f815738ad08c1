"""JSON array framing for a streamed sequence of TagRecords.

WHY: The response body is one JSON array, but it is written piecewise as
tables arrive. Separators must be placed by counting what has actually
been written, so the array stays valid whether it ends after zero
records, after a truncated scan, or after the full catalog.

HOW: JsonArrayEmitter returns bytes for the caller to send: "[" from
open(), one chunk per table from emit_table(), "]" from close(). The HTTP
layer sends each chunk as its own body message, which is the per-table
flush clients observe as progress.

RULES:
- No comma before the first record of the response, one before each later record
- Records are compact JSON in TagRecord field order
- A record that fails to serialize is logged and skipped; the count and
  separators only reflect records actually written
- close() may be called whatever way the scan ended
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from pydantic import ValidationError

from taginfo_stream.core.models import TagRecord

logger = logging.getLogger(__name__)

ARRAY_OPEN = b"["
ARRAY_CLOSE = b"]"
SEPARATOR = b","


def serialize_record(record: TagRecord) -> bytes:
    """Compact JSON for one record: {"type":...,"writable":...,...}."""
    return record.model_dump_json().encode("utf-8")


class JsonArrayEmitter:
    """Stateful writer for one response's JSON array."""

    def __init__(self) -> None:
        self.count = 0
        self.skipped = 0

    def open(self) -> bytes:
        return ARRAY_OPEN

    def close(self) -> bytes:
        return ARRAY_CLOSE

    def emit_table(self, records: Iterable[TagRecord]) -> bytes:
        """Serialize every record of one table into a single chunk.

        Returns b"" when the table produced nothing to write.
        """
        parts: List[bytes] = []
        for record in records:
            try:
                payload = serialize_record(record)
            except (ValueError, TypeError, ValidationError) as exc:
                self.skipped += 1
                logger.warning("Skipping record %s: %s", getattr(record, "path", "?"), exc)
                continue
            if self.count:
                parts.append(SEPARATOR)
            parts.append(payload)
            self.count += 1
        return b"".join(parts)
