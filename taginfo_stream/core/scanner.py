"""Incremental XML scanner that decodes one <table> at a time.

WHY: exiftool -listx prints a catalog of several megabytes with thousands
of tags. Building the whole document tree would hold all of it in memory
before the first record could be sent. The scanner instead consumes the
tool's output chunk by chunk and hands over each table as soon as its
closing tag arrives, so memory is bounded by the size of one table.

HOW: xml.etree.ElementTree.XMLPullParser turns pushed bytes into start/end
events. The scanner is a two-state machine:

  SCANNING — ignore everything except a <table> start. Once the matching
             </table> end arrives, decode that subtree into a Table and
             detach it from the partial tree.
  DONE     — reached on </taginfo> (COMPLETE), on a tokenization error
             (MALFORMED), or when input ends first (TRUNCATED). Further
             input is ignored.

RULES:
- Tables are returned in document order
- A table with zero tags is still returned and counted
- Parse errors never escape feed()/close(); they end the scan
- Empty input ends as TRUNCATED with zero tables
- Elements are detached once handled so the partial tree stays small
"""

from __future__ import annotations

import enum
import logging
import xml.etree.ElementTree as ET
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from taginfo_stream.core.models import Description, Table, Tag

logger = logging.getLogger(__name__)

DOCUMENT_ELEMENT = "taginfo"
TABLE_ELEMENT = "table"
TAG_ELEMENT = "tag"
DESC_ELEMENT = "desc"

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})


class ScanState(str, enum.Enum):
    SCANNING = "scanning"
    DONE = "done"


class ScanOutcome(str, enum.Enum):
    """How the scan reached DONE."""

    COMPLETE = "complete"
    TRUNCATED = "truncated"
    MALFORMED = "malformed"


# ---------------------------------------------------------------------------
# Element decoding
# ---------------------------------------------------------------------------


def _local_name(tag: str) -> str:
    """Strip a "{namespace}" prefix from an element tag."""
    if tag[:1] == "{":
        return tag.rpartition("}")[2]
    return tag


def _parse_bool(value: Optional[str]) -> bool:
    """Decode an XML boolean attribute; unknown spellings are False."""
    if value is None:
        return False
    return value.strip() in _TRUE_VALUES


def _chardata(elem: ET.Element) -> str:
    """Character data directly inside elem, excluding child elements' text."""
    parts = [elem.text or ""]
    parts.extend(child.tail or "" for child in elem)
    return "".join(parts)


def decode_table(elem: ET.Element) -> Table:
    """Decode a complete <table> element into a Table.

    Only direct <tag> children and their direct <desc> children are read;
    anything else inside the table is ignored.
    """
    table = Table(name=elem.get("name", ""))
    for tag_elem in elem:
        if _local_name(tag_elem.tag) != TAG_ELEMENT:
            continue
        tag = Tag(
            name=tag_elem.get("name", ""),
            type=tag_elem.get("type", ""),
            writable=_parse_bool(tag_elem.get("writable")),
        )
        for desc_elem in tag_elem:
            if _local_name(desc_elem.tag) != DESC_ELEMENT:
                continue
            tag.descriptions.append(
                Description(lang=desc_elem.get("lang", ""), value=_chardata(desc_elem))
            )
        table.tags.append(tag)
    return table


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------


class TableScanner:
    """Push-based scanner: feed() bytes in, get completed Tables out."""

    def __init__(
        self,
        document_element: str = DOCUMENT_ELEMENT,
        table_element: str = TABLE_ELEMENT,
    ) -> None:
        self.document_element = document_element
        self.table_element = table_element
        self.state = ScanState.SCANNING
        self.outcome: Optional[ScanOutcome] = None
        self.error: Optional[str] = None
        self.tables_seen = 0
        self._parser: Optional[ET.XMLPullParser] = ET.XMLPullParser(events=("start", "end"))
        self._stack: List[ET.Element] = []
        self._current_table: Optional[ET.Element] = None

    @property
    def done(self) -> bool:
        return self.state is ScanState.DONE

    def feed(self, data: bytes) -> List[Table]:
        """Push a chunk of the document; return the tables it completed."""
        if self._parser is None or not data:
            return []
        self._parser.feed(data)
        return self._drain()

    def close(self) -> List[Table]:
        """Signal end of input; return any tables completed by the final flush."""
        if self._parser is None:
            return []
        error = None  # type: Optional[ET.ParseError]
        try:
            self._parser.close()
        except ET.ParseError as exc:
            error = exc
        tables = self._drain()
        if not self.done:
            self._finish(ScanOutcome.TRUNCATED, str(error) if error else None)
        return tables

    def _drain(self) -> List[Table]:
        tables: List[Table] = []
        assert self._parser is not None
        try:
            for event, elem in self._parser.read_events():
                if event == "start":
                    self._on_start(elem)
                    continue
                table = self._on_end(elem)
                if table is not None:
                    tables.append(table)
                if self.done:
                    break
        except ET.ParseError as exc:
            self._finish(ScanOutcome.MALFORMED, str(exc))
        return tables

    def _on_start(self, elem: ET.Element) -> None:
        self._stack.append(elem)
        if self._current_table is None and _local_name(elem.tag) == self.table_element:
            self._current_table = elem

    def _on_end(self, elem: ET.Element) -> Optional[Table]:
        self._stack.pop()
        if self._current_table is not None and elem is not self._current_table:
            # Still inside a table; the whole subtree is decoded at its end.
            return None

        table = None
        name = _local_name(elem.tag)
        if elem is self._current_table:
            table = decode_table(elem)
            self.tables_seen += 1
            self._current_table = None
        elif name == self.document_element:
            self._finish(ScanOutcome.COMPLETE)
            return None

        # Detach the handled element so the partial tree does not grow.
        if self._stack:
            self._stack[-1].remove(elem)
        elem.clear()
        return table

    def _finish(self, outcome: ScanOutcome, error: Optional[str] = None) -> None:
        self.state = ScanState.DONE
        self.outcome = outcome
        self.error = error
        self._parser = None
        self._stack = []
        self._current_table = None
        if error:
            logger.debug("Scan ended as %s: %s", outcome.value, error)


async def scan_tables(
    read: Callable[[], Awaitable[bytes]],
    scanner: Optional[TableScanner] = None,
) -> AsyncIterator[Table]:
    """Yield tables from an async byte source until the scanner is DONE.

    WHY: The HTTP handler wants a simple `async for table in ...` over the
    tool's output. Reading stops as soon as the document element closes,
    even if the source has more bytes.

    HOW: read() returns the next chunk, or b"" at end of stream.
    """
    if scanner is None:
        scanner = TableScanner()
    while not scanner.done:
        chunk = await read()
        tables = scanner.feed(chunk) if chunk else scanner.close()
        for table in tables:
            yield table
