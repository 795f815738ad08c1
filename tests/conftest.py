"""Shared test fixtures for the taginfo_stream test suite.

WHY: Most modules need the same catalog samples, and everything above the
scanner needs an "exiftool" to run. Real exiftool output is large and the
binary may not be installed, so tests use small fake tools instead.

HOW: Catalog samples are module-level strings shaped like real
`exiftool -listx` output. The make_tool fixture writes an executable
Python script into tmp_path that checks it was called with -listx, prints
a given payload (optionally in delayed chunks), optionally hangs, and
exits with a chosen status.

RULES:
- Fake tools exit with status 2 when not invoked as `<tool> -listx`
- ServiceConfig objects are built directly (no PATH lookup, no .env)
"""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

import pytest

from taginfo_stream.config import ServiceConfig


# ---------------------------------------------------------------------------
# Catalog samples
# ---------------------------------------------------------------------------

EXAMPLE_XML = (
    '<taginfo><table name="EXIF"><tag name="Make" type="string" writable="true">'
    '<desc lang="en">Manufacturer</desc></tag></table></taginfo>'
)

EXAMPLE_JSON = (
    '[{"type":"string","writable":true,"path":"EXIF:Make","group":"EXIF",'
    '"description":{"en":"Manufacturer"}}]'
)

# Shaped like real `exiftool -listx` output: declaration, comment, table-level
# descriptions, single-quoted attributes and indentation whitespace.
LISTX_XML = """<?xml version='1.0' encoding='UTF-8'?>
<!-- Generated by Image::ExifTool 12.76 -->
<taginfo>

<table name='EXIF::Main' g0='EXIF' g1='IFD0' g2='Image'>
 <desc lang='en'>Exif</desc>
 <tag id='271' name='Make' type='string' writable='true' g2='Camera'>
  <desc lang='en'>Make</desc>
  <desc lang='de'>Hersteller</desc>
 </tag>
 <tag id='272' name='Model' type='string' writable='true' g2='Camera'>
  <desc lang='en'>Camera Model Name</desc>
 </tag>
 <tag id='274' name='Orientation' type='int16u' writable='true'>
  <desc lang='en'>Orientation</desc>
  <values>
   <key id='1'><val lang='en'>Horizontal (normal)</val></key>
  </values>
 </tag>
</table>

<table name='File::Main' g0='File' g1='File' g2='Other'>
 <desc lang='en'>File</desc>
 <tag id='FileType' name='FileType' type='?' writable='false'>
  <desc lang='en'>File Type</desc>
 </tag>
</table>

<table name='Empty::Main' g0='Empty' g1='Empty' g2='Other'>
 <desc lang='en'>Nothing here</desc>
</table>

</taginfo>
"""

LISTX_PATHS = [
    "EXIF::Main:Make",
    "EXIF::Main:Model",
    "EXIF::Main:Orientation",
    "File::Main:FileType",
]


def catalog_xml(tables: Sequence[Sequence[str]]) -> str:
    """Build a catalog with one table per entry, named T0, T1, ...

    Each entry lists the tag names of that table.
    """
    parts = ["<taginfo>"]
    for index, tag_names in enumerate(tables):
        parts.append('<table name="T{}">'.format(index))
        for name in tag_names:
            parts.append(
                '<tag name="{0}" type="string" writable="false">'
                '<desc lang="en">{0} label</desc></tag>'.format(name)
            )
        parts.append("</table>")
    parts.append("</taginfo>")
    return "".join(parts)


# ---------------------------------------------------------------------------
# Fake exiftool
# ---------------------------------------------------------------------------

_TOOL_TEMPLATE = """#!{python}
import sys
import time

if sys.argv[1:] != ["-listx"]:
    sys.exit(2)

chunks = {chunks!r}
for chunk in chunks:
    sys.stdout.buffer.write(chunk)
    sys.stdout.buffer.flush()
    time.sleep({delay!r})
{hang}
sys.exit({exit_code!r})
"""


@pytest.fixture
def make_tool(tmp_path: Path) -> Callable[..., str]:
    """Factory writing an executable fake exiftool and returning its path."""
    counter = {"n": 0}

    def _make(
        output: str = EXAMPLE_XML,
        exit_code: int = 0,
        chunks: Optional[Sequence[str]] = None,
        delay: float = 0.0,
        hang: bool = False,
    ) -> str:
        counter["n"] += 1
        path = tmp_path / "exiftool-{}".format(counter["n"])
        payload = [c.encode("utf-8") for c in (chunks if chunks is not None else [output])]
        path.write_text(
            _TOOL_TEMPLATE.format(
                python=sys.executable,
                chunks=payload,
                delay=delay,
                hang="time.sleep(60)" if hang else "",
                exit_code=exit_code,
            )
        )
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make


@pytest.fixture
def make_config() -> Callable[[str], ServiceConfig]:
    def _make(tool_path: str) -> ServiceConfig:
        return ServiceConfig(host="127.0.0.1", port=3000, tool_path=tool_path)

    return _make


@pytest.fixture
def missing_tool(tmp_path: Path) -> str:
    return os.path.join(str(tmp_path), "no-such-exiftool")
