"""Data model for the exiftool tag catalog and the emitted JSON records.

WHY: exiftool -listx describes thousands of tags grouped into tables. The
scanner decodes one table at a time into plain dataclasses; the projector
flattens each tag into a TagRecord, which is the unit written to the HTTP
response.

HOW: Three dataclasses mirror the XML nesting:
  Description — <desc lang="en">Label</desc>
  Tag         — <tag name type writable> with its descriptions
  Table       — <table name> with its tags
TagRecord is a pydantic model so its JSON form (field order, types) is
declared in one place.

RULES:
- Tag order within a table is source order
- Missing XML attributes decode as "" (writable as False)
- TagRecord field order is type, writable, path, group, description
- Nothing here is retained past the table currently being emitted
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from pydantic import BaseModel, Field


@dataclass
class Description:
    """A localized label for a tag."""

    lang: str
    value: str


@dataclass
class Tag:
    """One metadata field definition from a table."""

    name: str
    type: str = ""
    writable: bool = False
    descriptions: List[Description] = field(default_factory=list)


@dataclass
class Table:
    """A named group of tag definitions (e.g. "EXIF::Main")."""

    name: str
    tags: List[Tag] = field(default_factory=list)


class TagRecord(BaseModel):
    """The flattened JSON representation of one tag.

    RULES:
    - path is "<group>:<tag name>"
    - group is the enclosing table's name
    - description maps language code to label, last duplicate wins
    """

    type: str = Field(description="Free-form exiftool type, e.g. 'string' or 'int16u'.")
    writable: bool = Field(description="Whether exiftool can write this tag.")
    path: str = Field(description="Table and tag name joined by ':'.")
    group: str = Field(description="Name of the table the tag belongs to.")
    description: Dict[str, str] = Field(
        default_factory=dict,
        description="Human-readable labels keyed by language code.",
    )
