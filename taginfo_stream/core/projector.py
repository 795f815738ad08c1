"""Projection of decoded tables into flat TagRecords.

RULES:
- One TagRecord per Tag, in source order
- Duplicate description languages collapse last-write-wins
- Pure functions: inputs are never mutated
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from taginfo_stream.core.models import Description, Table, Tag, TagRecord


def collapse_descriptions(descriptions: Iterable[Description]) -> Dict[str, str]:
    """Map each language code to its label; a later duplicate overwrites."""
    collapsed: Dict[str, str] = {}
    for desc in descriptions:
        collapsed[desc.lang] = desc.value
    return collapsed


def project_tag(table_name: str, tag: Tag) -> TagRecord:
    return TagRecord(
        type=tag.type,
        writable=tag.writable,
        path="{}:{}".format(table_name, tag.name),
        group=table_name,
        description=collapse_descriptions(tag.descriptions),
    )


def project_table(table: Table) -> List[TagRecord]:
    """Project every tag of a table. A table without tags yields []."""
    return [project_tag(table.name, tag) for tag in table.tags]
