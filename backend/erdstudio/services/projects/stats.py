"""Counters derived from a project document.

A project document, as produced by the UI, looks like::

    {
        "sources": [
            {
                "tables": [{"columns": [{"comment": {...}}, ...], "comment": {...}}],
                "relations": [...],
                "types": [...],
            }
        ],
        "layouts": {"initial layout": {"tables": [...], "memos": [...]}},
        "notes": {"public.users": "..."},
    }

Missing or malformed sections count as empty.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from erdstudio.models.project import STAT_FIELDS


def _items(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, Mapping):
        return list(value.values())
    return []


def _has_comment(item: Any) -> bool:
    return isinstance(item, Mapping) and bool(item.get("comment"))


def compute_stats(document: Mapping[str, Any] | None) -> dict[str, int]:
    """Return the ``nb_*`` counters of ``document``.

    Tables, columns, relations and types are summed over every source;
    comments count commented tables and commented columns; memos are summed
    over every layout.

    >>> compute_stats({"sources": [{"tables": [{"columns": [{}, {}]}]}]})["nb_columns"]
    2
    """
    doc = document if isinstance(document, Mapping) else {}
    stats = dict.fromkeys(STAT_FIELDS, 0)

    sources = [s for s in _items(doc.get("sources")) if isinstance(s, Mapping)]
    stats["nb_sources"] = len(sources)
    for source in sources:
        tables = _items(source.get("tables"))
        stats["nb_tables"] += len(tables)
        stats["nb_relations"] += len(_items(source.get("relations")))
        stats["nb_types"] += len(_items(source.get("types")))
        for table in tables:
            if not isinstance(table, Mapping):
                continue
            columns = _items(table.get("columns"))
            stats["nb_columns"] += len(columns)
            stats["nb_comments"] += int(_has_comment(table))
            stats["nb_comments"] += sum(1 for c in columns if _has_comment(c))

    layouts = _items(doc.get("layouts"))
    stats["nb_layouts"] = len(layouts)
    stats["nb_memos"] = sum(
        len(_items(layout.get("memos"))) for layout in layouts if isinstance(layout, Mapping)
    )
    stats["nb_notes"] = len(_items(doc.get("notes")))
    return stats
