"""
Facet statistics for filter widgets.

Computed with a single `$facet` aggregation over the *filtered* set, so
options that the current filter already excludes never show up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .fields import FacetSpec

STATS = "stats"


@dataclass(frozen=True)
class FacetResult:
    available: dict[str, Any] = field(default_factory=dict)
    stats: dict[str, Any] = field(default_factory=dict)


def facet_pipeline(match: dict[str, Any], spec: FacetSpec) -> list[dict[str, Any]]:
    group: dict[str, Any] = {"_id": None}
    for name, storage in spec.ranges.items():
        group[f"min_{name}"] = {"$min": f"${storage}"}
        group[f"max_{name}"] = {"$max": f"${storage}"}
    for name, storage in spec.sums.items():
        group[f"sum_{name}"] = {"$sum": f"${storage}"}
    for name, storage in spec.averages.items():
        group[f"avg_{name}"] = {"$avg": f"${storage}"}

    facets: dict[str, list[dict[str, Any]]] = {STATS: [{"$group": group}]}
    for name, storage in spec.groups.items():
        facets[name] = [
            {"$group": {"_id": f"${storage}", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
        ]

    return [{"$match": match}, {"$facet": facets}]


def _round2(value: Any) -> float:
    if value is None:
        return 0
    return round(float(value), 2)


def shape_facets(doc: dict[str, Any] | None, spec: FacetSpec) -> FacetResult:
    doc = doc or {}
    stats_rows = doc.get(STATS) or []
    row: dict[str, Any] = stats_rows[0] if stats_rows else {}

    available: dict[str, Any] = {}
    for name in spec.groups:
        available[name] = [
            {"name": bucket.get("_id"), "count": int(bucket.get("count") or 0)}
            for bucket in doc.get(name) or []
            if bucket.get("_id") is not None
        ]
    for name in spec.ranges:
        low, high = row.get(f"min_{name}"), row.get(f"max_{name}")
        available[name] = {"min": low, "max": high} if low is not None else None

    stats: dict[str, Any] = {}
    for name in spec.sums:
        stats[name] = row.get(f"sum_{name}") or 0
    for name in spec.averages:
        stats[name] = _round2(row.get(f"avg_{name}"))

    return FacetResult(available=available, stats=stats)
