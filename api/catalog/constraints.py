"""
Constraint kinds a listing filter is made of.

Each constraint knows how to render itself for one storage field. A
`FilterSpec` collects one constraint per field plus the free-text search
and renders the final document-store predicate.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Union

from bson.regex import Regex


def substring_regex(text: str) -> dict[str, str]:
    return {"$regex": re.escape(text), "$options": "i"}


@dataclass(frozen=True)
class Equals:
    value: Any

    def predicate(self, name: str) -> dict[str, Any]:
        return {name: self.value}


@dataclass(frozen=True)
class OneOf:
    values: tuple[Any, ...]

    def predicate(self, name: str) -> dict[str, Any]:
        return {name: {"$in": list(self.values)}}


@dataclass(frozen=True)
class Range:
    min: Any = None
    max: Any = None

    @property
    def is_empty(self) -> bool:
        return self.min is None and self.max is None

    def predicate(self, name: str) -> dict[str, Any]:
        bounds: dict[str, Any] = {}
        if self.min is not None:
            bounds["$gte"] = self.min
        if self.max is not None:
            bounds["$lte"] = self.max
        return {name: bounds}


@dataclass(frozen=True)
class ExistsNonZero:
    """
    True: the field holds a positive value. False: absent, null or zero.
    """

    present: bool

    def predicate(self, name: str) -> dict[str, Any]:
        if self.present:
            return {name: {"$exists": True, "$ne": None, "$gt": 0}}
        return {
            "$or": [
                {name: {"$exists": False}},
                {name: None},
                {name: 0},
            ]
        }


@dataclass(frozen=True)
class Matches:
    """Case-insensitive substring match on a scalar field."""

    text: str

    def predicate(self, name: str) -> dict[str, Any]:
        return {name: substring_regex(self.text)}


@dataclass(frozen=True)
class AnyMatch:
    """Any element of an array field contains any of the given substrings."""

    texts: tuple[str, ...]

    def predicate(self, name: str) -> dict[str, Any]:
        return {name: {"$in": [Regex(re.escape(t), "i") for t in self.texts]}}


Constraint = Union[Equals, OneOf, Range, ExistsNonZero, Matches, AnyMatch]


@dataclass(frozen=True)
class TextSearch:
    text: str
    fields: tuple[str, ...]
    array_fields: tuple[str, ...] = ()

    def clauses(self) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = [{f: substring_regex(self.text)} for f in self.fields]
        out.extend({f: {"$in": [Regex(re.escape(self.text), "i")]}} for f in self.array_fields)
        return out


@dataclass
class FilterSpec:
    constraints: dict[str, Constraint] = field(default_factory=dict)
    search: TextSearch | None = None

    def set(self, name: str, constraint: Constraint | None) -> None:
        if constraint is None:
            return None
        if isinstance(constraint, Range) and constraint.is_empty:
            return None
        self.constraints[name] = constraint

    def to_mongo(self) -> dict[str, Any]:
        """
        Render the predicate. Independent OR-groups are AND-combined so a
        second group never replaces the first.
        """
        out: dict[str, Any] = {}
        or_groups: list[list[dict[str, Any]]] = []

        if self.search is not None:
            or_groups.append(self.search.clauses())

        for name, constraint in self.constraints.items():
            for key, value in constraint.predicate(name).items():
                if key == "$or":
                    or_groups.append(value)
                else:
                    out[key] = value

        if len(or_groups) == 1:
            out["$or"] = or_groups[0]
        elif or_groups:
            out["$and"] = [{"$or": group} for group in or_groups]
        return out
