"""
Defensive parsing of raw query parameters.

Every helper here returns a default (or None) instead of raising: malformed
client input degrades to "not supplied", it never fails the request.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Union

RawValue = Union[str, Sequence[str]]
RawParams = Mapping[str, RawValue]

# Widest integer the document store can encode.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_INT_PREFIX = re.compile(r"^\s*([+-]?\d{1,20})(?!\d)")

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def from_query_params(query_params) -> dict[str, RawValue]:
    """
    Convert a Starlette `QueryParams` multi-dict into a plain mapping.

    Repeated keys (`?level=a&level=b`) and bracket keys (`?level[]=a`)
    become lists; single occurrences stay strings.
    """
    out: dict[str, list[str]] = {}
    for key, value in query_params.multi_items():
        name = key[:-2] if key.endswith("[]") else key
        out.setdefault(name, []).append(value)
    return {k: (v[0] if len(v) == 1 else v) for k, v in out.items()}


def values(raw: RawParams, key: str) -> list[str]:
    """
    All non-blank values for `key`, stripped, in order.
    """
    value = raw.get(key)
    if value is None:
        return []
    items = [value] if isinstance(value, str) else list(value)
    return [str(v).strip() for v in items if v is not None and str(v).strip()]


def first(raw: RawParams, key: str) -> str | None:
    found = values(raw, key)
    return found[0] if found else None


def is_multi(raw: RawParams, key: str) -> bool:
    value = raw.get(key)
    return value is not None and not isinstance(value, str)


def parse_int(value: str | None) -> int | None:
    """
    Leading integer of the value: "20", "20.5" and "20abc" all give 20.
    Integers outside the signed 64-bit range count as unparseable.
    """
    if value is None:
        return None
    match = _INT_PREFIX.match(str(value))
    if match is None:
        return None
    parsed = int(match.group(1))
    if not INT64_MIN <= parsed <= INT64_MAX:
        return None
    return parsed


def parse_int_or(value: str | None, default: int) -> int:
    parsed = parse_int(value)
    return default if parsed is None else parsed


def parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def parse_bool(value: str | None) -> bool | None:
    if value is None:
        return None
    raw = str(value).strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    return None


def parse_date(value: str | None) -> datetime | None:
    """
    ISO-8601 date or datetime. Naive values are taken as UTC.
    """
    if value is None:
        return None
    raw = str(value).strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def split_csv(items: list[str]) -> list[str]:
    """
    Flatten `["a,b", "c"]` into `["a", "b", "c"]`, dropping blanks.
    """
    out: list[str] = []
    for item in items:
        out.extend(part.strip() for part in item.split(",") if part.strip())
    return out
