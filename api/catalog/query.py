"""
Listing query builder.

`build_query(raw, catalog)` is pure: the same parameters always give the
same (filter, sort, page) triple, and malformed values are dropped or
defaulted rather than reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from . import params
from .constraints import (
    AnyMatch,
    Equals,
    ExistsNonZero,
    FilterSpec,
    Matches,
    OneOf,
    Range,
    TextSearch,
)
from .fields import FieldCatalog, RangeField
from .pagination import PageSpec, normalize_page

SortSpec = list[tuple[str, int]]


@dataclass(frozen=True)
class ListingQuery:
    filter: dict[str, Any]
    sort: SortSpec
    page: PageSpec
    spec: FilterSpec

    def sort_dict(self) -> dict[str, int]:
        return dict(self.sort)


def _enum_constraint(raw: params.RawParams, param: str, sentinel: str | None) -> Equals | OneOf | None:
    found = [v for v in params.values(raw, param) if v != sentinel]
    if not found:
        return None
    if params.is_multi(raw, param):
        return OneOf(tuple(found))
    return Equals(found[0])


def _parse_bound(value: str | None, kind: str) -> Any:
    if kind == "int":
        return params.parse_int(value)
    if kind == "date":
        return params.parse_date(value)
    return params.parse_float(value)


def _first_present(raw: params.RawParams, names: tuple[str, ...]) -> str | None:
    for name in names:
        found = params.first(raw, name)
        if found is not None:
            return found
    return None


def _range_constraint(raw: params.RawParams, spec: RangeField) -> Range:
    min_names = ((spec.min_param,) if spec.min_param else ()) + spec.min_aliases
    low = _parse_bound(_first_present(raw, min_names), spec.kind)
    high = _parse_bound(params.first(raw, spec.max_param), spec.kind) if spec.max_param else None
    return Range(min=low, max=high)


def build_filter(raw: params.RawParams, catalog: FieldCatalog) -> FilterSpec:
    spec = FilterSpec()

    # Visible records only, unless the caller explicitly asks otherwise.
    visible = params.parse_bool(params.first(raw, catalog.visibility_param))
    spec.set(catalog.visibility_field, Equals(True if visible is None else visible))

    search = params.first(raw, catalog.search_param)
    if search:
        spec.search = TextSearch(search, catalog.search_fields, catalog.search_array_fields)

    for param, storage in catalog.enum_params.items():
        spec.set(storage, _enum_constraint(raw, param, catalog.sentinels.get(param)))

    for param, storage in catalog.pattern_params.items():
        text = params.first(raw, param)
        if text:
            spec.set(storage, Matches(text))

    for range_field in catalog.range_params.values():
        spec.set(range_field.storage, _range_constraint(raw, range_field))

    for param, preset in catalog.presets.items():
        bucket = preset.buckets.get(params.first(raw, param) or "")
        if bucket is not None:
            spec.set(preset.storage, Range(min=bucket[0], max=bucket[1]))

    if catalog.discount_param and catalog.discount_field:
        has_discount = params.parse_bool(params.first(raw, catalog.discount_param))
        if has_discount is not None:
            spec.set(catalog.discount_field, ExistsNonZero(has_discount))

    for param, storage in catalog.flag_params.items():
        flag = params.parse_bool(params.first(raw, param))
        if flag is not None:
            spec.set(storage, Equals(flag))

    if catalog.tag_param:
        tags = params.split_csv(params.values(raw, catalog.tag_param))
        if tags:
            spec.set(catalog.tag_field, AnyMatch(tuple(tags)))

    return spec


def resolve_sort(raw: params.RawParams, catalog: FieldCatalog) -> SortSpec:
    key = next(
        (v for v in (params.first(raw, p) for p in catalog.sort_params) if v),
        catalog.default_sort,
    )
    direction = 1 if (params.first(raw, catalog.order_param) or "desc").lower() == "asc" else -1

    alias = catalog.sort_aliases.get(key)
    if alias is None:
        # Literal storage field; operator-looking names are not fields.
        name = catalog.default_sort if key.startswith("$") else key
        sort: SortSpec = [(name, direction)]
    elif isinstance(alias, str):
        sort = [(alias, direction)]
    else:
        sort = list(alias)

    if not any(name == catalog.created_field for name, _ in sort):
        sort.append((catalog.created_field, -1))
    return sort


def build_query(
    raw: params.RawParams,
    catalog: FieldCatalog,
    *,
    default_limit: int | None = None,
) -> ListingQuery:
    spec = build_filter(raw, catalog)
    page = normalize_page(
        raw,
        default_limit=default_limit or catalog.default_limit,
        max_limit=catalog.max_limit,
    )
    return ListingQuery(
        filter=spec.to_mongo(),
        sort=resolve_sort(raw, catalog),
        page=page,
        spec=spec,
    )
