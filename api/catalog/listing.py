"""
Listing execution.

The page of items, the total count and the facet aggregation are independent
reads over the same filter. They run concurrently and are joined before
anything is returned: if one fails, the others are cancelled and the error
propagates, so callers never see a partial result.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from core import db

from .facets import FacetResult, facet_pipeline, shape_facets
from .fields import FacetSpec
from .pagination import Pagination
from .query import ListingQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingResult:
    items: list[dict[str, Any]]
    pagination: Pagination
    facets: FacetResult | None = None


async def fetch_page(collection, query: ListingQuery, projection: dict[str, Any] | None = None) -> list[dict]:
    cursor = (
        collection.find(query.filter, projection)
        .sort(query.sort)
        .skip(query.page.skip)
        .limit(query.page.size)
    )
    return await cursor.to_list(length=query.page.size)


async def fetch_facets(collection, query: ListingQuery, spec: FacetSpec) -> FacetResult:
    docs = await collection.aggregate(facet_pipeline(query.filter, spec)).to_list(length=1)
    return shape_facets(docs[0] if docs else None, spec)


async def gather_all(*coros) -> list[Any]:
    """
    Run coroutines concurrently; all succeed or the first failure is raised
    after the remaining ones are cancelled.
    """
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def run_listing(
    collection,
    query: ListingQuery,
    *,
    facets: FacetSpec | None = None,
    projection: dict[str, Any] | None = None,
) -> ListingResult:
    reads = [
        fetch_page(collection, query, projection),
        collection.count_documents(query.filter),
    ]
    if facets is not None:
        reads.append(fetch_facets(collection, query, facets))

    try:
        results = await gather_all(*reads)
    except Exception:
        logger.exception("listing_failed collection=%s", getattr(collection, "name", "?"))
        raise

    docs, total = results[0], int(results[1])
    return ListingResult(
        items=db.serialize_all(docs),
        pagination=Pagination.from_total(total, query.page),
        facets=results[2] if facets is not None else None,
    )
