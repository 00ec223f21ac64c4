"""
Contact message business logic.
"""

from __future__ import annotations

import logging
from typing import Any

from catalog import listing, params
from catalog.constraints import FilterSpec
from catalog.pagination import normalize_page
from catalog.query import ListingQuery
from core import db

from . import repository, schemas

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


async def create_contact(payload: schemas.ContactCreate) -> dict[str, Any]:
    # Name and message are stored lower-cased.
    row = await repository.insert_contact(
        full_name=payload.full_name.lower(),
        email=payload.email.lower(),
        message=payload.message.lower(),
    )
    logger.info("contact_received contact_id=%s", row["_id"])
    return db.serialize(row)


async def list_contacts(raw: params.RawParams) -> dict[str, Any]:
    """
    Newest first. An empty page is a normal response.
    """
    query = ListingQuery(
        filter={},
        sort=[("createdAt", -1)],
        page=normalize_page(raw, default_limit=DEFAULT_LIMIT),
        spec=FilterSpec(),
    )
    result = await listing.run_listing(repository.contacts(), query)
    return {"contacts": result.items, "pagination": result.pagination.as_dict()}
