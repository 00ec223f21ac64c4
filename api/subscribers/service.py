"""
Newsletter subscriber business logic.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import HTTPException, status

from catalog import listing, params
from catalog.constraints import FilterSpec, substring_regex
from catalog.pagination import Pagination, normalize_page
from catalog.query import ListingQuery
from core import db

from . import repository, schemas

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
NEW_SUBSCRIBER_WINDOW = timedelta(days=30)
EXPORT_COLUMNS = [
    ("email", "Email"),
    ("status", "Status"),
    ("subscribedAt", "Subscribed Date"),
    ("source", "Source"),
]

_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


async def subscribe(
    payload: schemas.SubscribeRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[int, dict[str, Any]]:
    """
    Returns (status_code, body): 201 for a new subscriber, 200 for a
    reactivated one.
    """
    email = normalize_email(payload.email)
    if not _EMAIL_RE.search(email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide a valid email address",
        )

    source = (payload.source or "").strip() or "website"
    existing = await repository.get_by_email(email)
    if existing is not None:
        if existing.get("status") == repository.ACTIVE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This email is already subscribed to our newsletter",
            )
        await repository.reactivate(existing["_id"], source=source)
        logger.info("subscriber_reactivated subscriber_id=%s", existing["_id"])
        return status.HTTP_200_OK, {"ok": True, "message": "Successfully resubscribed to our newsletter"}

    row = await repository.insert_subscriber(
        email=email,
        source=source,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    logger.info("subscriber_created subscriber_id=%s source=%s", row["_id"], source)
    return status.HTTP_201_CREATED, {"ok": True, "message": "Successfully subscribed to our newsletter!"}


def build_filter(raw: params.RawParams) -> dict[str, Any]:
    query: dict[str, Any] = {}

    search = params.first(raw, "search")
    if search:
        query["email"] = substring_regex(search)

    state = (params.first(raw, "status") or "").lower()
    if state in (repository.ACTIVE, repository.INACTIVE):
        query["status"] = state

    # The date window applies only when both ends are given.
    start = params.parse_date(params.first(raw, "startDate"))
    end = params.parse_date(params.first(raw, "endDate"))
    if start is not None and end is not None:
        query["subscribedAt"] = {"$gte": start, "$lte": end}

    return query


async def list_subscribers(raw: params.RawParams) -> dict[str, Any]:
    query = ListingQuery(
        filter=build_filter(raw),
        sort=[("subscribedAt", -1)],
        page=normalize_page(raw, default_limit=DEFAULT_LIMIT),
        spec=FilterSpec(),
    )
    docs, total, active, inactive = await listing.gather_all(
        listing.fetch_page(repository.subscribers(), query),
        repository.count(query.filter),
        repository.count({**query.filter, "status": repository.ACTIVE}),
        repository.count({**query.filter, "status": repository.INACTIVE}),
    )
    pagination = Pagination.from_total(total, query.page)
    return {
        "subscribers": db.serialize_all(docs),
        "total": total,
        "active": active,
        "inactive": inactive,
        "page": pagination.current_page,
        "totalPages": pagination.total_pages,
    }


async def unsubscribe(payload: schemas.UnsubscribeRequest) -> dict[str, Any]:
    email = normalize_email(payload.email)
    if not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required")

    existing = await repository.get_by_email(email)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscriber not found")
    if existing.get("status") == repository.INACTIVE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Subscriber is already unsubscribed",
        )

    await repository.deactivate(existing["_id"])
    logger.info("subscriber_unsubscribed subscriber_id=%s", existing["_id"])
    return {"ok": True, "message": "Successfully unsubscribed from newsletter"}


def _csv_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return "" if value is None else str(value)


def to_csv(rows: list[dict[str, Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buf.write(",".join(header for _, header in EXPORT_COLUMNS) + "\n")
    for row in rows:
        writer.writerow([_csv_value(row.get(key)) for key, _ in EXPORT_COLUMNS])
    return buf.getvalue()


async def export_csv() -> tuple[str, str]:
    """
    Returns (filename, csv_text) for every subscriber, newest first.
    """
    rows = await repository.export_rows()
    filename = f"subscribers-{_utc_now().date().isoformat()}.csv"
    logger.info("subscribers_exported rows=%s", len(rows))
    return filename, to_csv(rows)


async def subscription_stats() -> dict[str, int]:
    since = _utc_now() - NEW_SUBSCRIBER_WINDOW
    total, active, inactive, recent = await listing.gather_all(
        repository.count({}),
        repository.count({"status": repository.ACTIVE}),
        repository.count({"status": repository.INACTIVE}),
        repository.count({"subscribedAt": {"$gte": since}}),
    )
    return {"total": total, "active": active, "inactive": inactive, "newSubscribers": recent}
