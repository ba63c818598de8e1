"""Repository helpers for interacting with persistent storage."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from happyarz.models import Business, UploadHistoryEntry

from .models_sql import Bookmark, Preference, UploadHistoryRow, VerifiedBusinessRow

SELECTED_LOCATION_KEY = "selected_location_id"


def _business_to_row(business: Business, position: int) -> VerifiedBusinessRow:
    payload = business.model_copy(update={"is_bookmarked": False}).to_json()
    return VerifiedBusinessRow(
        id=business.id,
        position=position,
        name=business.name,
        category=business.category,
        latitude=business.location.latitude,
        longitude=business.location.longitude,
        has_discount=business.has_discount,
        payload=json.dumps(payload, ensure_ascii=False),
    )


def list_verified_businesses(session: Session) -> list[Business]:
    stmt = select(VerifiedBusinessRow).order_by(VerifiedBusinessRow.position.asc())
    return [
        Business.model_validate(json.loads(row.payload))
        for row in session.scalars(stmt)
    ]


def replace_verified_businesses(session: Session, businesses: Iterable[Business]) -> int:
    """Swap the whole verified set for *businesses*; returns the new count.

    Duplicate ids keep their first occurrence. The caller owns the commit.
    """

    session.execute(delete(VerifiedBusinessRow))
    seen: set[str] = set()
    for business in businesses:
        if business.id in seen:
            continue
        session.add(_business_to_row(business, len(seen)))
        seen.add(business.id)
    session.flush()
    return len(seen)


def count_verified_businesses(session: Session) -> int:
    stmt = select(func.count(VerifiedBusinessRow.id))
    return int(session.scalar(stmt) or 0)


def insert_upload_history(session: Session, entry: UploadHistoryEntry) -> None:
    session.add(
        UploadHistoryRow(
            timestamp=entry.timestamp,
            total_rows=entry.total_rows,
            processed_rows=entry.processed_rows,
            errors=entry.errors,
        )
    )
    session.flush()


def list_upload_history(session: Session) -> list[UploadHistoryEntry]:
    """Return upload history, most recent first."""

    stmt = select(UploadHistoryRow).order_by(UploadHistoryRow.id.desc())
    return [
        UploadHistoryEntry(
            timestamp=row.timestamp,
            total_rows=row.total_rows,
            processed_rows=row.processed_rows,
            errors=row.errors,
        )
        for row in session.scalars(stmt)
    ]


def list_bookmarked_ids(session: Session) -> list[str]:
    stmt = select(Bookmark.business_id).order_by(Bookmark.created_at.asc(), Bookmark.business_id.asc())
    return [row[0] for row in session.execute(stmt)]


def toggle_bookmark(session: Session, business_id: str) -> bool:
    """Flip the bookmark for *business_id* and return the new state."""

    existing = session.get(Bookmark, business_id)
    if existing is not None:
        session.delete(existing)
        session.flush()
        return False
    session.add(Bookmark(business_id=business_id, created_at=datetime.now(timezone.utc)))
    session.flush()
    return True


def get_preference(session: Session, key: str) -> str | None:
    pref = session.get(Preference, key)
    return pref.value if pref is not None else None


def set_preference(session: Session, key: str, value: str | None) -> None:
    pref = session.get(Preference, key)
    if pref is None:
        session.add(Preference(key=key, value=value))
    else:
        pref.value = value
    session.flush()


def delete_preference(session: Session, key: str) -> None:
    session.execute(delete(Preference).where(Preference.key == key))
    session.flush()
