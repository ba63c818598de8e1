from __future__ import annotations

import json

import pytest
from sqlalchemy import select

from happyarz.models import UploadHistoryEntry
from happyarz.storage import repo
from happyarz.storage.db import get_engine, init_db, make_session
from happyarz.storage.models_sql import VerifiedBusinessRow

from conftest import make_business


@pytest.fixture()
def db_session():
    engine = get_engine(":memory:")
    init_db(engine)
    Session = make_session(engine)
    try:
        with Session() as session:
            yield session
    finally:
        engine.dispose()


def test_replace_swaps_the_whole_set(db_session) -> None:
    repo.replace_verified_businesses(db_session, [make_business("old")])
    db_session.commit()

    count = repo.replace_verified_businesses(
        db_session, [make_business("b", discount=("17:00", "19:00")), make_business("a")]
    )
    db_session.commit()

    assert count == 2
    assert [business.id for business in repo.list_verified_businesses(db_session)] == ["b", "a"]
    assert repo.count_verified_businesses(db_session) == 2


def test_replace_keeps_first_duplicate(db_session) -> None:
    first = make_business("dup", name="First")
    second = make_business("dup", name="Second")

    assert repo.replace_verified_businesses(db_session, [first, second]) == 1
    db_session.commit()

    assert [business.name for business in repo.list_verified_businesses(db_session)] == ["First"]


def test_payload_round_trips_discount_and_drops_bookmark_overlay(db_session) -> None:
    business = make_business("x", discount=("22:00", "02:00")).model_copy(update={"is_bookmarked": True})

    repo.replace_verified_businesses(db_session, [business])
    db_session.commit()

    row = db_session.execute(select(VerifiedBusinessRow)).scalar_one()
    payload = json.loads(row.payload)
    assert row.has_discount is True
    assert payload["currentDiscount"]["validFrom"] == "22:00"
    assert payload["isBookmarked"] is False

    (loaded,) = repo.list_verified_businesses(db_session)
    assert loaded.current_discount == business.current_discount
    assert loaded.is_bookmarked is False


def test_upload_history_newest_first(db_session) -> None:
    for idx in range(3):
        repo.insert_upload_history(
            db_session,
            UploadHistoryEntry(timestamp=f"2025-06-1{idx}T00:00:00", total_rows=idx, processed_rows=idx),
        )
    db_session.commit()

    history = repo.list_upload_history(db_session)
    assert [entry.total_rows for entry in history] == [2, 1, 0]


def test_toggle_bookmark_flips_state(db_session) -> None:
    assert repo.toggle_bookmark(db_session, "a") is True
    assert repo.toggle_bookmark(db_session, "b") is True
    assert repo.list_bookmarked_ids(db_session) == ["a", "b"]

    assert repo.toggle_bookmark(db_session, "a") is False
    assert repo.list_bookmarked_ids(db_session) == ["b"]


def test_preferences_set_overwrite_delete(db_session) -> None:
    assert repo.get_preference(db_session, repo.SELECTED_LOCATION_KEY) is None

    repo.set_preference(db_session, repo.SELECTED_LOCATION_KEY, "bangkok")
    repo.set_preference(db_session, repo.SELECTED_LOCATION_KEY, "pattaya")
    assert repo.get_preference(db_session, repo.SELECTED_LOCATION_KEY) == "pattaya"

    repo.delete_preference(db_session, repo.SELECTED_LOCATION_KEY)
    assert repo.get_preference(db_session, repo.SELECTED_LOCATION_KEY) is None
