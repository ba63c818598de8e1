"""Store boundaries for verified businesses, bookmarks and preferences.

Each boundary is a :class:`typing.Protocol`. :class:`MemoryStore` backs tests
and demos; :class:`SqlStore` persists to SQLite through :mod:`repo`.
"""

from __future__ import annotations

import threading
from typing import Iterable, Protocol

from sqlalchemy.orm import Session, sessionmaker

from happyarz.logging_config import get_logger
from happyarz.models import Business, UploadHistoryEntry

from . import repo

LOGGER = get_logger(__name__)


class VerifiedBusinessStore(Protocol):
    def get_verified_businesses(self) -> list[Business]: ...

    def save_verified_businesses(self, businesses: Iterable[Business]) -> None: ...

    def get_upload_history(self) -> list[UploadHistoryEntry]: ...

    def append_upload_history(self, entry: UploadHistoryEntry) -> None: ...


class BookmarkStore(Protocol):
    def get_bookmarked_ids(self) -> list[str]: ...

    def toggle_bookmark(self, business_id: str) -> bool: ...

    def is_bookmarked(self, business_id: str) -> bool: ...


class PreferenceStore(Protocol):
    def get_selected_location_id(self) -> str | None: ...

    def save_selected_location_id(self, location_id: str) -> None: ...

    def clear_selected_location(self) -> None: ...


class MemoryStore:
    """In-process implementation of every store boundary."""

    def __init__(self, businesses: Iterable[Business] = ()) -> None:
        self._lock = threading.Lock()
        self._businesses: list[Business] = list(businesses)
        self._history: list[UploadHistoryEntry] = []
        self._bookmarks: list[str] = []
        self._selected_location_id: str | None = None

    def get_verified_businesses(self) -> list[Business]:
        with self._lock:
            return list(self._businesses)

    def save_verified_businesses(self, businesses: Iterable[Business]) -> None:
        replacement: list[Business] = []
        seen: set[str] = set()
        for business in businesses:
            if business.id not in seen:
                seen.add(business.id)
                replacement.append(business.model_copy(update={"is_bookmarked": False}))
        with self._lock:
            self._businesses = replacement

    def get_upload_history(self) -> list[UploadHistoryEntry]:
        with self._lock:
            return list(reversed(self._history))

    def append_upload_history(self, entry: UploadHistoryEntry) -> None:
        with self._lock:
            self._history.append(entry)

    def get_bookmarked_ids(self) -> list[str]:
        with self._lock:
            return list(self._bookmarks)

    def toggle_bookmark(self, business_id: str) -> bool:
        with self._lock:
            if business_id in self._bookmarks:
                self._bookmarks.remove(business_id)
                return False
            self._bookmarks.append(business_id)
            return True

    def is_bookmarked(self, business_id: str) -> bool:
        with self._lock:
            return business_id in self._bookmarks

    def get_selected_location_id(self) -> str | None:
        with self._lock:
            return self._selected_location_id

    def save_selected_location_id(self, location_id: str) -> None:
        with self._lock:
            self._selected_location_id = location_id

    def clear_selected_location(self) -> None:
        with self._lock:
            self._selected_location_id = None


class SqlStore:
    """SQLite-backed implementation of every store boundary."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._write_lock = threading.Lock()

    def get_verified_businesses(self) -> list[Business]:
        with self._session_factory() as session:
            return repo.list_verified_businesses(session)

    def save_verified_businesses(self, businesses: Iterable[Business]) -> None:
        # One transaction under one lock, so concurrent uploads never interleave.
        with self._write_lock, self._session_factory() as session:
            try:
                count = repo.replace_verified_businesses(session, businesses)
                session.commit()
            except Exception:
                session.rollback()
                LOGGER.exception("Failed to replace verified businesses")
                raise
        LOGGER.info("Stored %d verified businesses", count)

    def get_upload_history(self) -> list[UploadHistoryEntry]:
        with self._session_factory() as session:
            return repo.list_upload_history(session)

    def append_upload_history(self, entry: UploadHistoryEntry) -> None:
        with self._write_lock, self._session_factory() as session:
            repo.insert_upload_history(session, entry)
            session.commit()

    def get_bookmarked_ids(self) -> list[str]:
        with self._session_factory() as session:
            return repo.list_bookmarked_ids(session)

    def toggle_bookmark(self, business_id: str) -> bool:
        with self._write_lock, self._session_factory() as session:
            state = repo.toggle_bookmark(session, business_id)
            session.commit()
        return state

    def is_bookmarked(self, business_id: str) -> bool:
        return business_id in self.get_bookmarked_ids()

    def get_selected_location_id(self) -> str | None:
        with self._session_factory() as session:
            return repo.get_preference(session, repo.SELECTED_LOCATION_KEY)

    def save_selected_location_id(self, location_id: str) -> None:
        with self._write_lock, self._session_factory() as session:
            repo.set_preference(session, repo.SELECTED_LOCATION_KEY, location_id)
            session.commit()

    def clear_selected_location(self) -> None:
        with self._write_lock, self._session_factory() as session:
            repo.delete_preference(session, repo.SELECTED_LOCATION_KEY)
            session.commit()
