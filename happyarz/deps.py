"""FastAPI dependencies wiring stores and providers together."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from happyarz.places import PlacesService, PlacesSource, build_places_source
from happyarz.settings import Settings, get_settings
from happyarz.storage.db import get_engine, init_db, make_session
from happyarz.storage.stores import SqlStore


@lru_cache(maxsize=1)
def _default_store() -> SqlStore:
    settings = get_settings()
    engine = get_engine(settings.sqlite_path)
    init_db(engine)
    return SqlStore(make_session(engine))


@lru_cache(maxsize=1)
def _default_places_source() -> PlacesSource:
    return build_places_source(get_settings())


def get_app_settings() -> Settings:
    return get_settings()


def get_store() -> SqlStore:
    """Dependency returning the store used for businesses, bookmarks and preferences."""

    return _default_store()


def get_places_source() -> PlacesSource:
    return _default_places_source()


def get_places_service(
    store: SqlStore = Depends(get_store),
    source: PlacesSource = Depends(get_places_source),
) -> PlacesService:
    return PlacesService(source, store)
