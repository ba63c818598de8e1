"""FastAPI application serving discovery, map, saved-place and admin flows."""

from __future__ import annotations

import os
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from happyarz.deps import get_app_settings, get_places_service, get_store
from happyarz.discounts import describe_window
from happyarz.geo import LocationContext
from happyarz.ingest import router as ingest_router
from happyarz.locations import (
    get_all_locations,
    get_current_time_in_location,
    get_location_by_id,
    get_location_display_name,
    get_popular_locations,
    search_locations,
)
from happyarz.logging_config import get_logger
from happyarz.models import Coordinates, LocationOption
from happyarz.places import PlacesService
from happyarz.ranking import (
    RankedBusiness,
    apply_bookmarks,
    rank_with_distance,
    saved_places,
    split_for_map,
)
from happyarz.settings import ALL_CATEGORIES, Settings
from happyarz.storage.stores import SqlStore

LOGGER = get_logger(__name__)

app = FastAPI(title="Happy Arz API")
app.include_router(ingest_router)


class SelectLocationPayload(BaseModel):
    location_id: str = Field(..., description="Id from /api/locations.")


def _resolve_context(
    store: SqlStore,
    lat: float | None,
    lon: float | None,
    location_id: str | None,
) -> LocationContext:
    selected: LocationOption | None = None
    chosen_id = location_id or store.get_selected_location_id()
    if chosen_id:
        selected = get_location_by_id(chosen_id)
        if selected is None and location_id:
            raise HTTPException(status_code=404, detail=f"Unknown location: {location_id}")
    gps = Coordinates(latitude=lat, longitude=lon) if lat is not None and lon is not None else None
    return LocationContext(gps=gps, selected_location=selected)


def _search_point(context: LocationContext, settings: Settings) -> tuple[float, float]:
    coords = context.active_coordinates
    if coords is None:
        return settings.default_latitude, settings.default_longitude
    return coords.latitude, coords.longitude


def _serialize_ranked(entry: RankedBusiness) -> dict[str, Any]:
    payload = entry.business.to_json()
    payload.update(
        {
            "isLive": entry.is_live,
            "hasDiscount": entry.has_discount,
            "distanceKm": round(entry.distance_km, 3) if entry.distance_km is not None else None,
            "distanceText": entry.distance_text,
            "discountWindow": describe_window(entry.business.current_discount),
        }
    )
    return payload


def _serialize_location(location: LocationOption) -> dict[str, Any]:
    payload = location.to_json()
    payload["displayName"] = get_location_display_name(location)
    payload["localTime"] = get_current_time_in_location(location)
    return payload


def _context_payload(context: LocationContext) -> dict[str, Any]:
    selected = context.selected_location
    return {
        "selectedLocation": _serialize_location(selected) if selected else None,
        "showDistance": context.show_distance,
    }


@app.get("/healthz")
def healthcheck(store: SqlStore = Depends(get_store)) -> dict[str, Any]:
    return {"status": "ok", "verified_businesses": len(store.get_verified_businesses())}


@app.get("/api/categories")
def list_categories(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    return {"categories": settings.category_options}


@app.get("/api/businesses")
def discover_businesses(
    query: str = Query("", description="Free-text search over name, description and address."),
    category: str = Query(ALL_CATEGORIES, description="Exact category or 'All'."),
    lat: float | None = Query(None, description="GPS latitude."),
    lon: float | None = Query(None, description="GPS longitude."),
    location_id: str | None = Query(None, description="Browse a city instead of GPS."),
    radius: int | None = Query(None, gt=0, description="Search radius in metres."),
    store: SqlStore = Depends(get_store),
    places: PlacesService = Depends(get_places_service),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Return businesses around the active location, best offers first."""

    context = _resolve_context(store, lat, lon, location_id)
    latitude, longitude = _search_point(context, settings)
    candidates = places.search_nearby(latitude, longitude, radius or settings.places_radius_m)
    candidates = apply_bookmarks(candidates, store.get_bookmarked_ids())
    ranked = rank_with_distance(candidates, context, query=query, category=category)
    return {
        "count": len(ranked),
        "query": query,
        "category": category,
        **_context_payload(context),
        "items": [_serialize_ranked(entry) for entry in ranked],
    }


@app.get("/api/map")
def map_businesses(
    lat: float | None = Query(None),
    lon: float | None = Query(None),
    location_id: str | None = Query(None),
    radius: int | None = Query(None, gt=0),
    store: SqlStore = Depends(get_store),
    places: PlacesService = Depends(get_places_service),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    context = _resolve_context(store, lat, lon, location_id)
    latitude, longitude = _search_point(context, settings)
    candidates = places.search_nearby(latitude, longitude, radius or settings.places_radius_m)
    candidates = apply_bookmarks(candidates, store.get_bookmarked_ids())
    with_discount, without_discount = split_for_map(candidates, context)
    return {
        **_context_payload(context),
        "center": {"latitude": latitude, "longitude": longitude},
        "with_discount": [_serialize_ranked(entry) for entry in with_discount],
        "without_discount": [_serialize_ranked(entry) for entry in without_discount],
    }


@app.get("/api/saved")
def list_saved(
    category: str = Query(ALL_CATEGORIES),
    lat: float | None = Query(None),
    lon: float | None = Query(None),
    location_id: str | None = Query(None),
    store: SqlStore = Depends(get_store),
    places: PlacesService = Depends(get_places_service),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    context = _resolve_context(store, lat, lon, location_id)
    latitude, longitude = _search_point(context, settings)
    known = places.all_known(latitude, longitude, settings.places_radius_m)
    saved = saved_places(known, store.get_bookmarked_ids(), category=category)
    return {
        "count": len(saved),
        "items": [business.to_json() for business in saved],
    }


@app.post("/api/bookmarks/{business_id}")
def toggle_bookmark(business_id: str, store: SqlStore = Depends(get_store)) -> dict[str, Any]:
    bookmarked = store.toggle_bookmark(business_id)
    LOGGER.info("Bookmark %s -> %s", business_id, bookmarked)
    return {"business_id": business_id, "bookmarked": bookmarked}


@app.get("/api/bookmarks")
def list_bookmarks(store: SqlStore = Depends(get_store)) -> dict[str, Any]:
    return {"bookmarks": store.get_bookmarked_ids()}


@app.get("/api/locations")
def list_locations(
    query: str | None = Query(None),
    popular: bool = Query(False),
) -> dict[str, Any]:
    if popular:
        locations = get_popular_locations()
    elif query:
        locations = search_locations(query)
    else:
        locations = get_all_locations()
    return {"locations": [_serialize_location(location) for location in locations]}


@app.get("/api/locations/selected")
def get_selected_location(store: SqlStore = Depends(get_store)) -> dict[str, Any]:
    location = get_location_by_id(store.get_selected_location_id())
    return {"location": _serialize_location(location) if location else None}


@app.put("/api/locations/selected")
def select_location(
    payload: SelectLocationPayload,
    store: SqlStore = Depends(get_store),
) -> dict[str, Any]:
    location = get_location_by_id(payload.location_id)
    if location is None:
        raise HTTPException(status_code=404, detail=f"Unknown location: {payload.location_id}")
    store.save_selected_location_id(location.id)
    return {"location": _serialize_location(location)}


@app.delete("/api/locations/selected")
def clear_selected_location(store: SqlStore = Depends(get_store)) -> dict[str, Any]:
    store.clear_selected_location()
    return {"location": None}


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("happyarz.api:app", host="0.0.0.0", port=port, reload=False)
