"""Nearby-places providers and the service that merges them with verified data."""

from __future__ import annotations

from typing import Any, Iterable, Protocol

import requests

from happyarz.errors import PlacesSourceError
from happyarz.geo import calculate_distance
from happyarz.logging_config import get_logger
from happyarz.models import Business, BusinessLocation, Discount
from happyarz.ranking import matches_category, matches_query
from happyarz.settings import Settings, get_settings
from happyarz.storage.stores import VerifiedBusinessStore

LOGGER = get_logger(__name__)

TYPE_CATEGORIES = (
    ("night_club", "Nightlife"),
    ("bar", "Bar"),
    ("cafe", "Cafe"),
    ("restaurant", "Restaurant"),
    ("spa", "Spa"),
    ("beauty_salon", "Spa"),
    ("health", "Spa"),
    ("lodging", "Hotel"),
)


class PlacesSource(Protocol):
    def search(
        self,
        latitude: float,
        longitude: float,
        radius_m: int,
        category: str | None = None,
        query: str | None = None,
    ) -> list[Business]: ...


def category_for_types(types: Iterable[str]) -> str:
    type_set = set(types or ())
    for place_type, category in TYPE_CATEGORIES:
        if place_type in type_set:
            return category
    return "Other"


def transform_place(raw: dict[str, Any]) -> Business:
    """Convert a Google-Places-shaped result into an unverified business."""

    place_id = raw.get("place_id")
    if not place_id:
        raise PlacesSourceError("place result without place_id")
    geometry = (raw.get("geometry") or {}).get("location") or {}
    try:
        latitude = float(geometry["lat"])
        longitude = float(geometry["lng"])
    except (KeyError, TypeError, ValueError) as exc:
        raise PlacesSourceError(f"place {place_id} has no usable geometry") from exc

    photos = raw.get("photos") or []
    image = str((photos[0] or {}).get("photo_reference") or "") if photos else ""
    types = raw.get("types") or []

    discount = None
    happy_hour = raw.get("happy_hour")
    if isinstance(happy_hour, dict) and happy_hour.get("start") and happy_hour.get("end"):
        try:
            percentage = int(happy_hour.get("percentage") or 0)
        except (TypeError, ValueError):
            percentage = 0
        discount = Discount(
            id=f"{place_id}_discount",
            business_id=place_id,
            title=str(happy_hour.get("title") or "Happy Hour"),
            description=str(happy_hour.get("description") or f"{percentage}% off"),
            percentage=percentage,
            valid_from=str(happy_hour["start"]),
            valid_to=str(happy_hour["end"]),
            is_active=bool(happy_hour.get("active", True)),
        )

    try:
        rating = float(raw.get("rating") or 0.0)
    except (TypeError, ValueError):
        rating = 0.0

    return Business(
        id=str(place_id),
        name=str(raw.get("name") or "Unnamed place"),
        description=str(raw.get("description") or ", ".join(t.replace("_", " ") for t in types)),
        image=image,
        location=BusinessLocation(
            latitude=latitude,
            longitude=longitude,
            address=str(raw.get("formatted_address") or raw.get("vicinity") or ""),
        ),
        category=category_for_types(types),
        rating=rating,
        current_discount=discount,
        is_active=raw.get("business_status", "OPERATIONAL") == "OPERATIONAL",
        is_verified=False,
    )


def _transform_all(results: Iterable[dict[str, Any]]) -> list[Business]:
    places: list[Business] = []
    for raw in results:
        try:
            places.append(transform_place(raw))
        except PlacesSourceError as exc:
            LOGGER.warning("Skipping place result: %s", exc)
    return places


def _within(business: Business, latitude: float, longitude: float, radius_m: int) -> bool:
    distance_km = calculate_distance(
        latitude, longitude, business.location.latitude, business.location.longitude
    )
    return distance_km * 1000 <= radius_m


def _filter(
    places: Iterable[Business],
    latitude: float,
    longitude: float,
    radius_m: int,
    category: str | None,
    query: str | None,
) -> list[Business]:
    return [
        place
        for place in places
        if _within(place, latitude, longitude, radius_m)
        and matches_category(place, category)
        and matches_query(place, query or "")
    ]


MOCK_PLACES: tuple[dict[str, Any], ...] = (
    {
        "place_id": "ChIJN1t_tDeuEmsRUsoyG83frY4",
        "name": "Sirocco Restaurant",
        "formatted_address": "1055 Silom Rd, Bang Rak, Bangkok 10500, Thailand",
        "geometry": {"location": {"lat": 13.7217, "lng": 100.5154}},
        "rating": 4.3,
        "types": ["restaurant", "bar", "establishment"],
        "photos": [{"photo_reference": "https://images.pexels.com/photos/1581384/pexels-photo-1581384.jpeg"}],
        "business_status": "OPERATIONAL",
        "happy_hour": {"start": "18:00", "end": "20:00", "percentage": 25, "title": "Sunset Cocktails"},
    },
    {
        "place_id": "ChIJrTLr-GyuEmsRBfy61i59si0",
        "name": "Health Land Spa & Massage",
        "formatted_address": "120 North Sathorn Rd, Silom, Bang Rak, Bangkok 10500, Thailand",
        "geometry": {"location": {"lat": 13.7240, "lng": 100.5280}},
        "rating": 4.6,
        "types": ["spa", "health", "establishment"],
        "photos": [{"photo_reference": "https://images.pexels.com/photos/3757942/pexels-photo-3757942.jpeg"}],
        "business_status": "OPERATIONAL",
        "happy_hour": {"start": "10:00", "end": "14:00", "percentage": 15, "title": "Morning Massage"},
    },
    {
        "place_id": "ChIJ39UebIauEmsRSdZy5lIhOWs",
        "name": "Chatuchak Weekend Market",
        "formatted_address": "587, 10 Kamphaeng Phet 2 Rd, Chatuchak, Bangkok 10900, Thailand",
        "geometry": {"location": {"lat": 13.7998, "lng": 100.5501}},
        "rating": 4.1,
        "types": ["tourist_attraction", "establishment"],
        "photos": [{"photo_reference": "https://images.pexels.com/photos/1267320/pexels-photo-1267320.jpeg"}],
        "business_status": "OPERATIONAL",
    },
    {
        "place_id": "ChIJBa7CjIauEmsRSKZy5lIhOWs",
        "name": "Wat Pho Thai Traditional Massage School",
        "formatted_address": "2 Sanamchai Road, Grand Palace Subdistrict, Pranakorn District, Bangkok 10200, Thailand",
        "geometry": {"location": {"lat": 13.7465, "lng": 100.4927}},
        "rating": 4.8,
        "types": ["spa", "school", "establishment"],
        "photos": [{"photo_reference": "https://images.pexels.com/photos/3865676/pexels-photo-3865676.jpeg"}],
        "business_status": "OPERATIONAL",
    },
    {
        "place_id": "mock_pattaya_walking_street",
        "name": "Walking Street Beer Bar",
        "formatted_address": "Walking Street, Pattaya City, Bang Lamung District, Chon Buri 20150, Thailand",
        "geometry": {"location": {"lat": 12.9270, "lng": 100.8730}},
        "rating": 4.0,
        "types": ["bar", "night_club", "establishment"],
        "photos": [{"photo_reference": "https://images.pexels.com/photos/274192/pexels-photo-274192.jpeg"}],
        "business_status": "OPERATIONAL",
        "happy_hour": {"start": "22:00", "end": "02:00", "percentage": 30, "title": "Late Night Pints"},
    },
    {
        "place_id": "mock_pattaya_beach_cafe",
        "name": "Beach Road Coffee",
        "formatted_address": "Beach Rd, Pattaya City, Bang Lamung District, Chon Buri 20150, Thailand",
        "geometry": {"location": {"lat": 12.9347, "lng": 100.8830}},
        "rating": 4.4,
        "types": ["cafe", "establishment"],
        "photos": [{"photo_reference": "https://images.pexels.com/photos/302899/pexels-photo-302899.jpeg"}],
        "business_status": "OPERATIONAL",
    },
)


class MockPlacesSource:
    """Canned dataset standing in for a real places provider."""

    def __init__(self, results: Iterable[dict[str, Any]] = MOCK_PLACES) -> None:
        self._places = _transform_all(results)

    def search(
        self,
        latitude: float,
        longitude: float,
        radius_m: int,
        category: str | None = None,
        query: str | None = None,
    ) -> list[Business]:
        return _filter(self._places, latitude, longitude, radius_m, category, query)


class HttpPlacesSource:
    """Query a Google-Places-shaped HTTP endpoint."""

    def __init__(
        self,
        url: str,
        *,
        api_key: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not url:
            raise ValueError("HttpPlacesSource requires a URL")
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    def search(
        self,
        latitude: float,
        longitude: float,
        radius_m: int,
        category: str | None = None,
        query: str | None = None,
    ) -> list[Business]:
        params: dict[str, Any] = {
            "location": f"{latitude},{longitude}",
            "radius": radius_m,
        }
        if query:
            params["query"] = query
        if self.api_key:
            params["key"] = self.api_key

        try:
            response = self._session.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            LOGGER.warning("Places request failed: %s", exc)
            return []
        if response.status_code >= 400:
            LOGGER.warning("Places endpoint returned status %s", response.status_code)
            return []
        try:
            payload = response.json()
        except ValueError as exc:
            LOGGER.warning("Places endpoint returned invalid JSON: %s", exc)
            return []
        if payload.get("status", "OK") not in {"OK", "ZERO_RESULTS"}:
            LOGGER.warning("Places endpoint status=%s", payload.get("status"))
            return []
        places = _transform_all(payload.get("results") or [])
        return _filter(places, latitude, longitude, radius_m, category, query)


def build_places_source(settings: Settings | None = None) -> PlacesSource:
    settings = settings or get_settings()
    if settings.places_source == "http" and settings.places_url:
        return HttpPlacesSource(
            settings.places_url,
            api_key=settings.places_api_key,
            timeout=settings.places_timeout,
        )
    return MockPlacesSource()


class PlacesService:
    """Combine verified businesses with provider results around a point."""

    def __init__(self, source: PlacesSource, store: VerifiedBusinessStore) -> None:
        self.source = source
        self.store = store

    def search_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_m: int,
        category: str | None = None,
        query: str | None = None,
    ) -> list[Business]:
        verified = _filter(
            self.store.get_verified_businesses(), latitude, longitude, radius_m, category, query
        )
        seen = {business.id for business in verified}
        external = [
            place
            for place in self.source.search(latitude, longitude, radius_m, category, query)
            if place.id not in seen
        ]
        LOGGER.debug(
            "search_nearby lat=%s lon=%s radius=%s verified=%d external=%d",
            latitude,
            longitude,
            radius_m,
            len(verified),
            len(external),
        )
        return [*verified, *external]

    def all_known(self, latitude: float, longitude: float, radius_m: int) -> list[Business]:
        """Every verified business plus provider results near the point."""

        verified = self.store.get_verified_businesses()
        seen = {business.id for business in verified}
        external = [
            place
            for place in self.source.search(latitude, longitude, radius_m)
            if place.id not in seen
        ]
        return [*verified, *external]
