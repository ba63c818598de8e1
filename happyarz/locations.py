"""Reference cities for manual location browsing."""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from happyarz.logging_config import get_logger
from happyarz.models import Coordinates, LocationOption

LOGGER = get_logger(__name__)


def _location(
    location_id: str,
    name: str,
    country: str,
    latitude: float,
    longitude: float,
    tz: str,
    *,
    popular: bool = False,
) -> LocationOption:
    return LocationOption(
        id=location_id,
        name=name,
        country=country,
        coordinates=Coordinates(latitude=latitude, longitude=longitude),
        timezone=tz,
        is_popular=popular,
    )


LOCATIONS: tuple[LocationOption, ...] = (
    _location("bangkok", "Bangkok", "Thailand", 13.7563, 100.5018, "Asia/Bangkok", popular=True),
    _location("pattaya", "Pattaya", "Thailand", 12.9236, 100.8825, "Asia/Bangkok", popular=True),
    _location("phuket", "Phuket", "Thailand", 7.8804, 98.3923, "Asia/Bangkok", popular=True),
    _location("chiang-mai", "Chiang Mai", "Thailand", 18.7883, 98.9853, "Asia/Bangkok", popular=True),
    _location("hua-hin", "Hua Hin", "Thailand", 12.5684, 99.9577, "Asia/Bangkok"),
    _location("krabi", "Krabi", "Thailand", 8.0863, 98.9063, "Asia/Bangkok"),
    _location("koh-samui", "Koh Samui", "Thailand", 9.5120, 100.0136, "Asia/Bangkok"),
    _location("singapore", "Singapore", "Singapore", 1.3521, 103.8198, "Asia/Singapore", popular=True),
    _location("kuala-lumpur", "Kuala Lumpur", "Malaysia", 3.1390, 101.6869, "Asia/Kuala_Lumpur"),
    _location("ho-chi-minh-city", "Ho Chi Minh City", "Vietnam", 10.8231, 106.6297, "Asia/Ho_Chi_Minh"),
    _location("bali", "Bali", "Indonesia", -8.3405, 115.0920, "Asia/Makassar"),
    _location("manila", "Manila", "Philippines", 14.5995, 120.9842, "Asia/Manila"),
    _location("hong-kong", "Hong Kong", "Hong Kong", 22.3193, 114.1694, "Asia/Hong_Kong"),
    _location("tokyo", "Tokyo", "Japan", 35.6762, 139.6503, "Asia/Tokyo"),
    _location("dubai", "Dubai", "United Arab Emirates", 25.2048, 55.2708, "Asia/Dubai"),
    _location("london", "London", "United Kingdom", 51.5074, -0.1278, "Europe/London"),
    _location("new-york", "New York", "United States", 40.7128, -74.0060, "America/New_York"),
    _location("sydney", "Sydney", "Australia", -33.8688, 151.2093, "Australia/Sydney"),
)

_BY_ID = {location.id: location for location in LOCATIONS}


def get_all_locations() -> list[LocationOption]:
    return list(LOCATIONS)


def get_location_by_id(location_id: str | None) -> LocationOption | None:
    if not location_id:
        return None
    return _BY_ID.get(location_id)


def get_popular_locations() -> list[LocationOption]:
    return [location for location in LOCATIONS if location.is_popular]


def search_locations(query: str | None) -> list[LocationOption]:
    """Case-insensitive substring search over city and country names."""

    needle = (query or "").strip().lower()
    if not needle:
        return get_all_locations()
    return [
        location
        for location in LOCATIONS
        if needle in location.name.lower() or needle in location.country.lower()
    ]


def get_location_display_name(location: LocationOption) -> str:
    return f"{location.name}, {location.country}"


def get_current_time_in_location(location: LocationOption, now: datetime | None = None) -> str:
    """Return the wall-clock ``HH:MM`` in *location*'s timezone."""

    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    try:
        zone = ZoneInfo(location.timezone)
    except ZoneInfoNotFoundError:
        LOGGER.warning("Unknown timezone %s for %s", location.timezone, location.id)
        return moment.astimezone(timezone.utc).strftime("%H:%M")
    return moment.astimezone(zone).strftime("%H:%M")
