from __future__ import annotations

from datetime import datetime, timezone

from happyarz.locations import (
    get_all_locations,
    get_current_time_in_location,
    get_location_by_id,
    get_location_display_name,
    get_popular_locations,
    search_locations,
)
from happyarz.models import Coordinates, LocationOption


def test_lookup_by_id() -> None:
    bangkok = get_location_by_id("bangkok")
    assert bangkok is not None
    assert bangkok.coordinates.latitude == 13.7563
    assert get_location_by_id("atlantis") is None
    assert get_location_by_id(None) is None


def test_popular_is_a_subset() -> None:
    popular = get_popular_locations()
    assert popular
    assert all(location.is_popular for location in popular)
    assert len(popular) < len(get_all_locations())


def test_search_matches_name_or_country() -> None:
    assert {location.id for location in search_locations("chiang")} == {"chiang-mai"}
    thai = search_locations("THAILAND")
    assert "pattaya" in {location.id for location in thai}
    assert search_locations("") == get_all_locations()


def test_display_name() -> None:
    assert get_location_display_name(get_location_by_id("tokyo")) == "Tokyo, Japan"


def test_local_time_uses_timezone() -> None:
    midnight_utc = datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)
    assert get_current_time_in_location(get_location_by_id("bangkok"), midnight_utc) == "07:00"
    assert get_current_time_in_location(get_location_by_id("london"), midnight_utc) == "00:00"


def test_local_time_unknown_zone_falls_back_to_utc() -> None:
    nowhere = LocationOption(
        id="nowhere",
        name="Nowhere",
        country="Nowhere",
        coordinates=Coordinates(latitude=0, longitude=0),
        timezone="Mars/Olympus_Mons",
    )
    noon = datetime(2025, 1, 1, 12, 5, tzinfo=timezone.utc)
    assert get_current_time_in_location(nowhere, noon) == "12:05"
