"""Great-circle distance and the location context used by discovery views."""

from __future__ import annotations

import math
from dataclasses import dataclass

from happyarz.models import Business, Coordinates, LocationOption

EARTH_RADIUS_KM = 6371.0


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the haversine distance in kilometres between two points."""

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def format_distance(km: float) -> str:
    return f"{km:.1f}km"


@dataclass(frozen=True)
class LocationContext:
    """Where the user is looking from.

    ``gps`` is the device fix, if any. ``selected_location`` is a manually
    chosen city; when set it drives the search area and hides distances,
    since its coordinates are a city centre rather than the user.
    """

    gps: Coordinates | None = None
    selected_location: LocationOption | None = None

    @property
    def active_coordinates(self) -> Coordinates | None:
        if self.selected_location is not None:
            return self.selected_location.coordinates
        return self.gps

    @property
    def show_distance(self) -> bool:
        return self.gps is not None and self.selected_location is None

    def distance_to(self, business: Business) -> float | None:
        if not self.show_distance or self.gps is None:
            return None
        return calculate_distance(
            self.gps.latitude,
            self.gps.longitude,
            business.location.latitude,
            business.location.longitude,
        )
