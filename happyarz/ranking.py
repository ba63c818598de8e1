"""Filtering and ordering of businesses for the discovery, map and saved views."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Iterable, Sequence

from happyarz.discounts import is_discount_currently_active
from happyarz.geo import LocationContext, format_distance
from happyarz.models import Business
from happyarz.settings import ALL_CATEGORIES

Clock = datetime | time | None


@dataclass(frozen=True)
class RankedBusiness:
    business: Business
    is_live: bool
    distance_km: float | None = None

    @property
    def has_discount(self) -> bool:
        return self.business.has_discount

    @property
    def distance_text(self) -> str | None:
        if self.distance_km is None:
            return None
        return format_distance(self.distance_km)


def matches_query(business: Business, query: str) -> bool:
    needle = (query or "").lower()
    if not needle:
        return True
    return (
        needle in business.name.lower()
        or needle in business.description.lower()
        or needle in business.location.address.lower()
    )


def matches_category(business: Business, category: str | None) -> bool:
    if not category or category == ALL_CATEGORIES:
        return True
    return business.category == category


def _sort_key(business: Business, live: bool) -> tuple[int, int, int, float]:
    return (
        0 if live else 1,
        0 if business.has_discount else 1,
        0 if business.is_verified else 1,
        -business.rating,
    )


def _rank(
    businesses: Iterable[Business],
    query: str,
    category: str | None,
    now: Clock,
) -> list[tuple[Business, bool]]:
    if now is None:
        # One clock reading per call keeps the order consistent within it.
        now = datetime.now()
    candidates = [
        (business, is_discount_currently_active(business.current_discount, now))
        for business in businesses
        if business.is_active
        and matches_query(business, query)
        and matches_category(business, category)
    ]
    return sorted(candidates, key=lambda pair: _sort_key(*pair))


def rank_businesses(
    businesses: Iterable[Business],
    query: str = "",
    category: str | None = ALL_CATEGORIES,
    now: Clock = None,
) -> list[Business]:
    """Return active businesses matching the filters, best offers first.

    Order: live discount, any discount, verified, then rating descending.
    The sort is stable and the input is left untouched.
    """

    return [business for business, _ in _rank(businesses, query, category, now)]


def rank_with_distance(
    businesses: Iterable[Business],
    context: LocationContext | None = None,
    query: str = "",
    category: str | None = ALL_CATEGORIES,
    now: Clock = None,
) -> list[RankedBusiness]:
    context = context or LocationContext()
    return [
        RankedBusiness(business=business, is_live=live, distance_km=context.distance_to(business))
        for business, live in _rank(businesses, query, category, now)
    ]


def split_for_map(
    businesses: Iterable[Business],
    context: LocationContext | None = None,
    now: Clock = None,
) -> tuple[list[RankedBusiness], list[RankedBusiness]]:
    """Split active businesses into (with discount, without discount) lists.

    Each list is sorted nearest first when distances are available.
    """

    context = context or LocationContext()
    if now is None:
        now = datetime.now()
    with_discount: list[RankedBusiness] = []
    without_discount: list[RankedBusiness] = []
    for business in businesses:
        if not business.is_active:
            continue
        entry = RankedBusiness(
            business=business,
            is_live=is_discount_currently_active(business.current_discount, now),
            distance_km=context.distance_to(business),
        )
        (with_discount if business.has_discount else without_discount).append(entry)

    if context.show_distance:
        with_discount.sort(key=lambda entry: entry.distance_km or 0.0)
        without_discount.sort(key=lambda entry: entry.distance_km or 0.0)
    return with_discount, without_discount


def apply_bookmarks(businesses: Iterable[Business], bookmarked_ids: Iterable[str]) -> list[Business]:
    marked = set(bookmarked_ids)
    return [
        business.model_copy(update={"is_bookmarked": business.id in marked})
        for business in businesses
    ]


def saved_places(
    businesses: Sequence[Business],
    bookmarked_ids: Iterable[str],
    category: str | None = ALL_CATEGORIES,
) -> list[Business]:
    """Return bookmarked businesses, first occurrence per id, with the overlay set."""

    marked = set(bookmarked_ids)
    seen: set[str] = set()
    saved: list[Business] = []
    for business in businesses:
        if business.id not in marked or business.id in seen:
            continue
        seen.add(business.id)
        if not matches_category(business, category):
            continue
        saved.append(business.model_copy(update={"is_bookmarked": True}))
    return saved
