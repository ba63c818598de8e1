from __future__ import annotations

import itertools

import pytest

from happyarz.models import Business, BusinessLocation, Discount
from happyarz.settings import Settings


def make_business(
    business_id: str,
    *,
    name: str | None = None,
    description: str = "",
    address: str = "",
    category: str = "Bar",
    rating: float = 4.0,
    discount: tuple[str, str] | None = None,
    discount_active: bool = True,
    verified: bool = False,
    active: bool = True,
    latitude: float = 13.7563,
    longitude: float = 100.5018,
) -> Business:
    current = None
    if discount is not None:
        current = Discount(
            id=f"{business_id}_discount",
            business_id=business_id,
            title="Happy Hour",
            percentage=20,
            valid_from=discount[0],
            valid_to=discount[1],
            is_active=discount_active,
        )
    return Business(
        id=business_id,
        name=name or business_id.title(),
        description=description,
        location=BusinessLocation(latitude=latitude, longitude=longitude, address=address),
        category=category,
        rating=rating,
        current_discount=current,
        is_active=active,
        is_verified=verified,
    )


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def id_factory():
    counter = itertools.count(1)
    return lambda: f"verified_{next(counter)}"
