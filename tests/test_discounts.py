from __future__ import annotations

from datetime import datetime, time

import pytest

from happyarz.discounts import (
    describe_window,
    is_discount_currently_active,
    is_within_window,
    parse_time_to_minutes,
)
from happyarz.models import Discount


def _discount(start: str, end: str, *, active: bool = True) -> Discount:
    return Discount(
        id="d-1",
        business_id="b-1",
        title="Happy Hour",
        percentage=20,
        valid_from=start,
        valid_to=end,
        is_active=active,
    )


def test_parse_time_to_minutes_defaults_missing_pieces() -> None:
    assert parse_time_to_minutes("17:30") == 17 * 60 + 30
    assert parse_time_to_minutes("17") == 17 * 60
    assert parse_time_to_minutes("17:") == 17 * 60
    assert parse_time_to_minutes("") == 0
    assert parse_time_to_minutes(None) == 0
    assert parse_time_to_minutes("late") == 0
    assert parse_time_to_minutes("xx:15") == 15


def test_inactive_discount_is_never_live() -> None:
    discount = _discount("00:00", "23:59", active=False)
    for hour in range(24):
        assert is_discount_currently_active(discount, time(hour, 30)) is False


def test_missing_discount_is_not_live() -> None:
    assert is_discount_currently_active(None, time(18, 0)) is False


def test_midnight_wraparound_window() -> None:
    discount = _discount("22:00", "02:00")
    assert is_discount_currently_active(discount, time(23, 30)) is True
    assert is_discount_currently_active(discount, time(1, 0)) is True
    assert is_discount_currently_active(discount, time(12, 0)) is False


@pytest.mark.parametrize(
    ("now", "expected"),
    [
        (time(17, 0), True),
        (time(19, 0), True),
        (time(18, 15), True),
        (time(16, 59), False),
        (time(19, 1), False),
    ],
)
def test_same_day_window_is_inclusive(now: time, expected: bool) -> None:
    assert is_discount_currently_active(_discount("17:00", "19:00"), now) is expected


def test_zero_width_window_matches_only_its_minute() -> None:
    assert is_within_window(600, 600, 600) is True
    assert is_within_window(600, 600, 601) is False
    assert is_within_window(600, 600, 599) is False


def test_malformed_times_fall_back_to_midnight() -> None:
    discount = _discount("soon", "later")
    assert is_discount_currently_active(discount, time(0, 0)) is True
    assert is_discount_currently_active(discount, time(0, 1)) is False


def test_accepts_datetime_instances() -> None:
    discount = _discount("17:00", "19:00")
    assert is_discount_currently_active(discount, datetime(2025, 6, 13, 18, 5)) is True


def test_describe_window() -> None:
    assert describe_window(_discount("17:00", "19:00")) == "17:00 - 19:00"
    assert describe_window(None) is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("nan", 0),
        ("1e999", 0),
        ("1e999:00", 0),
        ("inf", 0),
        ("-inf", 0),
        ("inf:30", 30),
        ("12:1e999", 720),
    ],
)
def test_non_finite_pieces_count_as_zero(value: str, expected: int) -> None:
    assert parse_time_to_minutes(value) == expected


def test_overflowing_time_never_breaks_evaluation() -> None:
    discount = _discount("1e999", "inf")
    assert is_discount_currently_active(discount, time(0, 0)) is True
    assert is_discount_currently_active(discount, time(18, 0)) is False
