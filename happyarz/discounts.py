"""Happy-hour window evaluation."""

from __future__ import annotations

import math
from datetime import datetime, time

from happyarz.models import Discount


def _as_number(piece: str | None) -> int:
    if piece is None:
        return 0
    try:
        number = float(piece.strip())
    except ValueError:
        return 0
    return int(number) if math.isfinite(number) else 0


def parse_time_to_minutes(value: str | None) -> int:
    """Convert ``HH:MM`` to minutes since midnight.

    Missing or non-numeric pieces count as zero, so ``"17"`` is 1020 and
    ``"bogus"`` is 0.
    """

    if not value:
        return 0
    parts = value.split(":")
    hours = _as_number(parts[0])
    minutes = _as_number(parts[1]) if len(parts) > 1 else 0
    return hours * 60 + minutes


def minutes_since_midnight(now: datetime | time | None = None) -> int:
    moment = now if now is not None else datetime.now()
    return moment.hour * 60 + moment.minute


def is_within_window(start: int, end: int, now: int) -> bool:
    """Return True when *now* falls inside ``[start, end]``.

    An end earlier than the start means the window crosses midnight.
    """

    if end < start:
        return now >= start or now <= end
    return start <= now <= end


def is_discount_currently_active(
    discount: Discount | None,
    now: datetime | time | None = None,
) -> bool:
    """Return True when *discount* is configured active and inside its window.

    *now* defaults to the local wall clock; no timezone conversion is applied.
    """

    if discount is None or not discount.is_active:
        return False
    return is_within_window(
        parse_time_to_minutes(discount.valid_from),
        parse_time_to_minutes(discount.valid_to),
        minutes_since_midnight(now),
    )


def describe_window(discount: Discount | None) -> str | None:
    if discount is None:
        return None
    return f"{discount.valid_from} - {discount.valid_to}"
