"""Spreadsheet ingestion: delimited text to verified business records.

The admin exports the research sheet as CSV or TSV. The first line holds the
column headers; each following line describes one business. Rows are handled
independently: a bad row is reported in ``UploadResult.errors`` and skipped,
the rest of the batch carries on. Only whole-file problems raise.
"""

from __future__ import annotations

import csv
import io
import math
import re
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable

from pydantic import ValidationError

from happyarz.errors import SpreadsheetError, UploadDecodeError
from happyarz.logging_config import get_logger
from happyarz.models import (
    Business,
    BusinessLocation,
    Discount,
    UploadHistoryEntry,
    UploadResult,
    UploadSummary,
    VerificationData,
)
from happyarz.settings import Settings, get_settings

LOGGER = get_logger(__name__)

REQUIRED_FIELDS = ("name", "description", "address")

# Keys are headers lower-cased with spaces, underscores and hyphens removed.
HEADER_ALIASES = {
    "name": "name",
    "description": "description",
    "address": "address",
    "picture": "image",
    "image": "image",
    "photo": "image",
    "telephone": "telephone",
    "phone": "telephone",
    "website": "website",
    "googlemarker": "google_marker",
    "category": "category",
    "businesscategory": "category",
    "happyhourstart": "happy_hour_start",
    "happyhourend": "happy_hour_end",
    "logo": "logo",
    "open": "open_hours",
    "openhours": "open_hours",
    "remark": "remark",
    "remarks": "remark",
    "update": "update",
    "lastupdate": "update",
    "rating": "rating",
    "latitude": "latitude",
    "lat": "latitude",
    "longitude": "longitude",
    "lng": "longitude",
    "lon": "longitude",
    "discount": "discount_percentage",
    "discountpercentage": "discount_percentage",
    "percentage": "discount_percentage",
    "discounttitle": "discount_title",
    "deal": "discount_title",
}

TEMPLATE_HEADERS = [
    "Name",
    "Description",
    "Address",
    "Google marker",
    "Picture",
    "Logo",
    "Open",
    "Happy Hour Start",
    "Happy Hour End",
    "Telephone",
    "Remark",
    "Update",
]

DELIMITERS = {"tab": "\t", "\t": "\t", "comma": ",", ",": ","}

_CLOCK_PATTERN = re.compile(
    r"^(?P<hour>\d{1,2})(?:[:.](?P<minute>\d{2}))?\s*(?:(?P<meridiem>[ap])\.?\s*m?\.?)?$",
    re.IGNORECASE,
)
_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


def decode_upload(raw: bytes) -> str:
    """Decode uploaded bytes, honouring UTF-8 and UTF-16 byte order marks."""

    encoding = "utf-16" if raw.startswith((b"\xff\xfe", b"\xfe\xff")) else "utf-8-sig"
    try:
        return raw.decode(encoding)
    except UnicodeDecodeError as exc:
        raise UploadDecodeError(f"Upload is not valid {encoding} text: {exc}") from exc


def normalize_header(header: str) -> str | None:
    key = re.sub(r"[\s_\-]+", "", (header or "").strip().lower())
    return HEADER_ALIASES.get(key)


def detect_delimiter(header_line: str) -> str:
    return "\t" if "\t" in header_line else ","


def normalize_clock(value: str) -> str | None:
    """Return *value* as 24-hour ``HH:MM``, or None when it is not a time.

    Accepts ``17:00``, ``17.00``, ``5:00 PM``, ``5pm`` and ``12 am``.
    """

    match = _CLOCK_PATTERN.match(value.strip())
    if not match:
        return None
    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    meridiem = (match.group("meridiem") or "").lower()
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if meridiem == "p" else 0)
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def _parse_float(value: str | None) -> float | None:
    if not value:
        return None
    try:
        number = float(value.strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_percentage(value: str | None) -> int | None:
    if not value:
        return None
    match = _NUMBER_PATTERN.search(value)
    if not match:
        return None
    number = float(match.group(0))
    return int(round(number)) if math.isfinite(number) else None


def _resolve_category(value: str | None, settings: Settings) -> str:
    wanted = (value or "").strip().lower()
    for category in settings.categories:
        if category.lower() == wanted:
            return category
    return settings.default_category


def _split_records(text: str, delimiter: str) -> list[list[str]]:
    if delimiter == "\t":
        reader = csv.reader(io.StringIO(text), delimiter="\t", quoting=csv.QUOTE_NONE)
    else:
        reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    return list(reader)


def _is_blank(cells: list[str]) -> bool:
    return all(not cell.strip() for cell in cells)


def _default_id() -> str:
    return f"verified_{uuid.uuid4().hex}"


def _build_discount(
    fields: dict[str, str],
    business_id: str,
    settings: Settings,
) -> Discount | None:
    start_raw = fields.get("happy_hour_start", "")
    end_raw = fields.get("happy_hour_end", "")
    if not start_raw or not end_raw:
        return None
    # Unrecognised times are kept verbatim; the window evaluator reads them as 00:00.
    start = normalize_clock(start_raw) or start_raw
    end = normalize_clock(end_raw) or end_raw
    percentage = _parse_percentage(fields.get("discount_percentage"))
    if percentage is None:
        percentage = settings.default_discount_percentage
    return Discount(
        id=f"{business_id}_discount",
        business_id=business_id,
        title=fields.get("discount_title") or settings.default_discount_title,
        description=f"{percentage}% off from {start} to {end}",
        percentage=percentage,
        valid_from=start,
        valid_to=end,
        is_active=True,
    )


def build_business(
    fields: dict[str, str],
    raw_row: dict[str, str],
    *,
    business_id: str,
    verified_at: str,
    settings: Settings,
) -> Business:
    """Map a validated row onto a verified :class:`Business`."""

    rating = _parse_float(fields.get("rating"))
    latitude = _parse_float(fields.get("latitude"))
    longitude = _parse_float(fields.get("longitude"))
    if latitude is None or longitude is None:
        latitude, longitude = settings.default_latitude, settings.default_longitude

    website = fields.get("website") or fields.get("google_marker") or None
    return Business(
        id=business_id,
        name=fields["name"],
        description=fields["description"],
        image=fields.get("image") or settings.default_image,
        location=BusinessLocation(
            latitude=latitude,
            longitude=longitude,
            address=fields["address"],
        ),
        category=_resolve_category(fields.get("category"), settings),
        rating=rating if rating is not None else settings.default_rating,
        current_discount=_build_discount(fields, business_id, settings),
        is_active=True,
        is_verified=True,
        verification_data=VerificationData(
            source="spreadsheet",
            verified_at=verified_at,
            original_data=raw_row,
            google_marker=fields.get("google_marker") or None,
            logo=fields.get("logo") or None,
            telephone=fields.get("telephone") or None,
            website=website,
            open_hours=fields.get("open_hours") or None,
            remarks=fields.get("remark") or None,
            last_update=fields.get("update") or None,
        ),
    )


def process_spreadsheet(
    text: str,
    delimiter: str | None = None,
    *,
    settings: Settings | None = None,
    now: datetime | None = None,
    id_factory: Callable[[], str] | None = None,
) -> UploadResult:
    """Parse *text* into verified businesses plus per-row diagnostics.

    Raises :class:`SpreadsheetError` only when the file as a whole is unusable.
    """

    settings = settings or get_settings()
    id_factory = id_factory or _default_id
    if text is None or not text.strip():
        raise SpreadsheetError("Upload is empty")

    text = text.lstrip("\ufeff")
    first_line = next(line for line in text.splitlines() if line.strip())
    if delimiter is not None and delimiter not in DELIMITERS:
        raise SpreadsheetError(f"Unsupported delimiter: {delimiter!r}")
    sep = DELIMITERS[delimiter] if delimiter else detect_delimiter(first_line)

    records = _split_records(text, sep)
    header_index = next((idx for idx, cells in enumerate(records) if not _is_blank(cells)), None)
    if header_index is None:
        raise SpreadsheetError("Upload has no header row")

    headers = [cell.strip() for cell in records[header_index]]
    canonical = [normalize_header(header) for header in headers]
    missing_columns = [name for name in REQUIRED_FIELDS if name not in canonical]
    if missing_columns:
        LOGGER.warning("Upload header lacks required column(s): %s", ", ".join(missing_columns))

    verified_at = (now or datetime.now(timezone.utc)).isoformat()
    businesses: list[Business] = []
    errors: list[str] = []
    total = 0

    for offset, cells in enumerate(records[header_index + 1 :], start=2):
        if _is_blank(cells):
            continue
        total += 1
        row_label = f"Row {offset + header_index}"

        if len(cells) != len(headers):
            errors.append(
                f"{row_label}: column count mismatch (expected {len(headers)}, got {len(cells)})"
            )
            continue

        raw_row = dict(zip(headers, cells))
        fields: dict[str, str] = {}
        for key, cell in zip(canonical, cells):
            if key is None:
                continue
            value = cell.strip()
            if value and not fields.get(key):
                fields[key] = value

        missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
        if missing:
            errors.append(f"{row_label}: missing required field(s): {', '.join(missing)}")
            continue

        try:
            business = build_business(
                fields,
                raw_row,
                business_id=id_factory(),
                verified_at=verified_at,
                settings=settings,
            )
        except ValidationError as exc:
            errors.append(f"{row_label}: invalid value ({exc.error_count()} problem(s))")
            continue
        except OverflowError:
            errors.append(f"{row_label}: numeric value out of range")
            continue
        businesses.append(business)

    summary = UploadSummary(total=total, processed=len(businesses), errors=total - len(businesses))
    LOGGER.info(
        "Processed spreadsheet: total=%s processed=%s errors=%s",
        summary.total,
        summary.processed,
        summary.errors,
    )
    return UploadResult(businesses=businesses, errors=errors, summary=summary)


def make_history_entry(result: UploadResult, now: datetime | None = None) -> UploadHistoryEntry:
    return UploadHistoryEntry(
        timestamp=(now or datetime.now(timezone.utc)).isoformat(),
        total_rows=result.summary.total,
        processed_rows=result.summary.processed,
        errors=result.summary.errors,
    )


def build_template(rows: Iterable[Iterable[str]] = ()) -> str:
    """Render the tab-separated research template with optional sample rows."""

    lines = ["\t".join(TEMPLATE_HEADERS)]
    for row in rows:
        lines.append("\t".join(str(cell).replace("\t", " ") for cell in row))
    return "\n".join(lines) + "\n"
