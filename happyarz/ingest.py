"""Admin endpoints for spreadsheet uploads of verified businesses.

Mounted by :mod:`happyarz.api`::

    app.include_router(ingest_router)

Uploads are sent as the raw request body with one of the accepted content
types. A successful upload with at least one accepted row replaces the whole
verified set; every processed upload appends one history entry.
"""

from __future__ import annotations

from io import BytesIO
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from happyarz.deps import get_app_settings, get_store
from happyarz.errors import IngestError, UnsupportedUploadType
from happyarz.logging_config import get_logger
from happyarz.models import UploadResult
from happyarz.settings import Settings
from happyarz.spreadsheet import (
    build_template,
    decode_upload,
    make_history_entry,
    process_spreadsheet,
)
from happyarz.storage.stores import VerifiedBusinessStore

LOGGER = get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

ACCEPTED_CONTENT_TYPES = {"text/csv", "text/tab-separated-values", "text/plain"}

SAMPLE_ROWS = [
    [
        "Pastel Rooftop Bar and mediterranean",
        "Rooftop bar with Mediterranean cuisine and stunning city views",
        "22nd floor, Aira Hotel, 14 Sukhumvit 11, Khlong Toei Nuea, Watthana, Bangkok 10110",
        "https://www.pastelbangkok.com/",
        "https://images.pexels.com/photos/1581384/pexels-photo-1581384.jpeg",
        "",
        "Open Every Day from 5:00PM - 1:00AM",
        "5:00 PM",
        "7:00 PM",
        "095-703-5679",
        "",
        "UPDATE 13/6/2025",
    ],
]


def _content_type(request: Request) -> str:
    return (request.headers.get("content-type") or "").split(";")[0].strip().lower()


def _store_upload(
    raw: bytes,
    delimiter: str | None,
    store: VerifiedBusinessStore,
    settings: Settings,
) -> UploadResult:
    text = decode_upload(raw)
    result = process_spreadsheet(text, delimiter, settings=settings)
    if result.businesses:
        store.save_verified_businesses(result.businesses)
    store.append_upload_history(make_history_entry(result))
    return result


@router.post("/upload")
async def upload_spreadsheet(
    request: Request,
    delimiter: str | None = Query(None, description="Force 'tab' or 'comma' instead of detecting."),
    store: VerifiedBusinessStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Process an uploaded spreadsheet and persist the accepted businesses."""

    content_type = _content_type(request)
    if content_type not in ACCEPTED_CONTENT_TYPES:
        exc = UnsupportedUploadType(content_type)
        raise HTTPException(status_code=415, detail=str(exc))
    raw = await request.body()
    try:
        # Parsing and SQLite writes block; keep them off the event loop.
        result = await run_in_threadpool(_store_upload, raw, delimiter, store, settings)
    except IngestError as exc:
        LOGGER.warning("Rejected upload: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    LOGGER.info(
        "Upload complete: processed %s businesses with %s errors",
        result.summary.processed,
        result.summary.errors,
    )
    return JSONResponse(content=result.to_json())


@router.get("/businesses")
def list_verified(store: VerifiedBusinessStore = Depends(get_store)) -> dict[str, Any]:
    businesses = store.get_verified_businesses()
    return {
        "count": len(businesses),
        "businesses": [business.to_json() for business in businesses],
    }


@router.get("/history")
def upload_history(store: VerifiedBusinessStore = Depends(get_store)) -> dict[str, Any]:
    history = store.get_upload_history()
    return {
        "uploads": [entry.to_json() for entry in history],
        "total_processed": sum(entry.processed_rows for entry in history),
        "total_errors": sum(entry.errors for entry in history),
    }


@router.get("/template.tsv")
def download_template(sample: bool = Query(False)) -> PlainTextResponse:
    content = build_template(SAMPLE_ROWS if sample else ())
    return PlainTextResponse(
        content,
        media_type="text/tab-separated-values",
        headers={"Content-Disposition": "attachment; filename=happy-arz-template.tsv"},
    )


@router.get("/export.xlsx")
def export_verified(store: VerifiedBusinessStore = Depends(get_store)) -> StreamingResponse:
    """Return the verified businesses as an Excel workbook."""

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Verified"
    headers = [
        "ID",
        "Name",
        "Category",
        "Rating",
        "Address",
        "Latitude",
        "Longitude",
        "Happy Hour Start",
        "Happy Hour End",
        "% Off",
        "Telephone",
        "Website",
        "Verified At",
    ]
    sheet.append(headers)
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="FF6B35", end_color="FF6B35", fill_type="solid")
    for cell in sheet[1]:
        cell.font = header_font
        cell.fill = header_fill

    sheet.freeze_panes = "A2"

    for business in store.get_verified_businesses():
        discount = business.current_discount
        meta = business.verification_data
        sheet.append(
            [
                business.id,
                business.name,
                business.category,
                business.rating,
                business.location.address,
                business.location.latitude,
                business.location.longitude,
                discount.valid_from if discount else None,
                discount.valid_to if discount else None,
                discount.percentage if discount else None,
                meta.telephone if meta else None,
                meta.website if meta else None,
                meta.verified_at if meta else None,
            ]
        )

    for column_cells in sheet.iter_cols(min_row=1, max_row=sheet.max_row, max_col=sheet.max_column):
        max_length = 0
        for cell in column_cells:
            if cell.value is None:
                continue
            max_length = max(max_length, len(str(cell.value)))
        if max_length <= 0:
            continue
        column_letter = column_cells[0].column_letter
        sheet.column_dimensions[column_letter].width = min(max_length + 2, 50)

    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    return StreamingResponse(
        buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=verified-businesses.xlsx"},
    )
