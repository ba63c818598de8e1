"""Command-line interface entry point for Happy Arz."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Iterable

import uvicorn
from dotenv import load_dotenv

from happyarz.errors import IngestError
from happyarz.geo import LocationContext
from happyarz.locations import get_location_by_id
from happyarz.logging_config import configure_logging, get_logger
from happyarz.models import Coordinates
from happyarz.places import PlacesService, build_places_source
from happyarz.ranking import rank_with_distance
from happyarz.settings import ALL_CATEGORIES, Settings, load_settings
from happyarz.spreadsheet import decode_upload, make_history_entry, process_spreadsheet
from happyarz.storage.db import get_engine, init_db, make_session
from happyarz.storage.stores import SqlStore, VerifiedBusinessStore

LOGGER = get_logger(__name__)

MAX_ERRORS_SHOWN = 5


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the application."""

    parser = argparse.ArgumentParser(
        description="Happy Arz: verified business uploads and happy-hour discovery."
    )
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument(
        "--ingest",
        type=Path,
        metavar="FILE",
        help="Process a CSV/TSV export and replace the verified businesses.",
    )
    action.add_argument(
        "--list",
        action="store_true",
        help="Print ranked businesses around a location.",
    )
    action.add_argument(
        "--serve",
        action="store_true",
        help="Start the HTTP API.",
    )
    parser.add_argument(
        "--delimiter",
        choices=("tab", "comma"),
        default=None,
        help="Force the upload delimiter instead of detecting it from the header.",
    )
    parser.add_argument("--query", default="", help="Search text for --list.")
    parser.add_argument("--category", default=ALL_CATEGORIES, help="Category filter for --list.")
    parser.add_argument("--lat", type=float, default=None, help="GPS latitude for --list.")
    parser.add_argument("--lon", type=float, default=None, help="GPS longitude for --list.")
    parser.add_argument("--location", default=None, help="City id to browse for --list.")
    parser.add_argument("--port", type=int, default=8000, help="Port for --serve (default: 8000).")
    parser.add_argument("--config", type=Path, default=None, help="Path to a config.yml override.")

    args = parser.parse_args(list(argv) if argv is not None else None)
    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be given together")
    if args.location and get_location_by_id(args.location) is None:
        parser.error(f"Unknown --location: {args.location}")
    return args


def _make_store(settings: Settings) -> SqlStore:
    engine = get_engine(settings.sqlite_path)
    init_db(engine)
    return SqlStore(make_session(engine))


def run_ingest(
    path: Path,
    delimiter: str | None,
    store: VerifiedBusinessStore,
    settings: Settings,
) -> int:
    if not path.exists():
        LOGGER.error("Upload file not found: %s", path)
        return 2
    try:
        text = decode_upload(path.read_bytes())
        result = process_spreadsheet(text, delimiter, settings=settings)
    except IngestError as exc:
        LOGGER.error("Failed to process %s: %s", path, exc)
        return 1

    if result.businesses:
        store.save_verified_businesses(result.businesses)
    store.append_upload_history(make_history_entry(result))

    summary = result.summary
    print(
        f"Processed {summary.processed} of {summary.total} rows with {summary.errors} errors."
    )
    for message in result.errors[:MAX_ERRORS_SHOWN]:
        print(f"  {message}")
    if len(result.errors) > MAX_ERRORS_SHOWN:
        print(f"  ... and {len(result.errors) - MAX_ERRORS_SHOWN} more")
    return 0


def run_list(args: argparse.Namespace, store: VerifiedBusinessStore, settings: Settings) -> int:
    gps = (
        Coordinates(latitude=args.lat, longitude=args.lon)
        if args.lat is not None and args.lon is not None
        else None
    )
    context = LocationContext(gps=gps, selected_location=get_location_by_id(args.location))
    coords = context.active_coordinates or Coordinates(
        latitude=settings.default_latitude, longitude=settings.default_longitude
    )
    service = PlacesService(build_places_source(settings), store)
    candidates = service.search_nearby(coords.latitude, coords.longitude, settings.places_radius_m)
    ranked = rank_with_distance(candidates, context, query=args.query, category=args.category)
    for entry in ranked:
        business = entry.business
        flags = []
        if entry.is_live:
            flags.append("LIVE")
        elif entry.has_discount:
            flags.append("later")
        if business.is_verified:
            flags.append("verified")
        distance = f" {entry.distance_text}" if entry.distance_text else ""
        print(
            f"{business.rating:.1f}  {business.name} [{business.category}]"
            f"{distance} {' '.join(flags)}".rstrip()
        )
    if not ranked:
        print("No venues found.")
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    load_dotenv()
    configure_logging()
    args = parse_args(argv)
    settings = load_settings(args.config)

    if args.serve:
        if args.config:
            os.environ["HAPPYARZ_CONFIG"] = str(args.config)
        uvicorn.run("happyarz.api:app", host="0.0.0.0", port=args.port, reload=False)
        return 0

    store = _make_store(settings)
    if args.ingest:
        return run_ingest(args.ingest, args.delimiter, store, settings)
    return run_list(args, store, settings)


if __name__ == "__main__":
    sys.exit(main())
