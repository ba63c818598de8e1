"""Configuration loading for Happy Arz."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config.yml"
ALL_CATEGORIES = "All"


def _load_config(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    categories: tuple[str, ...] = ("Restaurant", "Bar", "Cafe", "Spa", "Nightlife", "Hotel", "Other")
    default_rating: float = 4.0
    default_category: str = "Other"
    default_discount_percentage: int = 20
    default_discount_title: str = "Happy Hour"
    default_image: str = ""
    default_latitude: float = 13.7563
    default_longitude: float = 100.5018
    places_source: str = "mock"
    places_url: str = ""
    places_api_key: str | None = None
    places_timeout: float = 10.0
    places_radius_m: int = 50000
    sqlite_path: str = "happyarz.sqlite"
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def category_options(self) -> list[str]:
        """Categories offered by the filter bar, ``All`` first."""

        return [ALL_CATEGORIES, *self.categories]


def load_settings(path: str | Path | None = None) -> Settings:
    """Build :class:`Settings` from YAML plus environment overrides."""

    load_dotenv()
    config_path = Path(path or os.getenv("HAPPYARZ_CONFIG") or DEFAULT_CONFIG_PATH)
    config = _load_config(config_path) if config_path.exists() else {}

    ingest_conf = config.get("ingest") or {}
    places_conf = config.get("places") or {}
    output_conf = config.get("output") or {}
    defaults = Settings()

    categories = tuple(
        str(name).strip() for name in config.get("categories") or [] if str(name).strip()
    ) or defaults.categories
    default_category = str(ingest_conf.get("default_category") or defaults.default_category)
    if default_category not in categories:
        categories = (*categories, default_category)

    return Settings(
        categories=categories,
        default_rating=_as_float(ingest_conf.get("default_rating"), defaults.default_rating),
        default_category=default_category,
        default_discount_percentage=_as_int(
            ingest_conf.get("default_discount_percentage"),
            defaults.default_discount_percentage,
        ),
        default_discount_title=str(
            ingest_conf.get("default_discount_title") or defaults.default_discount_title
        ),
        default_image=str(ingest_conf.get("default_image") or defaults.default_image),
        default_latitude=_as_float(ingest_conf.get("default_latitude"), defaults.default_latitude),
        default_longitude=_as_float(ingest_conf.get("default_longitude"), defaults.default_longitude),
        places_source=str(os.getenv("HAPPYARZ_PLACES_SOURCE") or places_conf.get("source") or "mock"),
        places_url=str(os.getenv("HAPPYARZ_PLACES_URL") or places_conf.get("url") or ""),
        places_api_key=os.getenv("HAPPYARZ_PLACES_API_KEY") or None,
        places_timeout=_as_float(places_conf.get("timeout_seconds"), defaults.places_timeout),
        places_radius_m=_as_int(places_conf.get("radius_m"), defaults.places_radius_m),
        sqlite_path=str(
            os.getenv("HAPPYARZ_DB_PATH") or output_conf.get("sqlite_path") or defaults.sqlite_path
        ),
        extra=config,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
