"""Domain records shared by the ranking engine, ingestion and storage layers."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DomainModel(BaseModel):
    """Immutable record serialised with camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Discount(DomainModel):
    """A recurring daily percentage offer tied to one business."""

    id: str
    business_id: str
    title: str = ""
    description: str = ""
    percentage: int = 0
    valid_from: str = "00:00"
    valid_to: str = "00:00"
    is_active: bool = True


class BusinessLocation(DomainModel):
    latitude: float
    longitude: float
    address: str = ""


class VerificationData(DomainModel):
    source: Literal["spreadsheet", "manual", "api"] = "spreadsheet"
    verified_at: str
    verified_by: str | None = None
    original_data: dict[str, str] | None = None
    google_marker: str | None = None
    logo: str | None = None
    telephone: str | None = None
    website: str | None = None
    open_hours: str | None = None
    remarks: str | None = None
    last_update: str | None = None


class Business(DomainModel):
    """A venue shown in discovery, map and saved-place views."""

    id: str
    name: str
    description: str = ""
    image: str = ""
    location: BusinessLocation
    category: str = "Other"
    rating: float = 0.0
    current_discount: Discount | None = None
    is_active: bool = True
    is_verified: bool = False
    # Overlay only; stores never persist it.
    is_bookmarked: bool = False
    verification_data: VerificationData | None = None

    @property
    def has_discount(self) -> bool:
        return self.current_discount is not None


class Coordinates(DomainModel):
    latitude: float
    longitude: float


class LocationOption(DomainModel):
    """A named city used for manual browsing."""

    id: str
    name: str
    country: str
    coordinates: Coordinates
    timezone: str
    is_popular: bool = False


class UploadSummary(DomainModel):
    total: int = 0
    processed: int = 0
    errors: int = 0


class UploadResult(DomainModel):
    businesses: list[Business] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    summary: UploadSummary = Field(default_factory=UploadSummary)


class UploadHistoryEntry(DomainModel):
    timestamp: str
    total_rows: int = 0
    processed_rows: int = 0
    errors: int = 0
