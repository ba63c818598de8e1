"""Exception types raised by Happy Arz components."""

from __future__ import annotations


class HappyArzError(Exception):
    """Base class for application errors."""


class IngestError(HappyArzError):
    """Whole-file failure while ingesting a spreadsheet upload."""


class SpreadsheetError(IngestError):
    """The upload has no usable header or content."""


class UploadDecodeError(IngestError):
    """The upload bytes could not be decoded as text."""


class UnsupportedUploadType(IngestError):
    """The upload was sent with a content type we do not accept."""

    def __init__(self, content_type: str) -> None:
        super().__init__(f"Unsupported upload type: {content_type or 'unknown'}")
        self.content_type = content_type


class PlacesSourceError(HappyArzError):
    """The nearby-places provider returned an unusable response."""
