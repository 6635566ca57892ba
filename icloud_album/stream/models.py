"""
Data models for shared-stream entities.

This module defines the records an album resolution produces and the
declarative FieldSpec tables that describe the raw JSON they are decoded
from. The tables are the single place where the tolerance of each field
is stated; core.decoder.decode() applies them.

Design Decisions:
    - Derivative and Photo are mutable: the enrich step sets
      Derivative.url in place after the asset URLs are known
    - AlbumMetadata is frozen; nothing changes it after decoding
    - Integer fields accept digit strings (the API sends fileSize,
      width and height either way)
    - AlbumResult.to_dict() gives a JSON-ready structure with stable
      key order, used by the CLI's --json output

Usage:
    from icloud_album.stream.models import AlbumResult, Photo

    result = get_album("B0z5qAGN1JIFd3y")
    for photo in result.photos:
        best = photo.best_derivative()
"""

import copy
from dataclasses import dataclass, field
from typing import Any

from icloud_album.core.decoder import FieldSpec, LenientCoercionWarning, Severity, Shape
from icloud_album.utils import select_best_derivative


# =============================================================================
# Field tables
# =============================================================================

DERIVATIVE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("checksum", "checksum", Severity.REQUIRED, Shape.STRING),
    FieldSpec("fileSize", "file_size", Severity.OPTIONAL, Shape.INTEGER),
    FieldSpec("width", "width", Severity.OPTIONAL, Shape.INTEGER),
    FieldSpec("height", "height", Severity.OPTIONAL, Shape.INTEGER),
)

PHOTO_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("photoGuid", "guid", Severity.REQUIRED, Shape.STRING),
    FieldSpec("derivatives", "derivatives", Severity.REQUIRED, Shape.MAPPING,
              fields=DERIVATIVE_FIELDS),
    FieldSpec("caption", "caption", Severity.OPTIONAL, Shape.STRING),
    FieldSpec("dateCreated", "date_created", Severity.OPTIONAL, Shape.STRING),
    FieldSpec("batchDateCreated", "batch_date_created", Severity.OPTIONAL, Shape.STRING),
    FieldSpec("width", "width", Severity.OPTIONAL, Shape.INTEGER),
    FieldSpec("height", "height", Severity.OPTIONAL, Shape.INTEGER),
)

# itemsReturned is advisory only and never gates decoding of photos
WEBSTREAM_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("photos", "photos", Severity.REQUIRED, Shape.LIST, fields=PHOTO_FIELDS),
    FieldSpec("streamName", "stream_name", Severity.LENIENT, Shape.STRING, default=""),
    FieldSpec("userFirstName", "user_first_name", Severity.LENIENT, Shape.STRING, default=""),
    FieldSpec("userLastName", "user_last_name", Severity.LENIENT, Shape.STRING, default=""),
    FieldSpec("streamCtag", "stream_ctag", Severity.OPTIONAL, Shape.STRING, default=""),
    FieldSpec("itemsReturned", "items_returned", Severity.OPTIONAL, Shape.INTEGER, default=0),
    FieldSpec("locations", "locations", Severity.OPTIONAL, Shape.MAPPING),
)

# Items are decoded one at a time with ASSET_ITEM_FIELDS so that one bad
# entry only loses its own URL.
ASSET_URL_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("items", "items", Severity.OPTIONAL, Shape.MAPPING),
)

ASSET_ITEM_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("url_location", "url_location", Severity.LENIENT, Shape.STRING, default=""),
    FieldSpec("url_path", "url_path", Severity.LENIENT, Shape.STRING, default=""),
)


# =============================================================================
# Records
# =============================================================================

@dataclass
class Derivative:
    """
    One rendition (size variant) of a photo.

    Attributes:
        checksum: Content identifier; links the derivative to its URL.
        file_size: Size in bytes, if reported.
        width: Pixel width, if reported.
        height: Pixel height, if reported.
        url: Download URL, set by enrich_photos(). None until resolved.
    """
    checksum: str
    file_size: int | None = None
    width: int | None = None
    height: int | None = None
    url: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Derivative":
        """Create a Derivative from a dict decoded with DERIVATIVE_FIELDS."""
        return cls(
            checksum=record["checksum"],
            file_size=record["file_size"],
            width=record["width"],
            height=record["height"]
        )

    @property
    def resolution(self) -> int | None:
        """width * height, or None when either is unknown."""
        if self.width is None or self.height is None:
            return None
        return self.width * self.height

    def to_dict(self) -> dict[str, Any]:
        return {
            "checksum": self.checksum,
            "file_size": self.file_size,
            "width": self.width,
            "height": self.height,
            "url": self.url,
        }


@dataclass
class Photo:
    """
    A photo in a shared album.

    Attributes:
        guid: Photo identifier, used to request asset URLs.
        derivatives: Renditions keyed by derivative name ("1", "2",
                     "original", ...), in server order.
        caption: Caption text, if any.
        date_created: Capture timestamp string as sent by the server.
        batch_date_created: Upload batch timestamp string.
        width: Pixel width of the photo, if reported.
        height: Pixel height of the photo, if reported.
    """
    guid: str
    derivatives: dict[str, Derivative] = field(default_factory=dict)
    caption: str | None = None
    date_created: str | None = None
    batch_date_created: str | None = None
    width: int | None = None
    height: int | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Photo":
        """Create a Photo from a dict decoded with PHOTO_FIELDS."""
        return cls(
            guid=record["guid"],
            derivatives={
                key: Derivative.from_record(derivative)
                for key, derivative in record["derivatives"].items()
            },
            caption=record["caption"],
            date_created=record["date_created"],
            batch_date_created=record["batch_date_created"],
            width=record["width"],
            height=record["height"]
        )

    def best_derivative(self) -> tuple[str, Derivative] | None:
        """
        Pick the derivative to download for this photo.

        Returns:
            (key, derivative) of the best rendition that has a URL,
            or None if no derivative was resolved.
        """
        return select_best_derivative(self.derivatives)

    def to_dict(self) -> dict[str, Any]:
        return {
            "guid": self.guid,
            "caption": self.caption,
            "date_created": self.date_created,
            "batch_date_created": self.batch_date_created,
            "width": self.width,
            "height": self.height,
            "derivatives": {
                key: derivative.to_dict()
                for key, derivative in self.derivatives.items()
            },
        }


@dataclass(frozen=True)
class AlbumMetadata:
    """
    Immutable album-level information from the webstream response.

    Attributes:
        stream_name: Album title.
        user_first_name: Owner's first name.
        user_last_name: Owner's last name.
        stream_ctag: Change tag of the stream.
        items_returned: Item count reported by the server (advisory).
        locations: Raw location map as sent by the server. Owned by the
                   instance; to_dict() hands out a copy.
    """
    stream_name: str = ""
    user_first_name: str = ""
    user_last_name: str = ""
    stream_ctag: str = ""
    items_returned: int = 0
    locations: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "AlbumMetadata":
        """Create AlbumMetadata from a dict decoded with WEBSTREAM_FIELDS."""
        return cls(
            stream_name=record["stream_name"],
            user_first_name=record["user_first_name"],
            user_last_name=record["user_last_name"],
            stream_ctag=record["stream_ctag"],
            items_returned=record["items_returned"],
            locations=copy.deepcopy(record["locations"])
        )

    @property
    def owner_name(self) -> str:
        """First and last name joined, skipping blanks."""
        parts = [self.user_first_name, self.user_last_name]
        return " ".join(part for part in parts if part)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stream_name": self.stream_name,
            "user_first_name": self.user_first_name,
            "user_last_name": self.user_last_name,
            "stream_ctag": self.stream_ctag,
            "items_returned": self.items_returned,
            "locations": copy.deepcopy(self.locations),
        }


@dataclass
class AlbumResult:
    """
    Outcome of one album resolution.

    Attributes:
        metadata: Album metadata.
        photos: Photos in server order, with derivative URLs filled in
                where the asset lookup returned them.
        warnings: Lenient decode events collected during the resolution.
    """
    metadata: AlbumMetadata
    photos: list[Photo] = field(default_factory=list)
    warnings: tuple[LenientCoercionWarning, ...] = ()

    @property
    def resolved_count(self) -> int:
        """Number of derivatives that carry a URL."""
        return sum(
            1
            for photo in self.photos
            for derivative in photo.derivatives.values()
            if derivative.url is not None
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "metadata": self.metadata.to_dict(),
            "photos": [photo.to_dict() for photo in self.photos],
            "warnings": [
                {"field": warning.field, "reason": warning.reason}
                for warning in self.warnings
            ],
        }
