"""Core domain models for gallery photos, feed options and session state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import math
from typing import Any

from core.errors import MalformedPersistedDataError

INLINE_URL_PREFIX = "data:image"


class Category(str, Enum):
    """Photo categories plus the filter-only pseudo categories."""

    ALL = "all"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    STREET = "street"
    ARCHITECTURE = "architecture"
    MACRO = "macro"

    @property
    def is_filter_only(self) -> bool:
        """True for values used only as filter predicates, never stored on a photo."""
        return self in (Category.ALL, Category.HORIZONTAL, Category.VERTICAL)


class FeedTab(str, Enum):
    """Mutually exclusive ordering modes of the feed."""

    CURATED = "curated"
    LATEST = "latest"
    SHUFFLE = "shuffle"
    NEARBY = "nearby"
    FARAWAY = "faraway"

    @property
    def needs_location(self) -> bool:
        """True for tabs ordered by distance from the user."""
        return self in (FeedTab.NEARBY, FeedTab.FARAWAY)


class ViewMode(str, Enum):
    """Presentation mode; MAP shows the whole composed view at once."""

    GRID = "grid"
    MAP = "map"


@dataclass(frozen=True)
class GeoCoordinate:
    """A resolved user position in WGS-84 decimal degrees."""

    lat: float
    lng: float


@dataclass
class ExifData:
    """Free-text camera metadata plus optional GPS position."""

    camera: str = ""
    lens: str = ""
    focal_length: str = ""
    aperture: str = ""
    shutter_speed: str = ""
    iso: str = ""
    location: str = ""
    date: str = ""
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_coordinates(self) -> bool:
        """True when both latitude and longitude are finite numbers (0.0 counts)."""
        if self.latitude is None or self.longitude is None:
            return False
        return math.isfinite(self.latitude) and math.isfinite(self.longitude)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted camelCase mapping."""
        data: dict[str, Any] = {
            "camera": self.camera,
            "lens": self.lens,
            "focalLength": self.focal_length,
            "aperture": self.aperture,
            "shutterSpeed": self.shutter_speed,
            "iso": self.iso,
            "location": self.location,
            "date": self.date,
        }
        if self.latitude is not None:
            data["latitude"] = self.latitude
        if self.longitude is not None:
            data["longitude"] = self.longitude
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "ExifData":
        """Create from a persisted mapping; missing keys become defaults."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise MalformedPersistedDataError(f"exif must be an object, got {type(data).__name__}")
        return cls(
            camera=str(data.get("camera", "") or ""),
            lens=str(data.get("lens", "") or ""),
            focal_length=str(data.get("focalLength", "") or ""),
            aperture=str(data.get("aperture", "") or ""),
            shutter_speed=str(data.get("shutterSpeed", "") or ""),
            iso=str(data.get("iso", "") or ""),
            location=str(data.get("location", "") or ""),
            date=str(data.get("date", "") or ""),
            latitude=_optional_float(data.get("latitude"), "latitude"),
            longitude=_optional_float(data.get("longitude"), "longitude"),
        )


@dataclass
class Photo:
    """A single gallery photo, the only persisted entity."""

    id: str
    url: str
    title: str
    category: Category
    width: int = 0
    height: int = 0
    rating: int | None = None
    exif: ExifData = field(default_factory=ExifData)

    @property
    def is_inline(self) -> bool:
        """True when the image bytes are embedded in `url` as a data URL."""
        return self.url.startswith(INLINE_URL_PREFIX)

    @property
    def is_horizontal(self) -> bool:
        """Width >= height, with missing sides counted as 0."""
        return (self.width or 0) >= (self.height or 0)

    @property
    def is_vertical(self) -> bool:
        """Height > width, with missing sides counted as 0."""
        return (self.height or 0) > (self.width or 0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted mapping."""
        data: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "category": self.category.value,
            "width": self.width,
            "height": self.height,
            "exif": self.exif.to_dict(),
        }
        if self.rating is not None:
            data["rating"] = self.rating
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Photo":
        """Create from a persisted mapping.

        Raises:
            MalformedPersistedDataError: If the record is not Photo-shaped.
        """
        if not isinstance(data, dict):
            raise MalformedPersistedDataError(f"photo must be an object, got {type(data).__name__}")
        photo_id = data.get("id")
        url = data.get("url")
        if not isinstance(photo_id, str) or not photo_id:
            raise MalformedPersistedDataError(f"photo id missing or invalid: {photo_id!r}")
        if not isinstance(url, str) or not url:
            raise MalformedPersistedDataError(f"photo {photo_id} has no url")
        try:
            category = Category(data.get("category"))
        except ValueError as ex:
            raise MalformedPersistedDataError(f"photo {photo_id} has unknown category") from ex
        if category.is_filter_only:
            raise MalformedPersistedDataError(f"photo {photo_id} stores filter-only category")
        rating = data.get("rating")
        try:
            return cls(
                id=photo_id,
                url=url,
                title=str(data.get("title", "") or ""),
                category=category,
                width=int(data.get("width") or 0),
                height=int(data.get("height") or 0),
                rating=int(rating) if rating is not None else None,
                exif=ExifData.from_dict(data.get("exif")),
            )
        except (TypeError, ValueError, OverflowError) as ex:
            raise MalformedPersistedDataError(f"photo {photo_id}: {ex}") from ex


@dataclass
class FeedSession:
    """Process-wide session context.

    Starts with no location and epoch 0 and lives until the process exits.
    """

    location: GeoCoordinate | None = None
    shuffle_epoch: int = 0

    def bump_shuffle(self) -> int:
        """Advance the shuffle epoch and return the new value."""
        self.shuffle_epoch += 1
        return self.shuffle_epoch


def _optional_float(value: Any, name: str) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise MalformedPersistedDataError(f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as ex:
        raise MalformedPersistedDataError(f"{name} must be a number, got {value!r}") from ex
    if not math.isfinite(number):
        raise MalformedPersistedDataError(f"{name} must be finite, got {value!r}")
    return number
