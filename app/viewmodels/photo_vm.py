"""Lightweight view model wrapper around `Photo`."""

from __future__ import annotations

from dataclasses import dataclass

from core.geo import MISSING_LOCATION_KM, photo_distance_km
from core.models import GeoCoordinate, Photo


@dataclass
class PhotoVM:
    """Expose convenient properties for list rows and the single-item viewer."""

    record: Photo

    @property
    def title(self) -> str:
        """Title, falling back to the id for untitled photos."""
        return self.record.title or self.record.id

    @property
    def category_label(self) -> str:
        return self.record.category.value.capitalize()

    @property
    def rating_stars(self) -> str:
        """Rating as filled/empty stars, empty string when unrated."""
        rating = self.record.rating
        if rating is None:
            return ""
        rating = max(0, min(5, int(rating)))
        return "★" * rating + "☆" * (5 - rating)

    @property
    def orientation(self) -> str:
        return "vertical" if self.record.is_vertical else "horizontal"

    @property
    def is_inline(self) -> bool:
        """True if the image is stored inline and may be evicted when storage is full."""
        return self.record.is_inline

    @property
    def exposure(self) -> str:
        """Compact exposure summary such as `35mm f/5.6 1/250s ISO 100`."""
        exif = self.record.exif
        parts = [exif.focal_length, exif.aperture, exif.shutter_speed]
        if exif.iso:
            parts.append(f"ISO {exif.iso}")
        return " ".join(p for p in parts if p)

    def distance_label(self, origin: GeoCoordinate | None) -> str:
        """Human distance from `origin`, or empty when unknown."""
        if origin is None:
            return ""
        km = photo_distance_km(self.record, origin)
        if km >= MISSING_LOCATION_KM:
            return ""
        if km < 1:
            return f"{km * 1000:.0f} m"
        return f"{km:,.0f} km"

    def row_text(self, origin: GeoCoordinate | None = None) -> str:
        """Single-line description used by list views."""
        parts = [self.title, self.category_label]
        if self.rating_stars:
            parts.append(self.rating_stars)
        distance = self.distance_label(origin)
        if distance:
            parts.append(distance)
        return "  ·  ".join(parts)
