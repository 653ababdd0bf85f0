"""Great-circle distance helpers."""

from __future__ import annotations

import math

from core.models import GeoCoordinate, Photo

EARTH_RADIUS_KM = 6371.0

# Distance given to photos without coordinates so they sort after every real one.
MISSING_LOCATION_KM = 99999.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometres on a spherical earth."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def photo_distance_km(photo: Photo, origin: GeoCoordinate) -> float:
    """Distance from `origin` to `photo`, or `MISSING_LOCATION_KM` without coordinates."""
    exif = photo.exif
    if not exif.has_coordinates:
        return MISSING_LOCATION_KM
    return distance_km(
        origin.lat, origin.lng, exif.latitude, exif.longitude  # type: ignore[arg-type]
    )
