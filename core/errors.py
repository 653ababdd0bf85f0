"""Error taxonomy shared by storage, geolocation and the feed view-model."""

from __future__ import annotations

from enum import Enum


class GalleryError(Exception):
    """Base class for all gallery engine errors."""


class MalformedPersistedDataError(GalleryError):
    """Saved collection exists but is not a sequence of Photo-shaped records."""


class StorageQuotaExceededError(GalleryError):
    """The durable slot rejected a write for exceeding its capacity.

    Carries the same recognizable name/code pair browsers use for local
    storage so callers never need a catch-all to detect it.
    """

    name = "QuotaExceededError"
    code = 22


class StorageExhaustedError(GalleryError):
    """Quota recovery was impossible or insufficient; the persist path is dead.

    In-memory state is still correct but will not survive a restart.
    """


class GeolocationErrorKind(str, Enum):
    """Failure classes reported by a location source."""

    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


class GeolocationError(GalleryError):
    """Location could not be resolved; feeds degrade to non-geo ordering."""

    kind = GeolocationErrorKind.UNKNOWN
    notice = "Unable to determine your location."

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.notice)


class GeolocationPermissionDeniedError(GeolocationError):
    kind = GeolocationErrorKind.PERMISSION_DENIED
    notice = "Location permission was denied, so photos cannot be sorted by distance."


class GeolocationUnavailableError(GeolocationError):
    kind = GeolocationErrorKind.POSITION_UNAVAILABLE
    notice = "Location information is unavailable."


class GeolocationTimeoutError(GeolocationError):
    kind = GeolocationErrorKind.TIMEOUT
    notice = "Timed out while getting your location."


class GeolocationUnsupportedError(GeolocationError):
    kind = GeolocationErrorKind.UNSUPPORTED
    notice = "This platform does not support geolocation."


_GEO_ERRORS: dict[GeolocationErrorKind, type[GeolocationError]] = {
    cls.kind: cls
    for cls in (
        GeolocationError,
        GeolocationPermissionDeniedError,
        GeolocationUnavailableError,
        GeolocationTimeoutError,
        GeolocationUnsupportedError,
    )
}


def geolocation_error_for(kind: GeolocationErrorKind, message: str = "") -> GeolocationError:
    """Build the `GeolocationError` subclass matching `kind`."""
    return _GEO_ERRORS.get(kind, GeolocationError)(message)
