"""One-shot, session-cached acquisition of the user's position.

The resolver is decoupled from any positioning backend: platforms provide a
`LocationSource` (see `infrastructure.qt_location` for the Qt one).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from core.errors import (
    GeolocationError,
    GeolocationErrorKind,
    GeolocationUnsupportedError,
    geolocation_error_for,
)
from core.models import FeedSession, GeoCoordinate

ResolvedCallback = Callable[[GeoCoordinate], None]
FailedCallback = Callable[[GeolocationError], None]


@dataclass(frozen=True)
class LocationRequest:
    """Query policy handed to the location source.

    Attributes:
        high_accuracy: False asks for a coarse (network based) fix.
        timeout_ms: Give up after this many milliseconds.
        maximum_age_ms: A platform-cached fix younger than this is acceptable.
    """

    high_accuracy: bool = False
    timeout_ms: int = 5000
    maximum_age_ms: int = 60000


class LocationSource(Protocol):
    """Platform positioning capability."""

    def is_supported(self) -> bool:
        """Return True if the platform can produce a position at all."""
        ...

    def request_position(
        self,
        request: LocationRequest,
        on_position: Callable[[float, float], None],
        on_error: Callable[[GeolocationErrorKind, str], None],
    ) -> None:
        """Issue a single position query; exactly one callback fires later."""
        ...


class GeolocationResolver:
    """Resolves the user's coordinate at most once per session.

    Successful fixes are cached in the `FeedSession` until `invalidate()`.
    Failures are never cached so a later `resolve` retries. Calls made while a
    query is in flight join it instead of issuing another one.
    """

    def __init__(
        self,
        session: FeedSession,
        source: LocationSource | None,
        request: LocationRequest | None = None,
    ) -> None:
        self._session = session
        self._source = source
        self._request = request or LocationRequest()
        self._waiters: list[tuple[ResolvedCallback, FailedCallback]] = []
        self._pending = False
        self._generation = 0

    @property
    def coordinate(self) -> GeoCoordinate | None:
        """Cached coordinate, or None if not resolved yet."""
        return self._session.location

    @property
    def is_pending(self) -> bool:
        return self._pending

    @property
    def request(self) -> LocationRequest:
        return self._request

    def resolve(self, on_resolved: ResolvedCallback, on_failed: FailedCallback) -> None:
        """Deliver the user's coordinate to `on_resolved`, or an error to `on_failed`."""
        cached = self._session.location
        if cached is not None:
            on_resolved(cached)
            return

        if self._source is None or not self._source.is_supported():
            logger.warning("Geolocation unsupported on this platform")
            on_failed(GeolocationUnsupportedError())
            return

        self._waiters.append((on_resolved, on_failed))
        if self._pending:
            return

        self._pending = True
        generation = self._generation
        logger.info(
            "Requesting location (high_accuracy={}, timeout={}ms, maximum_age={}ms)",
            self._request.high_accuracy,
            self._request.timeout_ms,
            self._request.maximum_age_ms,
        )
        self._source.request_position(
            self._request,
            lambda lat, lng: self._on_position(generation, lat, lng),
            lambda kind, message: self._on_error(generation, kind, message),
        )

    def invalidate(self) -> None:
        """Forget the cached coordinate so the next `resolve` queries again."""
        self._session.location = None

    def cancel(self) -> None:
        """Drop the in-flight query; its late answer will be ignored."""
        self._generation += 1
        self._pending = False
        self._waiters.clear()

    def _on_position(self, generation: int, lat: float, lng: float) -> None:
        if generation != self._generation:
            logger.debug("Ignoring stale location answer")
            return
        coordinate = GeoCoordinate(lat=lat, lng=lng)
        self._session.location = coordinate
        logger.info("Location resolved: {:.4f}, {:.4f}", lat, lng)
        for on_resolved, _ in self._take_waiters():
            on_resolved(coordinate)

    def _on_error(self, generation: int, kind: GeolocationErrorKind, message: str) -> None:
        if generation != self._generation:
            logger.debug("Ignoring stale location error: {}", message)
            return
        error = geolocation_error_for(kind, message)
        logger.warning("Geolocation error ({}): {}", kind.value, message)
        for _, on_failed in self._take_waiters():
            on_failed(error)

    def _take_waiters(self) -> list[tuple[ResolvedCallback, FailedCallback]]:
        waiters = self._waiters
        self._waiters = []
        self._pending = False
        return waiters
