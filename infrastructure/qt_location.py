"""QtPositioning-backed location source."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QDateTime, QObject
from PySide6.QtPositioning import QGeoPositionInfo, QGeoPositionInfoSource
from loguru import logger

from core.errors import GeolocationErrorKind
from core.services.geolocation_service import LocationRequest

_ERROR_KINDS: dict[QGeoPositionInfoSource.Error, GeolocationErrorKind] = {
    QGeoPositionInfoSource.Error.AccessError: GeolocationErrorKind.PERMISSION_DENIED,
    QGeoPositionInfoSource.Error.ClosedError: GeolocationErrorKind.POSITION_UNAVAILABLE,
    QGeoPositionInfoSource.Error.UpdateTimeoutError: GeolocationErrorKind.TIMEOUT,
    QGeoPositionInfoSource.Error.UnknownSourceError: GeolocationErrorKind.UNKNOWN,
}


class QtLocationSource(QObject):
    """Single-query adapter around the platform's default position source.

    Only one query is tracked at a time; the resolver guarantees that.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._source = QGeoPositionInfoSource.createDefaultSource(self)
        self._on_position: Callable[[float, float], None] | None = None
        self._on_error: Callable[[GeolocationErrorKind, str], None] | None = None
        if self._source is None:
            logger.info("No Qt positioning backend available")
            return
        logger.info("Qt positioning backend: {}", self._source.sourceName())
        self._source.positionUpdated.connect(self._handle_position)
        self._source.errorOccurred.connect(self._handle_error)

    def is_supported(self) -> bool:
        """True when a default positioning backend exists."""
        return self._source is not None

    def request_position(
        self,
        request: LocationRequest,
        on_position: Callable[[float, float], None],
        on_error: Callable[[GeolocationErrorKind, str], None],
    ) -> None:
        """Issue one query honouring accuracy, timeout and maximum age."""
        if self._source is None:
            on_error(GeolocationErrorKind.UNSUPPORTED, "no positioning backend")
            return

        methods = (
            QGeoPositionInfoSource.PositioningMethod.AllPositioningMethods
            if request.high_accuracy
            else QGeoPositionInfoSource.PositioningMethod.NonSatellitePositioningMethods
        )
        self._source.setPreferredPositioningMethods(methods)

        last = self._source.lastKnownPosition(False)
        if self._is_fresh(last, request.maximum_age_ms):
            coord = last.coordinate()
            logger.debug("Using last known position within maximum age")
            on_position(coord.latitude(), coord.longitude())
            return

        self._on_position = on_position
        self._on_error = on_error
        self._source.requestUpdate(request.timeout_ms)

    @staticmethod
    def _is_fresh(info: QGeoPositionInfo, maximum_age_ms: int) -> bool:
        if not info.isValid() or not info.coordinate().isValid() or maximum_age_ms <= 0:
            return False
        age_ms = info.timestamp().msecsTo(QDateTime.currentDateTimeUtc())
        return 0 <= age_ms <= maximum_age_ms

    def _handle_position(self, info: QGeoPositionInfo) -> None:
        on_position, on_error = self._on_position, self._on_error
        self._clear()
        if on_position is None or on_error is None:
            return
        coord = info.coordinate()
        if not coord.isValid():
            logger.warning("Positioning backend returned an invalid coordinate")
            on_error(GeolocationErrorKind.POSITION_UNAVAILABLE, "invalid coordinate")
            return
        on_position(coord.latitude(), coord.longitude())

    def _handle_error(self, error: QGeoPositionInfoSource.Error) -> None:
        on_error = self._on_error
        self._clear()
        if on_error is None:
            return
        kind = _ERROR_KINDS.get(error, GeolocationErrorKind.UNKNOWN)
        on_error(kind, f"Qt positioning error {error.name}")

    def _clear(self) -> None:
        self._on_position = None
        self._on_error = None
