"""Shared fakes and fixtures for the feed engine tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from core.errors import GeolocationErrorKind, StorageQuotaExceededError
from core.models import Category, ExifData, FeedSession, Photo
from core.services.geolocation_service import GeolocationResolver, LocationRequest


class FakeTimer:
    def __init__(self, due: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Deterministic scheduler; time only moves via `advance`."""

    def __init__(self) -> None:
        self.now = 0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay_ms, callback)
        self.timers.append(timer)
        return timer

    def advance(self, ms: int) -> None:
        self.now += ms
        for timer in sorted(self.timers, key=lambda t: t.due):
            if timer.due <= self.now and not timer.cancelled and not timer.fired:
                timer.fired = True
                timer.callback()

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]


class FakeLocationSource:
    """Location source answering only when the test says so."""

    def __init__(self, supported: bool = True) -> None:
        self.supported = supported
        self.requests: list[LocationRequest] = []
        self._callbacks: list[tuple[Callable, Callable]] = []

    def is_supported(self) -> bool:
        return self.supported

    def request_position(self, request, on_position, on_error) -> None:
        self.requests.append(request)
        self._callbacks.append((on_position, on_error))

    def succeed(self, lat: float, lng: float) -> None:
        on_position, _ = self._callbacks.pop(0)
        on_position(lat, lng)

    def fail(self, kind: GeolocationErrorKind, message: str = "failed") -> None:
        _, on_error = self._callbacks.pop(0)
        on_error(kind, message)


class MemoryStorage:
    """In-memory slot storage with a byte capacity, like browser local storage."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self.slots: dict[str, str] = {}
        self.writes: list[str] = []

    def read(self, slot: str) -> str | None:
        return self.slots.get(slot)

    def write(self, slot: str, text: str) -> None:
        self.writes.append(slot)
        if self.quota_bytes is not None and len(text.encode("utf-8")) > self.quota_bytes:
            raise StorageQuotaExceededError(f"{slot} over quota")
        self.slots[slot] = text


class RecordingListener:
    def __init__(self) -> None:
        self.busy: list[bool] = []
        self.notices: list[str] = []
        self.view_changes = 0
        self.scrolls = 0
        self.focus: list[Photo | None] = []

    def on_busy_changed(self, busy: bool) -> None:
        self.busy.append(busy)

    def on_notice(self, message: str) -> None:
        self.notices.append(message)

    def on_view_changed(self) -> None:
        self.view_changes += 1

    def on_scroll_to_top(self) -> None:
        self.scrolls += 1

    def on_focus_changed(self, photo: Photo | None) -> None:
        self.focus.append(photo)


def build_photo(
    photo_id: str,
    *,
    category: Category = Category.LANDSCAPE,
    width: int = 800,
    height: int = 600,
    rating: int | None = None,
    lat: float | None = None,
    lng: float | None = None,
    inline: bool = False,
) -> Photo:
    url = (
        f"data:image/png;base64,{'A' * 64}"
        if inline
        else f"https://picsum.photos/id/{abs(hash(photo_id)) % 100}/800/600"
    )
    return Photo(
        id=photo_id,
        url=url,
        title=f"Photo {photo_id}",
        category=category,
        width=width,
        height=height,
        rating=rating,
        exif=ExifData(camera="Test Cam", latitude=lat, longitude=lng),
    )


@pytest.fixture
def make_photo() -> Callable[..., Photo]:
    return build_photo


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def location_source() -> FakeLocationSource:
    return FakeLocationSource()


@pytest.fixture
def session() -> FeedSession:
    return FeedSession()


@pytest.fixture
def resolver(session: FeedSession, location_source: FakeLocationSource) -> GeolocationResolver:
    return GeolocationResolver(session, location_source)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()
