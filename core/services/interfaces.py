"""Core service interfaces and shared data structures.

This module defines the scheduling protocol used by timer-driven services
and the result types returned by the persistence layer.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from core.errors import GalleryError
from core.models import Photo


class TimerHandle(Protocol):
    """Handle of a scheduled one-shot callback."""

    def cancel(self) -> None:
        """Prevent the callback from running if it has not run yet."""
        ...


class Scheduler(Protocol):
    """Schedules one-shot callbacks on the owning event loop."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Run `callback` once after `delay_ms` milliseconds."""
        ...


class SaveStatus(str, Enum):
    """Outcome class of a collection save."""

    SAVED = "saved"
    CLEANED = "cleaned"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass
class SaveResult:
    """Outcome of a save operation.

    Attributes:
        status: What happened to the write.
        photos: The collection that is now persisted. For `CLEANED` this is
            the evicted collection callers must reload from; otherwise it is
            the collection that was passed in.
        evicted_ids: Ids removed by quota eviction.
        error: The terminal error for `EXHAUSTED` and `FAILED`.
    """

    status: SaveStatus
    photos: list[Photo]
    evicted_ids: list[str] = field(default_factory=list)
    error: GalleryError | OSError | None = None

    @property
    def ok(self) -> bool:
        """True if the collection (original or cleaned) is durably stored."""
        return self.status in (SaveStatus.SAVED, SaveStatus.CLEANED)
