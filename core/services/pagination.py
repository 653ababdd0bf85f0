"""Progressive reveal of a composed feed.

Two independent producers advance the window: the viewport sentinel and a
one-shot fallback timer armed on every reset. Both go through the same
idempotent `advance`, so whichever fires second is a no-op once the window
has reached the end of the view.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from loguru import logger

from core.services.interfaces import Scheduler, TimerHandle

DEFAULT_PAGE_SIZE = 9
DEFAULT_REVEAL_DELAY_MS = 3000

T = TypeVar("T")


class PaginationController:
    """Windowing over a composed view, reset whenever a new composition starts."""

    def __init__(
        self,
        scheduler: Scheduler,
        page_size: int = DEFAULT_PAGE_SIZE,
        reveal_delay_ms: int = DEFAULT_REVEAL_DELAY_MS,
        on_advanced: Callable[[int], None] | None = None,
    ) -> None:
        """Create a controller.

        Args:
            scheduler: Source of the fallback timer.
            page_size: Items revealed per page.
            reveal_delay_ms: Delay between a reset and the fallback advance.
            on_advanced: Called with the new window size after every advance.
        """
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._scheduler = scheduler
        self._page_size = page_size
        self._reveal_delay_ms = reveal_delay_ms
        self._on_advanced = on_advanced
        self._window = page_size
        self._total = 0
        self._suspended = False
        self._generation = 0
        self._timer: TimerHandle | None = None

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def window_size(self) -> int:
        """Number of revealed items; never larger than the view."""
        if self._suspended:
            return self._total
        return min(self._window, self._total)

    @property
    def total(self) -> int:
        return self._total

    @property
    def is_suspended(self) -> bool:
        return self._suspended

    @property
    def generation(self) -> int:
        """Identity of the current composition; bumped by every reset."""
        return self._generation

    def reset(self, total: int) -> None:
        """Start a new composition of `total` items and re-arm the fallback timer."""
        self._cancel_timer()
        self._generation += 1
        self._window = self._page_size
        self._total = max(0, total)
        generation = self._generation
        self._timer = self._scheduler.call_later(
            self._reveal_delay_ms, lambda: self._on_fallback_timer(generation)
        )
        logger.debug("Pagination reset: total={} generation={}", self._total, generation)

    def set_total(self, total: int) -> None:
        """Update the view length without starting a new composition."""
        self._total = max(0, total)

    def suspend(self, suspended: bool) -> None:
        """Suspend pagination (whole view exposed, sentinel ignored) or resume it."""
        self._suspended = suspended

    def advance(self) -> bool:
        """Reveal one more page, clamped to the view length.

        Returns:
            True if the window grew, False if it was already complete.
        """
        if self._suspended or self.window_size >= self._total:
            return False
        self._window = min(self.window_size + self._page_size, self._total)
        logger.debug("Pagination advanced to {}/{}", self._window, self._total)
        if self._on_advanced is not None:
            self._on_advanced(self._window)
        return True

    def on_sentinel_visible(self) -> bool:
        """Viewport trigger: the sentinel below the last item became visible."""
        if self._suspended:
            return False
        return self.advance()

    def visible(self, view: Sequence[T]) -> list[T]:
        """Return the revealed prefix of `view`."""
        return list(view[: self.window_size])

    def close(self) -> None:
        """Cancel the pending fallback timer."""
        self._cancel_timer()
        self._generation += 1

    def _on_fallback_timer(self, generation: int) -> None:
        if generation != self._generation:
            # superseded composition
            return
        self._timer = None
        self.advance()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
