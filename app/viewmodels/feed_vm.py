"""ViewModel owning the photo collection and the composed, paginated feed."""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from core.errors import GeolocationError
from core.models import Category, FeedSession, FeedTab, GeoCoordinate, Photo, ViewMode
from core.services.feed_composer import compose
from core.services.geolocation_service import GeolocationResolver
from core.services.interfaces import SaveResult, SaveStatus, Scheduler, TimerHandle
from core.services.pagination import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_REVEAL_DELAY_MS,
    PaginationController,
)

DEFAULT_CATEGORY = Category.ALL
DEFAULT_TAB = FeedTab.LATEST

NOTICE_STORAGE_CLEANED = (
    "Local storage is full. Older inline-image entries were discarded to make room "
    "for new photos, and the feed has been reset and reloaded from the cleaned collection."
)
NOTICE_STORAGE_EXHAUSTED = (
    "Local storage is full and nothing could be cleaned up automatically. "
    "Your changes will not survive a restart; please clear local storage manually."
)
NOTICE_STORAGE_FAILED = "Saving failed: photos could not be written to local storage."


class FeedListener(Protocol):
    """Callbacks from the view-model to the presentation layer."""

    def on_busy_changed(self, busy: bool) -> None:
        """Show or hide the transient busy indicator."""
        ...

    def on_notice(self, message: str) -> None:
        """Show a human-readable notice."""
        ...

    def on_view_changed(self) -> None:
        """The visible slice changed; re-read `visible`."""
        ...

    def on_scroll_to_top(self) -> None:
        """A new composition started; scroll the feed to the top."""
        ...

    def on_focus_changed(self, photo: Photo | None) -> None:
        """The photo shown in the single-item viewer changed."""
        ...


class _NullListener:
    def on_busy_changed(self, busy: bool) -> None:
        pass

    def on_notice(self, message: str) -> None:
        pass

    def on_view_changed(self) -> None:
        pass

    def on_scroll_to_top(self) -> None:
        pass

    def on_focus_changed(self, photo: Photo | None) -> None:
        pass


class FeedVM:
    """Feed view-model.

    Mediates between a repository providing the persisted `Photo` collection,
    the geolocation resolver and the presentation layer. It is the only owner
    and mutator of the canonical collection; composed views are fresh lists.
    """

    def __init__(
        self,
        repo,
        *,
        session: FeedSession,
        resolver: GeolocationResolver,
        scheduler: Scheduler,
        listener: FeedListener | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        reveal_delay_ms: int = DEFAULT_REVEAL_DELAY_MS,
        busy_tab_ms: int = 800,
        busy_upsert_ms: int = 500,
    ) -> None:
        """Create a FeedVM.

        Args:
            repo: Repository with `load()` and `save(photos) -> SaveResult`.
            session: Process-wide session (cached location, shuffle epoch).
            resolver: Geolocation resolver bound to the same session.
            scheduler: Timer source for pagination and the busy pulse.
            listener: Presentation callbacks; may be attached later.
            page_size: Items revealed per page.
            reveal_delay_ms: Fallback reveal delay after each reset.
            busy_tab_ms: Busy pulse length after a tab click.
            busy_upsert_ms: Busy pulse length after an upsert.
        """
        self._repo = repo
        self._session = session
        self._resolver = resolver
        self._scheduler = scheduler
        self._listener: FeedListener = listener or _NullListener()
        self._busy_tab_ms = busy_tab_ms
        self._busy_upsert_ms = busy_upsert_ms
        self._pagination = PaginationController(
            scheduler,
            page_size=page_size,
            reveal_delay_ms=reveal_delay_ms,
            on_advanced=self._on_window_advanced,
        )

        self._photos: list[Photo] = []
        self._revision = 0
        self._category = DEFAULT_CATEGORY
        self._tab = DEFAULT_TAB
        self._view_mode = ViewMode.GRID
        self._focused: Photo | None = None
        self._busy = False
        self._busy_timer: TimerHandle | None = None
        self._view: list[Photo] = []
        self._view_key: tuple | None = None
        self._closed = False

    def set_listener(self, listener: FeedListener | None) -> None:
        """Attach the presentation layer."""
        self._listener = listener or _NullListener()

    # ------------------------------------------------------------------ state
    @property
    def photos(self) -> list[Photo]:
        """Copy of the canonical collection, most recent first."""
        return list(self._photos)

    @property
    def category(self) -> Category:
        return self._category

    @property
    def tab(self) -> FeedTab:
        return self._tab

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def shuffle_epoch(self) -> int:
        return self._session.shuffle_epoch

    @property
    def location(self) -> GeoCoordinate | None:
        return self._session.location

    @property
    def focused(self) -> Photo | None:
        """Photo open in the single-item viewer, if any."""
        return self._focused

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def window_size(self) -> int:
        self._compose()
        return self._pagination.window_size

    @property
    def pagination(self) -> PaginationController:
        return self._pagination

    @property
    def view(self) -> list[Photo]:
        """The full composed view for the active category/tab."""
        return list(self._compose())

    @property
    def visible(self) -> list[Photo]:
        """The revealed prefix of the composed view (all of it in map mode)."""
        return self._pagination.visible(self._compose())

    # ------------------------------------------------------------- lifecycle
    def load(self) -> None:
        """Hydrate the collection from the repository and start a composition."""
        self._photos = list(self._repo.load())
        self._revision += 1
        logger.info("Feed loaded with {} photos", len(self._photos))
        self._reset_composition()

    def close(self) -> None:
        """Tear down timers; late asynchronous answers are ignored afterwards."""
        self._closed = True
        self._pagination.close()
        if self._busy_timer is not None:
            self._busy_timer.cancel()
            self._busy_timer = None

    # ------------------------------------------------------- presentation API
    def get_view(self, category: Category, tab: FeedTab) -> list[Photo]:
        """Switch to `category`/`tab` if needed and return the visible slice."""
        self.select_category(category)
        if tab != self._tab:
            self.select_tab(tab)
        return self.visible

    def select_category(self, category: Category) -> None:
        """Filter the feed by `category`."""
        if category == self._category:
            return
        logger.info("Category: {} -> {}", self._category.value, category.value)
        self._category = category
        self._reset_composition()

    def select_tab(self, tab: FeedTab) -> None:
        """Activate `tab`.

        Clicking the shuffle tab always re-randomizes, even when it is already
        active. Distance tabs request the user's location when none is cached;
        until it arrives they keep the collection order.
        """
        self._pulse_busy(self._busy_tab_ms)
        changed = tab != self._tab
        if self._view_mode is ViewMode.MAP:
            self._view_mode = ViewMode.GRID
            self._pagination.suspend(False)
            changed = True
        if tab is FeedTab.SHUFFLE:
            epoch = self._session.bump_shuffle()
            logger.debug("Shuffle epoch -> {}", epoch)
            changed = True

        self._tab = tab
        if changed:
            logger.info("Tab: {}", tab.value)
            self._reset_composition()
        if tab.needs_location and self._session.location is None:
            self._request_location()

    def trigger_shuffle(self) -> None:
        """Re-randomize the feed (switching to the shuffle tab if needed)."""
        self.select_tab(FeedTab.SHUFFLE)

    def request_more(self) -> bool:
        """Reveal one more page; returns False when everything is visible."""
        self._compose()
        return self._pagination.advance()

    def on_sentinel_visible(self) -> bool:
        """Viewport trigger from the presentation layer."""
        self._compose()
        return self._pagination.on_sentinel_visible()

    def set_view_mode(self, mode: ViewMode) -> None:
        """Switch between the paginated grid and the full map presentation."""
        if mode is self._view_mode:
            return
        self._view_mode = mode
        self._pagination.suspend(mode is ViewMode.MAP)
        logger.info("View mode: {}", mode.value)
        self._reset_composition()

    def toggle_view_mode(self) -> None:
        self.set_view_mode(ViewMode.MAP if self._view_mode is ViewMode.GRID else ViewMode.GRID)

    # -------------------------------------------------------------- mutations
    def upsert(self, photo: Photo) -> None:
        """Replace the photo with the same id in place, or insert it as newest.

        A new photo switches the feed back to the default category and tab in
        grid mode so it is visible at the top.

        Raises:
            ValueError: If the photo's category is a filter-only pseudo category.
        """
        if photo.category.is_filter_only:
            raise ValueError(f"category {photo.category.value!r} cannot be stored on a photo")

        self._pulse_busy(self._busy_upsert_ms)
        index = self._index_of(photo.id)
        if index is not None:
            photos = list(self._photos)
            photos[index] = photo
            self._photos = photos
            self._revision += 1
            logger.info("Updated photo {} at index {}", photo.id, index)
            self._refresh_focus(photo)
            self._notify_view_changed()
        else:
            self._photos = [photo] + self._photos
            self._revision += 1
            logger.info("Inserted new photo {} (collection size {})", photo.id, len(self._photos))
            self._category = DEFAULT_CATEGORY
            self._tab = DEFAULT_TAB
            self._view_mode = ViewMode.GRID
            self._pagination.suspend(False)
            self._refresh_focus(photo)
            self._reset_composition()

        self._persist()

    def remove(self, photo_id: str) -> bool:
        """Delete the photo with `photo_id`.

        The presentation layer must have confirmed the delete already.

        Returns:
            True if a photo was removed.
        """
        index = self._index_of(photo_id)
        if index is None:
            logger.warning("Photo {} not found, nothing removed", photo_id)
            return False

        self._photos = self._photos[:index] + self._photos[index + 1 :]
        self._revision += 1
        logger.info("Removed photo {} (collection size {})", photo_id, len(self._photos))
        if self._focused is not None and self._focused.id == photo_id:
            self.clear_focus()
        self._notify_view_changed()
        self._persist()
        return True

    # ------------------------------------------------------------- navigation
    def navigate(self, current_id: str, direction: int) -> Photo | None:
        """Return the neighbour of `current_id` in the composed view.

        Args:
            current_id: Id of the photo currently shown.
            direction: Positive for next, negative for previous.

        Returns:
            The adjacent photo, or None at either end or if `current_id` is not
            part of the view.
        """
        if direction == 0:
            raise ValueError("direction must be non-zero")
        view = self._compose()
        index = next((i for i, p in enumerate(view) if p.id == current_id), None)
        if index is None:
            return None
        target = index + (1 if direction > 0 else -1)
        if 0 <= target < len(view):
            return view[target]
        return None

    def focus(self, photo_id: str) -> Photo | None:
        """Open the photo with `photo_id` in the single-item viewer."""
        index = self._index_of(photo_id)
        if index is None:
            return None
        self._set_focus(self._photos[index])
        return self._focused

    def focus_step(self, direction: int) -> Photo | None:
        """Move the viewer to the next/previous photo of the view; no wraparound."""
        if self._focused is None:
            return None
        target = self.navigate(self._focused.id, direction)
        if target is not None:
            self._set_focus(target)
        return target

    def clear_focus(self) -> None:
        self._set_focus(None)

    # ---------------------------------------------------------------- helpers
    def _compose(self) -> list[Photo]:
        key = (
            self._category,
            self._tab,
            self._session.shuffle_epoch,
            self._session.location,
            self._revision,
        )
        if key != self._view_key:
            self._view = compose(
                self._photos,
                self._category,
                self._tab,
                self._session.location,
                self._session.shuffle_epoch,
            )
            self._view_key = key
            self._pagination.set_total(len(self._view))
        return self._view

    def _reset_composition(self) -> None:
        view = self._compose()
        if self._closed:
            return
        self._pagination.reset(len(view))
        self._listener.on_scroll_to_top()
        self._listener.on_view_changed()

    def _notify_view_changed(self) -> None:
        self._compose()
        if not self._closed:
            self._listener.on_view_changed()

    def _on_window_advanced(self, window: int) -> None:
        logger.debug("Window advanced to {}", window)
        if not self._closed:
            self._listener.on_view_changed()

    def _index_of(self, photo_id: str) -> int | None:
        for i, p in enumerate(self._photos):
            if p.id == photo_id:
                return i
        return None

    def _set_focus(self, photo: Photo | None) -> None:
        if photo is self._focused:
            return
        self._focused = photo
        if not self._closed:
            self._listener.on_focus_changed(photo)

    def _refresh_focus(self, photo: Photo) -> None:
        if self._focused is not None and self._focused.id == photo.id:
            self._set_focus(photo)

    def _pulse_busy(self, duration_ms: int) -> None:
        if self._closed:
            return
        if self._busy_timer is not None:
            self._busy_timer.cancel()
        self._set_busy(True)
        self._busy_timer = self._scheduler.call_later(duration_ms, self._end_busy)

    def _end_busy(self) -> None:
        self._busy_timer = None
        self._set_busy(False)

    def _set_busy(self, busy: bool) -> None:
        if busy == self._busy:
            return
        self._busy = busy
        if not self._closed:
            self._listener.on_busy_changed(busy)

    def _request_location(self) -> None:
        self._resolver.resolve(self._on_location_resolved, self._on_location_failed)

    def _on_location_resolved(self, coordinate: GeoCoordinate) -> None:
        if self._closed:
            return
        logger.info("Feed received location {}", coordinate)
        if self._tab.needs_location:
            self._notify_view_changed()

    def _on_location_failed(self, error: GeolocationError) -> None:
        if self._closed:
            return
        logger.warning("Distance ordering unavailable: {}", error)
        self._listener.on_notice(error.notice)

    def _persist(self) -> None:
        result: SaveResult = self._repo.save(self._photos)
        if result.status is SaveStatus.SAVED:
            return
        if result.status is SaveStatus.CLEANED:
            self._apply_cleanup(result)
            return
        if result.status is SaveStatus.EXHAUSTED:
            logger.error("Storage exhausted, in-memory changes will not persist: {}", result.error)
            self._notice(NOTICE_STORAGE_EXHAUSTED)
            return
        logger.error("Persisting photos failed: {}", result.error)
        self._notice(NOTICE_STORAGE_FAILED)

    def _apply_cleanup(self, result: SaveResult) -> None:
        """Reset the whole feed onto the collection left after quota eviction."""
        logger.warning(
            "Reloading feed after evicting {} inline photos", len(result.evicted_ids)
        )
        self._photos = list(result.photos)
        self._revision += 1
        self._category = DEFAULT_CATEGORY
        self._tab = DEFAULT_TAB
        self._view_mode = ViewMode.GRID
        self._pagination.suspend(False)
        self.clear_focus()
        self._reset_composition()
        self._notice(NOTICE_STORAGE_CLEANED)

    def _notice(self, message: str) -> None:
        if not self._closed:
            self._listener.on_notice(message)
