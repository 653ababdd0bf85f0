"""JSON persistence for the photo collection.

The whole collection lives in a single storage slot. Loading never fails:
missing or malformed data falls back to the seed collection. Saving handles
a full slot by evicting inline (base64) photos and retrying once; this trades
old inline test data for room to store new network-referenced photos and is
irreversible.
"""

from __future__ import annotations

from collections.abc import Iterable
import json
from typing import Protocol

from loguru import logger

from core.errors import (
    MalformedPersistedDataError,
    StorageExhaustedError,
    StorageQuotaExceededError,
)
from core.models import Photo
from core.services.interfaces import SaveResult, SaveStatus
from infrastructure.seed_data import seed_photos

DEFAULT_SLOT = "lumina_photos"


class SlotStorage(Protocol):
    """Durable storage holding named text slots."""

    def read(self, slot: str) -> str | None:
        """Return slot text or None when absent."""
        ...

    def write(self, slot: str, text: str) -> None:
        """Replace slot text; raise `StorageQuotaExceededError` when full."""
        ...


def parse_collection(text: str) -> list[Photo]:
    """Parse serialized collection text.

    Raises:
        MalformedPersistedDataError: If the text is not a JSON array of
            Photo-shaped records or holds duplicate ids.
    """
    try:
        raw = json.loads(text)
    except ValueError as ex:
        raise MalformedPersistedDataError(f"invalid JSON: {ex}") from ex
    if not isinstance(raw, list):
        raise MalformedPersistedDataError(f"expected a JSON array, got {type(raw).__name__}")
    photos = [Photo.from_dict(item) for item in raw]
    seen: set[str] = set()
    for photo in photos:
        if photo.id in seen:
            raise MalformedPersistedDataError(f"duplicate photo id {photo.id!r}")
        seen.add(photo.id)
    return photos


def serialize_collection(photos: Iterable[Photo]) -> str:
    """Serialize photos to compact JSON text."""
    return json.dumps([p.to_dict() for p in photos], ensure_ascii=False, separators=(",", ":"))


class JsonPhotoRepository:
    """Load and save the photo collection in one JSON slot."""

    def __init__(self, storage: SlotStorage, slot: str = DEFAULT_SLOT) -> None:
        self._storage = storage
        self._slot = slot

    @property
    def slot(self) -> str:
        return self._slot

    def load(self) -> list[Photo]:
        """Return the saved collection, or the seed collection if none is usable."""
        try:
            text = self._storage.read(self._slot)
        except OSError as ex:
            logger.error("Failed to read photos from storage: {}", ex)
            return seed_photos()
        except UnicodeDecodeError as ex:
            logger.error("Saved photos in slot {} are not valid UTF-8: {}", self._slot, ex)
            return seed_photos()
        if text is None:
            logger.info("No saved photos in slot {}, using seed collection", self._slot)
            return seed_photos()
        try:
            photos = parse_collection(text)
        except MalformedPersistedDataError as ex:
            logger.error("Failed to load photos from storage: {}", ex)
            return seed_photos()
        logger.info("Loaded {} photos from slot {}", len(photos), self._slot)
        return photos

    def save(self, photos: Iterable[Photo]) -> SaveResult:
        """Persist `photos`, running quota recovery if the slot is full."""
        items = list(photos)
        try:
            self._write(items)
            return SaveResult(status=SaveStatus.SAVED, photos=items)
        except StorageQuotaExceededError as ex:
            logger.warning("Storage quota exceeded ({}), trying to evict inline images", ex)
            return self._recover_from_quota(items)
        except OSError as ex:
            logger.error("Failed to save photos to storage: {}", ex)
            return SaveResult(status=SaveStatus.FAILED, photos=items, error=ex)

    def _recover_from_quota(self, photos: list[Photo]) -> SaveResult:
        keep = [p for p in photos if not p.is_inline]
        evict = [p for p in photos if p.is_inline]
        if not evict:
            logger.error("Storage exhausted and no inline images left to evict")
            return SaveResult(
                status=SaveStatus.EXHAUSTED,
                photos=photos,
                error=StorageExhaustedError("storage full and nothing can be cleaned up"),
            )

        evicted_ids = [p.id for p in evict]
        try:
            self._write(keep)
        except (StorageQuotaExceededError, OSError) as ex:
            logger.error("Failed to save even after evicting {} inline images: {}", len(evict), ex)
            return SaveResult(
                status=SaveStatus.EXHAUSTED,
                photos=photos,
                error=StorageExhaustedError(f"save failed after cleanup: {ex}"),
            )
        logger.warning("Evicted {} inline images to free storage: {}", len(evict), evicted_ids)
        return SaveResult(status=SaveStatus.CLEANED, photos=keep, evicted_ids=evicted_ids)

    def _write(self, photos: list[Photo]) -> None:
        self._storage.write(self._slot, serialize_collection(photos))
