"""File-backed named slots with a local-storage style capacity limit.

Each slot is one text blob stored as `<dir>/<slot>.json`. Writes that would
exceed the configured capacity, or that hit a full disk or user quota, raise
`StorageQuotaExceededError`; every other OS error propagates unchanged.
"""

from __future__ import annotations

import errno
import os
from pathlib import Path

from loguru import logger

from core.errors import StorageQuotaExceededError

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


def _ensure_dir(p: Path) -> None:
    """Create directory `p` if missing (including parents)."""
    p.mkdir(parents=True, exist_ok=True)


class FileSlotStorage:
    """Durable named text slots in a directory."""

    def __init__(
        self, directory: str | Path, quota_bytes: int | None = DEFAULT_QUOTA_BYTES
    ) -> None:
        self._dir = Path(os.path.expandvars(str(directory))).expanduser()
        self._quota = quota_bytes if quota_bytes and quota_bytes > 0 else None

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def quota_bytes(self) -> int | None:
        return self._quota

    def slot_path(self, slot: str) -> Path:
        """Return the file backing `slot`."""
        return self._dir / f"{slot}.json"

    def read(self, slot: str) -> str | None:
        """Return the text stored in `slot`, or None if it was never written.

        Raises:
            UnicodeDecodeError: If the slot file is not UTF-8 text.
        """
        path = self.slot_path(slot)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write(self, slot: str, text: str) -> None:
        """Atomically replace the contents of `slot` with `text`.

        Raises:
            StorageQuotaExceededError: If `text` does not fit the capacity.
            OSError: For any other storage failure.
        """
        payload = text.encode("utf-8")
        if self._quota is not None:
            others = self._used_bytes(excluding=slot)
            if others + len(payload) > self._quota:
                raise StorageQuotaExceededError(
                    f"slot {slot!r} needs {len(payload)} bytes, "
                    f"{max(0, self._quota - others)} of {self._quota} available"
                )

        _ensure_dir(self._dir)
        path = self.slot_path(slot)
        tmp = path.with_suffix(".tmp")
        try:
            with tmp.open("wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as ex:
            try:
                tmp.unlink()
            except OSError:
                pass
            if ex.errno in _QUOTA_ERRNOS:
                raise StorageQuotaExceededError(f"slot {slot!r}: {ex.strerror}") from ex
            raise
        logger.debug("Wrote slot {} ({} bytes)", slot, len(payload))

    def remove(self, slot: str) -> None:
        """Delete `slot` if present."""
        try:
            self.slot_path(slot).unlink()
        except FileNotFoundError:
            pass

    def _used_bytes(self, excluding: str) -> int:
        if not self._dir.exists():
            return 0
        total = 0
        for p in self._dir.glob("*.json"):
            if p.stem == excluding:
                continue
            try:
                total += p.stat().st_size
            except OSError:
                continue
        return total
