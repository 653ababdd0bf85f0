from __future__ import annotations

from pathlib import Path
import sys

from PySide6.QtWidgets import QApplication
from loguru import logger

from app.viewmodels.feed_vm import FeedVM
from app.views.feed_window import FeedWindow
from app.views.qt_scheduler import QtScheduler
from core.models import FeedSession
from core.services.geolocation_service import GeolocationResolver, LocationRequest
from infrastructure.logging import get_log_directory, init_logging
from infrastructure.photo_repository import JsonPhotoRepository
from infrastructure.qt_location import QtLocationSource
from infrastructure.settings import JsonSettings, load_feed_settings
from infrastructure.slot_storage import FileSlotStorage

BASE_DIR = Path(__file__).parent


def main() -> int:
    settings_path = BASE_DIR / "settings.json"
    settings = JsonSettings(settings_path) if settings_path.exists() else None
    init_logging(
        get_log_directory(settings),
        level=str(settings.get("logging.level", "INFO")) if settings else "INFO",
        console=bool(settings.get("logging.console", False)) if settings else False,
    )
    feed_settings = load_feed_settings(settings)
    logger.info("Starting Lumina with {}", feed_settings)

    app = QApplication(sys.argv)

    storage = FileSlotStorage(feed_settings.storage_dir, feed_settings.storage_quota_bytes)
    repo = JsonPhotoRepository(storage, slot=feed_settings.storage_slot)

    session = FeedSession()
    resolver = GeolocationResolver(
        session,
        QtLocationSource(app),
        LocationRequest(
            high_accuracy=feed_settings.geo_high_accuracy,
            timeout_ms=feed_settings.geo_timeout_ms,
            maximum_age_ms=feed_settings.geo_maximum_age_ms,
        ),
    )

    vm = FeedVM(
        repo,
        session=session,
        resolver=resolver,
        scheduler=QtScheduler(app),
        page_size=feed_settings.page_size,
        reveal_delay_ms=feed_settings.reveal_delay_ms,
        busy_tab_ms=feed_settings.busy_tab_ms,
        busy_upsert_ms=feed_settings.busy_upsert_ms,
    )

    win = FeedWindow(vm)
    vm.load()
    win.statusBar().showMessage("Ready", 2000)
    win.show()

    code = app.exec()
    vm.close()
    resolver.cancel()
    logger.info("Lumina exited with code {}", code)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
