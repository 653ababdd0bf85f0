"""loguru setup for the gallery: one rotating file sink, optional console echo."""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Any

from loguru import logger

LOG_FILE_PATTERN = "gallery_{time:YYYYMMDD}.log"
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def get_log_directory(settings: Any | None = None) -> str:
    """Return `logging.dir` from settings, or the per-user default directory."""
    default = str(Path.home() / "AppData" / "Local" / "Lumina" / "logs")
    if settings is None:
        return default
    configured = settings.get("logging.dir")
    if isinstance(configured, str) and configured:
        return str(Path(configured).expanduser())
    return default


def init_logging(log_dir: str | None = None, level: str = "INFO", console: bool = False) -> Path:
    """Route loguru output to a rotating file under `log_dir`.

    Returns:
        The directory the log files are written to.
    """
    log_path = Path(log_dir or get_log_directory())
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(log_path / LOG_FILE_PATTERN),
        format=LOG_FORMAT,
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )
    if console:
        logger.add(sys.stderr, format=LOG_FORMAT, level=level)
    logger.info("Logging to {} at level {}", log_path, level)
    return log_path


def find_latest_log_file(log_dir: str | None = None) -> Path | None:
    """Most recently modified gallery log file, or None if there is none."""
    log_path = Path(log_dir or get_log_directory())
    try:
        candidates = list(log_path.glob("gallery_*.log"))
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.stat().st_mtime)
    except OSError:
        return None
