"""Build new `Photo` records from image files for the upload/edit flow.

Reads dimensions and EXIF (camera, lens, exposure, capture date, GPS) with
Pillow. By default the image bytes are embedded as a base64 data URL, which is
what makes such photos candidates for quota eviction later on.
"""

from __future__ import annotations

import base64
from datetime import datetime
import mimetypes
from pathlib import Path
from typing import Any
import uuid

from PIL import Image, UnidentifiedImageError
from loguru import logger

from core.models import Category, ExifData, Photo

try:  # pragma: no cover - optional dependency
    from pillow_heif import register_heif_opener  # type: ignore

    register_heif_opener()
    PIL_HEIF_AVAILABLE = True
except ImportError:  # pragma: no cover - optional dependency
    PIL_HEIF_AVAILABLE = False

# EXIF tag ids
TAG_MAKE = 271
TAG_MODEL = 272
TAG_ORIENTATION = 274
TAG_DATETIME = 306
TAG_EXPOSURE_TIME = 33434
TAG_FNUMBER = 33437
TAG_ISO = 34855
TAG_DATETIME_ORIGINAL = 36867
TAG_FOCAL_LENGTH = 37386
TAG_LENS_MODEL = 42036
IFD_EXIF = 0x8769
IFD_GPS = 0x8825

EXIF_DT_FMT = "%Y:%m:%d %H:%M:%S"


def new_photo_id() -> str:
    """Mint a fresh, never reused photo id."""
    return uuid.uuid4().hex


def _ratio(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def _format_exposure(seconds: float | None) -> str:
    if not seconds or seconds <= 0:
        return ""
    if seconds >= 1:
        return f"{seconds:g}s"
    return f"1/{round(1 / seconds)}s"


def _format_date(value: Any) -> str:
    """EXIF `YYYY:MM:DD HH:MM:SS` to ISO date; other text is kept as is."""
    if not value:
        return ""
    text = str(value).strip().strip("\x00")
    try:
        return datetime.strptime(text, EXIF_DT_FMT).date().isoformat()
    except ValueError:
        return text


def _dms_to_degrees(dms: Any, ref: Any) -> float | None:
    """Convert an EXIF (deg, min, sec) triple and N/S/E/W ref to signed degrees."""
    try:
        degrees, minutes, seconds = (_ratio(v) for v in dms)
    except (TypeError, ValueError):
        return None
    if degrees is None or minutes is None or seconds is None:
        return None
    value = degrees + minutes / 60 + seconds / 3600
    if str(ref or "").strip().upper() in {"S", "W"}:
        value = -value
    return value


def read_exif(image: Image.Image) -> ExifData:
    """Extract `ExifData` from an open Pillow image; missing fields stay empty."""
    exif = image.getexif()
    if not exif:
        return ExifData()
    detail = exif.get_ifd(IFD_EXIF)
    gps = exif.get_ifd(IFD_GPS)

    camera = " ".join(str(exif.get(t, "")).strip("\x00 ") for t in (TAG_MAKE, TAG_MODEL)).strip()
    focal = _ratio(detail.get(TAG_FOCAL_LENGTH))
    fnumber = _ratio(detail.get(TAG_FNUMBER))
    iso = detail.get(TAG_ISO)
    if isinstance(iso, (tuple, list)):
        iso = iso[0] if iso else None

    latitude = longitude = None
    if gps:
        latitude = _dms_to_degrees(gps.get(2), gps.get(1))
        longitude = _dms_to_degrees(gps.get(4), gps.get(3))
        if latitude is None or longitude is None:
            latitude = longitude = None

    return ExifData(
        camera=camera,
        lens=str(detail.get(TAG_LENS_MODEL, "") or "").strip("\x00 "),
        focal_length=f"{focal:g}mm" if focal else "",
        aperture=f"f/{fnumber:g}" if fnumber else "",
        shutter_speed=_format_exposure(_ratio(detail.get(TAG_EXPOSURE_TIME))),
        iso=str(iso) if iso else "",
        date=_format_date(detail.get(TAG_DATETIME_ORIGINAL) or exif.get(TAG_DATETIME)),
        latitude=latitude,
        longitude=longitude,
    )


def encode_data_url(path: Path, image_format: str | None) -> str:
    """Return the file's bytes as a `data:image/...;base64,...` URL."""
    mime = Image.MIME.get(image_format or "") or mimetypes.guess_type(path.name)[0] or "image/jpeg"
    payload = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{payload}"


def create_photo_from_file(
    path: str | Path,
    *,
    title: str | None = None,
    category: Category = Category.LANDSCAPE,
    rating: int | None = None,
    url: str | None = None,
    location: str = "",
) -> Photo:
    """Build a new `Photo` with a fresh id from the image at `path`.

    Args:
        path: Image file to read.
        title: Display title; defaults to the file stem.
        category: Concrete category; pseudo categories are rejected.
        rating: Optional 0-5 rating.
        url: Network URL of an already uploaded copy; when omitted the image
            is embedded inline as a data URL.
        location: Free-text location label.

    Raises:
        ValueError: For a filter-only category, an out-of-range rating or a
            file that is not a readable image.
        OSError: If the file cannot be read.
    """
    if category.is_filter_only:
        raise ValueError(f"category {category.value!r} cannot be stored on a photo")
    if rating is not None and not 0 <= rating <= 5:
        raise ValueError(f"rating must be between 0 and 5, got {rating}")

    file_path = Path(path)
    try:
        with Image.open(file_path) as im:
            width, height = im.size
            if im.getexif().get(TAG_ORIENTATION) in (5, 6, 7, 8):
                width, height = height, width
            exif = read_exif(im)
            image_format = im.format
    except UnidentifiedImageError as ex:
        raise ValueError(f"Not a valid image file: {file_path}") from ex

    exif.location = location
    photo = Photo(
        id=new_photo_id(),
        url=url or encode_data_url(file_path, image_format),
        title=title if title is not None else file_path.stem,
        category=category,
        width=width,
        height=height,
        rating=rating,
        exif=exif,
    )
    logger.info(
        "Created photo {} from {} ({}x{}, inline={})",
        photo.id,
        file_path.name,
        width,
        height,
        photo.is_inline,
    )
    return photo
