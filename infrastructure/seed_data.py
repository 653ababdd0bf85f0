"""Default collection shown until the user's own collection has been saved."""

from __future__ import annotations

import random

from core.models import Category, ExifData, Photo

GENERATED_COUNT = 25
JITTER_DEGREES = 10.0
_JITTER_SEED = 20231012


def _base_photos() -> list[Photo]:
    return [
        Photo(
            id="1",
            url="https://picsum.photos/id/16/800/600",
            title="Misty Mountains",
            category=Category.LANDSCAPE,
            width=800,
            height=600,
            rating=5,
            exif=ExifData(
                camera="Leica M11",
                lens="Summilux 35mm",
                focal_length="35mm",
                aperture="f/5.6",
                shutter_speed="1/250s",
                iso="100",
                location="Alps, Switzerland",
                date="2023-10-12",
                latitude=46.8182,
                longitude=8.2275,
            ),
        ),
        Photo(
            id="4",
            url="https://picsum.photos/id/28/900/600",
            title="Deep Forest",
            category=Category.LANDSCAPE,
            width=900,
            height=600,
            rating=4,
            exif=ExifData(
                camera="Canon R5",
                lens="15-35mm",
                focal_length="15mm",
                aperture="f/8",
                shutter_speed="1/4s",
                iso="50",
                location="Oregon, USA",
                date="2023-08-15",
                latitude=43.8041,
                longitude=-120.5542,
            ),
        ),
        Photo(
            id="5",
            url="https://picsum.photos/id/106/800/600",
            title="Neon Rain",
            category=Category.MACRO,
            width=800,
            height=600,
            rating=3,
            exif=ExifData(
                camera="Nikon Z8",
                lens="105mm Macro",
                focal_length="105mm",
                aperture="f/4",
                shutter_speed="1/200s",
                iso="400",
                location="London, UK",
                date="2023-12-01",
                latitude=51.5074,
                longitude=-0.1278,
            ),
        ),
    ]


def seed_photos() -> list[Photo]:
    """Return a fresh copy of the seed collection.

    The three base photos are followed by generated horizontal variants whose
    coordinates are jittered around their base so distance tabs have something
    to sort. The jitter is seeded, so every call returns the same collection.
    """
    base = _base_photos()
    rng = random.Random(_JITTER_SEED)
    generated: list[Photo] = []
    for i in range(GENERATED_COUNT):
        src = base[i % len(base)]
        lat_offset = (rng.random() - 0.5) * JITTER_DEGREES
        lng_offset = (rng.random() - 0.5) * JITTER_DEGREES
        exif = ExifData(**vars(src.exif))
        exif.latitude = (src.exif.latitude or 0.0) + lat_offset
        exif.longitude = (src.exif.longitude or 0.0) + lng_offset
        generated.append(
            Photo(
                id=f"gen-{i}",
                url=f"https://picsum.photos/id/{(i * 13) % 100 + 10}/800/600",
                title=f"{src.title} {i + 1}",
                category=src.category,
                width=800,
                height=600,
                rating=src.rating,
                exif=exif,
            )
        )
    return base + generated
