"""Feed composition: category filtering followed by tab-specific ordering.

`compose` is a pure function of its inputs. It never mutates the collection
it is given and always returns a fresh list. The only declared
nondeterminism is the permutation produced by the shuffle tab.
"""

from __future__ import annotations

from collections.abc import Sequence
import os
import random

from core.geo import photo_distance_km
from core.models import Category, FeedTab, GeoCoordinate, Photo

CURATED_MIN_RATING = 4

# Mixed into every shuffle seed so permutations differ between runs but stay
# stable for one epoch within a run.
_SESSION_SALT = os.urandom(8).hex()


def matches_category(photo: Photo, category: Category) -> bool:
    """Return True if `photo` passes the `category` filter predicate."""
    if category is Category.ALL:
        return True
    if category is Category.HORIZONTAL:
        return photo.is_horizontal
    if category is Category.VERTICAL:
        return photo.is_vertical
    return photo.category == category


def shuffle_rng(shuffle_epoch: int) -> random.Random:
    """Generator for the permutation of `shuffle_epoch` in this process."""
    return random.Random(f"{_SESSION_SALT}:{shuffle_epoch}")


def compose(
    photos: Sequence[Photo],
    category: Category,
    tab: FeedTab,
    geo: GeoCoordinate | None,
    shuffle_epoch: int,
    rng: random.Random | None = None,
) -> list[Photo]:
    """Compose the ordered view for a category/tab combination.

    Args:
        photos: Canonical collection, most recent first.
        category: Category filter (concrete or pseudo category).
        tab: Ordering mode.
        geo: Resolved user position, or None while unresolved.
        shuffle_epoch: Counter whose increment forces a new shuffle permutation.
        rng: Optional generator overriding the per-epoch shuffle generator.

    Returns:
        A new list holding the filtered and ordered photos.
    """
    result = [p for p in photos if matches_category(p, category)]

    if tab is FeedTab.CURATED:
        # sorted() is stable, so equal ratings keep their collection order
        curated = [p for p in result if (p.rating or 0) >= CURATED_MIN_RATING]
        return sorted(curated, key=lambda p: p.rating or 0, reverse=True)

    if tab is FeedTab.SHUFFLE:
        (rng or shuffle_rng(shuffle_epoch)).shuffle(result)
        return result

    if tab.needs_location:
        if geo is None:
            return result
        return _order_by_distance(result, geo, farthest_first=tab is FeedTab.FARAWAY)

    return result


def _order_by_distance(
    photos: list[Photo], origin: GeoCoordinate, farthest_first: bool
) -> list[Photo]:
    """Sort located photos by distance; unlocated photos always trail in input order."""
    decorated: list[tuple[float, Photo]] = []
    unlocated: list[Photo] = []
    for photo in photos:
        if photo.exif.has_coordinates:
            decorated.append((photo_distance_km(photo, origin), photo))
        else:
            unlocated.append(photo)

    decorated.sort(key=lambda x: x[0], reverse=farthest_first)
    return [p for _, p in decorated] + unlocated
