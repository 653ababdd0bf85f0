"""Tests for feed composition (filtering and tab ordering)."""

import random

import pytest

from core.geo import photo_distance_km
from core.models import Category, FeedTab, GeoCoordinate
from core.services.feed_composer import compose, matches_category


@pytest.fixture
def mixed(make_photo):
    return [
        make_photo("h1", category=Category.LANDSCAPE, width=800, height=600, rating=3),
        make_photo("v1", category=Category.PORTRAIT, width=600, height=900, rating=5),
        make_photo("sq", category=Category.MACRO, width=500, height=500, rating=4),
        make_photo("nodim", category=Category.STREET, width=0, height=0),
        make_photo("v2", category=Category.LANDSCAPE, width=400, height=1000, rating=4),
    ]


def ids(photos):
    return [p.id for p in photos]


def test_all_keeps_everything(mixed):
    assert ids(compose(mixed, Category.ALL, FeedTab.LATEST, None, 0)) == ids(mixed)


def test_horizontal_includes_square_and_missing_dimensions(mixed):
    result = compose(mixed, Category.HORIZONTAL, FeedTab.LATEST, None, 0)
    assert ids(result) == ["h1", "sq", "nodim"]


def test_vertical_requires_height_greater_than_width(mixed):
    assert ids(compose(mixed, Category.VERTICAL, FeedTab.LATEST, None, 0)) == ["v1", "v2"]


def test_concrete_category_matches_exactly(mixed):
    assert ids(compose(mixed, Category.LANDSCAPE, FeedTab.LATEST, None, 0)) == ["h1", "v2"]


def test_matches_category_predicate(make_photo):
    p = make_photo("x", category=Category.MACRO, width=10, height=20)
    assert matches_category(p, Category.ALL)
    assert matches_category(p, Category.VERTICAL)
    assert not matches_category(p, Category.HORIZONTAL)
    assert not matches_category(p, Category.LANDSCAPE)


def test_curated_scenario(make_photo):
    photos = [make_photo("r5", rating=5), make_photo("r3", rating=3), make_photo("r4", rating=4)]
    assert ids(compose(photos, Category.ALL, FeedTab.CURATED, None, 0)) == ["r5", "r4"]


def test_curated_is_stable_and_non_increasing(make_photo):
    photos = [
        make_photo("a", rating=4),
        make_photo("b", rating=5),
        make_photo("c"),
        make_photo("d", rating=4),
        make_photo("e", rating=5),
    ]
    result = compose(photos, Category.ALL, FeedTab.CURATED, None, 0)
    assert ids(result) == ["b", "e", "a", "d"]
    assert all((p.rating or 0) >= 4 for p in result)
    ratings = [p.rating for p in result]
    assert ratings == sorted(ratings, reverse=True)


def test_latest_preserves_collection_order(mixed):
    result = compose(mixed, Category.ALL, FeedTab.LATEST, GeoCoordinate(1, 1), 7)
    assert ids(result) == ids(mixed)
    assert result is not mixed


def test_compose_is_pure_and_does_not_mutate(mixed):
    before = ids(mixed)
    geo = GeoCoordinate(10.0, 10.0)
    for tab in (FeedTab.CURATED, FeedTab.LATEST, FeedTab.NEARBY, FeedTab.FARAWAY):
        first = compose(mixed, Category.ALL, tab, geo, 3)
        second = compose(mixed, Category.ALL, tab, geo, 3)
        assert ids(first) == ids(second)
    assert ids(mixed) == before


def test_nearby_scenario(make_photo):
    a = make_photo("A", lat=0.0, lng=0.0)
    b = make_photo("B")
    result = compose([b, a], Category.ALL, FeedTab.NEARBY, GeoCoordinate(0.0, 0.0), 0)
    assert ids(result) == ["A", "B"]


@pytest.fixture
def located(make_photo):
    return [
        make_photo("none1"),
        make_photo("london", lat=51.5074, lng=-0.1278),
        make_photo("oregon", lat=43.8041, lng=-120.5542),
        make_photo("none2"),
        make_photo("alps", lat=46.8182, lng=8.2275),
    ]


def test_nearby_orders_by_ascending_distance(located):
    user = GeoCoordinate(48.8566, 2.3522)  # Paris
    result = compose(located, Category.ALL, FeedTab.NEARBY, user, 0)
    assert ids(result) == ["london", "alps", "oregon", "none1", "none2"]
    with_coords = [p for p in result if p.exif.has_coordinates]
    distances = [photo_distance_km(p, user) for p in with_coords]
    assert distances == sorted(distances)


def test_faraway_reverses_distance_but_keeps_unlocated_last(located):
    user = GeoCoordinate(48.8566, 2.3522)
    result = compose(located, Category.ALL, FeedTab.FARAWAY, user, 0)
    assert ids(result) == ["oregon", "alps", "london", "none1", "none2"]


def test_distance_tabs_without_location_keep_order(located):
    for tab in (FeedTab.NEARBY, FeedTab.FARAWAY):
        assert ids(compose(located, Category.ALL, tab, None, 0)) == ids(located)


def test_shuffle_is_a_permutation(make_photo):
    photos = [make_photo(str(i)) for i in range(30)]
    result = compose(photos, Category.ALL, FeedTab.SHUFFLE, None, 1)
    assert sorted(ids(result)) == sorted(ids(photos))
    assert ids(photos) == [str(i) for i in range(30)]


def test_shuffle_same_epoch_is_stable_and_new_epoch_reshuffles(make_photo):
    photos = [make_photo(str(i)) for i in range(30)]
    first = ids(compose(photos, Category.ALL, FeedTab.SHUFFLE, None, 1))
    assert ids(compose(photos, Category.ALL, FeedTab.SHUFFLE, None, 1)) == first
    others = [ids(compose(photos, Category.ALL, FeedTab.SHUFFLE, None, e)) for e in range(2, 6)]
    assert any(o != first for o in others)


def test_shuffle_accepts_explicit_rng(make_photo):
    photos = [make_photo(str(i)) for i in range(10)]
    a = compose(photos, Category.ALL, FeedTab.SHUFFLE, None, 0, rng=random.Random(42))
    b = compose(photos, Category.ALL, FeedTab.SHUFFLE, None, 99, rng=random.Random(42))
    assert ids(a) == ids(b)


def test_shuffle_still_filters_deterministically(mixed):
    result = compose(mixed, Category.VERTICAL, FeedTab.SHUFFLE, None, 5)
    assert sorted(ids(result)) == ["v1", "v2"]


def test_non_finite_coordinates_sort_as_unlocated(make_photo):
    far = make_photo("far", lat=50.0, lng=50.0)
    bad = make_photo("nan", lat=float("nan"), lng=0.0)
    near = make_photo("near", lat=0.0, lng=0.0)
    user = GeoCoordinate(0.0, 0.0)
    assert not bad.exif.has_coordinates
    assert ids(compose([far, bad, near], Category.ALL, FeedTab.NEARBY, user, 0)) == [
        "near",
        "far",
        "nan",
    ]
    assert ids(compose([far, bad, near], Category.ALL, FeedTab.FARAWAY, user, 0)) == [
        "far",
        "near",
        "nan",
    ]
