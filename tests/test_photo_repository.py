"""Tests for JSON collection persistence and quota recovery."""

import json

import pytest

from core.errors import MalformedPersistedDataError, StorageExhaustedError
from core.services.interfaces import SaveStatus
from infrastructure.photo_repository import (
    DEFAULT_SLOT,
    JsonPhotoRepository,
    parse_collection,
    serialize_collection,
)
from infrastructure.seed_data import seed_photos
from infrastructure.slot_storage import FileSlotStorage


def ids(photos):
    return [p.id for p in photos]


def test_load_without_saved_data_returns_seed(memory_storage):
    photos = JsonPhotoRepository(memory_storage).load()
    assert ids(photos) == ids(seed_photos())
    assert len(photos) == 28


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        '{"id": "1"}',
        '[{"id": "1"}]',
        '[{"id": "1", "url": "https://x", "category": "all"}]',
        '[{"id": "1", "url": "https://x", "category": "nope"}]',
        '[{"id": "1", "url": "https://x", "category": "macro"},'
        ' {"id": "1", "url": "https://y", "category": "macro"}]',
        '[{"id": "1", "url": "https://x", "category": "landscape", "width": 1e400}]',
        '[{"id": "1", "url": "https://x", "category": "landscape", "rating": Infinity}]',
        '[{"id": "1", "url": "https://x", "category": "landscape", "height": NaN}]',
        '[{"id": "1", "url": "https://x", "category": "landscape",'
        ' "exif": {"latitude": NaN, "longitude": 0}}]',
        '[{"id": "1", "url": "https://x", "category": "landscape",'
        ' "exif": {"latitude": 0, "longitude": -Infinity}}]',
    ],
)
def test_malformed_data_falls_back_to_seed(memory_storage, text):
    memory_storage.slots[DEFAULT_SLOT] = text
    assert ids(JsonPhotoRepository(memory_storage).load()) == ids(seed_photos())


def test_parse_collection_raises_on_malformed():
    with pytest.raises(MalformedPersistedDataError):
        parse_collection("[1, 2, 3]")


def test_save_then_load_keeps_order_and_fields(memory_storage, make_photo):
    photos = [
        make_photo("b", rating=5, lat=1.5, lng=-2.5),
        make_photo("a", inline=True),
    ]
    repo = JsonPhotoRepository(memory_storage)
    result = repo.save(photos)
    assert result.status is SaveStatus.SAVED
    assert result.ok

    loaded = repo.load()
    assert ids(loaded) == ["b", "a"]
    assert loaded[0].rating == 5
    assert loaded[0].exif.latitude == 1.5
    assert loaded[1].rating is None
    assert loaded[1].is_inline


def test_persisted_shape_uses_camel_case(memory_storage, make_photo):
    photo = make_photo("x")
    photo.exif.focal_length = "35mm"
    JsonPhotoRepository(memory_storage).save([photo])
    raw = json.loads(memory_storage.slots[DEFAULT_SLOT])
    assert raw[0]["exif"]["focalLength"] == "35mm"
    assert "latitude" not in raw[0]["exif"]


def test_quota_failure_evicts_inline_photos(memory_storage, make_photo):
    network = [make_photo("n1"), make_photo("n2"), make_photo("n3")]
    inline = [make_photo("i1", inline=True), make_photo("i2", inline=True)]
    collection = [inline[0], network[0], network[1], inline[1], network[2]]
    memory_storage.quota_bytes = len(serialize_collection(network).encode("utf-8"))

    result = JsonPhotoRepository(memory_storage).save(collection)

    assert result.status is SaveStatus.CLEANED
    assert ids(result.photos) == ["n1", "n2", "n3"]
    assert result.evicted_ids == ["i1", "i2"]
    persisted = parse_collection(memory_storage.slots[DEFAULT_SLOT])
    assert not any(p.is_inline for p in persisted)
    assert ids(persisted) == ["n1", "n2", "n3"]


def test_quota_failure_without_inline_photos_is_exhausted(memory_storage, make_photo):
    collection = [make_photo("n1"), make_photo("n2")]
    memory_storage.quota_bytes = 10

    result = JsonPhotoRepository(memory_storage).save(collection)

    assert result.status is SaveStatus.EXHAUSTED
    assert isinstance(result.error, StorageExhaustedError)
    assert ids(result.photos) == ["n1", "n2"]
    assert DEFAULT_SLOT not in memory_storage.slots
    # exactly one attempt, no retry loop
    assert len(memory_storage.writes) == 1


def test_only_inline_collection_is_exhausted_after_cleanup_fails(memory_storage, make_photo):
    collection = [make_photo("i1", inline=True), make_photo("i2", inline=True)]
    memory_storage.quota_bytes = 1

    result = JsonPhotoRepository(memory_storage).save(collection)

    # the empty cleaned collection still does not fit a 1-byte slot
    assert result.status is SaveStatus.EXHAUSTED
    assert len(memory_storage.writes) == 2


def test_retry_failure_is_exhausted(memory_storage, make_photo):
    collection = [make_photo("i1", inline=True), make_photo("n1")]
    memory_storage.quota_bytes = 5

    result = JsonPhotoRepository(memory_storage).save(collection)

    assert result.status is SaveStatus.EXHAUSTED
    assert not result.ok
    assert ids(result.photos) == ["i1", "n1"]


def test_other_write_errors_are_contained(memory_storage, make_photo, monkeypatch):
    def write(slot, text):
        raise PermissionError("read-only")

    monkeypatch.setattr(memory_storage, "write", write)
    result = JsonPhotoRepository(memory_storage).save([make_photo("a")])
    assert result.status is SaveStatus.FAILED
    assert isinstance(result.error, PermissionError)


def test_read_errors_fall_back_to_seed(memory_storage, monkeypatch):
    def read(slot):
        raise OSError("disk gone")

    monkeypatch.setattr(memory_storage, "read", read)
    assert ids(JsonPhotoRepository(memory_storage).load()) == ids(seed_photos())


def test_seed_is_stable_and_unique():
    first, second = seed_photos(), seed_photos()
    assert ids(first) == ids(second)
    assert [p.exif.latitude for p in first] == [p.exif.latitude for p in second]
    assert len(set(ids(first))) == len(first)
    assert all(p.is_horizontal for p in first)
    assert first[0] is not second[0]


def test_only_inline_collection_cleanup_empties_collection(memory_storage, make_photo):
    collection = [make_photo("i1", inline=True), make_photo("i2", inline=True)]
    memory_storage.quota_bytes = len("[]")

    result = JsonPhotoRepository(memory_storage).save(collection)

    assert result.status is SaveStatus.CLEANED
    assert result.photos == []
    assert result.evicted_ids == ["i1", "i2"]
    assert memory_storage.slots[DEFAULT_SLOT] == "[]"
    assert len(memory_storage.writes) == 2


def test_undecodable_slot_file_falls_back_to_seed(tmp_path):
    storage = FileSlotStorage(tmp_path)
    storage.slot_path(DEFAULT_SLOT).write_bytes(b"\xff\xfe[garbage")
    assert ids(JsonPhotoRepository(storage).load()) == ids(seed_photos())


def test_finite_coordinates_survive_load(memory_storage):
    memory_storage.slots[DEFAULT_SLOT] = (
        '[{"id": "z", "url": "https://x", "category": "landscape",'
        ' "exif": {"latitude": 0, "longitude": -0.0}}]'
    )
    loaded = JsonPhotoRepository(memory_storage).load()
    assert ids(loaded) == ["z"]
    assert loaded[0].exif.has_coordinates
