"""Tests for the durable key-value storage backends."""

import pytest

from shared.infrastructure.storage import (
    DjangoStorage,
    FileStorage,
    InMemoryStorage,
    StorageError,
    StorageQuotaExceeded,
    UnreadableValue,
)


@pytest.fixture(params=["memory", "file"])
def backend(request, tmp_path):
    if request.param == "memory":
        return InMemoryStorage()
    return FileStorage(tmp_path / "storage")


def test_missing_key_reads_as_none(backend):
    assert backend.get_item("sommerhus_bookings") is None


def test_set_replaces_whole_value(backend):
    backend.set_item("sommerhus_bookings", "[1]")
    backend.set_item("sommerhus_bookings", "[2, 3]")

    assert backend.get_item("sommerhus_bookings") == "[2, 3]"


def test_remove_is_idempotent(backend):
    backend.set_item("sommerhus_bookings", "[]")

    backend.remove_item("sommerhus_bookings")
    backend.remove_item("sommerhus_bookings")

    assert backend.get_item("sommerhus_bookings") is None


def test_text_that_cannot_be_encoded_is_rejected(backend):
    with pytest.raises(StorageError):
        backend.set_item("sommerhus_bookings", "Hansen\ud800")

    assert backend.get_item("sommerhus_bookings") is None


def test_memory_quota_check_rejects_unencodable_text():
    with pytest.raises(StorageError):
        InMemoryStorage(quota=1000).set_item("k", "\udc80")


def test_file_storage_flags_value_that_is_not_text(tmp_path):
    (tmp_path / "sommerhus_bookings.json").write_bytes(b"\xff\xfe[]")

    with pytest.raises(UnreadableValue) as excinfo:
        FileStorage(tmp_path).get_item("sommerhus_bookings")

    assert excinfo.value.key == "sommerhus_bookings"


def test_memory_quota_rejects_oversized_write():
    storage = InMemoryStorage(quota=30)
    storage.set_item("k", "small")

    with pytest.raises(StorageQuotaExceeded):
        storage.set_item("k", "x" * 100)

    assert storage.get_item("k") == "small"


def test_memory_rejects_non_text():
    with pytest.raises(StorageError):
        InMemoryStorage().set_item("k", b"bytes")


def test_file_storage_leaves_no_temp_files(tmp_path):
    storage = FileStorage(tmp_path)

    storage.set_item("sommerhus_bookings", "æøå")

    assert [p.name for p in tmp_path.iterdir()] == ["sommerhus_bookings.json"]
    assert storage.get_item("sommerhus_bookings") == "æøå"


def test_file_storage_rejects_path_like_keys(tmp_path):
    with pytest.raises(StorageError):
        FileStorage(tmp_path).set_item("../escape", "[]")


def test_file_storage_shared_between_instances(tmp_path):
    FileStorage(tmp_path).set_item("sommerhus_bookings", "[]")

    assert FileStorage(tmp_path).get_item("sommerhus_bookings") == "[]"


@pytest.mark.django_db
def test_django_storage_round_trip():
    from apps.bookings.models import StoredValue

    storage = DjangoStorage()
    storage.set_item("sommerhus_bookings", "[]")
    storage.set_item("sommerhus_bookings", '[{"id": 1}]')

    assert storage.get_item("sommerhus_bookings") == '[{"id": 1}]'
    assert StoredValue.objects.count() == 1

    storage.remove_item("sommerhus_bookings")
    assert storage.get_item("sommerhus_bookings") is None
