"""Tests for storage error classification and the GCS backend."""

from pathlib import Path

import pytest
from google.api_core import exceptions as gexc

from src.harness.storage import GcsStorageBackend, classify_storage_error


class TestClassifyStorageError:
    """Tests for classify_storage_error."""

    def test_not_found_from_type(self):
        assert classify_storage_error(gexc.NotFound("bucket missing")) == "not_found"

    def test_conflict_from_type(self):
        assert classify_storage_error(gexc.Conflict("name taken")) == "conflict"

    def test_conflict_from_message(self):
        assert classify_storage_error(Exception("The bucket you tried to create already exists")) == "conflict"

    def test_auth(self):
        assert classify_storage_error(Exception("403 caller does not have storage.buckets.create permission")) == "auth"

    def test_quota(self):
        assert classify_storage_error(Exception("429 Too Many Requests")) == "quota"

    def test_server(self):
        assert classify_storage_error(Exception("503 Service Unavailable")) == "server"

    def test_unknown(self):
        assert classify_storage_error(Exception("something odd")) == "unknown"


class FakeBlob:
    def __init__(self, name, store, error=None):
        self.name = name
        self.store = store
        self.error = error
        self.uploaded_from = None

    def upload_from_filename(self, filename):
        self.uploaded_from = filename
        self.store.uploaded.append((self.name, filename))

    def delete(self):
        if self.error is not None:
            raise self.error
        self.store.deleted.append(self.name)


class FakeBucket:
    def __init__(self, name, store):
        self.name = name
        self.store = store

    def blob(self, name):
        return FakeBlob(name, self.store)

    def delete(self):
        self.store.deleted_buckets.append(self.name)


class FakeClient:
    def __init__(self, blobs=()):
        self.created = []
        self.uploaded = []
        self.deleted = []
        self.deleted_buckets = []
        self._blobs = list(blobs)

    def create_bucket(self, name):
        self.created.append(name)

    def bucket(self, name):
        return FakeBucket(name, self)

    def list_blobs(self, bucket):
        return [FakeBlob(name, self, error) for name, error in self._blobs]


def make_backend(client) -> GcsStorageBackend:
    backend = GcsStorageBackend(project="sample-project")
    backend._client = client
    return backend


def test_upload_uses_base_filename(tmp_path):
    client = FakeClient()
    backend = make_backend(client)
    source = tmp_path / "audio.raw"
    source.write_bytes(b"\x00")

    assert backend.upload("bucket", source) == "audio.raw"
    assert client.uploaded == [("audio.raw", str(source))]


def test_bucket_lifecycle_calls_client():
    client = FakeClient(blobs=[("a.raw", None)])
    backend = make_backend(client)

    backend.create_bucket("bucket")
    assert backend.list_objects("bucket") == ["a.raw"]
    backend.delete_bucket("bucket")

    assert client.created == ["bucket"]
    assert client.deleted_buckets == ["bucket"]


def test_delete_objects_ignores_vanished_objects():
    client = FakeClient(blobs=[("a.raw", None), ("b.wav", gexc.NotFound("gone")), ("c.wav", None)])
    backend = make_backend(client)

    assert backend.delete_objects("bucket", force=True) == 2
    assert client.deleted == ["a.raw", "c.wav"]


def test_delete_objects_force_continues_then_raises():
    client = FakeClient(blobs=[("a.raw", gexc.ServiceUnavailable("down")), ("b.wav", None)])
    backend = make_backend(client)

    with pytest.raises(gexc.ServiceUnavailable):
        backend.delete_objects("bucket", force=True)
    assert client.deleted == ["b.wav"]


def test_delete_objects_without_force_stops_at_first_error():
    client = FakeClient(blobs=[("a.raw", gexc.ServiceUnavailable("down")), ("b.wav", None)])
    backend = make_backend(client)

    with pytest.raises(gexc.ServiceUnavailable):
        backend.delete_objects("bucket", force=False)
    assert client.deleted == []


def test_empty_bucket_delete_returns_zero():
    backend = make_backend(FakeClient())
    assert backend.delete_objects("bucket") == 0
