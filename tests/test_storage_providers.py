from __future__ import annotations

import io
from pathlib import Path

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from core.storage import ObjectNotFoundError, StorageError
from core.storage.local_provider import LocalStorageProvider
from core.storage.s3_provider import S3StorageProvider


def test_local_provider_round_trips_objects(tmp_path: Path):
    provider = LocalStorageProvider(root_dir=str(tmp_path))

    provider.put_bytes(object_key="team-a/block/meta.json.temp", payload=b"{}")

    assert provider.exists(object_key="team-a/block/meta.json.temp")
    assert provider.get_bytes(object_key="team-a/block/meta.json.temp") == b"{}"
    provider.delete(object_key="team-a/block/meta.json.temp")
    assert not provider.exists(object_key="team-a/block/meta.json.temp")


def test_local_provider_missing_object_raises_not_found(tmp_path: Path):
    provider = LocalStorageProvider(root_dir=str(tmp_path))

    with pytest.raises(ObjectNotFoundError):
        provider.get_bytes(object_key="team-a/block/meta.json")


def test_local_provider_delete_of_missing_object_is_a_no_op(tmp_path: Path):
    provider = LocalStorageProvider(root_dir=str(tmp_path))

    provider.delete(object_key="team-a/block/meta.json.temp")


@pytest.mark.parametrize("key", ["../escape", "team-a/../../escape", ""])
def test_local_provider_rejects_keys_outside_root(tmp_path: Path, key: str):
    provider = LocalStorageProvider(root_dir=str(tmp_path))

    with pytest.raises(StorageError):
        provider.put_bytes(object_key=key, payload=b"x")


def test_local_provider_stream_upload_checks_declared_size(tmp_path: Path):
    provider = LocalStorageProvider(root_dir=str(tmp_path))

    with pytest.raises(StorageError):
        provider.upload_stream(object_key="team-a/block/index", stream=io.BytesIO(b"abc"), size=10)

    assert not provider.exists(object_key="team-a/block/index")
    assert list((tmp_path / "team-a" / "block").iterdir()) == []


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class _FakeS3Client:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.calls: list[tuple[str, dict]] = []
        self.offline = False

    def _check(self, operation: str) -> None:
        if self.offline:
            raise EndpointConnectionError(endpoint_url="http://s3.invalid")

    def head_object(self, *, Bucket: str, Key: str):
        self._check("HeadObject")
        if Key not in self.objects:
            raise _client_error("404", "HeadObject")
        return {"ContentLength": len(self.objects[Key])}

    def get_object(self, *, Bucket: str, Key: str):
        self._check("GetObject")
        if Key not in self.objects:
            raise _client_error("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def put_object(self, *, Bucket: str, Key: str, Body, **kwargs):
        self._check("PutObject")
        self.calls.append(("put_object", {"Bucket": Bucket, "Key": Key, **kwargs}))
        self.objects[Key] = Body if isinstance(Body, bytes) else Body.read()

    def delete_object(self, *, Bucket: str, Key: str):
        self._check("DeleteObject")
        self.objects.pop(Key, None)

    def head_bucket(self, *, Bucket: str):
        if Bucket != "blocks":
            raise _client_error("403", "HeadBucket")


def test_s3_provider_maps_missing_objects():
    client = _FakeS3Client()
    provider = S3StorageProvider(bucket_name="blocks", client=client)

    assert provider.exists(object_key="team-a/b/meta.json") is False
    with pytest.raises(ObjectNotFoundError):
        provider.get_bytes(object_key="team-a/b/meta.json")


def test_s3_provider_streams_with_declared_length():
    client = _FakeS3Client()
    provider = S3StorageProvider(bucket_name="blocks", client=client)

    provider.upload_stream(object_key="team-a/b/chunks/000001", stream=io.BytesIO(b"chunk"), size=5)

    assert client.objects["team-a/b/chunks/000001"] == b"chunk"
    assert client.calls[-1][1]["ContentLength"] == 5
    assert provider.get_bytes(object_key="team-a/b/chunks/000001") == b"chunk"


def test_s3_provider_wraps_backend_failures():
    client = _FakeS3Client()
    client.offline = True
    provider = S3StorageProvider(bucket_name="blocks", client=client)

    with pytest.raises(StorageError) as exc_info:
        provider.exists(object_key="team-a/b/meta.json")

    assert not isinstance(exc_info.value, ObjectNotFoundError)
    with pytest.raises(StorageError):
        provider.put_bytes(object_key="team-a/b/meta.json", payload=b"{}")
    with pytest.raises(StorageError):
        provider.delete(object_key="team-a/b/meta.json.temp")


def test_s3_provider_ping_reports_inaccessible_bucket():
    provider = S3StorageProvider(bucket_name="other", client=_FakeS3Client())

    with pytest.raises(StorageError):
        provider.ping()
