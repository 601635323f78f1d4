from __future__ import annotations

from typing import Any, BinaryIO

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from core.storage.provider import BlockStorageProvider
from core.storage.types import ObjectNotFoundError, StorageBackend, StorageError

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


def _is_not_found(err: Exception) -> bool:
    if isinstance(err, ClientError):
        code = err.response.get("Error", {}).get("Code", "")
        return code in _NOT_FOUND_CODES
    return False


class S3StorageProvider(BlockStorageProvider):
    backend_name = StorageBackend.S3.value

    def __init__(
        self,
        *,
        bucket_name: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        request_timeout_seconds: float = 30,
        client: Any | None = None,
    ) -> None:
        self._bucket = bucket_name
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            config=BotoConfig(
                connect_timeout=request_timeout_seconds,
                read_timeout=request_timeout_seconds,
                retries={"max_attempts": 5, "mode": "standard"},
            ),
        )

    @property
    def bucket_name(self) -> str:
        return self._bucket

    def exists(self, *, object_key: str) -> bool:
        try:
            self._client.head_object(Bucket=self._bucket, Key=object_key)
            return True
        except (ClientError, BotoCoreError) as err:
            if _is_not_found(err):
                return False
            raise StorageError("exists", object_key, str(err)) from err

    def get_bytes(self, *, object_key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=object_key)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as err:
            if _is_not_found(err):
                raise ObjectNotFoundError(object_key) from err
            raise StorageError("get", object_key, str(err)) from err

    def put_bytes(self, *, object_key: str, payload: bytes) -> None:
        try:
            self._client.put_object(Bucket=self._bucket, Key=object_key, Body=payload)
        except (ClientError, BotoCoreError) as err:
            raise StorageError("put", object_key, str(err)) from err

    def upload_stream(self, *, object_key: str, stream: BinaryIO, size: int) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=object_key,
                Body=stream,
                ContentLength=size,
            )
        except (ClientError, BotoCoreError) as err:
            raise StorageError("upload", object_key, str(err)) from err

    def delete(self, *, object_key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=object_key)
        except (ClientError, BotoCoreError) as err:
            raise StorageError("delete", object_key, str(err)) from err

    def ping(self) -> None:
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except (ClientError, BotoCoreError) as err:
            raise StorageError("ping", self._bucket, str(err)) from err
