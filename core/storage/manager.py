from __future__ import annotations

from threading import Lock

from core.settings import get_settings
from core.storage.local_provider import LocalStorageProvider
from core.storage.provider import BlockStorageProvider
from core.storage.s3_provider import S3StorageProvider


class BlockStorageManager:
    _instance: "BlockStorageManager | None" = None
    _lock = Lock()

    def __init__(self, provider: BlockStorageProvider) -> None:
        self._provider = provider

    @classmethod
    def configure(cls, provider: BlockStorageProvider) -> "BlockStorageManager":
        with cls._lock:
            cls._instance = cls(provider)
            return cls._instance

    @classmethod
    def configure_from_settings(cls) -> "BlockStorageManager":
        settings = get_settings()
        if settings.storage_backend == "s3":
            if not settings.s3_bucket_name:
                raise RuntimeError("S3_BUCKET_NAME is required when STORAGE_BACKEND=s3")
            provider: BlockStorageProvider = S3StorageProvider(
                bucket_name=settings.s3_bucket_name,
                region=settings.s3_region,
                endpoint_url=settings.s3_endpoint_url,
                request_timeout_seconds=settings.s3_request_timeout_seconds,
            )
        else:
            provider = LocalStorageProvider(root_dir=settings.storage_local_root)

        return cls.configure(provider)

    @classmethod
    def get_instance(cls) -> "BlockStorageManager":
        if cls._instance is None:
            return cls.configure_from_settings()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._instance = None

    @property
    def provider(self) -> BlockStorageProvider:
        return self._provider
