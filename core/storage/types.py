from __future__ import annotations

from enum import Enum


class StorageBackend(str, Enum):
    LOCAL = "local"
    S3 = "s3"


class StorageError(Exception):
    """Raised by storage providers for any backend failure."""

    def __init__(self, operation: str, key: str, message: str) -> None:
        super().__init__(f"{operation} {key!r}: {message}")
        self.operation = operation
        self.key = key


class ObjectNotFoundError(StorageError):
    def __init__(self, key: str) -> None:
        super().__init__("get", key, "object not found")
