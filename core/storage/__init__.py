from core.storage.manager import BlockStorageManager
from core.storage.tenant_bucket import TenantBucket
from core.storage.types import ObjectNotFoundError, StorageBackend, StorageError

__all__ = [
    "BlockStorageManager",
    "ObjectNotFoundError",
    "StorageBackend",
    "StorageError",
    "TenantBucket",
]
