from __future__ import annotations

from typing import BinaryIO, Protocol


class BlockStorageProvider(Protocol):
    """Primitive object operations; none of them compose into a transaction.

    Implementations raise ``ObjectNotFoundError`` from ``get_bytes`` for a
    missing key and ``StorageError`` for every other failure.
    """

    backend_name: str

    def exists(self, *, object_key: str) -> bool:
        ...

    def get_bytes(self, *, object_key: str) -> bytes:
        ...

    def put_bytes(self, *, object_key: str, payload: bytes) -> None:
        ...

    def upload_stream(self, *, object_key: str, stream: BinaryIO, size: int) -> None:
        ...

    def delete(self, *, object_key: str) -> None:
        ...

    def ping(self) -> None:
        ...
