from __future__ import annotations

import shutil
from pathlib import Path, PurePosixPath
from typing import BinaryIO
from uuid import uuid4

from core.storage.provider import BlockStorageProvider
from core.storage.types import ObjectNotFoundError, StorageBackend, StorageError


def _safe_join(root: Path, key: str) -> Path:
    parts = [p for p in PurePosixPath(key).parts if p not in {"/", ""}]
    if not parts or any(p in {"..", "."} for p in parts):
        raise StorageError("resolve", key, "invalid storage key")
    return root.joinpath(*parts)


class LocalStorageProvider(BlockStorageProvider):
    backend_name = StorageBackend.LOCAL.value

    def __init__(self, root_dir: str) -> None:
        self._root = Path(root_dir)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def resolve_path(self, object_key: str) -> Path:
        return _safe_join(self._root, object_key)

    def exists(self, *, object_key: str) -> bool:
        return self.resolve_path(object_key).is_file()

    def get_bytes(self, *, object_key: str) -> bytes:
        file_path = self.resolve_path(object_key)
        try:
            return file_path.read_bytes()
        except FileNotFoundError as err:
            raise ObjectNotFoundError(object_key) from err
        except OSError as err:
            raise StorageError("get", object_key, str(err)) from err

    def put_bytes(self, *, object_key: str, payload: bytes) -> None:
        file_path = self.resolve_path(object_key)
        tmp_path = file_path.with_name(f".{file_path.name}.{uuid4().hex}.part")
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(payload)
            tmp_path.replace(file_path)
        except OSError as err:
            tmp_path.unlink(missing_ok=True)
            raise StorageError("put", object_key, str(err)) from err

    def upload_stream(self, *, object_key: str, stream: BinaryIO, size: int) -> None:
        file_path = self.resolve_path(object_key)
        tmp_path = file_path.with_name(f".{file_path.name}.{uuid4().hex}.part")
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as handle:
                shutil.copyfileobj(stream, handle)
            written = tmp_path.stat().st_size
            if written != size:
                raise StorageError("upload", object_key, f"expected {size} bytes, got {written}")
            tmp_path.replace(file_path)
        except OSError as err:
            raise StorageError("upload", object_key, str(err)) from err
        finally:
            tmp_path.unlink(missing_ok=True)

    def delete(self, *, object_key: str) -> None:
        try:
            self.resolve_path(object_key).unlink(missing_ok=True)
        except OSError as err:
            raise StorageError("delete", object_key, str(err)) from err

    def ping(self) -> None:
        if not self._root.is_dir():
            raise StorageError("ping", str(self._root), "storage root is not a directory")
