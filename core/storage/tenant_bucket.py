from __future__ import annotations

import posixpath
from tempfile import SpooledTemporaryFile
from typing import AsyncIterable

from starlette.concurrency import run_in_threadpool

from core.storage.provider import BlockStorageProvider

SPOOL_MAX_MEMORY_BYTES = 8 * 1024 * 1024


class TenantBucket:
    """Async, tenant-prefixed view over a blocking storage provider.

    Every key is joined under ``<tenant_id>/`` and provider calls are pushed to
    the threadpool so request handlers never block the event loop.
    """

    def __init__(self, *, tenant_id: str, provider: BlockStorageProvider) -> None:
        self._tenant_id = tenant_id
        self._provider = provider

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    def object_key(self, name: str) -> str:
        return posixpath.join(self._tenant_id, name)

    async def exists(self, name: str) -> bool:
        return await run_in_threadpool(self._provider.exists, object_key=self.object_key(name))

    async def get(self, name: str) -> bytes:
        return await run_in_threadpool(self._provider.get_bytes, object_key=self.object_key(name))

    async def put(self, name: str, payload: bytes) -> None:
        await run_in_threadpool(self._provider.put_bytes, object_key=self.object_key(name), payload=payload)

    async def upload(self, name: str, chunks: AsyncIterable[bytes], size: int) -> None:
        """Store ``chunks`` under ``name`` with the declared ``size``.

        The body is buffered before the provider call starts, in memory up to
        ``SPOOL_MAX_MEMORY_BYTES`` and on local disk past that, because the
        providers take a blocking file object and run in the threadpool. It is
        not streamed byte-for-byte to the store while the request is read.
        """
        with SpooledTemporaryFile(max_size=SPOOL_MAX_MEMORY_BYTES) as spool:
            async for chunk in chunks:
                spool.write(chunk)
            spool.seek(0)
            await run_in_threadpool(
                self._provider.upload_stream,
                object_key=self.object_key(name),
                stream=spool,
                size=size,
            )

    async def delete(self, name: str) -> None:
        await run_in_threadpool(self._provider.delete, object_key=self.object_key(name))
