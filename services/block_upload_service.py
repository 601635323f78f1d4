"""Block upload lifecycle.

The object store is the only record of an upload session. Its state is derived
from two objects under the block prefix:

* ``meta.json.temp`` present, ``meta.json`` absent: in progress
* ``meta.json`` present: complete
* neither: not started

Files uploaded while a session is in progress are not checked against the
``thanos.files`` list of the staged descriptor; any allow-listed path is
accepted. Adding that check would reject uploads accepted today and has to
ship as a deliberate behaviour change.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterable

from pydantic import ValidationError

from core.errors import (
    block_already_exists,
    file_upload_failed,
    malformed_meta,
    storage_unavailable,
    upload_not_started,
)
from core.storage import ObjectNotFoundError, StorageError, TenantBucket
from schemas.block_meta import META_FILENAME, TEMP_META_FILENAME, BlockMeta
from services.meta_sanitizer import sanitize_meta


class BlockUploadState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"


@dataclass(frozen=True)
class BlockUploadStatus:
    meta_exists: bool
    temp_meta_exists: bool

    @property
    def state(self) -> BlockUploadState:
        if self.meta_exists:
            return BlockUploadState.COMPLETE
        if self.temp_meta_exists:
            return BlockUploadState.IN_PROGRESS
        return BlockUploadState.NOT_STARTED

    @property
    def accepts_files(self) -> bool:
        # A temp descriptor left behind by a failed cleanup still counts.
        return self.temp_meta_exists


def meta_key(block_id: str) -> str:
    return posixpath.join(block_id, META_FILENAME)


def temp_meta_key(block_id: str) -> str:
    return posixpath.join(block_id, TEMP_META_FILENAME)


async def probe_upload_status(
    bucket: TenantBucket,
    block_id: str,
    logger: logging.LoggerAdapter,
) -> BlockUploadStatus:
    try:
        meta_exists = await bucket.exists(meta_key(block_id))
        temp_meta_exists = await bucket.exists(temp_meta_key(block_id))
    except StorageError as err:
        logger.exception("failed to check existence of block descriptors in object storage")
        raise storage_unavailable() from err
    return BlockUploadStatus(meta_exists=meta_exists, temp_meta_exists=temp_meta_exists)


async def _upload_meta(
    bucket: TenantBucket,
    meta: BlockMeta,
    name: str,
    logger: logging.LoggerAdapter,
) -> None:
    logger.debug(f"uploading {posixpath.basename(name)} to bucket", extra={"context": {"dst": name}})
    try:
        await bucket.put(name, meta.to_json_bytes())
    except StorageError as err:
        logger.exception(f"failed to upload {posixpath.basename(name)}")
        raise storage_unavailable() from err


async def _download_temp_meta(
    bucket: TenantBucket,
    block_id: str,
    logger: logging.LoggerAdapter,
) -> BlockMeta:
    try:
        raw = await bucket.get(temp_meta_key(block_id))
    except ObjectNotFoundError as err:
        raise upload_not_started(block_id) from err
    except StorageError as err:
        logger.exception("failed to download meta.json.temp from object storage")
        raise storage_unavailable() from err

    try:
        return BlockMeta.from_json_bytes(raw)
    except ValidationError as err:
        logger.exception("failed to decode meta.json.temp")
        raise storage_unavailable() from err


async def create_block_upload(
    *,
    bucket: TenantBucket,
    block_id: str,
    body: bytes,
    logger: logging.LoggerAdapter,
) -> BlockMeta:
    logger.debug("starting block upload")

    status = await probe_upload_status(bucket, block_id, logger)
    if status.state is BlockUploadState.COMPLETE:
        logger.debug("complete block already exists in object storage")
        raise block_already_exists(block_id)

    try:
        meta = BlockMeta.from_json_bytes(body)
    except ValidationError as err:
        errors = err.errors(include_url=False, include_context=False, include_input=False)
        raise malformed_meta(details={"errors": errors}) from err

    sanitized = sanitize_meta(meta, block_id=block_id, tenant_id=bucket.tenant_id, logger=logger)

    if status.state is BlockUploadState.IN_PROGRESS:
        logger.debug("restarting in-progress block upload with new meta.json")
    await _upload_meta(bucket, sanitized, temp_meta_key(block_id), logger)
    return sanitized


async def upload_block_file(
    *,
    bucket: TenantBucket,
    block_id: str,
    path: str,
    chunks: AsyncIterable[bytes],
    content_length: int,
    logger: logging.LoggerAdapter,
) -> None:
    """Store one block file; ``path`` and ``content_length`` must already be validated."""
    status = await probe_upload_status(bucket, block_id, logger)
    if not status.accepts_files:
        raise upload_not_started(block_id)

    await _download_temp_meta(bucket, block_id, logger)

    dst = posixpath.join(block_id, path)
    logger.debug(
        "uploading block file to bucket",
        extra={"context": {"destination": dst, "size": content_length}},
    )
    try:
        await bucket.upload(dst, chunks, content_length)
    except StorageError as err:
        logger.exception("failed uploading block file to bucket", extra={"context": {"destination": dst}})
        raise file_upload_failed() from err

    logger.debug("finished uploading block file to bucket", extra={"context": {"path": path}})


async def complete_block_upload(
    *,
    bucket: TenantBucket,
    block_id: str,
    logger: logging.LoggerAdapter,
) -> BlockMeta:
    logger.debug("received request to complete block upload")

    meta = await _download_temp_meta(bucket, block_id, logger)
    logger.debug("completing block upload", extra={"context": {"files": len(meta.thanos.files or [])}})

    # Publishing meta.json is what makes the block complete.
    await _upload_meta(bucket, meta, meta_key(block_id), logger)

    try:
        await bucket.delete(temp_meta_key(block_id))
    except StorageError as err:
        logger.exception("failed to delete meta.json.temp from block in object storage")
        raise storage_unavailable() from err

    logger.debug("successfully completed block upload")
    return meta
