from __future__ import annotations

import posixpath
import re
from typing import Final

from fastapi import Path

from core.errors import empty_file, invalid_block_id, invalid_file_path, missing_block_id
from core.ulid import parse_ulid
from schemas.block_meta import META_FILENAME

BLOCK_FILE_PATH_PATTERN: Final[re.Pattern[str]] = re.compile(r"^(index|chunks/\d{6})$", re.ASCII)


def parse_block_id(block_id: str | None) -> str:
    if not block_id:
        raise missing_block_id()
    try:
        return parse_ulid(block_id)
    except ValueError as err:
        raise invalid_block_id(block_id) from err


def validate_block_file_path(path: str | None) -> str:
    if not path:
        raise invalid_file_path(path, "missing or invalid file path")
    if posixpath.basename(path) == META_FILENAME:
        raise invalid_file_path(path, f"{META_FILENAME} is not allowed")
    # fullmatch: "$" alone would accept a trailing newline.
    if not BLOCK_FILE_PATH_PATTERN.fullmatch(path):
        raise invalid_file_path(path)
    return path


def parse_content_length(raw_value: str | None) -> int:
    if raw_value is None:
        raise empty_file()
    try:
        content_length = int(raw_value)
    except ValueError as err:
        raise empty_file() from err
    if content_length <= 0:
        raise empty_file()
    return content_length


async def resolve_block_id(block: str = Path(..., description="ULID of the block being uploaded.")) -> str:
    return parse_block_id(block)
