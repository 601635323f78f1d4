from __future__ import annotations

import secrets
import time
from typing import Callable

import pytest

from core.ulid import ulid_bytes_to_str


def _new_ulid(*, timestamp_ms: int | None = None) -> str:
    ts_ms = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    if ts_ms < 0 or ts_ms >= (1 << 48):
        raise ValueError("timestamp_ms out of ULID 48-bit range")
    entropy = int.from_bytes(secrets.token_bytes(10), byteorder="big", signed=False)
    return ulid_bytes_to_str(((ts_ms << 80) | entropy).to_bytes(16, byteorder="big", signed=False))


@pytest.fixture
def new_ulid() -> Callable[..., str]:
    return _new_ulid
