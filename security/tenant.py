from __future__ import annotations

from typing import Final

from fastapi import Request

from core.errors import invalid_tenant
from core.response_envelope import request_id_from_request
from core.settings import get_settings
from security.principal import RequestContext

MAX_TENANT_ID_LENGTH: Final[int] = 150
TENANT_ID_SEPARATOR: Final[str] = "|"
_ALLOWED_SPECIAL_CHARACTERS: Final[frozenset[str]] = frozenset("!-_.*'()")
_UNSAFE_TENANT_IDS: Final[frozenset[str]] = frozenset({".", ".."})


def _is_supported_character(char: str) -> bool:
    return (char.isascii() and char.isalnum()) or char in _ALLOWED_SPECIAL_CHARACTERS


def validate_tenant_id(tenant_id: str) -> str:
    """Return ``tenant_id`` unchanged if it is usable as a storage prefix."""
    if not tenant_id:
        raise invalid_tenant("no tenant ID present")
    if TENANT_ID_SEPARATOR in tenant_id:
        raise invalid_tenant("multiple tenant IDs present")
    if len(tenant_id) > MAX_TENANT_ID_LENGTH:
        raise invalid_tenant(f"tenant ID is too long: max {MAX_TENANT_ID_LENGTH} characters")
    if tenant_id in _UNSAFE_TENANT_IDS:
        raise invalid_tenant("tenant ID is '.' or '..'")
    for char in tenant_id:
        if not _is_supported_character(char):
            raise invalid_tenant(f"tenant ID contains unsupported character {char!r}")
    return tenant_id


async def resolve_request_context(request: Request) -> RequestContext:
    header_name = get_settings().tenant_header
    tenant_id = validate_tenant_id((request.headers.get(header_name) or "").strip())
    return RequestContext(tenant_id=tenant_id, request_id=request_id_from_request(request))
