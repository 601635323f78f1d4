from __future__ import annotations

from pydantic import BaseModel


class RequestContext(BaseModel):
    """Caller identity derived from the request, threaded into storage calls."""

    tenant_id: str
    request_id: str | None = None
