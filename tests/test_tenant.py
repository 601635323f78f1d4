from __future__ import annotations

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from core.errors import AppException, ErrorCode
from core.response_envelope import http_exception_response
from security.principal import RequestContext
from security.tenant import resolve_request_context, validate_tenant_id


@pytest.mark.parametrize("tenant_id", ["team-a", "tenant_1", "a.b", "x" * 150, "(prod)*!'"])
def test_valid_tenant_ids(tenant_id: str):
    assert validate_tenant_id(tenant_id) == tenant_id


@pytest.mark.parametrize(
    "tenant_id",
    ["", ".", "..", "x" * 151, "team a", "team/a", "team-a|team-b", "tenánt"],
)
def test_invalid_tenant_ids(tenant_id: str):
    with pytest.raises(AppException) as exc_info:
        validate_tenant_id(tenant_id)

    assert exc_info.value.status_code == 400
    assert exc_info.value.code is ErrorCode.TENANT_INVALID


def _build_app() -> FastAPI:
    app = FastAPI()
    app.add_exception_handler(AppException, lambda request, exc: http_exception_response(exc, request))

    @app.get("/whoami")
    async def whoami(context: RequestContext = Depends(resolve_request_context)):
        return {"tenant_id": context.tenant_id}

    return app


def test_request_context_reads_tenant_header():
    client = TestClient(_build_app())

    response = client.get("/whoami", headers={"X-Scope-OrgID": "team-a"})

    assert response.status_code == 200
    assert response.json() == {"tenant_id": "team-a"}


def test_request_context_without_tenant_header_is_rejected():
    client = TestClient(_build_app())

    response = client.get("/whoami")

    assert response.status_code == 400
    assert response.json()["data"]["code"] == "TENANT_INVALID"
