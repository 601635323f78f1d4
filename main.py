from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from core.errors import ErrorCode
from core.logging_config import configure_logging
from core.response_envelope import (
    apply_response_documentation,
    document_response,
    error_response,
    http_exception_response,
    request_id_from_request,
)
from core.settings import get_settings
from core.storage import BlockStorageManager, StorageError

settings = get_settings()
configure_logging(level=settings.log_level, json_output=settings.log_format == "json")
logger = logging.getLogger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    manager = BlockStorageManager.configure_from_settings()
    logger.info("block storage configured", extra={"context": {"backend": manager.provider.backend_name}})
    yield


app = FastAPI(lifespan=lifespan, title="Block Upload Gateway")
app.add_middleware(RequestIdMiddleware)
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins) if settings.cors_origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException):
    return http_exception_response(exc=exc, request=request)


@app.exception_handler(Exception)
async def custom_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error", extra={"context": {"path": request.url.path}})
    details = str(exc) if (settings.debug_include_error_details and not settings.is_production) else None
    return error_response(
        status_code=500,
        message="Internal Server Error",
        data={"code": ErrorCode.INTERNAL_ERROR.value, "details": details},
        request_id=request_id_from_request(request),
    )


@app.get("/health", tags=["Health"])
@document_response(
    message="Health check completed",
    success_example={"status": "healthy", "services": {"storage": {"status": "healthy"}}},
)
async def health_check(request: Request):
    provider = BlockStorageManager.get_instance().provider
    start = time.perf_counter()
    try:
        await run_in_threadpool(provider.ping)
        storage = {"status": "healthy", "message": f"{provider.backend_name} storage reachable"}
    except StorageError as exc:
        storage = {"status": "unhealthy", "message": str(exc)}
    storage["latency_ms"] = round((time.perf_counter() - start) * 1000, 2)

    return {
        "status": "healthy" if storage["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {"storage": storage},
    }


from api.v1.block_upload_route import router as v1_block_upload_route_router

app.include_router(v1_block_upload_route_router, prefix="/api/v1/upload")

apply_response_documentation(app)
