from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from core.logging_config import get_logger
from core.response_envelope import document_response
from core.storage import BlockStorageManager, TenantBucket
from security.principal import RequestContext
from security.tenant import resolve_request_context
from security.upload_guard import parse_content_length, resolve_block_id, validate_block_file_path
from services.block_upload_service import complete_block_upload, create_block_upload, upload_block_file

router = APIRouter(prefix="/block", tags=["Block upload"])


def _tenant_bucket(context: RequestContext) -> TenantBucket:
    provider = BlockStorageManager.get_instance().provider
    return TenantBucket(tenant_id=context.tenant_id, provider=provider)


@router.post("/{block}/upload")
@document_response(
    message="Block upload updated",
    description="Upload started (meta.json staged) or completed (meta.json published)",
    empty_body=True,
    response_codes={
        400: "Invalid block ID, tenant or meta.json, or upload not started",
        409: "Block already exists",
        500: "Object storage failure",
    },
)
async def handle_block_upload(
    request: Request,
    upload_complete: str | None = Query(
        default=None,
        alias="uploadComplete",
        description="'true' publishes the staged meta.json; anything else starts the upload.",
    ),
    block_id: str = Depends(resolve_block_id),
    context: RequestContext = Depends(resolve_request_context),
):
    logger = get_logger(__name__, request_id=context.request_id, tenant=context.tenant_id, block=block_id)
    bucket = _tenant_bucket(context)

    if upload_complete == "true":
        await complete_block_upload(bucket=bucket, block_id=block_id, logger=logger)
    else:
        body = await request.body()
        await create_block_upload(bucket=bucket, block_id=block_id, body=body, logger=logger)

    return Response(status_code=200)


@router.post("/{block}/files")
@document_response(
    message="Block file uploaded",
    description="File stored under the block",
    empty_body=True,
    response_codes={
        400: "Invalid block ID, tenant or path, empty body, or upload not started",
        500: "Object storage failure",
        502: "Uploading the file to object storage failed",
    },
)
async def upload_block_file_endpoint(
    request: Request,
    path: str | None = Query(default=None, description="Destination: 'index' or 'chunks/NNNNNN'."),
    block_id: str = Depends(resolve_block_id),
    context: RequestContext = Depends(resolve_request_context),
):
    logger = get_logger(__name__, request_id=context.request_id, tenant=context.tenant_id, block=block_id)

    file_path = validate_block_file_path(path)
    content_length = parse_content_length(request.headers.get("content-length"))

    await upload_block_file(
        bucket=_tenant_bucket(context),
        block_id=block_id,
        path=file_path,
        chunks=request.stream(),
        content_length=content_length,
        logger=logger,
    )
    return Response(status_code=200)
