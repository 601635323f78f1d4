from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    BLOCK_ID_INVALID = "BLOCK_ID_INVALID"
    TENANT_INVALID = "TENANT_INVALID"
    BLOCK_FILE_PATH_INVALID = "BLOCK_FILE_PATH_INVALID"
    BLOCK_FILE_EMPTY = "BLOCK_FILE_EMPTY"
    BLOCK_META_MALFORMED = "BLOCK_META_MALFORMED"
    BLOCK_META_UNSUPPORTED_LABELS = "BLOCK_META_UNSUPPORTED_LABELS"
    BLOCK_UPLOAD_NOT_STARTED = "BLOCK_UPLOAD_NOT_STARTED"
    BLOCK_ALREADY_EXISTS = "BLOCK_ALREADY_EXISTS"
    BLOCK_FILE_UPLOAD_FAILED = "BLOCK_FILE_UPLOAD_FAILED"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(HTTPException):
    def __init__(
        self,
        *,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        detail = {
            "message": message,
            "code": code.value,
            "details": details,
        }
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
        self.message = message


def missing_block_id() -> AppException:
    return AppException(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.BLOCK_ID_INVALID,
        message="missing block ID",
    )


def invalid_block_id(block_id: str) -> AppException:
    return AppException(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.BLOCK_ID_INVALID,
        message="invalid block ID",
        details={"block_id": block_id},
    )


def invalid_tenant(reason: str) -> AppException:
    return AppException(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.TENANT_INVALID,
        message="invalid tenant ID",
        details={"reason": reason},
    )


def invalid_file_path(path: str | None, message: str | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.BLOCK_FILE_PATH_INVALID,
        message=message or f"invalid path: {path!r}",
        details={"path": path},
    )


def empty_file() -> AppException:
    return AppException(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.BLOCK_FILE_EMPTY,
        message="file cannot be empty",
    )


def malformed_meta(details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.BLOCK_META_MALFORMED,
        message="malformed request body",
        details=details,
    )


def unsupported_labels(labels: list[str]) -> AppException:
    joined = ",".join(labels)
    return AppException(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.BLOCK_META_UNSUPPORTED_LABELS,
        message=f"unsupported external label(s): {joined}",
        details={"labels": labels},
    )


def upload_not_started(block_id: str) -> AppException:
    return AppException(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.BLOCK_UPLOAD_NOT_STARTED,
        message=f"upload of block {block_id} not started yet",
        details={"block_id": block_id},
    )


def block_already_exists(block_id: str) -> AppException:
    return AppException(
        status_code=status.HTTP_409_CONFLICT,
        code=ErrorCode.BLOCK_ALREADY_EXISTS,
        message="block already exists in object storage",
        details={"block_id": block_id},
    )


def storage_unavailable() -> AppException:
    return AppException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=ErrorCode.STORAGE_UNAVAILABLE,
        message="internal server error",
    )


def file_upload_failed() -> AppException:
    return AppException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        code=ErrorCode.BLOCK_FILE_UPLOAD_FAILED,
        message="failed uploading block file to bucket",
    )
