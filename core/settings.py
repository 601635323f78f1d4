from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

SUPPORTED_STORAGE_BACKENDS = {"local", "s3"}
SUPPORTED_LOG_FORMATS = {"json", "plain"}
DEFAULT_TENANT_HEADER = "X-Scope-OrgID"


def _split_csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return tuple()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _env(name: str) -> str | None:
    raw_value = os.getenv(name)
    if raw_value is None:
        return None
    normalized = raw_value.strip()
    return normalized or None


def collect_missing_required_env_vars() -> list[str]:
    missing: list[str] = []

    storage_backend = (_env("STORAGE_BACKEND") or "local").lower()
    if storage_backend == "s3" and _env("S3_BUCKET_NAME") is None:
        missing.append("S3_BUCKET_NAME")

    return sorted(set(missing))


def collect_invalid_env_values() -> list[str]:
    invalid_values: list[str] = []

    storage_backend = (_env("STORAGE_BACKEND") or "local").lower()
    if storage_backend not in SUPPORTED_STORAGE_BACKENDS:
        invalid_values.append("STORAGE_BACKEND must be one of: local, s3")

    timeout = _env("S3_REQUEST_TIMEOUT_SECONDS")
    if timeout is not None:
        try:
            parsed_timeout = float(timeout)
            if parsed_timeout <= 0:
                raise ValueError("must be positive")
        except ValueError:
            invalid_values.append("S3_REQUEST_TIMEOUT_SECONDS must be a positive number")

    log_level = (_env("LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        invalid_values.append("LOG_LEVEL must be a standard logging level name")

    log_format = (_env("LOG_FORMAT") or "json").lower()
    if log_format not in SUPPORTED_LOG_FORMATS:
        invalid_values.append("LOG_FORMAT must be one of: json, plain")

    return invalid_values


def validate_required_environment() -> None:
    missing_vars = collect_missing_required_env_vars()
    invalid_values = collect_invalid_env_values()
    if not missing_vars and not invalid_values:
        return

    message_lines = ["Application startup blocked by invalid environment configuration."]
    if missing_vars:
        message_lines.append("")
        message_lines.append("Missing required environment variables:")
        message_lines.extend(f"- {name}" for name in missing_vars)
    if invalid_values:
        message_lines.append("")
        message_lines.append("Invalid environment values:")
        message_lines.extend(f"- {message}" for message in invalid_values)
    raise RuntimeError("\n".join(message_lines))


@dataclass(frozen=True)
class Settings:
    env: str
    cors_origins: tuple[str, ...]
    debug_include_error_details: bool
    storage_backend: str
    storage_local_root: str
    s3_bucket_name: str | None
    s3_region: str | None
    s3_endpoint_url: str | None
    s3_request_timeout_seconds: float
    tenant_header: str
    log_level: str
    log_format: str

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    validate_required_environment()

    return Settings(
        env=os.getenv("ENV", "development"),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS")),
        debug_include_error_details=os.getenv("DEBUG_INCLUDE_ERROR_DETAILS", "false").lower()
        in {"1", "true", "yes"},
        storage_backend=(_env("STORAGE_BACKEND") or "local").lower(),
        storage_local_root=_env("STORAGE_LOCAL_ROOT") or "blocks",
        s3_bucket_name=_env("S3_BUCKET_NAME"),
        s3_region=_env("S3_REGION"),
        s3_endpoint_url=_env("S3_ENDPOINT_URL"),
        s3_request_timeout_seconds=float(_env("S3_REQUEST_TIMEOUT_SECONDS") or 30),
        tenant_header=_env("TENANT_HEADER") or DEFAULT_TENANT_HEADER,
        log_level=(_env("LOG_LEVEL") or "INFO").upper(),
        log_format=(_env("LOG_FORMAT") or "json").lower(),
    )
