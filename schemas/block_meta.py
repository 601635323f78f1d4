from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from core.ulid import parse_ulid

META_FILENAME = "meta.json"
TEMP_META_FILENAME = "meta.json.temp"
UPLOAD_SOURCE = "upload"


class BlockMetaFile(BaseModel):
    rel_path: str
    size_bytes: int | None = None
    hash: dict[str, Any] | None = None

    model_config = ConfigDict(extra="allow")


class BlockDownsample(BaseModel):
    resolution: int = 0

    model_config = ConfigDict(extra="allow")


class ThanosMeta(BaseModel):
    labels: dict[str, str] | None = None
    downsample: BlockDownsample = Field(default_factory=BlockDownsample)
    source: str = ""
    segment_files: list[str] | None = None
    files: list[BlockMetaFile] | None = None

    model_config = ConfigDict(extra="allow")

    @field_validator("downsample", "source", mode="before")
    @classmethod
    def null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class BlockMeta(BaseModel):
    """Block descriptor as stored in ``meta.json``.

    Fields this service does not interpret are kept as extras so the published
    descriptor carries everything the uploader sent.
    """

    ulid: str | None = None
    min_time: int = Field(default=0, alias="minTime")
    max_time: int = Field(default=0, alias="maxTime")
    stats: dict[str, Any] | None = None
    compaction: dict[str, Any] | None = None
    version: int = 0
    thanos: ThanosMeta = Field(default_factory=ThanosMeta)

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("min_time", "max_time", "version", "thanos", mode="before")
    @classmethod
    def null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        # JSON null decodes to the field's zero value, not a type error.
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    @field_validator("ulid")
    @classmethod
    def validate_ulid(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return parse_ulid(value)

    @classmethod
    def from_json_bytes(cls, raw: bytes) -> "BlockMeta":
        return cls.model_validate_json(raw)

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8") + b"\n"
