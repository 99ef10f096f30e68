"""Typed argument models for each tool, validated before a handler runs."""

from __future__ import annotations

from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidArgumentError
from .timecode import timestamp_to_seconds

# Output formats become file extensions and ffmpeg muxer hints
_FORMAT_PATTERN = r"^[A-Za-z0-9]{1,16}$"


def _check_path(value: str) -> str:
    if '\x00' in value:
        raise ValueError("null byte detected")
    if not value.strip():
        raise ValueError("path must not be empty")
    return value


def _check_timestamp(value: str) -> str:
    try:
        timestamp_to_seconds(value)
    except InvalidArgumentError as e:
        raise ValueError(e.message)
    return value.strip()


class ToolRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TrimVideoRequest(ToolRequest):
    video_path: str
    start_time: str
    end_time: str
    output_format: str = Field(default="mp4", pattern=_FORMAT_PATTERN)

    check_path = field_validator("video_path")(_check_path)
    check_times = field_validator("start_time", "end_time")(_check_timestamp)


class ExtractFrameRequest(ToolRequest):
    video_path: str
    timestamp: str
    output_format: str = Field(default="png", pattern=_FORMAT_PATTERN)

    check_path = field_validator("video_path")(_check_path)
    check_time = field_validator("timestamp")(_check_timestamp)


class SegmentAudioRequest(ToolRequest):
    audio_path: str
    segment_duration: float = Field(gt=0, allow_inf_nan=False)
    overlap_duration: float = Field(default=2, ge=0, allow_inf_nan=False)
    output_format: str = Field(default="wav", pattern=_FORMAT_PATTERN)
    output_directory: str
    naming_pattern: str = "segment_{number}"

    check_paths = field_validator("audio_path", "output_directory")(_check_path)

    @field_validator("naming_pattern")
    @classmethod
    def check_naming_pattern(cls, value: str) -> str:
        if not value or '\x00' in value:
            raise ValueError("naming pattern must be a non-empty string")
        if '/' in value or '\\' in value:
            raise ValueError("naming pattern must not contain path separators")
        return value


RequestT = TypeVar("RequestT", bound=ToolRequest)


def parse_request(model: Type[RequestT], arguments: Dict[str, Any] | None) -> RequestT:
    """Validate raw tool arguments into ``model``.

    Raises:
        InvalidArgumentError: Listing every failing field.
    """
    try:
        return model.model_validate(arguments or {})
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidArgumentError(f"Invalid arguments: {problems}")
