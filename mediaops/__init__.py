"""
mediaops - FFmpeg-backed media operations for the MCP server.

This package provides:
- HH:MM:SS timestamp conversion
- Overlapping segment planning and metadata records
- An asyncio adapter around the ffmpeg/ffprobe command line tools
- Typed request models and classified errors for the tool dispatcher
"""

from .engine import FFmpegEngine, MediaEngine
from .errors import (
    InvalidArgumentError,
    MediaNotFoundError,
    MediaToolError,
    ProcessingFailedError,
    UnknownToolError,
)
from .requests import (
    ExtractFrameRequest,
    SegmentAudioRequest,
    TrimVideoRequest,
    parse_request,
)
from .segments import (
    METADATA_FILENAME,
    SegmentSpec,
    build_metadata,
    plan_segments,
    segment_filename,
    write_metadata,
)
from .timecode import get_time_difference, timestamp_label, timestamp_to_seconds

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Engine
    "FFmpegEngine",
    "MediaEngine",
    # Errors
    "MediaToolError",
    "MediaNotFoundError",
    "InvalidArgumentError",
    "UnknownToolError",
    "ProcessingFailedError",
    # Requests
    "TrimVideoRequest",
    "ExtractFrameRequest",
    "SegmentAudioRequest",
    "parse_request",
    # Segments
    "METADATA_FILENAME",
    "SegmentSpec",
    "plan_segments",
    "segment_filename",
    "build_metadata",
    "write_metadata",
    # Time
    "timestamp_to_seconds",
    "get_time_difference",
    "timestamp_label",
]
