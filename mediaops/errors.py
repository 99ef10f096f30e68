"""Classified errors raised by tool handlers and the FFmpeg engine.

Each class carries the MCP error code it is reported under, so the
dispatcher can turn any of them into a protocol error without knowing
which handler raised it.
"""

from mcp.shared.exceptions import McpError
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    ErrorData,
)


class MediaToolError(Exception):
    """Base class for every error surfaced to an MCP caller."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_mcp_error(self) -> McpError:
        return McpError(ErrorData(code=self.code, message=self.message))


class MediaNotFoundError(MediaToolError):
    """Input media file does not exist."""

    code = INVALID_REQUEST


class InvalidArgumentError(MediaToolError):
    """Malformed timestamp, non-positive duration, or other bad argument."""

    code = INVALID_PARAMS


class UnknownToolError(MediaToolError):
    code = METHOD_NOT_FOUND


class ProcessingFailedError(MediaToolError):
    """FFmpeg (or the file system around it) reported a failure."""

    code = INTERNAL_ERROR
