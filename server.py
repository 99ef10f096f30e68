#!/usr/bin/env python3
"""
FFmpeg MCP Server — trim video, extract frames and split audio over MCP.

Provides 3 tools backed by the ffmpeg/ffprobe command line tools. Calls are
handled one at a time; segmenting audio runs one ffmpeg process per segment,
in order.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Tuple, Type

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from mediaops import __version__
from mediaops.engine import FFmpegEngine, MediaEngine
from mediaops.errors import (
    InvalidArgumentError,
    MediaNotFoundError,
    MediaToolError,
    ProcessingFailedError,
    UnknownToolError,
)
from mediaops.requests import (
    ExtractFrameRequest,
    SegmentAudioRequest,
    ToolRequest,
    TrimVideoRequest,
    parse_request,
)
from mediaops.segments import build_metadata, plan_segments, segment_filename, write_metadata
from mediaops.timecode import get_time_difference, timestamp_label, timestamp_to_seconds

SERVER_NAME = "ffmpeg-server"
FFMPEG_BINARY = os.environ.get("FFMPEG_BINARY", "ffmpeg")
FFPROBE_BINARY = os.environ.get("FFPROBE_BINARY", "ffprobe")
LOG_LEVEL = os.environ.get("MEDIAOPS_LOG_LEVEL", "INFO").upper()

logger = logging.getLogger("ffmpeg-mcp-server")


# ============================================================================
# UTILITIES
# ============================================================================

def _require_file(filepath: str, kind: str) -> str:
    """Check that an input media file exists before any engine work.

    Raises:
        MediaNotFoundError: When nothing exists at the path.
        InvalidArgumentError: When the path is not a regular file.
    """
    path = Path(filepath)
    if not path.exists():
        raise MediaNotFoundError(f"{kind} file not found: {filepath}")
    if not path.is_file():
        raise InvalidArgumentError(f"Not a regular file: {filepath}")
    return filepath


def generate_output_path(input_path: str, suffix: str, output_format: str) -> str:
    """Output path beside the input: /a/clip.mov + "_trimmed" -> /a/clip_trimmed.<fmt>."""
    p = Path(input_path)
    return str(p.parent / f"{p.stem}{suffix}.{output_format}")


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


# ============================================================================
# TOOL DEFINITIONS
# ============================================================================

TOOLS = [
    Tool(
        name="trim_video",
        description="Trim video to specified duration",
        inputSchema={
            "type": "object",
            "properties": {
                "video_path": {"type": "string", "description": "Path to input video file"},
                "start_time": {"type": "string", "description": "Start time (HH:MM:SS)"},
                "end_time": {"type": "string", "description": "End time (HH:MM:SS)"},
                "output_format": {
                    "type": "string",
                    "description": "Output format (e.g., mp4, mkv)",
                    "default": "mp4",
                },
            },
            "required": ["video_path", "start_time", "end_time"],
        },
    ),
    Tool(
        name="extract_frame",
        description="Extract a frame from video at specified timestamp",
        inputSchema={
            "type": "object",
            "properties": {
                "video_path": {"type": "string", "description": "Path to input video file"},
                "timestamp": {"type": "string", "description": "Timestamp to extract frame (HH:MM:SS)"},
                "output_format": {
                    "type": "string",
                    "description": "Output image format (png, jpg)",
                    "default": "png",
                },
            },
            "required": ["video_path", "timestamp"],
        },
    ),
    Tool(
        name="segment_audio",
        description="Split audio into segments with overlap",
        inputSchema={
            "type": "object",
            "properties": {
                "audio_path": {"type": "string", "description": "Path to input audio file"},
                "segment_duration": {
                    "type": "number",
                    "description": "Duration of each segment in seconds",
                },
                "overlap_duration": {
                    "type": "number",
                    "description": "Overlap duration in seconds",
                    "default": 2,
                },
                "output_format": {
                    "type": "string",
                    "description": "Output format (wav, mp3)",
                    "default": "wav",
                },
                "output_directory": {"type": "string", "description": "Directory to save segments"},
                "naming_pattern": {
                    "type": "string",
                    "description": "Pattern for segment filenames",
                    "default": "segment_{number}",
                },
            },
            "required": ["audio_path", "segment_duration", "output_directory"],
        },
    ),
]


# ============================================================================
# HANDLER IMPLEMENTATIONS
# ============================================================================

async def handle_trim_video(request: TrimVideoRequest, engine: MediaEngine) -> Sequence[TextContent]:
    video_path = _require_file(request.video_path, "Video")
    duration = get_time_difference(request.start_time, request.end_time)
    if duration <= 0:
        raise InvalidArgumentError(
            f"end_time ({request.end_time}) must be after start_time ({request.start_time})"
        )

    output_path = generate_output_path(video_path, "_trimmed", request.output_format)
    await engine.trim(video_path, timestamp_to_seconds(request.start_time), duration, output_path)
    return _text(f"Video trimmed successfully: {output_path}")


async def handle_extract_frame(request: ExtractFrameRequest, engine: MediaEngine) -> Sequence[TextContent]:
    video_path = _require_file(request.video_path, "Video")
    output_path = generate_output_path(
        video_path, f"_frame_{timestamp_label(request.timestamp)}", request.output_format
    )
    await engine.extract_frame(video_path, timestamp_to_seconds(request.timestamp), output_path)
    return _text(f"Frame extracted successfully: {output_path}")


async def handle_segment_audio(request: SegmentAudioRequest, engine: MediaEngine) -> Sequence[TextContent]:
    audio_path = _require_file(request.audio_path, "Audio")
    output_dir = Path(request.output_directory)
    output_dir.mkdir(parents=True, exist_ok=True)

    total = await engine.probe_duration(audio_path)
    segments = plan_segments(total, request.segment_duration, request.overlap_duration)
    if not segments:
        raise ProcessingFailedError(f"Could not determine a positive duration for {audio_path}")

    written = []
    for number, segment in enumerate(segments, 1):
        segment = segment.with_filename(
            segment_filename(request.naming_pattern, number, request.output_format)
        )
        logger.info(
            "Segment %d/%d: %s [%.3f, %.3f]",
            number, len(segments), segment.filename, segment.overlap_start, segment.overlap_end,
        )
        # Each segment is extracted with its overlap on both sides
        await engine.transcode(
            audio_path,
            segment.overlap_start,
            segment.overlap_duration,
            str(output_dir / segment.filename),
        )
        written.append(segment)

    metadata_path = write_metadata(
        request.output_directory,
        build_metadata(
            audio_path,
            request.segment_duration,
            request.overlap_duration,
            total,
            written,
        ),
    )
    return _text(
        f"Audio segmented successfully:\n"
        f"Total segments: {len(written)}\n"
        f"Output directory: {request.output_directory}\n"
        f"Metadata file: {metadata_path}"
    )


# ============================================================================
# TOOL DISPATCH
# ============================================================================

Handler = Callable[[Any, MediaEngine], Awaitable[Sequence[TextContent]]]

TOOL_HANDLERS: Dict[str, Tuple[Type[ToolRequest], Handler]] = {
    "trim_video": (TrimVideoRequest, handle_trim_video),
    "extract_frame": (ExtractFrameRequest, handle_extract_frame),
    "segment_audio": (SegmentAudioRequest, handle_segment_audio),
}


async def dispatch(name: str, arguments: Optional[Dict[str, Any]], engine: MediaEngine) -> Sequence[TextContent]:
    """Validate arguments for tool ``name`` and run its handler.

    Raises:
        MediaToolError: Any classified failure; file system errors are
            reported as ProcessingFailedError.
    """
    entry = TOOL_HANDLERS.get(name)
    if entry is None:
        raise UnknownToolError(f"Unknown tool: {name}")
    model, handler = entry
    request = parse_request(model, arguments)
    try:
        return await handler(request, engine)
    except OSError as e:
        raise ProcessingFailedError(f"File system error: {e}")


class DispatcherState(Enum):
    IDLE = "idle"
    HANDLING = "handling"


class MediaToolServer:
    """MCP server exposing the media tools over stdio.

    One call is handled at a time; ``state`` reports whether a call is in
    flight. ``start`` serves until the client disconnects or ``stop`` is
    called (installed as the SIGINT/SIGTERM handler).

    Tool failures are sent as JSON-RPC errors carrying the code of the
    raised MediaToolError, not as error-flagged tool results.
    """

    def __init__(self, engine: Optional[MediaEngine] = None):
        self.engine = engine or FFmpegEngine(FFMPEG_BINARY, FFPROBE_BINARY)
        self.server = Server(SERVER_NAME, version=__version__)
        self.state = DispatcherState.IDLE
        self._call_lock = asyncio.Lock()
        self._stop_requested = asyncio.Event()

        self.server.list_tools()(self.list_tools)
        # Not via call_tool(): that decorator converts every exception,
        # McpError included, into an isError tool result.
        self.server.request_handlers[types.CallToolRequest] = self._handle_call_tool_request

    async def list_tools(self) -> list[Tool]:
        return list(TOOLS)

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> Sequence[TextContent]:
        async with self._call_lock:
            self.state = DispatcherState.HANDLING
            logger.info("Tool call: %s", name)
            try:
                return await dispatch(name, arguments, self.engine)
            except MediaToolError as e:
                logger.error("[MCP Error] %s (%s): %s", name, type(e).__name__, e.message)
                raise e.to_mcp_error() from e
            finally:
                self.state = DispatcherState.IDLE

    async def _handle_call_tool_request(self, req: types.CallToolRequest) -> types.ServerResult:
        content = await self.call_tool(req.params.name, req.params.arguments)
        return types.ServerResult(types.CallToolResult(content=list(content), isError=False))

    async def serve(self, read_stream, write_stream) -> None:
        """Run the MCP session on the given streams until EOF or ``stop``."""
        run_task = asyncio.create_task(
            self.server.run(read_stream, write_stream, self.server.create_initialization_options())
        )
        stop_task = asyncio.create_task(self._stop_requested.wait())
        try:
            await asyncio.wait({run_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (run_task, stop_task):
                task.cancel()
            await asyncio.gather(run_task, stop_task, return_exceptions=True)

        if not run_task.cancelled() and run_task.exception() is not None:
            raise run_task.exception()

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no signal handlers
                pass

        async with stdio_server() as (read_stream, write_stream):
            logger.info("FFmpeg MCP server running on stdio")
            await self.serve(read_stream, write_stream)
        logger.info("FFmpeg MCP server stopped")

    def stop(self) -> None:
        """Stop serving; a call in flight is abandoned with the session."""
        self._stop_requested.set()

    @property
    def stopping(self) -> bool:
        return self._stop_requested.is_set()


# ============================================================================
# MAIN
# ============================================================================

async def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await MediaToolServer().start()


def main_sync():
    """Synchronous entry point for use as a console script."""
    asyncio.run(main())

if __name__ == "__main__":
    main_sync()
