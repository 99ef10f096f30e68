"""
FFmpeg process adapter.

Every operation is a single ``ffmpeg`` or ``ffprobe`` run awaited to
completion. A non-zero exit is raised as ProcessingFailedError with the
tail of the engine's stderr; nothing is retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import List, Protocol

from .errors import ProcessingFailedError

logger = logging.getLogger(__name__)

# Lines of ffmpeg stderr kept in error messages
_STDERR_TAIL_LINES = 5


class MediaEngine(Protocol):
    """Operations the tool handlers need from a media engine."""

    async def probe_duration(self, path: str) -> float: ...

    async def trim(self, path: str, start: float, duration: float, output_path: str) -> None: ...

    async def extract_frame(self, path: str, timestamp: float, output_path: str) -> None: ...

    async def transcode(self, path: str, start: float, duration: float, output_path: str) -> None: ...


def _seconds_arg(seconds: float) -> str:
    return f"{seconds:.3f}"


def _stderr_tail(stderr: bytes) -> str:
    lines = stderr.decode("utf-8", errors="replace").strip().splitlines()
    return "\n".join(lines[-_STDERR_TAIL_LINES:])


class FFmpegEngine:
    """Runs ffmpeg/ffprobe as subprocesses."""

    def __init__(self, ffmpeg_binary: str = "ffmpeg", ffprobe_binary: str = "ffprobe"):
        self.ffmpeg_binary = ffmpeg_binary
        self.ffprobe_binary = ffprobe_binary

    async def _run(self, cmd: List[str]) -> bytes:
        """Run ``cmd`` and return its stdout."""
        logger.debug("Running: %s", " ".join(cmd))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise ProcessingFailedError(f"Media engine not found: {cmd[0]}")

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            detail = _stderr_tail(stderr) or f"exit status {process.returncode}"
            logger.error("%s failed (%s): %s", cmd[0], process.returncode, detail)
            raise ProcessingFailedError(f"{cmd[0]} failed: {detail}")
        return stdout

    async def probe_duration(self, path: str) -> float:
        """Container duration in seconds, 0.0 when ffprobe reports none."""
        stdout = await self._run([
            self.ffprobe_binary,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "json",
            path,
        ])
        try:
            info = json.loads(stdout or b"{}")
            duration = info.get("format", {}).get("duration")
            return float(duration) if duration is not None else 0.0
        except (ValueError, AttributeError) as e:
            raise ProcessingFailedError(f"Could not read duration of {path}: {e}")

    async def trim(self, path: str, start: float, duration: float, output_path: str) -> None:
        await self._run([
            self.ffmpeg_binary, "-y",
            "-ss", _seconds_arg(start),
            "-i", path,
            "-t", _seconds_arg(duration),
            output_path,
        ])

    async def extract_frame(self, path: str, timestamp: float, output_path: str) -> None:
        await self._run([
            self.ffmpeg_binary, "-y",
            "-ss", _seconds_arg(timestamp),
            "-i", path,
            "-frames:v", "1",
            output_path,
        ])

    async def transcode(self, path: str, start: float, duration: float, output_path: str) -> None:
        """Re-encode an audio window; the codec follows the output extension."""
        await self._run([
            self.ffmpeg_binary, "-y",
            "-ss", _seconds_arg(start),
            "-i", path,
            "-t", _seconds_arg(duration),
            "-vn",
            output_path,
        ])
