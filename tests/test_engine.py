"""Tests for the FFmpeg process adapter.

``asyncio.create_subprocess_exec`` is replaced with a fake so the command
lines can be checked without ffmpeg installed.
"""

import asyncio
import json

import pytest

from mediaops.engine import FFmpegEngine
from mediaops.errors import ProcessingFailedError


class FakeProcess:
    def __init__(self, returncode=0, stdout=b"", stderr=b""):
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr

    async def communicate(self):
        return self._stdout, self._stderr


@pytest.fixture
def spawned(monkeypatch):
    """Collect spawned command lines; ``spawned.result`` is the next process."""
    class Spawned(list):
        result = FakeProcess()

    commands = Spawned()

    async def fake_exec(*cmd, **kwargs):
        commands.append(list(cmd))
        return commands.result

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    return commands


class TestProbeDuration:
    async def test_reads_format_duration(self, spawned):
        spawned.result = FakeProcess(stdout=json.dumps({"format": {"duration": "65.250000"}}).encode())
        duration = await FFmpegEngine().probe_duration("/in/a.wav")
        assert duration == pytest.approx(65.25)
        assert spawned[0][0] == "ffprobe"
        assert spawned[0][-1] == "/in/a.wav"
        assert "format=duration" in spawned[0]

    async def test_missing_duration_is_zero(self, spawned):
        spawned.result = FakeProcess(stdout=b'{"format": {}}')
        assert await FFmpegEngine().probe_duration("/in/a.wav") == 0.0

    async def test_garbage_output_raises(self, spawned):
        spawned.result = FakeProcess(stdout=b"not json")
        with pytest.raises(ProcessingFailedError, match="Could not read duration"):
            await FFmpegEngine().probe_duration("/in/a.wav")


class TestCommands:
    async def test_trim(self, spawned):
        await FFmpegEngine().trim("/in/a.mp4", 10, 50, "/in/a_trimmed.mp4")
        assert spawned[0] == [
            "ffmpeg", "-y", "-ss", "10.000", "-i", "/in/a.mp4",
            "-t", "50.000", "/in/a_trimmed.mp4",
        ]

    async def test_extract_frame(self, spawned):
        await FFmpegEngine().extract_frame("/in/a.mp4", 90.5, "/in/a_frame.png")
        assert spawned[0] == [
            "ffmpeg", "-y", "-ss", "90.500", "-i", "/in/a.mp4",
            "-frames:v", "1", "/in/a_frame.png",
        ]

    async def test_transcode_drops_video(self, spawned):
        await FFmpegEngine().transcode("/in/a.wav", 25, 40, "/out/segment_002.wav")
        cmd = spawned[0]
        assert cmd[:4] == ["ffmpeg", "-y", "-ss", "25.000"]
        assert "-vn" in cmd
        assert cmd[cmd.index("-t") + 1] == "40.000"
        assert cmd[-1] == "/out/segment_002.wav"

    async def test_custom_binaries(self, spawned):
        engine = FFmpegEngine("/opt/ffmpeg/bin/ffmpeg", "/opt/ffmpeg/bin/ffprobe")
        await engine.trim("/in/a.mp4", 0, 1, "/in/b.mp4")
        spawned.result = FakeProcess(stdout=b'{"format": {"duration": "1"}}')
        await engine.probe_duration("/in/a.mp4")
        assert spawned[0][0] == "/opt/ffmpeg/bin/ffmpeg"
        assert spawned[1][0] == "/opt/ffmpeg/bin/ffprobe"


class TestFailures:
    async def test_non_zero_exit_carries_stderr_tail(self, spawned):
        stderr = b"\n".join(f"line {i}".encode() for i in range(10)) + b"\nConversion failed!"
        spawned.result = FakeProcess(returncode=1, stderr=stderr)
        with pytest.raises(ProcessingFailedError) as exc:
            await FFmpegEngine().trim("/in/a.mp4", 0, 1, "/in/b.mp4")
        assert "Conversion failed!" in exc.value.message
        assert "line 0" not in exc.value.message

    async def test_non_zero_exit_without_stderr(self, spawned):
        spawned.result = FakeProcess(returncode=69)
        with pytest.raises(ProcessingFailedError, match="exit status 69"):
            await FFmpegEngine().transcode("/in/a.wav", 0, 1, "/out/a.wav")

    async def test_missing_binary(self, monkeypatch):
        async def missing(*cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(asyncio, "create_subprocess_exec", missing)
        with pytest.raises(ProcessingFailedError, match="Media engine not found: ffmpeg"):
            await FFmpegEngine().extract_frame("/in/a.mp4", 0, "/in/a.png")
