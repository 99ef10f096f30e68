"""Shared fixtures: a recording stand-in for the FFmpeg engine."""

from pathlib import Path

import pytest

from mediaops.errors import ProcessingFailedError


class FakeEngine:
    """Records engine calls and writes an empty file for each output.

    ``fail_on_call`` makes the n-th output-producing call (1-based) raise
    ProcessingFailedError instead.
    """

    def __init__(self, duration: float = 65.0, fail_on_call: int | None = None):
        self.duration = duration
        self.fail_on_call = fail_on_call
        self.calls = []

    def _record(self, *call):
        self.calls.append(call)
        output_calls = [c for c in self.calls if c[0] != "probe_duration"]
        if self.fail_on_call is not None and len(output_calls) == self.fail_on_call:
            raise ProcessingFailedError("ffmpeg failed: Conversion failed!")
        Path(call[-1]).touch()

    async def probe_duration(self, path):
        self.calls.append(("probe_duration", path))
        return self.duration

    async def trim(self, path, start, duration, output_path):
        self._record("trim", path, start, duration, output_path)

    async def extract_frame(self, path, timestamp, output_path):
        self._record("extract_frame", path, timestamp, output_path)

    async def transcode(self, path, start, duration, output_path):
        self._record("transcode", path, start, duration, output_path)


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def media_file(tmp_path):
    path = tmp_path / "input.mp4"
    path.write_bytes(b"\x00")
    return str(path)
