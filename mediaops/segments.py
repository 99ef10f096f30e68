"""
Segment planning for overlapping audio splits.

A plan is a list of contiguous core segments covering the whole input,
each widened by the overlap on both sides so neighbouring segments share
context. The widened window is clamped to the input.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .errors import InvalidArgumentError

logger = logging.getLogger(__name__)

METADATA_FILENAME = "segments_metadata.json"
NUMBER_PLACEHOLDER = "{number}"


@dataclass(frozen=True)
class SegmentSpec:
    """One planned slice of the input, in seconds."""
    start_time: float
    end_time: float
    overlap_start: float
    overlap_end: float
    filename: str = ""  # assigned when the segment is written

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def overlap_duration(self) -> float:
        """Length of the window actually extracted."""
        return self.overlap_end - self.overlap_start

    def with_filename(self, filename: str) -> 'SegmentSpec':
        return replace(self, filename=filename)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "start": self.start_time,
            "end": self.end_time,
            "overlap_start": self.overlap_start,
            "overlap_end": self.overlap_end,
        }


def plan_segments(
    total_duration: float,
    segment_duration: float,
    overlap_duration: float,
) -> List[SegmentSpec]:
    """Split ``[0, total_duration]`` into segments of at most ``segment_duration``.

    Examples:
        plan_segments(65, 30, 5) ->
            [0, 30]  overlap [0, 35]
            [30, 60] overlap [25, 65]
            [60, 65] overlap [55, 65]

    Raises:
        InvalidArgumentError: If ``segment_duration`` is not positive or
            ``overlap_duration`` is negative.
    """
    if not segment_duration > 0:
        raise InvalidArgumentError(
            f"Segment duration must be positive, got {segment_duration}"
        )
    if not overlap_duration >= 0:
        raise InvalidArgumentError(
            f"Overlap duration must not be negative, got {overlap_duration}"
        )
    if overlap_duration >= segment_duration:
        logger.warning(
            "Overlap %.3fs is not shorter than segment %.3fs; windows will overlap heavily",
            overlap_duration, segment_duration,
        )

    if not total_duration > 0:
        return []

    # Boundaries are multiples of segment_duration rather than a running sum,
    # so rounding never adds a sliver segment at the end.
    count = math.ceil(total_duration / segment_duration)
    if count > 1 and (count - 1) * segment_duration >= total_duration:
        count -= 1

    segments: List[SegmentSpec] = []
    start = 0.0
    for index in range(count):
        if index == count - 1:
            end = total_duration
        else:
            end = min((index + 1) * segment_duration, total_duration)
        segments.append(SegmentSpec(
            start_time=start,
            end_time=end,
            overlap_start=max(0.0, start - overlap_duration),
            overlap_end=min(total_duration, end + overlap_duration),
        ))
        start = end

    return segments


def segment_filename(naming_pattern: str, number: int, output_format: str) -> str:
    """Filename for the ``number``-th segment (1-based).

    ``{number}`` in the pattern becomes the index zero-padded to three digits:
    segment_filename("clip_{number}", 2, "wav") -> "clip_002.wav".
    """
    stem = naming_pattern.replace(NUMBER_PLACEHOLDER, f"{number:03d}")
    return f"{stem}.{output_format}"


def build_metadata(
    original_file: str,
    segment_duration: float,
    overlap_duration: float,
    total_duration: float,
    segments: Sequence[SegmentSpec],
) -> Dict[str, Any]:
    return {
        "original_file": original_file,
        "segment_duration": segment_duration,
        "overlap_duration": overlap_duration,
        "total_duration": total_duration,
        "segment_count": len(segments),
        "segments": [s.to_dict() for s in segments],
    }


def write_metadata(output_directory: str, metadata: Dict[str, Any]) -> str:
    """Write the metadata record as JSON; returns the file path."""
    path = Path(output_directory) / METADATA_FILENAME
    path.write_text(json.dumps(metadata, indent=2), encoding="utf-8")
    return str(path)
