"""
Frame Models
============

Immutable containers for converted ASCII video.

A TextFrame is a plain ``str``: equal-width rows joined by "\\n".
FrameSequence bundles the ordered frames with their playback metadata,
and StreamSession wraps a sequence held by the stream store.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from ascii_video.errors import PipelineError


DEFAULT_TITLE = "ASCII Video"


@dataclass(frozen=True, slots=True)
class FrameSequence:
    """
    Ordered ASCII frames plus playback metadata.

    Attributes:
        frames: Text frames in temporal order
        frame_rate: Nominal playback rate (frames per second, > 0)
        title: Human-readable title
    """

    frames: Tuple[str, ...]
    frame_rate: float
    title: str = DEFAULT_TITLE

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not math.isfinite(self.frame_rate) or self.frame_rate <= 0:
            raise ValueError("frame_rate must be a positive finite number")

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def width(self) -> int:
        """Columns per row (0 for an empty sequence)."""
        if not self.frames:
            return 0
        return len(self.frames[0].split("\n", 1)[0])

    @property
    def height(self) -> int:
        """Rows per frame (0 for an empty sequence)."""
        if not self.frames:
            return 0
        return self.frames[0].count("\n") + 1

    def validate_dimensions(self) -> None:
        """
        Check that every frame has the same row count and row width.

        Raises:
            PipelineError: If any frame or row deviates
        """
        width, height = self.width, self.height
        for index, frame in enumerate(self.frames):
            rows = frame.split("\n")
            if len(rows) != height or any(len(row) != width for row in rows):
                raise PipelineError(
                    f"Frame {index} does not match sequence dimensions "
                    f"{width}x{height}"
                )

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the frames."""
        return (
            f"FrameSequence(frames={self.frame_count}, "
            f"size={self.width}x{self.height}, "
            f"frame_rate={self.frame_rate}, title={self.title!r})"
        )


@dataclass(frozen=True, slots=True)
class StreamSession:
    """
    A shared FrameSequence held by the stream store.

    Attributes:
        id: Opaque unique stream identifier
        frames: Text frames in temporal order
        frame_rate: Playback rate (frames per second)
        title: Human-readable title
        created_at: UNIX timestamp of creation
    """

    id: str
    frames: Tuple[str, ...]
    frame_rate: float
    title: str
    created_at: float

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    def metadata(self) -> dict:
        """Public metadata payload (camelCase, as served over HTTP)."""
        return {
            "title": self.title,
            "frameCount": self.frame_count,
            "frameRate": self.frame_rate,
        }

    def __repr__(self) -> str:
        return (
            f"StreamSession(id={self.id}, frames={self.frame_count}, "
            f"frame_rate={self.frame_rate}, created_at={self.created_at:.3f})"
        )
