"""
Test Configuration
==================

Pytest fixtures and test doubles for the ASCII video service.
"""

import os
from typing import List, Optional

import numpy as np
import pytest

from ascii_video.config import Settings
from ascii_video.pipeline import FramePipeline
from ascii_video.stream import StreamSessionStore


def make_rasters(count: int, width: int = 8, height: int = 6) -> List[np.ndarray]:
    """Uniform BGR rasters whose brightness changes with the index."""
    return [
        np.full((height, width, 3), (index * 23) % 256, dtype=np.uint8)
        for index in range(count)
    ]


class StubExtractor:
    """Frame extractor double that returns prepared rasters."""

    def __init__(
        self,
        rasters: Optional[List[np.ndarray]] = None,
        probed_rate: Optional[float] = 30.0,
        error: Optional[Exception] = None,
        honour_cap: bool = True,
    ) -> None:
        self.rasters = rasters if rasters is not None else make_rasters(12)
        self.probed_rate = probed_rate
        self.error = error
        self.honour_cap = honour_cap
        self.calls: List[dict] = []

    def probe_frame_rate(self, video_path: str) -> Optional[float]:
        return self.probed_rate

    def extract(self, video_path, frame_rate, max_frames, width):
        self.calls.append({
            "path": video_path,
            "existed": os.path.exists(video_path),
            "frame_rate": frame_rate,
            "max_frames": max_frames,
            "width": width,
        })
        if self.error is not None:
            raise self.error
        if self.honour_cap:
            return list(self.rasters[:max_frames])
        return list(self.rasters)


class FakeClock:
    """Manually advanced UNIX clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings():
    """Default settings, independent of config files and environment."""
    return Settings()


@pytest.fixture
def stub_extractor():
    return StubExtractor()


@pytest.fixture
def pipeline(stub_extractor):
    """Pipeline over the stub extractor with no inter-batch delay."""
    return FramePipeline(
        extractor=stub_extractor,
        frame_rate_cap=15.0,
        max_frames=1000,
        batch_size=10,
        batch_delay=0.0,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return StreamSessionStore(
        ttl_seconds=3600,
        reap_interval_seconds=300,
        default_frame_rate=24,
        clock=clock,
    )


@pytest.fixture
def video_file(tmp_path):
    """Placeholder video path (content is never decoded by the stub)."""
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"not really a video")
    return path
