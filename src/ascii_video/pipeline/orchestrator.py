"""
Frame Pipeline
==============

Drives a FrameExtractor and converts its rasters into a FrameSequence.

Processing Steps:
    1. Write the video payload to a working file (if given as bytes)
    2. Clamp the frame rate: min(detected, frame_rate_cap)
    3. Extract up to max_frames rasters at that rate (worker thread)
    4. Rasterize in fixed-size batches, concurrently within a batch
    5. Report progress and yield to the event loop between batches

Design Rules:
    - Output order always equals sampling order (placed by index)
    - Any hard failure aborts the whole conversion with PipelineError
    - No partial FrameSequence is ever returned
    - Cancellation is checked only at batch boundaries
    - Working files are always removed

Example:
    pipeline = FramePipeline(OpenCVFrameExtractor())

    sequence = await pipeline.convert(
        "clip.mp4",
        target_width=120,
        detected_frame_rate=29.97,
        detail_level=DetailLevel.MEDIUM,
        on_progress=lambda done: print(f"{done} frames"),
    )
"""

import asyncio
import inspect
import logging
import math
import os
import tempfile
import time
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Union

import numpy as np

from ascii_video.ascii.glyphs import DetailLevel
from ascii_video.ascii.rasterizer import rasterize
from ascii_video.errors import ConversionCancelled, PipelineError
from ascii_video.models.frames import DEFAULT_TITLE, FrameSequence
from ascii_video.pipeline.extractor import FrameExtractor


logger = logging.getLogger(__name__)


ProgressCallback = Callable[[int], Union[None, Awaitable[None]]]
VideoSource = Union[str, os.PathLike, bytes, bytearray]


class PipelineMetrics:
    """Counters for pipeline observability."""

    __slots__ = (
        "conversions_started",
        "conversions_completed",
        "conversions_failed",
        "frames_converted",
        "last_duration_seconds",
    )

    def __init__(self) -> None:
        self.conversions_started: int = 0
        self.conversions_completed: int = 0
        self.conversions_failed: int = 0
        self.frames_converted: int = 0
        self.last_duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "conversions_started": self.conversions_started,
            "conversions_completed": self.conversions_completed,
            "conversions_failed": self.conversions_failed,
            "frames_converted": self.frames_converted,
            "last_duration_seconds": round(self.last_duration_seconds, 3),
        }


class FramePipeline:
    """
    Video to ASCII frame pipeline.

    Attributes:
        extractor: Frame extraction backend
        frame_rate_cap: Upper bound on the sampling rate
        max_frames: Default cap on output frames
        batch_size: Rasters converted concurrently per batch
        batch_delay: Seconds to yield between batches
        metrics: Operational counters
    """

    def __init__(
        self,
        extractor: FrameExtractor,
        frame_rate_cap: float = 15.0,
        max_frames: int = 1000,
        batch_size: int = 10,
        batch_delay: float = 0.01,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            extractor: Backend that turns a video file into rasters
            frame_rate_cap: Sampling rate ceiling (frames per second)
            max_frames: Default maximum number of output frames
            batch_size: Number of rasters per concurrent batch. Must be >= 1.
            batch_delay: Pause between batches in seconds
        """
        if frame_rate_cap <= 0:
            raise ValueError("frame_rate_cap must be > 0")
        if max_frames < 1:
            raise ValueError("max_frames must be >= 1")
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        self.extractor = extractor
        self.frame_rate_cap = frame_rate_cap
        self.max_frames = max_frames
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.metrics = PipelineMetrics()

    def effective_frame_rate(self, detected_frame_rate: Optional[float]) -> float:
        """Clamp a detected frame rate to the configured cap."""
        if not _usable_rate(detected_frame_rate):
            return self.frame_rate_cap
        return min(float(detected_frame_rate), self.frame_rate_cap)

    async def convert(
        self,
        video_source: VideoSource,
        target_width: int,
        detected_frame_rate: Optional[float] = None,
        detail_level: Union[DetailLevel, str] = DetailLevel.MEDIUM,
        max_frames: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
        title: Optional[str] = None,
    ) -> FrameSequence:
        """
        Convert a video into an ASCII FrameSequence.

        Args:
            video_source: Path of a video file, or the raw video bytes
            target_width: Columns per text frame
            detected_frame_rate: Source frame rate; probed if None
            detail_level: Glyph ramp to use
            max_frames: Cap on output frames (defaults to self.max_frames)
            on_progress: Called with the number of completed frames
                after every batch; may be sync or async
            cancel_event: When set, the conversion stops at the next
                batch boundary with ConversionCancelled
            title: Sequence title (defaults to the file name stem)

        Returns:
            FrameSequence with frames in sampling order

        Raises:
            PipelineError: On I/O, extraction or rasterization failure
            ConversionCancelled: If cancel_event was set
        """
        if target_width < 1:
            raise PipelineError(f"target_width must be >= 1, got {target_width}")

        limit = self.max_frames if max_frames is None else max_frames
        if limit < 1:
            raise PipelineError(f"max_frames must be >= 1, got {limit}")

        self.metrics.conversions_started += 1
        started = time.monotonic()

        try:
            sequence = await self._convert(
                video_source,
                target_width,
                detected_frame_rate,
                DetailLevel(detail_level),
                limit,
                on_progress,
                cancel_event,
                title,
            )
        except ValueError as e:
            self.metrics.conversions_failed += 1
            raise PipelineError(f"Invalid conversion parameters: {e}") from e
        except PipelineError:
            self.metrics.conversions_failed += 1
            raise

        self.metrics.conversions_completed += 1
        self.metrics.frames_converted += sequence.frame_count
        self.metrics.last_duration_seconds = time.monotonic() - started

        logger.info(
            f"Conversion complete: {sequence!r} in "
            f"{self.metrics.last_duration_seconds:.2f}s"
        )
        return sequence

    async def _convert(
        self,
        video_source: VideoSource,
        target_width: int,
        detected_frame_rate: Optional[float],
        detail_level: DetailLevel,
        max_frames: int,
        on_progress: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event],
        title: Optional[str],
    ) -> FrameSequence:
        working_path: Optional[str] = None

        try:
            if isinstance(video_source, (bytes, bytearray)):
                working_path = await asyncio.to_thread(
                    _write_working_file, bytes(video_source)
                )
                video_path = working_path
            else:
                video_path = os.fspath(video_source)
                if not os.path.isfile(video_path):
                    raise PipelineError(f"Video file not found: {video_path}")
                if title is None:
                    title = Path(video_path).stem

            if not _usable_rate(detected_frame_rate):
                detected_frame_rate = await asyncio.to_thread(
                    self.extractor.probe_frame_rate, video_path
                )

            frame_rate = self.effective_frame_rate(detected_frame_rate)

            logger.info(
                f"Starting conversion: width={target_width}, "
                f"detail={detail_level.value}, detected_fps={detected_frame_rate}, "
                f"effective_fps={frame_rate}, max_frames={max_frames}"
            )

            try:
                rasters = await asyncio.to_thread(
                    self.extractor.extract,
                    video_path,
                    frame_rate,
                    max_frames,
                    target_width,
                )
            except PipelineError:
                raise
            except Exception as e:
                raise PipelineError(f"Frame extraction failed: {e}") from e

        finally:
            if working_path is not None:
                _remove_working_file(working_path)

        if not rasters:
            raise PipelineError("Video produced no frames")

        frames = await self._rasterize_batches(
            rasters[:max_frames],
            target_width,
            detail_level,
            on_progress,
            cancel_event,
        )

        sequence = FrameSequence(
            frames=tuple(frames),
            frame_rate=frame_rate,
            title=title or DEFAULT_TITLE,
        )
        sequence.validate_dimensions()
        return sequence

    async def _rasterize_batches(
        self,
        rasters: List[np.ndarray],
        target_width: int,
        detail_level: DetailLevel,
        on_progress: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event],
    ) -> List[str]:
        frames: List[str] = []

        for start in range(0, len(rasters), self.batch_size):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Conversion cancelled after {len(frames)} frames")
                raise ConversionCancelled(
                    f"Conversion cancelled after {len(frames)} frames"
                )

            batch = rasters[start:start + self.batch_size]

            try:
                # gather() returns results in submission order
                results = await asyncio.gather(*(
                    asyncio.to_thread(rasterize, raster, target_width, detail_level)
                    for raster in batch
                ))
            except Exception as e:
                raise PipelineError(
                    f"Failed to rasterize frame in batch starting at {start}: {e}"
                ) from e

            frames.extend(results)
            logger.debug(f"Rasterized {len(frames)}/{len(rasters)} frames")

            if on_progress is not None:
                outcome = on_progress(len(frames))
                if inspect.isawaitable(outcome):
                    await outcome

            await asyncio.sleep(self.batch_delay)

        return frames


def _usable_rate(rate: Optional[float]) -> bool:
    return rate is not None and math.isfinite(rate) and rate > 0


def _write_working_file(data: bytes) -> str:
    try:
        fd, path = tempfile.mkstemp(prefix="ascii_video_", suffix=".mp4")
    except OSError as e:
        raise PipelineError(f"Failed to create working video file: {e}") from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except OSError as e:
        _remove_working_file(path)
        raise PipelineError(f"Failed to write working video file: {e}") from e
    return path


def _remove_working_file(path: str) -> None:
    try:
        os.remove(path)
    except OSError as e:
        logger.warning(f"Failed to remove working file {path}: {e}")
