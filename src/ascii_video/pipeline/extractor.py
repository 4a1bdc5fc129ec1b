"""
Frame Extractor
===============

Video decoding abstraction for the frame pipeline.

This module provides the FrameExtractor protocol and the OpenCV-backed
implementation used in production. The pipeline treats extraction as a
black box: it hands over a working video file, a sampling rate, a frame
cap and a target width, and receives an ordered list of rasters.

Design Rules:
    - Extraction is blocking; callers run it in a worker thread
    - Rasters are BGR np.ndarray (H, W, 3), dtype=uint8
    - Rasters are pre-scaled to the target width (aspect preserved)
    - Sampling keeps the first source frame at or after each sample instant
"""

import logging
from typing import List, Optional, Protocol

import cv2
import numpy as np

from ascii_video.ascii.rasterizer import target_height_for
from ascii_video.errors import PipelineError


logger = logging.getLogger(__name__)


class FrameExtractor(Protocol):
    """
    Protocol for frame extraction backends.

    Implementations:
        - OpenCVFrameExtractor (cv2.VideoCapture)
    """

    def probe_frame_rate(self, video_path: str) -> Optional[float]:
        """Return the native frame rate of the video, or None if unknown."""
        ...

    def extract(
        self,
        video_path: str,
        frame_rate: float,
        max_frames: int,
        width: int,
    ) -> List[np.ndarray]:
        """
        Sample rasters from a video.

        Args:
            video_path: Path of the working video file
            frame_rate: Sampling rate in frames per second
            max_frames: Upper bound on returned rasters
            width: Target raster width in pixels

        Returns:
            Rasters in temporal order

        Raises:
            PipelineError: If the video cannot be opened or read
        """
        ...


class OpenCVFrameExtractor:
    """
    Frame extractor backed by cv2.VideoCapture.

    Reads the video sequentially and keeps one frame per sampling
    interval, which is equivalent to an ffmpeg ``fps=N,scale=W:-1``
    filter chain with a ``-frames:v`` cap.

    Attributes:
        interpolation: OpenCV interpolation flag used for the pre-scale
    """

    def __init__(self, interpolation: int = cv2.INTER_AREA) -> None:
        self.interpolation = interpolation

    def probe_frame_rate(self, video_path: str) -> Optional[float]:
        cap = cv2.VideoCapture(video_path)
        try:
            if not cap.isOpened():
                return None
            fps = cap.get(cv2.CAP_PROP_FPS)
            return float(fps) if fps and fps > 0 else None
        finally:
            cap.release()

    def extract(
        self,
        video_path: str,
        frame_rate: float,
        max_frames: int,
        width: int,
    ) -> List[np.ndarray]:
        if frame_rate <= 0:
            raise PipelineError(f"Sampling rate must be positive, got {frame_rate}")

        cap = cv2.VideoCapture(video_path)
        if not cap.isOpened():
            cap.release()
            raise PipelineError(f"Cannot open video file: {video_path}")

        try:
            source_fps = cap.get(cv2.CAP_PROP_FPS)
            if not source_fps or source_fps <= 0:
                logger.warning(
                    f"Source frame rate unavailable, assuming {frame_rate} fps"
                )
                source_fps = frame_rate

            logger.info(
                f"Extracting frames: source_fps={source_fps:.2f}, "
                f"sample_fps={frame_rate:.2f}, max_frames={max_frames}, width={width}"
            )

            interval = 1.0 / frame_rate
            next_sample_time = 0.0
            source_index = 0
            rasters: List[np.ndarray] = []

            while len(rasters) < max_frames:
                ok, frame = cap.read()
                if not ok or frame is None:
                    break

                timestamp = source_index / source_fps
                source_index += 1

                # Tolerance keeps integer-ratio rates (30 -> 15) from drifting
                if timestamp + 1e-9 < next_sample_time:
                    continue

                rasters.append(self._scale(frame, width))
                next_sample_time += interval
                # Catch up when the source rate is lower than the sample rate
                while next_sample_time <= timestamp:
                    next_sample_time += interval

            logger.info(f"Extracted {len(rasters)} frames from {source_index} source frames")
            return rasters

        except cv2.error as e:
            raise PipelineError(f"OpenCV failed while reading {video_path}: {e}") from e
        finally:
            cap.release()

    def _scale(self, frame: np.ndarray, width: int) -> np.ndarray:
        height, source_width = frame.shape[:2]
        if source_width == width:
            return frame
        return cv2.resize(
            frame,
            (width, target_height_for(source_width, height, width)),
            interpolation=self.interpolation,
        )
