"""
Pipeline Module
===============

Video to ASCII conversion.

Components:
    - FrameExtractor: Protocol for video decoding backends
    - OpenCVFrameExtractor: cv2.VideoCapture implementation
    - FramePipeline: Batched, ordered raster-to-text orchestration

Design Philosophy:
    Video decoding is treated as a pluggable black box. The pipeline
    only sees ordered rasters and never touches container formats.
"""

from ascii_video.pipeline.extractor import FrameExtractor, OpenCVFrameExtractor
from ascii_video.pipeline.orchestrator import FramePipeline, PipelineMetrics

__all__ = [
    "FrameExtractor",
    "OpenCVFrameExtractor",
    "FramePipeline",
    "PipelineMetrics",
]
