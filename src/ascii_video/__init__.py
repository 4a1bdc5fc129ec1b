"""
ASCII Video Stream
==================

Video to ASCII-art conversion with short-lived stream sharing.

This package converts a video into a sequence of ASCII text frames and
makes the sequence playable in a browser, in a terminal through a
generated bash script, or through the command line player.

Components:
    - ascii: Glyph ramps and raster-to-text conversion
    - pipeline: Frame extraction and batched conversion
    - stream: In-memory session store, terminal scripts, URL resolver
    - main: FastAPI service
    - cli: Command line client

Example:
    from ascii_video.pipeline import FramePipeline, OpenCVFrameExtractor

    pipeline = FramePipeline(OpenCVFrameExtractor())
    sequence = await pipeline.convert("clip.mp4", target_width=120)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
