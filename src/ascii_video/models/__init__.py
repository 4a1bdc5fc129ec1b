"""
Data Models
===========

Typed containers and Pydantic schemas for the ASCII video service.

Models:
    Frames:
        - FrameSequence: Ordered text frames plus frame rate and title
        - StreamSession: A FrameSequence held by the stream store

    Input:
        - CreateStreamRequest: Share request body
        - DownloadRequest: Video-download-by-URL request body
        - ConvertUrlRequest: Convert-by-URL request body

    Output:
        - StreamCreated: Share links
        - StreamMetadata: Title, frame count and frame rate
        - DownloadInfo: Resolved download link
        - ConversionResult: Frames produced by a server-side conversion
"""

from ascii_video.models.frames import DEFAULT_TITLE, FrameSequence, StreamSession
from ascii_video.models.input import CreateStreamRequest, ConvertUrlRequest, DownloadRequest
from ascii_video.models.output import (
    ConversionResult,
    DownloadInfo,
    StreamCreated,
    StreamMetadata,
)

__all__ = [
    # Frames
    "DEFAULT_TITLE",
    "FrameSequence",
    "StreamSession",
    # Input
    "CreateStreamRequest",
    "ConvertUrlRequest",
    "DownloadRequest",
    # Output
    "StreamCreated",
    "StreamMetadata",
    "DownloadInfo",
    "ConversionResult",
]
