"""
Request Schemas
===============

Pydantic models for JSON request bodies accepted by the service.

Input Contracts:
    POST /api/stream
        {"frames": ["<frame>", ...], "frameRate": 24, "title": "My clip"}

    POST /api/download
        {"url": "https://..."}

Field presence is checked by the route handlers rather than by the schema,
so that a missing ``frames`` or ``url`` is answered with HTTP 400 and a
specific message instead of a generic schema error.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class CreateStreamRequest(BaseModel):
    """
    Body of a share request.

    Attributes:
        frames: Text frames in playback order (required, non-empty)
        frame_rate: Playback rate; defaults to the store default if absent
        title: Display title; defaults to "ASCII Video" if absent
    """

    frames: Optional[List[str]] = Field(
        default=None,
        description="Ordered ASCII frames",
    )

    frame_rate: Optional[float] = Field(
        default=None,
        alias="frameRate",
        allow_inf_nan=False,
        description="Playback frames per second",
    )

    title: Optional[str] = Field(
        default=None,
        description="Display title",
    )

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True
        json_schema_extra = {
            "example": {
                "frames": ["AB\nCD"],
                "frameRate": 24,
                "title": "t",
            }
        }


class DownloadRequest(BaseModel):
    """Body of a video-download-by-URL request."""

    url: Optional[str] = Field(
        default=None,
        description="Source page URL of the video",
    )


class ConvertUrlRequest(BaseModel):
    """
    Body of a convert-by-URL request.

    The URL is resolved through the third-party resolver, the video is
    fetched server-side and converted with the given parameters.
    """

    url: Optional[str] = Field(default=None, description="Source page URL")
    width: Optional[int] = Field(default=None, description="Columns per frame")
    detail_level: Optional[str] = Field(
        default=None,
        alias="detailLevel",
        description="low, medium, high or ultra",
    )
    max_frames: Optional[int] = Field(default=None, alias="maxFrames")
    share: bool = Field(default=False, description="Also create a stream")

    class Config:
        populate_by_name = True
