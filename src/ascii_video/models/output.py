"""
Response Schemas
================

Pydantic models for JSON responses served by the service.

Output Contracts:
    POST /api/stream    -> {"streamId", "terminalUrl", "webUrl"}
    GET  /api/stream    -> {"title", "frameCount", "frameRate"}
    POST /api/download  -> {"title", "downloadUrl", "duration"}
    POST /api/convert   -> {"title", "frameRate", "frameCount", "width",
                            "height", "frames", "stream"}

All models serialize with camelCase aliases (``model_dump(by_alias=True)``).
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class StreamCreated(BaseModel):
    """Links handed back after a stream is shared."""

    stream_id: str = Field(..., alias="streamId")
    terminal_url: str = Field(
        ...,
        alias="terminalUrl",
        description="Shell command that fetches the terminal player script",
    )
    web_url: str = Field(..., alias="webUrl", description="Relative browser URL")

    class Config:
        populate_by_name = True


class StreamMetadata(BaseModel):
    """Read-only description of a shared stream."""

    title: str
    frame_count: int = Field(..., ge=1, alias="frameCount")
    frame_rate: float = Field(..., gt=0, alias="frameRate")

    class Config:
        populate_by_name = True


class DownloadInfo(BaseModel):
    """
    Result of resolving a source URL through the third-party resolver.

    Attributes:
        title: Video title as reported by the resolver
        download_url: Direct link to the video payload
        duration: Duration as reported by the resolver (opaque, may be None)
    """

    title: str = Field(default="")
    download_url: str = Field(..., alias="downloadUrl")
    duration: Optional[float] = Field(default=None)

    class Config:
        populate_by_name = True


class ConversionResult(BaseModel):
    """Frames produced by a server-side conversion."""

    title: str
    frame_rate: float = Field(..., gt=0, alias="frameRate")
    frame_count: int = Field(..., ge=0, alias="frameCount")
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)
    frames: List[str]
    stream: Optional[StreamCreated] = Field(
        default=None,
        description="Share links when the conversion was shared",
    )

    class Config:
        populate_by_name = True
