"""
Error Taxonomy
==============

Exceptions raised across the ASCII video service.

Categories:
    - ValidationError: Bad request input, rejected before any work begins
    - ExternalServiceError: Third-party resolver or download failure
    - PipelineError: Video to ASCII conversion failure
    - NotFoundError: Unknown or expired stream session

Only ValidationError messages are meant for end users verbatim. The other
categories carry diagnostic detail that is logged server-side and replaced
by a generic message at the HTTP boundary.
"""


class AsciiVideoError(Exception):
    """Base class for all service errors."""
    pass


class ValidationError(AsciiVideoError):
    """Raised when request input is missing or malformed."""
    pass


class ExternalServiceError(AsciiVideoError):
    """Raised when a third-party video service fails or misbehaves."""
    pass


class PipelineError(AsciiVideoError):
    """Raised when a video cannot be converted into ASCII frames."""
    pass


class RasterizeError(PipelineError):
    """Raised when a single raster cannot be turned into a text frame."""
    pass


class ConversionCancelled(PipelineError):
    """Raised when a conversion is abandoned at a batch boundary."""
    pass


class NotFoundError(AsciiVideoError):
    """Raised when a stream session does not exist or has expired."""

    def __init__(self, stream_id: str) -> None:
        super().__init__(f"Stream not found: {stream_id}")
        self.stream_id = stream_id
