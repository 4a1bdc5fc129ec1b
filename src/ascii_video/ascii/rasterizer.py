"""
Frame Rasterizer
================

Turns a single decoded raster into one ASCII text frame.

Design Rules:
    - This is the ONLY place in the codebase that decodes still images
    - Aspect ratio is preserved: height = round(H * width / W)
    - Brightness is the unweighted mean of the three colour channels
    - Output is deterministic for identical input and parameters
    - Rows are joined with a single "\\n", no trailing separator
"""

import logging
from typing import Union

import cv2
import numpy as np

from ascii_video.ascii.glyphs import DetailLevel, glyph_indices, ramp_for
from ascii_video.errors import RasterizeError


logger = logging.getLogger(__name__)


Raster = Union[np.ndarray, bytes, bytearray, memoryview]


def decode_image(data: Union[bytes, bytearray, memoryview]) -> np.ndarray:
    """
    Decode encoded image bytes (PNG, JPEG, ...) into a BGR matrix.

    Args:
        data: Encoded image bytes

    Returns:
        BGR image as np.ndarray (H, W, 3), dtype=uint8

    Raises:
        RasterizeError: If the bytes cannot be decoded
    """
    if not data:
        raise RasterizeError("Cannot decode empty image data")

    nparr = np.frombuffer(data, np.uint8)
    bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if bgr is None:
        raise RasterizeError("Failed to decode image: cv2.imdecode returned None")

    return bgr


def _as_matrix(image: Raster) -> np.ndarray:
    if isinstance(image, (bytes, bytearray, memoryview)):
        image = decode_image(image)

    if not isinstance(image, np.ndarray):
        raise RasterizeError(f"Unsupported raster type: {type(image).__name__}")

    if image.ndim not in (2, 3) or (image.ndim == 3 and image.shape[2] not in (3, 4)):
        raise RasterizeError(f"Invalid raster shape: {image.shape}")

    if image.shape[0] == 0 or image.shape[1] == 0:
        raise RasterizeError(f"Raster has zero width or height: {image.shape}")

    if image.dtype != np.uint8:
        raise RasterizeError(f"Invalid raster dtype: {image.dtype}")

    return image


def target_height_for(width: int, height: int, target_width: int) -> int:
    """Aspect-preserving row count for a target column width (at least 1)."""
    return max(1, int(round(height * target_width / width)))


def rasterize(
    image: Raster,
    target_width: int,
    detail_level: Union[DetailLevel, str] = DetailLevel.MEDIUM,
) -> str:
    """
    Convert one raster into an ASCII text frame.

    Args:
        image: BGR/BGRA/grayscale uint8 matrix, or encoded image bytes
        target_width: Number of columns in the output frame
        detail_level: Glyph ramp to use

    Returns:
        Text frame with round(H * target_width / W) rows of
        target_width characters each

    Raises:
        RasterizeError: On empty or undecodable input
    """
    if target_width < 1:
        raise RasterizeError(f"target_width must be >= 1, got {target_width}")

    try:
        ramp = ramp_for(detail_level)
    except ValueError as e:
        raise RasterizeError(f"Unknown detail level: {detail_level}") from e

    matrix = _as_matrix(image)
    height, width = matrix.shape[:2]
    target_height = target_height_for(width, height, target_width)

    if (width, height) != (target_width, target_height):
        matrix = cv2.resize(
            matrix,
            (target_width, target_height),
            interpolation=cv2.INTER_AREA,
        )

    if matrix.ndim == 3:
        brightness = matrix[:, :, :3].astype(np.float64).mean(axis=2)
    else:
        brightness = matrix.astype(np.float64)

    indices = glyph_indices(brightness, len(ramp))
    glyphs = np.asarray(ramp)[indices]

    return "\n".join("".join(row) for row in glyphs)
