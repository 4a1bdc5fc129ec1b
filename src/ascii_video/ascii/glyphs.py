"""
Glyph Ramps
===========

Brightness-to-character mapping for ASCII rendering.

Each DetailLevel is bound to a fixed glyph ramp ordered from the sparsest
character (index 0, drawn for black pixels) to the densest (last index,
drawn for white pixels). Higher detail levels use longer ramps, which
gives finer tonal steps at the cost of a less uniform look.

Mapping:
    index = floor((brightness / 255) * (len(ramp) - 1))

Example:
    from ascii_video.ascii.glyphs import DetailLevel, glyph, ramp_for

    ramp = ramp_for(DetailLevel.LOW)
    glyph(0, ramp)    # ' '
    glyph(255, ramp)  # '@'
"""

import math
from enum import Enum
from typing import Dict, Sequence, Tuple, Union

import numpy as np


class DetailLevel(str, Enum):
    """
    Selectable density tier controlling which glyph ramp is used.

    Attributes:
        LOW: 10 glyphs, classic ASCII look
        MEDIUM: 17 glyphs
        HIGH: 63 printable ASCII glyphs
        ULTRA: HIGH plus 31 unicode block and shape glyphs
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    ULTRA = "ultra"


_HIGH = tuple(
    " .`^\",:;Il!i><~+_-?]}|)(1tfjrxnuvczXYUJCLQOZmwqpdbkhao*#MW&8%B@"
)

RAMPS: Dict[DetailLevel, Tuple[str, ...]] = {
    DetailLevel.LOW: tuple(" .:-=+*#%@"),
    DetailLevel.MEDIUM: tuple(" .:;!><+=?79$&%B@"),
    DetailLevel.HIGH: _HIGH,
    DetailLevel.ULTRA: _HIGH + tuple("█▉▊▋▌▍▎▏▓▒░■□▪▫●○◆◇◼◻▲△▼▽◀▶♠♣♥♦"),
}


def _validate_ramps() -> None:
    for level, ramp in RAMPS.items():
        if len(ramp) < 2:
            raise ValueError(f"Glyph ramp for {level.value} needs at least 2 entries")


_validate_ramps()


def ramp_for(detail_level: Union[DetailLevel, str]) -> Tuple[str, ...]:
    """
    Get the glyph ramp for a detail level.

    Args:
        detail_level: DetailLevel or its string value ("low", "medium", ...)

    Returns:
        Ordered, immutable tuple of glyphs

    Raises:
        ValueError: If the detail level is unknown
    """
    return RAMPS[DetailLevel(detail_level)]


def glyph(brightness: float, ramp: Sequence[str]) -> str:
    """
    Map a brightness value to a glyph.

    Args:
        brightness: Pixel brightness in [0, 255]; values outside are clamped
        ramp: Ordered glyphs, at least 2 entries

    Returns:
        The glyph at floor((brightness / 255) * (len(ramp) - 1))
    """
    if len(ramp) < 2:
        raise ValueError("ramp must contain at least 2 glyphs")

    brightness = min(max(brightness, 0.0), 255.0)
    index = math.floor((brightness / 255) * (len(ramp) - 1))
    return ramp[index]


def glyph_indices(brightness: np.ndarray, ramp_length: int) -> np.ndarray:
    """
    Vectorised form of glyph() returning ramp indices.

    Args:
        brightness: Array of brightness values in [0, 255]
        ramp_length: Number of glyphs in the target ramp

    Returns:
        Integer array of the same shape with indices in [0, ramp_length - 1]
    """
    clipped = np.clip(brightness.astype(np.float64), 0.0, 255.0)
    indices = np.floor((clipped / 255) * (ramp_length - 1)).astype(np.intp)
    return indices
