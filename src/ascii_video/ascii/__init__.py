"""
ASCII Module
============

Brightness quantization and raster-to-text conversion.

Components:
    - DetailLevel: Enum of glyph ramp tiers (low, medium, high, ultra)
    - glyph: Maps one brightness value onto a ramp
    - rasterize: Converts one decoded raster into a text frame

Example:
    from ascii_video.ascii import DetailLevel, rasterize

    frame = rasterize(bgr_image, target_width=120, detail_level=DetailLevel.HIGH)
    print(frame)
"""

from ascii_video.ascii.glyphs import DetailLevel, RAMPS, glyph, glyph_indices, ramp_for
from ascii_video.ascii.rasterizer import decode_image, rasterize, target_height_for


__all__ = [
    "DetailLevel",
    "RAMPS",
    "glyph",
    "glyph_indices",
    "ramp_for",
    "decode_image",
    "rasterize",
    "target_height_for",
]
