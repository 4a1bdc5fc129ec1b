"""
Glyph Mapping Tests
===================

Brightness-to-glyph mapping and detail level ramps.
"""

import numpy as np
import pytest

from ascii_video.ascii.glyphs import RAMPS, DetailLevel, glyph, glyph_indices, ramp_for


LOW_RAMP = [' ', '.', ':', '-', '=', '+', '*', '#', '%', '@']


class TestGlyph:
    """Tests for the scalar mapper."""

    def test_darkest_maps_to_first_glyph(self):
        assert glyph(0, LOW_RAMP) == ' '

    def test_brightest_maps_to_last_glyph(self):
        assert glyph(255, LOW_RAMP) == '@'

    def test_midpoint_uses_floor(self):
        """floor(127 / 255 * 9) = 4."""
        assert glyph(127, LOW_RAMP) == '='

    def test_out_of_range_is_clamped(self):
        assert glyph(-10, LOW_RAMP) == ' '
        assert glyph(300, LOW_RAMP) == '@'

    def test_two_entry_ramp(self):
        assert glyph(0, "ab") == "a"
        assert glyph(254, "ab") == "a"
        assert glyph(255, "ab") == "b"

    def test_short_ramp_rejected(self):
        with pytest.raises(ValueError):
            glyph(100, ["x"])

    @pytest.mark.parametrize("level", list(DetailLevel))
    def test_result_always_in_ramp(self, level):
        ramp = ramp_for(level)
        for brightness in range(256):
            assert glyph(brightness, ramp) in ramp

    @pytest.mark.parametrize("level", list(DetailLevel))
    def test_monotonic_in_ramp_index(self, level):
        ramp = ramp_for(level)
        indices = [ramp.index(glyph(b, ramp)) for b in range(256)]
        assert indices == sorted(indices)
        assert indices[0] == 0
        assert indices[-1] == len(ramp) - 1


class TestRamps:
    """Tests for the detail level ramps."""

    def test_every_level_has_a_ramp(self):
        assert set(RAMPS) == set(DetailLevel)

    def test_ramps_have_at_least_two_glyphs(self):
        for ramp in RAMPS.values():
            assert len(ramp) >= 2

    def test_ramps_are_distinct(self):
        assert len({ramp for ramp in RAMPS.values()}) == len(RAMPS)

    def test_ramp_lengths(self):
        assert len(ramp_for(DetailLevel.LOW)) == 10
        assert len(ramp_for(DetailLevel.MEDIUM)) == 17
        assert len(ramp_for(DetailLevel.HIGH)) == 63
        assert len(ramp_for(DetailLevel.ULTRA)) == 94

    def test_ramps_start_with_space(self):
        for ramp in RAMPS.values():
            assert ramp[0] == " "

    def test_ramps_are_immutable(self):
        assert isinstance(ramp_for(DetailLevel.LOW), tuple)

    def test_lookup_by_string(self):
        assert ramp_for("low") == ramp_for(DetailLevel.LOW)

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            ramp_for("extreme")


class TestGlyphIndices:
    """Tests for the vectorised mapper."""

    @pytest.mark.parametrize("level", list(DetailLevel))
    def test_matches_scalar_mapping(self, level):
        ramp = ramp_for(level)
        brightness = np.arange(256, dtype=np.float64)
        indices = glyph_indices(brightness, len(ramp))

        assert [ramp[i] for i in indices] == [glyph(b, ramp) for b in range(256)]

    def test_fractional_brightness(self):
        brightness = np.array([[84.99, 85.5], [254.9, 255.0]])
        indices = glyph_indices(brightness, 10)

        assert indices.shape == (2, 2)
        assert indices[1, 1] == 9
        assert indices[1, 0] == 8
