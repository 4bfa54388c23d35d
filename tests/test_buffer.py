"""Tests for PixelBuffer storage and access."""

import numpy as np
import pytest

from rasterdither.core.buffer import PixelBuffer
from rasterdither.core.errors import DivideByZero


def _ramp(width=3, height=2, channels=3):
    """Buffer whose samples are 0, 1, 2, ... scaled by 1/100."""
    size = width * height * channels
    return PixelBuffer(width, height, channels, [i / 100 for i in range(size)])


class TestConstruction:
    def test_zero_filled_by_default(self):
        buf = PixelBuffer(4, 3)
        assert buf.channels == 3
        assert buf.size == 36
        assert np.all(buf.pixels == 0.0)

    @pytest.mark.parametrize("width, height", [(0, 1), (1, 0), (-2, 3)])
    def test_invalid_dimensions(self, width, height):
        with pytest.raises(ValueError, match="Invalid dimensions"):
            PixelBuffer(width, height)

    def test_invalid_channels(self):
        with pytest.raises(ValueError, match="channel"):
            PixelBuffer(2, 2, 2)

    def test_pixel_count_mismatch(self):
        with pytest.raises(ValueError, match="Expected 12 samples"):
            PixelBuffer(2, 2, 3, [0.0] * 11)

    def test_pixels_view_is_read_only(self):
        buf = PixelBuffer(2, 2)
        with pytest.raises(ValueError):
            buf.pixels[0] = 1.0

    def test_copy_is_independent(self):
        buf = _ramp()
        clone = buf.copy()
        clone.set(0, 0, (9.0, 9.0, 9.0))
        assert buf.get(0, 0) == (0.0, 0.01, 0.02)
        assert clone != buf

    def test_copy_from_mismatch(self):
        with pytest.raises(ValueError, match="mismatch"):
            PixelBuffer(2, 2).copy_from(PixelBuffer(3, 2))

    def test_array_round_trip(self):
        arr = np.linspace(0, 1, 24).reshape(2, 4, 3)
        buf = PixelBuffer.from_array(arr)
        assert (buf.width, buf.height, buf.channels) == (4, 2, 3)
        assert np.array_equal(buf.to_array(), arr)

    def test_grey_array_is_2d(self):
        buf = PixelBuffer.from_array(np.zeros((3, 5)))
        assert buf.channels == 1
        assert buf.to_array().shape == (3, 5)

    def test_repr(self):
        assert repr(PixelBuffer(2, 3, 4)) == (
            "PixelBuffer(width=2, height=3, channels=4, size=24)"
        )


class TestIndexing:
    def test_index_formula(self):
        buf = PixelBuffer(5, 4, 3)
        assert buf.index(0, 0) == 0
        assert buf.index(1, 0) == 3
        assert buf.index(0, 1) == 15
        assert buf.index(2, 3, 1) == 3 * 3 * 5 + 2 * 3 + 1

    def test_get_reads_interleaved_samples(self):
        buf = _ramp()
        assert buf.get(1, 1) == (0.12, 0.13, 0.14)

    def test_set_then_get(self):
        buf = PixelBuffer(2, 2, 1)
        buf.set(1, 0, (0.75,))
        assert buf.get(1, 0) == (0.75,)
        assert buf.to_array().tolist() == [[0.0, 0.75], [0.0, 0.0]]

    def test_set_wrong_length(self):
        with pytest.raises(ValueError, match="samples"):
            PixelBuffer(2, 2, 3).set(0, 0, (1.0, 1.0))


class TestBoundsLeniency:
    @pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (3, 0), (0, 2), (100, 100)])
    def test_out_of_bounds_reads_are_zero(self, x, y):
        buf = PixelBuffer(3, 2, 4, [1.0] * 24)
        assert buf.get(x, y) == (0.0, 0.0, 0.0, 0.0)
        assert buf.get_rgb(x, y) == (0.0, 0.0, 0.0)
        assert buf.get_rgba(x, y) == (0.0, 0.0, 0.0, 0.0)

    @pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (3, 0), (0, 2)])
    def test_out_of_bounds_writes_are_dropped(self, x, y):
        buf = _ramp()
        before = buf.copy()
        buf.set(x, y, (1.0, 1.0, 1.0))
        buf.set_rgb(x, y, (1.0, 1.0, 1.0))
        buf.set_rgba(x, y, (1.0, 1.0, 1.0, 1.0))
        assert buf == before


class TestColourAccess:
    def test_rgb_buffer_reads_opaque_alpha(self):
        buf = PixelBuffer(1, 1, 3, [0.1, 0.2, 0.3])
        assert buf.get_rgba(0, 0) == (0.1, 0.2, 0.3, 1.0)

    def test_rgb_buffer_drops_alpha_writes(self):
        buf = PixelBuffer(1, 1, 3)
        buf.set_rgba(0, 0, (0.4, 0.5, 0.6, 0.0))
        assert buf.get(0, 0) == (0.4, 0.5, 0.6)
        assert buf.get_rgba(0, 0)[3] == 1.0

    def test_rgba_buffer_keeps_alpha(self):
        buf = PixelBuffer(1, 1, 4)
        buf.set_rgba(0, 0, (0.4, 0.5, 0.6, 0.25))
        assert buf.get_rgba(0, 0) == (0.4, 0.5, 0.6, 0.25)

    def test_rgb_write_leaves_alpha_alone(self):
        buf = PixelBuffer(1, 1, 4, [0.0, 0.0, 0.0, 0.5])
        buf.set_rgba(0, 0, (1.0, 1.0, 1.0))
        assert buf.get(0, 0) == (1.0, 1.0, 1.0, 0.5)

    def test_grey_buffer_broadcasts_and_keeps_red(self):
        buf = PixelBuffer(1, 1, 1, [0.3])
        assert buf.get_rgb(0, 0) == (0.3, 0.3, 0.3)
        assert buf.get_rgba(0, 0) == (0.3, 0.3, 0.3, 1.0)
        buf.set_rgba(0, 0, (0.8, 0.1, 0.1, 1.0))
        assert buf.get(0, 0) == (0.8,)

    def test_set_rgba_rejects_bad_length(self):
        with pytest.raises(ValueError, match="RGB or RGBA"):
            PixelBuffer(1, 1).set_rgba(0, 0, (1.0,))


class TestFlips:
    def test_flip_vertical_swaps_rows(self):
        buf = PixelBuffer.from_array(np.array([[0.1, 0.2], [0.3, 0.4], [0.5, 0.6]]))
        buf.flip_vertical()
        assert buf.to_array().tolist() == [[0.5, 0.6], [0.3, 0.4], [0.1, 0.2]]

    def test_flip_horizontal_swaps_columns(self):
        buf = PixelBuffer.from_array(np.array([[0.1, 0.2, 0.3]]))
        buf.flip_horizontal()
        assert buf.to_array().tolist() == [[0.3, 0.2, 0.1]]

    def test_flip_keeps_channels_together(self):
        buf = PixelBuffer(2, 1, 3, [0.1, 0.2, 0.3, 0.4, 0.5, 0.6])
        buf.flip_horizontal()
        assert buf.get(0, 0) == (0.4, 0.5, 0.6)
        assert buf.get(1, 0) == (0.1, 0.2, 0.3)

    @pytest.mark.parametrize("width, height, channels", [(1, 1, 1), (3, 5, 3), (4, 4, 4), (7, 2, 3)])
    def test_flips_are_involutions(self, width, height, channels):
        rng = np.random.default_rng(7)
        buf = PixelBuffer(width, height, channels, rng.random(width * height * channels))
        original = buf.copy()

        buf.flip_vertical()
        buf.flip_vertical()
        assert buf == original

        buf.flip_horizontal()
        buf.flip_horizontal()
        assert buf == original


class TestNormalize:
    def test_already_normalized(self):
        buf = PixelBuffer(1, 1, 3, [0.5, 1.0, 0.25])
        buf.normalize()
        assert buf.get(0, 0) == (0.5, 1.0, 0.25)

    def test_scales_by_maximum(self):
        buf = PixelBuffer(2, 1, 1, [0.5, 2.0])
        buf.normalize()
        assert buf.pixels.tolist() == [0.25, 1.0]

    def test_all_zero_raises(self):
        buf = PixelBuffer(2, 2, 1)
        with pytest.raises(DivideByZero):
            buf.normalize()

    def test_divide_by_zero_is_zero_division_error(self):
        with pytest.raises(ZeroDivisionError):
            PixelBuffer(1, 1).normalize()
