"""Unit tests for the color primitives."""

import numpy as np
import pytest

from extract_colors import extract_colors, hex_to_rgb, luminance, rgb_sort_key, rgb_to_hex


class TestLuminance:
    """Rec. 709 weighted luminance"""

    def test_extremes(self):
        assert luminance((0, 0, 0)) == 0
        assert luminance((255, 255, 255)) == pytest.approx(255.0)

    def test_green_dominates(self):
        assert luminance((0, 100, 0)) > luminance((100, 0, 0)) > luminance((0, 0, 100))

    def test_ignores_alpha(self):
        assert luminance((10, 20, 30, 0)) == luminance((10, 20, 30, 255))

    def test_vectorized(self):
        pixels = np.array([[[0, 0, 0], [255, 0, 0]], [[0, 255, 0], [0, 0, 255]]], dtype=np.uint8)
        lum = luminance(pixels)
        assert lum.shape == (2, 2)
        np.testing.assert_allclose(lum, [[0, 0.2126 * 255], [0.7152 * 255, 0.0722 * 255]])


class TestHexConversion:
    """Hex encode/decode"""

    def test_rgb_to_hex_lowercase(self):
        assert rgb_to_hex((255, 0, 171)) == "#ff00ab"
        assert rgb_to_hex((0, 0, 0)) == "#000000"

    def test_rgb_to_hex_drops_alpha(self):
        assert rgb_to_hex((1, 2, 3, 4)) == "#010203"

    def test_rgb_to_hex_numpy_input(self):
        assert rgb_to_hex(np.array([31, 78, 121, 255], dtype=np.uint8)) == "#1f4e79"

    def test_hex_to_rgb(self):
        assert hex_to_rgb("#1f4e79") == (31, 78, 121)
        assert hex_to_rgb("1F4E79") == (31, 78, 121)

    def test_hex_to_rgb_rejects_bad_length(self):
        with pytest.raises(ValueError):
            hex_to_rgb("#fff")

    def test_sort_key_compares_red_first(self):
        colors = ["#00ffff", "#010000", "#00ff00"]
        assert sorted(colors, key=rgb_sort_key) == ["#00ff00", "#00ffff", "#010000"]


class TestExtractColors:
    """Exact color counting"""

    def test_counts_sorted_descending(self):
        pixels = np.array(
            [[1, 1, 1, 255]] * 2 + [[9, 9, 9, 255]] * 5 + [[4, 4, 4, 255]] * 3,
            dtype=np.uint8,
        )
        results = extract_colors(pixels)
        assert results.shape == (3, 5)
        assert results[:, 4].tolist() == [5, 3, 2]
        assert results[0, :4].tolist() == [9, 9, 9, 255]

    def test_equal_counts_keep_lexicographic_order(self):
        pixels = np.array([[50, 0, 0, 255], [0, 0, 9, 255], [0, 0, 1, 255]], dtype=np.uint8)
        results = extract_colors(pixels)
        assert [tuple(row[:4]) for row in results] == [(0, 0, 1, 255), (0, 0, 9, 255), (50, 0, 0, 255)]

    def test_alpha_distinguishes_colors(self):
        pixels = np.array([[10, 10, 10, 255], [10, 10, 10, 0]], dtype=np.uint8)
        assert len(extract_colors(pixels)) == 2

    def test_accepts_image_shaped_input(self):
        img = np.zeros((4, 6, 4), dtype=np.uint8)
        results = extract_colors(img)
        assert results.tolist() == [[0, 0, 0, 0, 24]]

    def test_empty(self):
        assert extract_colors(np.zeros((0, 0, 4), dtype=np.uint8)).shape == (0, 5)
