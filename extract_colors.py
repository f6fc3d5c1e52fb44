#!/usr/bin/env python3
"""
Color primitives shared by the palette pipeline: luminance, hex encoding
and exact-color counting over RGBA pixel arrays.
"""

import numpy as np


# Rec. 709 luma weights
LUMINANCE_WEIGHTS = (0.2126, 0.7152, 0.0722)


def luminance(rgb):
    """
    Perceptual luminance of 8-bit RGB values.

    Accepts a single (R, G, B[, A]) sequence or an array whose last axis
    holds the channels; alpha is ignored.
    """
    rgb = np.asarray(rgb, dtype=np.float64)
    wr, wg, wb = LUMINANCE_WEIGHTS
    return wr * rgb[..., 0] + wg * rgb[..., 1] + wb * rgb[..., 2]


def rgb_to_hex(color) -> str:
    """Convert an (R, G, B[, A]) color to '#rrggbb'. Alpha is dropped."""
    r, g, b = (int(c) for c in color[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_rgb(hex_color: str) -> tuple:
    """Convert '#rrggbb' to an (R, G, B) tuple."""
    value = hex_color.lstrip('#')
    if len(value) != 6:
        raise ValueError(f"Not a #rrggbb color: {hex_color!r}")
    return tuple(int(value[i:i + 2], 16) for i in (0, 2, 4))


def rgb_sort_key(hex_color: str) -> tuple:
    """Sort key comparing R first, then G, then B."""
    return hex_to_rgb(hex_color)


def extract_colors(pixels: np.ndarray) -> np.ndarray:
    """
    Count exact colors in a pixel array.

    Args:
        pixels: Array of shape (..., 4) with uint8 RGBA channels

    Returns:
        numpy array of shape (n_colors, 5) where columns are [R, G, B, A, pixels].
        Sorted by pixel count descending; colors with equal counts keep
        ascending (R, G, B, A) order.
    """
    flat = np.asarray(pixels).reshape(-1, 4)
    if flat.shape[0] == 0:
        return np.zeros((0, 5), dtype=np.int64)

    # Unique rows come back sorted lexicographically
    unique_colors, counts = np.unique(flat, axis=0, return_counts=True)

    results = np.column_stack([unique_colors.astype(np.int64), counts.astype(np.int64)])

    # Stable sort keeps lexicographic order among equal counts
    order = np.argsort(-results[:, 4], kind='stable')
    return results[order]
