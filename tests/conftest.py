"""Shared fixtures: small synthetic RGBA images."""

import numpy as np
import pytest
from PIL import Image


QUADRANT_COLORS = [
    (200, 30, 40),   # top-left
    (20, 160, 60),   # top-right
    (30, 60, 190),   # bottom-left
    (240, 220, 90),  # bottom-right
]


def solid_image(color, width=10, height=10) -> np.ndarray:
    """Uniform RGBA image."""
    rgba = tuple(color) + (255,) * (4 - len(color))
    return np.full((height, width, 4), rgba, dtype=np.uint8)


def quadrant_image(size=200) -> np.ndarray:
    """Square RGBA image split into four solid quadrants."""
    half = size // 2
    img = np.zeros((size, size, 4), dtype=np.uint8)
    img[..., 3] = 255
    img[:half, :half, :3] = QUADRANT_COLORS[0]
    img[:half, half:, :3] = QUADRANT_COLORS[1]
    img[half:, :half, :3] = QUADRANT_COLORS[2]
    img[half:, half:, :3] = QUADRANT_COLORS[3]
    return img


@pytest.fixture
def noise_image() -> np.ndarray:
    """Seeded random RGBA image with opaque alpha."""
    rng = np.random.default_rng(1234)
    img = rng.integers(0, 256, size=(48, 64, 4), dtype=np.uint8)
    img[..., 3] = 255
    return img


@pytest.fixture
def quadrant_png(tmp_path):
    """Quadrant image saved as PNG."""
    path = tmp_path / "quadrants.png"
    Image.fromarray(quadrant_image()).save(path)
    return path
