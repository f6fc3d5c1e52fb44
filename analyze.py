#!/usr/bin/env python3
"""
Tonal ramp and prominent-color extraction.

Derives two palettes from an image:
  base8    - 8 progressively lighter steps anchored at the darkest pixel
  palette  - the dominant color of each tile of a blurred copy of the image,
             ordered from the highest (R, G, B) down

Pipeline: Decode → Tonal Ramp → Blur → Tiling → Sampling → Ordering
"""

import math
from dataclasses import dataclass, field
from itertools import accumulate
from pathlib import Path

import numpy as np
from PIL import Image
from scipy.ndimage import convolve1d

from extract_colors import extract_colors, hex_to_rgb, luminance, rgb_sort_key, rgb_to_hex


# =============================================================================
# Constants
# =============================================================================

RAMP_STEPS = 8  # Entries in the tonal ramp
RAMP_STEP_FRACTION = 0.125  # Each step lightens by 12.5% of the channel range
RAMP_STEP = round(RAMP_STEP_FRACTION * 255)  # 32

BLUR_RADIUS = 30  # Stack blur radius applied before tiling
GRID_SIZE = 4  # Tiles per side (up to 16 tiles)

WHITE = (255, 255, 255, 255)

SUPPORTED_EXTENSIONS = {'.jpg', '.jpeg', '.png'}
HIGH_DEPTH_MODES = {'I', 'I;16', 'I;16L', 'I;16B', 'I;16N'}  # 16/32-bit grayscale

# Image size limits (security: prevent decompression bombs)
MAX_IMAGE_PIXELS = 50_000_000  # 50 megapixels
MAX_IMAGE_DIMENSION = 10_000  # 10k pixels per side


# =============================================================================
# Errors
# =============================================================================

class PaletteError(Exception):
    """Base class for palette extraction errors."""


class DecodeError(PaletteError, ValueError):
    """Image file is unsupported, corrupt or too large."""


class EmptyImageError(PaletteError, ValueError):
    """Image or tile has no pixels."""


def _check_not_empty(image: np.ndarray) -> None:
    height, width = image.shape[:2]
    if height == 0 or width == 0:
        raise EmptyImageError(f"Image has no pixels ({width}x{height})")


# =============================================================================
# Image Loading
# =============================================================================

def to_rgba_array(image) -> np.ndarray:
    """
    Normalize a Pillow image or numpy array to a (height, width, 4) uint8 array.

    Grayscale arrays are expanded to RGB, and RGB arrays get an opaque
    alpha channel. 16-bit grayscale images are reduced to their high byte.

    Raises:
        ValueError: If the array shape is not an image or a non-uint8 array
            holds values outside 0-255
    """
    if isinstance(image, Image.Image):
        if image.mode in HIGH_DEPTH_MODES:
            # Pillow's convert() clips these at 255 instead of scaling
            pixels = np.clip(np.array(image).astype(np.int64) >> 8, 0, 255).astype(np.uint8)
            return to_rgba_array(pixels)
        return np.array(image.convert('RGBA'))

    pixels = np.asarray(image)
    if pixels.dtype != np.uint8:
        if pixels.size and (pixels.min() < 0 or pixels.max() > 255):
            raise ValueError(
                f"Pixel values must be in 0-255, got {pixels.min()}..{pixels.max()}"
            )
        pixels = pixels.astype(np.uint8)
    if pixels.ndim == 2:
        pixels = np.repeat(pixels[:, :, np.newaxis], 3, axis=2)
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ValueError(f"Expected an RGB or RGBA pixel array, got shape {pixels.shape}")
    if pixels.shape[2] == 3:
        alpha = np.full(pixels.shape[:2] + (1,), 255, dtype=np.uint8)
        pixels = np.concatenate([pixels, alpha], axis=2)
    return pixels


def load_image(image_path: str) -> np.ndarray:
    """
    Decode a JPEG or PNG file into an RGBA pixel array.

    Raises:
        FileNotFoundError: If image file doesn't exist
        DecodeError: If the file is not a supported image or exceeds size limits
    """
    extension = Path(image_path).suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise DecodeError(
            f"Unsupported image type {extension or '(none)'!r}; "
            f"expected one of {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    try:
        img = Image.open(image_path)
    except FileNotFoundError:
        raise FileNotFoundError(f"Image not found: {image_path}")
    except (OSError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Could not open image: {e}") from e

    with img:
        width, height = img.size
        if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
            raise DecodeError(
                f"Image dimensions {width}x{height} exceed maximum "
                f"{MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
            )
        if width * height > MAX_IMAGE_PIXELS:
            raise DecodeError(
                f"Image has {width * height:,} pixels, exceeding maximum {MAX_IMAGE_PIXELS:,}"
            )

        try:
            return to_rgba_array(img)
        except OSError as e:
            # Truncated or corrupt pixel data only surfaces on decode
            raise DecodeError(f"Could not decode image: {e}") from e


# =============================================================================
# Stage 1: Tonal Ramp
# =============================================================================

def find_darkest_color(image: np.ndarray) -> tuple:
    """
    Find the lowest-luminance pixel, scanning rows top to bottom.

    Starts from white and only replaces it with a strictly darker pixel, so
    the first pixel of minimal luminance wins and an all-white image yields
    white. Alpha of the result is always 255.
    """
    _check_not_empty(image)

    pixels = image.reshape(-1, image.shape[2])
    lum = luminance(pixels[:, :3])

    # argmin returns the first occurrence, matching a strict '<' scan
    idx = int(np.argmin(lum))
    if lum[idx] < luminance(WHITE):
        r, g, b = (int(c) for c in pixels[idx, :3])
        return (r, g, b, 255)
    return WHITE


def lighten(color: tuple, step: int = RAMP_STEP) -> tuple:
    """Raise R, G and B by step, clamped at 255."""
    r, g, b, a = color
    return (min(r + step, 255), min(g + step, 255), min(b + step, 255), a)


def build_ramp(start: tuple, steps: int = RAMP_STEPS, step: int = RAMP_STEP) -> tuple:
    """Fold `lighten` over start, returning `steps` colors beginning with start."""
    return tuple(accumulate(range(steps - 1), lambda color, _: lighten(color, step), initial=start))


def tonal_ramp(image) -> list[str]:
    """
    Generate the base8 ramp for an image.

    Returns:
        8 hex strings, darkest first
    """
    pixels = to_rgba_array(image)
    darkest = find_darkest_color(pixels)
    return [rgb_to_hex(color) for color in build_ramp(darkest)]


# =============================================================================
# Stage 2: Blur
# =============================================================================

def blur_image(image: np.ndarray, radius: int = BLUR_RADIUS) -> np.ndarray:
    """
    Smooth an RGBA image with a stack blur of the given radius.

    Uses the stack blur's triangular kernel (weights 1, 2, ..., radius + 1,
    ..., 2, 1), applied separably along rows and columns so it stays
    centred on each pixel. Edges are extended with the nearest pixel.
    Output has the same shape and dtype as the input.
    """
    if radius <= 0:
        return image.copy()

    box = np.ones(radius + 1)
    kernel = np.convolve(box, box) / (radius + 1) ** 2  # length 2 * radius + 1

    blurred = image.astype(np.float64)
    for axis in (0, 1):  # Don't mix channels
        blurred = convolve1d(blurred, kernel, axis=axis, mode='nearest')

    return np.clip(np.round(blurred), 0, 255).astype(np.uint8)


# =============================================================================
# Stage 3: Tiling
# =============================================================================

@dataclass(frozen=True)
class Tile:
    """A rectangular window into an image. Holds no pixel data of its own."""
    source: np.ndarray = field(repr=False, compare=False)
    x: int
    y: int
    width: int
    height: int

    @property
    def pixels(self) -> np.ndarray:
        """Numpy view of the tile's pixels, shape (height, width, channels)."""
        return self.source[self.y:self.y + self.height, self.x:self.x + self.width]


def slice_image(image: np.ndarray, grid: int = GRID_SIZE) -> list[Tile]:
    """
    Partition an image into equal tiles in row-major order.

    Tile size is ceil(dimension / grid). Only tiles that fit entirely inside
    the image are produced, so the right and bottom remainder strips are
    dropped and non-divisible sizes can yield fewer than grid x grid tiles.

    Raises:
        EmptyImageError: If the image has zero width or height

    Returns an empty list when grid <= 0.
    """
    _check_not_empty(image)
    if grid <= 0:
        return []

    height, width = image.shape[:2]
    tile_height = math.ceil(height / grid)
    tile_width = math.ceil(width / grid)

    tiles = []
    for y in range(0, height - tile_height + 1, tile_height):
        for x in range(0, width - tile_width + 1, tile_width):
            tiles.append(Tile(image, x, y, tile_width, tile_height))

    return tiles


# =============================================================================
# Stage 4: Sampling
# =============================================================================

def dominant_color(tile: Tile) -> tuple:
    """
    Most frequent exact RGBA color in a tile.

    Ties go to the lexicographically smallest (R, G, B, A) color.

    Raises:
        EmptyImageError: If the tile has no pixels
    """
    counts = extract_colors(tile.pixels)
    if len(counts) == 0:
        raise EmptyImageError(f"Tile at ({tile.x}, {tile.y}) has no pixels")
    return tuple(int(c) for c in counts[0, :4])


def sample_palette(tiles: list[Tile]) -> list[tuple]:
    """Dominant color of each tile, in tile order."""
    return [dominant_color(tile) for tile in tiles]


# =============================================================================
# Stage 5: Ordering
# =============================================================================

def order_palette(hex_colors: list[str]) -> list[str]:
    """Sort by (R, G, B) ascending, then reverse the whole sequence."""
    ordered = sorted(hex_colors, key=rgb_sort_key)
    ordered.reverse()
    return ordered


# =============================================================================
# Main Pipeline
# =============================================================================

@dataclass
class PaletteResult:
    """Colors extracted from one image."""
    base8: list  # 8 hex strings, darkest first
    palette: list  # hex strings, highest (R, G, B) first
    image_shape: tuple  # (height, width)


def prominent_colors(image, grid: int = GRID_SIZE, radius: int = BLUR_RADIUS) -> list[str]:
    """
    Dominant colors of the blurred image's tiles as hex strings.

    Returns:
        One color per tile, sorted descending by (R, G, B)
    """
    pixels = to_rgba_array(image)
    _check_not_empty(pixels)

    blurred = blur_image(pixels, radius)
    tiles = slice_image(blurred, grid)
    colors = sample_palette(tiles)

    return order_palette([rgb_to_hex(color) for color in colors])


def extract_palette(image, grid: int = GRID_SIZE, radius: int = BLUR_RADIUS) -> PaletteResult:
    """Compute base8 and the prominent-color palette for an in-memory image."""
    pixels = to_rgba_array(image)
    return PaletteResult(
        base8=tonal_ramp(pixels),
        palette=prominent_colors(pixels, grid=grid, radius=radius),
        image_shape=pixels.shape[:2],
    )


def run_pipeline(image_path: str, grid: int = GRID_SIZE, radius: int = BLUR_RADIUS) -> PaletteResult:
    """Decode an image file and extract its palettes."""
    return extract_palette(load_image(image_path), grid=grid, radius=radius)


# =============================================================================
# Render
# =============================================================================

def render(result: PaletteResult) -> str:
    """Plain-text report of both palettes."""
    lines = [
        f"Palette ({len(result.palette)} colors): {' '.join(result.palette) or '(none)'}",
        f"Base8: {' '.join(result.base8)}",
    ]
    return '\n'.join(lines)


def text_color_for_background(hex_color: str) -> tuple:
    """Black or white, whichever reads better on the given swatch."""
    return (0, 0, 0) if luminance(hex_to_rgb(hex_color)) > 128 else (255, 255, 255)


def render_swatches(result: PaletteResult) -> Image.Image:
    """
    Draw both palettes as labelled swatches.

    Row 1 holds the base8 ramp, row 2 the prominent colors.
    """
    from PIL import ImageDraw

    swatch_size = 80
    padding = 10
    text_height = 20

    rows = [result.base8, result.palette]
    cols = max(len(row) for row in rows) or 1

    img_width = cols * (swatch_size + padding) + padding
    img_height = len(rows) * (swatch_size + text_height + padding) + padding

    img = Image.new('RGB', (img_width, img_height), (240, 240, 240))
    draw = ImageDraw.Draw(img)

    for row_idx, row in enumerate(rows):
        y = padding + row_idx * (swatch_size + text_height + padding)
        for col_idx, hex_color in enumerate(row):
            x = padding + col_idx * (swatch_size + padding)
            draw.rectangle([x, y, x + swatch_size, y + swatch_size], fill=hex_color)

            # Hex label centered inside the swatch
            bbox = draw.textbbox((0, 0), hex_color)
            text_width = bbox[2] - bbox[0]
            text_x = x + (swatch_size - text_width) // 2
            draw.text((text_x, y + swatch_size // 2 - 5), hex_color,
                      fill=text_color_for_background(hex_color))

        label = 'base8' if row_idx == 0 else 'palette'
        draw.text((padding, y + swatch_size + 4), label, fill=(0, 0, 0))

    return img


# =============================================================================
# CLI
# =============================================================================

def main(argv=None):
    import argparse
    import sys

    parser = argparse.ArgumentParser(
        description='Extract a tonal ramp and prominent colors from an image.'
    )
    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Path to a .jpg, .jpeg or .png image'
    )
    parser.add_argument(
        '--output', '-o',
        nargs='?',
        const=True,
        default=None,
        help='Write a swatch PNG. Optionally specify path, otherwise auto-names from input.'
    )
    parser.add_argument(
        '--grid', '-g',
        type=int,
        default=GRID_SIZE,
        help=f'Tiles per side (default {GRID_SIZE})'
    )
    parser.add_argument(
        '--radius', '-r',
        type=int,
        default=BLUR_RADIUS,
        help=f'Blur radius in pixels (default {BLUR_RADIUS})'
    )

    args = parser.parse_args(argv)
    image_path = Path(args.input)

    try:
        result = run_pipeline(str(image_path), grid=args.grid, radius=args.radius)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error analyzing image: {e}", file=sys.stderr)
        sys.exit(1)

    print(render(result))

    if args.output:
        if args.output is True:
            output_path = image_path.with_name(f"{image_path.stem}-palette.png")
        else:
            output_path = Path(args.output)

        try:
            render_swatches(result).save(output_path)
            print(f"\nWrote: {output_path}")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == '__main__':
    main()
