#!/usr/bin/env python3
"""
Run the palette pipeline over every JPEG/PNG in a directory.

Prints the prominent colors and base8 ramp per image, optionally saves a
swatch sheet next to each result, and exits non-zero if any image failed.
"""

import argparse
import sys
import time
from pathlib import Path

from analyze import BLUR_RADIUS, GRID_SIZE, SUPPORTED_EXTENSIONS, render_swatches, run_pipeline


def find_images(directory: Path) -> list[Path]:
    """Supported image files directly inside directory, sorted by name."""
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
    )


def process_image(image_path: Path, swatch_dir, grid: int, radius: int):
    """Extract one image's palettes and save its swatch sheet if asked."""
    result = run_pipeline(str(image_path), grid=grid, radius=radius)

    if swatch_dir is not None:
        swatch_path = swatch_dir / f"{image_path.stem}-palette.png"
        if swatch_path.exists():
            print(f"  Replacing existing swatch {swatch_path.name}", file=sys.stderr)
        render_swatches(result).save(swatch_path)

    return result


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Extract base8 ramps and prominent colors for a folder of images.'
    )
    parser.add_argument('--input', '-i', required=True,
                        help='Folder of .jpg/.jpeg/.png images')
    parser.add_argument('--output', '-o', default=None,
                        help='Folder for swatch sheets; palettes are only printed when omitted')
    parser.add_argument('--grid', '-g', type=int, default=GRID_SIZE,
                        help=f'Tiles per side (default {GRID_SIZE})')
    parser.add_argument('--radius', '-r', type=int, default=BLUR_RADIUS,
                        help=f'Blur radius in pixels (default {BLUR_RADIUS})')
    args = parser.parse_args(argv)

    source = Path(args.input)
    swatch_dir = Path(args.output) if args.output else None

    if not source.is_dir():
        print(f"Error: {source} is not a directory", file=sys.stderr)
        sys.exit(2)

    images = find_images(source)
    if not images:
        print(f"Error: no .jpg/.jpeg/.png files in {source}", file=sys.stderr)
        sys.exit(2)

    if swatch_dir is not None:
        swatch_dir.mkdir(parents=True, exist_ok=True)

    errors = {}
    start = time.perf_counter()

    for n, image_path in enumerate(images, 1):
        tag = f"[{n}/{len(images)}] {image_path.name}"
        t0 = time.perf_counter()
        try:
            result = process_image(image_path, swatch_dir, args.grid, args.radius)
        except Exception as e:
            errors[image_path.name] = f"{type(e).__name__}: {e}"
            print(f"{tag} → ERROR: {errors[image_path.name]}", file=sys.stderr)
            continue

        print(f"{tag} → {' '.join(result.palette)} ({time.perf_counter() - t0:.2f}s)")
        print(f"    base8: {' '.join(result.base8)}")

    elapsed = time.perf_counter() - start
    done = len(images) - len(errors)

    print(f"\n{done} of {len(images)} images extracted in {elapsed:.2f}s")
    if errors:
        print(f"{len(errors)} failed:")
        for name, message in errors.items():
            print(f"  {name}: {message}")
        sys.exit(1)


if __name__ == '__main__':
    main()
