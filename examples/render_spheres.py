#!/usr/bin/env python3
"""Render one of the built-in sphere scenes.

Usage:
    python -m examples.render_spheres [options]

Options:
    --scene {three,two,random}  Scene to render (default: three)
    --width WIDTH               Image width in pixels (default: 400)
    --aspect-ratio RATIO        Width / height (default: the scene's own)
    --samples SAMPLES           Samples per pixel (default: 100)
    --max-depth DEPTH           Maximum bounces per path (default: 50)
    --seed SEED                 Render and layout seed (default: 0)
    --serial                    Use the serialized kernel instead of the parallel one
    --output OUTPUT             Output file, .ppm or .png (default: spheres.png)
    --quiet                     Suppress progress output
    --verbose                   Enable debug logging

Example:
    python -m examples.render_spheres --scene random --width 1200 --samples 32 --max-depth 8
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a built-in sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=("three", "two", "random"),
        default="three",
        help="Scene to render (default: three)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=None,
        help="Image width / height (default: the scene's camera aspect ratio)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for sampling and for the random scene layout (default: 0)",
    )
    parser.add_argument(
        "--serial",
        action="store_true",
        help="Render with the serialized kernel",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path, .ppm or .png (default: spheres.png)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def render_spheres(
    scene_name: str = "three",
    width: int = 400,
    aspect_ratio: float | None = None,
    samples: int = 100,
    max_depth: int = 50,
    seed: int = 0,
    parallel: bool = True,
    output_path: str = "spheres.png",
    quiet: bool = False,
) -> Path:
    """Render a built-in scene and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.core.config import Image, RenderConfig
    from pathtracer.core.renderer import Renderer
    from pathtracer.preview.export import save_pixels
    from pathtracer.scene.worlds import create_scene

    scene, camera = create_scene(scene_name, aspect_ratio=aspect_ratio, seed=seed)
    image = Image(width=width, aspect_ratio=camera.aspect_ratio)
    config = RenderConfig(samples_per_pixel=samples, max_depth=max_depth)

    if not quiet:
        print(
            f"Rendering '{scene_name}' scene ({scene.get_sphere_count()} spheres) "
            f"at {image.width}x{image.height}, {samples} spp, depth {max_depth}..."
        )

    renderer = Renderer(camera, image, config, seed=seed, parallel=parallel)
    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        if not quiet:
            progress_pct = (done / total) * 100 if total > 0 else 0
            print(
                f"\r  Progress: {done}/{total} rows ({progress_pct:.1f}%)",
                end="",
                flush=True,
            )

    pixels = renderer.render(callback=progress_callback)

    if not quiet:
        print()

    output_file = Path(output_path)
    save_pixels(pixels, image.width, image.height, output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_spheres(
            scene_name=args.scene,
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            parallel=not args.serial,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
