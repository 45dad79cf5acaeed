#!/usr/bin/env python3
"""Render the three-spheres demo scene.

This script demonstrates end-to-end rendering: it builds the scene, sets up
the camera, renders with tiled parallel sampling and writes a PNG.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH         Image width in pixels (default: 400)
    --aspect-ratio RATIO  Width divided by height (default: 16/9)
    --samples SAMPLES     Number of samples per pixel (default: 100)
    --depth DEPTH         Maximum bounce depth (default: 50)
    --tiles ROWS COLS     Tile grid of parallel workers (default: 4 4)
    --scene NAME          "spheres" or "plane" (default: spheres)
    --schlick             Enable Schlick partial reflection on glass
    --seed SEED           Random seed (default: 0)
    --threads N           CPU worker threads; 1 gives reproducible output
    --arch ARCH           "cpu", "gpu" or "auto" (default: auto)
    --output OUTPUT       Output file path (default: spheres.png)
    --quiet               Suppress progress output
    --verbose             Enable debug logging

Example:
    python -m examples.render_spheres --width 200 --samples 20 --tiles 2 2
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
        description="Render the three-spheres demo scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
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
        default=16.0 / 9.0,
        help="Width divided by height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=50,
        help="Maximum bounce depth (default: 50)",
    )
    parser.add_argument(
        "--tiles",
        type=int,
        nargs=2,
        default=(4, 4),
        metavar=("ROWS", "COLS"),
        help="Tile grid of parallel workers (default: 4 4)",
    )
    parser.add_argument(
        "--scene",
        choices=("spheres", "plane"),
        default="spheres",
        help="Which demo scene to render (default: spheres)",
    )
    parser.add_argument(
        "--schlick",
        action="store_true",
        help="Enable Schlick partial reflection on dielectrics",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed (default: 0)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Number of CPU threads; 1 makes the output reproducible",
    )
    parser.add_argument(
        "--arch",
        choices=("auto", "cpu", "gpu"),
        default="auto",
        help="Taichi backend (default: auto)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
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


def init_taichi(arch: str, seed: int, threads: int | None, quiet: bool) -> None:
    """Initialize Taichi on the requested backend."""
    cpu_kwargs = {"random_seed": seed}
    if threads is not None:
        cpu_kwargs["cpu_max_num_threads"] = threads

    if arch == "cpu" or threads == 1:
        ti.init(arch=ti.cpu, **cpu_kwargs)
        if not quiet:
            print("Using CPU backend")
        return

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu, random_seed=seed)
        if not quiet:
            print("Using GPU backend")
    except RuntimeError:
        if arch == "gpu":
            raise
        ti.init(arch=ti.cpu, **cpu_kwargs)
        if not quiet:
            print("Using CPU backend")


def render_spheres(
    width: int = 400,
    aspect_ratio: float = 16.0 / 9.0,
    num_samples: int = 100,
    max_depth: int = 50,
    tiles: tuple[int, int] = (4, 4),
    scene_name: str = "spheres",
    schlick: bool = False,
    batch_size: int = 10,
    output_path: str = "spheres.png",
    quiet: bool = False,
) -> Path:
    """Render a demo scene and save it to file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.core.renderer import Renderer
    from pathtracer.core.settings import RenderSettings
    from pathtracer.preview.export import save_png
    from pathtracer.scene.presets import create_ground_plane_scene, create_three_spheres_scene

    settings = RenderSettings(
        width=width,
        aspect_ratio=aspect_ratio,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        tile_rows=tiles[0],
        tile_cols=tiles[1],
        batch_size=batch_size,
        schlick_reflectance=schlick,
    )

    if not quiet:
        print(f"Creating {scene_name} scene ({settings.width}x{settings.height})...")

    if scene_name == "plane":
        scene, camera = create_ground_plane_scene(aspect_ratio=aspect_ratio)
    else:
        scene, camera = create_three_spheres_scene(aspect_ratio=aspect_ratio)

    renderer = Renderer(scene, camera, settings)

    if not quiet:
        print(f"Rendering {num_samples} samples per pixel on {settings.tile_count} tiles...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    framebuffer = renderer.render(callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_png(framebuffer, output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    init_taichi(args.arch, args.seed, args.threads, args.quiet)

    try:
        render_spheres(
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            num_samples=args.samples,
            max_depth=args.depth,
            tiles=tuple(args.tiles),
            scene_name=args.scene,
            schlick=args.schlick,
            batch_size=args.batch_size,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
