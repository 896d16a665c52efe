#!/usr/bin/env python3
"""Render a scene file.

Loads a JSON scene description, renders it with one primary ray per pixel
and Phong shading, and writes the image.

Usage:
    python -m examples.render_scene SCENE [options]

Options:
    --output OUTPUT     Output file path (default: the scene's "output" key)
    --arch {gpu,cpu}    Taichi backend; gpu falls back to cpu (default: gpu)
    --quiet             Suppress progress output

Example:
    python -m examples.render_scene examples/scenes/spheres.json --output spheres.png
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "scene",
        type=str,
        help="Path to the JSON scene file",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output file path (default: the scene's output key)",
    )
    parser.add_argument(
        "--arch",
        choices=("gpu", "cpu"),
        default="gpu",
        help="Taichi backend; gpu falls back to cpu (default: gpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_scene(
    scene_path: str,
    output_path: str | None = None,
    quiet: bool = False,
) -> Path:
    """Render a scene file and save the image.

    Args:
        scene_path: Path to the JSON scene file.
        output_path: Output file path; None uses the scene's output key.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.phong.scene.scene import Scene

    if not quiet:
        print(f"Loading scene {scene_path}...")

    scene = Scene.from_file(scene_path)

    if not quiet:
        print(
            f"Rendering {scene.width}x{scene.height} "
            f"({scene.shape_count} shapes, {scene.light_count} lights)..."
        )

    start_time = time.time()
    output_file = scene.draw(output_path)
    total_time = time.time() - start_time

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def init_taichi(arch: str, quiet: bool = False) -> None:
    """Initialize Taichi, falling back to the CPU when no GPU is usable."""
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu)
            if not quiet:
                print("Using GPU backend")
            return
        except Exception:
            if not quiet:
                print("GPU backend unavailable, falling back to CPU")

    ti.init(arch=ti.cpu)
    if not quiet:
        print("Using CPU backend")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    init_taichi(args.arch, quiet=args.quiet)

    try:
        render_scene(
            scene_path=args.scene,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
