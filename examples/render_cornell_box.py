#!/usr/bin/env python3
"""Render the Cornell box scene.

This script renders the classic Cornell box with the boxtracer path tracer.
It builds the scene, sets up the camera and renders with progressive
refinement, writing the image as plain-text PPM (or PNG) and optionally
exporting a handful of recorded light paths as an OBJ file.

Usage:
    python -m examples.render_cornell_box [options]

Options:
    --width WIDTH          Image width in pixels (default: 600)
    --height HEIGHT        Image height in pixels (default: 600)
    --samples SAMPLES      Number of samples per pixel (default: 200)
    --max-depth DEPTH      Maximum path depth (default: 10)
    --seed SEED            Seed for the per-pixel random streams (default: 42)
    --output OUTPUT        Output file, "-" for PPM on stdout (default: -)
    --batch-size SIZE      Samples per progress update (default: 10)
    --record-paths N       Record N light paths and export them (default: 0)
    --paths-output PATH    OBJ file for recorded paths
    --arch {cpu,gpu}       Taichi backend (default: cpu)
    --quiet                Suppress progress output

Example:
    python -m examples.render_cornell_box --width 256 --height 256 --samples 50 > box.ppm
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

import taichi as ti

logger = logging.getLogger("render_cornell_box")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Cornell box scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=600,
        help="Image width in pixels (default: 600)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=600,
        help="Image height in pixels (default: 600)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=200,
        help="Number of samples per pixel (default: 200)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=10,
        help="Maximum path depth (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Seed for the per-pixel random streams (default: 42)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="-",
        help='Output file; ".png" selects PNG, "-" writes PPM to stdout (default: -)',
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--record-paths",
        type=int,
        default=0,
        help="Number of light paths to record and export (default: 0)",
    )
    parser.add_argument(
        "--paths-output",
        type=str,
        default="cornell_box_paths.obj",
        help="OBJ file for recorded paths (default: cornell_box_paths.obj)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def export_light_paths(num_paths: int, width: int, height: int, max_depth: int, output_path: str) -> bool:
    """Record light paths through pseudo-random pixels and export them as OBJ."""
    from boxtracer.core.integrator import record_paths
    from boxtracer.core.recorder import PathRecorder
    from boxtracer.core.rng import aux_stream, draw_uniform
    from boxtracer.preview.paths import export_paths_to_obj

    recorder = PathRecorder(max_paths=num_paths)
    draws = draw_uniform(aux_stream(1), 2 * num_paths)
    pixels = [
        (min(int(draws[2 * n] * width), width - 1), min(int(draws[2 * n + 1] * height), height - 1))
        for n in range(num_paths)
    ]
    record_paths(recorder, pixels, max_depth)
    return export_paths_to_obj(output_path, recorder.get_paths())


def render_cornell_box(
    width: int = 600,
    height: int = 600,
    num_samples: int = 200,
    max_depth: int = 10,
    seed: int = 42,
    output_path: str = "-",
    batch_size: int = 10,
    record_paths: int = 0,
    paths_output: str = "cornell_box_paths.obj",
    quiet: bool = False,
) -> None:
    """Render the Cornell box scene and write the image.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of samples per pixel.
        max_depth: Maximum path depth.
        seed: Seed for the per-pixel random streams.
        output_path: Output file path, "-" for PPM on stdout.
        batch_size: Number of samples to render between progress updates.
        record_paths: Number of light paths to record after rendering.
        paths_output: OBJ file for the recorded paths.
        quiet: If True, suppress progress output.

    Raises:
        ValueError: If a setting is out of range.
        OSError: If the image cannot be written.
    """
    # Lazy imports to allow Taichi initialization first
    from boxtracer.camera.thin_lens import setup_camera
    from boxtracer.core.progressive import ProgressiveRenderer, RenderSettings
    from boxtracer.core.recorder import MAX_RECORDED_PATHS
    from boxtracer.preview.export import save_png, save_ppm, write_ppm
    from boxtracer.scene.cornell_box import create_cornell_box_scene

    settings = RenderSettings(
        width=width,
        height=height,
        samples=num_samples,
        max_depth=max_depth,
        seed=seed,
        batch_size=batch_size,
    )
    settings.validate()
    if not 0 <= record_paths <= MAX_RECORDED_PATHS:
        raise ValueError(
            f"record_paths must be in [0, {MAX_RECORDED_PATHS}], got {record_paths}"
        )

    _, camera, _ = create_cornell_box_scene(aspect_ratio=settings.aspect_ratio)
    setup_camera(camera)

    renderer = ProgressiveRenderer.from_settings(settings)

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
                file=sys.stderr,
                flush=True,
            )

    renderer.render(
        num_samples=settings.samples,
        batch_size=settings.batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print(file=sys.stderr)  # Newline after progress

    if output_path == "-":
        write_ppm(renderer.get_image_uint8(), sys.stdout)
        sys.stdout.flush()
    elif output_path.lower().endswith(".png"):
        save_png(renderer, output_path)
    else:
        save_ppm(renderer, output_path)

    if record_paths > 0:
        export_light_paths(record_paths, width, height, max_depth, paths_output)

    logger.info("Total time: %.2fs", time.time() - start_time)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    ti.init(arch=ti.cuda if args.arch == "gpu" else ti.cpu)

    try:
        render_cornell_box(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            record_paths=args.record_paths,
            paths_output=args.paths_output,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
