"""Command-line entry point: render a scene file to an image.

Usage:
    whitted -i scene.yaml -o scene.png [options]
    python -m whitted -i scene.yaml -o scene.png [options]

Options:
    -i, --input INPUT       Scene description (YAML)
    -o, --output OUTPUT     Output image path (format from the extension)
    --arch {cpu,gpu}        Taichi backend (default: cpu)
    --gamma GAMMA           Gamma applied on export (default: 1.0, linear)
    --band-rows N           Rows rendered per kernel launch (default: 16)
    --quiet                 Suppress progress output and info logging
    --verbose               Enable debug logging

Example:
    whitted -i examples/spheres.yaml -o spheres.png --gamma 2.2
"""

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti

from whitted.errors import ConfigurationError
from whitted.scene.loader import load_scene

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="whitted",
        description="Render a scene description with a recursive ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        required=True,
        help="Scene description file (YAML)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        required=True,
        help="Output image path, format taken from the extension",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        default=1.0,
        help="Gamma applied on export (default: 1.0)",
    )
    parser.add_argument(
        "--band-rows",
        type=int,
        default=16,
        help="Rows rendered per kernel launch (default: 16)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)
    if args.gamma <= 0.0:
        parser.error("--gamma must be positive")
    if args.band_rows < 1:
        parser.error("--band-rows must be >= 1")
    return args


def init_taichi(arch: str, quiet: bool = False) -> None:
    """Initialize Taichi, falling back to CPU when no GPU backend starts."""
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu)
            if not quiet:
                print("Using GPU backend")
            return
        except RuntimeError as e:
            logger.warning("GPU backend unavailable (%s), using CPU", e)
    ti.init(arch=ti.cpu)
    if not quiet:
        print("Using CPU backend")


def render_file(
    input_path: Path,
    output_path: Path,
    gamma: float = 1.0,
    band_rows: int = 16,
    quiet: bool = False,
) -> Path:
    """Render a scene file and save the image.

    Taichi must be initialized before calling this.

    Args:
        input_path: Scene description file.
        output_path: Output image path.
        gamma: Gamma applied on export.
        band_rows: Rows rendered per kernel launch.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.

    Raises:
        ConfigurationError: If the scene description is invalid.
        OSError: If a file cannot be read or written.
    """
    # Lazy imports so the render fields are created after ti.init()
    from whitted.core.renderer import Renderer
    from whitted.preview.export import save_image

    scene = load_scene(input_path)
    renderer = Renderer(scene, band_rows=band_rows)

    if not quiet:
        print(f"Rendering {input_path} ({scene.width}x{scene.height})...")

    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (rows_done / total_rows) * 100 if total_rows > 0 else 0
            print(
                f"\r  Progress: {rows_done}/{total_rows} rows "
                f"({progress_pct:.1f}%) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    image = renderer.render(callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    try:
        save_image(image, output_path, gamma=gamma)
    except ValueError as e:
        # Pillow reports unknown extensions as ValueError
        raise OSError(f"Cannot write {output_path}: {e}") from e

    if not quiet:
        print(f"Saved to: {output_path.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return output_path


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    # Validate the scene before paying for backend startup
    try:
        load_scene(args.input)
    except (ConfigurationError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    init_taichi(args.arch, quiet=args.quiet)

    try:
        render_file(
            args.input,
            args.output,
            gamma=args.gamma,
            band_rows=args.band_rows,
            quiet=args.quiet,
        )
        return 0
    except (ConfigurationError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
