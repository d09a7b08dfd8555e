"""Band renderer: renders a loaded scene row band by row band.

The Renderer uploads a Scene, then renders the image in bands of rows. Each
band is one parallel kernel launch over all of its pixels; between bands the
renderer reports progress through a callback or by yielding, which is what
the command line uses for its progress line.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.core.renderer import Renderer
    >>> from whitted.scene.loader import load_scene
    >>>
    >>> renderer = Renderer(load_scene("examples/spheres.yaml"))
    >>> image = renderer.render()  # (height, width, 3) float32 in [0, 1]
    >>> renderer.save_image("spheres.png")
"""

import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass
from os import PathLike

import numpy as np
import numpy.typing as npt

from whitted.core.tracer import (
    get_degenerate_count,
    get_image_numpy,
    get_recursive_ray_count,
    render_rows,
    reset_counters,
)
from whitted.lights.light import (
    get_degenerate_light_query_count,
    reset_degenerate_light_query_count,
)
from whitted.preview.export import apply_gamma, save_image
from whitted.scene.description import Scene
from whitted.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

# Rows rendered per kernel launch
DEFAULT_BAND_ROWS = 16


@dataclass
class RenderStats:
    """Counters collected during the last render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Primary rays per pixel (aliasing_limit squared).
        recursive_rays: Reflected and refracted rays traced.
        degenerate: Light queries and refractions skipped because a
            direction could not be normalized.
        elapsed_seconds: Wall-clock time of the render.
    """

    width: int = 0
    height: int = 0
    samples_per_pixel: int = 0
    recursive_rays: int = 0
    degenerate: int = 0
    elapsed_seconds: float = 0.0


class Renderer:
    """Renders one scene, band by band.

    The scene is uploaded to the Taichi fields when the renderer is created.
    Those fields are shared module state, so only the renderer created last
    can render correctly.

    Attributes:
        scene: The scene being rendered.
        band_rows: Rows rendered per kernel launch.
        stats: Counters from the last render.
    """

    def __init__(self, scene: Scene, band_rows: int = DEFAULT_BAND_ROWS) -> None:
        """Upload the scene and prepare the render target.

        Args:
            scene: A validated scene.
            band_rows: Rows rendered per kernel launch (>= 1).

        Raises:
            ValueError: If band_rows is not positive.
            RuntimeError: If the scene exceeds a storage capacity.
        """
        if band_rows < 1:
            raise ValueError(f"band_rows must be >= 1, got {band_rows}")
        self.scene = scene
        self.band_rows = band_rows
        self.stats = RenderStats()
        self._manager = SceneManager()
        self._manager.load(scene)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.scene.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.scene.height

    def render(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.float32]:
        """Render the whole image.

        Args:
            callback: Optional callback called after each band.
                Receives (rows_done, total_rows).

        Returns:
            NumPy array of shape (height, width, 3), dtype float32, row 0 at
            the top, values in [0, 1].
        """
        for rows_done, total_rows in self.render_progressive():
            if callback is not None:
                callback(rows_done, total_rows)
        return self.get_image_numpy()

    def render_progressive(self) -> Generator[tuple[int, int], None, None]:
        """Render the image, yielding progress after each band.

        Yields:
            Tuple of (rows_done, total_rows).

        Example:
            >>> for done, total in renderer.render_progressive():
            ...     print(f"Progress: {done}/{total} rows")
        """
        n = self.scene.aliasing_limit
        self.stats = RenderStats(
            width=self.width, height=self.height, samples_per_pixel=n * n
        )
        logger.info(
            "Rendering %dx%d, %d samples per pixel, reflection limit %d",
            self.width,
            self.height,
            n * n,
            self.scene.reflection_limit,
        )

        start = time.perf_counter()
        reset_degenerate_light_query_count()
        for row_start in range(0, self.height, self.band_rows):
            row_end = min(row_start + self.band_rows, self.height)
            # Counters are per band; totals live in stats
            reset_counters()
            render_rows(row_start, row_end)
            self.stats.recursive_rays += get_recursive_ray_count()
            self.stats.degenerate += get_degenerate_count()
            logger.debug("Rendered rows %d-%d", row_start, row_end - 1)
            yield (row_end, self.height)

        self.stats.degenerate += get_degenerate_light_query_count()
        self.stats.elapsed_seconds = time.perf_counter() - start
        logger.info(
            "Rendered %dx%d in %.2fs (%d recursive rays)",
            self.width,
            self.height,
            self.stats.elapsed_seconds,
            self.stats.recursive_rays,
        )
        if self.stats.degenerate:
            logger.debug("Skipped %d degenerate directions", self.stats.degenerate)

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32,
            clamped to [0, 1].

        Raises:
            ValueError: If gamma is not positive.
        """
        return apply_gamma(get_image_numpy(), gamma)

    def save_image(self, filepath: str | PathLike[str], gamma: float = 1.0) -> None:
        """Save the rendered image to a file (format from the extension).

        Args:
            filepath: Path to save the image (e.g., "output.png").
            gamma: Gamma correction value. Default 1.0 (linear).
        """
        save_image(get_image_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"aliasing_limit={self.scene.aliasing_limit}, "
            f"reflection_limit={self.scene.reflection_limit})"
        )


def render(
    scene: Scene,
    band_rows: int = DEFAULT_BAND_ROWS,
    callback: ProgressCallback | None = None,
) -> npt.NDArray[np.float32]:
    """Render a scene to a (height, width, 3) float32 array in [0, 1].

    Args:
        scene: A validated scene.
        band_rows: Rows rendered per kernel launch.
        callback: Optional progress callback, see Renderer.render().
    """
    return Renderer(scene, band_rows=band_rows).render(callback=callback)
