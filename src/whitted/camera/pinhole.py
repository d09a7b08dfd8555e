"""Pinhole camera model for primary ray generation.

The camera is placed at ``origin`` and looks along ``forward``. Its
orthonormal basis is built with cross products:

    right = normalize(forward x up)
    up'   = right x forward

The image plane sits at ``distance_to_image`` along forward. Its longer side
spans the field of view: 2 * tan(fov / 2) * distance_to_image. The shorter
side follows from the image's aspect ratio.

Image coordinates (u, v) are normalized to [0, 1] with u = 0 at the left
edge and v = 0 at the top edge, matching the row order of the output image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.camera.pinhole import setup_camera, get_ray
    >>> from whitted.scene.description import Camera
    >>> setup_camera(Camera((0, 0, 0), (1, 0, 0), (0, 1, 0), 90.0, 1.0, 64, 48))
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import math

import numpy as np
import taichi as ti
import taichi.math as tm

from whitted.core.ray import Ray, make_ray, vec3
from whitted.core.vector import as_vector, normalize
from whitted.scene.description import Camera

# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())

# Image plane: center point and the full-extent edge vectors
_image_center = ti.Vector.field(3, dtype=ti.f32, shape=())
_image_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width, left to right
_image_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height, bottom to top


# =============================================================================
# Camera Setup (Python-side, called once per scene)
# =============================================================================


def image_plane_size(camera: Camera) -> tuple[float, float]:
    """World-space (width, height) of the image plane.

    The field of view spans the longer image side.
    """
    longer = 2.0 * math.tan(math.radians(camera.fov) / 2.0) * camera.distance_to_image
    if camera.x >= camera.y:
        return longer, longer * camera.y / camera.x
    return longer * camera.x / camera.y, longer


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from a scene camera.

    Computes the orthonormal basis and the image plane geometry and writes
    them to the camera fields. Must be called before rendering.

    Args:
        camera: The validated scene camera.

    Note:
        This function writes to Taichi fields and should be called from
        Python (not from within a Taichi kernel).
    """
    origin = as_vector(camera.origin)
    forward = normalize(camera.forward)
    right = normalize(np.cross(forward, camera.up))
    up = np.cross(right, forward)

    width, height = image_plane_size(camera)
    center = origin + forward * camera.distance_to_image

    _camera_origin[None] = origin.tolist()
    _camera_right[None] = right.tolist()
    _camera_up[None] = up.tolist()
    _camera_forward[None] = forward.tolist()

    _image_center[None] = center.tolist()
    _image_horizontal[None] = (right * width).tolist()
    _image_vertical[None] = (up * height).tolist()


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def image_point(u: ti.f32, v: ti.f32) -> vec3:
    """Point on the image plane at normalized coordinates (u, v)."""
    return (
        _image_center[None]
        + (u - 0.5) * _image_horizontal[None]
        + (0.5 - v) * _image_vertical[None]
    )


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (u, v).

    Args:
        u: Horizontal coordinate in [0, 1] (left to right).
        v: Vertical coordinate in [0, 1] (top to bottom).

    Returns:
        A Ray with origin at the camera position and unit direction toward
        the specified point on the image plane.
    """
    origin = _camera_origin[None]
    direction = tm.normalize(image_point(u, v) - origin)
    return make_ray(origin, direction)


@ti.func
def get_sample_ray(
    pixel_x: ti.i32,
    pixel_y: ti.i32,
    sample_x: ti.i32,
    sample_y: ti.i32,
    samples_per_axis: ti.i32,
    width: ti.i32,
    height: ti.i32,
) -> Ray:
    """Generate the ray for one cell of a pixel's regular sample grid.

    The pixel is divided into samples_per_axis x samples_per_axis cells and
    the ray passes through the center of cell (sample_x, sample_y), at
    offset (s + 0.5) / n inside the pixel. With one sample per axis the ray
    goes through the pixel center.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row (0 = top).
        sample_x: Sample column inside the pixel.
        sample_y: Sample row inside the pixel.
        samples_per_axis: Grid size n.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The primary ray for that sample.
    """
    n = ti.cast(samples_per_axis, ti.f32)
    offset_x = (ti.cast(sample_x, ti.f32) + 0.5) / n
    offset_y = (ti.cast(sample_y, ti.f32) + 0.5) / n
    u = (ti.cast(pixel_x, ti.f32) + offset_x) / ti.cast(width, ti.f32)
    v = (ti.cast(pixel_y, ti.f32) + offset_y) / ti.cast(height, ti.f32)
    return get_ray(u, v)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera origin (position) in world space."""
    return _camera_origin[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, right, up, forward, center, horizontal and
        vertical vectors.
    """
    fields = {
        "origin": _camera_origin,
        "right": _camera_right,
        "up": _camera_up,
        "forward": _camera_forward,
        "center": _image_center,
        "horizontal": _image_horizontal,
        "vertical": _image_vertical,
    }
    info = {}
    for name, field in fields.items():
        vec = field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
