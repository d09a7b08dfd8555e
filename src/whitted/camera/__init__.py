"""Camera module for primary ray generation.

Components:
    pinhole: Pinhole (perspective) camera with a regular sub-pixel sample grid

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across the image
    v in [0, 1]: top to bottom across the image
"""

from .pinhole import (
    get_camera_info,
    get_camera_origin,
    get_ray,
    get_sample_ray,
    image_plane_size,
    image_point,
    setup_camera,
)

__all__ = [
    "setup_camera",
    "image_plane_size",
    "image_point",
    "get_ray",
    "get_sample_ray",
    "get_camera_origin",
    "get_camera_info",
]
