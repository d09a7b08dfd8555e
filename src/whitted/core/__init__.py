"""Core rendering module.

Components:
    ray: Ray data structure and kernel-side vector utilities
    vector: Python-side vector algebra (NumPy)
    color: Linear RGB color value type
    tracer: Recursive Whitted tracer and the render kernel
    renderer: Row-band rendering loop and the render() entry point

All compute-intensive operations run in Taichi kernels.
"""

from .color import Color
from .ray import (
    Ray,
    cross,
    dot,
    fresnel_reflectance,
    length,
    length_squared,
    make_ray,
    normalize,
    ray_at,
    reflect,
    refract,
    safe_normalize,
    vec3,
)

# Note: tracer and renderer are NOT imported here. They declare Taichi fields,
# which must only be created after ti.init(). Import them directly:
#   from whitted.core.renderer import Renderer, render

__all__ = [
    "Color",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "safe_normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "fresnel_reflectance",
]
