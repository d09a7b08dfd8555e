"""Geometry module for shape primitives.

This module provides the geometric primitives a scene object can use:

Components:
    sphere: Sphere primitive (optionally inverted) with ray-sphere intersection
    triangle: Triangle primitive with Moller-Trumbore intersection

All intersection routines are Taichi functions (@ti.func) returning a
HitRecord. Each primitive exposes the same two capabilities:
    hit_<shape>(ray_origin, ray_direction, shape, t_min, t_max) -> HitRecord
    <shape>_normal(...) -> unit surface normal

The scene stores a ShapeType tag per object and dispatches on it, so adding a
primitive means adding a variant here and a branch in the scene resolver.
"""

from enum import IntEnum

from .sphere import HitRecord, Sphere, hit_sphere, make_sphere, sphere_normal
from .triangle import Triangle, hit_triangle, make_triangle, triangle_area, triangle_normal


class ShapeType(IntEnum):
    """Tag identifying which primitive an object uses."""

    SPHERE = 0
    TRIANGLE = 1


__all__ = [
    "ShapeType",
    "HitRecord",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "sphere_normal",
    "Triangle",
    "hit_triangle",
    "make_triangle",
    "triangle_area",
    "triangle_normal",
]
