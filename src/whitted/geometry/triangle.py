"""Triangle primitive with ray-triangle intersection.

A triangle is stored as its first corner and the two edge vectors leaving it:
    c0, e1 = c1 - c0, e2 = c2 - c0

The surface normal is normalize(cross(e1, e2)); the winding order of the
corners therefore decides which side is the front face.

Ray-triangle intersection uses the Moller-Trumbore test, which computes the
barycentric coordinates (u, v) of the hit and the ray parameter t in one pass
without building the plane equation first.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.geometry.triangle import Triangle, hit_triangle
    >>> tri = Triangle(
    ...     c0=ti.math.vec3(0, 0, 0),
    ...     e1=ti.math.vec3(0, 1, 1),
    ...     e2=ti.math.vec3(0, 1, 0),
    ... )
    >>> # Use hit_triangle within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from .sphere import HitRecord

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Determinant magnitude under which the ray is treated as parallel to the plane
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Triangle:
    """A triangle defined by a corner point and two edge vectors.

    Attributes:
        c0: The first corner (vec3).
        e1: Edge vector from c0 to the second corner (vec3).
        e2: Edge vector from c0 to the third corner (vec3).
    """

    c0: vec3
    e1: vec3
    e2: vec3


@ti.func
def triangle_normal(triangle: Triangle) -> vec3:
    """Compute the unit surface normal, normalize(cross(e1, e2))."""
    return tm.normalize(tm.cross(triangle.e1, triangle.e2))


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    triangle: Triangle,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-triangle intersection (Moller-Trumbore).

    Solves
        ray_origin + t * ray_direction = c0 + u * e1 + v * e2
    for (t, u, v) with Cramer's rule and accepts the hit when
    u >= 0, v >= 0, u + v <= 1 and t_min < t < t_max.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        triangle: The triangle to test intersection against.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A HitRecord containing intersection information. Check hit field
        to determine if intersection occurred.
    """
    pvec = tm.cross(ray_direction, triangle.e2)
    det = tm.dot(triangle.e1, pvec)

    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    # Ray not parallel to the triangle's plane
    if ti.abs(det) > PARALLEL_EPSILON:
        inv_det = 1.0 / det
        to_origin = ray_origin - triangle.c0
        u = tm.dot(to_origin, pvec) * inv_det

        if u >= 0.0 and u <= 1.0:
            qvec = tm.cross(to_origin, triangle.e1)
            v = tm.dot(ray_direction, qvec) * inv_det

            if v >= 0.0 and u + v <= 1.0:
                t = tm.dot(triangle.e2, qvec) * inv_det
                if t > t_min and t < t_max:
                    did_hit = 1
                    hit_t = t
                    hit_point = ray_origin + t * ray_direction
                    hit_normal = triangle_normal(triangle)
                    if tm.dot(ray_direction, hit_normal) < 0.0:
                        is_front_face = 1

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


@ti.func
def make_triangle(c0: vec3, c1: vec3, c2: vec3) -> Triangle:
    """Create a triangle from its three corners within a Taichi kernel."""
    return Triangle(c0=c0, e1=c1 - c0, e2=c2 - c0)


@ti.func
def triangle_area(triangle: Triangle) -> ti.f32:
    """Area of the triangle, half the magnitude of cross(e1, e2)."""
    return 0.5 * tm.length(tm.cross(triangle.e1, triangle.e2))
