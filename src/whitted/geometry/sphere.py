"""Sphere primitive with robust ray-sphere intersection.

This module provides a Sphere dataclass and intersection function using the
robust quadratic formula from Ray Tracing Gems to avoid floating-point
artifacts when b^2 is nearly equal to 4ac.

A sphere may be inverted: its surface normal then points toward the center
instead of away from it. Inverted spheres model shapes that are meant to be
seen from the inside, such as an enclosing sky sphere around the camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(10, 0, 0), radius=5.0, inverted=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        inverted: 1 if the surface normal points toward the center.
    """

    center: vec3
    radius: ti.f32
    inverted: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-shape intersection.

    Attributes:
        hit: Whether the ray intersected the shape (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the shape.
            Only valid if hit == 1.
        normal: The shape's surface normal at the intersection point (unit
            length). This is the shape's own orientation (outward, or inward
            for inverted spheres), not flipped toward the ray.
            Only valid if hit == 1.
        front_face: 1 if the ray arrived against the normal (dot < 0),
            0 if it arrived from the side the normal points away from.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) avoids catastrophic cancellation
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray: fall back to the textbook formula
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def sphere_normal(sphere: Sphere, point: vec3) -> vec3:
    """Surface normal of a sphere at a point on its surface.

    Args:
        sphere: The sphere.
        point: A point on the sphere's surface.

    Returns:
        (point - center) / radius, negated when the sphere is inverted.
    """
    normal = (point - sphere.center) / sphere.radius
    if sphere.inverted != 0:
        normal = -normal
    return normal


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection using the robust quadratic formula.

    The intersection is found by solving:
        |ray_origin + t * ray_direction - center|^2 = radius^2

    which expands to a*t^2 + 2*h*t + c = 0 with
        a = dot(direction, direction)
        h = dot(direction, oc)
        c = dot(oc, oc) - radius^2
        oc = origin - center

    The smaller root is used when it lies in (t_min, t_max); otherwise the
    larger root is tried, which is the exit point when the ray starts inside
    the sphere. A ray starting outside and pointing away has both roots
    negative and never hits.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        sphere: The sphere to test intersection against.
        t_min: Minimum t value to consider a valid hit (avoids self-intersection).
        t_max: Maximum t value to consider a valid hit (for shadow rays, etc.).

    Returns:
        A HitRecord containing intersection information. Check hit field
        to determine if intersection occurred.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    # Taichi requires outer-scope declaration
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            hit_normal = sphere_normal(sphere, hit_point)
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
def make_sphere(center: vec3, radius: ti.f32, inverted: ti.i32) -> Sphere:
    """Create a sphere within a Taichi kernel."""
    return Sphere(center=center, radius=radius, inverted=inverted)
