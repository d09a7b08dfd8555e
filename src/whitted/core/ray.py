"""Ray data structure and vector utilities for the Taichi kernels.

This module provides the Ray dataclass and the vector helpers used by every
kernel-side component: intersection, shading, reflection and refraction. All
functions are ``@ti.func`` and can only be called from inside Taichi kernels.
The Python-side equivalents used while building a scene live in
``whitted.core.vector``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(1.0, 0.0, 0.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Squared length under which a vector is considered degenerate
DEGENERATE_LENGTH_SQUARED = 1e-16


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Normalized by every
            producer in this package; the intersection routines rely on it
            for distances.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the length (magnitude) of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The input must not be zero-length; use safe_normalize() when it can be.
    """
    return tm.normalize(v)


@ti.func
def safe_normalize(v: vec3):
    """Normalize a vector, reporting zero-length input instead of failing.

    Args:
        v: The input vector.

    Returns:
        A tuple (unit, ok) where ok is 1 if v could be normalized. When ok is
        0, unit is the zero vector and the caller should treat the operation
        as contributing nothing.
    """
    len_sq = tm.dot(v, v)
    unit = vec3(0.0, 0.0, 0.0)
    ok = 0
    if len_sq > DEGENERATE_LENGTH_SQUARED:
        unit = v / ti.sqrt(len_sq)
        ok = 1
    return unit, ok


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes d - 2 * dot(d, n) * n. The result does not depend on which side
    the normal faces, and reflecting twice about the same unit normal gives
    back the incident vector.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32):
    """Refract an incident vector through a surface using Snell's law.

    Args:
        incident: The incoming direction vector (unit length).
        normal: The surface normal (unit length), facing against the
            incident direction.
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        A tuple (direction, ok). ok is 0 under total internal reflection, in
        which case direction is the zero vector and the caller must follow
        the reflected ray instead.
    """
    cos_i = -tm.dot(incident, normal)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    ok = 0
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        result = eta * incident + (eta * cos_i - cos_t) * normal
        ok = 1
    return result, ok


@ti.func
def fresnel_reflectance(cos_i: ti.f32, cos_t: ti.f32, n1: ti.f32, n2: ti.f32) -> ti.f32:
    """Fraction of light reflected at a dielectric interface.

    Averages the s- and p-polarized Fresnel reflection coefficients, which is
    the reflectance for unpolarized light.

    Args:
        cos_i: Cosine of the incidence angle (positive).
        cos_t: Cosine of the transmission angle (positive).
        n1: Refractive index on the incident side.
        n2: Refractive index on the transmitted side.

    Returns:
        The reflectance in [0, 1]. The transmitted share is 1 - reflectance.
    """
    reflectance = 1.0
    denom_s = n1 * cos_i + n2 * cos_t
    denom_p = n2 * cos_i + n1 * cos_t
    if denom_s > 1e-8 and denom_p > 1e-8:
        r_s = (n1 * cos_i - n2 * cos_t) / denom_s
        r_p = (n2 * cos_i - n1 * cos_t) / denom_p
        reflectance = tm.clamp(0.5 * (r_s * r_s + r_p * r_p), 0.0, 1.0)
    return reflectance

