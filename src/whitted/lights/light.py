"""Light sources: ambient, directional, point and spot lights.

Lights are a closed set of variants tagged with LightType and stored in
Structure-of-Arrays Taichi fields. Every variant answers the same query,
light_contribution(), which the tracer calls once per light and hit point:

    AMBIENT      - flat color, no direction, never shadowed
    DIRECTIONAL  - constant direction (light at infinity), no attenuation
    POINT        - direction and distance toward a position
    SPOT         - a point light restricted to a cone around its direction

Point and spot lights are attenuated by the scene-wide falloff law
(LightFalloff): none, 1/d or 1/d^2.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.lights.light import add_point_light, add_ambient_light
    >>> add_ambient_light((0.05, 0.05, 0.05))
    >>> add_point_light(position=(0.0, 2.0, 0.0), color=(1.0, 1.0, 1.0))
    >>> # Use light_contribution within a Taichi kernel
"""

import math
from enum import IntEnum

import taichi as ti
import taichi.math as tm

from whitted.core.ray import safe_normalize
from whitted.core.vector import normalize

# Type alias for 3D vectors
vec3 = tm.vec3

# Distance reported for lights at infinity; matches the tracer's T_MAX
INFINITE_DISTANCE = 1e10


class LightType(IntEnum):
    """Tag identifying a light variant."""

    AMBIENT = 0
    DIRECTIONAL = 1
    POINT = 2
    SPOT = 3


class LightFalloff(IntEnum):
    """Distance attenuation law for point and spot lights."""

    NONE = 0
    LINEAR = 1
    QUADRATIC = 2


# Maximum number of lights in the scene
MAX_LIGHTS = 256

# Light storage: Structure of Arrays layout
light_types = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
# Unit direction the light travels in (directional) or the cone axis (spot)
light_directions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
# cos(fov / 2) for spot lights
light_cos_cutoffs = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())

light_falloff = ti.field(dtype=ti.i32, shape=())

# Number of light queries absorbed because the light sat on the surface point
degenerate_light_queries = ti.field(dtype=ti.i64, shape=())


def clear_lights() -> None:
    """Clear all lights and reset the falloff law to LightFalloff.NONE."""
    num_lights[None] = 0
    light_falloff[None] = int(LightFalloff.NONE)
    degenerate_light_queries[None] = 0


def set_light_falloff(falloff: LightFalloff) -> None:
    """Select the distance attenuation law used by point and spot lights."""
    light_falloff[None] = int(LightFalloff(falloff))


def get_light_falloff() -> LightFalloff:
    return LightFalloff(int(light_falloff[None]))


def _add_light(
    light_type: LightType,
    color: tuple[float, float, float],
    position: tuple[float, float, float] = (0.0, 0.0, 0.0),
    direction: tuple[float, float, float] = (0.0, 0.0, 0.0),
    cos_cutoff: float = -1.0,
) -> int:
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_types[idx] = int(light_type)
    light_colors[idx] = vec3(color[0], color[1], color[2])
    light_positions[idx] = vec3(position[0], position[1], position[2])
    light_directions[idx] = vec3(direction[0], direction[1], direction[2])
    light_cos_cutoffs[idx] = cos_cutoff
    num_lights[None] = idx + 1
    return idx


def add_ambient_light(color: tuple[float, float, float]) -> int:
    """Add an ambient light.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    return _add_light(LightType.AMBIENT, color)


def add_directional_light(
    direction: tuple[float, float, float],
    color: tuple[float, float, float],
) -> int:
    """Add a directional light.

    Args:
        direction: The direction the light travels in. Normalized on insertion.
        color: The light color.

    Returns:
        The index of the added light.

    Raises:
        DegenerateVectorError: If direction has zero length.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    unit = normalize(direction)
    return _add_light(LightType.DIRECTIONAL, color, direction=tuple(unit))


def add_point_light(
    position: tuple[float, float, float],
    color: tuple[float, float, float],
) -> int:
    """Add a point light.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    return _add_light(LightType.POINT, color, position=position)


def add_spot_light(
    position: tuple[float, float, float],
    direction: tuple[float, float, float],
    fov: float,
    color: tuple[float, float, float],
) -> int:
    """Add a spot light.

    Args:
        position: The light position.
        direction: The cone axis. Normalized on insertion.
        fov: Full opening angle of the cone in degrees, in (0, 180].
        color: The light color.

    Returns:
        The index of the added light.

    Raises:
        DegenerateVectorError: If direction has zero length.
        ValueError: If fov is outside (0, 180].
        RuntimeError: If the maximum number of lights is exceeded.
    """
    if not 0.0 < fov <= 180.0:
        raise ValueError(f"Spot light fov must be in (0, 180] degrees, got {fov}")
    unit = normalize(direction)
    cos_cutoff = math.cos(math.radians(fov) / 2.0)
    return _add_light(
        LightType.SPOT, color, position=position, direction=tuple(unit), cos_cutoff=cos_cutoff
    )


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


def get_degenerate_light_query_count() -> int:
    """Number of light queries skipped because the light was at the hit point."""
    return int(degenerate_light_queries[None])


def reset_degenerate_light_query_count() -> None:
    degenerate_light_queries[None] = 0


@ti.func
def get_light_type(light_id: ti.i32) -> ti.i32:
    return light_types[light_id]


@ti.func
def _falloff_factor(distance: ti.f32) -> ti.f32:
    """Attenuation of a positional light at the given distance."""
    factor = 1.0
    mode = light_falloff[None]
    if mode == int(LightFalloff.LINEAR):
        factor = 1.0 / distance
    elif mode == int(LightFalloff.QUADRATIC):
        factor = 1.0 / (distance * distance)
    return factor


@ti.func
def light_contribution(light_id: ti.i32, point: vec3, normal: vec3):
    """Evaluate one light at a surface point.

    Args:
        light_id: Index of the light.
        point: The surface point being shaded.
        normal: Unit shading normal at the point (facing the viewer).

    Returns:
        A tuple (lit, direction_to_light, distance, color) where:
        - lit: 1 if the light reaches the point before shadowing, 0 otherwise.
          Non-ambient lights are unlit when they are behind the surface or
          outside a spot cone.
        - direction_to_light: Unit vector toward the light (zero for ambient).
        - distance: Distance to the light along that direction; the shadow
          ray only counts occluders nearer than this. INFINITE_DISTANCE for
          directional lights, 0 for ambient.
        - color: The light color after attenuation.
    """
    light_type = light_types[light_id]
    color = light_colors[light_id]

    lit = 0
    to_light = vec3(0.0, 0.0, 0.0)
    distance = 0.0

    if light_type == int(LightType.AMBIENT):
        lit = 1
    elif light_type == int(LightType.DIRECTIONAL):
        to_light = -light_directions[light_id]
        distance = INFINITE_DISTANCE
        lit = 1
    else:
        delta = light_positions[light_id] - point
        unit, ok = safe_normalize(delta)
        if ok == 0:
            ti.atomic_add(degenerate_light_queries[None], 1)
        else:
            to_light = unit
            distance = tm.length(delta)
            color = color * _falloff_factor(distance)
            lit = 1
            if light_type == int(LightType.SPOT):
                # Angle between the cone axis and the light-to-point direction
                if tm.dot(light_directions[light_id], -unit) < light_cos_cutoffs[light_id]:
                    lit = 0

    if light_type != int(LightType.AMBIENT) and lit == 1:
        if tm.dot(normal, to_light) <= 0.0:
            lit = 0

    return lit, to_light, distance, color
