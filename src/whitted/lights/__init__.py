"""Light sources for the ray tracer.

Components:
    light: Ambient, directional, point and spot lights with the
        light_contribution() query used for shading and shadow rays
"""

from .light import (
    MAX_LIGHTS,
    LightFalloff,
    LightType,
    add_ambient_light,
    add_directional_light,
    add_point_light,
    add_spot_light,
    clear_lights,
    get_degenerate_light_query_count,
    get_light_count,
    get_light_falloff,
    get_light_type,
    light_contribution,
    reset_degenerate_light_query_count,
    set_light_falloff,
)

__all__ = [
    "MAX_LIGHTS",
    "LightFalloff",
    "LightType",
    "add_ambient_light",
    "add_directional_light",
    "add_point_light",
    "add_spot_light",
    "clear_lights",
    "get_degenerate_light_query_count",
    "get_light_count",
    "get_light_falloff",
    "get_light_type",
    "light_contribution",
    "reset_degenerate_light_query_count",
    "set_light_falloff",
]
