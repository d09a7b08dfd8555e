"""Material and texture registries for the ray tracer.

Components:
    uniform: Uniform material coefficients and the Phong shading response
    texture: Uniform (single color) textures

Each registry stores its entries in Taichi fields and hands out integer ids;
scene objects refer to one material id and one texture id.
"""

from .texture import (
    MAX_TEXTURES,
    add_uniform_texture,
    clear_textures,
    get_texture_color,
    get_texture_count,
)
from .uniform import (
    MAX_MATERIALS,
    PHONG_EXPONENT,
    UniformMaterial,
    add_uniform_material,
    clear_uniform_materials,
    get_uniform_material,
    get_uniform_material_count,
    phong_response,
)

__all__ = [
    "MAX_MATERIALS",
    "MAX_TEXTURES",
    "PHONG_EXPONENT",
    "UniformMaterial",
    "add_uniform_material",
    "add_uniform_texture",
    "clear_textures",
    "clear_uniform_materials",
    "get_texture_color",
    "get_texture_count",
    "get_uniform_material",
    "get_uniform_material_count",
    "phong_response",
]
