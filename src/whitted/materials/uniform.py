"""Uniform (spatially constant) material with a Phong shading response.

A uniform material has the same coefficients at every point of the surface:

    diffuse      - color weight of the Lambertian term, dot(n, l)
    specular     - color weight of the Phong highlight, dot(r, l)^PHONG_EXPONENT
    reflectivity - share of the non-transmitted light taken from the mirror ray
    transparency - share of the light taken from the transmitted ray
    index        - refractive index, only meaningful when transparency > 0

The local response of the surface to one light is

    diffuse * max(0, n.l) + specular * max(0, r.l)^PHONG_EXPONENT

where r is the incident direction reflected about the normal. The tracer
multiplies this by the light color and the surface texture color.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.materials.uniform import add_uniform_material
    >>> glass = add_uniform_material(
    ...     (0.1, 0.1, 0.1), (0.9, 0.9, 0.9), transparency=0.9, index=1.5
    ... )
    >>> # Use phong_response within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from whitted.core.ray import reflect

# Type alias for 3D vectors
vec3 = tm.vec3

# Shininess of the specular highlight
PHONG_EXPONENT = 16


@ti.dataclass
class UniformMaterial:
    """Uniform material coefficients.

    Attributes:
        diffuse: Diffuse color, each channel in [0, 1].
        specular: Specular color, each channel in [0, 1].
        reflectivity: Mirror reflection share in [0, 1].
        transparency: Transmission share in [0, 1]; 0 for opaque materials.
        index: Refractive index (positive). Unused when transparency is 0.
    """

    diffuse: vec3
    specular: vec3
    reflectivity: ti.f32
    transparency: ti.f32
    index: ti.f32


@ti.func
def phong_response(
    diffuse: vec3,
    specular: vec3,
    normal: vec3,
    incident: vec3,
    to_light: vec3,
) -> vec3:
    """Shading response of a surface to one unit-color light.

    Args:
        diffuse: Diffuse color.
        specular: Specular color.
        normal: Unit shading normal, facing the incident ray.
        incident: Unit direction of the ray that hit the surface.
        to_light: Unit direction from the surface point toward the light.

    Returns:
        diffuse * max(0, n.l) + specular * max(0, r.l)^PHONG_EXPONENT.
    """
    n_dot_l = tm.max(tm.dot(normal, to_light), 0.0)
    mirror = reflect(incident, normal)
    r_dot_l = tm.max(tm.dot(mirror, to_light), 0.0)
    return diffuse * n_dot_l + specular * tm.pow(r_dot_l, PHONG_EXPONENT)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of uniform materials in the scene
MAX_MATERIALS = 1024

# Storage for uniform material coefficients
material_diffuse = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_specular = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_reflectivity = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_transparency = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_index = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_uniform_materials() -> None:
    """Clear all uniform materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_uniform_material(
    diffuse: tuple[float, float, float],
    specular: tuple[float, float, float],
    reflectivity: float = 0.0,
    transparency: float = 0.0,
    index: float = 1.0,
) -> int:
    """Add a uniform material to the material registry.

    Args:
        diffuse: Diffuse color as (R, G, B), each component in [0, 1].
        specular: Specular color as (R, G, B), each component in [0, 1].
        reflectivity: Mirror reflection share in [0, 1].
        transparency: Transmission share in [0, 1].
        index: Refractive index, must be positive.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If a coefficient is outside [0, 1] or index is not positive.
    """
    for name, color in (("diffuse", diffuse), ("specular", specular)):
        for i, component in enumerate(color):
            if component < 0.0 or component > 1.0:
                raise ValueError(f"Material {name} component {i} = {component} is outside [0, 1]")
    for name, value in (("reflectivity", reflectivity), ("transparency", transparency)):
        if value < 0.0 or value > 1.0:
            raise ValueError(f"Material {name} = {value} is outside [0, 1]")
    if index <= 0.0:
        raise ValueError(f"Refractive index must be positive, got {index}")

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_diffuse[idx] = vec3(diffuse[0], diffuse[1], diffuse[2])
    material_specular[idx] = vec3(specular[0], specular[1], specular[2])
    material_reflectivity[idx] = reflectivity
    material_transparency[idx] = transparency
    material_index[idx] = index
    num_materials[None] = idx + 1
    return idx


def get_uniform_material_count() -> int:
    """Get the number of uniform materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_uniform_material(material_idx: ti.i32) -> UniformMaterial:
    """Look up a material's coefficients by index."""
    return UniformMaterial(
        diffuse=material_diffuse[material_idx],
        specular=material_specular[material_idx],
        reflectivity=material_reflectivity[material_idx],
        transparency=material_transparency[material_idx],
        index=material_index[material_idx],
    )
