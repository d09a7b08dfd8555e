"""Uniform textures: one color for the whole surface."""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3

# Maximum number of textures in the scene
MAX_TEXTURES = 1024

texture_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
num_textures = ti.field(dtype=ti.i32, shape=())


def clear_textures() -> None:
    """Clear all textures."""
    num_textures[None] = 0


def add_uniform_texture(color: tuple[float, float, float]) -> int:
    """Add a uniform texture to the texture registry.

    Args:
        color: The surface color as (R, G, B). Components are not clamped.

    Returns:
        The index of the added texture.

    Raises:
        RuntimeError: If the maximum number of textures is exceeded.
    """
    idx = num_textures[None]
    if idx >= MAX_TEXTURES:
        raise RuntimeError(f"Maximum number of textures ({MAX_TEXTURES}) exceeded")
    texture_colors[idx] = vec3(color[0], color[1], color[2])
    num_textures[None] = idx + 1
    return idx


def get_texture_count() -> int:
    """Get the number of textures in the registry."""
    return int(num_textures[None])


@ti.func
def get_texture_color(texture_idx: ti.i32) -> vec3:
    """Color of a texture at any surface point."""
    return texture_colors[texture_idx]
