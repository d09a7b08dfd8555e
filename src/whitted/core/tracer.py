"""Recursive (Whitted-style) ray tracer and the render kernel.

For every hit the tracer computes local Phong illumination with shadow rays
and spawns up to two secondary rays: a mirror reflection and a refraction.
With r the reflectivity, t the transparency and F the Fresnel reflectance of
the interface, the color of a hit is

    (1 - t) * ((1 - r) * local + r * reflected)
        + t * ((1 - F) * refracted + F * reflected)

and under total internal reflection the whole transmitted share t goes to
the reflected ray. Rays that hit nothing take the scene background color.
Colors are not clamped here; the sampler clamps each pixel once.

Taichi functions cannot recurse. Because the color of a hit is linear in the
colors of its children, the tree is evaluated depth-first with a small
per-sample stack of (origin, direction, weight, depth) entries: every node
adds weight * its own contribution to the result and pushes its children
with their weights multiplied in. A child is only pushed while its depth
stays within the scene's reflection_limit, so a sample traces at most
2^(reflection_limit + 1) - 1 rays.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.core.tracer import get_image_numpy, render_rows, setup_render_target
    >>> from whitted.scene.manager import SceneManager
    >>> SceneManager().load(scene)
    >>> setup_render_target(scene.width, scene.height)
    >>> render_rows(0, scene.height)
    >>> image = get_image_numpy()
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from whitted.camera.pinhole import get_sample_ray
from whitted.core.ray import fresnel_reflectance, reflect, refract, safe_normalize
from whitted.lights.light import (
    LightType,
    get_light_type,
    light_contribution,
    num_lights,
)
from whitted.materials.texture import get_texture_color
from whitted.materials.uniform import get_uniform_material, phong_response
from whitted.scene.description import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    MAX_REFLECTION_LIMIT,
)
from whitted.scene.intersection import intersect_scene, intersect_scene_any

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Self-intersection offset along the normal, also the t_min of every ray
RAY_EPSILON = 1e-3

# t_max for rays without a far limit
T_MAX = 1e10

# Children whose weight falls to this value or below are not traced
MIN_RAY_WEIGHT = 1e-6

# Deepest DFS occupancy for a binary tree of height MAX_REFLECTION_LIMIT
STACK_SIZE = MAX_REFLECTION_LIMIT + 2

# =============================================================================
# Render Settings (written by SceneManager.load)
# =============================================================================

_reflection_limit = ti.field(dtype=ti.i32, shape=())
_samples_per_axis = ti.field(dtype=ti.i32, shape=())
_background = ti.Vector.field(3, dtype=ti.f32, shape=())
_starting_index = ti.field(dtype=ti.f32, shape=())

# Counters since the last reset_counters() call; a single band can pass 2**31 rays
_recursive_ray_count = ti.field(dtype=ti.i64, shape=())
_degenerate_count = ti.field(dtype=ti.i64, shape=())


def set_render_settings(
    reflection_limit: int = 0,
    samples_per_axis: int = 1,
    background: tuple[float, float, float] = (0.0, 0.0, 0.0),
    starting_index: float = 1.0,
) -> None:
    """Configure the per-scene tracing parameters.

    Args:
        reflection_limit: Maximum depth of secondary rays, in
            [0, MAX_REFLECTION_LIMIT].
        samples_per_axis: Size n of the n x n sample grid per pixel (>= 1).
        background: Color of rays that hit nothing.
        starting_index: Refractive index of the medium around the objects.

    Raises:
        ValueError: If a parameter is out of range.
    """
    if not 0 <= reflection_limit <= MAX_REFLECTION_LIMIT:
        raise ValueError(
            f"reflection_limit must be in [0, {MAX_REFLECTION_LIMIT}], got {reflection_limit}"
        )
    if samples_per_axis < 1:
        raise ValueError(f"samples_per_axis must be >= 1, got {samples_per_axis}")
    if starting_index <= 0.0:
        raise ValueError(f"starting_index must be positive, got {starting_index}")
    _reflection_limit[None] = reflection_limit
    _samples_per_axis[None] = samples_per_axis
    _background[None] = vec3(background[0], background[1], background[2])
    _starting_index[None] = starting_index


def get_render_settings() -> dict[str, object]:
    bg = _background[None]
    return {
        "reflection_limit": int(_reflection_limit[None]),
        "samples_per_axis": int(_samples_per_axis[None]),
        "background": (float(bg[0]), float(bg[1]), float(bg[2])),
        "starting_index": float(_starting_index[None]),
    }


def reset_counters() -> None:
    """Zero the recursive-ray and degenerate-geometry counters."""
    _recursive_ray_count[None] = 0
    _degenerate_count[None] = 0


def get_recursive_ray_count() -> int:
    """Number of secondary (reflected or refracted) rays traced since the last reset."""
    return int(_recursive_ray_count[None])


def get_degenerate_count() -> int:
    """Number of refractions dropped because the direction could not be normalized."""
    return int(_degenerate_count[None])


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Final pixel colors, preallocated to the maximum size; indexed [x, y], y = 0 at the top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Output of render_pixel()
_pixel_result = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target.

    Sets the active image dimensions and clears the buffer. The buffer is
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT to avoid Taichi
    kernel recompilation.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum size.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffer to zero."""
    _color_buffer.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Shading
# =============================================================================


@ti.func
def _offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Offset a ray origin along the normal, to the side the ray travels to."""
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir


@ti.func
def local_illumination(
    point: vec3,
    normal: vec3,
    incident: vec3,
    diffuse: vec3,
    specular: vec3,
    texture_color: vec3,
) -> vec3:
    """Phong illumination of a surface point by every light.

    Ambient lights add their color unconditionally. Every other light casts a
    shadow ray from the point (offset along the normal) toward the light and
    contributes only if nothing is hit before the light's distance. Each
    light's term is clamped to [0, 1] before it is summed.

    Args:
        point: The surface point.
        normal: Unit normal facing the incident ray.
        incident: Unit direction of the incoming ray.
        diffuse: Material diffuse color.
        specular: Material specular color.
        texture_color: Surface color.

    Returns:
        texture * (sum(ambient) + sum(clamp(light * response))).
    """
    ambient = vec3(0.0, 0.0, 0.0)
    direct = vec3(0.0, 0.0, 0.0)
    for i in range(num_lights[None]):
        lit, to_light, distance, light_color = light_contribution(i, point, normal)
        if lit == 1:
            if get_light_type(i) == int(LightType.AMBIENT):
                ambient += light_color
            else:
                shadow_origin = point + RAY_EPSILON * normal
                if intersect_scene_any(shadow_origin, to_light, RAY_EPSILON, distance) == 0:
                    response = phong_response(diffuse, specular, normal, incident, to_light)
                    direct += tm.clamp(light_color * response, 0.0, 1.0)
    return texture_color * (ambient + direct)


@ti.func
def trace_ray(origin: vec3, direction: vec3, depth: ti.i32, reflection_limit: ti.i32) -> vec3:
    """Trace a ray and its reflected and refracted descendants.

    Args:
        origin: Ray origin.
        direction: Unit ray direction.
        depth: Depth of this ray (0 for primary rays).
        reflection_limit: Deepest depth a secondary ray may have.

    Returns:
        The unclamped color seen along the ray. Black when depth already
        exceeds reflection_limit.
    """
    color = vec3(0.0, 0.0, 0.0)
    background = _background[None]
    n_outside = _starting_index[None]

    stack_origin = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
    stack_direction = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
    stack_weight = ti.Vector.zero(ti.f32, STACK_SIZE)
    stack_depth = ti.Vector.zero(ti.i32, STACK_SIZE)
    sp = 0

    if depth <= reflection_limit:
        for c in ti.static(range(3)):
            stack_origin[0, c] = origin[c]
            stack_direction[0, c] = direction[c]
        stack_weight[0] = 1.0
        stack_depth[0] = depth
        sp = 1

    while sp > 0:
        sp -= 1
        ray_origin = vec3(0.0, 0.0, 0.0)
        ray_direction = vec3(0.0, 0.0, 0.0)
        weight = 0.0
        ray_depth = 0
        # Slots are selected by static unrolling; the stack index is dynamic
        for k in ti.static(range(STACK_SIZE)):
            if k == sp:
                ray_origin = vec3(stack_origin[k, 0], stack_origin[k, 1], stack_origin[k, 2])
                ray_direction = vec3(
                    stack_direction[k, 0], stack_direction[k, 1], stack_direction[k, 2]
                )
                weight = stack_weight[k]
                ray_depth = stack_depth[k]

        rec = intersect_scene(ray_origin, ray_direction, RAY_EPSILON, T_MAX)
        if rec.hit == 0:
            color += weight * background
        else:
            material = get_uniform_material(rec.material_id)
            texture_color = get_texture_color(rec.texture_id)

            # Shading normal faces the incoming ray
            normal = rec.normal
            if rec.front_face == 0:
                normal = -normal

            r = material.reflectivity
            t = material.transparency

            local_weight = (1.0 - t) * (1.0 - r)
            if local_weight > 0.0:
                local = local_illumination(
                    rec.point,
                    normal,
                    ray_direction,
                    material.diffuse,
                    material.specular,
                    texture_color,
                )
                color += weight * local_weight * local

            reflect_weight = (1.0 - t) * r
            refract_weight = 0.0
            reflect_dir = reflect(ray_direction, normal)
            refract_dir = vec3(0.0, 0.0, 0.0)

            if t > 0.0:
                n1 = n_outside
                n2 = material.index
                if rec.front_face == 0:
                    n1 = material.index
                    n2 = n_outside
                bent, ok = refract(ray_direction, normal, n1 / n2)
                unit, unit_ok = safe_normalize(bent)
                if ok == 1 and unit_ok == 0:
                    ti.atomic_add(_degenerate_count[None], 1)
                if ok == 1 and unit_ok == 1:
                    refract_dir = unit
                    cos_i = -tm.dot(ray_direction, normal)
                    cos_t = -tm.dot(refract_dir, normal)
                    fresnel = fresnel_reflectance(cos_i, cos_t, n1, n2)
                    reflect_weight += t * fresnel
                    refract_weight = t * (1.0 - fresnel)
                else:
                    # Total internal reflection
                    reflect_weight += t

            child_directions = [reflect_dir, refract_dir]
            child_weights = [reflect_weight, refract_weight]
            for child in ti.static(range(2)):
                child_weight = weight * child_weights[child]
                if ray_depth + 1 <= reflection_limit and child_weight > MIN_RAY_WEIGHT:
                    child_dir = child_directions[child]
                    child_origin = _offset_ray_origin(rec.point, normal, child_dir)
                    for k in ti.static(range(STACK_SIZE)):
                        if k == sp:
                            for c in ti.static(range(3)):
                                stack_origin[k, c] = child_origin[c]
                                stack_direction[k, c] = child_dir[c]
                            stack_weight[k] = child_weight
                            stack_depth[k] = ray_depth + 1
                    sp += 1
                    ti.atomic_add(_recursive_ray_count[None], 1)

    return color


@ti.func
def render_pixel_impl(x: ti.i32, y: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    """Average the n x n grid of samples of one pixel, clamped to [0, 1].

    NaN and infinite channels are replaced by 0 before clamping.
    """
    n = _samples_per_axis[None]
    limit = _reflection_limit[None]
    total = vec3(0.0, 0.0, 0.0)
    for sy in range(n):
        for sx in range(n):
            ray = get_sample_ray(x, y, sx, sy, n, width, height)
            total += trace_ray(ray.origin, ray.direction, 0, limit)
    color = total / ti.cast(n * n, ti.f32)
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            color[c] = 0.0
    return tm.clamp(color, 0.0, 1.0)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(width: ti.i32, height: ti.i32, row_start: ti.i32, row_end: ti.i32):
    """Render rows [row_start, row_end) into the color buffer.

    The outermost loop is parallelized by Taichi; each pixel writes only its
    own buffer slot.
    """
    for x, y in ti.ndrange(width, (row_start, row_end)):
        _color_buffer[x, y] = render_pixel_impl(x, y, width, height)


@ti.kernel
def _render_single_pixel(x: ti.i32, y: ti.i32, width: ti.i32, height: ti.i32):
    """Render one pixel into _pixel_result without touching the color buffer."""
    # Single-iteration loop keeps the tracer's inner loops serial
    for _ in range(1):
        _pixel_result[None] = render_pixel_impl(x, y, width, height)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(row_start: int, row_end: int) -> None:
    """Render a band of rows into the render target.

    Args:
        row_start: First row (0 = top), inclusive.
        row_end: Last row, exclusive.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the band is outside the image.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Row band [{row_start}, {row_end}) is outside [0, {height})")
    if row_start < row_end:
        _render_rows(width, height, row_start, row_end)


def render_pixel(x: int, y: int) -> tuple[float, float, float]:
    """Render a single pixel and return its clamped color.

    This is a Python-callable function for testing. For production rendering,
    use render_rows() which processes all pixels in parallel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    _render_single_pixel(x, y, width, height)
    color = _pixel_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> np.ndarray:
    """Get the rendered image as a NumPy array.

    The array shape is (height, width, 3) with dtype float32, row 0 at the
    top, values in [0, 1].

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    image = np.clip(image, 0.0, 1.0)
    return image.astype(np.float32)
