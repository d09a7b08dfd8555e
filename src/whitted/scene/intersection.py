"""Scene-level ray intersection over an ordered list of objects.

Each scene object pairs one shape (tagged with ShapeType) with a material id
and a texture id. Objects are tested in the order they were added; the
closest hit wins, and when two objects are hit at the same distance (within
TIE_TOLERANCE) the earlier object keeps the hit.

Shapes live in per-type Structure-of-Arrays fields; the object table maps an
object to its shape type and its index in that shape's arrays.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.scene.intersection import add_sphere_object, clear_scene
    >>> clear_scene()
    >>> add_sphere_object((10, 0, 0), 5.0, material_id=0, texture_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from whitted.geometry import ShapeType
from whitted.geometry.sphere import HitRecord, Sphere, hit_sphere
from whitted.geometry.triangle import Triangle, hit_triangle

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Distance within which two hits count as the same distance
TIE_TOLERANCE = 1e-5


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with the hit object's attributes.

    Attributes:
        hit: Whether the ray intersected any object (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The shape's own surface normal at the point (unit length).
            Only valid if hit == 1.
        front_face: 1 if the ray arrived against the normal, 0 otherwise.
            Only valid if hit == 1.
        object_id: Index of the hit object in scene order. -1 on a miss.
        material_id: The material ID of the hit object. -1 on a miss.
        texture_id: The texture ID of the hit object. -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    object_id: ti.i32
    material_id: ti.i32
    texture_id: ti.i32


# Maximum number of objects and of each primitive type
MAX_OBJECTS = 1024
MAX_SPHERES = MAX_OBJECTS
MAX_TRIANGLES = MAX_OBJECTS

# Object table: Structure of Arrays layout
object_shape_types = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_shape_indices = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_texture_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_inverted = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Triangle storage: first corner and the two edges leaving it
triangle_corners = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_edge_1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_edge_2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all objects and primitives from the scene.

    Resets the counts to zero. The actual field data is not cleared but will
    be overwritten when new objects are added.
    """
    num_objects[None] = 0
    num_spheres[None] = 0
    num_triangles[None] = 0


def _add_object(shape_type: ShapeType, shape_index: int, material_id: int, texture_id: int) -> int:
    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    object_shape_types[idx] = int(shape_type)
    object_shape_indices[idx] = shape_index
    object_material_ids[idx] = material_id
    object_texture_ids[idx] = texture_id
    num_objects[None] = idx + 1
    return idx


def add_sphere_object(
    center: tuple[float, float, float],
    radius: float,
    material_id: int,
    texture_id: int,
    inverted: bool = False,
) -> int:
    """Append a sphere object to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        material_id: Material registry index.
        texture_id: Texture registry index.
        inverted: Whether the normal points toward the center.

    Returns:
        The object index (its position in scene order).

    Raises:
        RuntimeError: If the maximum number of objects is exceeded.
    """
    if num_objects[None] >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    idx = num_spheres[None]
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_inverted[idx] = 1 if inverted else 0
    num_spheres[None] = idx + 1
    return _add_object(ShapeType.SPHERE, idx, material_id, texture_id)


def add_triangle_object(
    c0: tuple[float, float, float],
    c1: tuple[float, float, float],
    c2: tuple[float, float, float],
    material_id: int,
    texture_id: int,
) -> int:
    """Append a triangle object to the scene.

    Args:
        c0: First corner.
        c1: Second corner.
        c2: Third corner. The normal is (c1 - c0) x (c2 - c0), normalized.
        material_id: Material registry index.
        texture_id: Texture registry index.

    Returns:
        The object index (its position in scene order).

    Raises:
        RuntimeError: If the maximum number of objects is exceeded.
    """
    if num_objects[None] >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    idx = num_triangles[None]
    corner = vec3(c0[0], c0[1], c0[2])
    triangle_corners[idx] = corner
    triangle_edge_1[idx] = vec3(c1[0], c1[1], c1[2]) - corner
    triangle_edge_2[idx] = vec3(c2[0], c2[1], c2[2]) - corner
    num_triangles[None] = idx + 1
    return _add_object(ShapeType.TRIANGLE, idx, material_id, texture_id)


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_triangle_count() -> int:
    """Get the number of triangles in the scene."""
    return int(num_triangles[None])


@ti.func
def _hit_object(
    object_id: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect one object, dispatching on its shape type."""
    shape_index = object_shape_indices[object_id]
    rec = HitRecord(
        hit=0, t=0.0, point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 0.0, 0.0), front_face=0
    )
    if object_shape_types[object_id] == int(ShapeType.SPHERE):
        sphere = Sphere(
            center=sphere_centers[shape_index],
            radius=sphere_radii[shape_index],
            inverted=sphere_inverted[shape_index],
        )
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
    else:
        triangle = Triangle(
            c0=triangle_corners[shape_index],
            e1=triangle_edge_1[shape_index],
            e2=triangle_edge_2[shape_index],
        )
        rec = hit_triangle(ray_origin, ray_direction, triangle, t_min, t_max)
    return rec


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        object_id=-1,
        material_id=-1,
        texture_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the nearest object hit by a ray.

    Objects are tested in scene order. After a hit, later objects must be
    closer by more than TIE_TOLERANCE to replace it, so equal-distance hits
    resolve to the earliest object.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (unit length).
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHitRecord containing the closest intersection, or a miss
        record if no intersection was found.
    """
    search_max = t_max
    result = _make_miss_record()

    for i in range(num_objects[None]):
        rec = _hit_object(i, ray_origin, ray_direction, t_min, search_max)
        if rec.hit == 1:
            search_max = rec.t - TIE_TOLERANCE
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                front_face=rec.front_face,
                object_id=i,
                material_id=object_material_ids[i],
                texture_id=object_texture_ids[i],
            )

    return result


@ti.func
def intersect_scene_any(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Test if a ray hits any object in (t_min, t_max) (shadow ray query).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        1 if any object was hit, 0 otherwise.
    """
    hit_any = 0
    for i in range(num_objects[None]):
        if hit_any == 0:
            rec = _hit_object(i, ray_origin, ray_direction, t_min, t_max)
            if rec.hit == 1:
                hit_any = 1
    return hit_any
