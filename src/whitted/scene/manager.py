"""Scene manager: uploads a Scene description into the Taichi fields.

The render kernels read everything from module-level Taichi fields: the
object table and shape arrays (scene.intersection), the material and texture
registries (materials), the lights (lights), the camera (camera.pinhole) and
the per-scene tracing settings (core.tracer). SceneManager fills all of them
from one validated Scene and keeps a Python-side record of what went where.

After load() nothing writes to these fields until the next load(); kernels
only read them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.scene.loader import load_scene
    >>> from whitted.scene.manager import SceneManager
    >>> manager = SceneManager()
    >>> manager.load(load_scene("examples/spheres.yaml"))
    >>> manager.get_object_count()
    3
"""

import logging
from dataclasses import dataclass

from whitted.camera.pinhole import setup_camera
from whitted.core.tracer import set_render_settings, setup_render_target
from whitted.geometry import ShapeType
from whitted.lights.light import (
    LightFalloff,
    add_ambient_light,
    add_directional_light,
    add_point_light,
    add_spot_light,
    clear_lights,
    get_light_count,
    set_light_falloff,
)
from whitted.materials.texture import add_uniform_texture, clear_textures, get_texture_count
from whitted.materials.uniform import (
    add_uniform_material,
    clear_uniform_materials,
    get_uniform_material_count,
)
from whitted.scene.description import (
    AmbientLight,
    DirectionalLight,
    Light,
    PointLight,
    Scene,
    SceneObject,
    Sphere,
    SpotLight,
    UniformMaterial,
    UniformTexture,
)
from whitted.scene.intersection import (
    add_sphere_object,
    add_triangle_object,
    clear_scene,
    get_object_count,
)

logger = logging.getLogger(__name__)


@dataclass
class ObjectInfo:
    """Information about an object uploaded to the scene.

    Attributes:
        object_id: Position of the object in scene order.
        shape_type: The object's primitive.
        material_id: Index in the material registry.
        texture_id: Index in the texture registry.
    """

    object_id: int
    shape_type: ShapeType
    material_id: int
    texture_id: int


class SceneManager:
    """Uploads scenes into the Taichi fields used by the render kernels.

    Identical materials and textures are uploaded once and shared between
    objects.

    Attributes:
        scene: The scene loaded last, or None.
        objects: ObjectInfo for every uploaded object, in scene order.
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.scene: Scene | None = None
        self.objects: list[ObjectInfo] = []
        self._material_ids: dict[UniformMaterial, int] = {}
        self._texture_ids: dict[UniformTexture, int] = {}
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_uniform_materials()
        clear_textures()
        clear_lights()
        set_render_settings()
        self.scene = None
        self.objects.clear()
        self._material_ids.clear()
        self._texture_ids.clear()

    def clear(self) -> None:
        """Clear the entire scene (objects, materials, textures and lights)."""
        self._clear_all()

    def load(self, scene: Scene) -> None:
        """Replace the current scene with ``scene``.

        Uploads lights, materials, textures, objects, the camera and the
        tracing settings, and sizes the render target to the camera
        resolution.

        Args:
            scene: A validated scene.

        Raises:
            RuntimeError: If the scene exceeds a storage capacity.
        """
        self._clear_all()

        for light in scene.lights:
            self.add_light(light)
        set_light_falloff(LightFalloff[scene.light_falloff.upper()])

        for obj in scene.objects:
            self.add_object(obj)

        setup_camera(scene.camera)
        set_render_settings(
            reflection_limit=scene.reflection_limit,
            samples_per_axis=scene.aliasing_limit,
            background=scene.background.as_tuple(),
            starting_index=scene.starting_index,
        )
        setup_render_target(scene.width, scene.height)
        self.scene = scene

        logger.debug(
            "Loaded scene: %d objects, %d materials, %d textures, %d lights, %dx%d",
            get_object_count(),
            get_uniform_material_count(),
            get_texture_count(),
            get_light_count(),
            scene.width,
            scene.height,
        )

    # =========================================================================
    # Scene Building
    # =========================================================================

    def add_light(self, light: Light) -> int:
        """Upload one light.

        Returns:
            The light index.
        """
        if isinstance(light, AmbientLight):
            return add_ambient_light(light.color.as_tuple())
        if isinstance(light, DirectionalLight):
            return add_directional_light(light.direction, light.color.as_tuple())
        if isinstance(light, PointLight):
            return add_point_light(light.position, light.color.as_tuple())
        if isinstance(light, SpotLight):
            return add_spot_light(
                light.position, light.direction, light.fov, light.color.as_tuple()
            )
        raise TypeError(f"Unsupported light type: {type(light).__name__}")

    def add_material(self, material: UniformMaterial) -> int:
        """Upload a material, reusing the id of an identical one.

        Returns:
            The material id.
        """
        if material not in self._material_ids:
            self._material_ids[material] = add_uniform_material(
                material.diffuse.as_tuple(),
                material.specular.as_tuple(),
                reflectivity=material.reflectivity,
                transparency=material.transparency or 0.0,
                index=material.index if material.index is not None else 1.0,
            )
        return self._material_ids[material]

    def add_texture(self, texture: UniformTexture) -> int:
        """Upload a texture, reusing the id of an identical one.

        Returns:
            The texture id.
        """
        if texture not in self._texture_ids:
            self._texture_ids[texture] = add_uniform_texture(texture.color.as_tuple())
        return self._texture_ids[texture]

    def add_object(self, obj: SceneObject) -> int:
        """Append an object to the scene.

        Returns:
            The object id (its position in scene order).
        """
        material_id = self.add_material(obj.material)
        texture_id = self.add_texture(obj.texture)
        shape = obj.shape
        if isinstance(shape, Sphere):
            object_id = add_sphere_object(
                shape.center, shape.radius, material_id, texture_id, inverted=shape.inverted
            )
            shape_type = ShapeType.SPHERE
        else:
            object_id = add_triangle_object(shape.c0, shape.c1, shape.c2, material_id, texture_id)
            shape_type = ShapeType.TRIANGLE
        self.objects.append(ObjectInfo(object_id, shape_type, material_id, texture_id))
        return object_id

    # =========================================================================
    # Queries
    # =========================================================================

    def get_object_count(self) -> int:
        """Get the number of objects in the scene."""
        return get_object_count()

    def get_material_count(self) -> int:
        """Get the number of distinct materials uploaded."""
        return get_uniform_material_count()

    def get_texture_count(self) -> int:
        """Get the number of distinct textures uploaded."""
        return get_texture_count()

    def get_light_count(self) -> int:
        """Get the number of lights in the scene."""
        return get_light_count()
