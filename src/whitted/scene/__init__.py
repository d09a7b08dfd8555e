"""Scene module: description, loading and GPU-side storage.

Components:
    description: Immutable, validated scene model (frozen dataclasses)
    loader: YAML / mapping parser producing a Scene
    intersection: Object storage in Taichi fields and ray-scene queries
    manager: Uploads a Scene into the Taichi fields used by the kernels

Only the pure-Python parts are imported here; intersection and manager
declare Taichi fields and are imported directly once ti.init() has run.
"""

from .description import (
    LIGHT_FALLOFFS,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    MAX_REFLECTION_LIMIT,
    AmbientLight,
    Camera,
    DirectionalLight,
    Lights,
    PointLight,
    Scene,
    SceneObject,
    Sphere,
    SpotLight,
    Triangle,
    UniformMaterial,
    UniformTexture,
)
from .loader import load_scene, scene_from_dict

__all__ = [
    "LIGHT_FALLOFFS",
    "MAX_IMAGE_HEIGHT",
    "MAX_IMAGE_WIDTH",
    "MAX_REFLECTION_LIMIT",
    "AmbientLight",
    "Camera",
    "DirectionalLight",
    "Lights",
    "PointLight",
    "Scene",
    "SceneObject",
    "Sphere",
    "SpotLight",
    "Triangle",
    "UniformMaterial",
    "UniformTexture",
    "load_scene",
    "scene_from_dict",
]
