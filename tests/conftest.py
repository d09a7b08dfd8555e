"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti

# Pure-Python description types; they declare no Taichi fields
from whitted.core.color import Color
from whitted.scene.description import (
    AmbientLight,
    Camera,
    Lights,
    Scene,
    SceneObject,
    Sphere,
    Triangle,
    UniformMaterial,
    UniformTexture,
)


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every field declared by the modules under test.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so the fields are created after ti.init()
    from whitted.core.tracer import clear_render_target, reset_counters, set_render_settings
    from whitted.lights.light import clear_lights
    from whitted.materials.texture import clear_textures
    from whitted.materials.uniform import clear_uniform_materials
    from whitted.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_uniform_materials()
        clear_textures()
        clear_lights()
        set_render_settings()
        reset_counters()
        clear_render_target()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def make_object():
    """Factory for scene objects with a uniform material and texture.

    A sphere is built from ``center`` and ``radius``; a triangle from
    ``corners``. Colors are (r, g, b) tuples.
    """

    def _make(
        center=(10.0, 0.0, 0.0),
        radius=5.0,
        corners=None,
        inverted=False,
        diffuse=(1.0, 1.0, 1.0),
        specular=(0.0, 0.0, 0.0),
        reflectivity=0.0,
        transparency=None,
        index=None,
        texture=(1.0, 1.0, 1.0),
    ):
        if corners is not None:
            shape = Triangle(*corners)
        else:
            shape = Sphere(center, radius, inverted=inverted)
        material = UniformMaterial(
            Color.from_tuple(diffuse),
            Color.from_tuple(specular),
            reflectivity=reflectivity,
            transparency=transparency,
            index=index,
        )
        return SceneObject(shape, material, UniformTexture(Color.from_tuple(texture)))

    return _make


@pytest.fixture
def make_scene():
    """Factory for scenes seen from the origin looking down +x.

    Lights are given as (r, g, b) colors for ambients and as description
    objects for the other kinds.
    """

    def _make(
        objects=(),
        ambients=(),
        directionals=(),
        points=(),
        spots=(),
        size=(5, 5),
        fov=90.0,
        origin=(0.0, 0.0, 0.0),
        background=(0.0, 0.0, 0.0),
        **scene_kwargs,
    ):
        camera = Camera(origin, (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), fov, 1.0, size[0], size[1])
        lights = Lights(
            ambients=tuple(AmbientLight(Color.from_tuple(c)) for c in ambients),
            directionals=tuple(directionals),
            points=tuple(points),
            spots=tuple(spots),
        )
        return Scene(
            camera=camera,
            lights=lights,
            objects=tuple(objects),
            background=Color.from_tuple(background),
            **scene_kwargs,
        )

    return _make
