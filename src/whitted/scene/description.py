"""Immutable scene description.

These frozen dataclasses are the validated, Python-side model of a scene.
Every constructor checks its own fields and raises ConfigurationError, so a
Scene that exists is a Scene that can be rendered. SceneManager.load()
uploads a Scene into the Taichi fields read by the render kernels.

This module does not import Taichi: scenes can be built and validated before
ti.init() is called.

Example:
    >>> from whitted.core.color import Color
    >>> from whitted.scene.description import (
    ...     AmbientLight, Camera, Lights, Scene, SceneObject, Sphere,
    ...     UniformMaterial, UniformTexture,
    ... )
    >>> white = Color(1.0, 1.0, 1.0)
    >>> scene = Scene(
    ...     camera=Camera((0, 0, 0), (1, 0, 0), (0, 1, 0), 90.0, 1.0, 64, 64),
    ...     lights=Lights(ambients=(AmbientLight(Color(0.1, 0.1, 0.1)),)),
    ...     objects=(
    ...         SceneObject(
    ...             Sphere((10, 0, 0), 5.0),
    ...             UniformMaterial(white, white),
    ...             UniformTexture(white),
    ...         ),
    ...     ),
    ... )
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Union

import numpy as np

from whitted.core.color import Color
from whitted.core.vector import as_vector, is_parallel
from whitted.errors import ConfigurationError

Vec3 = tuple[float, float, float]

# Render target capacity, preallocated by the tracer
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Deepest recursion the tracer's per-sample stack can hold
MAX_REFLECTION_LIMIT = 16

LIGHT_FALLOFFS = ("none", "linear", "quadratic")

# Area (times two) under which a triangle is degenerate
_DEGENERATE_AREA = 1e-12


# =============================================================================
# Validation helpers
# =============================================================================


def _vec3(name: str, value: Sequence[float]) -> Vec3:
    try:
        vector = as_vector(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name}: {exc}") from exc
    return (float(vector[0]), float(vector[1]), float(vector[2]))


def _nonzero_vec3(name: str, value: Sequence[float]) -> Vec3:
    vector = _vec3(name, value)
    if math.sqrt(sum(c * c for c in vector)) < 1e-12:
        raise ConfigurationError(f"{name}: must not be the zero vector")
    return vector


def _number(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name}: expected a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ConfigurationError(f"{name}: must be finite, got {value!r}")
    return number


def _unit_interval(name: str, value: float) -> float:
    number = _number(name, value)
    if not 0.0 <= number <= 1.0:
        raise ConfigurationError(f"{name}: must be in [0, 1], got {number}")
    return number


def _positive(name: str, value: float) -> float:
    number = _number(name, value)
    if number <= 0.0:
        raise ConfigurationError(f"{name}: must be positive, got {number}")
    return number


def _integer(name: str, value: int, low: int, high: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name}: expected an integer, got {value!r}")
    if value < low or (high is not None and value > high):
        bound = f"[{low}, {high}]" if high is not None else f">= {low}"
        raise ConfigurationError(f"{name}: must be {bound}, got {value}")
    return value


def _color(name: str, value: Color, low: float = 0.0, high: float | None = None) -> Color:
    if not isinstance(value, Color):
        raise ConfigurationError(f"{name}: expected a Color, got {value!r}")
    if not value.is_finite():
        raise ConfigurationError(f"{name}: channels must be finite, got {value.as_tuple()}")
    for channel, component in zip("rgb", value.as_tuple()):
        if component < low or (high is not None and component > high):
            bound = f"[{low}, {high}]" if high is not None else f">= {low}"
            raise ConfigurationError(f"{name}.{channel}: must be {bound}, got {component}")
    return value


# =============================================================================
# Camera
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Pinhole camera.

    Attributes:
        origin: Eye position.
        forward: Viewing direction (any non-zero length).
        up: Approximate up direction, not parallel to forward.
        fov: Field of view in degrees, spanning the longer image side.
        distance_to_image: Distance from the eye to the image plane.
        x: Image width in pixels.
        y: Image height in pixels.
    """

    origin: Vec3
    forward: Vec3
    up: Vec3
    fov: float
    distance_to_image: float
    x: int
    y: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", _vec3("origin", self.origin))
        object.__setattr__(self, "forward", _nonzero_vec3("forward", self.forward))
        object.__setattr__(self, "up", _nonzero_vec3("up", self.up))
        if is_parallel(self.forward, self.up, tolerance=1e-6):
            raise ConfigurationError("up: must not be parallel to forward")

        fov = _number("fov", self.fov)
        if not 0.0 < fov < 180.0:
            raise ConfigurationError(f"fov: must be in (0, 180) degrees, got {fov}")
        object.__setattr__(self, "fov", fov)
        object.__setattr__(
            self, "distance_to_image", _positive("distance_to_image", self.distance_to_image)
        )
        _integer("x", self.x, 1, MAX_IMAGE_WIDTH)
        _integer("y", self.y, 1, MAX_IMAGE_HEIGHT)

    @property
    def resolution(self) -> tuple[int, int]:
        return (self.x, self.y)


# =============================================================================
# Lights
# =============================================================================


@dataclass(frozen=True)
class AmbientLight:
    color: Color

    def __post_init__(self) -> None:
        _color("color", self.color)


@dataclass(frozen=True)
class DirectionalLight:
    """Light at infinity travelling along ``direction``."""

    direction: Vec3
    color: Color

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", _nonzero_vec3("direction", self.direction))
        _color("color", self.color)


@dataclass(frozen=True)
class PointLight:
    position: Vec3
    color: Color

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _vec3("position", self.position))
        _color("color", self.color)


@dataclass(frozen=True)
class SpotLight:
    """Point light restricted to a cone of ``fov`` degrees around ``direction``."""

    position: Vec3
    direction: Vec3
    fov: float
    color: Color

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _vec3("position", self.position))
        object.__setattr__(self, "direction", _nonzero_vec3("direction", self.direction))
        fov = _number("fov", self.fov)
        if not 0.0 < fov <= 180.0:
            raise ConfigurationError(f"fov: must be in (0, 180] degrees, got {fov}")
        object.__setattr__(self, "fov", fov)
        _color("color", self.color)


Light = Union[AmbientLight, DirectionalLight, PointLight, SpotLight]


@dataclass(frozen=True)
class Lights:
    """Lights grouped by kind. Order within and across groups is irrelevant."""

    ambients: tuple[AmbientLight, ...] = ()
    directionals: tuple[DirectionalLight, ...] = ()
    points: tuple[PointLight, ...] = ()
    spots: tuple[SpotLight, ...] = ()

    def __post_init__(self) -> None:
        groups = (
            ("ambients", AmbientLight),
            ("directionals", DirectionalLight),
            ("points", PointLight),
            ("spots", SpotLight),
        )
        for name, kind in groups:
            items = tuple(getattr(self, name))
            for i, item in enumerate(items):
                if not isinstance(item, kind):
                    raise ConfigurationError(
                        f"{name}[{i}]: expected {kind.__name__}, got {type(item).__name__}"
                    )
            object.__setattr__(self, name, items)

    def __iter__(self) -> Iterator[Light]:
        yield from self.ambients
        yield from self.directionals
        yield from self.points
        yield from self.spots

    def __len__(self) -> int:
        return len(self.ambients) + len(self.directionals) + len(self.points) + len(self.spots)


# =============================================================================
# Shapes
# =============================================================================


@dataclass(frozen=True)
class Sphere:
    """Sphere; when ``inverted`` its normal points toward the center."""

    center: Vec3
    radius: float
    inverted: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", _vec3("center", self.center))
        object.__setattr__(self, "radius", _positive("radius", self.radius))
        if not isinstance(self.inverted, bool):
            raise ConfigurationError(f"inverted: expected a boolean, got {self.inverted!r}")


@dataclass(frozen=True)
class Triangle:
    """Triangle; the winding c0 -> c1 -> c2 sets the normal (c1-c0) x (c2-c0)."""

    c0: Vec3
    c1: Vec3
    c2: Vec3

    def __post_init__(self) -> None:
        for name in ("c0", "c1", "c2"):
            object.__setattr__(self, name, _vec3(name, getattr(self, name)))
        e1 = np.subtract(self.c1, self.c0)
        e2 = np.subtract(self.c2, self.c0)
        if float(np.linalg.norm(np.cross(e1, e2))) < _DEGENERATE_AREA:
            raise ConfigurationError("triangle: corners are collinear (zero area)")


Shape = Union[Sphere, Triangle]


# =============================================================================
# Materials and textures
# =============================================================================


@dataclass(frozen=True)
class UniformMaterial:
    """Material with the same coefficients everywhere.

    ``transparency`` and ``index`` go together: give both or neither.
    """

    diffuse: Color
    specular: Color
    reflectivity: float = 0.0
    transparency: float | None = None
    index: float | None = None

    def __post_init__(self) -> None:
        _color("diffuse", self.diffuse, 0.0, 1.0)
        _color("specular", self.specular, 0.0, 1.0)
        object.__setattr__(self, "reflectivity", _unit_interval("reflectivity", self.reflectivity))
        if (self.transparency is None) != (self.index is None):
            missing = "index" if self.index is None else "transparency"
            present = "transparency" if self.index is None else "index"
            raise ConfigurationError(f"{missing}: required when {present} is given")
        if self.transparency is not None:
            object.__setattr__(
                self, "transparency", _unit_interval("transparency", self.transparency)
            )
            object.__setattr__(self, "index", _positive("index", self.index))

    @property
    def is_transparent(self) -> bool:
        return self.transparency is not None and self.transparency > 0.0


@dataclass(frozen=True)
class UniformTexture:
    color: Color

    def __post_init__(self) -> None:
        _color("color", self.color)


@dataclass(frozen=True)
class SceneObject:
    shape: Shape
    material: UniformMaterial
    texture: UniformTexture

    def __post_init__(self) -> None:
        if not isinstance(self.shape, (Sphere, Triangle)):
            raise ConfigurationError(f"shape: unsupported shape {type(self.shape).__name__}")
        if not isinstance(self.material, UniformMaterial):
            raise ConfigurationError(
                f"material: unsupported material {type(self.material).__name__}"
            )
        if not isinstance(self.texture, UniformTexture):
            raise ConfigurationError(f"texture: unsupported texture {type(self.texture).__name__}")


# =============================================================================
# Scene
# =============================================================================


@dataclass(frozen=True)
class Scene:
    """A complete, validated scene.

    Attributes:
        camera: The camera.
        lights: Lights grouped by kind.
        objects: Objects in scene order. When two objects are hit at the same
            distance the earlier one wins.
        aliasing_limit: Samples per pixel per axis (n x n grid).
        reflection_limit: Maximum recursion depth of reflected and
            transmitted rays; 0 means local shading only.
        background: Color of rays that hit nothing.
        starting_index: Refractive index of the medium the camera sits in.
        light_falloff: Distance law for point and spot lights: "none",
            "linear" (1/d) or "quadratic" (1/d^2).
    """

    camera: Camera
    lights: Lights = field(default_factory=Lights)
    objects: tuple[SceneObject, ...] = ()
    aliasing_limit: int = 1
    reflection_limit: int = 0
    background: Color = field(default_factory=Color.black)
    starting_index: float = 1.0
    light_falloff: str = "none"

    def __post_init__(self) -> None:
        if not isinstance(self.camera, Camera):
            raise ConfigurationError("camera: missing or not a Camera")
        if not isinstance(self.lights, Lights):
            raise ConfigurationError("lights: expected Lights")
        objects = tuple(self.objects)
        for i, obj in enumerate(objects):
            if not isinstance(obj, SceneObject):
                raise ConfigurationError(f"objects[{i}]: expected SceneObject")
        object.__setattr__(self, "objects", objects)
        _integer("aliasing_limit", self.aliasing_limit, 1)
        _integer("reflection_limit", self.reflection_limit, 0, MAX_REFLECTION_LIMIT)
        _color("background", self.background)
        object.__setattr__(self, "starting_index", _positive("starting_index", self.starting_index))
        if self.light_falloff not in LIGHT_FALLOFFS:
            raise ConfigurationError(
                f"light_falloff: must be one of {', '.join(LIGHT_FALLOFFS)}, "
                f"got {self.light_falloff!r}"
            )

    @property
    def width(self) -> int:
        return self.camera.x

    @property
    def height(self) -> int:
        return self.camera.y
