"""Scene loading from YAML files or plain mappings.

The accepted structure:

    aliasing_limit: 2            # optional, default 1
    reflection_limit: 3          # optional, default 0
    background: {r: 0, g: 0, b: 0}     # optional, default black
    starting_index: 1.0          # optional, default 1.0
    light_falloff: none          # optional: none | linear | quadratic
    camera:
      origin: [0, 0, 0]
      forward: [1, 0, 0]
      up: [0, 1, 0]
      fov: 90
      distance_to_image: 1
      x: 640
      y: 480
    lights:                      # optional, every group optional
      ambients:     [{color: {r, g, b}}]
      directionals: [{direction: [x, y, z], color: {r, g, b}}]
      points:       [{position: [x, y, z], color: {r, g, b}}]
      spots:        [{position, direction, fov, color}]
    objects:
      - shape: {type: sphere, center: [x, y, z], radius: 1, inverted: false}
        material: {type: uniform, diffuse: {r, g, b}, specular: {r, g, b},
                   reflectivity: 0.5, transparency: 0.5, index: 1.5}
        texture: {type: uniform, color: {r, g, b}}
      - shape: {type: triangle, c0: [...], c1: [...], c2: [...]}
        ...

Every error is a ConfigurationError whose message starts with the path of
the offending field, e.g. ``objects[2].material.index``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from os import PathLike
from typing import Any

import yaml

from whitted.core.color import Color
from whitted.errors import ConfigurationError
from whitted.scene.description import (
    AmbientLight,
    Camera,
    DirectionalLight,
    Lights,
    PointLight,
    Scene,
    SceneObject,
    Shape,
    Sphere,
    SpotLight,
    Triangle,
    UniformMaterial,
    UniformTexture,
)

logger = logging.getLogger(__name__)

_SCENE_KEYS = {
    "aliasing_limit",
    "reflection_limit",
    "background",
    "starting_index",
    "starting_diffraction",
    "light_falloff",
    "camera",
    "lights",
    "objects",
}
_LIGHT_GROUPS = ("ambients", "directionals", "points", "spots")


def load_scene(path: str | PathLike[str]) -> Scene:
    """Read and validate a scene description file.

    Args:
        path: Path to a YAML scene file.

    Returns:
        The validated Scene.

    Raises:
        OSError: If the file cannot be read.
        ConfigurationError: If the file is not valid YAML or describes an
            invalid scene.
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"{path}: invalid YAML: {exc}") from exc
    logger.debug("Loaded scene description from %s", path)
    return scene_from_dict(data)


def scene_from_dict(data: Any) -> Scene:
    """Build a Scene from a parsed description mapping.

    Raises:
        ConfigurationError: If the description is malformed.
    """
    data = _mapping("scene", data)
    _warn_unknown_keys("scene", data, _SCENE_KEYS)

    camera = _parse_camera(_required(data, "camera", "camera"))
    lights = _parse_lights(data.get("lights"))
    objects = tuple(
        _parse_object(f"objects[{i}]", item)
        for i, item in enumerate(_sequence("objects", data.get("objects") or []))
    )
    if len(lights) == 0:
        logger.warning("Scene has no lights; only the background will be visible")

    kwargs: dict[str, Any] = {}
    for key in ("aliasing_limit", "reflection_limit", "light_falloff"):
        if key in data:
            kwargs[key] = data[key]
    if "background" in data:
        kwargs["background"] = _color("background", data["background"])
    if "starting_index" in data:
        kwargs["starting_index"] = data["starting_index"]
    elif "starting_diffraction" in data:
        kwargs["starting_index"] = data["starting_diffraction"]

    return _build("scene", Scene, camera=camera, lights=lights, objects=objects, **kwargs)


# =============================================================================
# Section parsers
# =============================================================================


def _parse_camera(data: Any) -> Camera:
    data = _mapping("camera", data)
    fields = ("origin", "forward", "up", "fov", "distance_to_image", "x", "y")
    _warn_unknown_keys("camera", data, set(fields))
    values = {name: _required(data, name, f"camera.{name}") for name in fields}
    return _build("camera", Camera, **values)


def _parse_lights(data: Any) -> Lights:
    if data is None:
        return Lights()
    data = _mapping("lights", data)
    _warn_unknown_keys("lights", data, set(_LIGHT_GROUPS))

    parsers = {
        "ambients": _parse_ambient,
        "directionals": _parse_directional,
        "points": _parse_point,
        "spots": _parse_spot,
    }
    groups = {}
    for group, parse in parsers.items():
        items = _sequence(f"lights.{group}", data.get(group) or [])
        groups[group] = tuple(parse(f"lights.{group}[{i}]", item) for i, item in enumerate(items))
    return Lights(**groups)


def _parse_ambient(path: str, data: Any) -> AmbientLight:
    data = _mapping(path, data)
    _warn_unknown_keys(path, data, {"color"})
    color = _color(f"{path}.color", _required(data, "color", f"{path}.color"))
    return _build(path, AmbientLight, color=color)


def _parse_directional(path: str, data: Any) -> DirectionalLight:
    data = _mapping(path, data)
    _warn_unknown_keys(path, data, {"direction", "color"})
    return _build(
        path,
        DirectionalLight,
        direction=_required(data, "direction", f"{path}.direction"),
        color=_color(f"{path}.color", _required(data, "color", f"{path}.color")),
    )


def _parse_point(path: str, data: Any) -> PointLight:
    data = _mapping(path, data)
    _warn_unknown_keys(path, data, {"position", "color"})
    return _build(
        path,
        PointLight,
        position=_required(data, "position", f"{path}.position"),
        color=_color(f"{path}.color", _required(data, "color", f"{path}.color")),
    )


def _parse_spot(path: str, data: Any) -> SpotLight:
    data = _mapping(path, data)
    _warn_unknown_keys(path, data, {"position", "direction", "fov", "color"})
    return _build(
        path,
        SpotLight,
        position=_required(data, "position", f"{path}.position"),
        direction=_required(data, "direction", f"{path}.direction"),
        fov=_required(data, "fov", f"{path}.fov"),
        color=_color(f"{path}.color", _required(data, "color", f"{path}.color")),
    )


def _parse_object(path: str, data: Any) -> SceneObject:
    data = _mapping(path, data)
    _warn_unknown_keys(path, data, {"shape", "material", "texture"})
    shape = _parse_shape(f"{path}.shape", _required(data, "shape", f"{path}.shape"))
    material = _parse_material(f"{path}.material", _required(data, "material", f"{path}.material"))
    texture = _parse_texture(f"{path}.texture", _required(data, "texture", f"{path}.texture"))
    return _build(path, SceneObject, shape=shape, material=material, texture=texture)


def _parse_shape(path: str, data: Any) -> Shape:
    data = _mapping(path, data)
    kind = _required(data, "type", f"{path}.type")
    if kind == "sphere":
        _warn_unknown_keys(path, data, {"type", "center", "radius", "inverted"})
        return _build(
            path,
            Sphere,
            center=_required(data, "center", f"{path}.center"),
            radius=_required(data, "radius", f"{path}.radius"),
            inverted=data.get("inverted", False),
        )
    if kind == "triangle":
        _warn_unknown_keys(path, data, {"type", "c0", "c1", "c2"})
        return _build(
            path,
            Triangle,
            c0=_required(data, "c0", f"{path}.c0"),
            c1=_required(data, "c1", f"{path}.c1"),
            c2=_required(data, "c2", f"{path}.c2"),
        )
    raise ConfigurationError(f"{path}.type: unknown shape type {kind!r}")


def _parse_material(path: str, data: Any) -> UniformMaterial:
    data = _mapping(path, data)
    kind = _required(data, "type", f"{path}.type")
    if kind != "uniform":
        raise ConfigurationError(f"{path}.type: unknown material type {kind!r}")
    _warn_unknown_keys(
        path, data, {"type", "diffuse", "specular", "reflectivity", "transparency", "index"}
    )
    return _build(
        path,
        UniformMaterial,
        diffuse=_color(f"{path}.diffuse", _required(data, "diffuse", f"{path}.diffuse")),
        specular=_color(f"{path}.specular", _required(data, "specular", f"{path}.specular")),
        reflectivity=data.get("reflectivity", 0.0),
        transparency=data.get("transparency"),
        index=data.get("index"),
    )


def _parse_texture(path: str, data: Any) -> UniformTexture:
    data = _mapping(path, data)
    kind = _required(data, "type", f"{path}.type")
    if kind != "uniform":
        raise ConfigurationError(f"{path}.type: unknown texture type {kind!r}")
    _warn_unknown_keys(path, data, {"type", "color"})
    color = _color(f"{path}.color", _required(data, "color", f"{path}.color"))
    return _build(path, UniformTexture, color=color)


# =============================================================================
# Helpers
# =============================================================================


def _build(path: str, cls: type, **kwargs: Any) -> Any:
    """Construct a description object, prefixing validation errors with path."""
    try:
        return cls(**kwargs)
    except ConfigurationError as exc:
        if path == "scene":
            raise
        raise ConfigurationError(f"{path}.{exc}") from exc


def _mapping(path: str, data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{path}: expected a mapping, got {type(data).__name__}")
    return data


def _sequence(path: str, data: Any) -> list[Any]:
    if not isinstance(data, list):
        raise ConfigurationError(f"{path}: expected a list, got {type(data).__name__}")
    return data


def _required(data: Mapping[str, Any], key: str, path: str) -> Any:
    if key not in data:
        raise ConfigurationError(f"{path}: missing required field")
    return data[key]


def _color(path: str, data: Any) -> Color:
    data = _mapping(path, data)
    try:
        return Color.from_mapping(data)
    except KeyError as exc:
        raise ConfigurationError(f"{path}.{exc.args[0]}: missing color channel") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{path}: channels must be numbers ({exc})") from exc


def _warn_unknown_keys(path: str, data: Mapping[str, Any], known: set[str]) -> None:
    unknown = sorted(str(key) for key in data if key not in known)
    if unknown:
        logger.warning("Ignoring unknown keys in %s: %s", path, ", ".join(unknown))
