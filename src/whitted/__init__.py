"""Recursive (Whitted-style) ray tracer built on Taichi.

This package renders declarative scenes (camera, lights, objects made of a
shape, a material and a texture) by casting primary rays per pixel, resolving
the nearest intersection, shading it with ambient, directional, point and spot
lights, and recursively tracing reflected and transmitted rays up to a fixed
depth.

Subpackages:
    core: Vector/color math, the recursive tracer kernels and the renderer
    geometry: Shape primitives (sphere, triangle) and their intersection tests
    lights: Light sources and their illumination query
    materials: Uniform materials and textures feeding the shading equation
    scene: Immutable scene description, YAML loader, Taichi-side scene storage
    camera: Pinhole camera and sub-pixel ray generation
    preview: Image export

Modules that declare Taichi fields must be imported after ``ti.init()``.
"""

__version__ = "0.1.0"
