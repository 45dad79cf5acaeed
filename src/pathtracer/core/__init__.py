"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities
    integrator: Light transport evaluation and the tiled render kernel
    tiles: Partitioning of the image into worker tiles
    settings: Render configuration
    framebuffer: Host-side 8-bit RGB image
    renderer: Render orchestration with progress reporting

All compute-intensive operations use Taichi kernels.
"""

from .framebuffer import Framebuffer
from .ray import (
    DegenerateGeometryError,
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    ray_from_points,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from .tiles import Tile, partition_tiles, tile_of_pixel

# Note: integrator, settings and renderer are NOT imported here to avoid circular
# imports (the camera and scene packages depend on core.ray).
#
# For rendering, use:
#   from pathtracer.core.renderer import Renderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "ray_from_points",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "DegenerateGeometryError",
    "Framebuffer",
    "Tile",
    "partition_tiles",
    "tile_of_pixel",
]
