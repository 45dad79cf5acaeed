"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, the shared HitRecord and front-face orientation
    plane: Infinite plane primitive

All intersection routines are Taichi functions (@ti.func) following one
contract:

    record = hit_shape(ray, shape, t_min, t_max)

where ``record.hit`` is 0 when nothing lies strictly inside (t_min, t_max).
"""

from .plane import Plane, hit_plane, make_plane, normalize_plane
from .sphere import HitRecord, Sphere, face_normal, hit_sphere, make_sphere, miss_record

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "miss_record",
    "face_normal",
    "Plane",
    "hit_plane",
    "make_plane",
    "normalize_plane",
]
