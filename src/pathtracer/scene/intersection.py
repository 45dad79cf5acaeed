"""Scene-level nearest-hit intersection over an ordered primitive table.

Primitives live in a single Structure-of-Arrays table of Taichi fields. Each
row carries a kind tag (see PrimitiveKind) and generic parameter columns:

    kind      vector column        scalar column
    SPHERE    center               radius
    PLANE     unit normal          offset

intersect_scene() walks the rows in insertion order and shrinks the upper
bound of the search interval to the closest hit found so far, so later
primitives are only tested inside the already improved interval.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import add_sphere, add_plane, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    >>> add_plane((0.0, 1.0, 0.0), 0.5, material_id=1)
    >>> # Use intersect_scene within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray
from pathtracer.core.scene_lock import check_scene_unlocked
from pathtracer.geometry.plane import Plane, hit_plane, normalize_plane
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere, miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class PrimitiveKind(IntEnum):
    """Kind tag stored in the primitive table."""

    SPHERE = 0
    PLANE = 1


# Maximum number of primitives supported in the scene
MAX_PRIMITIVES = 2048

primitive_kinds = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_vectors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PRIMITIVES)
primitive_scalars = ti.field(dtype=ti.f32, shape=MAX_PRIMITIVES)
primitive_material_ids = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
num_primitives = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all primitives from the scene.

    Resets the primitive count to zero. Field data is overwritten when new
    primitives are added.
    """
    check_scene_unlocked()
    num_primitives[None] = 0


def _append_primitive(
    kind: PrimitiveKind,
    vector: tuple[float, float, float],
    scalar: float,
    material_id: int,
) -> int:
    check_scene_unlocked()
    idx = num_primitives[None]
    if idx >= MAX_PRIMITIVES:
        raise RuntimeError(f"Maximum number of primitives ({MAX_PRIMITIVES}) exceeded")
    primitive_kinds[idx] = int(kind)
    primitive_vectors[idx] = vec3(vector[0], vector[1], vector[2])
    primitive_scalars[idx] = scalar
    primitive_material_ids[idx] = material_id
    num_primitives[None] = idx + 1
    return idx


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    material_id: int = 0,
) -> int:
    """Append a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. Must be non-zero; a negative radius
            flips the outward normal.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the sphere in the primitive table.

    Raises:
        SceneLockedError: If a render holds the scene lock.
        RuntimeError: If the maximum number of primitives is exceeded.
        ValueError: If the radius is zero.
    """
    if radius == 0.0:
        raise ValueError("Sphere radius must be non-zero")
    return _append_primitive(PrimitiveKind.SPHERE, center, radius, material_id)


def add_plane(
    normal: tuple[float, float, float],
    offset: float,
    material_id: int = 0,
) -> int:
    """Append the plane dot(normal, p) + offset = 0 to the scene.

    The normal is rescaled to unit length (together with the offset) before
    it is stored.

    Returns:
        The index of the plane in the primitive table.

    Raises:
        SceneLockedError: If a render holds the scene lock.
        RuntimeError: If the maximum number of primitives is exceeded.
        DegenerateGeometryError: If the normal has zero length.
    """
    unit_normal, scaled_offset = normalize_plane(normal, offset)
    return _append_primitive(PrimitiveKind.PLANE, unit_normal, scaled_offset, material_id)


def get_primitive_count() -> int:
    """Get the number of primitives in the scene."""
    return int(num_primitives[None])


@ti.func
def intersect_primitive(i: ti.i32, ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Test a ray against primitive ``i`` of the table.

    Returns:
        The primitive's HitRecord with material_id filled in, or a miss.
    """
    rec = miss_record()
    kind = primitive_kinds[i]
    if kind == int(PrimitiveKind.SPHERE):
        sphere = Sphere(center=primitive_vectors[i], radius=primitive_scalars[i])
        rec = hit_sphere(ray, sphere, t_min, t_max)
    elif kind == int(PrimitiveKind.PLANE):
        plane = Plane(normal=primitive_vectors[i], offset=primitive_scalars[i])
        rec = hit_plane(ray, plane, t_min, t_max)
    if rec.hit == 1:
        rec.material_id = primitive_material_ids[i]
    return rec


@ti.func
def intersect_scene(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Find the nearest intersection of a ray with the scene.

    Args:
        ray: The ray to test.
        t_min: Exclusive lower bound on the ray parameter.
        t_max: Exclusive upper bound on the ray parameter.

    Returns:
        The HitRecord with the smallest t inside (t_min, t_max), or a miss
        record if no primitive qualifies.
    """
    closest_t = t_max
    result = miss_record()

    for i in range(num_primitives[None]):
        rec = intersect_primitive(i, ray, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result

