"""Infinite plane primitive with ray-plane intersection.

A plane is defined implicitly by

    dot(normal, p) + offset = 0

so the ray parameter of the intersection has the closed form

    t = (-offset - dot(origin, normal)) / dot(direction, normal)

A ray parallel to the plane has a zero denominator. That case, and any
non-finite t, is reported as a miss so that NaN or infinite parameters never
reach the nearest-hit comparison in the scene.

Plane hits are always reported as front-facing with the plane's own normal;
the normal is not flipped for rays arriving from the back side.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.plane import Plane, hit_plane
    >>> # Ground plane y = -0.5
    >>> ground = Plane(normal=ti.math.vec3(0, 1, 0), offset=0.5)
    >>> # Use hit_plane within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, normalize_tuple, ray_at, to_vec3_tuple

from .sphere import HitRecord, miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Plane:
    """An infinite plane dot(normal, p) + offset = 0.

    Attributes:
        normal: The plane normal (vec3, unit length once normalized with
            normalize_plane()).
        offset: The signed offset of the plane along its normal.
    """

    normal: vec3
    offset: ti.f32


@ti.func
def hit_plane(ray: Ray, plane: Plane, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Test for ray-plane intersection.

    Args:
        ray: The ray to test. Its direction need not be normalized.
        plane: The plane to test against.
        t_min: Exclusive lower bound on the accepted ray parameter.
        t_max: Exclusive upper bound on the accepted ray parameter.

    Returns:
        A front-facing HitRecord carrying the plane normal, or a miss when
        the ray is parallel to the plane or the hit lies outside the interval.
    """
    result = miss_record()

    denom = tm.dot(ray.direction, plane.normal)
    if denom != 0.0:
        t = (-plane.offset - tm.dot(ray.origin, plane.normal)) / denom
        finite = not (tm.isnan(t) or tm.isinf(t))
        if finite and t > t_min and t < t_max:
            result = HitRecord(
                hit=1,
                t=t,
                point=ray_at(ray, t),
                normal=plane.normal,
                front_face=1,
                material_id=-1,
            )

    return result


@ti.func
def make_plane(normal: vec3, offset: ti.f32) -> Plane:
    """Create a plane from a normal and offset."""
    return Plane(normal=normal, offset=offset)


def normalize_plane(
    normal: tuple[float, float, float],
    offset: float,
) -> tuple[tuple[float, float, float], float]:
    """Rescale a plane description so that its normal is unit length.

    Dividing both the normal and the offset by the normal's length leaves the
    set of points on the plane unchanged.

    Args:
        normal: The (not necessarily unit) plane normal.
        offset: The plane offset matching that normal.

    Returns:
        A tuple (unit_normal, scaled_offset).

    Raises:
        DegenerateGeometryError: If the normal has zero length.
    """
    x, y, z = to_vec3_tuple(normal, "plane normal")
    unit = normalize_tuple((x, y, z), "plane normal")
    norm = (x * x + y * y + z * z) ** 0.5
    return unit, float(offset) / norm
