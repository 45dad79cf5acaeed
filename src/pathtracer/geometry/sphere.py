"""Sphere primitive and the hit record shared by all primitives.

The ray-sphere test solves the half-b form of the quadratic

    a*t^2 + 2*h*t + c = 0

with a = |d|^2, h = d . (o - center), c = |o - center|^2 - r^2, and tests the
nearer root before the farther one. Only roots strictly inside the open
interval (t_min, t_max) count as hits.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. A negative radius keeps the same
            surface but turns the outward normal inward.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of the nearest ray-primitive intersection.

    A record with ``hit == 0`` stands for "no intersection"; every other
    field is only meaningful when ``hit == 1``.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss.
        t: The ray parameter of the intersection.
        point: The intersection point.
        normal: Unit surface normal, oriented against the incoming ray for
            spheres and fixed for planes.
        front_face: 1 when the ray approaches from the outward side.
        material_id: The unified material ID of the hit primitive, -1 when
            the record was produced by a bare primitive test.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def face_normal(direction: vec3, outward_normal: vec3):
    """Orient an outward normal against the ray direction.

    Args:
        direction: The ray direction.
        outward_normal: The geometric normal pointing out of the surface.

    Returns:
        A tuple (front_face, normal) where front_face is 1 when the ray and
        the outward normal point in opposite directions.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return front_face, normal


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Test for ray-sphere intersection.

    A non-positive discriminant (including the exactly tangent case) is a
    miss, and so is a zero-length ray direction.

    Args:
        ray: The ray to test. Its direction need not be normalized.
        sphere: The sphere to test against.
        t_min: Exclusive lower bound on the accepted ray parameter.
        t_max: Exclusive upper bound on the accepted ray parameter.

    Returns:
        A HitRecord for the nearest root inside (t_min, t_max), or a miss.
    """
    result = miss_record()

    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    if a > 0.0 and discriminant > 0.0:
        root = tm.sqrt(discriminant)

        # Nearer root first
        t = (-h - root) / a
        valid = t > t_min and t < t_max
        if not valid:
            t = (-h + root) / a
            valid = t > t_min and t < t_max

        if valid:
            point = ray_at(ray, t)
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = face_normal(ray.direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=-1,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius."""
    return Sphere(center=center, radius=radius)
