"""Ray data structure and vector utilities for the path tracer.

This module provides the fundamental Ray dataclass and the vector algebra the
rest of the renderer is built on. Everything decorated with ``@ti.func`` runs
inside Taichi kernels; the small host-side helpers at the bottom are used when
scene and camera descriptions are validated before they are uploaded.

``vec3`` doubles as point, direction and RGB color. Taichi vectors behave as
values: every arithmetic operator returns a new vector.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import math
from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Squared length below which a direction is considered degenerate
DEGENERATE_EPSILON = 1e-12


class DegenerateGeometryError(ValueError):
    """Raised when a direction or normal has zero length."""


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). It is not required
            to be unit length; algorithms that need a unit direction
            normalize it themselves.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


@ti.func
def ray_from_points(start: vec3, end: vec3) -> Ray:
    """Create a ray starting at ``start`` and passing through ``end`` at t=1."""
    return Ray(origin=start, direction=end - start)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def is_degenerate(v: vec3) -> ti.i32:
    """Check whether a vector is too short to define a direction.

    Returns:
        1 if the squared length is below DEGENERATE_EPSILON, 0 otherwise.
    """
    return tm.dot(v, v) < DEGENERATE_EPSILON


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Unlike a bare division by the length, a zero-length input does not
    produce NaN components.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or the zero vector when
        v is degenerate.
    """
    result = vec3(0.0, 0.0, 0.0)
    if not is_degenerate(v):
        result = v / tm.length(v)
    return result


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are below 1e-8 in magnitude, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect a vector about a normal: v - 2 * dot(v, n) * n.

    Args:
        v: The incoming direction vector (pointing toward the surface).
        n: The surface normal (unit length).

    Returns:
        The reflected direction vector.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Refract a unit vector through a surface using Snell's law.

    The refracted direction is split into the components perpendicular and
    parallel to the normal. Total internal reflection is not detected here;
    callers must test ``ratio * sin_theta > 1`` first.

    Args:
        uv: The incident direction (unit length).
        n: The surface normal facing against uv (unit length).
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction.
    """
    cos_theta = tm.min(tm.dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -tm.sqrt(ti.abs(1.0 - tm.dot(r_out_perp, r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3() -> vec3:
    """Generate a random vector with each component uniform in [0, 1)."""
    return vec3(ti.random(ti.f32), ti.random(ti.f32), ti.random(ti.f32))


@ti.func
def random_vec3_range(low: ti.f32, high: ti.f32) -> vec3:
    """Generate a random vector with each component uniform in [low, high)."""
    return low + (high - low) * random_vec3()


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit ball.

    Candidates are drawn from [-1, 1]^3 and rejected while their squared
    length exceeds 1, which yields a uniform distribution over the ball.

    Returns:
        A random point with length <= 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            candidate = random_vec3_range(-1.0, 1.0)
            if length_squared(candidate) <= 1.0:
                p = candidate
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    Uses Archimedes' cylindrical projection: the azimuth is uniform in
    [0, 2*pi) and the height uniform in [-1, 1).
    """
    phi = 2.0 * tm.pi * ti.random(ti.f32)
    z = 2.0 * ti.random(ti.f32) - 1.0
    r = tm.sqrt(tm.max(0.0, 1.0 - z * z))
    return vec3(r * tm.cos(phi), r * tm.sin(phi), z)


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            candidate = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = True
    return p


# =============================================================================
# Host-side helpers
# =============================================================================


def to_vec3_tuple(values: Sequence[float], name: str = "vector") -> tuple[float, float, float]:
    """Convert a length-3 sequence to a tuple of floats.

    Raises:
        ValueError: If the sequence does not have exactly three finite entries.
    """
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    result = (float(values[0]), float(values[1]), float(values[2]))
    if not all(math.isfinite(c) for c in result):
        raise ValueError(f"{name} must be finite, got {result}")
    return result


def normalize_tuple(values: Sequence[float], name: str = "vector") -> tuple[float, float, float]:
    """Normalize a host-side vector.

    Raises:
        DegenerateGeometryError: If the vector has zero length.
    """
    x, y, z = to_vec3_tuple(values, name)
    norm = math.sqrt(x * x + y * y + z * z)
    if norm * norm < DEGENERATE_EPSILON:
        raise DegenerateGeometryError(f"{name} {values} has zero length and no direction")
    return (x / norm, y / norm, z / norm)


def degrees_to_radians(degrees: float) -> float:
    """Convert an angle from degrees to radians."""
    return degrees * math.pi / 180.0


def clamp(x: float, low: float, high: float) -> float:
    """Clamp x into [low, high]."""
    if x < low:
        return low
    if x > high:
        return high
    return x
