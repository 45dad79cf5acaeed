"""Pinhole camera model for perspective projection ray generation.

This module implements a pinhole camera that generates primary rays for rendering.
The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- A vertical field of view in degrees
- Arbitrary aspect ratios

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport is a virtual image plane at unit distance in front of the camera.
A primary ray for normalized image coordinates (s, t) is

    Ray(origin, lower_left + s * horizontal + t * vertical - origin)

Its direction is deliberately left unnormalized; every consumer normalizes
where it needs a unit vector.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> camera = PinholeCamera(
    ...     lookfrom=(0.0, 0.0, 0.0),
    ...     lookat=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=90.0,
    ...     aspect_ratio=16.0/9.0
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.core.ray import (
    DEGENERATE_EPSILON,
    DegenerateGeometryError,
    Ray,
    degrees_to_radians,
    make_ray,
)

logger = logging.getLogger(__name__)

Vec3Tuple = tuple[float, float, float]

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class CameraBasis:
    """World-space frame and viewport of a configured camera."""

    origin: Vec3Tuple
    u: Vec3Tuple
    v: Vec3Tuple
    w: Vec3Tuple
    lower_left: Vec3Tuple
    horizontal: Vec3Tuple
    vertical: Vec3Tuple


def _as_tuple(array: np.ndarray) -> Vec3Tuple:
    return (float(array[0]), float(array[1]), float(array[2]))


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    A pinhole camera produces perfect perspective projection with no
    depth of field effects. It is the simplest camera model for ray tracing.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
    """

    lookfrom: Vec3Tuple = (0.0, 0.0, 0.0)
    lookat: Vec3Tuple = (0.0, 0.0, -1.0)
    vup: Vec3Tuple = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: float = 16.0 / 9.0

    def compute_basis(self) -> CameraBasis:
        """Compute the orthonormal basis and viewport geometry.

        Raises:
            ValueError: If the field of view or aspect ratio is out of range.
            DegenerateGeometryError: If lookfrom equals lookat, or vup is
                parallel to the view direction.
        """
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")

        # Convert FOV from degrees to radians
        theta = degrees_to_radians(self.vfov)
        h = math.tan(theta / 2.0)

        # Viewport dimensions at unit distance
        viewport_height = 2.0 * h
        viewport_width = self.aspect_ratio * viewport_height

        lookfrom = np.array(self.lookfrom, dtype=np.float64)
        lookat = np.array(self.lookat, dtype=np.float64)
        vup = np.array(self.vup, dtype=np.float64)

        # w points from lookat toward lookfrom (backward)
        w = lookfrom - lookat
        w_norm = np.linalg.norm(w)
        if w_norm < DEGENERATE_EPSILON:
            raise DegenerateGeometryError("lookfrom and lookat must be distinct points")
        w = w / w_norm

        # u points right (perpendicular to w and vup)
        u = np.cross(vup, w)
        u_norm = np.linalg.norm(u)
        if u_norm < DEGENERATE_EPSILON:
            raise DegenerateGeometryError("vup must not be parallel to the view direction")
        u = u / u_norm

        # v points up in the camera's frame
        v = np.cross(w, u)

        horizontal = viewport_width * u
        vertical = viewport_height * v
        lower_left = lookfrom - w - horizontal / 2.0 - vertical / 2.0

        return CameraBasis(
            origin=_as_tuple(lookfrom),
            u=_as_tuple(u),
            v=_as_tuple(v),
            w=_as_tuple(w),
            lower_left=_as_tuple(lower_left),
            horizontal=_as_tuple(horizontal),
            vertical=_as_tuple(vertical),
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(camera: PinholeCamera) -> CameraBasis:
    """Upload a camera configuration for ray generation.

    This must be called before rendering, from Python (not from within a
    Taichi kernel).

    Args:
        camera: Camera configuration with position, orientation, and FOV.

    Returns:
        The computed CameraBasis.

    Raises:
        ValueError: If the camera parameters are invalid.
        DegenerateGeometryError: If the view frame is degenerate.
    """
    basis = camera.compute_basis()

    _camera_origin[None] = list(basis.origin)
    _camera_u[None] = list(basis.u)
    _camera_v[None] = list(basis.v)
    _camera_w[None] = list(basis.w)
    _viewport_horizontal[None] = list(basis.horizontal)
    _viewport_vertical[None] = list(basis.vertical)
    _lower_left_corner[None] = list(basis.lower_left)

    logger.debug(
        "Camera at %s looking at %s, vfov=%.1f aspect=%.4f",
        camera.lookfrom,
        camera.lookat,
        camera.vfov,
        camera.aspect_ratio,
    )
    return basis


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    Returns:
        A Ray from the camera origin toward the viewport point. The
        direction is not normalized.
    """
    origin = _camera_origin[None]
    point_on_viewport = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )
    return make_ray(origin, point_on_viewport - origin)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, source in fields.items():
        value = source[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
