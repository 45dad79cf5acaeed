"""Ready-made demo scenes.

Two small scenes are provided:

- create_three_spheres_scene(): a huge ground sphere with three spheres on
  top of it (glass on the left, diffuse in the centre, metal on the right).
  The glass sphere is a hollow shell built from a second sphere with a
  negative radius.
- create_ground_plane_scene(): the same three spheres resting on an infinite
  plane instead of a ground sphere.

Both look down -z from the origin, which is also the default framing used by
the end-to-end tests.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.presets import create_three_spheres_scene
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene(aspect_ratio=16.0 / 9.0)
    >>> setup_camera(camera)
"""

from pathtracer.camera.pinhole import PinholeCamera
from pathtracer.scene.manager import (
    DielectricInfo,
    DiffuseInfo,
    MaterialDescription,
    PlaneInfo,
    ReflectiveInfo,
    SceneManager,
    SphereInfo,
)

# =============================================================================
# Scene Constants
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
METAL_ALBEDO = (0.8, 0.6, 0.2)
METAL_FUZZ = 0.0
GLASS_IOR = 1.5

SPHERE_RADIUS = 0.5
GLASS_INNER_RADIUS = -0.45
GROUND_RADIUS = 100.0


def _default_camera(aspect_ratio: float, vfov: float) -> PinholeCamera:
    return PinholeCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=vfov,
        aspect_ratio=aspect_ratio,
    )


def _three_spheres(glass: DielectricInfo) -> list[tuple[SphereInfo, MaterialDescription]]:
    return [
        (SphereInfo(center=(0.0, 0.0, -1.0), radius=SPHERE_RADIUS), DiffuseInfo(CENTER_ALBEDO)),
        (SphereInfo(center=(-1.0, 0.0, -1.0), radius=SPHERE_RADIUS), glass),
        (SphereInfo(center=(-1.0, 0.0, -1.0), radius=GLASS_INNER_RADIUS), glass),
        (
            SphereInfo(center=(1.0, 0.0, -1.0), radius=SPHERE_RADIUS),
            ReflectiveInfo(METAL_ALBEDO, METAL_FUZZ),
        ),
    ]


def create_three_spheres_scene(
    aspect_ratio: float = 16.0 / 9.0,
    vfov: float = 90.0,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the three-spheres scene on a large ground sphere.

    Args:
        aspect_ratio: Camera aspect ratio (width / height).
        vfov: Vertical field of view in degrees.

    Returns:
        A tuple of (SceneManager, PinholeCamera).

    Example:
        >>> scene, camera = create_three_spheres_scene()
        >>> scene.get_sphere_count()
        5
    """
    glass = DielectricInfo(GLASS_IOR)
    objects = [
        (
            SphereInfo(center=(0.0, -GROUND_RADIUS - SPHERE_RADIUS, -1.0), radius=GROUND_RADIUS),
            DiffuseInfo(GROUND_ALBEDO),
        ),
        *_three_spheres(glass),
    ]
    scene = SceneManager.from_objects(objects)
    return scene, _default_camera(aspect_ratio, vfov)


def create_ground_plane_scene(
    aspect_ratio: float = 16.0 / 9.0,
    vfov: float = 90.0,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the three-spheres scene resting on the plane y = -0.5.

    Returns:
        A tuple of (SceneManager, PinholeCamera).
    """
    glass = DielectricInfo(GLASS_IOR)
    objects = [
        (PlaneInfo(normal=(0.0, 1.0, 0.0), offset=SPHERE_RADIUS), DiffuseInfo(GROUND_ALBEDO)),
        *_three_spheres(glass),
    ]
    scene = SceneManager.from_objects(objects)
    return scene, _default_camera(aspect_ratio, vfov)
