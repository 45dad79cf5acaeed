"""Diffuse (Lambertian) material implementation.

A diffuse surface scatters every incoming ray; the outgoing direction is the
surface normal perturbed by a random unit vector

    direction = normal + random_unit_vector()

which distributes scattered rays with a cosine-like falloff around the normal.
The attenuation is the material albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.diffuse import scatter_diffuse
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_diffuse(albedo, normal)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import near_zero, random_unit_vector
from pathtracer.core.scene_lock import check_scene_unlocked

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_diffuse(albedo: vec3, normal: vec3):
    """Scatter a ray off a diffuse surface.

    Diffuse surfaces never absorb. When the random perturbation almost
    cancels the normal, the normal itself is used so the outgoing direction
    never degenerates to zero.

    Args:
        albedo: The diffuse reflectance color (RGB).
        normal: The surface normal at the hit point (unit length).

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is always 1.
    """
    scattered_direction = normal + random_unit_vector()
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, 1


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of diffuse materials in the scene
MAX_DIFFUSE_MATERIALS = 256

# Storage for diffuse material properties
diffuse_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_DIFFUSE_MATERIALS)
num_diffuse_materials = ti.field(dtype=ti.i32, shape=())


def clear_diffuse_materials() -> None:
    """Clear all diffuse materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    check_scene_unlocked()
    num_diffuse_materials[None] = 0


def add_diffuse_material(albedo: tuple[float, float, float]) -> int:
    """Add a diffuse material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.

    Returns:
        The index of the added material.

    Raises:
        SceneLockedError: If a render holds the scene lock.
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    check_scene_unlocked()
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    idx = num_diffuse_materials[None]
    if idx >= MAX_DIFFUSE_MATERIALS:
        raise RuntimeError(
            f"Maximum number of diffuse materials ({MAX_DIFFUSE_MATERIALS}) exceeded"
        )

    diffuse_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_diffuse_materials[None] = idx + 1
    return idx


def get_diffuse_material_count() -> int:
    """Get the number of diffuse materials in the registry."""
    return int(num_diffuse_materials[None])


@ti.func
def get_diffuse_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a diffuse material by index."""
    return diffuse_albedos[material_idx]


@ti.func
def scatter_diffuse_by_id(material_idx: ti.i32, normal: vec3):
    """Scatter off a diffuse material looked up by registry index."""
    return scatter_diffuse(get_diffuse_albedo(material_idx), normal)
