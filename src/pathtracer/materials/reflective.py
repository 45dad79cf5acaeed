"""Reflective (metal) material implementation.

Metals reflect the incoming ray about the surface normal. A fuzziness
parameter in [0, 1] perturbs the mirror direction by a scaled random unit
vector, which models brushed or rough metal:

    direction = reflect(unit(incident), normal) + fuzz * random_unit_vector()

Rays whose perturbed direction points into the surface are absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.reflective import scatter_reflective
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_reflective(
    >>> #     albedo, fuzz, incident_dir, normal
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import clamp, random_unit_vector, reflect, unit_vector
from pathtracer.core.scene_lock import check_scene_unlocked

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_reflective(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute the scattered ray direction for a reflective material.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The fuzziness in [0, 1].
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal facing against the ray (unit length).

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is 0 when the scattered direction has a non-positive dot
        product with the normal (the ray is absorbed).
    """
    reflected = reflect(unit_vector(incident_direction), normal)
    scattered_direction = reflected + fuzz * random_unit_vector()

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of reflective materials in the scene
MAX_REFLECTIVE_MATERIALS = 256

# Storage for reflective material properties
reflective_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_REFLECTIVE_MATERIALS)
reflective_fuzzes = ti.field(dtype=ti.f32, shape=MAX_REFLECTIVE_MATERIALS)
num_reflective_materials = ti.field(dtype=ti.i32, shape=())


def clear_reflective_materials() -> None:
    """Clear all reflective materials."""
    check_scene_unlocked()
    num_reflective_materials[None] = 0


def add_reflective_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a reflective material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component should be in [0, 1].
        fuzz: The fuzziness. Values outside [0, 1] are clamped into range.

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

    idx = num_reflective_materials[None]
    if idx >= MAX_REFLECTIVE_MATERIALS:
        raise RuntimeError(
            f"Maximum number of reflective materials ({MAX_REFLECTIVE_MATERIALS}) exceeded"
        )

    reflective_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    reflective_fuzzes[idx] = clamp(fuzz, 0.0, 1.0)
    num_reflective_materials[None] = idx + 1
    return idx


def get_reflective_material_count() -> int:
    """Get the number of reflective materials in the registry."""
    return int(num_reflective_materials[None])


@ti.func
def get_reflective_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a reflective material by index."""
    return reflective_albedos[material_idx]


@ti.func
def get_reflective_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzziness for a reflective material by index."""
    return reflective_fuzzes[material_idx]


@ti.func
def scatter_reflective_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
):
    """Scatter off a reflective material looked up by registry index."""
    albedo = get_reflective_albedo(material_idx)
    fuzz = get_reflective_fuzz(material_idx)
    return scatter_reflective(albedo, fuzz, incident_direction, normal)
