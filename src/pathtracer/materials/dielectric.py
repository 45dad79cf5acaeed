"""Dielectric (glass/water) material implementation.

Dielectrics refract light according to Snell's law and reflect it when
refraction is impossible (total internal reflection):

    ratio = 1 / ior    when entering the surface (front face)
    ratio = ior        when leaving it (back face)
    reflect if ratio * sin_theta > 1, otherwise refract

Clear dielectrics never tint or absorb, so the attenuation is always white.

Partial reflection at grazing angles (Schlick's approximation) is a policy
switch. It is off by default, in which case a ray always refracts unless it
is totally internally reflected. Turn it on with set_schlick_reflectance() or
through ``RenderSettings.schlick_reflectance``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import reflect, refract, schlick_reflectance, unit_vector
from pathtracer.core.scene_lock import check_scene_unlocked

# Type alias for 3D vectors
vec3 = tm.vec3

# Schlick partial-reflection policy (0 = off, 1 = on)
_schlick_enabled = ti.field(dtype=ti.i32, shape=())


def set_schlick_reflectance(enabled: bool) -> None:
    """Enable or disable Schlick partial reflection for all dielectrics."""
    _schlick_enabled[None] = 1 if enabled else 0


def is_schlick_reflectance_enabled() -> bool:
    """Check whether Schlick partial reflection is enabled."""
    return bool(_schlick_enabled[None])


@ti.func
def _refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def _incidence_angle(unit_direction: vec3, normal: vec3):
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = tm.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))
    return cos_theta, sin_theta


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Compute the scattered ray direction for a dielectric material.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal facing against the ray (unit length).
        front_face: 1 if the ray hits the outside of the surface,
            0 if it travels inside the material.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        attenuation is white and did_scatter is always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    ratio = _refraction_ratio(ior, front_face)
    unit_direction = unit_vector(incident_direction)
    cos_theta, sin_theta = _incidence_angle(unit_direction, normal)

    cannot_refract = ratio * sin_theta > 1.0

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract:
        scattered_direction = reflect(unit_direction, normal)
    elif _schlick_enabled[None] == 1 and schlick_reflectance(cos_theta, ratio) > ti.random(ti.f32):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, attenuation, 1


@ti.func
def total_internal_reflection(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Returns:
        1 if ratio * sin_theta > 1 (no refraction possible), 0 otherwise.
    """
    ratio = _refraction_ratio(ior, front_face)
    _, sin_theta = _incidence_angle(unit_vector(incident_direction), normal)
    return ratio * sin_theta > 1.0


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Compute the Schlick reflectance for an incident direction.

    Returns:
        The Fresnel reflectance coefficient in [0, 1].
    """
    ratio = _refraction_ratio(ior, front_face)
    cos_theta, _ = _incidence_angle(unit_vector(incident_direction), normal)
    return schlick_reflectance(cos_theta, ratio)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    check_scene_unlocked()
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass). Values
            below 1.0 are allowed and model e.g. an air bubble inside glass.

    Returns:
        The index of the added material.

    Raises:
        SceneLockedError: If a render holds the scene lock.
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the IOR is not a positive number.
    """
    check_scene_unlocked()
    if not ior > 0.0:
        raise ValueError(f"Index of refraction = {ior} must be positive.")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Scatter off a dielectric material looked up by registry index."""
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, normal, front_face)
