"""Materials module for light scattering models.

Components:
    diffuse: Lambertian-style diffuse scattering
    reflective: Metal reflection with optional fuzziness
    dielectric: Glass-like refraction with total internal reflection and an
        optional Schlick partial-reflection policy

Every material exposes the same scatter contract, implemented as a Taichi
function:

    direction, attenuation, did_scatter = scatter_<kind>(...)

``did_scatter == 0`` means the ray was absorbed. The outgoing ray starts at
the hit point.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_ior,
    get_dielectric_material_count,
    is_schlick_reflectance_enabled,
    scatter_dielectric,
    scatter_dielectric_by_id,
    set_schlick_reflectance,
    total_internal_reflection,
)
from .diffuse import (
    add_diffuse_material,
    clear_diffuse_materials,
    get_diffuse_albedo,
    get_diffuse_material_count,
    scatter_diffuse,
    scatter_diffuse_by_id,
)
from .reflective import (
    add_reflective_material,
    clear_reflective_materials,
    get_reflective_albedo,
    get_reflective_fuzz,
    get_reflective_material_count,
    scatter_reflective,
    scatter_reflective_by_id,
)

__all__ = [
    # Diffuse
    "scatter_diffuse",
    "scatter_diffuse_by_id",
    "add_diffuse_material",
    "clear_diffuse_materials",
    "get_diffuse_material_count",
    "get_diffuse_albedo",
    # Reflective
    "scatter_reflective",
    "scatter_reflective_by_id",
    "add_reflective_material",
    "clear_reflective_materials",
    "get_reflective_material_count",
    "get_reflective_albedo",
    "get_reflective_fuzz",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "fresnel_reflectance",
    "total_internal_reflection",
    "set_schlick_reflectance",
    "is_schlick_reflectance_enabled",
]
