"""Scene module for scene management and nearest-hit queries.

Components:
    intersection: Ordered primitive table and nearest-hit reduction
    manager: Unified scene manager coordinating primitives and materials
    presets: Ready-made demo scenes

Scene data is organized for efficient kernel access:
    - Structure-of-Arrays layout for geometric data
    - Contiguous material ID arrays
"""

from .intersection import (
    MAX_PRIMITIVES,
    PrimitiveKind,
    add_plane,
    add_sphere,
    clear_scene,
    get_primitive_count,
    intersect_primitive,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    DielectricInfo,
    DiffuseInfo,
    MaterialInfo,
    MaterialType,
    PlaneInfo,
    PrimitiveInfo,
    ReflectiveInfo,
    SceneConfig,
    SceneLockedError,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
)
from .presets import create_ground_plane_scene, create_three_spheres_scene

__all__ = [
    # Intersection module
    "PrimitiveKind",
    "add_sphere",
    "add_plane",
    "clear_scene",
    "get_primitive_count",
    "intersect_primitive",
    "intersect_scene",
    "MAX_PRIMITIVES",
    # Manager module
    "SceneManager",
    "SceneLockedError",
    "MaterialType",
    "MaterialInfo",
    "PrimitiveInfo",
    "SphereInfo",
    "PlaneInfo",
    "DiffuseInfo",
    "ReflectiveInfo",
    "DielectricInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # Presets
    "create_three_spheres_scene",
    "create_ground_plane_scene",
]
