"""Unified scene manager coordinating primitives and materials.

This module provides the host-side scene API. It coordinates the ordered
primitive table (spheres, planes) with the three material registries and
tracks which material type (Diffuse, Reflective, Dielectric) every unified
material ID corresponds to, which is what the integrator dispatches on.

A scene can be built call by call, or from an in-memory list of
(primitive, material) description pairs:

    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import (
    ...     DielectricInfo, DiffuseInfo, SceneManager, SphereInfo
    ... )
    >>> glass = DielectricInfo(ior=1.5)
    >>> scene = SceneManager.from_objects([
    ...     (SphereInfo(center=(0.0, -100.5, -1.0), radius=100.0), DiffuseInfo((0.8, 0.8, 0.0))),
    ...     (SphereInfo(center=(-1.0, 0.0, -1.0), radius=0.5), glass),
    ...     (SphereInfo(center=(-1.0, 0.0, -1.0), radius=-0.4), glass),
    ... ])

Material descriptions passed as the same object share one material ID.

While a render is in flight the scene is locked; any mutation then raises
SceneLockedError so that no primitive changes under a running kernel. The
lock is process-wide (see ``pathtracer.core.scene_lock``): it also blocks
constructing a new SceneManager and calling the registry functions directly.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Union

import taichi as ti

from pathtracer.core.ray import to_vec3_tuple
from pathtracer.core.scene_lock import (
    SceneLockedError,
    check_scene_unlocked,
    is_scene_locked,
    lock_scene,
    unlock_scene,
)
from pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.diffuse import (
    add_diffuse_material,
    clear_diffuse_materials,
)
from pathtracer.materials.reflective import (
    add_reflective_material,
    clear_reflective_materials,
)
from pathtracer.scene.intersection import (
    MAX_PRIMITIVES,
    PrimitiveKind,
    add_plane,
    add_sphere,
    clear_scene,
    get_primitive_count,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    DIFFUSE = 0
    REFLECTIVE = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 768  # 256 per type * 3 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd reflective material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType), or -1 for
        invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local registry index for a given material ID.

    Returns:
        The index into the type-specific material arrays, or -1 for invalid
        material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


# =============================================================================
# Scene descriptions
# =============================================================================


@dataclass(frozen=True)
class DiffuseInfo:
    """Description of a diffuse material."""

    albedo: tuple[float, float, float]


@dataclass(frozen=True)
class ReflectiveInfo:
    """Description of a reflective material.

    ``fuzz`` is clamped into [0, 1] when the material is registered.
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0


@dataclass(frozen=True)
class DielectricInfo:
    """Description of a dielectric material."""

    ior: float = 1.5


@dataclass(frozen=True)
class SphereInfo:
    """Description of a sphere.

    A negative radius is kept as given; it produces inward-pointing normals,
    which turns a dielectric sphere into a hollow shell.
    """

    center: tuple[float, float, float]
    radius: float


@dataclass(frozen=True)
class PlaneInfo:
    """Description of the plane dot(normal, p) + offset = 0."""

    normal: tuple[float, float, float]
    offset: float


MaterialDescription = Union[DiffuseInfo, ReflectiveInfo, DielectricInfo]
PrimitiveDescription = Union[SphereInfo, PlaneInfo]


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class PrimitiveInfo:
    """Information about a primitive in the scene.

    Attributes:
        primitive_index: The row in the primitive table.
        kind: Sphere or plane.
        shape: The description the primitive was created from.
        material_id: The material ID assigned to the primitive.
    """

    primitive_index: int
    kind: PrimitiveKind
    shape: PrimitiveDescription
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations.
        primitives: List of primitive configurations, in scene order.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    primitives: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Host-side scene builder and registry.

    The Taichi fields behind the scene are module-level, so one SceneManager
    is active at a time; creating a new one clears the previous scene.

    Attributes:
        materials: MaterialInfo for all registered materials.
        primitives: PrimitiveInfo for all primitives, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_diffuse_material(albedo=(0.8, 0.8, 0.0))
        >>> gold = scene.add_reflective_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_plane((0.0, 1.0, 0.0), 0.5, ground)
        >>> scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)
    """

    def __init__(self) -> None:
        """Initialize an empty scene.

        Raises:
            SceneLockedError: If a render holds the scene lock.
        """
        check_scene_unlocked()
        self.materials: list[MaterialInfo] = []
        self.primitives: list[PrimitiveInfo] = []
        self._shared_materials: dict[int, int] = {}
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_diffuse_materials()
        clear_reflective_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.primitives.clear()
        self._shared_materials.clear()

    def _check_unlocked(self) -> None:
        check_scene_unlocked()

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials).

        Raises:
            SceneLockedError: If the scene is locked.
        """
        self._check_unlocked()
        self._clear_all()

    # =========================================================================
    # Render lifetime
    # =========================================================================

    @property
    def locked(self) -> bool:
        """Whether the scene is currently locked against modification."""
        return is_scene_locked()

    def lock(self) -> None:
        """Freeze the scene for the duration of a render."""
        lock_scene()

    def unlock(self) -> None:
        """Allow modifications again after a render has finished."""
        unlock_scene()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        logger.debug("Registered %s material %d: %s", material_type.name, material_id, params)
        return material_id

    def add_diffuse_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a diffuse material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B), each in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            SceneLockedError: If the scene is locked.
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        self._check_unlocked()
        albedo = to_vec3_tuple(albedo, "albedo")
        type_index = add_diffuse_material(albedo)
        return self._register_material(MaterialType.DIFFUSE, type_index, {"albedo": albedo})

    def add_reflective_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a reflective (metal) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B), each in [0, 1].
            fuzz: The fuzziness, clamped into [0, 1]. Default is a perfect mirror.

        Returns:
            The unified material ID for this material.

        Raises:
            SceneLockedError: If the scene is locked.
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        self._check_unlocked()
        albedo = to_vec3_tuple(albedo, "albedo")
        fuzz = min(max(float(fuzz), 0.0), 1.0)
        type_index = add_reflective_material(albedo, fuzz)
        return self._register_material(
            MaterialType.REFLECTIVE, type_index, {"albedo": albedo, "fuzz": fuzz}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).

        Returns:
            The unified material ID for this material.

        Raises:
            SceneLockedError: If the scene is locked.
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If the IOR is not positive.
        """
        self._check_unlocked()
        type_index = add_dielectric_material(float(ior))
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": float(ior)})

    def add_material(self, material: MaterialDescription) -> int:
        """Register a material description and return its material ID.

        Passing the same description object again returns the existing ID,
        so primitives built from one object share one material.

        Raises:
            TypeError: If the description is not a known material type.
        """
        key = id(material)
        if key in self._shared_materials:
            return self._shared_materials[key]

        if isinstance(material, DiffuseInfo):
            material_id = self.add_diffuse_material(material.albedo)
        elif isinstance(material, ReflectiveInfo):
            material_id = self.add_reflective_material(material.albedo, material.fuzz)
        elif isinstance(material, DielectricInfo):
            material_id = self.add_dielectric_material(material.ior)
        else:
            raise TypeError(f"Unsupported material description: {material!r}")

        self._shared_materials[key] = material_id
        # Keep the description alive so its id() cannot be reused
        self.materials[material_id].params["description"] = material
        return material_id

    def get_material_count(self) -> int:
        """Get the number of registered materials."""
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material, or None for an unknown ID."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def _check_material_id(self, material_id: int) -> None:
        if not 0 <= material_id < len(self.materials):
            raise ValueError(
                f"Unknown material_id {material_id}; "
                f"{len(self.materials)} materials are registered"
            )

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere. Must be non-zero; a negative
                radius flips the normals (hollow dielectric shells).
            material_id: The material ID to assign.

        Returns:
            The index of the sphere in the primitive table.

        Raises:
            SceneLockedError: If the scene is locked.
            ValueError: If the radius is zero or the material ID is unknown.
            RuntimeError: If the maximum number of primitives is exceeded.
        """
        self._check_unlocked()
        self._check_material_id(material_id)
        center = to_vec3_tuple(center, "sphere center")
        radius = float(radius)
        index = add_sphere(center, radius, material_id)
        self.primitives.append(
            PrimitiveInfo(
                primitive_index=index,
                kind=PrimitiveKind.SPHERE,
                shape=SphereInfo(center=center, radius=radius),
                material_id=material_id,
            )
        )
        return index

    def add_plane(
        self,
        normal: tuple[float, float, float],
        offset: float,
        material_id: int,
    ) -> int:
        """Add the plane dot(normal, p) + offset = 0 to the scene.

        Args:
            normal: The plane normal (normalized on upload).
            offset: The plane offset.
            material_id: The material ID to assign.

        Returns:
            The index of the plane in the primitive table.

        Raises:
            SceneLockedError: If the scene is locked.
            DegenerateGeometryError: If the normal has zero length.
            ValueError: If the material ID is unknown.
            RuntimeError: If the maximum number of primitives is exceeded.
        """
        self._check_unlocked()
        self._check_material_id(material_id)
        normal = to_vec3_tuple(normal, "plane normal")
        index = add_plane(normal, float(offset), material_id)
        self.primitives.append(
            PrimitiveInfo(
                primitive_index=index,
                kind=PrimitiveKind.PLANE,
                shape=PlaneInfo(normal=normal, offset=float(offset)),
                material_id=material_id,
            )
        )
        return index

    def add_object(
        self,
        primitive: PrimitiveDescription,
        material: MaterialDescription,
    ) -> tuple[int, int]:
        """Add one (primitive, material) pair to the scene.

        Returns:
            Tuple of (primitive_index, material_id).

        Raises:
            TypeError: If the primitive description is not a known type.
        """
        material_id = self.add_material(material)
        if isinstance(primitive, SphereInfo):
            index = self.add_sphere(primitive.center, primitive.radius, material_id)
        elif isinstance(primitive, PlaneInfo):
            index = self.add_plane(primitive.normal, primitive.offset, material_id)
        else:
            raise TypeError(f"Unsupported primitive description: {primitive!r}")
        return index, material_id

    @classmethod
    def from_objects(
        cls,
        objects: Iterable[tuple[PrimitiveDescription, MaterialDescription]],
    ) -> "SceneManager":
        """Build a scene from an ordered list of (primitive, material) pairs."""
        scene = cls()
        for primitive, material in objects:
            scene.add_object(primitive, material)
        logger.debug(
            "Built scene with %d primitives and %d materials",
            scene.get_primitive_count(),
            scene.get_material_count(),
        )
        return scene

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_primitive_count(self) -> int:
        """Get the number of primitives in the scene."""
        return get_primitive_count()

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return sum(1 for p in self.primitives if p.kind == PrimitiveKind.SPHERE)

    def get_plane_count(self) -> int:
        """Get the number of planes in the scene."""
        return sum(1 for p in self.primitives if p.kind == PrimitiveKind.PLANE)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Returns:
            A SceneConfig containing all materials and primitives.
        """
        config = SceneConfig()

        for mat in self.materials:
            params = {k: v for k, v in mat.params.items() if k != "description"}
            if "albedo" in params:
                params["albedo"] = list(params["albedo"])
            config.materials.append({"type": mat.material_type.name.lower(), **params})

        for prim in self.primitives:
            if isinstance(prim.shape, SphereInfo):
                config.primitives.append(
                    {
                        "type": "sphere",
                        "center": list(prim.shape.center),
                        "radius": prim.shape.radius,
                        "material_id": prim.material_id,
                    }
                )
            else:
                config.primitives.append(
                    {
                        "type": "plane",
                        "normal": list(prim.shape.normal),
                        "offset": prim.shape.offset,
                        "material_id": prim.material_id,
                    }
                )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Raises:
            SceneLockedError: If the scene is locked.
            ValueError: If the configuration contains unknown types.
        """
        self.clear()

        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "diffuse":
                self.add_diffuse_material(tuple(mat_config.get("albedo", [0.5, 0.5, 0.5])))
            elif mat_type == "reflective":
                self.add_reflective_material(
                    tuple(mat_config.get("albedo", [0.8, 0.8, 0.8])),
                    mat_config.get("fuzz", 0.0),
                )
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for prim_config in config.primitives:
            prim_type = prim_config.get("type", "").lower()
            material_id = prim_config.get("material_id", 0)
            if prim_type == "sphere":
                self.add_sphere(
                    tuple(prim_config.get("center", [0.0, 0.0, 0.0])),
                    prim_config.get("radius", 1.0),
                    material_id,
                )
            elif prim_type == "plane":
                self.add_plane(
                    tuple(prim_config.get("normal", [0.0, 1.0, 0.0])),
                    prim_config.get("offset", 0.0),
                    material_id,
                )
            else:
                raise ValueError(f"Unknown primitive type: {prim_type}")

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {"materials": config.materials, "primitives": config.primitives}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'primitives' keys."""
        self.from_config(
            SceneConfig(
                materials=data.get("materials", []),
                primitives=data.get("primitives", []),
            )
        )

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_primitives() -> int:
        """Get the maximum number of primitives supported."""
        return MAX_PRIMITIVES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
