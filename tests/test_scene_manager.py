"""Unit tests for the SceneManager.

Tests cover:
- Material registration (Diffuse, Reflective, Dielectric)
- Material type tracking and GPU-side lookup
- Primitive addition with materials
- Building scenes from description pairs and sharing materials
- Locking during renders
- Scene serialization (to_config, from_config, to_dict, from_dict)
- Public package exports
"""

import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.unlock()
    scene.clear()


class TestMaterialRegistration:
    """Tests for material registration."""

    def test_add_one_of_each(self, fresh_scene):
        from pathtracer.scene.manager import MaterialType

        id0 = fresh_scene.add_diffuse_material(albedo=(0.8, 0.3, 0.3))
        id1 = fresh_scene.add_reflective_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        id2 = fresh_scene.add_dielectric_material(ior=1.5)
        id3 = fresh_scene.add_diffuse_material(albedo=(0.1, 0.8, 0.1))

        assert (id0, id1, id2, id3) == (0, 1, 2, 3)
        assert fresh_scene.get_material_count() == 4

        info = fresh_scene.get_material_info(3)
        assert info.material_type == MaterialType.DIFFUSE
        assert info.type_index == 1

    def test_fuzz_is_clamped(self, fresh_scene):
        mat_id = fresh_scene.add_reflective_material(albedo=(0.5, 0.5, 0.5), fuzz=3.0)
        assert fresh_scene.get_material_info(mat_id).params["fuzz"] == 1.0

    def test_invalid_material_values_raise(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_diffuse_material(albedo=(1.2, 0.0, 0.0))
        with pytest.raises(ValueError):
            fresh_scene.add_dielectric_material(ior=0.0)
        assert fresh_scene.get_material_count() == 0

    def test_unknown_material_info_is_none(self, fresh_scene):
        assert fresh_scene.get_material_info(0) is None

    def test_gpu_type_dispatch(self, fresh_scene):
        """Test material type and index lookup from inside a kernel."""
        from pathtracer.scene.manager import (
            MaterialType,
            get_material_type,
            get_material_type_index,
        )

        fresh_scene.add_diffuse_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_dielectric_material(ior=1.5)
        fresh_scene.add_dielectric_material(ior=1.33)

        types = ti.field(dtype=ti.i32, shape=4)
        indices = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            for i in range(4):
                types[i] = get_material_type(i)
                indices[i] = get_material_type_index(i)

        test_kernel()
        assert types[0] == int(MaterialType.DIFFUSE)
        assert types[2] == int(MaterialType.DIELECTRIC)
        assert indices[2] == 1
        # Out of range IDs report -1
        assert types[3] == -1
        assert indices[3] == -1


class TestPrimitives:
    """Tests for adding primitives through the manager."""

    def test_add_sphere_and_plane(self, fresh_scene):
        mat = fresh_scene.add_diffuse_material(albedo=(0.5, 0.5, 0.5))
        assert fresh_scene.add_plane((0.0, 1.0, 0.0), 0.5, mat) == 0
        assert fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat) == 1
        assert fresh_scene.get_primitive_count() == 2
        assert fresh_scene.get_sphere_count() == 1
        assert fresh_scene.get_plane_count() == 1

    def test_negative_radius_allowed(self, fresh_scene):
        glass = fresh_scene.add_dielectric_material(ior=1.5)
        fresh_scene.add_sphere((0.0, 0.0, -1.0), -0.45, glass)
        assert fresh_scene.primitives[0].shape.radius == -0.45

    def test_zero_radius_raises(self, fresh_scene):
        mat = fresh_scene.add_diffuse_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="non-zero"):
            fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.0, mat)
        assert fresh_scene.get_primitive_count() == 0

    def test_unknown_material_id_raises(self, fresh_scene):
        with pytest.raises(ValueError, match="Unknown material_id"):
            fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, 0)

    def test_degenerate_plane_raises(self, fresh_scene):
        from pathtracer.core.ray import DegenerateGeometryError

        mat = fresh_scene.add_diffuse_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(DegenerateGeometryError):
            fresh_scene.add_plane((0.0, 0.0, 0.0), 0.5, mat)
        assert fresh_scene.primitives == []

    def test_clear(self, fresh_scene):
        mat = fresh_scene.add_diffuse_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat)
        fresh_scene.clear()
        assert fresh_scene.get_primitive_count() == 0
        assert fresh_scene.get_material_count() == 0


class TestFromObjects:
    """Tests for building scenes from description pairs."""

    def test_shared_description_shares_material(self):
        from pathtracer.scene.manager import (
            DielectricInfo,
            DiffuseInfo,
            SceneManager,
            SphereInfo,
        )

        glass = DielectricInfo(ior=1.5)
        scene = SceneManager.from_objects(
            [
                (SphereInfo(center=(0.0, -100.5, -1.0), radius=100.0), DiffuseInfo((0.8, 0.8, 0.0))),
                (SphereInfo(center=(-1.0, 0.0, -1.0), radius=0.5), glass),
                (SphereInfo(center=(-1.0, 0.0, -1.0), radius=-0.4), glass),
            ]
        )

        assert scene.get_primitive_count() == 3
        assert scene.get_material_count() == 2
        assert scene.primitives[1].material_id == scene.primitives[2].material_id

    def test_equal_descriptions_do_not_share(self):
        """Test only the identical object is shared, not an equal copy."""
        from pathtracer.scene.manager import DiffuseInfo, SceneManager, SphereInfo

        scene = SceneManager.from_objects(
            [
                (SphereInfo((0.0, 0.0, -1.0), 0.5), DiffuseInfo((0.5, 0.5, 0.5))),
                (SphereInfo((1.0, 0.0, -1.0), 0.5), DiffuseInfo((0.5, 0.5, 0.5))),
            ]
        )
        assert scene.get_material_count() == 2

    def test_unknown_description_raises(self, fresh_scene):
        from pathtracer.scene.manager import DiffuseInfo

        with pytest.raises(TypeError):
            fresh_scene.add_object("cube", DiffuseInfo((0.5, 0.5, 0.5)))
        with pytest.raises(TypeError):
            fresh_scene.add_material({"albedo": (0.5, 0.5, 0.5)})


class TestLocking:
    """Tests for the render lock."""

    def test_locked_scene_rejects_mutation(self, fresh_scene):
        from pathtracer.scene.manager import SceneLockedError

        mat = fresh_scene.add_diffuse_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.lock()
        assert fresh_scene.locked

        with pytest.raises(SceneLockedError):
            fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat)
        with pytest.raises(SceneLockedError):
            fresh_scene.add_dielectric_material()
        with pytest.raises(SceneLockedError):
            fresh_scene.clear()

        fresh_scene.unlock()
        fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat)
        assert fresh_scene.get_primitive_count() == 1

    def test_lock_is_shared_between_managers(self, fresh_scene):
        """Test a second manager cannot wipe a locked scene."""
        from pathtracer.scene.manager import SceneLockedError, SceneManager

        mat = fresh_scene.add_diffuse_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, mat)
        fresh_scene.lock()

        with pytest.raises(SceneLockedError):
            SceneManager()
        assert fresh_scene.get_primitive_count() == 1

        fresh_scene.unlock()
        other = SceneManager()
        assert not other.locked
        assert other.get_primitive_count() == 0

    def test_locked_error_is_runtime_error(self):
        from pathtracer.scene.manager import SceneLockedError

        assert issubclass(SceneLockedError, RuntimeError)


class TestSerialization:
    """Tests for scene serialization."""

    def test_to_config(self, fresh_scene):
        ground = fresh_scene.add_diffuse_material(albedo=(0.8, 0.8, 0.0))
        metal = fresh_scene.add_reflective_material(albedo=(0.8, 0.6, 0.2), fuzz=0.1)
        fresh_scene.add_plane((0.0, 1.0, 0.0), 0.5, ground)
        fresh_scene.add_sphere((1.0, 0.0, -1.0), 0.5, metal)

        config = fresh_scene.to_config()
        assert config.materials[0] == {"type": "diffuse", "albedo": [0.8, 0.8, 0.0]}
        assert config.materials[1]["type"] == "reflective"
        assert config.primitives[0]["type"] == "plane"
        assert config.primitives[1] == {
            "type": "sphere",
            "center": [1.0, 0.0, -1.0],
            "radius": 0.5,
            "material_id": 1,
        }

    def test_dict_round_trip(self, fresh_scene):
        from pathtracer.scene.manager import DielectricInfo, SphereInfo

        glass = DielectricInfo(ior=1.5)
        fresh_scene.add_object(SphereInfo((0.0, 0.0, -1.0), 0.5), glass)
        fresh_scene.add_object(SphereInfo((0.0, 0.0, -1.0), -0.45), glass)
        data = fresh_scene.to_dict()

        fresh_scene.from_dict(data)
        assert fresh_scene.get_material_count() == 1
        assert fresh_scene.get_primitive_count() == 2
        assert fresh_scene.to_dict() == data

    @pytest.mark.parametrize(
        "data, message",
        [
            ({"materials": [{"type": "emissive"}]}, "Unknown material type"),
            (
                {"materials": [{"type": "diffuse"}], "primitives": [{"type": "cube"}]},
                "Unknown primitive type",
            ),
        ],
    )
    def test_unknown_types_raise(self, fresh_scene, data, message):
        with pytest.raises(ValueError, match=message):
            fresh_scene.from_dict(data)

    def test_capacity(self):
        from pathtracer.scene.manager import MAX_MATERIALS, SceneManager
        from pathtracer.scene.intersection import MAX_PRIMITIVES

        assert SceneManager.get_max_primitives() == MAX_PRIMITIVES
        assert SceneManager.get_max_materials() == MAX_MATERIALS


class TestPackageExports:
    """Tests that every public name is defined and importable."""

    @pytest.mark.parametrize(
        "package",
        ["pathtracer.camera", "pathtracer.core", "pathtracer.materials", "pathtracer.scene"],
    )
    def test_all_names_resolve(self, package):
        import importlib

        module = importlib.import_module(package)
        missing = [name for name in module.__all__ if not hasattr(module, name)]
        assert missing == []

    def test_material_modules_export_registry_functions_only(self):
        from pathtracer import materials

        assert not any(name.endswith("Material") for name in materials.__all__)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
