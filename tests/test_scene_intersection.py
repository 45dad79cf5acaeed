"""Unit tests for scene-level nearest-hit intersection.

Tests cover:
- Adding primitives and capacity bookkeeping
- Nearest-hit selection across spheres and planes
- Insertion order independence of the result
- Empty scenes
"""

import pytest
import taichi as ti


def _intersect(origin, direction, t_min=0.001, t_max=1e10):
    """Run intersect_scene in a kernel and return (hit, t, material_id, normal)."""
    from pathtracer.core.ray import make_ray, vec3
    from pathtracer.scene.intersection import intersect_scene

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, lo: ti.f32, hi: ti.f32):
        # Serial wrapper around the primitive loop
        for _ in range(1):
            record = intersect_scene(make_ray(o, d), lo, hi)
            hit[None] = record.hit
            t_val[None] = record.t
            material_id[None] = record.material_id
            normal[None] = record.normal

    test_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    n = normal[None]
    return hit[None], t_val[None], material_id[None], (n[0], n[1], n[2])


class TestPrimitiveTable:
    """Tests for adding primitives."""

    def test_add_sphere_returns_index(self):
        from pathtracer.scene.intersection import add_sphere, get_primitive_count

        assert add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0) == 0
        assert add_sphere((1.0, 0.0, -1.0), 0.5, material_id=1) == 1
        assert get_primitive_count() == 2

    def test_add_plane_normalizes(self):
        from pathtracer.scene.intersection import (
            add_plane,
            primitive_scalars,
            primitive_vectors,
        )

        idx = add_plane((0.0, 4.0, 0.0), 2.0, material_id=0)
        n = primitive_vectors[idx]
        assert abs(n[1] - 1.0) < 1e-6
        assert abs(primitive_scalars[idx] - 0.5) < 1e-6

    def test_zero_radius_raises(self):
        from pathtracer.scene.intersection import add_sphere

        with pytest.raises(ValueError, match="non-zero"):
            add_sphere((0.0, 0.0, 0.0), 0.0)

    def test_zero_plane_normal_raises(self):
        from pathtracer.core.ray import DegenerateGeometryError
        from pathtracer.scene.intersection import add_plane, get_primitive_count

        with pytest.raises(DegenerateGeometryError):
            add_plane((0.0, 0.0, 0.0), 1.0)
        assert get_primitive_count() == 0

    def test_clear_scene(self):
        from pathtracer.scene.intersection import add_sphere, clear_scene, get_primitive_count

        add_sphere((0.0, 0.0, -1.0), 0.5)
        clear_scene()
        assert get_primitive_count() == 0

    def test_capacity_exceeded(self):
        from pathtracer.scene.intersection import MAX_PRIMITIVES, add_sphere, num_primitives

        num_primitives[None] = MAX_PRIMITIVES
        with pytest.raises(RuntimeError, match="Maximum number of primitives"):
            add_sphere((0.0, 0.0, 0.0), 1.0)


class TestNearestHit:
    """Tests for intersect_scene."""

    def test_empty_scene_misses(self):
        hit, _, _, _ = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 0

    def test_single_sphere_material_id(self):
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -1.0), 0.5, material_id=7)
        hit, t, material_id, _ = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 0.5) < 1e-5
        assert material_id == 7

    def test_nearest_of_two_spheres(self):
        """Test the closer sphere wins regardless of insertion order."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -5.0), 0.5, material_id=1)  # far, added first
        add_sphere((0.0, 0.0, -2.0), 0.5, material_id=2)  # near
        hit, t, material_id, _ = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 1.5) < 1e-5
        assert material_id == 2

    @pytest.mark.parametrize(
        "origin, direction",
        [((0.3, 0.1, 0.0), (0.0, 0.0, -1.0)), ((1.5, 0.0, -2.3), (-1.0, 0.0, 0.0))],
        ids=["first_wins", "second_wins"],
    )
    def test_overlapping_spheres_report_minimum_t(self, origin, direction):
        """Test interpenetrating spheres yield the smaller of their own hits."""
        from pathtracer.scene.intersection import add_sphere, clear_scene

        spheres = [((0.0, 0.0, -2.0), 0.5, 1), ((0.2, 0.0, -2.3), 0.5, 2)]

        alone = []
        for center, radius, mat in spheres:
            clear_scene()
            add_sphere(center, radius, material_id=mat)
            hit, t, _, _ = _intersect(origin, direction)
            assert hit == 1
            alone.append((t, mat))
        expected_t, expected_mat = min(alone)

        for ordering in (spheres, spheres[::-1]):
            clear_scene()
            for center, radius, mat in ordering:
                add_sphere(center, radius, material_id=mat)
            hit, t, material_id, _ = _intersect(origin, direction)
            assert hit == 1
            assert abs(t - expected_t) < 1e-5
            assert material_id == expected_mat

    def test_sphere_in_front_of_plane(self):
        from pathtracer.scene.intersection import add_plane, add_sphere

        add_plane((0.0, 0.0, 1.0), 10.0, material_id=3)  # z = -10
        add_sphere((0.0, 0.0, -2.0), 0.5, material_id=4)

        hit, t, material_id, _ = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert material_id == 4
        assert abs(t - 1.5) < 1e-5

        # Beside the sphere the plane is hit
        hit, t, material_id, normal = _intersect((3.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert material_id == 3
        assert abs(t - 10.0) < 1e-4
        assert abs(normal[2] - 1.0) < 1e-6

    def test_t_min_skips_surface_at_origin(self):
        """Test a hit closer than t_min is ignored."""
        from pathtracer.scene.intersection import add_plane

        add_plane((0.0, 1.0, 0.0), 0.0, material_id=0)
        hit, _, _, _ = _intersect((0.0, 0.0, 0.0), (0.0, -1.0, 0.0))
        assert hit == 0

    def test_ray_through_sphere_hits_near_side(self):
        """Test both roots exist but the nearer one is reported."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -3.0), 1.0, material_id=0)
        hit, t, _, normal = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert abs(normal[2] - 1.0) < 1e-5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
