"""Unit tests for plane intersection.

Tests cover:
- Rays hitting the plane from either side
- Parallel and receding rays
- Host-side normalization of the plane description
"""

import pytest
import taichi as ti


def _hit_plane(origin, direction, normal, offset, t_min=0.001, t_max=1000.0):
    """Run hit_plane in a kernel and return (hit, t, point, normal, front_face)."""
    from pathtracer.core.ray import make_ray, vec3
    from pathtracer.geometry.plane import Plane, hit_plane

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.field(dtype=ti.math.vec3, shape=())
    hit_normal = ti.field(dtype=ti.math.vec3, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, n: vec3, k: ti.f32, lo: ti.f32, hi: ti.f32):
        record = hit_plane(make_ray(o, d), Plane(normal=n, offset=k), lo, hi)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        hit_normal[None] = record.normal
        front_face[None] = record.front_face

    test_kernel(vec3(*origin), vec3(*direction), vec3(*normal), offset, t_min, t_max)
    p = point[None]
    n = hit_normal[None]
    return (
        hit[None],
        t_val[None],
        (p[0], p[1], p[2]),
        (n[0], n[1], n[2]),
        front_face[None],
    )


class TestPlaneIntersection:
    """Tests for ray-plane intersection."""

    def test_hit_from_above(self):
        """Test a ray pointing down hits the ground plane y = -0.5."""
        hit, t, point, normal, front_face = _hit_plane(
            (0.0, 1.0, 0.0), (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 0.5
        )
        assert hit == 1
        assert abs(t - 1.5) < 1e-5
        assert abs(point[1] - (-0.5)) < 1e-5
        assert abs(normal[1] - 1.0) < 1e-6
        assert front_face == 1

    def test_hit_from_below_keeps_normal(self):
        """Test the plane normal is never flipped, even from the back side."""
        hit, t, _, normal, front_face = _hit_plane(
            (0.0, -2.0, 0.0), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0), 0.5
        )
        assert hit == 1
        assert abs(t - 1.5) < 1e-5
        assert abs(normal[1] - 1.0) < 1e-6
        assert front_face == 1

    def test_oblique_hit(self):
        """Test t for a diagonal ray with an unnormalized direction."""
        hit, t, point, _, _ = _hit_plane(
            (0.0, 1.0, 0.0), (2.0, -2.0, 0.0), (0.0, 1.0, 0.0), 0.0
        )
        assert hit == 1
        assert abs(t - 0.5) < 1e-5
        assert abs(point[0] - 1.0) < 1e-5
        assert abs(point[1]) < 1e-5

    def test_parallel_ray_misses(self):
        """Test a ray parallel to the plane is a miss, not a NaN hit."""
        hit, _, _, _, _ = _hit_plane((0.0, 1.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), 0.5)
        assert hit == 0

    def test_parallel_ray_in_plane_misses(self):
        """Test a ray lying inside the plane is a miss."""
        hit, _, _, _, _ = _hit_plane((0.0, -0.5, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), 0.5)
        assert hit == 0

    def test_receding_ray_misses(self):
        """Test a ray moving away from the plane is a miss."""
        hit, _, _, _, _ = _hit_plane((0.0, 1.0, 0.0), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0), 0.5)
        assert hit == 0

    def test_outside_interval_misses(self):
        """Test a hit beyond t_max is rejected."""
        hit, _, _, _, _ = _hit_plane(
            (0.0, 1.0, 0.0), (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 0.5, t_max=1.0
        )
        assert hit == 0


class TestNormalizePlane:
    """Tests for host-side plane normalization."""

    def test_normalizes_normal_and_offset(self):
        from pathtracer.geometry.plane import normalize_plane

        normal, offset = normalize_plane((0.0, 2.0, 0.0), 1.0)
        assert normal == (0.0, 1.0, 0.0)
        assert abs(offset - 0.5) < 1e-12

    def test_zero_normal_raises(self):
        from pathtracer.core.ray import DegenerateGeometryError
        from pathtracer.geometry.plane import normalize_plane

        with pytest.raises(DegenerateGeometryError):
            normalize_plane((0.0, 0.0, 0.0), 1.0)

    def test_make_plane(self):
        """Test make_plane convenience function."""
        from pathtracer.geometry.plane import make_plane, vec3

        offset = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            offset[None] = make_plane(vec3(0.0, 1.0, 0.0), 0.25).offset

        test_kernel()
        assert abs(offset[None] - 0.25) < 1e-6


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
