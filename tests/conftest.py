"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so the Taichi fields are created after ti.init()
    from pathtracer.core.integrator import reset_render_target
    from pathtracer.core.scene_lock import unlock_scene
    from pathtracer.materials.dielectric import (
        clear_dielectric_materials,
        set_schlick_reflectance,
    )
    from pathtracer.materials.diffuse import clear_diffuse_materials
    from pathtracer.materials.reflective import clear_reflective_materials
    from pathtracer.scene.intersection import clear_scene
    from pathtracer.scene.manager import _clear_material_tracking

    def _clear_all():
        unlock_scene()
        clear_scene()
        clear_diffuse_materials()
        clear_reflective_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        set_schlick_reflectance(False)
        reset_render_target()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def front_camera():
    """Pinhole camera at the origin looking down -z with a 2:1 aspect ratio."""
    from pathtracer.camera.pinhole import PinholeCamera

    return PinholeCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=2.0,
    )
