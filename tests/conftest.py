"""Pytest configuration for boxtracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti

TEST_SEED = 42


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material, render target and recorder state around each test.

    This ensures tests are isolated from each other. The random streams are
    reseeded so every test starts from the same generator state.
    """
    # Import here to avoid circular imports and ensure Taichi is initialized
    from boxtracer.core import integrator
    from boxtracer.core.recorder import clear_recorded_paths
    from boxtracer.core.rng import seed_streams
    from boxtracer.materials.diffuse_light import clear_diffuse_light_materials
    from boxtracer.materials.lambertian import clear_lambertian_materials
    from boxtracer.scene.intersection import clear_scene
    from boxtracer.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_diffuse_light_materials()
        _clear_material_tracking()
        integrator.clear_render_target()
        integrator._render_target_initialized[None] = 0
        clear_recorded_paths()
        seed_streams(TEST_SEED)

    # Clear everything before test
    _clear_all()

    yield

    # Clear everything after test
    _clear_all()


@pytest.fixture
def pinhole_camera():
    """Set up an aperture-0 camera at the origin looking down -z (vfov 90)."""
    from boxtracer.camera.thin_lens import ThinLensCamera, setup_camera

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=1.0,
    )
    setup_camera(camera)
    return camera
