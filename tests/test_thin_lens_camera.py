"""Unit tests for the thin-lens camera.

Tests cover:
- Orthonormal basis and viewport geometry
- Ray generation at image corners and center
- Aperture 0 keeps every ray origin at lookfrom
- Defocus offsets stay on the lens disk
- Parameter validation
"""

import math

import numpy as np
import pytest
import taichi as ti


def _make_camera(**overrides):
    from boxtracer.camera.thin_lens import ThinLensCamera

    params = {
        "lookfrom": (0.0, 0.0, 0.0),
        "lookat": (0.0, 0.0, -1.0),
        "vup": (0.0, 1.0, 0.0),
        "vfov": 90.0,
        "aspect_ratio": 1.0,
    }
    params.update(overrides)
    return ThinLensCamera(**params)


class TestCameraSetup:
    """Tests for setup_camera."""

    def test_basis_is_orthonormal(self):
        """Test that u, v, w form an orthonormal basis."""
        from boxtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_make_camera(lookfrom=(278.0, 278.0, -800.0), lookat=(278.0, 278.0, 0.0)))
        info = get_camera_info()
        u, v, w = (np.array(info[key]) for key in ("u", "v", "w"))
        for a in (u, v, w):
            assert abs(np.linalg.norm(a) - 1.0) < 1e-5
        assert abs(u.dot(v)) < 1e-5
        assert abs(u.dot(w)) < 1e-5
        assert abs(v.dot(w)) < 1e-5
        # w points from lookat back to lookfrom
        assert abs(w[2] + 1.0) < 1e-5

    def test_viewport_size_from_vfov(self):
        """Test that the viewport height is 2 tan(vfov / 2) * focus_dist."""
        from boxtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_make_camera(vfov=60.0, aspect_ratio=2.0, focus_dist=3.0))
        info = get_camera_info()
        height = np.linalg.norm(info["vertical"])
        width = np.linalg.norm(info["horizontal"])
        expected = 2.0 * math.tan(math.radians(30.0)) * 3.0
        assert abs(height - expected) < 1e-4
        assert abs(width - 2.0 * expected) < 1e-4

    def test_lens_radius(self):
        """Test that the lens radius is half the aperture."""
        from boxtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_make_camera(aperture=0.5))
        assert abs(get_camera_info()["lens_radius"] - 0.25) < 1e-6

    @pytest.mark.parametrize(
        "overrides",
        [
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"aspect_ratio": 0.0},
            {"focus_dist": -1.0},
            {"aperture": -0.1},
            {"lookat": (0.0, 0.0, 0.0)},
            {"vup": (0.0, 0.0, 1.0)},
        ],
    )
    def test_invalid_parameters(self, overrides):
        """Test that invalid cameras are rejected with ValueError."""
        from boxtracer.camera.thin_lens import setup_camera

        with pytest.raises(ValueError):
            setup_camera(_make_camera(**overrides))


class TestRayGeneration:
    """Tests for get_ray and get_ray_jittered."""

    def _rays(self, coords):
        from boxtracer.camera.thin_lens import get_ray
        from boxtracer.core.rng import pixel_stream

        n = len(coords)
        s_field = ti.field(dtype=ti.f32, shape=n)
        t_field = ti.field(dtype=ti.f32, shape=n)
        origins = ti.Vector.field(3, dtype=ti.f32, shape=n)
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)
        for i, (s, t) in enumerate(coords):
            s_field[i] = s
            t_field[i] = t

        @ti.kernel
        def test_kernel():
            for i in range(n):
                ray = get_ray(s_field[i], t_field[i], pixel_stream(i, 0))
                origins[i] = ray.origin
                directions[i] = ray.direction

        test_kernel()
        return origins.to_numpy(), directions.to_numpy()

    def test_center_ray_points_at_lookat(self):
        """Test that (0.5, 0.5) looks straight ahead."""
        from boxtracer.camera.thin_lens import setup_camera

        setup_camera(_make_camera())
        _, directions = self._rays([(0.5, 0.5)])
        d = directions[0]
        assert abs(d[0]) < 1e-6
        assert abs(d[1]) < 1e-6
        assert d[2] < 0.0

    def test_corner_rays(self):
        """Test that (0, 0) is lower-left and (1, 1) is upper-right."""
        from boxtracer.camera.thin_lens import setup_camera

        setup_camera(_make_camera())
        _, directions = self._rays([(0.0, 0.0), (1.0, 1.0)])
        # vfov 90 at focus_dist 1: the viewport spans [-1, 1] x [-1, 1] at z = -1
        np.testing.assert_allclose(directions[0], [-1.0, -1.0, -1.0], atol=1e-5)
        np.testing.assert_allclose(directions[1], [1.0, 1.0, -1.0], atol=1e-5)

    def test_aperture_zero_origin_is_lookfrom(self):
        """Test that a pinhole camera never offsets the ray origin."""
        from boxtracer.camera.thin_lens import setup_camera

        setup_camera(_make_camera(lookfrom=(1.0, 2.0, 3.0), lookat=(1.0, 2.0, 0.0)))
        origins, _ = self._rays([(i / 10.0, 1.0 - i / 10.0) for i in range(11)])
        for origin in origins:
            np.testing.assert_allclose(origin, [1.0, 2.0, 3.0], atol=1e-6)

    def test_aperture_zero_leaves_stream_untouched(self):
        """Test that no lens sample is drawn when the aperture is zero."""
        from boxtracer.camera.thin_lens import setup_camera
        from boxtracer.core.rng import get_stream_state

        setup_camera(_make_camera())
        before = get_stream_state(0)
        self._rays([(0.5, 0.5)])
        assert get_stream_state(0) == before

    def test_defocus_offset_on_lens_disk(self):
        """Test that lens offsets lie in the u-v plane within the lens radius."""
        from boxtracer.camera.thin_lens import setup_camera

        setup_camera(_make_camera(aperture=2.0, focus_dist=5.0))
        origins, directions = self._rays([(0.5, 0.5)] * 64)
        offsets = origins
        assert np.all(np.abs(offsets[:, 2]) < 1e-6)
        assert np.all(np.hypot(offsets[:, 0], offsets[:, 1]) < 1.0 + 1e-6)
        assert np.any(np.abs(offsets[:, 0]) > 1e-3)
        # Every ray passes through the in-focus point (0, 0, -5)
        targets = origins + directions
        np.testing.assert_allclose(targets, np.tile([0.0, 0.0, -5.0], (64, 1)), atol=1e-4)

    def test_jittered_rays_stay_in_pixel_footprint(self):
        """Test s = (i + r) / (W - 1) mapping of jittered rays."""
        from boxtracer.camera.thin_lens import get_ray_jittered, setup_camera
        from boxtracer.core.rng import pixel_stream

        setup_camera(_make_camera())
        width, height = 5, 5
        directions = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))

        @ti.kernel
        def test_kernel():
            for i, j in ti.ndrange(width, height):
                directions[i, j] = get_ray_jittered(i, j, width, height, pixel_stream(i, j)).direction

        test_kernel()
        d = directions.to_numpy()
        # The viewport spans x in [-1, 1]; s = x_offset / 2
        for i in range(width):
            for j in range(height):
                s = (d[i, j, 0] + 1.0) / 2.0
                t = (d[i, j, 1] + 1.0) / 2.0
                assert i / (width - 1) - 1e-5 <= s < (i + 1) / (width - 1) + 1e-5
                assert j / (height - 1) - 1e-5 <= t < (j + 1) / (height - 1) + 1e-5
