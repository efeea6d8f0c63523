"""Unit tests for axis-aligned rectangle intersection.

Tests cover:
- Hits on each orientation with the hit point on the plane
- Closed bounds on t and on both free ranges
- Rays parallel to the plane
- Fixed (never flipped) normals
- Orientation helpers
"""

import pytest
import taichi as ti


def _run_hit(axis, k, a, b, normal, origin, direction, t_min=0.001, t_max=1e10):
    """Intersect one ray with one rectangle and return (hit, t, point, normal)."""
    from boxtracer.geometry.aarect import hit_rect, make_rect, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    hit_normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        rect = make_rect(axis, k, a[0], a[1], b[0], b[1], vec3(normal[0], normal[1], normal[2]))
        rec = hit_rect(
            vec3(origin[0], origin[1], origin[2]),
            vec3(direction[0], direction[1], direction[2]),
            rect,
            t_min,
            t_max,
        )
        hit[None] = rec.hit
        t[None] = rec.t
        point[None] = rec.point
        hit_normal[None] = rec.normal

    test_kernel()
    return hit[None], t[None], point[None], hit_normal[None]


class TestHitRect:
    """Tests for hit_rect."""

    def test_xy_rect_hit(self):
        """Test a straight hit on an XY rectangle."""
        hit, t, point, _ = _run_hit(
            2, -1.0, (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), (0.0, 0.0, -1.0)
        )
        assert hit == 1
        assert abs(t - 1.0) < 1e-6
        assert abs(point[2] + 1.0) < 1e-6

    def test_xz_rect_hit(self):
        """Test a hit on an XZ rectangle from above."""
        hit, t, point, _ = _run_hit(
            1, 0.0, (0.0, 10.0), (0.0, 10.0), (0.0, 1.0, 0.0), (5.0, 4.0, 5.0), (0.0, -2.0, 0.0)
        )
        assert hit == 1
        assert abs(t - 2.0) < 1e-6
        assert abs(point[1]) < 1e-6

    def test_yz_rect_hit(self):
        """Test a hit on a YZ rectangle."""
        hit, t, point, _ = _run_hit(
            0, 555.0, (0.0, 555.0), (0.0, 555.0), (-1.0, 0.0, 0.0), (0.0, 100.0, 200.0), (1.0, 0.0, 0.0)
        )
        assert hit == 1
        assert abs(t - 555.0) < 1e-3
        assert abs(point[0] - 555.0) < 1e-3
        assert abs(point[1] - 100.0) < 1e-3
        assert abs(point[2] - 200.0) < 1e-3

    def test_parallel_ray_misses(self):
        """Test that a zero direction component on the fixed axis is a miss."""
        hit, _, _, _ = _run_hit(
            2, 0.0, (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), (1.0, 0.0, 0.0)
        )
        assert hit == 0

    def test_outside_range_misses(self):
        """Test that a hit point beyond the free ranges is a miss."""
        hit, _, _, _ = _run_hit(
            2, -1.0, (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.0, 1.0), (5.0, 0.0, 0.0), (0.0, 0.0, -1.0)
        )
        assert hit == 0

    def test_behind_origin_misses(self):
        """Test that a plane behind the ray origin is a miss."""
        hit, _, _, _ = _run_hit(
            2, 1.0, (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), (0.0, 0.0, -1.0)
        )
        assert hit == 0

    def test_t_max_is_inclusive(self):
        """Test that t exactly equal to t_max counts as a hit."""
        hit, t, _, _ = _run_hit(
            2, -2.0, (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 0.001, 2.0
        )
        assert hit == 1
        assert t == 2.0

    def test_t_beyond_t_max_misses(self):
        """Test that hits farther than t_max are rejected."""
        hit, _, _, _ = _run_hit(
            2, -3.0, (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 0.001, 2.0
        )
        assert hit == 0

    def test_t_below_t_min_misses(self):
        """Test that hits closer than t_min are rejected."""
        hit, _, _, _ = _run_hit(
            2, -0.0005, (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), (0.0, 0.0, -1.0)
        )
        assert hit == 0

    def test_edge_is_inclusive(self):
        """Test that a hit exactly on the rectangle edge counts."""
        hit, _, _, _ = _run_hit(
            2, -1.0, (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.0, 1.0), (1.0, 1.0, 0.0), (0.0, 0.0, -1.0)
        )
        assert hit == 1

    def test_normal_is_not_flipped_for_back_face(self):
        """Test that hitting the back side reports the rectangle's own normal."""
        hit, _, _, normal = _run_hit(
            2, -1.0, (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.0, 1.0), (0.0, 0.0, -5.0), (0.0, 0.0, 1.0)
        )
        assert hit == 1
        assert normal[2] == 1.0

    def test_unnormalized_direction(self):
        """Test that t is expressed in multiples of the given direction."""
        hit, t, _, _ = _run_hit(
            2, -4.0, (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), (0.0, 0.0, -2.0)
        )
        assert hit == 1
        assert abs(t - 2.0) < 1e-6


class TestOrientationHelpers:
    """Tests for Python-side orientation helpers."""

    def test_orientation_axis(self):
        """Test fixed axes of each orientation."""
        from boxtracer.geometry.aarect import RectOrientation, orientation_axis

        assert orientation_axis(RectOrientation.XY) == 2
        assert orientation_axis(RectOrientation.XZ) == 1
        assert orientation_axis(RectOrientation.YZ) == 0

    def test_unknown_orientation(self):
        """Test that unknown orientations raise ValueError."""
        from boxtracer.geometry.aarect import orientation_axis

        with pytest.raises(ValueError, match="Unknown rectangle orientation"):
            orientation_axis(7)

    def test_axis_normal(self):
        """Test normals along and against an axis."""
        from boxtracer.geometry.aarect import axis_normal

        assert axis_normal(1) == (0.0, 1.0, 0.0)
        assert axis_normal(0, flip_normal=True) == (-1.0, 0.0, 0.0)
