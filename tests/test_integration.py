"""Integration tests for the end-to-end rendering pipeline.

This module tests the complete pipeline from scene creation through the final
PPM text. Tests are designed to be fast (low resolution, few samples) while
still exercising every stage.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import io
import sys

import numpy as np


def _render_ppm(width: int, height: int, samples: int, max_depth: int) -> str:
    from boxtracer.core.progressive import ProgressiveRenderer
    from boxtracer.preview.export import write_ppm

    renderer = ProgressiveRenderer(width, height, max_depth=max_depth)
    renderer.render(samples)
    stream = io.StringIO()
    write_ppm(renderer.get_image_uint8(), stream)
    return stream.getvalue()


class TestTinyImages:
    """Exact-output checks on 2x2 images."""

    def test_empty_scene_is_black(self, pinhole_camera):
        """Test that an empty scene gives an all-black PPM."""
        assert _render_ppm(2, 2, 1, 10) == "P3\n2 2\n255\n" + "0 0 0\n" * 4

    def test_full_view_emitter_is_white(self, pinhole_camera):
        """Test that a unit emitter filling the view gives 255 for any sample count."""
        from boxtracer.scene.manager import SceneManager

        scene = SceneManager()
        light = scene.add_diffuse_light_material((1.0, 1.0, 1.0))
        scene.add_xy_rect(-100.0, 100.0, -100.0, 100.0, -1.0, light)

        for samples in (1, 7):
            assert _render_ppm(2, 2, samples, 1) == "P3\n2 2\n255\n" + "255 255 255\n" * 4


class TestCornellBoxIntegration:
    """Integration tests for Cornell box rendering."""

    def test_cornell_box_end_to_end(self) -> None:
        """Test that the Cornell box renders a plausible image."""
        from boxtracer.camera.thin_lens import setup_camera
        from boxtracer.core.progressive import ProgressiveRenderer
        from boxtracer.scene.cornell_box import create_cornell_box_scene

        _, camera, _ = create_cornell_box_scene()
        setup_camera(camera)

        renderer = ProgressiveRenderer(16, 16, max_depth=5)
        renderer.render(num_samples=8, batch_size=4)
        image = renderer.get_image_uint8()

        assert image.shape == (16, 16, 3)
        assert image.max() > 0
        # The light near the top center is the brightest spot and saturates
        assert image[:4, 6:10].max() == 255
        # Seen from the open front, the green wall (x = 555) is on the left
        # and the red wall (x = 0) on the right
        left = image[6:10, 0].astype(int)
        right = image[6:10, -1].astype(int)
        assert (left[:, 1] - left[:, 0]).mean() > 0
        assert (right[:, 0] - right[:, 1]).mean() > 0


class TestCommandLineDriver:
    """Tests for the example command-line driver."""

    def test_driver_writes_ppm_and_paths(self, tmp_path, monkeypatch) -> None:
        """Test the driver end to end without re-initializing Taichi."""
        import examples.render_cornell_box as driver

        monkeypatch.setattr(driver.ti, "init", lambda **kwargs: None)
        image_path = tmp_path / "box.ppm"
        paths_path = tmp_path / "paths.obj"

        status = driver.main(
            [
                "--width",
                "8",
                "--height",
                "6",
                "--samples",
                "2",
                "--max-depth",
                "3",
                "--output",
                str(image_path),
                "--record-paths",
                "3",
                "--paths-output",
                str(paths_path),
                "--quiet",
            ]
        )

        assert status == 0
        lines = image_path.read_text().splitlines()
        assert lines[:3] == ["P3", "8 6", "255"]
        assert len(lines) == 3 + 8 * 6
        assert "# Path 2 (depth: " in paths_path.read_text()
        assert (tmp_path / "paths.mtl").exists()

    def test_driver_reports_bad_settings(self, monkeypatch, capsys) -> None:
        """Test that invalid settings give exit status 1."""
        import examples.render_cornell_box as driver

        monkeypatch.setattr(driver.ti, "init", lambda **kwargs: None)
        assert driver.main(["--samples", "0", "--quiet"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_driver_rejects_too_many_paths_before_rendering(self, tmp_path, monkeypatch, capsys) -> None:
        """Test that an oversized --record-paths fails before any image is written."""
        import examples.render_cornell_box as driver

        monkeypatch.setattr(driver.ti, "init", lambda **kwargs: None)
        image_path = tmp_path / "box.ppm"
        args = ["--width", "2", "--height", "2", "--samples", "1", "--quiet"]
        status = driver.main(args + ["--output", str(image_path), "--record-paths", "65"])

        assert status == 1
        assert "record_paths must be in [0, 64]" in capsys.readouterr().err
        assert not image_path.exists()

    def test_driver_stdout_ppm(self, monkeypatch) -> None:
        """Test that '-' writes the PPM to stdout."""
        import examples.render_cornell_box as driver

        monkeypatch.setattr(driver.ti, "init", lambda **kwargs: None)
        out = io.StringIO()
        monkeypatch.setattr(sys, "stdout", out)
        assert driver.main(["--width", "2", "--height", "2", "--samples", "1", "--max-depth", "2", "--quiet"]) == 0
        lines = out.getvalue().splitlines()
        assert lines[:3] == ["P3", "2 2", "255"]
        values = np.array([list(map(int, line.split())) for line in lines[3:]])
        assert values.shape == (4, 3)
        assert values.min() >= 0 and values.max() <= 255
