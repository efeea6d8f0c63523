"""Unit tests for PPM and PNG export.

Tests cover:
- Exact P3 text layout
- Image shape validation
- File writers for PPM and PNG
"""

import io

import numpy as np
import pytest
from PIL import Image


class TestPpm:
    """Tests for the plain-text PPM writer."""

    def test_format_ppm_layout(self):
        """Test header and one pixel per line, top row first."""
        from boxtracer.preview.export import format_ppm

        image = np.array(
            [
                [[255, 0, 0], [0, 255, 0]],
                [[0, 0, 255], [1, 2, 3]],
            ],
            dtype=np.uint8,
        )
        assert format_ppm(image) == "P3\n2 2\n255\n255 0 0\n0 255 0\n0 0 255\n1 2 3\n"

    def test_width_before_height(self):
        """Test that the size line is '<width> <height>'."""
        from boxtracer.preview.export import format_ppm

        text = format_ppm(np.zeros((2, 3, 3), dtype=np.uint8))
        lines = text.splitlines()
        assert lines[1] == "3 2"
        assert len(lines) == 3 + 6

    def test_write_ppm_to_stream(self):
        """Test writing to an open text stream."""
        from boxtracer.preview.export import write_ppm

        stream = io.StringIO()
        write_ppm(np.full((1, 1, 3), 7, dtype=np.uint8), stream)
        assert stream.getvalue() == "P3\n1 1\n255\n7 7 7\n"

    def test_bad_shape_rejected(self):
        """Test that arrays that are not (H, W, 3) raise ValueError."""
        from boxtracer.preview.export import format_ppm

        with pytest.raises(ValueError, match="shape"):
            format_ppm(np.zeros((2, 2), dtype=np.uint8))


class _FakeRenderer:
    """Stand-in exposing get_image_uint8 like ProgressiveRenderer."""

    def __init__(self, image):
        self.image = image

    def get_image_uint8(self):
        return self.image


class TestFileWriters:
    """Tests for save_ppm and save_png."""

    def test_save_ppm(self, tmp_path):
        """Test writing a PPM file."""
        from boxtracer.preview.export import save_ppm

        path = tmp_path / "out.ppm"
        save_ppm(_FakeRenderer(np.zeros((1, 2, 3), dtype=np.uint8)), str(path))
        assert path.read_text() == "P3\n2 1\n255\n0 0 0\n0 0 0\n"

    def test_save_png(self, tmp_path):
        """Test writing a PNG file with the same pixels."""
        from boxtracer.preview.export import save_png

        image = np.array([[[10, 20, 30], [40, 50, 60]]], dtype=np.uint8)
        path = tmp_path / "out.png"
        save_png(_FakeRenderer(image), str(path))
        with Image.open(path) as loaded:
            assert loaded.size == (2, 1)
            np.testing.assert_array_equal(np.asarray(loaded.convert("RGB")), image)

    def test_unwritable_path_raises(self, tmp_path):
        """Test that OSError propagates from the writers."""
        from boxtracer.preview.export import save_ppm

        with pytest.raises(OSError):
            save_ppm(_FakeRenderer(np.zeros((1, 1, 3), dtype=np.uint8)), str(tmp_path / "missing" / "x.ppm"))
