"""Unit tests for the path recorder and OBJ path export.

Tests cover:
- PathRecorder validation and empty slots
- OBJ/MTL layout: materials, vertex and face counts
- Scene rectangles written as quads
- Failure reporting when the file cannot be written
"""

import pytest


def _path(*positions, final_color=(1.0, 1.0, 1.0)):
    from boxtracer.core.recorder import LightPath, PathVertex

    vertices = [
        PathVertex(position=p, normal=(0.0, 1.0, 0.0), contribution=(1.0, 1.0, 1.0), is_light_source=False)
        for p in positions
    ]
    return LightPath(vertices=vertices, final_color=final_color, depth=len(vertices))


def _count(lines, prefix):
    return sum(1 for line in lines if line.startswith(prefix))


class TestPathRecorder:
    """Tests for PathRecorder."""

    @pytest.mark.parametrize("kwargs", [{"max_paths": 0}, {"max_paths": 65}, {"max_vertices": 0}, {"max_vertices": 65}])
    def test_invalid_capacity(self, kwargs):
        """Test that out-of-range capacities raise ValueError."""
        from boxtracer.core.recorder import PathRecorder

        with pytest.raises(ValueError):
            PathRecorder(**kwargs)

    def test_empty_recorder(self):
        """Test that a fresh recorder has no paths."""
        from boxtracer.core.recorder import PathRecorder

        recorder = PathRecorder(max_paths=3)
        assert recorder.get_paths() == []
        assert recorder.get_path(0) is None
        assert recorder.get_path(3) is None
        assert repr(recorder) == "PathRecorder(max_paths=3, recorded=0)"


class TestExportPathsToObj:
    """Tests for export_paths_to_obj."""

    def test_writes_obj_and_mtl(self, tmp_path):
        """Test that both files are written and linked."""
        from boxtracer.preview.paths import export_paths_to_obj

        obj_path = tmp_path / "paths.obj"
        assert export_paths_to_obj(str(obj_path), [], include_scene=False) is True

        mtl_text = (tmp_path / "paths.mtl").read_text()
        assert "newmtl GreenPath" in mtl_text
        assert "newmtl BoxWhite" in mtl_text

        lines = obj_path.read_text().splitlines()
        assert "mtllib paths.mtl" in lines
        assert "usemtl GreenPath" in lines
        assert "usemtl BoxWhite" not in lines

    def test_geometry_counts(self, tmp_path):
        """Test vertex and face counts for one two-vertex path."""
        from boxtracer.preview.paths import (
            CYLINDER_SIDES,
            SPHERE_SLICES,
            SPHERE_STACKS,
            export_paths_to_obj,
        )

        obj_path = tmp_path / "paths.obj"
        export_paths_to_obj(str(obj_path), [_path((0.0, 0.0, 0.0), (0.0, 10.0, 0.0))], include_scene=False)
        lines = obj_path.read_text().splitlines()

        cylinder_vertices = 2 * CYLINDER_SIDES
        sphere_vertices = (SPHERE_STACKS + 1) * SPHERE_SLICES
        assert _count(lines, "v ") == cylinder_vertices + 2 * sphere_vertices
        assert _count(lines, "f ") == 2 * CYLINDER_SIDES + 2 * (2 * SPHERE_STACKS * SPHERE_SLICES)
        assert "# Path 0 (depth: 2)" in lines

    def test_face_indices_in_range(self, tmp_path):
        """Test that every face references an existing vertex."""
        from boxtracer.preview.paths import export_paths_to_obj

        obj_path = tmp_path / "paths.obj"
        paths = [
            _path((0.0, 0.0, 0.0), (1.0, 2.0, 3.0), (5.0, 5.0, 5.0)),
            _path((10.0, 0.0, 0.0), (10.0, 0.0, 0.0)),
        ]
        export_paths_to_obj(str(obj_path), paths, include_scene=False)
        lines = obj_path.read_text().splitlines()

        num_vertices = _count(lines, "v ")
        for line in lines:
            if line.startswith("f "):
                for index in line.split()[1:]:
                    assert 1 <= int(index) <= num_vertices

    def test_degenerate_segment_skipped(self, tmp_path):
        """Test that zero-length segments produce no cylinder."""
        from boxtracer.preview.paths import SPHERE_SLICES, SPHERE_STACKS, export_paths_to_obj

        obj_path = tmp_path / "paths.obj"
        export_paths_to_obj(str(obj_path), [_path((1.0, 1.0, 1.0), (1.0, 1.0, 1.0))], include_scene=False)
        lines = obj_path.read_text().splitlines()
        assert _count(lines, "v ") == 2 * (SPHERE_STACKS + 1) * SPHERE_SLICES

    def test_scene_rectangles_included(self, tmp_path):
        """Test that each scene rectangle becomes one quad."""
        from boxtracer.preview.paths import export_paths_to_obj
        from boxtracer.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.73, 0.73, 0.73))
        scene.add_xz_rect(0, 555, 0, 555, 0, mat)
        scene.add_yz_rect(0, 555, 0, 555, 555, mat, flip_normal=True)

        obj_path = tmp_path / "scene.obj"
        export_paths_to_obj(str(obj_path), [])
        lines = obj_path.read_text().splitlines()

        assert "usemtl BoxWhite" in lines
        quads = [line for line in lines if line.startswith("f ") and len(line.split()) == 5]
        assert len(quads) == 2
        assert _count(lines, "v ") == 8
        assert "v 0 0 0" in lines
        assert "v 555 555 555" in lines

    def test_unwritable_path_returns_false(self, tmp_path):
        """Test that an unopenable file is reported, not raised."""
        from boxtracer.preview.paths import export_paths_to_obj

        assert export_paths_to_obj(str(tmp_path / "missing" / "paths.obj"), []) is False
