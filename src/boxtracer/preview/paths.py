"""OBJ/MTL export of recorded light paths.

Writes recorded light paths as renderable geometry for external viewers such
as Blender or Unity: every path segment becomes a thin cylinder and every
path vertex a small UV sphere, both using the "GreenPath" material. The scene
rectangles can be included as semi-transparent quads ("BoxWhite") so the
paths can be seen inside the room.

A sibling .mtl file with the two materials is written next to the .obj file
and referenced through "mtllib".

Example:
    >>> from boxtracer.core.recorder import PathRecorder
    >>> from boxtracer.core.integrator import record_paths
    >>> from boxtracer.preview.paths import export_paths_to_obj
    >>> recorder = PathRecorder(max_paths=20)
    >>> record_paths(recorder, [(300, 300)], max_depth=10)
    >>> export_paths_to_obj("cornell_box_paths.obj", recorder.get_paths())
    True
"""

import logging
import math
import os
from collections.abc import Sequence
from typing import TextIO

from boxtracer.core.recorder import LightPath
from boxtracer.scene.intersection import get_rect, get_rect_count

logger = logging.getLogger(__name__)

# Geometry of the exported path markers
PATH_RADIUS = 0.5
VERTEX_RADIUS = 1.0
CYLINDER_SIDES = 8
SPHERE_STACKS = 6
SPHERE_SLICES = 8

PATH_MATERIAL = "GreenPath"
SCENE_MATERIAL = "BoxWhite"

MTL_TEMPLATE = f"""# Material file for Cornell Box paths

newmtl {PATH_MATERIAL}
Ka 0.0 0.5 0.0
Kd 0.0 1.0 0.0
Ks 0.0 1.0 0.0
Ns 10.0
d 0.8
illum 2

newmtl {SCENE_MATERIAL}
Ka 0.7 0.7 0.7
Kd 0.73 0.73 0.73
Ks 0.0 0.0 0.0
d 0.5
illum 1
"""

Point = tuple[float, float, float]


def _sub(a: Point, b: Point) -> Point:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _cross(a: Point, b: Point) -> Point:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _length(a: Point) -> float:
    return math.sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


def _scale(a: Point, s: float) -> Point:
    return (a[0] * s, a[1] * s, a[2] * s)


class _ObjWriter:
    """Streams OBJ vertices and faces while tracking the 1-based vertex index."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self.next_index = 1

    def vertex(self, p: Point) -> None:
        self.stream.write(f"v {p[0]:g} {p[1]:g} {p[2]:g}\n")

    def face(self, *indices: int) -> None:
        self.stream.write("f " + " ".join(str(i) for i in indices) + "\n")

    def cylinder(self, start: Point, end: Point, radius: float, sides: int = CYLINDER_SIDES) -> None:
        """Write an open cylinder from start to end; skipped when degenerate."""
        direction = _sub(end, start)
        length = _length(direction)
        if length < 1e-6:
            return
        axis = _scale(direction, 1.0 / length)

        up = (1.0, 0.0, 0.0) if abs(axis[1]) > 0.9 else (0.0, 1.0, 0.0)
        right = _cross(up, axis)
        right = _scale(right, 1.0 / _length(right))
        forward = _cross(axis, right)

        for center in (start, end):
            for i in range(sides):
                angle = 2.0 * math.pi * i / sides
                c, s = math.cos(angle) * radius, math.sin(angle) * radius
                self.vertex(
                    (
                        center[0] + c * right[0] + s * forward[0],
                        center[1] + c * right[1] + s * forward[1],
                        center[2] + c * right[2] + s * forward[2],
                    )
                )

        base = self.next_index
        for i in range(sides):
            nxt = (i + 1) % sides
            v1, v2 = base + i, base + nxt
            v3, v4 = base + sides + nxt, base + sides + i
            self.face(v1, v2, v3)
            self.face(v1, v3, v4)
        self.next_index += 2 * sides

    def sphere(
        self,
        center: Point,
        radius: float,
        stacks: int = SPHERE_STACKS,
        slices: int = SPHERE_SLICES,
    ) -> None:
        """Write a UV sphere (stacks + 1 rings of slices vertices)."""
        for i in range(stacks + 1):
            phi = math.pi * i / stacks
            for j in range(slices):
                theta = 2.0 * math.pi * j / slices
                self.vertex(
                    (
                        center[0] + radius * math.sin(phi) * math.cos(theta),
                        center[1] + radius * math.cos(phi),
                        center[2] + radius * math.sin(phi) * math.sin(theta),
                    )
                )

        base = self.next_index
        for i in range(stacks):
            for j in range(slices):
                next_j = (j + 1) % slices
                v1 = base + i * slices + j
                v2 = base + i * slices + next_j
                v3 = base + (i + 1) * slices + next_j
                v4 = base + (i + 1) * slices + j
                self.face(v1, v2, v3)
                self.face(v1, v3, v4)
        self.next_index += (stacks + 1) * slices

    def rect(self, rect: dict) -> None:
        """Write a stored scene rectangle as a quad wound around its normal."""
        axis = rect["axis"]
        a0, a1 = rect["a_range"]
        b0, b1 = rect["b_range"]
        first, second = [i for i in range(3) if i != axis]

        corners = []
        for a, b in ((a0, b0), (a1, b0), (a1, b1), (a0, b1)):
            p = [0.0, 0.0, 0.0]
            p[axis] = rect["k"]
            p[first] = a
            p[second] = b
            corners.append((p[0], p[1], p[2]))

        # Counter-clockwise order above faces along cross(first, second)
        winding = _cross(_sub(corners[1], corners[0]), _sub(corners[3], corners[0]))
        if winding[axis] * rect["normal"][axis] < 0.0:
            corners.reverse()

        for corner in corners:
            self.vertex(corner)
        base = self.next_index
        self.face(base, base + 1, base + 2, base + 3)
        self.next_index += 4


def write_mtl(filepath: str) -> None:
    """Write the path and scene materials.

    Raises:
        OSError: If the file cannot be written.
    """
    with open(filepath, "w", encoding="ascii") as mtl:
        mtl.write(MTL_TEMPLATE)


def export_paths_to_obj(
    filepath: str,
    paths: Sequence[LightPath],
    include_scene: bool = True,
) -> bool:
    """Export recorded light paths (and optionally the scene) as OBJ + MTL.

    Args:
        filepath: Output .obj path. The material library is written next to
            it with the extension replaced by .mtl.
        paths: Recorded paths, e.g. PathRecorder.get_paths().
        include_scene: Also write the current scene rectangles.

    Returns:
        True on success, False if the OBJ file could not be written (the
        error is logged).
    """
    mtl_path = os.path.splitext(filepath)[0] + ".mtl"
    try:
        write_mtl(mtl_path)
    except OSError as e:
        logger.warning("Failed to write material file %s: %s", mtl_path, e)

    try:
        with open(filepath, "w", encoding="ascii") as obj:
            obj.write("# Cornell Box with Light Paths\n")
            obj.write("# Generated for Unity/Blender visualization\n")
            obj.write(f"mtllib {os.path.basename(mtl_path)}\n\n")

            writer = _ObjWriter(obj)

            if include_scene:
                obj.write("# Cornell Box Geometry\n")
                obj.write(f"usemtl {SCENE_MATERIAL}\n")
                for index in range(get_rect_count()):
                    writer.rect(get_rect(index))
                obj.write("\n")

            obj.write("# Light Paths\n")
            obj.write(f"usemtl {PATH_MATERIAL}\n")
            for path_num, path in enumerate(paths):
                obj.write(f"# Path {path_num} (depth: {path.depth})\n")
                for v1, v2 in zip(path.vertices, path.vertices[1:]):
                    writer.cylinder(v1.position, v2.position, PATH_RADIUS)
                for vertex in path.vertices:
                    writer.sphere(vertex.position, VERTEX_RADIUS)
                obj.write("\n")
    except OSError as e:
        logger.error("Failed to write %s: %s", filepath, e)
        return False

    logger.info("Exported %d light paths to %s", len(paths), filepath)
    return True
