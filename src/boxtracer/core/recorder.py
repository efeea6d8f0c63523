"""Light path recording for external visualization.

The recorder is a side channel of the integrator: while a recorded sample is
traced, every bounce appends a vertex (position, normal, contribution and a
light-source flag) to one path slot. Recording never feeds back into the
radiance estimate.

Kernel side (Taichi functions):
    begin_path(slot), record_vertex(slot, ...), end_path(slot, total)

Python side:
    PathRecorder reads completed slots back into LightPath dataclasses that
    can be exported with boxtracer.preview.paths.export_paths_to_obj.

Example:
    >>> from boxtracer.core.recorder import PathRecorder
    >>> from boxtracer.core.integrator import record_paths
    >>> recorder = PathRecorder(max_paths=4)
    >>> record_paths(recorder, [(10, 20), (30, 40)], max_depth=10)
    >>> paths = recorder.get_paths()
"""

from dataclasses import dataclass, field

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Capacity of the recorder storage
MAX_RECORDED_PATHS = 64
MAX_PATH_VERTICES = 64

_vertex_positions = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_RECORDED_PATHS, MAX_PATH_VERTICES))
_vertex_normals = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_RECORDED_PATHS, MAX_PATH_VERTICES))
_vertex_contributions = ti.Vector.field(
    3, dtype=ti.f32, shape=(MAX_RECORDED_PATHS, MAX_PATH_VERTICES)
)
_vertex_is_light = ti.field(dtype=ti.i32, shape=(MAX_RECORDED_PATHS, MAX_PATH_VERTICES))
_vertex_counts = ti.field(dtype=ti.i32, shape=MAX_RECORDED_PATHS)
_path_totals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_RECORDED_PATHS)
# 1 while a slot is between begin_path and end_path
_path_open = ti.field(dtype=ti.i32, shape=MAX_RECORDED_PATHS)
_path_complete = ti.field(dtype=ti.i32, shape=MAX_RECORDED_PATHS)
# 0 means the full MAX_PATH_VERTICES capacity
_vertex_limit = ti.field(dtype=ti.i32, shape=())


def clear_recorded_paths() -> None:
    """Discard every recorded path."""
    _vertex_counts.fill(0)
    _path_open.fill(0)
    _path_complete.fill(0)


# =============================================================================
# Kernel-side Recording API
# =============================================================================


@ti.func
def begin_path(slot: ti.i32):
    """Open a path slot for recording, discarding its previous content."""
    if slot >= 0:
        _vertex_counts[slot] = 0
        _path_open[slot] = 1
        _path_complete[slot] = 0


@ti.func
def record_vertex(
    slot: ti.i32,
    position: vec3,
    normal: vec3,
    contribution: vec3,
    is_light: ti.i32,
):
    """Append a vertex to an open path slot.

    A negative slot means "not recording" and is ignored, as are vertices
    beyond the recorder's vertex capacity.

    Args:
        slot: The path slot, or -1 when the current sample is not recorded.
        position: The vertex position in world space.
        normal: The surface normal at the vertex.
        contribution: Attenuation for scattering vertices, emitted radiance
            for light vertices.
        is_light: 1 if the vertex lies on a light source.
    """
    if slot >= 0:
        if _path_open[slot] == 1:
            n = _vertex_counts[slot]
            limit = _vertex_limit[None]
            if limit == 0:
                limit = MAX_PATH_VERTICES
            if n < limit:
                _vertex_positions[slot, n] = position
                _vertex_normals[slot, n] = normal
                _vertex_contributions[slot, n] = contribution
                _vertex_is_light[slot, n] = is_light
                _vertex_counts[slot] = n + 1


@ti.func
def end_path(slot: ti.i32, total: vec3):
    """Close a path slot and store the sample's total radiance."""
    if slot >= 0:
        if _path_open[slot] == 1:
            _path_totals[slot] = total
            _path_open[slot] = 0
            _path_complete[slot] = 1


# =============================================================================
# Python-side Access
# =============================================================================


@dataclass
class PathVertex:
    """A single vertex of a recorded light path.

    Attributes:
        position: The vertex position (x, y, z).
        normal: The surface normal at the vertex.
        contribution: Attenuation at a bounce, or emitted radiance at a light.
        is_light_source: Whether the vertex lies on an emitter.
    """

    position: tuple[float, float, float]
    normal: tuple[float, float, float]
    contribution: tuple[float, float, float]
    is_light_source: bool


@dataclass
class LightPath:
    """A recorded light path.

    Attributes:
        vertices: The path vertices, starting at the camera.
        final_color: Radiance returned for the recorded sample.
        depth: Number of vertices recorded.
    """

    vertices: list[PathVertex] = field(default_factory=list)
    final_color: tuple[float, float, float] = (0.0, 0.0, 0.0)
    depth: int = 0


def _to_tuple(value) -> tuple[float, float, float]:
    return (float(value[0]), float(value[1]), float(value[2]))


class PathRecorder:
    """Python handle on the recorder storage.

    Only one recorder is active at a time; creating a recorder clears the
    shared storage and sets the vertex capacity.

    Attributes:
        max_paths: Number of path slots this recorder hands out.
        max_vertices: Vertices kept per path; later vertices are dropped.
    """

    def __init__(self, max_paths: int = 20, max_vertices: int = MAX_PATH_VERTICES) -> None:
        """Create a recorder and clear previously recorded paths.

        Args:
            max_paths: Number of paths to record (at most MAX_RECORDED_PATHS).
            max_vertices: Vertices kept per path (at most MAX_PATH_VERTICES).

        Raises:
            ValueError: If max_paths or max_vertices is out of range.
        """
        if max_paths < 1 or max_paths > MAX_RECORDED_PATHS:
            raise ValueError(
                f"max_paths must be in [1, {MAX_RECORDED_PATHS}], got {max_paths}"
            )
        if max_vertices < 1 or max_vertices > MAX_PATH_VERTICES:
            raise ValueError(
                f"max_vertices must be in [1, {MAX_PATH_VERTICES}], got {max_vertices}"
            )
        self.max_paths = max_paths
        self.max_vertices = max_vertices
        _vertex_limit[None] = max_vertices
        clear_recorded_paths()

    def clear(self) -> None:
        """Discard every recorded path."""
        clear_recorded_paths()

    def get_path(self, slot: int) -> LightPath | None:
        """Read one slot back, or None if it holds no completed path."""
        if slot < 0 or slot >= self.max_paths or _path_complete[slot] == 0:
            return None

        count = int(_vertex_counts[slot])
        vertices = [
            PathVertex(
                position=_to_tuple(_vertex_positions[slot, n]),
                normal=_to_tuple(_vertex_normals[slot, n]),
                contribution=_to_tuple(_vertex_contributions[slot, n]),
                is_light_source=bool(_vertex_is_light[slot, n]),
            )
            for n in range(count)
        ]
        return LightPath(
            vertices=vertices,
            final_color=_to_tuple(_path_totals[slot]),
            depth=count,
        )

    def get_paths(self) -> list[LightPath]:
        """Get every completed path in slot order."""
        paths = []
        for slot in range(self.max_paths):
            path = self.get_path(slot)
            if path is not None:
                paths.append(path)
        return paths

    def __repr__(self) -> str:
        return f"PathRecorder(max_paths={self.max_paths}, recorded={len(self.get_paths())})"
