"""Scene-level rectangle intersection testing.

This module stores the scene's axis-aligned rectangles in Taichi fields and
provides the closest-hit query used by the integrator. Each rectangle has an
associated material ID for shading.

Rectangles are tested in insertion order; each accepted hit narrows the
search interval, so the returned record is the closest hit in [t_min, t_max].

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from boxtracer.scene.intersection import add_rect, clear_scene
    >>> clear_scene()
    >>> # Back wall at z=555, facing the camera
    >>> add_rect(2, 555.0, (0.0, 555.0), (0.0, 555.0), (0.0, 0.0, -1.0), material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from boxtracer.geometry.aarect import AxisAlignedRect, HitRecord, hit_rect

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the basic HitRecord with material_id for scene-level queries.

    Attributes:
        hit: Whether the ray intersected any rectangle (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The fixed normal of the hit rectangle.
            Only valid if hit == 1.
        material_id: The material ID of the hit rectangle.
            -1 indicates a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


# Maximum number of rectangles supported in the scene
MAX_RECTS = 1024

# Rectangle storage: Structure of Arrays layout for GPU efficiency
rect_axes = ti.field(dtype=ti.i32, shape=MAX_RECTS)
rect_k = ti.field(dtype=ti.f32, shape=MAX_RECTS)
# (a0, a1) and (b0, b1) ranges along the two free axes
rect_a_ranges = ti.Vector.field(2, dtype=ti.f32, shape=MAX_RECTS)
rect_b_ranges = ti.Vector.field(2, dtype=ti.f32, shape=MAX_RECTS)
rect_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_RECTS)
rect_material_ids = ti.field(dtype=ti.i32, shape=MAX_RECTS)
num_rects = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all rectangles from the scene.

    Resets the rectangle count to zero. The actual field data is not
    cleared but will be overwritten when new rectangles are added.
    """
    num_rects[None] = 0


def add_rect(
    axis: int,
    k: float,
    a_range: tuple[float, float],
    b_range: tuple[float, float],
    normal: tuple[float, float, float],
    material_id: int = 0,
) -> int:
    """Add a rectangle to the scene.

    This is the low-level append; SceneManager validates ranges, normals
    and material IDs before calling it.

    Args:
        axis: The fixed axis (0 = x, 1 = y, 2 = z).
        k: Plane coordinate along the fixed axis.
        a_range: (a0, a1) extent along the first free axis.
        b_range: (b0, b1) extent along the second free axis.
        normal: Fixed unit normal of the rectangle.
        material_id: The material ID to associate with this rectangle.

    Returns:
        The index of the added rectangle.

    Raises:
        RuntimeError: If the maximum number of rectangles is exceeded.
    """
    idx = num_rects[None]
    if idx >= MAX_RECTS:
        raise RuntimeError(f"Maximum number of rectangles ({MAX_RECTS}) exceeded")
    rect_axes[idx] = axis
    rect_k[idx] = k
    rect_a_ranges[idx] = a_range
    rect_b_ranges[idx] = b_range
    rect_normals[idx] = normal
    rect_material_ids[idx] = material_id
    num_rects[None] = idx + 1
    return idx


def get_rect_count() -> int:
    """Get the number of rectangles in the scene."""
    return int(num_rects[None])


def get_rect(index: int) -> dict:
    """Read one stored rectangle back as plain Python values.

    Args:
        index: Index returned by add_rect.

    Returns:
        Dict with keys axis, k, a_range, b_range, normal, material_id.

    Raises:
        IndexError: If index is not a stored rectangle.
    """
    if index < 0 or index >= num_rects[None]:
        raise IndexError(f"Rectangle index {index} out of range")
    a = rect_a_ranges[index]
    b = rect_b_ranges[index]
    n = rect_normals[index]
    return {
        "axis": int(rect_axes[index]),
        "k": float(rect_k[index]),
        "a_range": (float(a[0]), float(a[1])),
        "b_range": (float(b[0]), float(b[1])),
        "normal": (float(n[0]), float(n[1]), float(n[2])),
        "material_id": int(rect_material_ids[index]),
    }


@ti.func
def _hit_record_to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    """Convert a HitRecord to a SceneHitRecord with material ID."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def _load_rect(i: ti.i32) -> AxisAlignedRect:
    a = rect_a_ranges[i]
    b = rect_b_ranges[i]
    return AxisAlignedRect(
        axis=rect_axes[i],
        k=rect_k[i],
        a0=a[0],
        a1=a[1],
        b0=b[0],
        b1=b[1],
        normal=rect_normals[i],
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Test ray against all rectangles in the scene.

    Iterates through the rectangles in insertion order, testing each for
    intersection and tracking the closest hit.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHitRecord containing the closest intersection, or a miss
        record if no intersection was found.
    """
    closest_t = t_max
    result = _make_miss_record()

    n_rects = num_rects[None]
    for i in range(n_rects):
        rec = hit_rect(ray_origin, ray_direction, _load_rect(i), t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, rect_material_ids[i])

    return result
