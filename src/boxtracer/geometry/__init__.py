"""Geometry module for axis-aligned rectangles.

Each rectangle lies in a plane perpendicular to one coordinate axis and is
bounded by closed ranges on the two remaining axes. Intersection routines are
Taichi functions (@ti.func) so they can be called from rendering kernels.

Ray-object intersection follows the pattern:
    rec = hit_rect(rect, ray_origin, ray_direction, t_min, t_max)
"""

from .aarect import (
    ORIENTATION_AXIS,
    AxisAlignedRect,
    HitRecord,
    RectOrientation,
    axis_normal,
    hit_rect,
    make_rect,
    orientation_axis,
)

__all__ = [
    "RectOrientation",
    "ORIENTATION_AXIS",
    "orientation_axis",
    "axis_normal",
    "AxisAlignedRect",
    "HitRecord",
    "hit_rect",
    "make_rect",
]
