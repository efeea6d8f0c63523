"""Axis-aligned rectangle primitive with ray-rectangle intersection.

This module provides the only primitive of the renderer: a rectangle lying in
a plane perpendicular to one coordinate axis, such as the walls, ceiling and
box faces of a Cornell box.

A rectangle is defined by:
- axis: The fixed axis (0 = x, 1 = y, 2 = z)
- k: The coordinate of the plane along the fixed axis
- [a0, a1]: The closed extent along the first free axis
- [b0, b1]: The closed extent along the second free axis
- normal: A fixed unit normal along +axis or -axis

The free axes are the two remaining axes in increasing order, so an XY
rectangle (axis 2) spans x in [a0, a1] and y in [b0, b1], an XZ rectangle
(axis 1) spans x and z, and a YZ rectangle (axis 0) spans y and z.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from boxtracer.geometry.aarect import make_rect, hit_rect
    >>> # Floor at y=0 spanning x=[0,555] and z=[0,555], facing up
    >>> # (inside a Taichi kernel)
    >>> # rect = make_rect(1, 0.0, 0.0, 555.0, 0.0, 555.0, vec3(0, 1, 0))
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from boxtracer.core.ray import make_ray, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class RectOrientation(IntEnum):
    """Plane a rectangle lies in, named by its two free axes."""

    XY = 0
    XZ = 1
    YZ = 2


# Fixed axis of each orientation
ORIENTATION_AXIS = {
    RectOrientation.XY: 2,
    RectOrientation.XZ: 1,
    RectOrientation.YZ: 0,
}


def orientation_axis(orientation: RectOrientation) -> int:
    """Get the fixed axis (0 = x, 1 = y, 2 = z) of an orientation.

    Raises:
        ValueError: If orientation is not a RectOrientation value.
    """
    try:
        return ORIENTATION_AXIS[RectOrientation(orientation)]
    except ValueError:
        raise ValueError(f"Unknown rectangle orientation: {orientation!r}") from None


def axis_normal(axis: int, flip_normal: bool = False) -> tuple[float, float, float]:
    """Get the unit normal along +axis, or -axis when flip_normal is set."""
    sign = -1.0 if flip_normal else 1.0
    normal = [0.0, 0.0, 0.0]
    normal[axis] = sign
    return (normal[0], normal[1], normal[2])


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The rectangle's fixed normal. It is not flipped toward the
            ray, so back-face hits report the same normal as front-face hits.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.dataclass
class AxisAlignedRect:
    """A rectangle perpendicular to one coordinate axis.

    Attributes:
        axis: The fixed axis (0 = x, 1 = y, 2 = z).
        k: Plane coordinate along the fixed axis.
        a0: Lower bound along the first free axis.
        a1: Upper bound along the first free axis.
        b0: Lower bound along the second free axis.
        b1: Upper bound along the second free axis.
        normal: Fixed unit normal of the rectangle.
    """

    axis: ti.i32
    k: ti.f32
    a0: ti.f32
    a1: ti.f32
    b0: ti.f32
    b1: ti.f32
    normal: vec3


@ti.func
def make_rect(
    axis: ti.i32,
    k: ti.f32,
    a0: ti.f32,
    a1: ti.f32,
    b0: ti.f32,
    b1: ti.f32,
    normal: vec3,
) -> AxisAlignedRect:
    """Create a rectangle from its fixed axis, plane offset, ranges and normal."""
    return AxisAlignedRect(axis=axis, k=k, a0=a0, a1=a1, b0=b0, b1=b1, normal=normal)


@ti.func
def axis_component(v: vec3, axis: ti.i32) -> ti.f32:
    """Get component `axis` of a vector (0 = x, 1 = y, 2 = z)."""
    result = v.z
    if axis == 0:
        result = v.x
    elif axis == 1:
        result = v.y
    return result


@ti.func
def free_axes(axis: ti.i32):
    """Get the two free axes of a fixed axis, in increasing order."""
    first = 0
    second = 1
    if axis == 0:
        first = 1
        second = 2
    elif axis == 1:
        second = 2
    return first, second


@ti.func
def hit_rect(
    ray_origin: vec3,
    ray_direction: vec3,
    rect: AxisAlignedRect,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-rectangle intersection.

    Solves origin[axis] + t * direction[axis] = k for t, then checks the
    hit point against the rectangle's ranges:
    1. A direction component of exactly zero on the fixed axis is a miss
    2. t outside the closed interval [t_min, t_max] is a miss
    3. A hit point outside [a0, a1] x [b0, b1] (closed) is a miss

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        rect: The rectangle to test intersection against.
        t_min: Minimum t value to consider a valid hit (avoids self-intersection).
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A HitRecord containing intersection information. Check hit field
        to determine if intersection occurred.
    """
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    denom = axis_component(ray_direction, rect.axis)

    # Ray parallel to the plane
    if denom != 0.0:
        t = (rect.k - axis_component(ray_origin, rect.axis)) / denom

        if t >= t_min and t <= t_max:
            point = ray_at(make_ray(ray_origin, ray_direction), t)
            first, second = free_axes(rect.axis)
            a = axis_component(point, first)
            b = axis_component(point, second)

            if a >= rect.a0 and a <= rect.a1 and b >= rect.b0 and b <= rect.b1:
                did_hit = 1
                hit_t = t
                hit_point = point
                hit_normal = rect.normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
    )
