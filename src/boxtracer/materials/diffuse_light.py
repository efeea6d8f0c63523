"""Diffuse area light material implementation.

A diffuse light is an emitter: it never scatters incoming light and emits a
constant radiance from both sides of the surface, with no cosine falloff.
Radiance components may exceed 1; the tone mapper clamps the final image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from boxtracer.materials.diffuse_light import add_diffuse_light_material
    >>> light_idx = add_diffuse_light_material((15.0, 15.0, 15.0))
"""

import logging
import math

import taichi as ti
import taichi.math as tm

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def emitted_diffuse_light(radiance: vec3) -> vec3:
    """Radiance emitted by a diffuse light toward any direction."""
    return radiance


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

MAX_DIFFUSE_LIGHT_MATERIALS = 64

diffuse_light_radiances = ti.Vector.field(3, dtype=ti.f32, shape=MAX_DIFFUSE_LIGHT_MATERIALS)
num_diffuse_light_materials = ti.field(dtype=ti.i32, shape=())


def clear_diffuse_light_materials() -> None:
    """Clear all diffuse light materials."""
    num_diffuse_light_materials[None] = 0


def add_diffuse_light_material(radiance: tuple[float, float, float]) -> int:
    """Add a diffuse light material to the material registry.

    Args:
        radiance: Emitted radiance as (R, G, B) tuple. Components must be
            finite and non-negative; values above 1 are allowed.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any radiance component is negative or not finite.
    """
    if len(radiance) != 3:
        raise ValueError(f"Radiance must have 3 components, got {len(radiance)}")
    for i, component in enumerate(radiance):
        if not math.isfinite(component) or component < 0.0:
            raise ValueError(
                f"Radiance component {i} = {component} must be finite and non-negative"
            )

    idx = num_diffuse_light_materials[None]
    if idx >= MAX_DIFFUSE_LIGHT_MATERIALS:
        raise RuntimeError(
            f"Maximum number of diffuse light materials ({MAX_DIFFUSE_LIGHT_MATERIALS}) exceeded"
        )

    diffuse_light_radiances[idx] = vec3(radiance[0], radiance[1], radiance[2])
    num_diffuse_light_materials[None] = idx + 1
    logger.debug("Added diffuse light material %d with radiance %s", idx, tuple(radiance))
    return idx


def get_diffuse_light_material_count() -> int:
    """Get the number of diffuse light materials in the registry."""
    return int(num_diffuse_light_materials[None])


@ti.func
def get_diffuse_light_radiance(material_idx: ti.i32) -> vec3:
    """Get the emitted radiance for a diffuse light material by index."""
    return diffuse_light_radiances[material_idx]
