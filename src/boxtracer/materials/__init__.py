"""Material models for surface scattering and emission.

Components:
    lambertian: Ideal diffuse reflector (scatters, never emits)
    diffuse_light: Area light emitter (emits, never scatters)

Each material kind keeps its parameters in a Taichi field indexed by a
type-local index; the scene manager maps global material ids onto them.
"""

from .diffuse_light import (
    add_diffuse_light_material,
    clear_diffuse_light_materials,
    emitted_diffuse_light,
    get_diffuse_light_material_count,
    get_diffuse_light_radiance,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Diffuse light
    "emitted_diffuse_light",
    "add_diffuse_light_material",
    "clear_diffuse_light_materials",
    "get_diffuse_light_material_count",
    "get_diffuse_light_radiance",
]
