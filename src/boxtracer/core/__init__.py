"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray data structure, near-zero check and random direction sampling
    rng: Per-pixel Lehmer (MINSTD) random streams
    integrator: Recursive radiance estimator and rendering kernels
    progressive: Batched sample accumulation with progress reporting
    recorder: Capture of individual light paths for visualization

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    make_ray,
    near_zero,
    random_in_unit_disk,
    random_unit_vector,
    ray_at,
    vec3,
)
from .recorder import (
    MAX_PATH_VERTICES,
    MAX_RECORDED_PATHS,
    LightPath,
    PathRecorder,
    PathVertex,
)
from .rng import (
    DEFAULT_SEED,
    aux_stream,
    draw_uniform,
    ensure_seeded,
    pixel_stream,
    random_float,
    random_range,
    seed_streams,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from boxtracer.core.integrator or boxtracer.core.progressive when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "near_zero",
    "random_unit_vector",
    "random_in_unit_disk",
    "DEFAULT_SEED",
    "random_float",
    "random_range",
    "pixel_stream",
    "aux_stream",
    "seed_streams",
    "ensure_seeded",
    "draw_uniform",
    "PathRecorder",
    "PathVertex",
    "LightPath",
    "MAX_RECORDED_PATHS",
    "MAX_PATH_VERTICES",
]
