"""Taichi-based path tracer for scenes built from axis-aligned rectangles.

This package renders the classic boxed-room (Cornell box) scene with a
simplified Monte Carlo path tracer:
- Closest-hit intersection against axis-aligned rectangles
- Lambertian reflectors and diffuse area lights
- Pinhole or thin-lens camera with look-at positioning
- Bounded-depth recursive radiance estimation
- Seedable per-pixel random streams for reproducible renders

Subpackages:
    core: Rays, random streams, the radiance integrator and progressive sampling
    geometry: Axis-aligned rectangle primitive and ray intersection
    materials: Lambertian and diffuse light material models
    scene: Scene storage, scene manager and the Cornell box factory
    camera: Look-at camera with optional defocus blur
    preview: Tone mapping, image export and light path export
"""

__version__ = "0.1.0"
