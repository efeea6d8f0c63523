"""Path tracing integrator for Monte Carlo light transport.

This module implements the recursive radiance estimator and the rendering
kernels that accumulate samples into the render target.

The estimator for a ray with remaining depth d is:
    - d <= 0: black
    - ray misses every rectangle: black
    - hit surface scatters: emitted + attenuation * estimate(scattered, d - 1)
    - hit surface does not scatter: emitted

The recursion is resolved at compile time: ray_color takes its depth as a
template argument, so Taichi inlines max_depth nested copies of the bounce
body. Every pixel draws from its own random stream (see boxtracer.core.rng),
which makes a render reproducible for a given seed.

Key features:
    - Material dispatch (Lambertian, DiffuseLight)
    - Hard depth cutoff
    - Per-sample summation with a per-pixel sample count
    - Optional light path recording (observational only)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from boxtracer.core.integrator import render_image, setup_render_target
    >>> from boxtracer.scene.cornell_box import create_cornell_box_scene
    >>> from boxtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera, _ = create_cornell_box_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(600, 600)
    >>> render_image(num_samples=10, max_depth=10)
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from boxtracer.camera.thin_lens import get_ray_jittered
from boxtracer.core.recorder import (
    PathRecorder,
    begin_path,
    end_path,
    record_vertex,
)
from boxtracer.core.rng import (
    MAX_STREAMS,
    STREAM_ROW_LENGTH,
    aux_stream,
    ensure_seeded,
    pixel_stream,
)
from boxtracer.materials.diffuse_light import emitted_diffuse_light, get_diffuse_light_radiance
from boxtracer.materials.lambertian import scatter_lambertian_by_id
from boxtracer.scene.intersection import intersect_scene
from boxtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum path depth
MAX_DEPTH = 10

# t_min avoids re-hitting the surface a scattered ray starts on
T_MIN = 0.001
T_MAX = 1e10

# Squared radiance above which a terminal hit is recorded as a light vertex
LIGHT_VERTEX_THRESHOLD = 0.01

# Auxiliary streams: 0 serves trace_ray, recorded paths start at this offset
RECORD_STREAM_OFFSET = 64

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions, tied to the pixel stream grid
MAX_IMAGE_WIDTH = STREAM_ROW_LENGTH
MAX_IMAGE_HEIGHT = STREAM_ROW_LENGTH

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Radiance sum and sample count per pixel (preallocated to max size)
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT to avoid Taichi kernel
    recompilation.

    Args:
        width: Image width in pixels, in [1, MAX_IMAGE_WIDTH].
        height: Image height in pixels, in [1, MAX_IMAGE_HEIGHT].

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(material_id: ti.i32, normal: vec3, stream: ti.i32):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        normal: The surface normal at the hit point.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The new ray direction (not normalized).
        - attenuation: The color attenuation for this bounce.
        - did_scatter: 1 if the ray scattered, 0 if the path ends here.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation = scatter_lambertian_by_id(type_index, normal, stream)
        did_scatter = 1

    return scattered_direction, attenuation, did_scatter


@ti.func
def _get_emission(material_id: ti.i32) -> vec3:
    """Get the radiance emitted by a material (zero for non-emitters)."""
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    emission = vec3(0.0, 0.0, 0.0)
    if mat_type == int(MaterialType.DIFFUSE_LIGHT):
        emission = emitted_diffuse_light(get_diffuse_light_radiance(type_index))

    return emission


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(
    origin: vec3,
    direction: vec3,
    depth: ti.template(),
    stream: ti.i32,
    path_slot: ti.i32,
) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        origin: The ray origin.
        direction: The ray direction (need not be normalized).
        depth: Remaining path depth (compile-time constant).
        stream: The random stream used for scattering.
        path_slot: Recorder slot receiving this path's vertices, or -1.

    Returns:
        The estimated radiance (RGB).
    """
    color = vec3(0.0, 0.0, 0.0)

    if ti.static(depth > 0):
        rec = intersect_scene(origin, direction, T_MIN, T_MAX)

        if rec.hit == 1:
            emitted = _get_emission(rec.material_id)
            scattered_direction, attenuation, did_scatter = _scatter_material(
                rec.material_id, rec.normal, stream
            )

            if did_scatter == 1:
                record_vertex(path_slot, rec.point, rec.normal, attenuation, 0)
                color = emitted + attenuation * ray_color(
                    rec.point, scattered_direction, depth - 1, stream, path_slot
                )
            else:
                if tm.dot(emitted, emitted) > LIGHT_VERTEX_THRESHOLD:
                    record_vertex(path_slot, rec.point, rec.normal, emitted, 1)
                color = emitted

    return color


@ti.func
def render_sample_impl(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.template(),
    stream: ti.i32,
) -> vec3:
    """Trace one jittered camera sample through pixel (pixel_i, pixel_j)."""
    ray = get_ray_jittered(pixel_i, pixel_j, width, height, stream)
    return ray_color(ray.origin, ray.direction, max_depth, stream, -1)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_samples(width: ti.i32, height: ti.i32, num_samples: ti.i32, max_depth: ti.template()):
    """Render num_samples samples per pixel and add them to the render target."""
    for i, j in ti.ndrange(width, height):
        stream = pixel_stream(i, j)
        for _ in range(num_samples):
            _color_sum[i, j] += render_sample_impl(i, j, width, height, max_depth, stream)
        _sample_count[i, j] += num_samples


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.template(),
    stream: ti.i32,
) -> vec3:
    color = vec3(0.0, 0.0, 0.0)
    for _ in range(1):
        color = render_sample_impl(pixel_i, pixel_j, width, height, max_depth, stream)
    return color


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    depth: ti.template(),
    stream: ti.i32,
) -> vec3:
    color = vec3(0.0, 0.0, 0.0)
    for _ in range(1):
        color = ray_color(vec3(ox, oy, oz), vec3(dx, dy, dz), depth, stream, -1)
    return color


@ti.kernel
def _record_path(
    slot: ti.i32,
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.template(),
    stream: ti.i32,
):
    for _ in range(1):
        begin_path(slot)
        ray = get_ray_jittered(pixel_i, pixel_j, width, height, stream)
        # Camera vertex
        record_vertex(slot, ray.origin, vec3(0.0, 0.0, 1.0), vec3(1.0, 1.0, 1.0), 0)
        color = ray_color(ray.origin, ray.direction, max_depth, stream, slot)
        end_path(slot, color)


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_depth(max_depth: int) -> int:
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
        raise ValueError(f"max_depth must be a non-negative integer, got {max_depth!r}")
    return max_depth


def _check_pixel(pixel_i: int, pixel_j: int, width: int, height: int) -> None:
    if not (0 <= pixel_i < width and 0 <= pixel_j < height):
        raise ValueError(f"Pixel ({pixel_i}, {pixel_j}) outside {width}x{height} image")


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH) -> None:
    """Render the image with the specified number of samples per pixel.

    Adds samples to the render target. Can be called repeatedly; each call
    continues every pixel's random stream, so rendering 2 x 10 samples gives
    the same sums as rendering 20 at once.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum path depth. Each distinct value compiles its own
            kernel.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples is not positive or max_depth is negative.
    """
    _check_render_target_initialized()
    if num_samples < 1:
        raise ValueError(f"num_samples must be positive, got {num_samples}")
    _check_depth(max_depth)
    ensure_seeded()

    width, height = get_image_dimensions()
    _render_samples(width, height, num_samples, max_depth)
    logger.debug("Rendered %d samples per pixel at %dx%d", num_samples, width, height)


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = MAX_DEPTH,
    stream: int | None = None,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. The sample is not added
    to the render target.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum path depth.
        stream: Random stream to draw from. Defaults to the pixel's own
            stream, which advances it.

    Returns:
        Tuple of (R, G, B) radiance values.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the pixel lies outside the image, the stream does not
            exist, or max_depth is negative.
    """
    _check_render_target_initialized()
    _check_depth(max_depth)
    width, height = get_image_dimensions()
    _check_pixel(pixel_i, pixel_j, width, height)
    if stream is None:
        stream = pixel_j * STREAM_ROW_LENGTH + pixel_i
    elif not 0 <= stream < MAX_STREAMS:
        raise ValueError(f"Stream {stream} outside [0, {MAX_STREAMS})")
    ensure_seeded()

    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth, stream)

    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int,
    stream: int | None = None,
) -> tuple[float, float, float]:
    """Estimate the radiance along an arbitrary ray.

    Args:
        origin: The ray origin (x, y, z).
        direction: The ray direction (x, y, z), need not be normalized.
        depth: Remaining path depth. Depths of zero or less return black.
        stream: Random stream to draw from. Defaults to auxiliary stream 0.

    Returns:
        Tuple of (R, G, B) radiance values.

    Raises:
        ValueError: If depth is not an integer.
    """
    if isinstance(depth, int) and not isinstance(depth, bool):
        # Every depth <= 0 returns black, so they share the depth 0 kernel
        depth = max(depth, 0)
    _check_depth(depth)
    ensure_seeded()

    if stream is None:
        stream = aux_stream(0)
    color = _trace_single_ray(
        origin[0],
        origin[1],
        origin[2],
        direction[0],
        direction[1],
        direction[2],
        depth,
        stream,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def record_paths(
    recorder: PathRecorder,
    pixels: list[tuple[int, int]],
    max_depth: int = MAX_DEPTH,
) -> int:
    """Trace one recorded sample through each of the given pixels.

    Recorded samples use their own auxiliary streams, so recording never
    changes the image rendered from the pixel streams.

    Args:
        recorder: The recorder receiving the paths; its previous paths are
            cleared.
        pixels: (i, j) pixel coordinates, at most recorder.max_paths of them.
        max_depth: Maximum path depth.

    Returns:
        The number of paths recorded.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If there are more pixels than recorder slots, a pixel lies
            outside the image, or max_depth is negative.
    """
    _check_render_target_initialized()
    _check_depth(max_depth)
    if len(pixels) > recorder.max_paths:
        raise ValueError(
            f"{len(pixels)} pixels requested but recorder has {recorder.max_paths} slots"
        )

    width, height = get_image_dimensions()
    for pixel_i, pixel_j in pixels:
        _check_pixel(pixel_i, pixel_j, width, height)
    streams = [aux_stream(RECORD_STREAM_OFFSET + slot) for slot in range(len(pixels))]
    ensure_seeded()

    recorder.clear()
    for slot, ((pixel_i, pixel_j), stream) in enumerate(zip(pixels, streams)):
        _record_path(slot, pixel_i, pixel_j, width, height, max_depth, stream)

    logger.info("Recorded %d light paths", len(pixels))
    return len(pixels)


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_radiance_numpy() -> np.ndarray:
    """Get the averaged radiance image as a NumPy array.

    Each pixel is its radiance sum divided by its sample count (zero where
    no sample was taken). Values are not clamped. Row 0 of the array is the
    top of the image.

    Returns:
        Float32 array of shape (height, width, 3).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    sums = _color_sum.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height].astype(np.float32)

    image = np.zeros_like(sums)
    np.divide(sums, counts[:, :, None], out=image, where=counts[:, :, None] > 0)

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (pixel row 0 is the bottom, images start at the top)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
