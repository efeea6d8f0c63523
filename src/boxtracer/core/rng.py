"""Seedable random number streams for Monte Carlo sampling.

Every pixel owns an independent stream of pseudo-random numbers so that a
render is reproducible for a given seed no matter in which order Taichi
schedules the pixel loop. A small pool of auxiliary streams serves work that
is not tied to a pixel (single-ray queries, recorded light paths, picking
random pixels on the Python side).

Each stream is a MINSTD (Park-Miller) generator held in an i64 field. The
initial state of a stream is an integer hash of the seed and the stream
index, which decorrelates neighbouring pixels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from boxtracer.core.rng import seed_streams, draw_uniform, aux_stream
    >>> seed_streams(1234)
    >>> draw_uniform(aux_stream(0), 3)  # three floats in [0, 1)
"""

import logging

import taichi as ti

logger = logging.getLogger(__name__)

# MINSTD parameters (Park & Miller, revised multiplier)
MINSTD_MODULUS = 2147483647
MINSTD_MULTIPLIER = 48271

DEFAULT_SEED = 42

# Pixel streams are laid out row by row on a fixed-width grid so the stream of
# a pixel does not depend on the current image size.
STREAM_ROW_LENGTH = 1024
MAX_PIXEL_STREAMS = STREAM_ROW_LENGTH * STREAM_ROW_LENGTH

# Streams not tied to a pixel live after the pixel grid
AUX_STREAMS = 256
MAX_STREAMS = MAX_PIXEL_STREAMS + AUX_STREAMS

_stream_state = ti.field(dtype=ti.i64, shape=MAX_STREAMS)
_seed = ti.field(dtype=ti.i64, shape=())
_seeded = ti.field(dtype=ti.i32, shape=())


@ti.func
def _hash31(x):
    """Mix the low 31 bits of an integer (xorshift-multiply hash)."""
    h = x & 0x7FFFFFFF
    h = ((h >> 16) ^ h) * 0x45D9F3B & 0x7FFFFFFF
    h = ((h >> 16) ^ h) * 0x45D9F3B & 0x7FFFFFFF
    return (h >> 16) ^ h


@ti.kernel
def _seed_kernel(seed: ti.i64):
    for stream in range(MAX_STREAMS):
        mixed = _hash31(seed * 1000003 + _hash31(ti.cast(stream, ti.i64) + 0x9E3779B))
        # MINSTD state must lie in [1, modulus - 1]
        _stream_state[stream] = mixed % (MINSTD_MODULUS - 1) + 1


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Draw the next uniform float in [0, 1) from a stream.

    Only the top 24 bits of the 31-bit state are used so the result is
    exactly representable in f32 and never rounds up to 1.0.

    Args:
        stream: The stream index (see pixel_stream and aux_stream).

    Returns:
        A float in [0, 1).
    """
    state = _stream_state[stream] * MINSTD_MULTIPLIER % MINSTD_MODULUS
    _stream_state[stream] = state
    return ti.cast((state - 1) >> 7, ti.f32) / 16777216.0


@ti.func
def random_range(stream: ti.i32, low: ti.f32, high: ti.f32) -> ti.f32:
    """Draw a uniform float in [low, high) from a stream."""
    return low + (high - low) * random_float(stream)


@ti.func
def pixel_stream(pixel_i: ti.i32, pixel_j: ti.i32) -> ti.i32:
    """Get the stream index owned by pixel (pixel_i, pixel_j)."""
    return pixel_j * STREAM_ROW_LENGTH + pixel_i


@ti.kernel
def _draw_float(stream: ti.i32) -> ti.f32:
    return random_float(stream)


def aux_stream(index: int) -> int:
    """Get the stream index of an auxiliary (non-pixel) stream.

    Args:
        index: Auxiliary stream number in [0, AUX_STREAMS).

    Returns:
        The global stream index.

    Raises:
        ValueError: If index is out of range.
    """
    if index < 0 or index >= AUX_STREAMS:
        raise ValueError(f"Auxiliary stream index {index} outside [0, {AUX_STREAMS})")
    return MAX_PIXEL_STREAMS + index


def seed_streams(seed: int = DEFAULT_SEED) -> None:
    """Reset every stream from a seed.

    Args:
        seed: Non-negative integer seed.

    Raises:
        ValueError: If seed is negative.
    """
    if seed < 0:
        raise ValueError(f"Seed must be non-negative, got {seed}")
    _seed_kernel(seed)
    _seed[None] = seed
    _seeded[None] = 1
    logger.debug("Seeded %d random streams with seed %d", MAX_STREAMS, seed)


def ensure_seeded() -> None:
    """Seed the streams with DEFAULT_SEED if no seed was set yet."""
    if _seeded[None] == 0:
        seed_streams(DEFAULT_SEED)


def get_seed() -> int | None:
    """Get the seed the streams were last reset with, or None."""
    if _seeded[None] == 0:
        return None
    return int(_seed[None])


def get_stream_state(stream: int) -> int:
    """Get the raw generator state of a stream (for debugging and tests)."""
    return int(_stream_state[stream])


def draw_uniform(stream: int, count: int = 1) -> list[float]:
    """Draw floats in [0, 1) from a stream on the Python side.

    Args:
        stream: The stream index to advance.
        count: Number of values to draw.

    Returns:
        List of count floats.
    """
    ensure_seeded()
    return [float(_draw_float(stream)) for _ in range(count)]
