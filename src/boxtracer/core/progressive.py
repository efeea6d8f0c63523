"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one call)
- Progress callbacks for command-line progress output
- Easy reset and re-render functionality

The ProgressiveRenderer class encapsulates the render target state and provides
a clean interface for the command-line driver.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from boxtracer.core.progressive import ProgressiveRenderer
    >>> from boxtracer.scene.cornell_box import create_cornell_box_scene
    >>> from boxtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera, _ = create_cornell_box_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(600, 600, max_depth=10, seed=42)
    >>> renderer.render(200, batch_size=10)
    >>> image = renderer.get_image_uint8()
"""

import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from boxtracer.core.integrator import (
    MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    clear_render_target,
    get_radiance_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from boxtracer.core.rng import DEFAULT_SEED, ensure_seeded, seed_streams
from boxtracer.preview.display import tone_map_to_uint8

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Settings of one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel.
        max_depth: Maximum path depth.
        seed: Seed for the per-pixel random streams.
        batch_size: Samples per pixel rendered between progress reports.
    """

    width: int = 600
    height: int = 600
    samples: int = 200
    max_depth: int = MAX_DEPTH
    seed: int = DEFAULT_SEED
    batch_size: int = 10

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If a dimension is out of range, samples or batch_size
                is not positive, or max_depth or seed is negative.
        """
        if not 1 <= self.width <= MAX_IMAGE_WIDTH:
            raise ValueError(f"width must be in [1, {MAX_IMAGE_WIDTH}], got {self.width}")
        if not 1 <= self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(f"height must be in [1, {MAX_IMAGE_HEIGHT}], got {self.height}")
        if self.samples < 1:
            raise ValueError(f"samples must be positive, got {self.samples}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer maintains its own state for width/height/depth and delegates
    to the global integrator buffers (which are Taichi fields).

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum path depth.
    """

    def __init__(
        self,
        width: int,
        height: int,
        max_depth: int = MAX_DEPTH,
        seed: int | None = None,
    ) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max MAX_IMAGE_WIDTH).
            height: Image height in pixels (max MAX_IMAGE_HEIGHT).
            max_depth: Maximum path depth.
            seed: Reseed the random streams with this seed. None keeps the
                current streams (seeding with DEFAULT_SEED if never seeded).

        Raises:
            ValueError: If dimensions exceed maximum supported size or
                max_depth is negative.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self._width = width
        self._height = height
        self.max_depth = max_depth
        setup_render_target(width, height)
        if seed is None:
            ensure_seeded()
        else:
            seed_streams(seed)

    @classmethod
    def from_settings(cls, settings: RenderSettings) -> "ProgressiveRenderer":
        """Create a renderer from validated RenderSettings."""
        settings.validate()
        return cls(settings.width, settings.height, settings.max_depth, settings.seed)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self, seed: int | None = None) -> None:
        """Reset the accumulator for a new render.

        Args:
            seed: Optionally reseed the random streams, which makes the next
                render repeat a previous one.
        """
        clear_render_target()
        if seed is not None:
            seed_streams(seed)

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Raises:
            ValueError: If num_samples or batch_size is not positive.

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If num_samples or batch_size is not positive.
        """
        if num_samples < 1:
            raise ValueError(f"num_samples must be positive, got {num_samples}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        start_samples = self.sample_count
        target_samples = start_samples + num_samples
        logger.info(
            "Rendering %dx%d, %d samples per pixel, max depth %d",
            self.width,
            self.height,
            num_samples,
            self.max_depth,
        )

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self.max_depth)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the averaged radiance as a (height, width, 3) float32 array."""
        return get_radiance_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the tone-mapped image as a (height, width, 3) uint8 array."""
        return tone_map_to_uint8(self.get_image_numpy())

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
