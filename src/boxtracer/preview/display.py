"""Tone mapping and Matplotlib-based preview display for rendered images.

This module turns averaged linear radiance into 8-bit display values and can
show the current render in a Matplotlib window.

Tone mapping pipeline, per channel:
    1. Gamma 2 encoding: c -> sqrt(c) (negative and NaN values become 0)
    2. Clamp to [0, 0.999]
    3. Quantize: int(256 * c), giving integers in [0, 255]

Example:
    >>> from boxtracer.preview.display import tone_map_to_uint8, show_preview
    >>> from boxtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(600, 600)
    >>> renderer.render(100)
    >>> pixels = tone_map_to_uint8(renderer.get_image_numpy())
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from boxtracer.core.progressive import ProgressiveRenderer

# Upper clamp before quantization, keeps 256 * c below 256
MAX_DISPLAY_VALUE = 0.999


def tone_map_sqrt(image: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Apply gamma 2 encoding: sqrt(c) per channel.

    Negative and NaN values map to 0; +inf stays +inf and is clamped later.

    Args:
        image: Linear radiance array of any shape.

    Returns:
        Gamma encoded array of the same shape (float64).
    """
    image = np.asarray(image, dtype=np.float64)
    image = np.where(np.isnan(image), 0.0, image)
    return np.sqrt(np.maximum(image, 0.0))


def quantize(image: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Clamp gamma encoded values to [0, 0.999] and scale to [0, 255].

    Args:
        image: Gamma encoded array of any shape.

    Returns:
        uint8 array of the same shape with values int(256 * c).
    """
    clamped = np.clip(np.asarray(image, dtype=np.float64), 0.0, MAX_DISPLAY_VALUE)
    return (256.0 * clamped).astype(np.uint8)


def tone_map_to_uint8(image: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Convert averaged linear radiance to 8-bit display values.

    Args:
        image: Linear radiance array, typically of shape (H, W, 3).

    Returns:
        uint8 array of the same shape.
    """
    return quantize(tone_map_sqrt(image))


def show_preview(
    renderer: ProgressiveRenderer,
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    Shows the tone-mapped image; the sample count is displayed in the title.

    Args:
        renderer: The ProgressiveRenderer instance to display.
        title: Custom title (default shows sample count).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = renderer.get_image_uint8()

    fig, ax = plt.subplots(1, 1, figsize=figsize)

    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = f"Render Preview - {renderer.sample_count} SPP"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
