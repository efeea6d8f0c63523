"""Image export utilities for rendered images.

This module provides functions for saving tone-mapped images to files.

Supported formats:
    - PPM (plain-text P3): header "P3", "<width> <height>", "255", then one
      "<r> <g> <b>" line per pixel, top row first, left to right
    - PNG (8-bit via Pillow)

Example:
    >>> import sys
    >>> from boxtracer.preview.export import write_ppm, save_png
    >>> from boxtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(600, 600)
    >>> renderer.render(100)
    >>> write_ppm(renderer.get_image_uint8(), sys.stdout)
    >>> save_png(renderer, "output.png")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from boxtracer.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)


def _check_image(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")
    return image.astype(np.uint8, copy=False)


def ppm_lines(image: npt.NDArray[np.uint8]):
    """Yield the lines of a P3 image, without line terminators.

    Args:
        image: uint8 array of shape (H, W, 3), row 0 at the top.

    Yields:
        Header lines, then one "<r> <g> <b>" line per pixel.

    Raises:
        ValueError: If the image does not have shape (H, W, 3).
    """
    image = _check_image(image)
    height, width, _ = image.shape
    yield "P3"
    yield f"{width} {height}"
    yield "255"
    for row in image:
        for r, g, b in row:
            yield f"{r} {g} {b}"


def format_ppm(image: npt.NDArray[np.uint8]) -> str:
    """Format a uint8 (H, W, 3) image as P3 text."""
    return "".join(line + "\n" for line in ppm_lines(image))


def write_ppm(image: npt.NDArray[np.uint8], stream: TextIO) -> None:
    """Write a uint8 (H, W, 3) image as P3 text to an open text stream.

    Raises:
        ValueError: If the image does not have shape (H, W, 3).
        OSError: If the stream cannot be written.
    """
    for line in ppm_lines(image):
        stream.write(line)
        stream.write("\n")


def save_ppm(renderer: ProgressiveRenderer, filepath: str) -> None:
    """Save the tone-mapped render as a P3 file.

    Args:
        renderer: The ProgressiveRenderer instance to save.
        filepath: Output file path.

    Raises:
        OSError: If the file cannot be written.
    """
    image = renderer.get_image_uint8()
    with open(filepath, "w", encoding="ascii") as f:
        write_ppm(image, f)
    logger.info("Wrote %dx%d PPM image to %s", image.shape[1], image.shape[0], filepath)


def save_png_from_array(image: npt.NDArray[np.uint8], filepath: str) -> None:
    """Save a uint8 (H, W, 3) image as a PNG file.

    Raises:
        ValueError: If the image does not have shape (H, W, 3).
        OSError: If the file cannot be written.
    """
    pil_image = PILImage.fromarray(_check_image(image))
    pil_image.save(filepath)


def save_png(renderer: ProgressiveRenderer, filepath: str) -> None:
    """Save the tone-mapped render as a PNG file.

    Uses the same tone mapping as the PPM writer.

    Args:
        renderer: The ProgressiveRenderer instance to save.
        filepath: Output file path (should end in .png).

    Raises:
        OSError: If the file cannot be written.
    """
    image = renderer.get_image_uint8()
    save_png_from_array(image, filepath)
    logger.info("Wrote %dx%d PNG image to %s", image.shape[1], image.shape[0], filepath)
