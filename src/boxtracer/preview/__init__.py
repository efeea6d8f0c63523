"""Output and preview utilities.

Provides the tone mapping used by every output path, a Matplotlib preview
window, PPM and PNG writers, and OBJ export of recorded light paths.

Example:
    >>> from boxtracer.preview import show_preview, save_png
    >>> from boxtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(600, 600)
    >>> renderer.render(100)
    >>> show_preview(renderer)
    >>> save_png(renderer, "output.png")
"""

from boxtracer.preview.display import (
    quantize,
    show_preview,
    tone_map_sqrt,
    tone_map_to_uint8,
)
from boxtracer.preview.export import (
    format_ppm,
    save_png,
    save_png_from_array,
    save_ppm,
    write_ppm,
)
from boxtracer.preview.paths import export_paths_to_obj

__all__ = [
    # Display functions
    "show_preview",
    # Tone mapping
    "tone_map_sqrt",
    "quantize",
    "tone_map_to_uint8",
    # Export functions
    "write_ppm",
    "format_ppm",
    "save_ppm",
    "save_png",
    "save_png_from_array",
    "export_paths_to_obj",
]
