"""Preview module for rendered output.

Components:
    export: PPM/PNG serialization and pixel/color conversions

Example:
    >>> from pathtracer.preview import save_png
    >>> save_png(pixels, 400, 225, "output.png")
"""

from pathtracer.preview.export import (
    color_to_pixel,
    compute_rmse,
    pixel_to_color,
    pixels_to_image,
    save_pixels,
    save_png,
    save_ppm,
    write_ppm,
)

__all__ = [
    "write_ppm",
    "save_ppm",
    "save_png",
    "save_pixels",
    "pixels_to_image",
    "color_to_pixel",
    "pixel_to_color",
    "compute_rmse",
]
