"""Image export utilities for rendered images.

This module serializes the 8-bit pixel arrays produced by the rendering
pipeline.

Supported formats:
    - PPM (plain-text P3, no dependencies)
    - PNG (via Pillow)

It also provides the host-side conversions between linear-after-gamma float
colors and 8-bit pixels, matching the quantization the render kernels use.

Example:
    >>> from pathtracer.preview.export import save_png, save_ppm
    >>> from pathtracer.core.pipeline import render_pixels
    >>>
    >>> pixels = render_pixels(image, config)
    >>> save_ppm(pixels, image.width, image.height, "output.ppm")
    >>> save_png(pixels, image.width, image.height, "output.png")
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Scale used when mapping [0, 1] to bytes
PIXEL_SCALE = 255.999

PPM_MAX_VALUE = 255


def _clamp(x: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, x))


def color_to_pixel(color) -> tuple[int, int, int]:
    """Quantize a [0, 1] RGB color to 8-bit.

    Each channel becomes round(255.999 * clamp(x)), capped at 255. NaN
    channels map to 0.

    Args:
        color: Any 3-component sequence of floats.

    Returns:
        (r, g, b) integers in [0, 255].
    """
    result = []
    for x in color:
        x = float(x)
        if math.isnan(x):
            x = 0.0
        result.append(min(math.floor(PIXEL_SCALE * _clamp(x) + 0.5), PPM_MAX_VALUE))
    return (result[0], result[1], result[2])


def pixel_to_color(pixel) -> tuple[float, float, float]:
    """Map an 8-bit pixel back to floats (channel / 255.999)."""
    return (
        pixel[0] / PIXEL_SCALE,
        pixel[1] / PIXEL_SCALE,
        pixel[2] / PIXEL_SCALE,
    )


def _as_pixel_rows(pixels, width: int, height: int) -> npt.NDArray[np.uint8]:
    """Validate and flatten pixels to a (width * height, 3) uint8 array.

    Raises:
        ValueError: If the dimensions are not positive or the pixel count
            does not match width * height.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    array = np.asarray(pixels)
    if array.size != width * height * 3:
        raise ValueError(
            f"Expected {width * height} pixels for a {width}x{height} image, "
            f"got array of shape {array.shape}"
        )
    return array.reshape(width * height, 3).astype(np.uint8)


def write_ppm(stream: TextIO, width: int, height: int, pixels) -> int:
    """Write pixels as a plain-text PPM (P3) image.

    Format: "P3", then "width height", then "255" on separate lines,
    followed by one "r g b" line per pixel in raster order.

    Args:
        stream: Writable text stream.
        width: Image width in pixels.
        height: Image height in pixels.
        pixels: uint8 array-like with width * height RGB triples, rows top
            to bottom.

    Returns:
        Number of bytes written.

    Raises:
        ValueError: If the pixel count does not match the dimensions.
    """
    rows = _as_pixel_rows(pixels, width, height)

    written = stream.write(f"P3\n{width} {height}\n{PPM_MAX_VALUE}\n")
    lines = "".join(f"{r} {g} {b}\n" for r, g, b in rows.tolist())
    written += stream.write(lines)
    return written


def save_ppm(pixels, width: int, height: int, filepath: str | Path) -> int:
    """Save pixels as a plain-text PPM file.

    Returns:
        Number of bytes written.
    """
    with open(filepath, "w", encoding="ascii", newline="\n") as f:
        return write_ppm(f, width, height, pixels)


def pixels_to_image(pixels, width: int, height: int) -> PILImage.Image:
    """Wrap raster-order pixels in a Pillow RGB image."""
    rows = _as_pixel_rows(pixels, width, height)
    return PILImage.fromarray(rows.reshape(height, width, 3))


def save_png(pixels, width: int, height: int, filepath: str | Path) -> None:
    """Save raster-order pixels as a PNG file using Pillow."""
    pixels_to_image(pixels, width, height).save(filepath)


def save_pixels(pixels, width: int, height: int, filepath: str | Path) -> None:
    """Save pixels choosing the format from the file extension.

    Raises:
        ValueError: If the extension is neither .ppm nor .png.
    """
    suffix = Path(filepath).suffix.lower()
    if suffix == ".ppm":
        save_ppm(pixels, width, height, filepath)
    elif suffix == ".png":
        save_png(pixels, width, height, filepath)
    else:
        raise ValueError(f"Unsupported output format {suffix!r}; use .ppm or .png")


def compute_rmse(
    image_a: npt.NDArray[np.number],
    image_b: npt.NDArray[np.number],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
