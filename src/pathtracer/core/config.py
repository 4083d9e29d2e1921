"""Image and render configuration.

Plain dataclasses describing what to render: the output image size and the
per-pixel sampling budget. Both validate their fields on construction so the
rendering kernels never see values they cannot handle.

Example:
    >>> from pathtracer.core.config import Image, RenderConfig
    >>> image = Image(width=400, aspect_ratio=16.0 / 9.0)
    >>> image.height
    225
    >>> config = RenderConfig(samples_per_pixel=10, max_depth=8)
"""

import math
from dataclasses import dataclass, field

# Maximum supported image dimensions (render target and random streams are
# preallocated to this size to avoid Taichi kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Smallest image side: pixel UVs divide by (n - 1)
MIN_IMAGE_SIZE = 2

DEFAULT_SAMPLES_PER_PIXEL = 100
DEFAULT_MAX_DEPTH = 50


def _check_dimensions(width: int, height: int) -> None:
    if width < MIN_IMAGE_SIZE or height < MIN_IMAGE_SIZE:
        raise ValueError(
            f"Image dimensions ({width}x{height}) must be at least "
            f"{MIN_IMAGE_SIZE}x{MIN_IMAGE_SIZE}"
        )
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )


@dataclass(frozen=True)
class Image:
    """Output image geometry.

    The height is derived from the width and aspect ratio by rounding, so a
    400-pixel-wide 16:9 image is 225 pixels tall.

    Attributes:
        width: Image width in pixels.
        aspect_ratio: Width divided by height.
        height: Derived image height in pixels.

    Raises:
        ValueError: If the aspect ratio is not positive or either dimension
            falls outside [MIN_IMAGE_SIZE, MAX_IMAGE_*].
    """

    width: int
    aspect_ratio: float
    height: int = field(init=False)

    def __post_init__(self) -> None:
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect_ratio}")
        # Halves round up: 5 wide at 2:1 is 3 tall
        height = math.floor(self.width / self.aspect_ratio + 0.5)
        _check_dimensions(self.width, height)
        object.__setattr__(self, "height", height)

    @classmethod
    def from_size(cls, width: int, height: int) -> "Image":
        """Create an image with explicit width and height."""
        if height <= 0:
            raise ValueError(f"Image height must be positive, got {height}")
        return cls(width=width, aspect_ratio=width / height)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class RenderConfig:
    """Sampling budget for a render.

    Attributes:
        samples_per_pixel: Number of jittered camera rays averaged per pixel.
            Must be at least 1.
        max_depth: Maximum number of bounces per path. A depth of 0 renders
            black everywhere.
    """

    samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
