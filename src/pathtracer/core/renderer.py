"""Renderer wrapper around the sampling pipeline.

This module provides a convenient object-oriented interface to the pipeline:
- One-shot rendering with an optional progress callback
- Generator-based rendering that yields after every row batch
- Access to the result as raster-order pixels or a (height, width, 3) image
- Saving to PPM or PNG

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.config import Image, RenderConfig
    >>> from pathtracer.core.renderer import Renderer
    >>> from pathtracer.scene.worlds import create_three_sphere_scene
    >>>
    >>> scene, camera = create_three_sphere_scene()
    >>> renderer = Renderer(camera, Image(400, 16 / 9), RenderConfig(100, 50))
    >>> renderer.render()
    >>> renderer.save_png("spheres.png")
"""

from collections.abc import Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from pathtracer.camera.camera import Camera, setup_camera
from pathtracer.core.config import Image, RenderConfig
from pathtracer.core.pipeline import (
    DEFAULT_ROWS_PER_BATCH,
    ProgressCallback,
    iter_render_batches,
    read_pixels,
)
from pathtracer.preview.export import save_png, save_ppm


class Renderer:
    """Renders the current scene through a camera into an 8-bit image.

    The scene itself lives in the global Taichi stores populated by
    SceneManager; the renderer owns the camera, the image geometry and the
    sampling settings.

    Attributes:
        camera: The camera configuration.
        image: Output image geometry.
        config: Sampling budget.
        seed: Render seed.
        parallel: Whether to use the data-parallel kernel.
    """

    def __init__(
        self,
        camera: Camera,
        image: Image,
        config: RenderConfig | None = None,
        *,
        seed: int = 0,
        parallel: bool = True,
        rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    ) -> None:
        """Configure the renderer and set up the camera.

        Raises:
            ValueError: If the camera parameters are degenerate.
        """
        self.camera = camera
        self.image = image
        self.config = config if config is not None else RenderConfig()
        self.seed = seed
        self.parallel = parallel
        self.rows_per_batch = rows_per_batch
        self._pixels: npt.NDArray[np.uint8] | None = None
        setup_camera(camera)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def is_rendered(self) -> bool:
        return self._pixels is not None

    def render_progressive(self) -> Generator[tuple[int, int], None, None]:
        """Render, yielding (rows_done, total_rows) after every batch.

        The result is available from get_pixels() once the generator is
        exhausted.
        """
        self._pixels = None
        # Another renderer may have replaced the camera since __init__
        setup_camera(self.camera)
        yield from iter_render_batches(
            self.image,
            self.config,
            seed=self.seed,
            parallel=self.parallel,
            rows_per_batch=self.rows_per_batch,
        )
        self._pixels = read_pixels(self.image)

    def render(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.uint8]:
        """Render the full image.

        Args:
            callback: Optional progress callback receiving
                (rows_done, total_rows) after each batch.

        Returns:
            uint8 array of shape (width * height, 3) in raster order.
        """
        for done, total in self.render_progressive():
            if callback is not None:
                callback(done, total)
        return self.get_pixels()

    def get_pixels(self) -> npt.NDArray[np.uint8]:
        """Return the last render as a (width * height, 3) uint8 array.

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        if self._pixels is None:
            raise RuntimeError("Nothing rendered yet. Call render() first.")
        return self._pixels

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Return the last render as a (height, width, 3) uint8 array."""
        return self.get_pixels().reshape(self.height, self.width, 3)

    def save_ppm(self, filepath: str | Path) -> int:
        """Save the last render as plain-text PPM; returns bytes written."""
        return save_ppm(self.get_pixels(), self.width, self.height, filepath)

    def save_png(self, filepath: str | Path) -> None:
        """Save the last render as PNG."""
        save_png(self.get_pixels(), self.width, self.height, filepath)

    def __repr__(self) -> str:
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples={self.config.samples_per_pixel}, max_depth={self.config.max_depth})"
        )
