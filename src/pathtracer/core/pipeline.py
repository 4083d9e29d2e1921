"""Parallel per-pixel sampling pipeline.

Rendering is a fork-join over pixel tasks. The task set is the full
``(row, col)`` cross product of the image; each task

1. seeds its own random stream (slot ``row * width + col``),
2. averages ``samples_per_pixel`` jittered camera rays through ``ray_color``,
3. gamma-2 corrects, clamps and quantizes the average to 8-bit RGB,
4. writes the result into the render target at ``(row, col)``.

Row 0 is the top of the image: the task inverts the row when computing the
vertical viewport coordinate, so the render target is already in raster
order. Because results are keyed by coordinate and every task draws from its
own stream, the output is identical whether the kernel runs data-parallel or
serialized, and independent of the order tasks complete in.

Rows are submitted in batches so callers can observe progress.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.camera import setup_camera
    >>> from pathtracer.core.config import Image, RenderConfig
    >>> from pathtracer.core.pipeline import render_pixels
    >>> from pathtracer.scene.worlds import create_three_sphere_scene
    >>>
    >>> scene, camera = create_three_sphere_scene()
    >>> setup_camera(camera)
    >>> pixels = render_pixels(Image(400, 16 / 9), RenderConfig(10, 8))
    >>> pixels.shape
    (90000, 3)
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.camera import get_ray, is_camera_ready
from pathtracer.core.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, Image, RenderConfig
from pathtracer.core.integrator import ray_color
from pathtracer.core.rng import random_float, seed_stream

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

DEFAULT_ROWS_PER_BATCH = 16

# Seeds are passed to kernels as i32
MAX_SEED = 2**31 - 1

# =============================================================================
# Render Target
# =============================================================================

# 8-bit RGB keyed by (row, col), preallocated to avoid kernel recompilation
_pixel_buffer = ti.Vector.field(3, dtype=ti.u8, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))


# =============================================================================
# Per-pixel Task
# =============================================================================


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace NaN or infinite channels with zero."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


@ti.func
def sample_pixel_color(
    row: ti.i32,
    col: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    stream: ti.i32,
) -> vec3:
    """Average ``samples`` jittered rays through pixel (row, col).

    Args:
        row: Pixel row, 0 at the top of the image.
        col: Pixel column, 0 at the left.
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Number of rays to average.
        max_depth: Bounce budget per ray.
        stream: Random stream owned by this task (already seeded).

    Returns:
        The linear (not gamma corrected) average color.
    """
    total = vec3(0.0, 0.0, 0.0)
    flipped_row = ti.cast(height - 1 - row, ti.f32)
    for _ in range(samples):
        u = (ti.cast(col, ti.f32) + random_float(stream)) / ti.cast(width - 1, ti.f32)
        v = (flipped_row + random_float(stream)) / ti.cast(height - 1, ti.f32)
        ray = get_ray(u, v, stream)
        total += _sanitize(ray_color(ray, max_depth, stream))
    return total / ti.cast(samples, ti.f32)


@ti.func
def color_to_bytes(color: vec3):
    """Gamma-2 correct, clamp and quantize a linear color.

    Each channel becomes round(255.999 * clamp(sqrt(x), 0, 1)), capped at 255.
    """
    corrected = tm.clamp(ti.sqrt(tm.max(color, vec3(0.0, 0.0, 0.0))), 0.0, 1.0)
    scaled = ti.min(ti.floor(255.999 * corrected + 0.5), 255.0)
    return ti.cast(scaled, ti.u8)


@ti.func
def _render_pixel(
    row: ti.i32,
    col: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
):
    stream = row * width + col
    seed_stream(stream, seed)
    color = sample_pixel_color(row, col, width, height, samples, max_depth, stream)
    _pixel_buffer[row, col] = color_to_bytes(color)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows_parallel(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
):
    for row, col in ti.ndrange((row_start, row_end), width):
        _render_pixel(row, col, width, height, samples, max_depth, seed)


@ti.kernel
def _render_rows_serial(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
):
    ti.loop_config(serialize=True)
    for row, col in ti.ndrange((row_start, row_end), width):
        _render_pixel(row, col, width, height, samples, max_depth, seed)


@ti.kernel
def _render_single_pixel(
    row: ti.i32,
    col: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
) -> ti.types.vector(3, ti.i32):
    # Loops inlined at kernel top level would otherwise run in parallel
    ti.loop_config(serialize=True)
    for _ in range(1):
        _render_pixel(row, col, width, height, samples, max_depth, seed)
    return ti.cast(_pixel_buffer[row, col], ti.i32)


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_render_inputs(seed: int) -> None:
    if not is_camera_ready():
        raise RuntimeError("Camera not set up. Call setup_camera() before rendering.")
    if seed < 0 or seed > MAX_SEED:
        raise ValueError(f"Seed must be in [0, {MAX_SEED}], got {seed}")


def iter_render_batches(
    image: Image,
    config: RenderConfig,
    *,
    seed: int = 0,
    parallel: bool = True,
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
) -> Generator[tuple[int, int], None, None]:
    """Render into the render target batch by batch.

    Args:
        image: Output image geometry.
        config: Sampling budget.
        seed: Render seed; the same seed reproduces the same image.
        parallel: Use the data-parallel kernel (True) or the serialized one.
        rows_per_batch: Rows rendered per kernel launch.

    Yields:
        Tuple of (rows_done, total_rows) after each batch.

    Raises:
        RuntimeError: If the camera has not been set up.
        ValueError: If seed or rows_per_batch is out of range.
    """
    _check_render_inputs(seed)
    if rows_per_batch < 1:
        raise ValueError(f"rows_per_batch must be at least 1, got {rows_per_batch}")

    width, height = image.width, image.height
    kernel = _render_rows_parallel if parallel else _render_rows_serial
    logger.info(
        "Rendering %dx%d, %d samples/pixel, max depth %d (%s)",
        width,
        height,
        config.samples_per_pixel,
        config.max_depth,
        "parallel" if parallel else "serial",
    )

    start = time.perf_counter()
    for row_start in range(0, height, rows_per_batch):
        row_end = min(row_start + rows_per_batch, height)
        kernel(
            row_start,
            row_end,
            width,
            height,
            config.samples_per_pixel,
            config.max_depth,
            seed,
        )
        logger.debug("Rendered rows %d-%d of %d", row_start, row_end - 1, height)
        yield row_end, height

    ti.sync()
    logger.info("Render finished in %.2fs", time.perf_counter() - start)


def read_pixels(image: Image) -> npt.NDArray[np.uint8]:
    """Copy the active region of the render target in raster order.

    Returns:
        uint8 array of shape (width * height, 3), rows top to bottom and
        columns left to right.
    """
    buffer = _pixel_buffer.to_numpy()[: image.height, : image.width, :]
    return np.ascontiguousarray(buffer).reshape(image.height * image.width, 3)


def render_pixels(
    image: Image,
    config: RenderConfig,
    *,
    seed: int = 0,
    parallel: bool = True,
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    callback: ProgressCallback | None = None,
) -> npt.NDArray[np.uint8]:
    """Render the current scene through the current camera.

    Args:
        image: Output image geometry.
        config: Sampling budget.
        seed: Render seed.
        parallel: Use the data-parallel kernel (True) or the serialized one.
        rows_per_batch: Rows rendered per kernel launch.
        callback: Optional progress callback, called after every batch with
            (rows_done, total_rows).

    Returns:
        uint8 array of shape (width * height, 3) in raster order (row 0 is
        the top of the image).

    Raises:
        RuntimeError: If the camera has not been set up.
    """
    for done, total in iter_render_batches(
        image, config, seed=seed, parallel=parallel, rows_per_batch=rows_per_batch
    ):
        if callback is not None:
            callback(done, total)
    return read_pixels(image)


def render_image(
    image: Image,
    config: RenderConfig,
    **kwargs,
) -> npt.NDArray[np.uint8]:
    """Render and return a (height, width, 3) uint8 array.

    Accepts the same keyword arguments as render_pixels.
    """
    pixels = render_pixels(image, config, **kwargs)
    return pixels.reshape(image.height, image.width, 3)


def render_pixel(
    row: int,
    col: int,
    image: Image,
    config: RenderConfig,
    seed: int = 0,
) -> tuple[int, int, int]:
    """Render a single pixel task and return its 8-bit color.

    Produces exactly the value render_pixels writes for (row, col) with the
    same seed. Useful for testing and debugging.

    Raises:
        IndexError: If (row, col) lies outside the image.
        RuntimeError: If the camera has not been set up.
    """
    if not (0 <= row < image.height and 0 <= col < image.width):
        raise IndexError(f"Pixel ({row}, {col}) outside {image.width}x{image.height} image")
    _check_render_inputs(seed)
    color = _render_single_pixel(
        row,
        col,
        image.width,
        image.height,
        config.samples_per_pixel,
        config.max_depth,
        seed,
    )
    return (int(color[0]), int(color[1]), int(color[2]))


def pixel_coordinates(image: Image) -> list[tuple[int, int]]:
    """The (row, col) key of each entry of render_pixels, in order."""
    return [(row, col) for row in range(image.height) for col in range(image.width)]
