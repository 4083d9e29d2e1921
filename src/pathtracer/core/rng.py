"""Per-task random number streams for reproducible parallel sampling.

Every pixel task owns one slot in a preallocated pool of 32-bit PCG
generator states. A slot is seeded from ``(seed, stream)`` before use, so the
sequence a task draws depends only on the render seed and the task's pixel,
never on which thread runs it or in what order. This is what makes the
parallel and serialized render kernels produce identical images.

The generator is the PCG RXS-M-XS 32-bit variant: an LCG state advance
followed by a random xorshift, multiply, xorshift output permutation.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.rng import seed_stream, random_float
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     seed_stream(0, 42)
    ...     return random_float(0)
"""

import taichi as ti

from pathtracer.core.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH

# One stream per pixel of the largest supported image
MAX_STREAMS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

# PCG constants (all below 2**31 so they survive the i32 literal path)
PCG_MULTIPLIER = 747796405
PCG_INCREMENT = 1013904223
PCG_OUTPUT_MULTIPLIER = 277803737

# 2**-24: maps the top 24 bits of a draw onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0

_stream_states = ti.field(dtype=ti.u32, shape=(MAX_STREAMS,))


@ti.func
def _pcg_permute(state: ti.u32) -> ti.u32:
    """Apply the RXS-M-XS output permutation to a generator state."""
    shift = (state >> ti.cast(28, ti.u32)) + ti.cast(4, ti.u32)
    word = ((state >> shift) ^ state) * ti.cast(PCG_OUTPUT_MULTIPLIER, ti.u32)
    return (word >> ti.cast(22, ti.u32)) ^ word


@ti.func
def _pcg_advance(state: ti.u32) -> ti.u32:
    return state * ti.cast(PCG_MULTIPLIER, ti.u32) + ti.cast(PCG_INCREMENT, ti.u32)


@ti.func
def pcg_hash(value: ti.u32) -> ti.u32:
    """Hash a 32-bit value with one PCG step.

    Args:
        value: Input value.

    Returns:
        A well-mixed 32-bit hash of the input.
    """
    return _pcg_permute(_pcg_advance(value))


@ti.func
def seed_stream(stream: ti.i32, seed: ti.i32):
    """Initialize a stream slot from a render seed and the slot index.

    Args:
        stream: Slot index in [0, MAX_STREAMS).
        seed: Render seed shared by all tasks of one render.
    """
    mixed = pcg_hash(ti.cast(stream, ti.u32))
    _stream_states[stream] = pcg_hash(ti.cast(seed, ti.u32) ^ mixed)


@ti.func
def next_u32(stream: ti.i32) -> ti.u32:
    """Advance a stream and return its next 32-bit output."""
    old = _stream_states[stream]
    _stream_states[stream] = _pcg_advance(old)
    return _pcg_permute(old)


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1) from a stream.

    Args:
        stream: Slot index owned by the calling task.

    Returns:
        A float in [0, 1) with 24 bits of randomness.
    """
    bits = next_u32(stream) >> ti.cast(8, ti.u32)
    return ti.cast(bits, ti.f32) * _INV_2_24


@ti.func
def random_range(lo: ti.f32, hi: ti.f32, stream: ti.i32) -> ti.f32:
    """Draw a uniform float in [lo, hi) from a stream."""
    return lo + (hi - lo) * random_float(stream)


@ti.kernel
def _seed_streams_kernel(seed: ti.i32, count: ti.i32):
    for i in range(count):
        seed_stream(i, seed)


def seed_streams(seed: int = 0, count: int = 1) -> None:
    """Seed the first ``count`` stream slots from the host.

    Args:
        seed: Render seed.
        count: Number of slots to seed.

    Raises:
        ValueError: If count is outside [1, MAX_STREAMS].
    """
    if count < 1 or count > MAX_STREAMS:
        raise ValueError(f"Stream count must be in [1, {MAX_STREAMS}], got {count}")
    _seed_streams_kernel(seed, count)
