"""Core rendering module.

Components:
    config: Image geometry and sampling budget (Image, RenderConfig)
    rng: Per-task random streams
    ray: Ray data structure, vector operations and rejection samplers
    integrator: ray_color, the path-tracing evaluator
    pipeline: Parallel per-pixel sampling into an 8-bit render target
    renderer: Renderer class wrapping the pipeline

All compute-intensive operations use Taichi kernels.
"""

from .config import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    Image,
    RenderConfig,
)
from .ray import (
    LEGACY_NEAR_ZERO_TOLERANCE,
    NEAR_ZERO_TOLERANCE,
    Ray,
    as_vec3_tuple,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    near_zero_within,
    normalize,
    random_in_hemisphere,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    refract_parallel,
    refract_perpendicular,
    schlick_reflectance,
    vec3,
    vector_component,
)
from .rng import random_float, random_range, seed_stream, seed_streams

# Note: integrator, pipeline and renderer are NOT imported here to avoid
# circular imports (they depend on scene and camera, which depend on ray).
# Import them directly, e.g. from pathtracer.core.renderer import Renderer.

__all__ = [
    "Image",
    "RenderConfig",
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "refract_perpendicular",
    "refract_parallel",
    "schlick_reflectance",
    "near_zero",
    "near_zero_within",
    "NEAR_ZERO_TOLERANCE",
    "LEGACY_NEAR_ZERO_TOLERANCE",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_hemisphere",
    "random_in_unit_disk",
    "vector_component",
    "as_vec3_tuple",
    "seed_stream",
    "seed_streams",
    "random_float",
    "random_range",
]
