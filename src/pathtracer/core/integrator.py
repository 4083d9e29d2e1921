"""Path tracing integrator: the color carried back along one ray.

This module implements ``ray_color``, the evaluator at the heart of the
renderer. A ray is intersected with the scene; on a hit the surface material
either absorbs it (black) or scatters it, in which case the result is the
material's attenuation times the color of the scattered ray. A ray that
escapes returns the sky gradient. The bounce budget bounds the recursion: a
path still bouncing when the budget runs out contributes black.

The recursion is unrolled into a loop that carries a running attenuation
product (the throughput), since Taichi functions cannot recurse.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import trace_ray
    >>> from pathtracer.scene.worlds import create_two_sphere_scene
    >>>
    >>> scene, camera = create_two_sphere_scene()
    >>> trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_depth=10)
    (0.5, 0.7, 1.0)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, as_vec3_tuple, make_ray, normalize
from pathtracer.core.rng import seed_stream
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import T_MAX, T_MIN, intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Background
# =============================================================================

# Sky gradient endpoints: horizon (white) to zenith (light blue)
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)


@ti.func
def background(direction: vec3) -> vec3:
    """Sky color seen along a ray that escapes the scene.

    Linear blend between white and light blue keyed on the unit direction's
    y component: t = 0.5 * (y + 1).

    Args:
        direction: Ray direction (any non-zero length).

    Returns:
        (1 - t) * white + t * (0.5, 0.7, 1.0).
    """
    unit_direction = normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the scattering function of the hit material.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, facing the ray.
        front_face: 1 if hit front face, 0 if back face.
        stream: Random stream owned by the calling task.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, stream
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the color arriving along a ray.

    Args:
        ray: The ray to follow.
        max_depth: Bounce budget. 0 or less yields black.
        stream: Random stream owned by the calling task.

    Returns:
        The product of the attenuations along the path times the background
        color where it escapes; black if the path is absorbed or still
        bouncing after max_depth intersections.
    """
    origin = ray.origin
    direction = ray.direction

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(origin, direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * background(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    hit_record.material_id,
                    direction,
                    hit_record.normal,
                    hit_record.front_face,
                    stream,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = hit_record.point
                    direction = scattered_direction

    return color


# =============================================================================
# Host Entry Point
# =============================================================================


_traced_color = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32, seed: ti.i32):
    # Keeps the bounce loop sequential instead of a top-level parallel loop
    ti.loop_config(serialize=True)
    for _ in range(1):
        seed_stream(0, seed)
        _traced_color[None] = ray_color(make_ray(origin, direction), max_depth, 0)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = 50,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Evaluate ray_color for a single ray against the current scene.

    Uses random stream 0. Useful for testing and debugging; production
    rendering goes through ``pathtracer.core.pipeline``.

    Args:
        origin: Ray origin as (x, y, z).
        direction: Ray direction as (x, y, z), non-zero.
        max_depth: Bounce budget.
        seed: Seed for the random stream.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        ValueError: If origin or direction are malformed or direction is zero.
    """
    origin = as_vec3_tuple(origin, "origin")
    direction = as_vec3_tuple(direction, "direction")
    if direction == (0.0, 0.0, 0.0):
        raise ValueError("Ray direction must be non-zero")

    _trace_single_ray(vec3(*origin), vec3(*direction), max_depth, seed)
    color = _traced_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))
