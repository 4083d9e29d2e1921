"""Diffuse (Lambertian) scattering.

The bounce direction is the surface normal plus a uniform random unit vector.
Sampling that way already follows the cosine falloff of an ideal diffuser, so
no PDF weighting is needed and the attenuation is simply the albedo. A diffuse
hit never terminates a path.

Usage inside a kernel::

    direction, attenuation, did_scatter = scatter_lambertian(albedo, normal, stream)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import NEAR_ZERO_TOLERANCE, near_zero_within, random_unit_vector

vec3 = tm.vec3


@ti.dataclass
class LambertianMaterial:
    albedo: vec3


@ti.func
def diffuse_direction(normal: vec3, unit_vector: vec3, tolerance: ti.f32) -> vec3:
    """``normal + unit_vector``, or ``normal`` when every component of the sum
    is below ``tolerance`` in magnitude.
    """
    direction = normal + unit_vector

    # The unit vector can land almost exactly on -normal
    if near_zero_within(direction, tolerance):
        direction = normal

    return direction


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, stream: ti.i32):
    """Bounce a ray off a diffuse surface.

    Args:
        albedo: Per-channel reflectance.
        normal: Unit normal on the side the ray arrived from.
        stream: The caller's random stream slot.

    Returns:
        ``(direction, albedo, 1)``. The direction is not normalized.
    """
    direction = diffuse_direction(normal, random_unit_vector(stream), NEAR_ZERO_TOLERANCE)
    return direction, albedo, 1


# Registry of scene materials; slot i holds the albedo of the i-th diffuse
# material registered through SceneManager.
MAX_LAMBERTIAN_MATERIALS = 1024

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def validate_albedo(albedo) -> None:
    """Reject albedos that are not three reflectances in [0, 1].

    A channel above 1 would let a surface emit more light than it receives.

    Raises:
        ValueError: On a wrong component count or an out-of-range channel.
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    bad = [(channel, value) for channel, value in zip("rgb", albedo) if not 0.0 <= value <= 1.0]
    if bad:
        channel, value = bad[0]
        raise ValueError(f"Albedo {channel} = {value} is outside [0, 1]")


def clear_lambertian_materials() -> None:
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store a diffuse albedo and return its slot in the registry.

    Raises:
        ValueError: If the albedo fails validate_albedo.
        RuntimeError: If all MAX_LAMBERTIAN_MATERIALS slots are taken.
    """
    validate_albedo(albedo)

    slot = int(num_lambertian_materials[None])
    if slot == MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[slot] = vec3(*albedo)
    num_lambertian_materials[None] = slot + 1
    return slot


def get_lambertian_material_count() -> int:
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3, stream: ti.i32):
    """scatter_lambertian with the albedo read from registry slot ``material_idx``."""
    return scatter_lambertian(get_lambertian_albedo(material_idx), normal, stream)
