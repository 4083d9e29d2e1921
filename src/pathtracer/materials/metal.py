"""Reflective metal scattering.

The incoming direction is mirrored about the normal, ``r = d - 2(d.n)n``, and
then nudged by ``fuzz`` times a random point in the unit ball. A fuzz of 0 is
a perfect mirror; larger values give brushed-looking reflections. If the
nudge pushes the direction into the surface, the ray is absorbed.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import normalize, random_in_unit_sphere, reflect
from pathtracer.materials.lambertian import validate_albedo

vec3 = tm.vec3


@ti.dataclass
class MetalMaterial:
    albedo: vec3
    fuzz: ti.f32


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Reflect a ray off a metal surface.

    Args:
        albedo: Per-channel reflectance.
        fuzz: Perturbation radius in [0, 1].
        incident_direction: Incoming direction of any length.
        normal: Unit normal on the side the ray arrived from.
        stream: The caller's random stream slot.

    Returns:
        ``(direction, albedo, did_scatter)`` where did_scatter is 0 when the
        fuzzed direction does not leave the surface.
    """
    direction = reflect(normalize(incident_direction), normal)
    direction += fuzz * random_in_unit_sphere(stream)

    did_scatter = 0
    if tm.dot(direction, normal) > 0.0:
        did_scatter = 1

    return direction, albedo, did_scatter


MAX_METAL_MATERIALS = 1024

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzz = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    num_metal_materials[None] = 0


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Store a metal and return its slot in the registry.

    Raises:
        ValueError: If the albedo fails validate_albedo or fuzz is outside
            [0, 1].
        RuntimeError: If all MAX_METAL_MATERIALS slots are taken.
    """
    validate_albedo(albedo)
    if not 0.0 <= fuzz <= 1.0:
        raise ValueError(f"Fuzz = {fuzz} is outside [0, 1]")

    slot = int(num_metal_materials[None])
    if slot == MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[slot] = vec3(*albedo)
    metal_fuzz[slot] = fuzz
    num_metal_materials[None] = slot + 1
    return slot


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzz[material_idx]


@ti.func
def scatter_metal_by_id(material_idx: ti.i32, incident_direction: vec3, normal: vec3, stream: ti.i32):
    """scatter_metal with albedo and fuzz read from registry slot ``material_idx``."""
    return scatter_metal(
        get_metal_albedo(material_idx),
        get_metal_fuzz(material_idx),
        incident_direction,
        normal,
        stream,
    )
