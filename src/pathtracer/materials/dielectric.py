"""Clear refractive materials such as glass, water or diamond.

On every hit a dielectric either reflects or refracts, never both:

    - If Snell's law has no solution (``ratio * sin(theta) > 1``) the ray is
      totally internally reflected.
    - Otherwise it reflects with the probability given by Schlick's
      approximation and refracts the rest of the time.

``ratio`` is ``1 / ior`` for a ray entering through the front face and
``ior`` for one leaving. Nothing is absorbed, so attenuation is white.

Typical indices: air 1.0, water 1.33, glass 1.5, diamond 2.4.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import normalize, reflect, refract, schlick_reflectance
from pathtracer.core.rng import random_float

vec3 = tm.vec3


@ti.dataclass
class DielectricMaterial:
    ior: ti.f32


@ti.func
def _refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def _cos_sin(unit_direction: vec3, normal: vec3):
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = tm.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))
    return cos_theta, sin_theta


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Reflect or refract a ray at a dielectric boundary.

    Args:
        ior: Index of refraction of the material.
        incident_direction: Incoming direction of any length.
        normal: Unit normal on the side the ray arrived from.
        front_face: 1 when the ray is entering the material.
        stream: The caller's random stream slot.

    Returns:
        ``(direction, white, 1)``; the path always continues.
    """
    ratio = _refraction_ratio(ior, front_face)
    unit_direction = normalize(incident_direction)
    cos_theta, sin_theta = _cos_sin(unit_direction, normal)

    direction = vec3(0.0, 0.0, 0.0)
    if ratio * sin_theta > 1.0 or schlick_reflectance(cos_theta, ratio) > random_float(stream):
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)

    return direction, vec3(1.0, 1.0, 1.0), 1


@ti.func
def will_reflect(ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32) -> ti.i32:
    """1 if a unit ``incident_direction`` is totally internally reflected, else 0."""
    _, sin_theta = _cos_sin(incident_direction, normal)
    result = 0
    if _refraction_ratio(ior, front_face) * sin_theta > 1.0:
        result = 1
    return result


@ti.func
def fresnel_reflectance(
    ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32
) -> ti.f32:
    """Schlick reflectance for a unit ``incident_direction``, in [0, 1]."""
    cos_theta, _ = _cos_sin(incident_direction, normal)
    return schlick_reflectance(cos_theta, _refraction_ratio(ior, front_face))


MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Store an index of refraction and return its slot in the registry.

    Indices below 1 are allowed; they model a bubble of thinner medium, such
    as air inside water.

    Raises:
        ValueError: If ior is not positive.
        RuntimeError: If all MAX_DIELECTRIC_MATERIALS slots are taken.
    """
    if not ior > 0.0:
        raise ValueError(f"Index of refraction must be positive, got {ior}")

    slot = int(num_dielectric_materials[None])
    if slot == MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[slot] = ior
    num_dielectric_materials[None] = slot + 1
    return slot


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """scatter_dielectric with the index read from registry slot ``material_idx``."""
    return scatter_dielectric(
        get_dielectric_ior(material_idx), incident_direction, normal, front_face, stream
    )
