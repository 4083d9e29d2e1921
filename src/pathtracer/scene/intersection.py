"""Sphere store and ray queries against it.

Spheres are kept as parallel Taichi fields (center, radius, material ID) and
every query is a linear scan. ``intersect_scene`` returns the nearest hit in
``[t_min, t_max]``, tagged with the material of the sphere that was struck.

The store is filled from the host with ``add_sphere`` (normally through
``SceneManager``) and read by kernels during a render.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere

vec3 = tm.vec3

# Lower bound keeps a bounced ray from re-hitting the surface it left
T_MIN = 0.001
T_MAX = tm.inf

MAX_SPHERES = 1024


@ti.dataclass
class SceneHitRecord:
    """HitRecord plus the material of the struck sphere.

    Attributes:
        hit: 1 on a hit, 0 on a miss.
        t: Ray parameter of the hit.
        point: Hit position.
        normal: Unit normal facing against the ray.
        front_face: 1 if the ray arrived from outside the sphere.
        material_id: Scene material ID, or -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Empty the store. Old entries stay in the fields until overwritten."""
    num_spheres[None] = 0


def add_sphere(center, radius: float, material_id: int = 0) -> int:
    """Append a sphere and return its index.

    Args:
        center: Any three-component value accepted by a Taichi vector field.
        radius: Must be non-zero; a negative radius flips the normals inward.
        material_id: Scene material ID reported for hits on this sphere.

    Raises:
        ValueError: If radius is zero.
        RuntimeError: If the store already holds MAX_SPHERES spheres.
    """
    if radius == 0.0:
        raise ValueError("Sphere radius must be non-zero")

    index = int(num_spheres[None])
    if index == MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

    sphere_centers[index] = center
    sphere_radii[index] = radius
    sphere_material_ids[index] = material_id
    num_spheres[None] = index + 1
    return index


def get_sphere_count() -> int:
    return int(num_spheres[None])


@ti.func
def _stored_sphere(i: ti.i32) -> Sphere:
    return Sphere(center=sphere_centers[i], radius=sphere_radii[i])


@ti.func
def _with_material(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Nearest sphere hit with ``t_min <= t <= t_max``.

    Each hit tightens the upper bound, so later spheres only count when they
    are closer. On a miss the record has ``hit == 0`` and ``material_id == -1``.
    """
    nearest = SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )
    bound = t_max

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray_origin, ray_direction, _stored_sphere(i), t_min, bound)
        if rec.hit == 1:
            bound = rec.t
            nearest = _with_material(rec, sphere_material_ids[i])

    return nearest
