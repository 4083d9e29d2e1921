"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass, the vector operations the renderer is
built from (reflection, refraction, Schlick reflectance), and rejection
samplers for Monte Carlo scattering. All Taichi functions are designed to run
inside kernels; the samplers draw from a caller-owned random stream (see
``pathtracer.core.rng``) so results are reproducible per pixel task.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.rng import random_float

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Per-component threshold below which a scatter direction counts as degenerate
NEAR_ZERO_TOLERANCE = 1e-8

# Much tighter threshold used by some renderers; available via near_zero_within
LEGACY_NEAR_ZERO_TOLERANCE = 1e-18

# Rejection samplers give up after this many attempts
MAX_REJECTION_ATTEMPTS = 100


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; camera rays in particular are not normalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Args:
        v: The input vector. Must be non-zero.

    Returns:
        v / |v|.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        incident - 2 (incident . normal) normal.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract_perpendicular(unit_incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Component of the refracted ray perpendicular to the normal.

    Args:
        unit_incident: Unit incoming direction.
        normal: Unit surface normal opposing the incoming direction.
        eta: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        eta * (uv + cos_theta * n), with cos_theta = min(1, -uv . n).
    """
    cos_theta = ti.min(1.0, tm.dot(-unit_incident, normal))
    return eta * (unit_incident + cos_theta * normal)


@ti.func
def refract_parallel(r_perp: vec3, normal: vec3) -> vec3:
    """Component of the refracted ray parallel to the normal.

    The absolute value under the square root keeps the result finite when
    the perpendicular part exceeds unit length (total internal reflection).
    """
    return -ti.sqrt(ti.abs(1.0 - tm.dot(r_perp, r_perp))) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The caller is responsible for checking total internal reflection before
    calling; this function always returns a finite vector.

    Args:
        unit_incident: Unit incoming direction.
        normal: Unit surface normal opposing the incoming direction.
        eta: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction.
    """
    r_perp = refract_perpendicular(unit_incident, normal, eta)
    return r_perp + refract_parallel(r_perp, normal)


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Approximate Fresnel reflectance with Schlick's polynomial.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        r0 + (1 - r0)(1 - cosine)^5 with r0 = ((1 - ref_idx)/(1 + ref_idx))^2.
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero_within(v: vec3, tolerance: ti.f32) -> ti.i32:
    """Check whether every component of v is below tolerance in magnitude.

    Returns:
        1 if |v.x|, |v.y| and |v.z| are all < tolerance, 0 otherwise.
    """
    return ti.abs(v.x) < tolerance and ti.abs(v.y) < tolerance and ti.abs(v.z) < tolerance


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero using NEAR_ZERO_TOLERANCE."""
    return near_zero_within(v, NEAR_ZERO_TOLERANCE)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit sphere.

    Uses rejection sampling over the [-1, 1]^3 cube.

    Args:
        stream: Random stream owned by the calling task.

    Returns:
        A random point with squared length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            candidate = vec3(
                random_float(stream) * 2.0 - 1.0,
                random_float(stream) * 2.0 - 1.0,
                random_float(stream) * 2.0 - 1.0,
            )
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for thin-lens defocus blur.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            candidate = vec3(
                random_float(stream) * 2.0 - 1.0,
                random_float(stream) * 2.0 - 1.0,
                0.0,
            )
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = True
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    p = random_in_unit_sphere(stream)
    result = vec3(0.0, 1.0, 0.0)
    # Rejection may land on the origin; fall back to a fixed axis
    if length_squared(p) > 0.0:
        result = normalize(p)
    return result


@ti.func
def random_in_hemisphere(normal: vec3, stream: ti.i32) -> vec3:
    """Generate a random point in the unit ball on the normal's side.

    Args:
        normal: Normal defining the hemisphere.
        stream: Random stream owned by the calling task.

    Returns:
        A sample from random_in_unit_sphere, negated if it lies against the
        normal.
    """
    in_sphere = random_in_unit_sphere(stream)
    result = in_sphere
    if tm.dot(in_sphere, normal) <= 0.0:
        result = -in_sphere
    return result


# =============================================================================
# Host-side helpers
# =============================================================================


def vector_component(v, index: int) -> float:
    """Return component ``index`` (0=x, 1=y, 2=z) of a 3-vector.

    Raises:
        IndexError: If index is not 0, 1 or 2.
    """
    if index not in (0, 1, 2):
        raise IndexError(f"Vector3 index must be 0, 1 or 2, got {index}")
    return float(v[index])


def as_vec3_tuple(value, name: str = "value") -> tuple[float, float, float]:
    """Validate and convert a 3-component sequence into a float tuple.

    Args:
        value: Any sequence (tuple, list, numpy array, Taichi vector).
        name: Parameter name used in the error message.

    Returns:
        (x, y, z) as Python floats.

    Raises:
        ValueError: If value does not have exactly three components.
    """
    try:
        components = tuple(float(c) for c in value)
    except TypeError as e:
        raise ValueError(f"{name} must be a 3-component sequence, got {value!r}") from e
    if len(components) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(components)}")
    return components
