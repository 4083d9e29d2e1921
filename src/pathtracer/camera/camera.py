"""Thin-lens camera model for primary ray generation.

This module implements a positionable camera with defocus blur:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees or radians
- Arbitrary aspect ratios
- A thin lens of configurable aperture focused at focus_dist

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits on the focal plane, focus_dist in front of the camera.
Primary rays start at a random point on the lens disk and pass through the
viewport point for (s, t); points on the focal plane are sharp, everything
else is blurred in proportion to the aperture. An aperture of 0 gives a
pinhole camera.

Setup happens host-side with NumPy; the resulting vectors are written to
Taichi fields so ``get_ray`` can run inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.camera import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     lookfrom=(3.0, 3.0, 2.0),
    ...     lookat=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=16.0 / 9.0,
    ...     aperture=0.1,
    ...     focus_dist=5.196,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5, 0)  # Ray through image center, stream 0
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, as_vec3_tuple, make_ray, random_in_unit_disk, vec3

# Vectors shorter than this are treated as degenerate during setup
_DEGENERATE_LENGTH = 1e-12

VFOV_UNITS = ("degrees", "radians")

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for a thin-lens perspective camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view, in the unit named by vfov_unit.
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 disables defocus blur.
        focus_dist: Distance from the camera to the plane of perfect focus.
        vfov_unit: "degrees" (default) or "radians".
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0
    vfov_unit: str = "degrees"

    def vfov_radians(self) -> float:
        """Return the vertical field of view in radians.

        Raises:
            ValueError: If vfov_unit is not "degrees" or "radians".
        """
        if self.vfov_unit == "degrees":
            return math.radians(self.vfov)
        if self.vfov_unit == "radians":
            return float(self.vfov)
        raise ValueError(f"vfov_unit must be one of {VFOV_UNITS}, got {self.vfov_unit!r}")

    def validate(self) -> None:
        """Check the scalar parameters.

        Raises:
            ValueError: If the field of view is outside (0, pi), or the
                aspect ratio or focus distance is not positive, or the
                aperture is negative.
        """
        theta = self.vfov_radians()
        if not 0.0 < theta < math.pi:
            raise ValueError(f"Vertical field of view must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect_ratio}")
        if self.focus_dist <= 0.0:
            raise ValueError(f"Focus distance must be positive, got {self.focus_dist}")
        if self.aperture < 0.0:
            raise ValueError(f"Aperture must be non-negative, got {self.aperture}")

    def compute_basis(self) -> dict[str, np.ndarray]:
        """Compute the camera frame and viewport vectors with NumPy.

        Returns:
            Dictionary with origin, u, v, w, horizontal, vertical and
            lower_left as float64 arrays.

        Raises:
            ValueError: If the parameters are invalid, lookfrom equals
                lookat, or vup is parallel to the view direction.
        """
        self.validate()

        lookfrom = np.array(as_vec3_tuple(self.lookfrom, "lookfrom"), dtype=np.float64)
        lookat = np.array(as_vec3_tuple(self.lookat, "lookat"), dtype=np.float64)
        vup = np.array(as_vec3_tuple(self.vup, "vup"), dtype=np.float64)

        h = math.tan(self.vfov_radians() / 2.0)
        viewport_height = 2.0 * h
        viewport_width = self.aspect_ratio * viewport_height

        # w points from lookat toward lookfrom (backward)
        w = lookfrom - lookat
        w_len = np.linalg.norm(w)
        if w_len < _DEGENERATE_LENGTH:
            raise ValueError("lookfrom and lookat must be distinct points")
        w = w / w_len

        u = np.cross(vup, w)
        u_len = np.linalg.norm(u)
        if u_len < _DEGENERATE_LENGTH:
            raise ValueError("vup must not be parallel to the view direction")
        u = u / u_len

        v = np.cross(w, u)

        horizontal = self.focus_dist * viewport_width * u
        vertical = self.focus_dist * viewport_height * v
        lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - self.focus_dist * w

        return {
            "origin": lookfrom,
            "u": u,
            "v": v,
            "w": w,
            "horizontal": horizontal,
            "vertical": vertical,
            "lower_left": lower_left,
        }


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors on the focal plane
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())
_camera_ready = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (host side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the camera basis and focal-plane viewport and writes them to
    the Taichi fields read by get_ray. Must be called before rendering.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the camera parameters are degenerate.
    """
    basis = camera.compute_basis()

    _camera_origin[None] = basis["origin"].tolist()
    _camera_u[None] = basis["u"].tolist()
    _camera_v[None] = basis["v"].tolist()
    _camera_w[None] = basis["w"].tolist()
    _viewport_horizontal[None] = basis["horizontal"].tolist()
    _viewport_vertical[None] = basis["vertical"].tolist()
    _lower_left_corner[None] = basis["lower_left"].tolist()
    _lens_radius[None] = camera.aperture / 2.0
    _camera_ready[None] = 1


def reset_camera() -> None:
    """Mark the camera as not configured."""
    _camera_ready[None] = 0


def is_camera_ready() -> bool:
    """Return True once setup_camera has succeeded."""
    return bool(_camera_ready[None])


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, stream: ti.i32) -> Ray:
    """Generate a primary ray through viewport coordinates (s, t).

    Coordinates are normalized:
    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    Args:
        s: Horizontal coordinate (left to right).
        t: Vertical coordinate (bottom to top).
        stream: Random stream used for the lens sample.

    Returns:
        A Ray from a point on the lens toward the focal-plane point for
        (s, t). The direction is not normalized.
    """
    rd = _lens_radius[None] * random_in_unit_disk(stream)
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    direction = (
        _lower_left_corner[None]
        + s * _viewport_horizontal[None]
        + t * _viewport_vertical[None]
        - _camera_origin[None]
        - offset
    )
    return make_ray(origin, direction)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera position (lens center) in world space."""
    return _camera_origin[None]


@ti.func
def get_camera_basis():
    """Get the camera's orthonormal basis vectors.

    Returns:
        A tuple (u, v, w) of right, up and backward directions.
    """
    return _camera_u[None], _camera_v[None], _camera_w[None]


# =============================================================================
# Utility Functions
# =============================================================================


def _as_tuple(vec) -> tuple[float, float, float]:
    return (float(vec[0]), float(vec[1]), float(vec[2]))


def get_camera_info() -> dict[str, object]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        (float tuples) and lens_radius (float).
    """
    return {
        "origin": _as_tuple(_camera_origin[None]),
        "u": _as_tuple(_camera_u[None]),
        "v": _as_tuple(_camera_v[None]),
        "w": _as_tuple(_camera_w[None]),
        "horizontal": _as_tuple(_viewport_horizontal[None]),
        "vertical": _as_tuple(_viewport_vertical[None]),
        "lower_left": _as_tuple(_lower_left_corner[None]),
        "lens_radius": float(_lens_radius[None]),
    }
