"""Camera module for view and ray generation.

Components:
    camera: Thin-lens camera with look-at positioning and defocus blur

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .camera import (
    Camera,
    get_camera_basis,
    get_camera_info,
    get_camera_origin,
    get_ray,
    is_camera_ready,
    reset_camera,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "reset_camera",
    "is_camera_ready",
    "get_ray",
    "get_camera_origin",
    "get_camera_basis",
    "get_camera_info",
]
