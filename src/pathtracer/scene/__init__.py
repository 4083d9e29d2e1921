"""Scene module for scene management and hit records.

Components:
    intersection: Sphere store and closest-hit queries
    manager: Unified scene manager coordinating spheres and materials
    worlds: Ready-made scenes (three spheres, two spheres, random field)

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for geometric data
    - Contiguous material ID arrays
"""

from .intersection import (
    MAX_SPHERES,
    T_MAX,
    T_MIN,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .worlds import (
    SCENES,
    create_random_world,
    create_scene,
    create_three_sphere_scene,
    create_two_sphere_scene,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    "T_MIN",
    "T_MAX",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Worlds module
    "SCENES",
    "create_scene",
    "create_three_sphere_scene",
    "create_two_sphere_scene",
    "create_random_world",
]
