"""Ready-made sphere scenes.

Each factory clears the global scene, populates it through a SceneManager and
returns the manager together with a Camera framed for the scene:

- ``create_three_sphere_scene``: a diffuse sphere flanked by a hollow glass
  sphere and a gold mirror, on a large yellow-green ground sphere.
- ``create_two_sphere_scene``: one diffuse sphere on a ground sphere, viewed
  head-on with a 90 degree pinhole camera. Small enough for end-to-end tests.
- ``create_random_world``: the classic cover image, a 22 x 22 grid of small
  random spheres around three large feature spheres.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.worlds import create_random_world
    >>> from pathtracer.core.renderer import Renderer
    >>>
    >>> scene, camera = create_random_world(seed=7)
    >>> scene.get_sphere_count() > 100
    True
"""

import logging
import math
from collections.abc import Callable

import numpy as np

from pathtracer.camera.camera import Camera
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Scene Constants
# =============================================================================

DEFAULT_ASPECT_RATIO = 16.0 / 9.0
RANDOM_WORLD_ASPECT_RATIO = 3.0 / 2.0

GLASS_IOR = 1.5

# Three-sphere scene
GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
GOLD_ALBEDO = (0.8, 0.6, 0.2)

# Random world
RANDOM_GRID_EXTENT = 11
RANDOM_SPHERE_RADIUS = 0.2
# Small spheres may not overlap the glass feature sphere at (4, 0.2, 0)
RANDOM_EXCLUSION_CENTER = np.array([4.0, 0.2, 0.0])
RANDOM_EXCLUSION_DISTANCE = 0.9
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.15


def _distance(a, b) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)))


# =============================================================================
# Scene Factories
# =============================================================================


def create_three_sphere_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create the three-sphere material showcase.

    The left sphere is glass with a negative-radius inner sphere sharing its
    material, which turns it into a thin hollow shell.

    Args:
        aspect_ratio: Camera aspect ratio; should match the output image.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ALBEDO)
    center = scene.add_lambertian_material(CENTER_ALBEDO)
    glass = scene.add_dielectric_material(GLASS_IOR)
    gold = scene.add_metal_material(GOLD_ALBEDO, fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.4, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    lookfrom = (3.0, 3.0, 2.0)
    lookat = (0.0, 0.0, -1.0)
    camera = Camera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=_distance(lookfrom, lookat),
    )

    logger.debug("Created three-sphere scene with %d spheres", scene.get_sphere_count())
    return scene, camera


def create_two_sphere_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create a blue diffuse sphere resting on a yellow ground sphere.

    The camera sits at the origin looking down -z with a 90 degree field of
    view and no defocus blur.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    scene = SceneManager()

    scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, (0.8, 0.8, 0.0))
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.1, 0.2, 0.5))

    camera = Camera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=1.0,
    )

    logger.debug("Created two-sphere scene with %d spheres", scene.get_sphere_count())
    return scene, camera


def create_random_world(
    seed: int | None = None,
    aspect_ratio: float = RANDOM_WORLD_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create the random sphere field.

    For every grid cell (a, b) with a, b in [-11, 11) a small sphere of
    radius 0.2 is placed at (a + 0.9 r1, 0.2, b + 0.9 r2), unless it would
    come within 0.9 of (4, 0.2, 0). Its material is diffuse with probability
    0.8 (albedo = product of two uniform colors), metal with probability 0.15
    (albedo in [0.5, 1), fuzz in [0, 0.5)), and glass otherwise. Three unit
    spheres (glass, brown diffuse, bronze mirror) sit in the middle.

    Args:
        seed: Seed for numpy.random.default_rng; None for a fresh layout.
        aspect_ratio: Camera aspect ratio; should match the output image.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.5, 0.5))

    for a in range(-RANDOM_GRID_EXTENT, RANDOM_GRID_EXTENT):
        for b in range(-RANDOM_GRID_EXTENT, RANDOM_GRID_EXTENT):
            choose_mat = rng.random()
            center = (
                a + 0.9 * rng.random(),
                RANDOM_SPHERE_RADIUS,
                b + 0.9 * rng.random(),
            )

            if _distance(center, RANDOM_EXCLUSION_CENTER) <= RANDOM_EXCLUSION_DISTANCE:
                continue

            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = tuple(float(x) for x in rng.random(3) * rng.random(3))
                scene.add_lambertian_sphere(center, RANDOM_SPHERE_RADIUS, albedo)
            elif choose_mat < DIFFUSE_PROBABILITY + METAL_PROBABILITY:
                albedo = tuple(float(x) for x in rng.uniform(0.5, 1.0, 3))
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(center, RANDOM_SPHERE_RADIUS, albedo, fuzz)
            else:
                scene.add_dielectric_sphere(center, RANDOM_SPHERE_RADIUS, GLASS_IOR)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, GLASS_IOR)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    camera = Camera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )

    logger.debug(
        "Created random world with %d spheres and %d materials",
        scene.get_sphere_count(),
        scene.get_material_count(),
    )
    return scene, camera


# Scene name -> factory taking aspect_ratio (and seed for random layouts)
SCENES: dict[str, Callable[..., tuple[SceneManager, Camera]]] = {
    "three": create_three_sphere_scene,
    "two": create_two_sphere_scene,
    "random": create_random_world,
}


def create_scene(
    name: str,
    aspect_ratio: float | None = None,
    seed: int | None = None,
) -> tuple[SceneManager, Camera]:
    """Build a scene by name ("three", "two" or "random").

    Args:
        name: Scene name.
        aspect_ratio: Overrides the factory's default camera aspect ratio.
        seed: Layout seed, used by the random world only.

    Raises:
        ValueError: If the name is unknown.
    """
    if name not in SCENES:
        raise ValueError(f"Unknown scene {name!r}; choose from {sorted(SCENES)}")

    kwargs: dict[str, object] = {}
    if aspect_ratio is not None:
        if not math.isfinite(aspect_ratio) or aspect_ratio <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {aspect_ratio}")
        kwargs["aspect_ratio"] = aspect_ratio
    if name == "random":
        kwargs["seed"] = seed
    return SCENES[name](**kwargs)
