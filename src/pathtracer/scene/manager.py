"""Host-side scene builder.

Spheres live in ``pathtracer.scene.intersection`` and each material kind has
its own registry under ``pathtracer.materials``. This module ties them
together with one material ID space: every ID resolves, inside kernels, to a
``(MaterialType, kind-local index)`` pair so the integrator can pick the
scattering function.

A material is fixed once registered. Any number of spheres may point at the
same ID, which is how the hollow glass sphere shares one dielectric between
its outer surface and its inverted inner shell:

    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(ior=1.5)
    >>> scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    >>> scene.add_sphere((-1.0, 0.0, -1.0), -0.4, glass)

``to_dict``/``from_dict`` convert a scene to and from plain JSON-able data.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import as_vec3_tuple
from pathtracer.materials.dielectric import add_dielectric_material, clear_dielectric_materials
from pathtracer.materials.lambertian import add_lambertian_material, clear_lambertian_materials
from pathtracer.materials.metal import add_metal_material, clear_metal_materials
from pathtracer.scene.intersection import MAX_SPHERES, add_sphere, clear_scene, get_sphere_count

logger = logging.getLogger(__name__)

vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]


class MaterialType(IntEnum):
    """Material kinds understood by the integrator."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


MAX_MATERIALS = 1024

# Indexed by material ID
material_kinds = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_slots = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Look up the MaterialType of ``material_id``; -1 if it was never registered."""
    kind = -1
    if 0 <= material_id < num_materials[None]:
        kind = material_kinds[material_id]
    return kind


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Look up where ``material_id`` sits in its kind's registry; -1 if unknown."""
    slot = -1
    if 0 <= material_id < num_materials[None]:
        slot = material_slots[material_id]
    return slot


@dataclass
class MaterialInfo:
    """Host-side record of a registered material.

    Attributes:
        material_id: Scene-wide material ID.
        material_type: Which registry the material lives in.
        type_index: Slot inside that registry.
        params: Parameters as normalized at registration (tuples for colors).
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data scene description.

    Attributes:
        materials: One dict per material, ``{"type": <kind name>, **params}``.
            A material's position in the list is its ID.
        spheres: Dicts with ``center``, ``radius`` and ``material_id``.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Builds the single live scene.

    Constructing a manager wipes the sphere store and every material
    registry, so a new manager always starts from an empty scene.

    Attributes:
        materials: MaterialInfo per material, position equals material ID.
        spheres: SphereInfo per sphere, in insertion order.
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere and material."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials = []
        self.spheres = []

    def _check_material_capacity(self) -> None:
        if num_materials[None] >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    def _record_material(self, kind: MaterialType, slot: int, params: dict[str, Any]) -> int:
        material_id = int(num_materials[None])
        material_kinds[material_id] = int(kind)
        material_slots[material_id] = slot
        num_materials[None] = material_id + 1
        self.materials.append(MaterialInfo(material_id, kind, slot, params))
        return material_id

    def add_lambertian_material(self, albedo: Vec3Tuple) -> int:
        """Register a diffuse material and return its ID.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If the material table is full.
        """
        albedo = as_vec3_tuple(albedo, "albedo")
        self._check_material_capacity()
        slot = add_lambertian_material(albedo)
        return self._record_material(MaterialType.LAMBERTIAN, slot, {"albedo": albedo})

    def add_metal_material(self, albedo: Vec3Tuple, fuzz: float = 0.0) -> int:
        """Register a metal and return its ID.

        Args:
            albedo: Reflectance per channel, each in [0, 1].
            fuzz: Radius of the perturbation added to the mirror direction,
                in [0, 1]. 0 is a perfect mirror.

        Raises:
            ValueError: If albedo or fuzz is out of range.
            RuntimeError: If the material table is full.
        """
        albedo = as_vec3_tuple(albedo, "albedo")
        self._check_material_capacity()
        slot = add_metal_material(albedo, fuzz)
        return self._record_material(MaterialType.METAL, slot, {"albedo": albedo, "fuzz": fuzz})

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a clear refractive material (1.5 is glass) and return its ID.

        Raises:
            ValueError: If ior is not positive.
            RuntimeError: If the material table is full.
        """
        self._check_material_capacity()
        slot = add_dielectric_material(ior)
        return self._record_material(MaterialType.DIELECTRIC, slot, {"ior": ior})

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Return the record for ``material_id``, or None if there is none."""
        if material_id in range(len(self.materials)):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Host-side counterpart of the get_material_type Taichi function."""
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    def add_sphere(self, center: Vec3Tuple, radius: float, material_id: int) -> int:
        """Place a sphere using an already registered material.

        Args:
            center: Sphere center (x, y, z).
            radius: Non-zero radius. A negative radius turns the surface
                normals inward, which models the inside wall of a hollow
                object.
            material_id: ID returned by one of the ``add_*_material`` methods.

        Returns:
            Index of the sphere in the scene store.

        Raises:
            ValueError: On an unknown material_id, a malformed center or a
                zero radius.
            RuntimeError: If the sphere store is full.
        """
        if not 0 <= material_id < num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        center = as_vec3_tuple(center, "center")
        sphere_index = add_sphere(vec3(*center), radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, center, radius, material_id))
        return sphere_index

    def add_lambertian_sphere(
        self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple
    ) -> tuple[int, int]:
        """Add a diffuse sphere with its own material; returns (sphere_index, material_id)."""
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple, fuzz: float = 0.0
    ) -> tuple[int, int]:
        """Add a metal sphere with its own material; returns (sphere_index, material_id)."""
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self, center: Vec3Tuple, radius: float, ior: float = 1.5
    ) -> tuple[int, int]:
        """Add a glass-like sphere with its own material; returns (sphere_index, material_id)."""
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    def to_config(self) -> SceneConfig:
        """Describe the scene as a SceneConfig of plain lists, numbers and strings."""
        materials = [
            {
                "type": info.material_type.name.lower(),
                **{
                    name: list(value) if isinstance(value, tuple) else value
                    for name, value in info.params.items()
                },
            }
            for info in self.materials
        ]
        spheres = [
            {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
            for s in self.spheres
        ]
        return SceneConfig(materials=materials, spheres=spheres)

    def from_config(self, config: SceneConfig) -> None:
        """Clear the scene and rebuild it from ``config``.

        Missing parameters fall back to the ``add_*_material`` defaults
        (mid-grey diffuse, light-grey mirror, glass).

        Raises:
            ValueError: On an unknown material type or invalid parameters.
        """
        self.clear()

        for entry in config.materials:
            kind = str(entry.get("type", "")).lower()
            if kind == "lambertian":
                self.add_lambertian_material(entry.get("albedo", (0.5, 0.5, 0.5)))
            elif kind == "metal":
                self.add_metal_material(entry.get("albedo", (0.8, 0.8, 0.8)), entry.get("fuzz", 0.0))
            elif kind == "dielectric":
                self.add_dielectric_material(entry.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {kind!r}")

        for entry in config.spheres:
            self.add_sphere(
                entry.get("center", (0.0, 0.0, 0.0)),
                entry.get("radius", 1.0),
                entry.get("material_id", 0),
            )

        logger.debug(
            "Scene rebuilt from config: %d materials, %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def to_dict(self) -> dict[str, Any]:
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Inverse of to_dict; missing keys mean empty lists."""
        self.from_config(SceneConfig(data.get("materials", []), data.get("spheres", [])))

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
