"""Unit tests for the built-in scenes.

Tests cover:
- Contents of the three-sphere and two-sphere scenes
- Random world layout, determinism and exclusion zone
- Scene lookup by name
"""

import math

import pytest


class TestThreeSphereScene:
    """Tests for the material showcase scene."""

    def test_contents(self):
        """Test five spheres share four materials."""
        from pathtracer.scene.manager import MaterialType
        from pathtracer.scene.worlds import create_three_sphere_scene

        scene, _ = create_three_sphere_scene()

        assert scene.get_sphere_count() == 5
        assert scene.get_material_count() == 4
        kinds = [m.material_type for m in scene.materials]
        assert kinds == [
            MaterialType.LAMBERTIAN,
            MaterialType.LAMBERTIAN,
            MaterialType.DIELECTRIC,
            MaterialType.METAL,
        ]

    def test_hollow_glass_shell(self):
        """Test the glass sphere has a negative-radius twin with the same material."""
        from pathtracer.scene.worlds import create_three_sphere_scene

        scene, _ = create_three_sphere_scene()
        glass = [s for s in scene.spheres if s.center == (-1.0, 0.0, -1.0)]

        assert sorted(s.radius for s in glass) == [-0.4, 0.5]
        assert glass[0].material_id == glass[1].material_id

    def test_camera(self):
        """Test the camera focuses on the look-at point."""
        from pathtracer.scene.worlds import create_three_sphere_scene

        _, camera = create_three_sphere_scene(aspect_ratio=2.0)

        assert camera.lookfrom == (3.0, 3.0, 2.0)
        assert camera.vfov == 20.0
        assert camera.aspect_ratio == 2.0
        assert abs(camera.focus_dist - math.sqrt(27.0)) < 1e-12
        camera.validate()


class TestTwoSphereScene:
    """Tests for the diffuse sphere on a ground plane."""

    def test_contents(self):
        """Test a yellow ground sphere and a blue sphere above it."""
        from pathtracer.scene.worlds import create_two_sphere_scene

        scene, camera = create_two_sphere_scene()

        assert scene.get_sphere_count() == 2
        by_radius = {s.radius: scene.materials[s.material_id] for s in scene.spheres}
        assert by_radius[100.0].params["albedo"] == (0.8, 0.8, 0.0)
        assert by_radius[0.5].params["albedo"] == (0.1, 0.2, 0.5)
        assert {s.center for s in scene.spheres} == {(0.0, -100.5, -1.0), (0.0, 0.0, -1.0)}
        assert camera.vfov == 90.0
        assert camera.aperture == 0.0


class TestRandomWorld:
    """Tests for the random sphere field."""

    def test_sphere_count(self):
        """Test the ground, the three large spheres and many small ones."""
        from pathtracer.scene.worlds import create_random_world

        scene, _ = create_random_world(seed=1)

        # 22 x 22 grid minus the excluded cells, plus 4 fixed spheres
        assert 100 < scene.get_sphere_count() <= 22 * 22 + 4
        assert scene.get_material_count() == scene.get_sphere_count()

    def test_same_seed_same_layout(self):
        """Test a seed reproduces the layout and materials."""
        from pathtracer.scene.worlds import create_random_world

        first = create_random_world(seed=123)[0].to_dict()
        second = create_random_world(seed=123)[0].to_dict()
        assert first == second

    def test_different_seeds_differ(self):
        """Test different seeds give different layouts."""
        from pathtracer.scene.worlds import create_random_world

        first = create_random_world(seed=1)[0].to_dict()
        second = create_random_world(seed=2)[0].to_dict()
        assert first != second

    def test_small_spheres_avoid_exclusion_zone(self):
        """Test no small sphere is placed near (4, 0.2, 0)."""
        from pathtracer.scene.worlds import create_random_world

        scene, _ = create_random_world(seed=7)
        for sphere in scene.spheres:
            if sphere.radius == 0.2:
                x, y, z = sphere.center
                assert y == 0.2
                assert math.dist((x, y, z), (4.0, 0.2, 0.0)) > 0.9

    def test_material_parameters_in_range(self):
        """Test metal fuzz and albedos follow the layout rules."""
        from pathtracer.scene.manager import MaterialType
        from pathtracer.scene.worlds import create_random_world

        scene, _ = create_random_world(seed=3)
        for material in scene.materials:
            if material.material_type == MaterialType.METAL:
                assert 0.0 <= material.params["fuzz"] < 0.5
                assert all(0.5 <= c <= 1.0 for c in material.params["albedo"])
            if material.material_type == MaterialType.DIELECTRIC:
                assert material.params["ior"] == 1.5

    def test_camera(self):
        """Test the wide-angle camera defaults."""
        from pathtracer.scene.worlds import create_random_world

        _, camera = create_random_world(seed=0)
        assert camera.lookfrom == (13.0, 2.0, 3.0)
        assert camera.focus_dist == 10.0
        assert camera.aperture == 0.1
        assert abs(camera.aspect_ratio - 1.5) < 1e-12


class TestCreateScene:
    """Tests for create_scene."""

    @pytest.mark.parametrize("name", ["three", "two", "random"])
    def test_known_names(self, name):
        """Test every registered name builds a scene."""
        from pathtracer.scene.worlds import create_scene

        scene, camera = create_scene(name, seed=0)
        assert scene.get_sphere_count() > 0
        camera.validate()

    def test_aspect_ratio_override(self):
        """Test the aspect ratio is passed to the camera."""
        from pathtracer.scene.worlds import create_scene

        _, camera = create_scene("two", aspect_ratio=1.0)
        assert camera.aspect_ratio == 1.0

    def test_unknown_name(self):
        """Test unknown names raise ValueError."""
        from pathtracer.scene.worlds import create_scene

        with pytest.raises(ValueError, match="Unknown scene"):
            create_scene("cornell")

    @pytest.mark.parametrize("aspect_ratio", [0.0, -2.0, math.inf])
    def test_bad_aspect_ratio(self, aspect_ratio):
        """Test non-positive or infinite aspect ratios raise ValueError."""
        from pathtracer.scene.worlds import create_scene

        with pytest.raises(ValueError, match="Aspect ratio"):
            create_scene("three", aspect_ratio=aspect_ratio)
