"""Unit tests for scene-level intersection.

Tests cover:
- SceneHitRecord material_id propagation
- Sphere storage (add, clear, capacity, validation)
- Closest-hit selection across multiple spheres
- t bounds and empty scenes
"""

import pytest
import taichi as ti


def _closest(origin, direction, t_min=0.001, t_max=1000.0):
    """Run intersect_scene for one ray and return (hit, t, material_id, normal, front)."""
    from pathtracer.scene.intersection import intersect_scene, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    mat_id = ti.field(dtype=ti.i32, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())
    front = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, lo: ti.f32, hi: ti.f32):
        # The sphere scan narrows its bound as it goes
        ti.loop_config(serialize=True)
        for _ in range(1):
            rec = intersect_scene(o, d, lo, hi)
            hit[None] = rec.hit
            t_val[None] = rec.t
            mat_id[None] = rec.material_id
            normal[None] = rec.normal
            front[None] = rec.front_face

    test_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    return hit[None], t_val[None], mat_id[None], normal[None], front[None]


class TestSceneHitRecordBasics:
    """Tests for SceneHitRecord dataclass."""

    def test_scene_hit_record_has_material_id(self):
        """Test SceneHitRecord stores the material ID."""
        from pathtracer.scene.intersection import SceneHitRecord, vec3

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = SceneHitRecord(
                hit=1,
                t=1.0,
                point=vec3(0.0, 0.0, 0.0),
                normal=vec3(0.0, 1.0, 0.0),
                front_face=1,
                material_id=42,
            )
            result[None] = rec.material_id

        test_kernel()
        assert result[None] == 42

    def test_miss_has_negative_material_id(self):
        """Test a miss reports material_id -1."""
        hit, _, mat_id, _, _ = _closest((0, 0, 0), (0, 0, -1))
        assert hit == 0
        assert mat_id == -1


class TestSphereStorage:
    """Tests for adding and clearing spheres."""

    def test_add_sphere(self):
        """Test add_sphere returns sequential indices."""
        from pathtracer.scene.intersection import add_sphere, get_sphere_count

        assert add_sphere((0.0, 0.0, -1.0), 0.5, 0) == 0
        assert add_sphere((1.0, 0.0, -1.0), 0.5, 1) == 1
        assert get_sphere_count() == 2

    def test_clear_scene(self):
        """Test clear_scene resets the count and later hits miss."""
        from pathtracer.scene.intersection import add_sphere, clear_scene, get_sphere_count

        add_sphere((0.0, 0.0, -1.0), 0.5, 0)
        clear_scene()
        assert get_sphere_count() == 0

        hit, _, _, _, _ = _closest((0, 0, 0), (0, 0, -1))
        assert hit == 0

    def test_zero_radius_rejected(self):
        """Test a zero radius raises ValueError and adds nothing."""
        from pathtracer.scene.intersection import add_sphere, get_sphere_count

        with pytest.raises(ValueError):
            add_sphere((0.0, 0.0, 0.0), 0.0, 0)
        assert get_sphere_count() == 0

    def test_negative_radius_accepted(self):
        """Test negative radii are stored."""
        from pathtracer.scene.intersection import add_sphere, get_sphere_count

        add_sphere((0.0, 0.0, -1.0), -0.4, 0)
        assert get_sphere_count() == 1

    def test_capacity_exceeded(self):
        """Test adding past MAX_SPHERES raises RuntimeError."""
        from pathtracer.scene.intersection import MAX_SPHERES, add_sphere, num_spheres

        num_spheres[None] = MAX_SPHERES
        with pytest.raises(RuntimeError):
            add_sphere((0.0, 0.0, 0.0), 1.0, 0)


class TestClosestHit:
    """Tests for closest-hit selection."""

    def test_hit_single_sphere(self):
        """Test a single sphere is hit with its material ID."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -2.0), 0.5, 7)
        hit, t, mat_id, n, front = _closest((0, 0, 0), (0, 0, -1))

        assert hit == 1
        assert abs(t - 1.5) < 1e-5
        assert mat_id == 7
        assert abs(n[2] - 1.0) < 1e-5
        assert front == 1

    def test_closest_of_two_spheres(self):
        """Test the nearer sphere wins regardless of insertion order."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -5.0), 0.5, 1)
        add_sphere((0.0, 0.0, -2.0), 0.5, 2)
        _, t, mat_id, _, _ = _closest((0, 0, 0), (0, 0, -1))

        assert abs(t - 1.5) < 1e-5
        assert mat_id == 2

    def test_closest_of_two_spheres_reversed_order(self):
        """Test the same result with insertion order reversed."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -2.0), 0.5, 2)
        add_sphere((0.0, 0.0, -5.0), 0.5, 1)
        _, t, mat_id, _, _ = _closest((0, 0, 0), (0, 0, -1))

        assert abs(t - 1.5) < 1e-5
        assert mat_id == 2

    def test_nested_glass_shell(self):
        """Test an inner negative sphere is hit from inside the outer one."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -1.0), 0.5, 3)
        add_sphere((0.0, 0.0, -1.0), -0.4, 4)
        # Start just inside the outer shell, heading inward
        hit, t, mat_id, n, front = _closest((0, 0, -0.55), (0, 0, -1))

        assert hit == 1
        assert abs(t - 0.05) < 1e-4
        assert mat_id == 4
        assert front == 0
        assert abs(n[2] - 1.0) < 1e-5

    def test_ground_and_object(self):
        """Test a ray toward the ground hits the big sphere beneath a small one."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, -100.5, -1.0), 100.0, 0)
        add_sphere((0.0, 0.0, -1.0), 0.5, 1)

        _, _, mat_up, _, _ = _closest((0, 0, 0), (0, 0, -1))
        _, _, mat_down, n, _ = _closest((0, 0, 0), (0, -1, 0))

        assert mat_up == 1
        assert mat_down == 0
        assert abs(n[1] - 1.0) < 1e-4


class TestTBounds:
    """Tests for t bounds on scene queries."""

    def test_hit_rejected_by_t_max(self):
        """Test a hit beyond t_max is a miss."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -5.0), 0.5, 0)
        hit, _, _, _, _ = _closest((0, 0, 0), (0, 0, -1), 0.001, 3.0)
        assert hit == 0

    def test_hit_rejected_by_t_min_uses_far_side(self):
        """Test t_min skips the near surface and reports the far one."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -2.0), 0.5, 0)
        hit, t, _, _, front = _closest((0, 0, 0), (0, 0, -1), 2.0, 1000.0)

        assert hit == 1
        assert abs(t - 2.5) < 1e-5
        assert front == 0

    def test_self_intersection_offset(self):
        """Test T_MIN keeps a ray leaving a surface from re-hitting it."""
        from pathtracer.scene.intersection import T_MIN, add_sphere

        add_sphere((0.0, 0.0, 0.0), 1.0, 0)
        # Origin on the surface, leaving outward
        hit, _, _, _, _ = _closest((0, 0, 1.0), (0, 0, 1), T_MIN, 1000.0)
        assert hit == 0
