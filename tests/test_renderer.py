"""Unit tests for the Renderer wrapper."""

import numpy as np
import pytest


def _two_sphere_renderer(**kwargs):
    from pathtracer.core.config import Image, RenderConfig
    from pathtracer.core.renderer import Renderer
    from pathtracer.scene.worlds import create_two_sphere_scene

    _, camera = create_two_sphere_scene(aspect_ratio=2.0)
    return Renderer(camera, Image(24, 2.0), RenderConfig(2, 4), **kwargs)


class TestRendererBasics:
    """Tests for construction and properties."""

    def test_properties(self):
        """Test dimensions come from the image."""
        renderer = _two_sphere_renderer()
        assert renderer.width == 24
        assert renderer.height == 12
        assert not renderer.is_rendered

    def test_sets_up_camera(self):
        """Test constructing a renderer configures the camera."""
        from pathtracer.camera.camera import is_camera_ready

        _two_sphere_renderer()
        assert is_camera_ready()

    def test_default_config(self):
        """Test the default sampling budget is used when none is given."""
        from pathtracer.core.config import Image
        from pathtracer.core.renderer import Renderer
        from pathtracer.scene.worlds import create_two_sphere_scene

        _, camera = create_two_sphere_scene()
        renderer = Renderer(camera, Image(16, 16.0 / 9.0))
        assert renderer.config.samples_per_pixel == 100
        assert renderer.config.max_depth == 50

    def test_invalid_camera(self):
        """Test a degenerate camera is rejected at construction."""
        from pathtracer.camera.camera import Camera
        from pathtracer.core.config import Image
        from pathtracer.core.renderer import Renderer

        camera = Camera(
            lookfrom=(0.0, 0.0, 0.0),
            lookat=(0.0, 0.0, 0.0),
            vup=(0.0, 1.0, 0.0),
            vfov=90.0,
            aspect_ratio=1.0,
        )
        with pytest.raises(ValueError):
            Renderer(camera, Image(8, 1.0))

    def test_repr(self):
        """Test the repr summarizes the render settings."""
        renderer = _two_sphere_renderer()
        assert repr(renderer) == "Renderer(width=24, height=12, samples=2, max_depth=4)"


class TestRendering:
    """Tests for render, render_progressive and accessors."""

    def test_render_returns_pixels(self):
        """Test render returns raster-order pixels and stores them."""
        renderer = _two_sphere_renderer()
        pixels = renderer.render()

        assert pixels.shape == (24 * 12, 3)
        assert renderer.is_rendered
        np.testing.assert_array_equal(renderer.get_pixels(), pixels)
        assert renderer.get_image_uint8().shape == (12, 24, 3)

    def test_get_pixels_before_render(self):
        """Test reading pixels before rendering raises RuntimeError."""
        renderer = _two_sphere_renderer()
        with pytest.raises(RuntimeError, match="Nothing rendered"):
            renderer.get_pixels()

    def test_callback(self):
        """Test the progress callback ends with all rows done."""
        renderer = _two_sphere_renderer(rows_per_batch=5)
        calls = []
        renderer.render(callback=lambda done, total: calls.append((done, total)))
        assert calls == [(5, 12), (10, 12), (12, 12)]

    def test_render_progressive(self):
        """Test the generator yields per batch and publishes pixels at the end."""
        renderer = _two_sphere_renderer(rows_per_batch=4)
        progress = []
        for step in renderer.render_progressive():
            assert not renderer.is_rendered
            progress.append(step)

        assert progress == [(4, 12), (8, 12), (12, 12)]
        assert renderer.is_rendered

    def test_renderer_restores_its_camera(self):
        """Test a second renderer's camera does not leak into the first."""
        from pathtracer.camera.camera import Camera
        from pathtracer.core.config import Image, RenderConfig
        from pathtracer.core.renderer import Renderer

        first = _two_sphere_renderer(seed=4)
        expected = first.render().copy()

        Renderer(
            Camera(
                lookfrom=(0.0, 5.0, 0.0),
                lookat=(0.0, 0.0, 0.0),
                vup=(0.0, 0.0, -1.0),
                vfov=30.0,
                aspect_ratio=2.0,
            ),
            Image(24, 2.0),
            RenderConfig(1, 1),
        )
        np.testing.assert_array_equal(first.render(), expected)

    def test_parallel_matches_serial(self):
        """Test both kernels give the same image through the wrapper."""
        parallel = _two_sphere_renderer(seed=9).render().copy()
        serial = _two_sphere_renderer(seed=9, parallel=False).render()
        np.testing.assert_array_equal(parallel, serial)


class TestSaving:
    """Tests for saving renders."""

    def test_save_ppm_and_png(self, tmp_path):
        """Test both formats are written."""
        from PIL import Image

        renderer = _two_sphere_renderer()
        renderer.render()

        written = renderer.save_ppm(tmp_path / "out.ppm")
        renderer.save_png(tmp_path / "out.png")

        assert (tmp_path / "out.ppm").stat().st_size == written
        with Image.open(tmp_path / "out.png") as img:
            assert img.size == (24, 12)
