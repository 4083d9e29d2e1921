"""Unit tests for image and render configuration."""

import pytest


class TestImage:
    """Tests for the Image dataclass."""

    def test_height_from_aspect_ratio(self):
        """Test the classic 400-wide 16:9 image is 225 tall."""
        from pathtracer.core.config import Image

        image = Image(width=400, aspect_ratio=16.0 / 9.0)
        assert image.height == 225
        assert image.pixel_count == 90000

    def test_height_is_rounded(self):
        """Test the derived height rounds to the nearest pixel."""
        from pathtracer.core.config import Image

        assert Image(width=1200, aspect_ratio=3.0 / 2.0).height == 800
        # 100 / 1.5 = 66.67
        assert Image(width=100, aspect_ratio=1.5).height == 67

    @pytest.mark.parametrize("width,height", [(5, 3), (9, 5), (401, 201)])
    def test_half_heights_round_up(self, width, height):
        """Test an exact .5 height rounds away from zero, not to even."""
        from pathtracer.core.config import Image

        assert Image(width=width, aspect_ratio=2.0).height == height

    def test_from_size(self):
        """Test explicit width and height round-trip."""
        from pathtracer.core.config import Image

        image = Image.from_size(640, 480)
        assert (image.width, image.height) == (640, 480)
        assert abs(image.aspect_ratio - 4.0 / 3.0) < 1e-12

    def test_is_frozen(self):
        """Test Image fields cannot be reassigned."""
        from dataclasses import FrozenInstanceError

        from pathtracer.core.config import Image

        image = Image(width=10, aspect_ratio=1.0)
        with pytest.raises(FrozenInstanceError):
            image.width = 20

    @pytest.mark.parametrize("aspect_ratio", [0.0, -1.0])
    def test_non_positive_aspect_ratio(self, aspect_ratio):
        """Test non-positive aspect ratios raise ValueError."""
        from pathtracer.core.config import Image

        with pytest.raises(ValueError, match="Aspect ratio"):
            Image(width=100, aspect_ratio=aspect_ratio)

    @pytest.mark.parametrize(
        "width,aspect_ratio",
        [
            (1, 1.0),  # too narrow
            (10, 8.0),  # height rounds to 1
            (4096, 2.0),  # too wide
            (100, 0.01),  # too tall
        ],
    )
    def test_dimension_limits(self, width, aspect_ratio):
        """Test dimensions outside [2, 2048] raise ValueError."""
        from pathtracer.core.config import Image

        with pytest.raises(ValueError, match="Image dimensions"):
            Image(width=width, aspect_ratio=aspect_ratio)

    def test_limits_are_inclusive(self):
        """Test the smallest and largest sizes are accepted."""
        from pathtracer.core.config import MAX_IMAGE_WIDTH, MIN_IMAGE_SIZE, Image

        Image.from_size(MIN_IMAGE_SIZE, MIN_IMAGE_SIZE)
        Image.from_size(MAX_IMAGE_WIDTH, MAX_IMAGE_WIDTH)


class TestRenderConfig:
    """Tests for the RenderConfig dataclass."""

    def test_defaults(self):
        """Test the default budget is 100 samples and 50 bounces."""
        from pathtracer.core.config import RenderConfig

        config = RenderConfig()
        assert config.samples_per_pixel == 100
        assert config.max_depth == 50

    def test_zero_depth_allowed(self):
        """Test a depth of 0 is valid (renders black)."""
        from pathtracer.core.config import RenderConfig

        assert RenderConfig(samples_per_pixel=1, max_depth=0).max_depth == 0

    @pytest.mark.parametrize("samples", [0, -5])
    def test_samples_must_be_positive(self, samples):
        """Test fewer than one sample raises ValueError."""
        from pathtracer.core.config import RenderConfig

        with pytest.raises(ValueError, match="samples_per_pixel"):
            RenderConfig(samples_per_pixel=samples)

    def test_negative_depth(self):
        """Test a negative depth raises ValueError."""
        from pathtracer.core.config import RenderConfig

        with pytest.raises(ValueError, match="max_depth"):
            RenderConfig(max_depth=-1)
