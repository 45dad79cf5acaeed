"""Unit tests for RenderSettings validation."""

import pytest


class TestRenderSettings:
    """Tests for RenderSettings."""

    def test_defaults(self):
        from pathtracer.core.settings import RenderSettings

        settings = RenderSettings()
        assert settings.width == 400
        assert settings.height == 225
        assert settings.samples_per_pixel == 100
        assert settings.max_depth == 50
        assert settings.tile_count == 16
        assert settings.schlick_reflectance is False

    def test_height_truncates(self):
        from pathtracer.core.settings import RenderSettings

        assert RenderSettings(width=100, aspect_ratio=3.0, tile_rows=1, tile_cols=1).height == 33

    def test_zero_depth_allowed(self):
        from pathtracer.core.settings import RenderSettings

        assert RenderSettings(max_depth=0).max_depth == 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0},
            {"aspect_ratio": 0.0},
            {"width": 2, "aspect_ratio": 4.0, "tile_rows": 1, "tile_cols": 1},
            {"width": 4096},
            {"samples_per_pixel": 0},
            {"max_depth": -1},
            {"batch_size": 0},
            {"tile_rows": 0},
            {"tile_cols": 401},
            {"width": 2048, "aspect_ratio": 1.0, "tile_rows": 100, "tile_cols": 100},
        ],
    )
    def test_invalid_settings_raise(self, kwargs):
        from pathtracer.core.settings import RenderSettings

        with pytest.raises(ValueError):
            RenderSettings(**kwargs)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
