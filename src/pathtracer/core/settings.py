"""Render configuration.

RenderSettings gathers the knobs a caller supplies for one render: image
size, sampling budget, bounce depth, tile grid and the dielectric
reflectance policy. Every field is validated on construction so that an
invalid configuration fails before any kernel is launched.

Example:
    >>> from pathtracer.core.settings import RenderSettings
    >>> settings = RenderSettings(width=400, aspect_ratio=16.0 / 9.0)
    >>> settings.height
    225
"""

from dataclasses import dataclass

from pathtracer.core.integrator import (
    DEFAULT_MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    MAX_TILES,
)


@dataclass
class RenderSettings:
    """Configuration for a single render.

    Attributes:
        width: Image width in pixels.
        aspect_ratio: Width divided by height; the height is derived.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of bounces per path.
        tile_rows: Number of tile rows (parallel work units vertically).
        tile_cols: Number of tile columns.
        batch_size: Samples per pixel rendered between progress reports.
        schlick_reflectance: Enable Schlick partial reflection on dielectrics.
    """

    width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 100
    max_depth: int = DEFAULT_MAX_DEPTH
    tile_rows: int = 4
    tile_cols: int = 4
    batch_size: int = 10
    schlick_reflectance: bool = False

    def __post_init__(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If any field is out of range.
        """
        if self.width <= 0:
            raise ValueError(f"width must be positive, got {self.width}")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")

        height = self.height
        if height <= 0:
            raise ValueError(
                f"width {self.width} with aspect_ratio {self.aspect_ratio} "
                "gives an empty image"
            )
        if self.width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )

        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")

        if self.tile_rows <= 0 or self.tile_cols <= 0:
            raise ValueError(f"Tile grid ({self.tile_rows}x{self.tile_cols}) must be positive")
        if self.tile_rows > height or self.tile_cols > self.width:
            raise ValueError(
                f"Tile grid ({self.tile_rows}x{self.tile_cols}) is finer than the "
                f"{self.width}x{height} image"
            )
        if self.tile_rows * self.tile_cols > MAX_TILES:
            raise ValueError(f"Tile grid has more than {MAX_TILES} tiles")

    @property
    def height(self) -> int:
        """Image height in pixels, truncated from width / aspect_ratio."""
        return int(self.width / self.aspect_ratio)

    @property
    def tile_count(self) -> int:
        return self.tile_rows * self.tile_cols
