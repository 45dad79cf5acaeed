"""Render orchestration.

The Renderer ties a SceneManager, a camera and RenderSettings together and
drives the tiled integrator to produce a Framebuffer. It supports:
- Batch rendering with a progress callback
- A generator variant yielding progress after each batch
- Locking the scene for the duration of the render

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.renderer import Renderer
    >>> from pathtracer.core.settings import RenderSettings
    >>> from pathtracer.scene.presets import create_three_spheres_scene
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> renderer = Renderer(scene, camera, RenderSettings(width=400, samples_per_pixel=50))
    >>> framebuffer = renderer.render()
"""

import logging
import time
from collections.abc import Callable, Generator

from pathtracer.camera.pinhole import PinholeCamera, setup_camera
from pathtracer.core.framebuffer import Framebuffer
from pathtracer.core.integrator import (
    get_total_samples,
    render_samples,
    resolve_framebuffer,
    set_tiles,
    setup_render_target,
)
from pathtracer.core.settings import RenderSettings
from pathtracer.core.tiles import Tile, partition_tiles
from pathtracer.materials.dielectric import set_schlick_reflectance
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (samples_done, samples_total)
ProgressCallback = Callable[[int, int], None]

# Relative tolerance when comparing camera and image aspect ratios
_ASPECT_TOLERANCE = 1e-3


class Renderer:
    """Renders a scene into an 8-bit framebuffer.

    The render target and camera live in module-level Taichi fields, so only
    one render runs at a time.

    Attributes:
        scene: The scene to render.
        camera: The camera to render from.
        settings: The render configuration.
    """

    def __init__(
        self,
        scene: SceneManager,
        camera: PinholeCamera,
        settings: RenderSettings | None = None,
    ) -> None:
        self.scene = scene
        self.camera = camera
        self.settings = settings if settings is not None else RenderSettings()

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.height

    @property
    def tiles(self) -> list[Tile]:
        """The tile layout for the current settings."""
        return partition_tiles(
            self.width, self.height, self.settings.tile_rows, self.settings.tile_cols
        )

    def _prepare(self) -> None:
        settings = self.settings
        if abs(self.camera.aspect_ratio - settings.aspect_ratio) > _ASPECT_TOLERANCE * settings.aspect_ratio:
            logger.warning(
                "Camera aspect ratio %.4f differs from image aspect ratio %.4f; "
                "the image will be stretched",
                self.camera.aspect_ratio,
                settings.aspect_ratio,
            )

        setup_camera(self.camera)
        set_schlick_reflectance(settings.schlick_reflectance)
        setup_render_target(self.width, self.height)

        tiles = self.tiles
        set_tiles(tiles)
        logger.debug(
            "Tile layout %dx%d: %d tiles, largest %dx%d",
            settings.tile_rows,
            settings.tile_cols,
            len(tiles),
            max(t.width for t in tiles),
            max(t.height for t in tiles),
        )

    def render_progressive(self) -> Generator[tuple[int, int], None, Framebuffer]:
        """Render in batches, yielding progress after each batch.

        The scene is locked from the first batch until the generator finishes
        or is closed.

        Yields:
            Tuple of (samples_done, samples_total).

        Returns:
            The resolved Framebuffer (as the generator's return value).

        Example:
            >>> gen = renderer.render_progressive()
            >>> for done, total in gen:
            ...     print(f"Progress: {done}/{total} samples")
        """
        settings = self.settings
        total = settings.samples_per_pixel

        self.scene.lock()
        try:
            self._prepare()
            logger.info(
                "Rendering %dx%d, %d spp, max depth %d, %d primitives",
                self.width,
                self.height,
                total,
                settings.max_depth,
                self.scene.get_primitive_count(),
            )
            start = time.perf_counter()

            remaining = total
            while remaining > 0:
                batch = min(settings.batch_size, remaining)
                render_samples(batch, settings.max_depth)
                remaining -= batch
                yield (get_total_samples(), total)

            framebuffer = Framebuffer.from_array(resolve_framebuffer())
            logger.info("Render finished in %.2fs", time.perf_counter() - start)
        finally:
            self.scene.unlock()

        return framebuffer

    def render(self, callback: ProgressCallback | None = None) -> Framebuffer:
        """Render the scene.

        Args:
            callback: Optional callback called after each batch with
                (samples_done, samples_total).

        Returns:
            The resolved Framebuffer.

        Example:
            >>> def progress(done, total):
            ...     print(f"Progress: {done}/{total} samples")
            >>> framebuffer = renderer.render(callback=progress)
        """
        generator = self.render_progressive()
        while True:
            try:
                done, total = next(generator)
            except StopIteration as stop:
                return stop.value
            if callback is not None:
                callback(done, total)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples={self.settings.samples_per_pixel})"
        )
