"""Light transport evaluator and tiled sample accumulation.

This module implements the recursive ray color evaluation of a classic
Whitted-style path tracer and the parallel tile kernel that drives it.

ray_color() follows the textbook recursion

    ray_color(ray, depth):
        depth <= 0      -> black
        hit + scatter   -> attenuation * ray_color(scattered, depth - 1)
        hit + absorbed  -> black
        miss            -> background gradient

Taichi functions cannot recurse, so the recursion is unrolled into a loop that
carries the product of attenuations (the throughput) along the path.

Rendering is split into rectangular tiles (see pathtracer.core.tiles). The
outermost loop of _render_tiles runs over tiles and is the only parallel loop,
so each worker owns exactly the pixels of its tile and no two workers touch
the same accumulator entry.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import (
    ...     render_samples, resolve_framebuffer, set_tiles, setup_render_target
    ... )
    >>> from pathtracer.core.tiles import partition_tiles
    >>> from pathtracer.scene.presets import create_three_spheres_scene
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> set_tiles(partition_tiles(400, 225, 4, 4))
    >>> render_samples(num_samples=100, max_depth=50)
    >>> pixels = resolve_framebuffer()
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.pinhole import get_ray
from pathtracer.core.ray import Ray, make_ray, unit_vector
from pathtracer.core.tiles import Tile
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.diffuse import scatter_diffuse_by_id
from pathtracer.materials.reflective import scatter_reflective_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum number of bounces
DEFAULT_MAX_DEPTH = 50

# Lower bound of the hit interval; avoids re-hitting the surface a ray leaves
T_MIN = 0.001
T_MAX = tm.inf

# Background gradient endpoints (bottom / top)
GRADIENT_BOTTOM = vec3(1.0, 1.0, 1.0)
GRADIENT_TOP = vec3(0.5, 0.7, 1.0)

# Largest 8-bit intensity fraction; 256 * 0.999 still truncates to 255
MAX_INTENSITY = 0.999


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Maximum number of tiles per render
MAX_TILES = 4096

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Per-pixel sum of sample colors, indexed [x, y] with y = 0 the top row
_accum_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Resolved 8-bit framebuffer, same indexing as the accumulator
_framebuffer = ti.Vector.field(3, dtype=ti.u8, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Samples accumulated per pixel so far
_total_samples = ti.field(dtype=ti.i32, shape=())

# Tile rectangles as (x0, y0, x1, y1), half-open on the upper bounds
_tile_bounds = ti.Vector.field(4, dtype=ti.i32, shape=MAX_TILES)
_num_tiles = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Result slot for trace_ray()
_trace_result = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions, clears the buffers and installs a
    single tile covering the whole image. The buffers are preallocated to
    MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT to avoid Taichi kernel recompilation.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    _tile_bounds[0] = [0, 0, width, height]
    _num_tiles[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the accumulation buffer, the framebuffer and the sample count."""
    _accum_buffer.fill(0.0)
    _framebuffer.fill(0)
    _total_samples[None] = 0


def reset_render_target() -> None:
    """Forget the active render target (used between independent renders)."""
    _render_target_initialized[None] = 0
    _num_tiles[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def set_tiles(tiles: Sequence[Tile]) -> None:
    """Install the tile layout used by render_samples().

    Args:
        tiles: Disjoint tiles covering the render target, as produced by
            partition_tiles().

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If there are no tiles, too many tiles, or a tile lies
            outside the image.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    if not tiles:
        raise ValueError("At least one tile is required")
    if len(tiles) > MAX_TILES:
        raise ValueError(f"Too many tiles ({len(tiles)}); maximum is {MAX_TILES}")

    for i, tile in enumerate(tiles):
        if not (0 <= tile.x0 < tile.x1 <= width and 0 <= tile.y0 < tile.y1 <= height):
            raise ValueError(f"Tile {tile} lies outside the {width}x{height} image")
        _tile_bounds[i] = [tile.x0, tile.y0, tile.x1, tile.y1]
    _num_tiles[None] = len(tiles)


def get_tile_count() -> int:
    """Get the number of tiles in the active layout."""
    return int(_num_tiles[None])


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal (unit length, facing against the ray).
        front_face: 1 if hit front face, 0 if back face.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.DIFFUSE):
        scattered_direction, attenuation, did_scatter = scatter_diffuse_by_id(type_index, normal)

    elif mat_type == int(MaterialType.REFLECTIVE):
        scattered_direction, attenuation, did_scatter = scatter_reflective_by_id(
            type_index, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Light Transport
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient from white at the bottom to light blue at the top.

    Uses t = 0.5 * (unit(direction).y + 1). A zero direction yields the
    midpoint of the gradient.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * GRADIENT_BOTTOM + t * GRADIENT_TOP


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32) -> vec3:
    """Estimate the color seen along a ray.

    Args:
        ray: The ray to trace.
        max_depth: Maximum number of scattering events; 0 or less is black.

    Returns:
        The RGB color carried back along the ray.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Active flag for path continuation (no break in Taichi functions)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(current, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(current.direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, current.direction, rec.normal, rec.front_face
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = make_ray(rec.point, scattered_direction)

    return color


@ti.func
def _is_finite(color: vec3) -> ti.i32:
    finite = 1
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            finite = 0
    return finite


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_tiles(num_tiles: ti.i32, width: ti.i32, height: ti.i32, samples: ti.i32, max_depth: ti.i32):
    """Accumulate ``samples`` samples into every pixel, one worker per tile."""
    inv_width = 1.0 / ti.cast(width, ti.f32)
    inv_height = 1.0 / ti.cast(height, ti.f32)

    # Only this outermost loop is parallel
    for tile in range(num_tiles):
        bounds = _tile_bounds[tile]
        for y in range(bounds[1], bounds[3]):
            for x in range(bounds[0], bounds[2]):
                pixel_sum = vec3(0.0, 0.0, 0.0)
                for _ in range(samples):
                    u = (ti.cast(x, ti.f32) + ti.random(ti.f32)) * inv_width
                    v = (ti.cast(height - y, ti.f32) + ti.random(ti.f32)) * inv_height
                    color = ray_color(get_ray(u, v), max_depth)
                    # Non-finite samples contribute nothing
                    if _is_finite(color) == 1:
                        pixel_sum += color
                _accum_buffer[x, y] += pixel_sum


@ti.kernel
def _resolve_framebuffer(width: ti.i32, height: ti.i32, samples: ti.i32):
    """Convert the accumulated sums to gamma-2 corrected 8-bit colors."""
    scale = 1.0 / ti.cast(samples, ti.f32)
    for x, y in ti.ndrange(width, height):
        color = tm.sqrt(tm.max(_accum_buffer[x, y] * scale, 0.0))
        for c in ti.static(range(3)):
            if tm.isnan(color[c]):
                color[c] = 0.0
        color = tm.clamp(color, 0.0, MAX_INTENSITY)
        _framebuffer[x, y] = ti.cast(256.0 * color, ti.u8)


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, max_depth: ti.i32):
    # Serial wrapper keeps the path loop from being parallelized
    for _ in range(1):
        _trace_result[None] = ray_color(make_ray(origin, direction), max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[float, float, float]:
    """Evaluate ray_color() for one ray from Python.

    This is a Python-callable function for testing. For production rendering,
    use render_samples() which processes all pixels in parallel.

    Returns:
        Tuple of (R, G, B) color values.
    """
    _trace_ray_kernel(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_depth,
    )
    color = _trace_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def render_samples(num_samples: int = 1, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """Accumulate ``num_samples`` more samples into every pixel.

    Can be called multiple times to add more samples for convergence.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum number of bounces per path.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples is not positive or max_depth is negative.
    """
    _check_render_target_initialized()
    if num_samples <= 0:
        raise ValueError(f"num_samples must be positive, got {num_samples}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    width, height = get_image_dimensions()
    _render_tiles(get_tile_count(), width, height, num_samples, max_depth)
    _total_samples[None] += num_samples


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_total_samples[None])


def get_accumulated_numpy() -> npt.NDArray[np.float32]:
    """Get the raw per-pixel sample sums as a (height, width, 3) array.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    # Buffers are indexed [x, y]; images are [row, column]
    return np.transpose(_accum_buffer.to_numpy()[:width, :height, :], (1, 0, 2))


def resolve_framebuffer() -> npt.NDArray[np.uint8]:
    """Resolve the accumulated samples into an 8-bit image.

    Each channel becomes int(256 * clamp(sqrt(sum / samples), 0, 0.999)).

    Returns:
        NumPy array of shape (height, width, 3) with dtype uint8; row 0 is
        the top of the image.

    Raises:
        RuntimeError: If render target has not been set up or no samples
            have been rendered yet.
    """
    _check_render_target_initialized()
    samples = get_total_samples()
    if samples == 0:
        raise RuntimeError("No samples rendered yet. Call render_samples() first.")

    width, height = get_image_dimensions()
    _resolve_framebuffer(width, height, samples)
    return np.ascontiguousarray(
        np.transpose(_framebuffer.to_numpy()[:width, :height, :], (1, 0, 2))
    )
