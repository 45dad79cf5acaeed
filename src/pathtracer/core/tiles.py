"""Partitioning of the image plane into rectangular work tiles.

An image of ``width x height`` pixels is cut into ``rows x cols`` tiles. Tile
edges are spread as evenly as possible: when the size does not divide
evenly, the first tiles of a row or column are one pixel larger. The tiles
are disjoint and together cover every pixel exactly once.

Tiles are ordered row-major starting at the top-left corner; pixel row 0 is
the top of the image.

Example:
    >>> from pathtracer.core.tiles import partition_tiles
    >>> tiles = partition_tiles(10, 4, rows=2, cols=3)
    >>> [(t.x0, t.x1) for t in tiles[:3]]
    [(0, 4), (4, 7), (7, 10)]
"""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class Tile:
    """A half-open pixel rectangle [x0, x1) x [y0, y1).

    Attributes:
        index: Position of the tile in row-major order.
        x0: First column (inclusive).
        y0: First row (inclusive).
        x1: Last column (exclusive).
        y1: Last row (exclusive).
    """

    index: int
    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def contains(self, x: int, y: int) -> bool:
        """Check whether pixel (x, y) belongs to this tile."""
        return self.x0 <= x < self.x1 and self.y0 <= y < self.y1


def _split(length: int, parts: int) -> list[int]:
    """Return the ``parts + 1`` edges splitting ``length`` as evenly as possible."""
    base, extra = divmod(length, parts)
    edges = [0]
    for i in range(parts):
        edges.append(edges[-1] + base + (1 if i < extra else 0))
    return edges


def partition_tiles(width: int, height: int, rows: int, cols: int) -> list[Tile]:
    """Split a ``width x height`` image into ``rows x cols`` tiles.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        rows: Number of tile rows (at most ``height``).
        cols: Number of tile columns (at most ``width``).

    Returns:
        The tiles in row-major order.

    Raises:
        ValueError: If any argument is not positive, or there are more tile
            rows/columns than pixel rows/columns (which would leave empty tiles).
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if rows <= 0 or cols <= 0:
        raise ValueError(f"Tile grid ({rows}x{cols}) must be positive")
    if rows > height or cols > width:
        raise ValueError(
            f"Tile grid ({rows} rows x {cols} cols) is finer than the "
            f"{width}x{height} image"
        )

    x_edges = _split(width, cols)
    y_edges = _split(height, rows)

    tiles = []
    for r in range(rows):
        for c in range(cols):
            tiles.append(
                Tile(
                    index=len(tiles),
                    x0=x_edges[c],
                    y0=y_edges[r],
                    x1=x_edges[c + 1],
                    y1=y_edges[r + 1],
                )
            )
    return tiles


def tile_of_pixel(tiles: Sequence[Tile], x: int, y: int) -> Tile:
    """Find the tile that owns pixel (x, y).

    Raises:
        ValueError: If no tile contains the pixel.
    """
    for tile in tiles:
        if tile.contains(x, y):
            return tile
    raise ValueError(f"Pixel ({x}, {y}) is not covered by any tile")
