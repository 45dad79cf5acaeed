"""Host-side 8-bit RGB framebuffer.

The Framebuffer wraps a ``(height, width, 3)`` uint8 NumPy array. Row 0 is
the top of the image, which is also the layout Pillow expects, so the array
can be handed to an image writer unchanged.
"""

import numpy as np
import numpy.typing as npt


class Framebuffer:
    """A grid of 8-bit RGB triples.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.

    Example:
        >>> fb = Framebuffer(4, 2)
        >>> fb.set_pixel(3, 1, (255, 0, 0))
        >>> fb.pixel(3, 1)
        (255, 0, 0)
    """

    def __init__(self, width: int, height: int) -> None:
        """Create a black framebuffer.

        Raises:
            ValueError: If either dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Framebuffer dimensions ({width}x{height}) must be positive")
        self._pixels = np.zeros((height, width, 3), dtype=np.uint8)

    @classmethod
    def from_array(cls, pixels: npt.ArrayLike) -> "Framebuffer":
        """Wrap a copy of a ``(height, width, 3)`` array.

        Raises:
            ValueError: If the array does not have that shape or holds values
                outside [0, 255].
        """
        array = np.asarray(pixels)
        if array.ndim != 3 or array.shape[2] != 3:
            raise ValueError(f"Expected an array of shape (height, width, 3), got {array.shape}")
        if array.dtype != np.uint8:
            if array.size and (array.min() < 0 or array.max() > 255):
                raise ValueError("Pixel values must be in [0, 255]")
            array = array.astype(np.uint8)

        framebuffer = cls(array.shape[1], array.shape[0])
        framebuffer._pixels[...] = array
        return framebuffer

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) is outside the {self.width}x{self.height} image")

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        """Get the RGB triple of column ``x`` in row ``y`` (row 0 is the top)."""
        self._check_bounds(x, y)
        r, g, b = self._pixels[y, x]
        return (int(r), int(g), int(b))

    def set_pixel(self, x: int, y: int, rgb: tuple[int, int, int]) -> None:
        """Write one pixel.

        Raises:
            IndexError: If (x, y) is outside the image.
            ValueError: If a channel is outside [0, 255].
        """
        self._check_bounds(x, y)
        if any(c < 0 or c > 255 for c in rgb):
            raise ValueError(f"Pixel value {rgb} is outside [0, 255]")
        self._pixels[y, x] = rgb

    def fill(self, rgb: tuple[int, int, int]) -> None:
        """Set every pixel to the same color."""
        if any(c < 0 or c > 255 for c in rgb):
            raise ValueError(f"Pixel value {rgb} is outside [0, 255]")
        self._pixels[...] = rgb

    def to_numpy(self) -> npt.NDArray[np.uint8]:
        """Get a copy of the pixels as a ``(height, width, 3)`` uint8 array."""
        return self._pixels.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Framebuffer):
            return NotImplemented
        return bool(np.array_equal(self._pixels, other._pixels))

    def __repr__(self) -> str:
        return f"Framebuffer(width={self.width}, height={self.height})"
