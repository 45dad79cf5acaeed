"""Image export utilities for rendered framebuffers.

Framebuffers already hold gamma-corrected 8-bit colors, so export is a
straight hand-off to Pillow. File system errors (missing directory, no
permission) propagate as OSError.

Supported formats:
    - PNG (8-bit sRGB via Pillow)

Example:
    >>> from pathtracer.preview.export import save_png
    >>> framebuffer = renderer.render()
    >>> save_png(framebuffer, "output.png")
"""

from __future__ import annotations

import logging
import os
from typing import Union

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.core.framebuffer import Framebuffer

logger = logging.getLogger(__name__)

ImageSource = Union[Framebuffer, npt.NDArray[np.uint8]]


def _as_uint8_array(image: ImageSource) -> npt.NDArray[np.uint8]:
    if isinstance(image, Framebuffer):
        return image.to_numpy()
    return Framebuffer.from_array(image).to_numpy()


def save_png(image: ImageSource, filepath: str | os.PathLike[str]) -> None:
    """Save a framebuffer as a PNG file.

    Args:
        image: A Framebuffer, or a (height, width, 3) uint8 array with row 0
            at the top.
        filepath: Output file path (should end in .png).

    Raises:
        OSError: If the file cannot be written.
        ValueError: If an array argument has the wrong shape.
    """
    pixels = _as_uint8_array(image)
    pil_image = PILImage.fromarray(pixels, mode="RGB")
    pil_image.save(filepath, format="PNG")
    logger.info("Saved %dx%d image to %s", pixels.shape[1], pixels.shape[0], filepath)


def load_png(filepath: str | os.PathLike[str]) -> Framebuffer:
    """Read a PNG file back into a Framebuffer.

    Raises:
        OSError: If the file cannot be read or decoded.
    """
    with PILImage.open(filepath) as pil_image:
        pixels = np.asarray(pil_image.convert("RGB"), dtype=np.uint8)
    return Framebuffer.from_array(pixels)


def compute_rmse(image_a: ImageSource, image_b: ImageSource) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image.
        image_b: Second image (must have the same dimensions as image_a).

    Returns:
        RMSE in 8-bit units (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    a = _as_uint8_array(image_a)
    b = _as_uint8_array(image_b)
    if a.shape != b.shape:
        raise ValueError(f"Image shapes must match: {a.shape} vs {b.shape}")

    diff = a.astype(np.float64) - b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
