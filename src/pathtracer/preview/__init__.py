"""Preview module for rendered output.

Components:
    export: PNG export via Pillow and image comparison helpers

Example:
    >>> from pathtracer.preview import save_png
    >>> save_png(framebuffer, "output.png")
"""

from pathtracer.preview.export import compute_rmse, load_png, save_png

__all__ = [
    "save_png",
    "load_png",
    "compute_rmse",
]
