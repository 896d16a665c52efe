"""Output utilities for rendered images.

Components:
    export: Save the pixel buffer or a float image through Pillow
"""

from .export import image_to_uint8, save_image, save_png_from_array

__all__ = [
    "image_to_uint8",
    "save_image",
    "save_png_from_array",
]
