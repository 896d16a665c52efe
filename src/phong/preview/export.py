"""Image export utilities for rendered images.

Rendered colors live on a 0-255 scale already clamped by the pixel buffer,
so export is a truncation to 8 bits followed by a Pillow save. The file
format follows the path's extension (PNG, PPM, BMP, ...).

Example:
    >>> from src.phong.preview.export import save_image
    >>> # after Scene(...).render()
    >>> save_image("img/scene.png")
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.phong.core.pixel_buffer import MAX_CHANNEL, get_image_uint8


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a float image on a 0-255 scale to uint8.

    Values are clamped to [0, 255] and truncated toward zero.

    Args:
        image: Array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3).
    """
    return np.clip(image, 0.0, MAX_CHANNEL).astype(np.uint8)


def save_png_from_array(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Save a float image on a 0-255 scale.

    Args:
        image: Array of shape (H, W, 3).
        filepath: Output file path; parent directories are created.

    Raises:
        OSError: If the file cannot be written.
    """
    _write(image_to_uint8(image), Path(filepath))


def save_image(filepath: str | Path) -> None:
    """Save the active pixel buffer.

    Args:
        filepath: Output file path; parent directories are created.

    Raises:
        RuntimeError: If the pixel buffer has not been set up.
        OSError: If the file cannot be written.
    """
    _write(get_image_uint8(), Path(filepath))


def _write(image_uint8: npt.NDArray[np.uint8], filepath: Path) -> None:
    filepath.parent.mkdir(parents=True, exist_ok=True)
    pil_image = PILImage.fromarray(image_uint8, mode="RGB")
    pil_image.save(filepath)
