"""Pixel buffer: the render target written by the frame kernel.

The buffer is preallocated to the largest image a scene file may request
(MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT) to avoid kernel recompilation when the
resolution changes; only the active region is exported. It is indexed
[x, y] with y = 0 at the top row of the image.

Colors are RGB floats on a 0-255 scale. Shading accumulates unbounded
values; set_pixel() clamps each component to [0, 255] on write. Pixels that
are never written keep the background color the buffer was filled with.
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.phong.scene.configuration import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH

# Type alias for 3D vectors
vec3 = tm.vec3

# Largest channel value of an 8-bit image
MAX_CHANNEL = 255.0

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())
_background = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixels = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_pixel_buffer_initialized = ti.field(dtype=ti.i32, shape=())


def check_image_dimensions(width: int, height: int) -> None:
    """Raise ValueError unless 0 < width <= MAX_IMAGE_WIDTH and 0 < height <= MAX_IMAGE_HEIGHT."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )


def setup_pixel_buffer(
    width: int,
    height: int,
    background: Sequence[float] = (0.0, 0.0, 0.0),
) -> None:
    """Set the active image dimensions and fill the buffer with background.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        background: RGB color of pixels no ray writes, in [0, 255].

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum size.
    """
    check_image_dimensions(width, height)

    _image_width[None] = width
    _image_height[None] = height
    _background[None] = [min(max(float(c), 0.0), MAX_CHANNEL) for c in background]
    _pixel_buffer_initialized[None] = 1

    clear_pixel_buffer()


@ti.kernel
def _fill_pixels(color: vec3):
    for i, j in _pixels:
        _pixels[i, j] = color


def clear_pixel_buffer() -> None:
    """Reset every pixel to the background color."""
    _fill_pixels(_background[None])


def reset_pixel_buffer() -> None:
    """Mark the buffer as not set up."""
    _pixel_buffer_initialized[None] = 0


def _check_pixel_buffer_initialized() -> None:
    """Raise if the buffer has not been set up."""
    if _pixel_buffer_initialized[None] == 0:
        raise RuntimeError("Pixel buffer not set up. Call setup_pixel_buffer() first.")


def get_image_dimensions() -> tuple[int, int]:
    """Get the active (width, height) of the buffer."""
    return int(_image_width[None]), int(_image_height[None])


@ti.func
def set_pixel(x: ti.i32, y: ti.i32, color: vec3):
    """Write a color to the buffer, clamping each channel to [0, 255]."""
    _pixels[x, y] = tm.clamp(color, 0.0, MAX_CHANNEL)


def get_pixel(x: int, y: int) -> tuple[float, float, float]:
    """Read one pixel of the buffer.

    Raises:
        RuntimeError: If the buffer has not been set up.
        IndexError: If (x, y) lies outside the active region.
    """
    _check_pixel_buffer_initialized()
    width, height = get_image_dimensions()
    if not (0 <= x < width and 0 <= y < height):
        raise IndexError(f"Pixel ({x}, {y}) outside {width}x{height} image")
    color = _pixels[x, y]
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the active region of the buffer as a float image.

    Returns:
        Array of shape (height, width, 3) with values in [0, 255].

    Raises:
        RuntimeError: If the buffer has not been set up.
    """
    _check_pixel_buffer_initialized()
    width, height = get_image_dimensions()

    full_image = _pixels.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3); row 0 is already the top row
    return np.transpose(image, (1, 0, 2)).astype(np.float32)


def get_image_uint8() -> npt.NDArray[np.uint8]:
    """Get the active region of the buffer as an 8-bit image.

    Channels are truncated toward zero after clamping.

    Returns:
        Array of shape (height, width, 3) with dtype uint8.
    """
    image = get_image_numpy()
    return np.clip(image, 0.0, MAX_CHANNEL).astype(np.uint8)
