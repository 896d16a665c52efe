"""View window: projection of discrete pixels onto the image plane.

The view window is a rectangle of physical width viewport_width placed
viewport_distance in front of the camera and centered on its view direction.
Its height follows the pixel aspect ratio:

    viewport_height = viewport_width * pixel_height / pixel_width

Pixels are sampled at the window corners, not at pixel centers:
    - pixel (0, 0) is the top-left corner of the window
    - pixel (w - 1, h - 1) is the bottom-right corner
    - x grows along the window's right vector, y grows along -up

The window basis is derived from the camera orientation and a fixed world up
vector (0, 1, 0). When the view direction is colinear with world up, the
alternate up vector (0, 0, 1) is used.

The mapping is computed once with NumPy (top-left corner plus one step vector
per pixel axis) and uploaded to Taichi fields so kernels evaluate the same
affine map as ViewWindow.at().
"""

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.phong.camera.camera import Camera
from src.phong.core.ray import unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3

WORLD_UP = (0.0, 1.0, 0.0)
ALTERNATE_UP = (0.0, 0.0, 1.0)

# |dot(orientation, up)| above which the two are treated as colinear
COLINEAR_THRESHOLD = 0.999


@dataclass(frozen=True)
class ViewWindow:
    """The virtual image plane onto which pixels are projected.

    Attributes:
        pixel_width: Horizontal resolution in pixels (positive).
        pixel_height: Vertical resolution in pixels (positive).
        viewport_width: Physical width of the window in world units.
        position: World-space center of the window.
        right: Unit vector pointing right in the window plane.
        up: Unit vector pointing up in the window plane.
    """

    pixel_width: int
    pixel_height: int
    viewport_width: float
    position: tuple[float, float, float]
    right: tuple[float, float, float]
    up: tuple[float, float, float]

    def __post_init__(self) -> None:
        if self.pixel_width <= 0 or self.pixel_height <= 0:
            raise ValueError(
                f"View window resolution must be positive, got "
                f"{self.pixel_width}x{self.pixel_height}"
            )
        if self.viewport_width <= 0.0:
            raise ValueError(f"Viewport width must be positive, got {self.viewport_width}")

    @property
    def viewport_height(self) -> float:
        """Physical height of the window, preserving the pixel aspect ratio."""
        return self.viewport_width * (self.pixel_height / self.pixel_width)

    def top_left(self) -> npt.NDArray[np.float64]:
        """World-space point mapped to pixel (0, 0)."""
        position = np.asarray(self.position, dtype=np.float64)
        right = np.asarray(self.right, dtype=np.float64)
        up = np.asarray(self.up, dtype=np.float64)
        return position - right * (self.viewport_width / 2.0) + up * (self.viewport_height / 2.0)

    def pixel_steps(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """World-space offsets between horizontally and vertically adjacent pixels.

        A dimension of a single pixel has a zero step, which maps that pixel
        to the window center along the axis.
        """
        right = np.asarray(self.right, dtype=np.float64)
        up = np.asarray(self.up, dtype=np.float64)

        step_x = np.zeros(3)
        step_y = np.zeros(3)
        if self.pixel_width > 1:
            step_x = right * (self.viewport_width / (self.pixel_width - 1))
        if self.pixel_height > 1:
            step_y = -up * (self.viewport_height / (self.pixel_height - 1))
        return step_x, step_y

    def at(self, x: int, y: int) -> tuple[float, float, float]:
        """Map a pixel coordinate to a point on the window.

        Args:
            x: Pixel column in [0, pixel_width).
            y: Pixel row in [0, pixel_height), 0 at the top.

        Returns:
            The world-space point as an (x, y, z) tuple.
        """
        origin = self.top_left()
        if self.pixel_width == 1:
            origin = origin + np.asarray(self.right) * (self.viewport_width / 2.0)
        if self.pixel_height == 1:
            origin = origin - np.asarray(self.up) * (self.viewport_height / 2.0)
        step_x, step_y = self.pixel_steps()
        point = origin + step_x * x + step_y * y
        return (float(point[0]), float(point[1]), float(point[2]))


def window_basis(
    orientation: npt.NDArray[np.float64],
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Build the (right, up) basis of a window facing along orientation.

    Args:
        orientation: Unit view direction.

    Returns:
        Tuple (right, up) of unit vectors orthogonal to orientation.
    """
    world_up = np.asarray(WORLD_UP)
    if abs(float(np.dot(orientation, world_up))) > COLINEAR_THRESHOLD:
        world_up = np.asarray(ALTERNATE_UP)

    right = unit_vector(np.cross(orientation, world_up))
    up = np.cross(right, orientation)
    return right, up


def make_view_window(
    pixel_width: int,
    pixel_height: int,
    viewport_width: float,
    camera: Camera,
    viewport_distance: float,
) -> ViewWindow:
    """Place a view window viewport_distance in front of the camera.

    Args:
        pixel_width: Horizontal resolution in pixels.
        pixel_height: Vertical resolution in pixels.
        viewport_width: Physical width of the window.
        camera: The camera the window belongs to.
        viewport_distance: Distance from the eye to the window center.

    Returns:
        An immutable ViewWindow.
    """
    orientation = camera.orientation_vector()
    position = np.asarray(camera.origin, dtype=np.float64) + orientation * viewport_distance
    right, up = window_basis(orientation)

    return ViewWindow(
        pixel_width=pixel_width,
        pixel_height=pixel_height,
        viewport_width=viewport_width,
        position=(float(position[0]), float(position[1]), float(position[2])),
        right=(float(right[0]), float(right[1]), float(right[2])),
        up=(float(up[0]), float(up[1]), float(up[2])),
    )


# =============================================================================
# Taichi Fields for the Active View Window
# =============================================================================

_window_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_window_step_x = ti.Vector.field(3, dtype=ti.f32, shape=())
_window_step_y = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_view_window(window: ViewWindow) -> None:
    """Upload the pixel-to-plane mapping of a window to Taichi fields.

    Args:
        window: The view window to activate.
    """
    step_x, step_y = window.pixel_steps()
    _window_origin[None] = list(window.at(0, 0))
    _window_step_x[None] = step_x.tolist()
    _window_step_y[None] = step_y.tolist()


@ti.func
def view_window_at(x: ti.i32, y: ti.i32) -> vec3:
    """Map a pixel coordinate to a point on the active view window.

    Taichi counterpart of ViewWindow.at() for use inside kernels.
    """
    return (
        _window_origin[None]
        + ti.cast(x, ti.f32) * _window_step_x[None]
        + ti.cast(y, ti.f32) * _window_step_y[None]
    )


@ti.kernel
def _view_window_point(x: ti.i32, y: ti.i32) -> vec3:
    """Evaluate view_window_at() for a single pixel."""
    return view_window_at(x, y)


def get_view_window_point(x: int, y: int) -> tuple[float, float, float]:
    """Evaluate the active view window mapping from Python.

    Args:
        x: Pixel column.
        y: Pixel row.

    Returns:
        The world-space point as computed inside kernels.
    """
    point = _view_window_point(x, y)
    return (float(point[0]), float(point[1]), float(point[2]))
