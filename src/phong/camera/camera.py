"""Look-at camera for primary ray generation.

The camera is defined by an eye position (origin) and the point it looks at
(target). Its only derived quantity is the orientation vector, the unit view
direction normalize(target - origin). The orientation positions the view
window in front of the eye and serves as the view hint that orients planar
surface normals during shading.

Construction rejects a target equal to the origin with
DegenerateGeometryError instead of letting NaN propagate into the render.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.phong.camera.camera import Camera, setup_camera
    >>> camera = Camera(origin=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0))
    >>> camera.orientation_vector()
    array([ 0.,  0., -1.])
    >>> setup_camera(camera)
"""

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.phong.core.ray import direction_between

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Camera:
    """Eye position and look-at target.

    Attributes:
        origin: Camera position in world space (x, y, z).
        target: Point the camera looks at in world space (x, y, z).

    Raises:
        DegenerateGeometryError: If origin and target coincide.
    """

    origin: tuple[float, float, float]
    target: tuple[float, float, float]

    def __post_init__(self) -> None:
        # Validates origin != target
        direction_between(self.origin, self.target)

    def orientation_vector(self) -> npt.NDArray[np.float64]:
        """Return the unit view direction normalize(target - origin)."""
        return direction_between(self.origin, self.target)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_orientation = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload the camera origin and orientation to Taichi fields.

    Must be called before any kernel that generates primary rays or shades
    planar surfaces.

    Args:
        camera: The camera to activate.
    """
    _camera_origin[None] = [float(c) for c in camera.origin]
    _camera_orientation[None] = camera.orientation_vector().tolist()


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera position in world space."""
    return _camera_origin[None]


@ti.func
def get_camera_orientation() -> vec3:
    """Get the unit view direction of the camera."""
    return _camera_orientation[None]


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin and orientation as Python tuples.
    """
    origin_vec = _camera_origin[None]
    orientation_vec = _camera_orientation[None]
    return {
        "origin": (float(origin_vec[0]), float(origin_vec[1]), float(origin_vec[2])),
        "orientation": (
            float(orientation_vec[0]),
            float(orientation_vec[1]),
            float(orientation_vec[2]),
        ),
    }
