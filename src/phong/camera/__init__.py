"""Camera module.

Components:
    camera: Eye position and look-at target
    view_window: Image plane that maps pixels to world-space points
"""

from .camera import Camera, get_camera_info, setup_camera
from .view_window import (
    ViewWindow,
    get_view_window_point,
    make_view_window,
    setup_view_window,
    window_basis,
)

__all__ = [
    "Camera",
    "get_camera_info",
    "setup_camera",
    "ViewWindow",
    "get_view_window_point",
    "make_view_window",
    "setup_view_window",
    "window_basis",
]
