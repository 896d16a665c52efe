"""Unit tests for the camera and view window.

Tests cover:
- Camera validation and orientation
- View window basis, corners and aspect ratio
- Agreement between the Python and Taichi pixel mappings
"""

import numpy as np
import pytest


class TestCamera:
    """Tests for the Camera dataclass."""

    def test_orientation_is_unit_direction_to_target(self):
        """Test orientation_vector is normalize(target - origin)."""
        from src.phong.camera.camera import Camera

        camera = Camera(origin=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0))
        assert np.allclose(camera.orientation_vector(), (0.0, 0.0, -1.0))

    def test_coincident_origin_and_target_rejected(self):
        """Test a camera looking at its own position is degenerate."""
        from src.phong.camera.camera import Camera
        from src.phong.core.ray import DegenerateGeometryError

        with pytest.raises(DegenerateGeometryError):
            Camera(origin=(1.0, 1.0, 1.0), target=(1.0, 1.0, 1.0))

    def test_setup_camera_uploads_state(self):
        """Test setup_camera writes origin and orientation to fields."""
        from src.phong.camera.camera import Camera, get_camera_info, setup_camera

        setup_camera(Camera(origin=(1.0, 2.0, 3.0), target=(1.0, 2.0, 13.0)))
        info = get_camera_info()
        assert np.allclose(info["origin"], (1.0, 2.0, 3.0))
        assert np.allclose(info["orientation"], (0.0, 0.0, 1.0))


class TestViewWindow:
    """Tests for make_view_window and ViewWindow.at."""

    def _window(self, width=10, height=10, viewport_width=2.0):
        from src.phong.camera.camera import Camera
        from src.phong.camera.view_window import make_view_window

        camera = Camera(origin=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0))
        return make_view_window(width, height, viewport_width, camera, 1.0)

    def test_window_centered_in_front_of_camera(self):
        """Test the window center lies viewport_distance along the view direction."""
        window = self._window()
        assert np.allclose(window.position, (0.0, 0.0, 4.0))

    def test_basis_is_orthonormal(self):
        """Test right and up are unit length and orthogonal to the view direction."""
        window = self._window()
        right = np.asarray(window.right)
        up = np.asarray(window.up)
        forward = np.array([0.0, 0.0, -1.0])

        assert abs(np.linalg.norm(right) - 1.0) < 1e-9
        assert abs(np.linalg.norm(up) - 1.0) < 1e-9
        assert abs(np.dot(right, up)) < 1e-9
        assert abs(np.dot(right, forward)) < 1e-9
        assert abs(np.dot(up, forward)) < 1e-9

    def test_corners(self):
        """Test pixel (0, 0) is the top-left and (w-1, h-1) the bottom-right corner."""
        window = self._window()
        assert np.allclose(window.at(0, 0), (-1.0, 1.0, 4.0))
        assert np.allclose(window.at(9, 0), (1.0, 1.0, 4.0))
        assert np.allclose(window.at(0, 9), (-1.0, -1.0, 4.0))
        assert np.allclose(window.at(9, 9), (1.0, -1.0, 4.0))

    def test_height_follows_aspect_ratio(self):
        """Test viewport_height = viewport_width * h / w."""
        window = self._window(width=20, height=10, viewport_width=4.0)
        assert abs(window.viewport_height - 2.0) < 1e-12
        assert np.allclose(window.at(0, 0), (-2.0, 1.0, 4.0))
        assert np.allclose(window.at(19, 9), (2.0, -1.0, 4.0))

    def test_single_pixel_maps_to_center(self):
        """Test a 1x1 window maps its only pixel to the window center."""
        window = self._window(width=1, height=1)
        assert np.allclose(window.at(0, 0), (0.0, 0.0, 4.0))

    def test_vertical_view_uses_alternate_up(self):
        """Test looking straight down still yields a valid basis."""
        from src.phong.camera.view_window import window_basis

        right, up = window_basis(np.array([0.0, -1.0, 0.0]))
        assert np.all(np.isfinite(right))
        assert abs(np.linalg.norm(right) - 1.0) < 1e-9
        assert abs(np.linalg.norm(up) - 1.0) < 1e-9
        assert abs(right[1]) < 1e-9

    def test_invalid_resolution_rejected(self):
        """Test non-positive resolutions raise ValueError."""
        with pytest.raises(ValueError):
            self._window(width=0)
        with pytest.raises(ValueError):
            self._window(viewport_width=0.0)

    def test_kernel_mapping_matches_python(self):
        """Test view_window_at inside kernels agrees with ViewWindow.at."""
        from src.phong.camera.view_window import get_view_window_point, setup_view_window

        window = self._window(width=8, height=6, viewport_width=3.0)
        setup_view_window(window)

        for x, y in [(0, 0), (7, 0), (3, 2), (7, 5), (0, 5)]:
            assert np.allclose(get_view_window_point(x, y), window.at(x, y), atol=1e-5)
