"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene storage and the pixel buffer around each test.

    This ensures tests are isolated from each other.
    """
    # Import here so modules declaring fields load after ti.init()
    from src.phong.core.pixel_buffer import reset_pixel_buffer
    from src.phong.scene import scene as scene_module
    from src.phong.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        reset_pixel_buffer()
        scene_module._active_scene = None

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def write_scene(tmp_path):
    """Write a scene dictionary to a JSON file and return its path."""
    import json

    def _write(data, name="scene.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sphere_scene_data():
    """A unit sphere at the origin seen from z = 5 and lit from far along +z."""
    return {
        "width": 10,
        "height": 10,
        "viewport_width": 2.0,
        "viewport_distance": 1.0,
        "ambient_coefficient": 0.2,
        "specular_coefficient": 10.0,
        "camera": {"origin": [0.0, 0.0, 5.0], "target": [0.0, 0.0, 0.0]},
        "lights": [{"origin": [0.0, 0.0, 100.0]}],
        "objects": [
            {"type": "sphere", "center": [0.0, 0.0, 0.0], "radius": 1.0, "color": [200, 50, 50]}
        ],
    }
