"""Scene module for scene files and shape storage.

Components:
    configuration: JSON scene files and their validation
    mesh: Wavefront OBJ reader for mesh objects
    light: Point lights
    intersection: Shape and light storage in Taichi fields, nearest-hit queries
    scene: The Scene facade tying a configuration to the renderer

Scene data is organized for GPU access:
    - Structure-of-Arrays layout for shape data
    - A shape is identified by its storage index

The Scene class is imported from src.phong.scene.scene directly, since it
depends on the integrator, which depends on this package.
"""

from .configuration import (
    ConfigurationError,
    SceneConfiguration,
    read_configuration,
)
from .intersection import (
    MAX_LIGHTS,
    MAX_SHAPES,
    NO_SHAPE,
    HitInfo,
    ShapeKind,
    add_light,
    add_plane,
    add_quad,
    add_sphere,
    add_triangle,
    clear_scene,
    find_closest_intersection,
    get_light_count,
    get_shape_count,
)
from .light import PointLight
from .mesh import MeshFormatError, read_obj_triangles

__all__ = [
    # Configuration
    "ConfigurationError",
    "SceneConfiguration",
    "read_configuration",
    "MeshFormatError",
    "read_obj_triangles",
    "PointLight",
    # Intersection
    "HitInfo",
    "ShapeKind",
    "add_light",
    "add_plane",
    "add_quad",
    "add_sphere",
    "add_triangle",
    "clear_scene",
    "find_closest_intersection",
    "get_light_count",
    "get_shape_count",
    "MAX_SHAPES",
    "MAX_LIGHTS",
    "NO_SHAPE",
]
