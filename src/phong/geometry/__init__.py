"""Geometry module for shape primitives.

This module provides the closed set of scene shapes and their intersection
algorithms:

Components:
    sphere: Sphere primitive with robust ray-sphere intersection
    plane: Infinite plane primitive
    triangle: Triangle primitive (Moller-Trumbore), used by mesh objects
    quad: Parallelogram primitive

Every primitive exposes, as Taichi functions:
    hit, point = intersect_<shape>(ray, shape)
    normal = <shape>_normal(shape, ...)

Normals of planar shapes are oriented against a view hint (the camera view
direction); sphere normals always point outward.
"""

from .plane import Plane, facing, intersect_plane, plane_normal
from .quad import Quad, intersect_quad, quad_normal
from .sphere import T_MAX, T_MIN, Sphere, intersect_sphere, sphere_normal
from .triangle import Triangle, intersect_triangle, triangle_normal

__all__ = [
    "Sphere",
    "intersect_sphere",
    "sphere_normal",
    "Plane",
    "intersect_plane",
    "plane_normal",
    "facing",
    "Triangle",
    "intersect_triangle",
    "triangle_normal",
    "Quad",
    "intersect_quad",
    "quad_normal",
    "T_MIN",
    "T_MAX",
]
