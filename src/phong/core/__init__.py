"""Core rendering module.

Components:
    ray: Ray structure and vector utilities
    pixel_buffer: Render target indexed [x, y] with y = 0 at the top
    integrator: Shadows, Phong shading and the frame kernel

Only the ray utilities are re-exported; pixel_buffer and integrator are
imported directly because the integrator depends on the scene package.
"""

from .ray import (
    DegenerateGeometryError,
    Ray,
    direction_between,
    make_ray,
    ray_at,
    ray_distance,
    ray_from_points,
    ray_reflection,
    reflect,
    reflection_ray,
    unit_vector,
)

__all__ = [
    "DegenerateGeometryError",
    "Ray",
    "direction_between",
    "make_ray",
    "ray_at",
    "ray_distance",
    "ray_from_points",
    "ray_reflection",
    "reflect",
    "reflection_ray",
    "unit_vector",
]
