"""Infinite plane primitive.

A plane is defined by any point on it and a unit normal. Planes are one-sided
only for shading purposes: the normal returned by plane_normal() is flipped
to face against the view hint, so a plane looks the same from either side.
"""

import taichi as ti
import taichi.math as tm

from src.phong.core.ray import Ray
from src.phong.geometry.sphere import T_MAX, T_MIN

vec3 = tm.vec3


@ti.dataclass
class Plane:
    """An infinite plane.

    Attributes:
        point: Any point on the plane (vec3).
        normal: Unit normal of the plane (vec3).
    """

    point: vec3
    normal: vec3


@ti.func
def facing(normal: vec3, view_hint: vec3) -> vec3:
    """Flip a normal so it points against the view direction."""
    result = normal
    if tm.dot(normal, view_hint) > 0.0:
        result = -normal
    return result


@ti.func
def intersect_plane(ray: Ray, plane: Plane):
    """Find the intersection of a ray with a plane.

    Solves dot(origin + t * direction - point, normal) = 0 for t. Rays
    parallel to the plane never hit it.

    Returns:
        Tuple (hit, point).
    """
    did_hit = 0
    hit_point = vec3(0.0, 0.0, 0.0)

    denom = tm.dot(plane.normal, ray.direction)
    if ti.abs(denom) > 1e-8:
        t = tm.dot(plane.point - ray.origin, plane.normal) / denom
        if t > T_MIN and t < T_MAX:
            did_hit = 1
            hit_point = ray.origin + t * ray.direction

    return did_hit, hit_point


@ti.func
def plane_normal(plane: Plane, view_hint: vec3) -> vec3:
    """Unit normal of a plane, oriented against the view hint."""
    return facing(plane.normal, view_hint)
