"""Triangle primitive with Moller-Trumbore intersection.

Triangles are the building block of mesh objects: a mesh definition in a
scene file expands into one triangle shape per face.

The geometric normal is normalize(cross(v1 - v0, v2 - v0)) (counter-clockwise
winding) and is flipped to face against the view hint when shading.
"""

import taichi as ti
import taichi.math as tm

from src.phong.core.ray import Ray
from src.phong.geometry.plane import facing
from src.phong.geometry.sphere import T_MAX, T_MIN

vec3 = tm.vec3

# Determinant below which the ray is treated as parallel to the triangle
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Triangle:
    """A triangle given by its three vertices.

    Attributes:
        v0: First vertex (vec3).
        v1: Second vertex (vec3).
        v2: Third vertex (vec3).
    """

    v0: vec3
    v1: vec3
    v2: vec3


@ti.func
def intersect_triangle(ray: Ray, triangle: Triangle):
    """Find the intersection of a ray with a triangle.

    Uses the Moller-Trumbore algorithm: the hit point is expressed in
    barycentric coordinates (u, v) and accepted when u >= 0, v >= 0 and
    u + v <= 1.

    Args:
        ray: The ray to test.
        triangle: The triangle to test against.

    Returns:
        Tuple (hit, point).
    """
    did_hit = 0
    hit_point = vec3(0.0, 0.0, 0.0)

    edge1 = triangle.v1 - triangle.v0
    edge2 = triangle.v2 - triangle.v0

    h = tm.cross(ray.direction, edge2)
    a = tm.dot(edge1, h)

    if ti.abs(a) > PARALLEL_EPSILON:
        f = 1.0 / a
        s = ray.origin - triangle.v0
        u = f * tm.dot(s, h)

        if u >= 0.0 and u <= 1.0:
            q = tm.cross(s, edge1)
            v = f * tm.dot(ray.direction, q)

            if v >= 0.0 and u + v <= 1.0:
                t = f * tm.dot(edge2, q)
                if t > T_MIN and t < T_MAX:
                    did_hit = 1
                    hit_point = ray.origin + t * ray.direction

    return did_hit, hit_point


@ti.func
def triangle_normal(triangle: Triangle, view_hint: vec3) -> vec3:
    """Unit normal of a triangle, oriented against the view hint."""
    n = tm.normalize(tm.cross(triangle.v1 - triangle.v0, triangle.v2 - triangle.v0))
    return facing(n, view_hint)
