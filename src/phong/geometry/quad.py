"""Quad primitive with ray-quad intersection.

A quad is defined by:
- corner: A corner point of the quad
- edge_u: Edge vector from corner to adjacent corner
- edge_v: Edge vector from corner to other adjacent corner

The quad spans the parallelogram from corner to corner + edge_u + edge_v.
Its geometric normal is normalize(cross(edge_u, edge_v)); when shading, the
normal is flipped to face against the view hint.

Ray-quad intersection uses the parametric plane test:
1. Find where the ray intersects the plane containing the quad
2. Check that the intersection point lies within the quad bounds

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.phong.geometry.quad import Quad
    >>> # Floor quad at y=0, spanning x=[0,1] and z=[0,1]
    >>> quad = Quad(
    ...     corner=ti.math.vec3(0, 0, 0),
    ...     edge_u=ti.math.vec3(1, 0, 0),
    ...     edge_v=ti.math.vec3(0, 0, 1),
    ... )
"""

import taichi as ti
import taichi.math as tm

from src.phong.core.ray import Ray
from src.phong.geometry.plane import facing
from src.phong.geometry.sphere import T_MAX, T_MIN

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Quad:
    """A quad (parallelogram) defined by a corner point and two edge vectors.

    The quad represents the parallelogram with vertices at:
        corner, corner+edge_u, corner+edge_v, corner+edge_u+edge_v

    Attributes:
        corner: The corner point of the quad (vec3).
        edge_u: Edge vector from corner to adjacent corner (vec3).
        edge_v: Edge vector from corner to other adjacent corner (vec3).
    """

    corner: vec3
    edge_u: vec3
    edge_v: vec3


@ti.func
def _compute_quad_frame(quad: Quad):
    """Compute the quad's plane normal and basis vectors for intersection.

    The intersection point P can be expressed as:
        P = corner + alpha * edge_u + beta * edge_v

    and alpha, beta are recovered with dot products against helper vectors
    w_u = edge_v x n / dot(n, n) and w_v = n x edge_u / dot(n, n), where
    n = edge_u x edge_v (unnormalized).

    Args:
        quad: The quad to compute the frame for.

    Returns:
        Tuple of (normal, d, w_u, w_v) where:
        - normal: Unit normal vector of the quad plane
        - d: Plane constant (distance from origin along normal)
        - w_u: Helper vector for computing alpha coordinate
        - w_v: Helper vector for computing beta coordinate
    """
    n = tm.cross(quad.edge_u, quad.edge_v)
    normal = tm.normalize(n)

    # Plane equation: dot(normal, P) = d
    d = tm.dot(normal, quad.corner)

    n_dot_n = tm.dot(n, n)

    # Degenerate quad (parallel edges) gets zero helper vectors
    w_u = vec3(0.0, 0.0, 0.0)
    w_v = vec3(0.0, 0.0, 0.0)

    if n_dot_n > 1e-10:
        w_u = tm.cross(quad.edge_v, n) / n_dot_n
        w_v = tm.cross(n, quad.edge_u) / n_dot_n

    return normal, d, w_u, w_v


@ti.func
def intersect_quad(ray: Ray, quad: Quad):
    """Find the intersection of a ray with a quad.

    Uses parametric plane intersection followed by bounds checking:
    1. Compute where the ray hits the plane containing the quad
    2. Express the hit point in quad-local coordinates (alpha, beta)
    3. Accept it if 0 <= alpha <= 1 and 0 <= beta <= 1

    Args:
        ray: The ray to test.
        quad: The quad to test against.

    Returns:
        Tuple (hit, point).
    """
    normal, d, w_u, w_v = _compute_quad_frame(quad)

    denom = tm.dot(normal, ray.direction)

    did_hit = 0
    hit_point = vec3(0.0, 0.0, 0.0)

    # Ray not parallel to plane
    if ti.abs(denom) > 1e-8:
        t = (d - tm.dot(normal, ray.origin)) / denom

        if t > T_MIN and t < T_MAX:
            candidate = ray.origin + t * ray.direction

            p_minus_q = candidate - quad.corner
            alpha = tm.dot(w_u, p_minus_q)
            beta = tm.dot(w_v, p_minus_q)

            if alpha >= 0.0 and alpha <= 1.0 and beta >= 0.0 and beta <= 1.0:
                did_hit = 1
                hit_point = candidate

    return did_hit, hit_point


@ti.func
def quad_normal(quad: Quad, view_hint: vec3) -> vec3:
    """Unit normal of a quad, oriented against the view hint."""
    return facing(tm.normalize(tm.cross(quad.edge_u, quad.edge_v)), view_hint)
