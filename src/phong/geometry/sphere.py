"""Sphere primitive with robust ray-sphere intersection.

This module provides a Sphere dataclass, its intersection function and its
surface normal. Intersection uses the robust quadratic formula from Ray
Tracing Gems to avoid catastrophic cancellation when b^2 is nearly equal to
4ac.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.phong.geometry.sphere import Sphere, intersect_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, 0), radius=1.0)
    >>> # Use intersect_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.phong.core.ray import Ray

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Minimum ray parameter accepted as a hit (avoids self-intersection)
T_MIN = 1e-4

# Maximum ray parameter accepted as a hit
T_MAX = 1e10


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray: fall back to the textbook formula
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def intersect_sphere(ray: Ray, sphere: Sphere):
    """Find the nearest intersection of a ray with a sphere.

    Solves |origin + t * direction - center|^2 = radius^2 with the half-b
    formulation a*t^2 + 2*h*t + c = 0, where:
        a = dot(direction, direction)
        h = dot(direction, origin - center)
        c = dot(origin - center, origin - center) - radius^2

    The smaller root in (T_MIN, T_MAX) is preferred; a ray starting inside
    the sphere hits the far side.

    Args:
        ray: The ray to test.
        sphere: The sphere to test against.

    Returns:
        Tuple (hit, point): hit is 1 if the ray strikes the sphere, and point
        is the intersection point (only meaningful when hit == 1).
    """
    oc = ray.origin - sphere.center

    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    did_hit = 0
    hit_point = vec3(0.0, 0.0, 0.0)

    if discriminant >= 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > T_MIN) and (t < T_MAX)

        if not valid:
            t = t1
            valid = (t > T_MIN) and (t < T_MAX)

        if valid:
            did_hit = 1
            hit_point = ray.origin + t * ray.direction

    return did_hit, hit_point


@ti.func
def sphere_normal(sphere: Sphere, point: vec3) -> vec3:
    """Outward unit normal of a sphere at a surface point.

    Spheres are closed surfaces, so the normal always points away from the
    center regardless of where the viewer is.
    """
    return (point - sphere.center) / sphere.radius
