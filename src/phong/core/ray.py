"""Ray data structure and vector utilities for the Phong ray tracer.

This module provides the Ray dataclass used by every kernel in the renderer,
the ray operations needed for primary, shadow and reflected rays, and a small
set of vector helpers. Ray operations are Taichi functions so they can run
inside the frame kernel.

Two construction modes exist:
    - make_ray(origin, direction): the caller guarantees a unit direction.
    - ray_from_points(origin, destination): the direction is derived by
      normalizing destination - origin.

Python-side helpers (direction_between, unit_vector) perform the same
normalization with NumPy and raise DegenerateGeometryError for coincident
points, so malformed scenes fail at construction time instead of producing
NaN colors.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.phong.core.ray import ray_from_points, ray_at, vec3
    >>> @ti.kernel
    ... def point_along_ray() -> vec3:
    ...     ray = ray_from_points(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, 0.0))
    ...     return ray_at(ray, 2.0)  # (0, 0, 3)
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Shortest vector length that can still be normalized
DEGENERATE_EPSILON = 1e-9


class DegenerateGeometryError(ValueError):
    """Raised when a direction would be derived from a zero-length vector.

    Examples are a camera whose origin equals its target, a plane with a zero
    normal, or a triangle whose vertices are collinear.
    """


@ti.dataclass
class Ray:
    """A directed half-line.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Unit length, established
            once at construction and never re-normalized afterwards.
    """

    origin: vec3
    direction: vec3


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The result is undefined (NaN) for a zero vector; use safe_normalize when
    the input may be degenerate.
    """
    return tm.normalize(v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if every component of v is below DEGENERATE_EPSILON."""
    s = DEGENERATE_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def safe_normalize(v: vec3) -> vec3:
    """Normalize a vector, returning the zero vector for degenerate input.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v, or (0, 0, 0) if v is too short
        to be normalized.
    """
    result = vec3(0.0, 0.0, 0.0)
    n = tm.length(v)
    if n > DEGENERATE_EPSILON:
        result = v / n
    return result


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The reflected direction incident - 2 * normal * dot(incident, normal).
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


# =============================================================================
# Ray Construction and Queries
# =============================================================================


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from an origin and an already normalized direction.

    The direction is not normalized or checked. Passing a non-unit direction
    silently breaks every distance and shading computation downstream.

    Args:
        origin: The starting point of the ray.
        direction: The unit direction of the ray.

    Returns:
        A new Ray instance.
    """
    return Ray(origin=origin, direction=direction)


@ti.func
def ray_from_points(origin: vec3, destination: vec3) -> Ray:
    """Create a ray from origin pointing at destination.

    The direction is normalize(destination - origin). Coincident points give
    a zero direction rather than NaN; test it with near_zero().

    Args:
        origin: The starting point of the ray.
        destination: Any point the ray passes through.

    Returns:
        A new Ray instance with a unit (or zero) direction.
    """
    return Ray(origin=origin, direction=safe_normalize(destination - origin))


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point at distance t along the ray."""
    return ray.origin + t * ray.direction


@ti.func
def ray_distance(ray: Ray, point: vec3) -> ti.f32:
    """Compute the straight-line distance from the ray origin to a point.

    The point is not projected onto the ray; this is the Euclidean distance
    used to compare intersection candidates.
    """
    return tm.length(point - ray.origin)


@ti.func
def ray_reflection(ray: Ray, normal: vec3) -> vec3:
    """Reflect the ray direction about a unit normal.

    The ray itself is not modified.

    Args:
        ray: The incoming ray.
        normal: The surface normal at the reflection point (unit length).

    Returns:
        The reflected direction d - 2 * n * dot(d, n).
    """
    return reflect(ray.direction, normal)


@ti.func
def reflection_ray(ray: Ray, point: vec3, normal: vec3) -> Ray:
    """Create the secondary ray reflected about a normal at a surface point.

    Args:
        ray: The incoming ray.
        point: The surface point the reflected ray starts from.
        normal: The surface normal at point (unit length).

    Returns:
        A new Ray rooted at point with the reflected direction.
    """
    return make_ray(point, ray_reflection(ray, normal))


# =============================================================================
# Python-side Helpers
# =============================================================================


def unit_vector(v: Sequence[float] | npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Normalize a vector on the Python side.

    Args:
        v: Any 3-component vector.

    Returns:
        The unit vector as a float64 NumPy array.

    Raises:
        DegenerateGeometryError: If v has (near) zero length.
    """
    array = np.asarray(v, dtype=np.float64)
    norm = float(np.linalg.norm(array))
    if norm < DEGENERATE_EPSILON:
        raise DegenerateGeometryError(f"Cannot normalize zero-length vector {array.tolist()}")
    return array / norm


def direction_between(
    origin: Sequence[float] | npt.NDArray[np.float64],
    destination: Sequence[float] | npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """Compute the unit direction from origin to destination.

    This is the Python-side counterpart of ray_from_points() and is used at
    construction time (camera, scene set-up) where errors can still be raised.

    Args:
        origin: The start point.
        destination: The end point.

    Returns:
        normalize(destination - origin) as a float64 NumPy array.

    Raises:
        DegenerateGeometryError: If the two points coincide.
    """
    start = np.asarray(origin, dtype=np.float64)
    end = np.asarray(destination, dtype=np.float64)
    if float(np.linalg.norm(end - start)) < DEGENERATE_EPSILON:
        raise DegenerateGeometryError(
            f"Ray origin and destination coincide at {start.tolist()}"
        )
    return unit_vector(end - start)
