"""Scene contents and closest-intersection search.

This module stores every shape and light of the active scene in Taichi fields
and provides the brute-force nearest-hit query used for both primary and
shadow rays.

Shapes are tagged variants: a kind tag per shape plus three generic vec3
slots and a radius, interpreted according to the kind:

    kind      slot_a   slot_b   slot_c   radius
    SPHERE    center   -        -        radius
    PLANE     point    normal   -        -
    TRIANGLE  v0       v1       v2       -
    QUAD      corner   edge_u   edge_v   -

Shape identity is the storage index. Shapes are scanned in insertion order
and the strictly nearest hit wins, so among equidistant hits the shape added
first is reported. There is no acceleration structure; every query is
O(number of shapes).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.phong.scene.intersection import (
    ...     add_sphere, clear_scene, find_closest_intersection
    ... )
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, 0.0), 1.0, color=(255.0, 0.0, 0.0))
    0
    >>> hit = find_closest_intersection((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
    >>> hit.shape_id, round(hit.distance, 4)
    (0, 4.0)
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum

import numpy as np
import taichi as ti
import taichi.math as tm

from src.phong.core.ray import (
    DEGENERATE_EPSILON,
    DegenerateGeometryError,
    Ray,
    make_ray,
    ray_distance,
    unit_vector,
)
from src.phong.geometry.plane import Plane, intersect_plane, plane_normal
from src.phong.geometry.quad import Quad, intersect_quad, quad_normal
from src.phong.geometry.sphere import Sphere, intersect_sphere, sphere_normal
from src.phong.geometry.triangle import Triangle, intersect_triangle, triangle_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class ShapeKind(IntEnum):
    """Closed set of shape kinds stored in the scene."""

    SPHERE = 0
    PLANE = 1
    TRIANGLE = 2
    QUAD = 3


# Shape id meaning "no shape" (miss record, nothing excluded)
NO_SHAPE = -1

# Distance reported before any shape has been hit
FAR_DISTANCE = 3.0e38

MAX_SHAPES = 4096
MAX_LIGHTS = 64


@ti.dataclass
class RayHit:
    """Record of the nearest ray-shape intersection.

    Attributes:
        hit: 1 if any shape was struck, 0 otherwise.
        shape_id: Index of the struck shape, NO_SHAPE on a miss.
        point: The intersection point. Only valid if hit == 1.
        distance: Euclidean distance from the ray origin to point.
            Only valid if hit == 1.
    """

    hit: ti.i32
    shape_id: ti.i32
    point: vec3
    distance: ti.f32


@dataclass(frozen=True)
class HitInfo:
    """Python-side copy of a RayHit returned by find_closest_intersection().

    Attributes:
        shape_id: Index of the struck shape.
        point: The intersection point.
        distance: Distance from the ray origin to point.
    """

    shape_id: int
    point: tuple[float, float, float]
    distance: float


# Shape storage: Structure of Arrays layout
shape_kinds = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_slot_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_slot_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_slot_c = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_radii = ti.field(dtype=ti.f32, shape=MAX_SHAPES)
shape_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
num_shapes = ti.field(dtype=ti.i32, shape=())

# Light storage: point lights are only an origin
light_origins = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())

# Result fields for Python-side queries
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_shape_id = ti.field(dtype=ti.i32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_distance = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Scene Construction (Python-side)
# =============================================================================


def clear_scene() -> None:
    """Remove all shapes and lights from the scene.

    Resets the counts to zero. The field data is overwritten when new
    shapes and lights are added.
    """
    num_shapes[None] = 0
    num_lights[None] = 0


def _store_shape(
    kind: ShapeKind,
    color: Sequence[float],
    slot_a: Sequence[float],
    slot_b: Sequence[float] = (0.0, 0.0, 0.0),
    slot_c: Sequence[float] = (0.0, 0.0, 0.0),
    radius: float = 0.0,
) -> int:
    """Append a shape record and return its index.

    Raises:
        RuntimeError: If the maximum number of shapes is exceeded.
    """
    idx = num_shapes[None]
    if idx >= MAX_SHAPES:
        raise RuntimeError(f"Maximum number of shapes ({MAX_SHAPES}) exceeded")
    shape_kinds[idx] = int(kind)
    shape_slot_a[idx] = [float(c) for c in slot_a]
    shape_slot_b[idx] = [float(c) for c in slot_b]
    shape_slot_c[idx] = [float(c) for c in slot_c]
    shape_radii[idx] = radius
    shape_colors[idx] = [float(c) for c in color]
    num_shapes[None] = idx + 1
    return idx


def check_sphere(radius: float) -> None:
    """Raise ValueError if radius is not positive."""
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")


def check_plane(normal: Sequence[float]) -> None:
    """Raise DegenerateGeometryError if normal has zero length."""
    unit_vector(normal)


def check_triangle(v0: Sequence[float], v1: Sequence[float], v2: Sequence[float]) -> None:
    """Raise DegenerateGeometryError if the vertices are collinear."""
    a = np.asarray(v0, dtype=np.float64)
    edge1 = np.asarray(v1, dtype=np.float64) - a
    edge2 = np.asarray(v2, dtype=np.float64) - a
    if float(np.linalg.norm(np.cross(edge1, edge2))) < DEGENERATE_EPSILON:
        raise DegenerateGeometryError(f"Triangle vertices are collinear: {v0}, {v1}, {v2}")


def check_quad(edge_u: Sequence[float], edge_v: Sequence[float]) -> None:
    """Raise DegenerateGeometryError if the edges are parallel."""
    n = np.cross(np.asarray(edge_u, dtype=np.float64), np.asarray(edge_v, dtype=np.float64))
    if float(np.linalg.norm(n)) < DEGENERATE_EPSILON:
        raise DegenerateGeometryError(f"Quad edges are parallel: {edge_u}, {edge_v}")


def add_sphere(center: Sequence[float], radius: float, color: Sequence[float]) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        color: RGB color in [0, 255].

    Returns:
        The index of the added shape.

    Raises:
        ValueError: If radius is not positive.
        RuntimeError: If the maximum number of shapes is exceeded.
    """
    check_sphere(radius)
    return _store_shape(ShapeKind.SPHERE, color, center, radius=radius)


def add_plane(point: Sequence[float], normal: Sequence[float], color: Sequence[float]) -> int:
    """Add an infinite plane to the scene.

    Args:
        point: Any point on the plane.
        normal: Plane normal; normalized before storage.
        color: RGB color in [0, 255].

    Returns:
        The index of the added shape.

    Raises:
        DegenerateGeometryError: If normal has zero length.
        RuntimeError: If the maximum number of shapes is exceeded.
    """
    unit_normal = unit_vector(normal)
    return _store_shape(ShapeKind.PLANE, color, point, unit_normal.tolist())


def add_triangle(
    v0: Sequence[float],
    v1: Sequence[float],
    v2: Sequence[float],
    color: Sequence[float],
) -> int:
    """Add a triangle to the scene.

    Args:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
        color: RGB color in [0, 255].

    Returns:
        The index of the added shape.

    Raises:
        DegenerateGeometryError: If the vertices are collinear.
        RuntimeError: If the maximum number of shapes is exceeded.
    """
    check_triangle(v0, v1, v2)
    return _store_shape(ShapeKind.TRIANGLE, color, v0, v1, v2)


def add_quad(
    corner: Sequence[float],
    edge_u: Sequence[float],
    edge_v: Sequence[float],
    color: Sequence[float],
) -> int:
    """Add a quad to the scene.

    The quad represents a parallelogram with vertices at corner,
    corner+edge_u, corner+edge_v, corner+edge_u+edge_v.

    Args:
        corner: The corner point of the quad.
        edge_u: Edge vector from corner to adjacent corner.
        edge_v: Edge vector from corner to other adjacent corner.
        color: RGB color in [0, 255].

    Returns:
        The index of the added shape.

    Raises:
        DegenerateGeometryError: If the edges are parallel.
        RuntimeError: If the maximum number of shapes is exceeded.
    """
    check_quad(edge_u, edge_v)
    return _store_shape(ShapeKind.QUAD, color, corner, edge_u, edge_v)


def add_light(origin: Sequence[float]) -> int:
    """Add a point light to the scene.

    Args:
        origin: World-space position of the light.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_origins[idx] = [float(c) for c in origin]
    num_lights[None] = idx + 1
    return idx


def get_shape_count() -> int:
    """Get the number of shapes in the scene."""
    return int(num_shapes[None])


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


def get_shape_color(shape_id: int) -> tuple[float, float, float]:
    """Get the stored color of a shape."""
    color = shape_colors[shape_id]
    return (float(color[0]), float(color[1]), float(color[2]))


# =============================================================================
# Shape Dispatch (Taichi-side)
# =============================================================================


@ti.func
def intersect_shape(shape_id: ti.i32, ray: Ray):
    """Intersect a ray with the shape stored at shape_id.

    Returns:
        Tuple (hit, point) from the kind-specific intersection function.
    """
    kind = shape_kinds[shape_id]
    did_hit = 0
    point = vec3(0.0, 0.0, 0.0)

    if kind == int(ShapeKind.SPHERE):
        sphere = Sphere(center=shape_slot_a[shape_id], radius=shape_radii[shape_id])
        did_hit, point = intersect_sphere(ray, sphere)
    elif kind == int(ShapeKind.PLANE):
        plane = Plane(point=shape_slot_a[shape_id], normal=shape_slot_b[shape_id])
        did_hit, point = intersect_plane(ray, plane)
    elif kind == int(ShapeKind.TRIANGLE):
        triangle = Triangle(
            v0=shape_slot_a[shape_id], v1=shape_slot_b[shape_id], v2=shape_slot_c[shape_id]
        )
        did_hit, point = intersect_triangle(ray, triangle)
    elif kind == int(ShapeKind.QUAD):
        quad = Quad(
            corner=shape_slot_a[shape_id],
            edge_u=shape_slot_b[shape_id],
            edge_v=shape_slot_c[shape_id],
        )
        did_hit, point = intersect_quad(ray, quad)

    return did_hit, point


@ti.func
def shape_normal(shape_id: ti.i32, point: vec3, view_hint: vec3) -> vec3:
    """Unit surface normal of a shape at a point.

    Args:
        shape_id: Index of the shape.
        point: A point on the shape's surface.
        view_hint: Viewing direction used to orient planar normals.

    Returns:
        The unit normal. Outward for spheres, facing against view_hint for
        planes, triangles and quads.
    """
    kind = shape_kinds[shape_id]
    normal = vec3(0.0, 0.0, 0.0)

    if kind == int(ShapeKind.SPHERE):
        sphere = Sphere(center=shape_slot_a[shape_id], radius=shape_radii[shape_id])
        normal = sphere_normal(sphere, point)
    elif kind == int(ShapeKind.PLANE):
        plane = Plane(point=shape_slot_a[shape_id], normal=shape_slot_b[shape_id])
        normal = plane_normal(plane, view_hint)
    elif kind == int(ShapeKind.TRIANGLE):
        triangle = Triangle(
            v0=shape_slot_a[shape_id], v1=shape_slot_b[shape_id], v2=shape_slot_c[shape_id]
        )
        normal = triangle_normal(triangle, view_hint)
    elif kind == int(ShapeKind.QUAD):
        quad = Quad(
            corner=shape_slot_a[shape_id],
            edge_u=shape_slot_b[shape_id],
            edge_v=shape_slot_c[shape_id],
        )
        normal = quad_normal(quad, view_hint)

    return normal


@ti.func
def shape_color(shape_id: ti.i32) -> vec3:
    """Color of the shape stored at shape_id."""
    return shape_colors[shape_id]


@ti.func
def get_light_origin(light_id: ti.i32) -> vec3:
    """World-space position of the light stored at light_id."""
    return light_origins[light_id]


# =============================================================================
# Closest Intersection
# =============================================================================


@ti.func
def _make_miss_record() -> RayHit:
    """Create a RayHit indicating no intersection."""
    return RayHit(hit=0, shape_id=NO_SHAPE, point=vec3(0.0, 0.0, 0.0), distance=FAR_DISTANCE)


@ti.func
def closest_intersection(ray: Ray, exclude: ti.i32) -> RayHit:
    """Find the nearest shape struck by a ray.

    Every shape except exclude is tested in insertion order. The candidate
    distance is the Euclidean distance from the ray origin to the reported
    intersection point, and a candidate replaces the current best only when
    it is strictly nearer, so the earliest shape wins ties.

    Args:
        ray: The ray to trace.
        exclude: Shape index to skip (the surface a shadow ray starts on),
            or NO_SHAPE to test everything.

    Returns:
        The nearest RayHit, or a miss record if nothing was struck.
    """
    result = _make_miss_record()
    shortest_distance = FAR_DISTANCE

    for shape_id in range(num_shapes[None]):
        if shape_id != exclude:
            did_hit, point = intersect_shape(shape_id, ray)
            if did_hit == 1:
                distance = ray_distance(ray, point)
                if distance < shortest_distance:
                    shortest_distance = distance
                    result = RayHit(hit=1, shape_id=shape_id, point=point, distance=distance)

    return result


@ti.kernel
def _closest_intersection_query(origin: vec3, direction: vec3, exclude: ti.i32):
    """Run closest_intersection() once and store the result in query fields."""
    # Single-iteration outer loop keeps the shape scan serial
    for _ in range(1):
        rec = closest_intersection(make_ray(origin, direction), exclude)
        _query_hit[None] = rec.hit
        _query_shape_id[None] = rec.shape_id
        _query_point[None] = rec.point
        _query_distance[None] = rec.distance


def find_closest_intersection(
    origin: Sequence[float],
    direction: Sequence[float],
    exclude: int | None = None,
) -> HitInfo | None:
    """Find the nearest shape struck by a ray, from Python.

    Args:
        origin: Ray origin.
        direction: Ray direction; normalized here, so any non-zero vector is
            accepted.
        exclude: Shape index to skip, or None.

    Returns:
        A HitInfo for the nearest hit, or None if the ray misses everything.

    Raises:
        DegenerateGeometryError: If direction has zero length.
    """
    unit_direction = unit_vector(direction)
    _closest_intersection_query(
        vec3(*[float(c) for c in origin]),
        vec3(*unit_direction.tolist()),
        NO_SHAPE if exclude is None else exclude,
    )
    if _query_hit[None] == 0:
        return None

    point = _query_point[None]
    return HitInfo(
        shape_id=int(_query_shape_id[None]),
        point=(float(point[0]), float(point[1]), float(point[2])),
        distance=float(_query_distance[None]),
    )
