"""Local illumination integrator: shadows, Phong shading and the frame kernel.

This module implements the rendering pipeline for one primary ray per pixel:

    1. The primary ray runs from the camera origin through the view window
       point of the pixel.
    2. closest_intersection() finds the nearest shape.
    3. light() shades the hit: an ambient baseline, then for each point light
       a shadow ray toward the light and, if unoccluded and facing the light,
       a specular highlight plus a diffuse term.
    4. The color is written into the pixel buffer. Missed pixels keep the
       background.

Shading model, with a = ambient coefficient, d = 1 - a, s = specular exponent,
c = shape color, L = unit direction to the light, N = surface normal and
R = reflection of the primary ray about N:

    specular = (100, 100, 100) * max(0, L . R) ^ s
    diffuse  = c * d * (L . N)
    ambient  = c * a

Two policies are configurable through SceneCharacteristics:
    - accumulate_lights=False (default): every lit light overwrites the
      running color with specular + diffuse + ambient, so the last lit light
      decides the color. True sums specular + diffuse of every lit light on
      top of a single ambient term.
    - bounded_shadows=False (default): any shape struck by the shadow ray
      occludes the light, even one lying beyond it. True only counts
      occluders nearer than the light.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.phong.core.integrator import (
    ...     SceneCharacteristics, setup_characteristics, render_frame
    ... )
    >>> setup_characteristics(SceneCharacteristics(0.2, 20.0))
    >>> # set up camera, view window, pixel buffer and scene contents, then
    >>> render_frame()
"""

from collections.abc import Sequence
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.phong.camera.camera import get_camera_orientation, get_camera_origin
from src.phong.camera.view_window import view_window_at
from src.phong.core.pixel_buffer import (
    _check_pixel_buffer_initialized,
    get_image_dimensions,
    set_pixel,
)
from src.phong.core.ray import (
    Ray,
    make_ray,
    near_zero,
    ray_distance,
    ray_from_points,
    ray_reflection,
    unit_vector,
)
from src.phong.scene.intersection import (
    NO_SHAPE,
    HitInfo,
    RayHit,
    closest_intersection,
    get_light_origin,
    num_lights,
    shape_color,
    shape_normal,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Shading Constants
# =============================================================================

# Offset of shadow ray origins along their direction
SHADOW_BIAS = 1e-5

# Color of specular highlights
SPECULAR_HIGHLIGHT = vec3(100.0, 100.0, 100.0)


@dataclass(frozen=True)
class SceneCharacteristics:
    """Coefficients of the local illumination model.

    Attributes:
        ambient_coefficient: Weight of the ambient term, in [0, 1].
        specular_coefficient: Shininess exponent of highlights (positive).
        accumulate_lights: Sum lit lights instead of letting the last one
            overwrite the color.
        bounded_shadows: Ignore occluders lying beyond the light.

    Raises:
        ValueError: If a coefficient is out of range.
    """

    ambient_coefficient: float
    specular_coefficient: float
    accumulate_lights: bool = False
    bounded_shadows: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.ambient_coefficient <= 1.0:
            raise ValueError(
                f"Ambient coefficient must be in [0, 1], got {self.ambient_coefficient}"
            )
        if self.specular_coefficient <= 0.0:
            raise ValueError(
                f"Specular coefficient must be positive, got {self.specular_coefficient}"
            )

    @property
    def diffuse_coefficient(self) -> float:
        """Weight of the diffuse term, always 1 - ambient_coefficient."""
        return 1.0 - self.ambient_coefficient


_ambient_coefficient = ti.field(dtype=ti.f32, shape=())
_diffuse_coefficient = ti.field(dtype=ti.f32, shape=())
_specular_coefficient = ti.field(dtype=ti.f32, shape=())
_accumulate_lights = ti.field(dtype=ti.i32, shape=())
_bounded_shadows = ti.field(dtype=ti.i32, shape=())

# Result fields for Python-side queries
_query_flag = ti.field(dtype=ti.i32, shape=())
_query_color = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_characteristics(characteristics: SceneCharacteristics) -> None:
    """Upload the shading coefficients and policies to Taichi fields.

    Args:
        characteristics: The coefficients to activate.
    """
    _ambient_coefficient[None] = characteristics.ambient_coefficient
    _diffuse_coefficient[None] = characteristics.diffuse_coefficient
    _specular_coefficient[None] = characteristics.specular_coefficient
    _accumulate_lights[None] = int(characteristics.accumulate_lights)
    _bounded_shadows[None] = int(characteristics.bounded_shadows)


def get_characteristics_info() -> dict[str, float]:
    """Get the active coefficients for debugging."""
    return {
        "ambient_coefficient": float(_ambient_coefficient[None]),
        "diffuse_coefficient": float(_diffuse_coefficient[None]),
        "specular_coefficient": float(_specular_coefficient[None]),
    }


# =============================================================================
# Shadows and Shading
# =============================================================================


@ti.func
def in_shadow(ray_hit: RayHit, to_light: Ray, light_origin: vec3) -> ti.i32:
    """Test whether a surface point is hidden from a light.

    The shadow ray is traced against every shape except the one the point
    lies on. Under the default policy any hit counts as an occluder; with
    bounded shadows the occluder must be nearer than the light.

    Args:
        ray_hit: The surface hit being shaded.
        to_light: Ray from (just above) the hit point toward the light.
        light_origin: Position of the light.

    Returns:
        1 if the light is occluded, 0 otherwise.
    """
    blocked = 0
    occluder = closest_intersection(to_light, ray_hit.shape_id)
    if occluder.hit == 1:
        blocked = 1
        if _bounded_shadows[None] == 1:
            if occluder.distance >= ray_distance(to_light, light_origin):
                blocked = 0
    return blocked


@ti.func
def shadow_ray(ray_hit: RayHit, light_origin: vec3) -> Ray:
    """Build the shadow ray from a hit point toward a light.

    The origin is pushed SHADOW_BIAS along the ray direction so floating
    point error cannot make the ray re-hit its own surface.
    """
    to_light = ray_from_points(ray_hit.point, light_origin)
    return make_ray(to_light.origin + to_light.direction * SHADOW_BIAS, to_light.direction)


@ti.func
def light(ray: Ray, ray_hit: RayHit) -> vec3:
    """Compute the local illumination of a surface hit.

    Args:
        ray: The primary ray that produced the hit.
        ray_hit: The nearest hit of that ray.

    Returns:
        The unclamped RGB color of the hit.
    """
    color = shape_color(ray_hit.shape_id)
    ambient = _ambient_coefficient[None]
    diffuse = _diffuse_coefficient[None]

    result = color * ambient

    for light_id in range(num_lights[None]):
        light_origin = get_light_origin(light_id)
        to_light = shadow_ray(ray_hit, light_origin)

        # A light sitting exactly on the surface has no direction
        if not near_zero(to_light.direction):
            if in_shadow(ray_hit, to_light, light_origin) == 0:
                normal = shape_normal(ray_hit.shape_id, ray_hit.point, get_camera_orientation())
                shade = tm.dot(to_light.direction, normal)

                if shade > 0.0:
                    highlight = tm.max(0.0, tm.dot(to_light.direction, ray_reflection(ray, normal)))
                    specular_term = SPECULAR_HIGHLIGHT * highlight ** _specular_coefficient[None]
                    diffuse_term = color * diffuse * shade

                    if _accumulate_lights[None] == 1:
                        result += specular_term + diffuse_term
                    else:
                        result = specular_term + diffuse_term + color * ambient

    return result


@ti.func
def trace(ray: Ray):
    """Trace a primary ray.

    Returns:
        Tuple (hit, color): hit is 0 when the ray misses every shape, in
        which case color is meaningless and the pixel keeps its background.
    """
    rec = closest_intersection(ray, NO_SHAPE)
    color = vec3(0.0, 0.0, 0.0)
    if rec.hit == 1:
        color = light(ray, rec)
    return rec.hit, color


@ti.func
def primary_ray(x: ti.i32, y: ti.i32) -> Ray:
    """Ray from the camera origin through the view window point of a pixel."""
    return ray_from_points(get_camera_origin(), view_window_at(x, y))


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_frame(width: ti.i32, height: ti.i32):
    """Trace one primary ray per pixel and write the struck pixels.

    Pixels are independent and each iteration writes only its own buffer
    cell, so the outer loop runs in parallel without synchronization.
    """
    for x, y in ti.ndrange(width, height):
        did_hit, color = trace(primary_ray(x, y))
        if did_hit == 1:
            set_pixel(x, y, color)


@ti.kernel
def _trace_pixel(x: ti.i32, y: ti.i32):
    """Trace the primary ray of a single pixel into the query fields."""
    for _ in range(1):
        did_hit, color = trace(primary_ray(x, y))
        _query_flag[None] = did_hit
        _query_color[None] = color


@ti.kernel
def _trace_ray(origin: vec3, direction: vec3):
    """Trace an arbitrary ray into the query fields."""
    for _ in range(1):
        did_hit, color = trace(make_ray(origin, direction))
        _query_flag[None] = did_hit
        _query_color[None] = color


@ti.kernel
def _light_hit(origin: vec3, direction: vec3, shape_id: ti.i32, point: vec3, distance: ti.f32):
    """Shade a given hit of a given ray into the query fields."""
    for _ in range(1):
        rec = RayHit(hit=1, shape_id=shape_id, point=point, distance=distance)
        _query_color[None] = light(make_ray(origin, direction), rec)


@ti.kernel
def _shadow_query(shape_id: ti.i32, point: vec3, light_id: ti.i32):
    """Run the shadow test of a hit against one light into the query fields."""
    for _ in range(1):
        rec = RayHit(hit=1, shape_id=shape_id, point=point, distance=0.0)
        light_origin = get_light_origin(light_id)
        _query_flag[None] = in_shadow(rec, shadow_ray(rec, light_origin), light_origin)


# =============================================================================
# Public Rendering API
# =============================================================================


def _query_color_tuple() -> tuple[float, float, float]:
    color = _query_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def render_frame() -> None:
    """Render every pixel of the active pixel buffer.

    Raises:
        RuntimeError: If the pixel buffer has not been set up.
    """
    _check_pixel_buffer_initialized()
    width, height = get_image_dimensions()
    _render_frame(width, height)


def trace_pixel(x: int, y: int) -> tuple[float, float, float] | None:
    """Trace the primary ray of one pixel without touching the buffer.

    Args:
        x: Pixel column.
        y: Pixel row, 0 at the top.

    Returns:
        The unclamped color, or None if the ray misses every shape.
    """
    _trace_pixel(x, y)
    if _query_flag[None] == 0:
        return None
    return _query_color_tuple()


def trace_ray(
    origin: Sequence[float],
    direction: Sequence[float],
) -> tuple[float, float, float] | None:
    """Trace an arbitrary ray.

    Args:
        origin: Ray origin.
        direction: Ray direction; normalized here.

    Returns:
        The unclamped color, or None if the ray misses every shape.

    Raises:
        DegenerateGeometryError: If direction has zero length.
    """
    unit_direction = unit_vector(direction)
    _trace_ray(vec3(*[float(c) for c in origin]), vec3(*unit_direction.tolist()))
    if _query_flag[None] == 0:
        return None
    return _query_color_tuple()


def light_hit(
    origin: Sequence[float],
    direction: Sequence[float],
    hit: HitInfo,
) -> tuple[float, float, float]:
    """Shade a hit produced by the given ray.

    Args:
        origin: Origin of the ray that produced the hit.
        direction: Direction of that ray; normalized here.
        hit: The hit to shade.

    Returns:
        The unclamped color.
    """
    unit_direction = unit_vector(direction)
    _light_hit(
        vec3(*[float(c) for c in origin]),
        vec3(*unit_direction.tolist()),
        hit.shape_id,
        vec3(*hit.point),
        hit.distance,
    )
    return _query_color_tuple()


def hit_in_shadow(hit: HitInfo, light_id: int) -> bool:
    """Run the shadow test of a hit against one light.

    Args:
        hit: The surface hit.
        light_id: Index of the light.

    Returns:
        True if the light is occluded from the hit point.
    """
    _shadow_query(hit.shape_id, vec3(*hit.point), light_id)
    return bool(_query_flag[None])
