"""Scene: a loaded configuration bound to the Taichi rendering state.

A Scene uploads everything a render needs (shapes, lights, camera, view
window, shading coefficients and the pixel buffer) and exposes the
rendering operations of the pipeline. Taichi state is module-global, so only
one Scene is active at a time. Constructing a new Scene replaces the
previous contents; an older Scene uploads itself again the next time it is
queried or rendered.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.phong.scene.scene import Scene
    >>> scene = Scene.from_file("examples/scenes/spheres.json")
    >>> scene.draw("img/spheres.png")
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt

from src.phong.camera.camera import Camera, setup_camera
from src.phong.camera.view_window import ViewWindow, make_view_window, setup_view_window
from src.phong.core.integrator import (
    SceneCharacteristics,
    hit_in_shadow,
    light_hit,
    render_frame,
    setup_characteristics,
    trace_pixel,
    trace_ray,
)
from src.phong.core.pixel_buffer import (
    check_image_dimensions,
    get_image_numpy,
    get_image_uint8,
    setup_pixel_buffer,
)
from src.phong.core.ray import direction_between
from src.phong.preview.export import save_image
from src.phong.scene.configuration import (
    PlaneInfo,
    QuadInfo,
    SceneConfiguration,
    ShapeInfo,
    SphereInfo,
    TriangleInfo,
    read_configuration,
)
from src.phong.scene.intersection import (
    MAX_LIGHTS,
    MAX_SHAPES,
    HitInfo,
    add_light,
    add_plane,
    add_quad,
    add_sphere,
    add_triangle,
    check_plane,
    check_quad,
    check_sphere,
    check_triangle,
    clear_scene,
    find_closest_intersection,
    get_light_count,
    get_shape_count,
)
from src.phong.scene.light import PointLight

# The Scene whose contents are currently uploaded
_active_scene: "Scene | None" = None


def _check_shape(shape: ShapeInfo) -> None:
    if isinstance(shape, SphereInfo):
        check_sphere(shape.radius)
    elif isinstance(shape, PlaneInfo):
        check_plane(shape.normal)
    elif isinstance(shape, TriangleInfo):
        check_triangle(shape.v0, shape.v1, shape.v2)
    elif isinstance(shape, QuadInfo):
        check_quad(shape.edge_u, shape.edge_v)
    else:
        raise TypeError(f"Unknown shape type: {type(shape).__name__}")


def _add_shape(shape: ShapeInfo) -> int:
    if isinstance(shape, SphereInfo):
        return add_sphere(shape.center, shape.radius, shape.color)
    if isinstance(shape, PlaneInfo):
        return add_plane(shape.point, shape.normal, shape.color)
    if isinstance(shape, TriangleInfo):
        return add_triangle(shape.v0, shape.v1, shape.v2, shape.color)
    if isinstance(shape, QuadInfo):
        return add_quad(shape.corner, shape.edge_u, shape.edge_v, shape.color)
    raise TypeError(f"Unknown shape type: {type(shape).__name__}")


class Scene:
    """The active scene.

    Attributes:
        configuration: The configuration the scene was built from.
        camera: The eye position and target.
        view_window: The image plane pixels are projected onto.
        characteristics: Shading coefficients and policies.
        lights: The point lights, in configuration order.
        shapes: The shape descriptions, with meshes expanded into triangles.
    """

    def __init__(self, configuration: SceneConfiguration) -> None:
        """Build the scene and upload it to Taichi fields.

        Everything is validated before the previous scene is cleared, so a
        failed construction leaves the active scene untouched.

        Args:
            configuration: A validated scene configuration.

        Raises:
            DegenerateGeometryError: If the camera or a shape is degenerate.
            FileNotFoundError: If a mesh file does not exist.
            ConfigurationError: If a mesh file is malformed.
            ValueError: If the image is larger than the pixel buffer.
            RuntimeError: If the scene exceeds shape or light capacity.
        """
        self.configuration = configuration
        self.camera = Camera(
            origin=configuration.camera.origin,
            target=configuration.camera.target,
        )
        self.view_window: ViewWindow = make_view_window(
            configuration.width,
            configuration.height,
            configuration.viewport_width,
            self.camera,
            configuration.viewport_distance,
        )
        self.characteristics = SceneCharacteristics(
            ambient_coefficient=configuration.ambient_coefficient,
            specular_coefficient=configuration.specular_coefficient,
            accumulate_lights=configuration.accumulate_lights,
            bounded_shadows=configuration.bounded_shadows,
        )
        self.lights: list[PointLight] = configuration.read_lights()

        # Read meshes and validate before touching any global state
        self.shapes: list[ShapeInfo] = configuration.read_shapes()
        for shape in self.shapes:
            _check_shape(shape)
        if len(self.shapes) > MAX_SHAPES:
            raise RuntimeError(
                f"Maximum number of shapes ({MAX_SHAPES}) exceeded: {len(self.shapes)}"
            )
        if len(self.lights) > MAX_LIGHTS:
            raise RuntimeError(
                f"Maximum number of lights ({MAX_LIGHTS}) exceeded: {len(self.lights)}"
            )
        check_image_dimensions(configuration.width, configuration.height)

        self.activate()

    def activate(self) -> None:
        """Upload this scene's shapes, lights, camera and coefficients.

        Replaces whatever scene was uploaded before and resets the pixel
        buffer to the background.
        """
        global _active_scene

        configuration = self.configuration
        clear_scene()
        for shape in self.shapes:
            _add_shape(shape)
        for point_light in self.lights:
            add_light(point_light.origin)

        setup_camera(self.camera)
        setup_view_window(self.view_window)
        setup_characteristics(self.characteristics)
        setup_pixel_buffer(configuration.width, configuration.height, configuration.background)
        _active_scene = self

    @property
    def is_active(self) -> bool:
        """Whether the uploaded Taichi state belongs to this scene."""
        return _active_scene is self

    def _ensure_active(self) -> None:
        if _active_scene is not self:
            self.activate()

    @classmethod
    def from_file(cls, path: str | Path) -> "Scene":
        """Load a scene file and build the scene from it.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the file is malformed.
        """
        return cls(read_configuration(path))

    @property
    def width(self) -> int:
        return self.configuration.width

    @property
    def height(self) -> int:
        return self.configuration.height

    @property
    def shape_count(self) -> int:
        """Number of shapes stored, with meshes expanded into triangles."""
        return get_shape_count()

    @property
    def light_count(self) -> int:
        return get_light_count()

    # -------------------------------------------------------------------------
    # Ray queries
    # -------------------------------------------------------------------------

    def closest_intersection(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        exclude: int | None = None,
    ) -> HitInfo | None:
        """Find the nearest shape struck by a ray.

        Args:
            origin: Ray origin.
            direction: Ray direction (any non-zero length).
            exclude: Index of a shape to ignore.

        Returns:
            The nearest hit, or None when nothing is struck. Ties keep the
            shape stored first.
        """
        self._ensure_active()
        return find_closest_intersection(origin, direction, exclude)

    def in_shadow(self, hit: HitInfo, light_index: int) -> bool:
        """Whether a light is occluded from a surface hit.

        Raises:
            IndexError: If light_index is out of range.
        """
        if not 0 <= light_index < len(self.lights):
            raise IndexError(f"Light index {light_index} out of range ({len(self.lights)} lights)")
        self._ensure_active()
        return hit_in_shadow(hit, light_index)

    def light(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        hit: HitInfo,
    ) -> tuple[float, float, float]:
        """Shade a hit of the ray (origin, direction). The color is unclamped."""
        self._ensure_active()
        return light_hit(origin, direction, hit)

    def trace(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
    ) -> tuple[float, float, float] | None:
        """Trace a ray; None when it misses every shape."""
        self._ensure_active()
        return trace_ray(origin, direction)

    def primary_ray(
        self, x: int, y: int
    ) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
        """The (origin, unit direction) of the ray through pixel (x, y).

        Raises:
            IndexError: If the pixel lies outside the image.
            DegenerateGeometryError: If the view window passes through the eye.
        """
        self._check_pixel(x, y)
        direction = direction_between(self.camera.origin, self.view_window.at(x, y))
        return (
            tuple(float(c) for c in self.camera.origin),
            (float(direction[0]), float(direction[1]), float(direction[2])),
        )

    def shade_pixel(self, x: int, y: int) -> tuple[float, float, float] | None:
        """Unclamped color of pixel (x, y), or None if its ray hits nothing.

        Raises:
            IndexError: If the pixel lies outside the image.
        """
        self._check_pixel(x, y)
        self._ensure_active()
        return trace_pixel(x, y)

    def _check_pixel(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def render(self) -> None:
        """Render every pixel into the pixel buffer.

        The buffer is reset to the background first, so rendering twice
        produces identical images. If another Scene was constructed since,
        this one is uploaded again first.
        """
        self._ensure_active()
        setup_pixel_buffer(self.width, self.height, self.configuration.background)
        render_frame()

    def draw(self, output_path: str | Path | None = None) -> Path:
        """Render the scene and save it as an image.

        Args:
            output_path: Destination file; defaults to the configured output.
                Missing parent directories are created.

        Returns:
            The path written.

        Raises:
            OSError: If the image cannot be written.
        """
        path = Path(output_path if output_path is not None else self.configuration.output)
        self.render()
        save_image(path)
        return path

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """The rendered image as (height, width, 3) floats in [0, 255]."""
        return get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """The rendered image as (height, width, 3) bytes."""
        return get_image_uint8()
