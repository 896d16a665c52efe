"""Scene file loading and validation.

A scene file is a JSON document describing the camera, the point lights, the
objects and the rendering parameters:

    {
      "width": 320, "height": 240,
      "viewport_width": 2.0, "viewport_distance": 1.0,
      "ambient_coefficient": 0.2, "specular_coefficient": 25.0,
      "background": [0, 0, 0],
      "output": "img/scene.png",
      "camera": {"origin": [0, 0, 5], "target": [0, 0, 0]},
      "lights": [{"origin": [5, 5, 5]}],
      "objects": [
        {"type": "sphere", "center": [0, 0, 0], "radius": 1, "color": [255, 0, 0]}
      ]
    }

Object types are "sphere", "plane", "triangle", "quad" and "mesh". A mesh
references an OBJ file (relative paths resolve against the scene file's
directory) and expands into one triangle per face.

Everything is validated while loading, so a SceneConfiguration that exists
is complete and well-formed. Invalid values raise ConfigurationError naming
the offending key.

Example:
    >>> from src.phong.scene.configuration import read_configuration
    >>> configuration = read_configuration("examples/scenes/spheres.json")
    >>> configuration.width, len(configuration.objects)
    (320, 5)
"""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.phong.scene.light import PointLight
from src.phong.scene.mesh import MeshFormatError, read_obj_triangles

Vector = tuple[float, float, float]

OBJECT_TYPES = ("sphere", "plane", "triangle", "quad", "mesh")

DEFAULT_OUTPUT = "img/scene.png"

# Largest image a scene may request; the pixel buffer is preallocated to this size
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048


class ConfigurationError(ValueError):
    """Raised when a scene file is malformed or incomplete."""


# =============================================================================
# Shape Descriptions
# =============================================================================


@dataclass(frozen=True)
class SphereInfo:
    """A sphere ready to be added to the scene."""

    center: Vector
    radius: float
    color: Vector


@dataclass(frozen=True)
class PlaneInfo:
    """An infinite plane ready to be added to the scene."""

    point: Vector
    normal: Vector
    color: Vector


@dataclass(frozen=True)
class TriangleInfo:
    """A triangle ready to be added to the scene."""

    v0: Vector
    v1: Vector
    v2: Vector
    color: Vector


@dataclass(frozen=True)
class QuadInfo:
    """A quad ready to be added to the scene."""

    corner: Vector
    edge_u: Vector
    edge_v: Vector
    color: Vector


ShapeInfo = SphereInfo | PlaneInfo | TriangleInfo | QuadInfo


# =============================================================================
# Value Parsing
# =============================================================================


def _require(data: dict[str, Any], key: str, context: str) -> Any:
    if key not in data:
        raise ConfigurationError(f"{context}: missing required key '{key}'")
    return data[key]


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name}: expected a number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigurationError(f"{name}: expected a finite number, got {value!r}")
    return float(value)


def _positive_number(value: Any, name: str) -> float:
    number = _number(value, name)
    if number <= 0.0:
        raise ConfigurationError(f"{name}: must be positive, got {number}")
    return number


def _positive_int(value: Any, name: str, maximum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name}: expected an integer, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{name}: must be positive, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigurationError(f"{name}: must be at most {maximum}, got {value}")
    return value


def _vector(value: Any, name: str) -> Vector:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ConfigurationError(f"{name}: expected a list of 3 numbers, got {value!r}")
    x, y, z = (_number(c, name) for c in value)
    return (x, y, z)


def _bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{name}: expected true or false, got {value!r}")
    return value


# =============================================================================
# Definitions
# =============================================================================


@dataclass(frozen=True)
class CameraDefinition:
    """Camera section of a scene file.

    Attributes:
        origin: Eye position.
        target: Look-at point.
    """

    origin: Vector
    target: Vector

    @classmethod
    def from_dict(cls, data: Any) -> "CameraDefinition":
        if not isinstance(data, dict):
            raise ConfigurationError(f"camera: expected an object, got {data!r}")
        return cls(
            origin=_vector(_require(data, "origin", "camera"), "camera.origin"),
            target=_vector(_require(data, "target", "camera"), "camera.target"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"origin": list(self.origin), "target": list(self.target)}


@dataclass(frozen=True)
class LightDefinition:
    """One entry of the lights section.

    Attributes:
        origin: World-space position of the point light.
    """

    origin: Vector

    @classmethod
    def from_dict(cls, data: Any, index: int) -> "LightDefinition":
        context = f"lights[{index}]"
        if not isinstance(data, dict):
            raise ConfigurationError(f"{context}: expected an object, got {data!r}")
        return cls(origin=_vector(_require(data, "origin", context), f"{context}.origin"))

    def as_light(self) -> PointLight:
        """Convert the definition into a scene light."""
        return PointLight(origin=self.origin)

    def to_dict(self) -> dict[str, Any]:
        return {"origin": list(self.origin)}


@dataclass(frozen=True)
class ObjectDefinition:
    """One entry of the objects section.

    Attributes:
        type: One of OBJECT_TYPES.
        color: RGB color on a 0-255 scale.
        params: The validated type-specific parameters.
    """

    type: str
    color: Vector
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any, index: int) -> "ObjectDefinition":
        """Validate one object entry.

        Args:
            data: The raw JSON object.
            index: Position in the objects list, used in error messages.

        Raises:
            ConfigurationError: If the entry is malformed.
        """
        context = f"objects[{index}]"
        if not isinstance(data, dict):
            raise ConfigurationError(f"{context}: expected an object, got {data!r}")

        object_type = _require(data, "type", context)
        if object_type not in OBJECT_TYPES:
            raise ConfigurationError(
                f"{context}.type: unknown object type {object_type!r}, "
                f"expected one of {', '.join(OBJECT_TYPES)}"
            )
        color = _vector(_require(data, "color", context), f"{context}.color")

        params: dict[str, Any] = {}
        if object_type == "sphere":
            params["center"] = _vector(_require(data, "center", context), f"{context}.center")
            params["radius"] = _positive_number(
                _require(data, "radius", context), f"{context}.radius"
            )
        elif object_type == "plane":
            params["point"] = _vector(_require(data, "point", context), f"{context}.point")
            params["normal"] = _vector(_require(data, "normal", context), f"{context}.normal")
        elif object_type == "triangle":
            vertices = _require(data, "vertices", context)
            if not isinstance(vertices, list) or len(vertices) != 3:
                raise ConfigurationError(f"{context}.vertices: expected 3 vertices")
            params["vertices"] = tuple(
                _vector(v, f"{context}.vertices[{i}]") for i, v in enumerate(vertices)
            )
        elif object_type == "quad":
            for key in ("corner", "edge_u", "edge_v"):
                params[key] = _vector(_require(data, key, context), f"{context}.{key}")
        elif object_type == "mesh":
            path = _require(data, "path", context)
            if not isinstance(path, str) or not path:
                raise ConfigurationError(f"{context}.path: expected a file path, got {path!r}")
            params["path"] = path
            params["offset"] = _vector(data.get("offset", [0, 0, 0]), f"{context}.offset")
            params["scale"] = _positive_number(data.get("scale", 1.0), f"{context}.scale")

        return cls(type=object_type, color=color, params=params)

    def read_shapes(self, base_dir: Path = Path(".")) -> list[ShapeInfo]:
        """Expand the definition into the shapes it describes.

        Args:
            base_dir: Directory that relative mesh paths are resolved against.

        Returns:
            One shape for primitives, one triangle per face for meshes.

        Raises:
            FileNotFoundError: If a mesh file does not exist.
            ConfigurationError: If a mesh file is malformed.
        """
        p = self.params
        if self.type == "sphere":
            return [SphereInfo(center=p["center"], radius=p["radius"], color=self.color)]
        if self.type == "plane":
            return [PlaneInfo(point=p["point"], normal=p["normal"], color=self.color)]
        if self.type == "triangle":
            v0, v1, v2 = p["vertices"]
            return [TriangleInfo(v0=v0, v1=v1, v2=v2, color=self.color)]
        if self.type == "quad":
            return [
                QuadInfo(
                    corner=p["corner"], edge_u=p["edge_u"], edge_v=p["edge_v"], color=self.color
                )
            ]
        return self._read_mesh(base_dir)

    def _read_mesh(self, base_dir: Path) -> list[ShapeInfo]:
        path = Path(self.params["path"])
        if not path.is_absolute():
            path = base_dir / path
        try:
            triangles = read_obj_triangles(path)
        except MeshFormatError as e:
            raise ConfigurationError(f"mesh {path}: {e}") from e

        offset = self.params["offset"]
        scale = self.params["scale"]

        def place(v: Vector) -> Vector:
            return (
                v[0] * scale + offset[0],
                v[1] * scale + offset[1],
                v[2] * scale + offset[2],
            )

        return [
            TriangleInfo(v0=place(a), v1=place(b), v2=place(c), color=self.color)
            for a, b, c in triangles
        ]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "color": list(self.color)}
        for key, value in self.params.items():
            if key == "vertices":
                data[key] = [list(v) for v in value]
            elif isinstance(value, tuple):
                data[key] = list(value)
            else:
                data[key] = value
        return data


@dataclass(frozen=True)
class SceneConfiguration:
    """A fully validated scene description.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        viewport_width: Physical width of the view window.
        viewport_distance: Distance from the camera to the view window.
        ambient_coefficient: Ambient weight in [0, 1].
        specular_coefficient: Shininess exponent (positive).
        camera: Camera definition.
        lights: Light definitions.
        objects: Object definitions.
        background: Color of pixels no ray hits.
        output: Default path of the rendered image.
        accumulate_lights: Sum lit lights instead of keeping the last one.
        bounded_shadows: Ignore occluders lying beyond the light.
        base_dir: Directory relative mesh paths resolve against.
    """

    width: int
    height: int
    viewport_width: float
    viewport_distance: float
    ambient_coefficient: float
    specular_coefficient: float
    camera: CameraDefinition
    lights: list[LightDefinition] = field(default_factory=list)
    objects: list[ObjectDefinition] = field(default_factory=list)
    background: Vector = (0.0, 0.0, 0.0)
    output: str = DEFAULT_OUTPUT
    accumulate_lights: bool = False
    bounded_shadows: bool = False
    base_dir: Path = Path(".")

    @classmethod
    def from_dict(cls, data: Any, base_dir: str | Path = ".") -> "SceneConfiguration":
        """Validate a parsed scene document.

        Args:
            data: The decoded JSON document.
            base_dir: Directory relative mesh paths resolve against.

        Returns:
            The validated configuration.

        Raises:
            ConfigurationError: If any value is missing or invalid.
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"scene: expected a JSON object, got {type(data).__name__}")

        ambient = _number(_require(data, "ambient_coefficient", "scene"), "ambient_coefficient")
        if not 0.0 <= ambient <= 1.0:
            raise ConfigurationError(f"ambient_coefficient: must be in [0, 1], got {ambient}")

        lights = data.get("lights", [])
        if not isinstance(lights, list):
            raise ConfigurationError(f"lights: expected a list, got {lights!r}")
        objects = data.get("objects", [])
        if not isinstance(objects, list):
            raise ConfigurationError(f"objects: expected a list, got {objects!r}")

        output = data.get("output", DEFAULT_OUTPUT)
        if not isinstance(output, str) or not output:
            raise ConfigurationError(f"output: expected a file path, got {output!r}")

        return cls(
            width=_positive_int(_require(data, "width", "scene"), "width", MAX_IMAGE_WIDTH),
            height=_positive_int(_require(data, "height", "scene"), "height", MAX_IMAGE_HEIGHT),
            viewport_width=_positive_number(
                _require(data, "viewport_width", "scene"), "viewport_width"
            ),
            viewport_distance=_positive_number(
                _require(data, "viewport_distance", "scene"), "viewport_distance"
            ),
            ambient_coefficient=ambient,
            specular_coefficient=_positive_number(
                _require(data, "specular_coefficient", "scene"), "specular_coefficient"
            ),
            camera=CameraDefinition.from_dict(_require(data, "camera", "scene")),
            lights=[LightDefinition.from_dict(light, i) for i, light in enumerate(lights)],
            objects=[ObjectDefinition.from_dict(obj, i) for i, obj in enumerate(objects)],
            background=_vector(data.get("background", [0, 0, 0]), "background"),
            output=output,
            accumulate_lights=_bool(data.get("accumulate_lights", False), "accumulate_lights"),
            bounded_shadows=_bool(data.get("bounded_shadows", False), "bounded_shadows"),
            base_dir=Path(base_dir),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the configuration as a JSON-serializable dictionary."""
        return {
            "width": self.width,
            "height": self.height,
            "viewport_width": self.viewport_width,
            "viewport_distance": self.viewport_distance,
            "ambient_coefficient": self.ambient_coefficient,
            "specular_coefficient": self.specular_coefficient,
            "background": list(self.background),
            "output": self.output,
            "accumulate_lights": self.accumulate_lights,
            "bounded_shadows": self.bounded_shadows,
            "camera": self.camera.to_dict(),
            "lights": [light.to_dict() for light in self.lights],
            "objects": [obj.to_dict() for obj in self.objects],
        }

    def read_lights(self) -> list[PointLight]:
        """Convert every light definition into a scene light."""
        return [definition.as_light() for definition in self.lights]

    def read_shapes(self) -> list[ShapeInfo]:
        """Expand every object definition, preserving file order."""
        shapes: list[ShapeInfo] = []
        for definition in self.objects:
            shapes.extend(definition.read_shapes(self.base_dir))
        return shapes


def read_configuration(path: str | Path) -> SceneConfiguration:
    """Load and validate a scene file.

    Args:
        path: Path to the JSON scene file.

    Returns:
        The validated configuration. Relative mesh paths resolve against the
        directory containing the file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is not valid JSON or fails validation.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"{path}: invalid JSON: {e}") from e
    return SceneConfiguration.from_dict(data, base_dir=path.parent)
