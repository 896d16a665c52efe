"""Wavefront OBJ reader for mesh objects.

Only geometry is read: vertex positions ("v") and faces ("f"). Texture
coordinates, normals, groups and materials are ignored. Faces with more than
three vertices are fan-triangulated around their first vertex. Face indices
may use the "v", "v/vt", "v//vn" and "v/vt/vn" forms and may be negative
(relative to the end of the vertex list).
"""

from collections.abc import Iterable
from pathlib import Path

Vertex = tuple[float, float, float]


class MeshFormatError(ValueError):
    """Raised when an OBJ file cannot be interpreted."""


def _face_index(token: str, vertex_count: int, line_number: int) -> int:
    """Resolve one face token to a zero-based vertex index."""
    raw = token.split("/")[0]
    try:
        index = int(raw)
    except ValueError:
        raise MeshFormatError(f"line {line_number}: bad face index {token!r}") from None

    if index < 0:
        index = vertex_count + index
    else:
        index -= 1

    if not 0 <= index < vertex_count:
        raise MeshFormatError(f"line {line_number}: face index {token!r} out of range")
    return index


def parse_obj_triangles(lines: Iterable[str]) -> list[tuple[Vertex, Vertex, Vertex]]:
    """Parse OBJ text into a list of triangles.

    Args:
        lines: The lines of an OBJ file.

    Returns:
        One (v0, v1, v2) tuple per triangle, in file order.

    Raises:
        MeshFormatError: If a record is malformed.
    """
    vertices: list[Vertex] = []
    triangles: list[tuple[Vertex, Vertex, Vertex]] = []

    for line_number, line in enumerate(lines, start=1):
        words = line.split("#", 1)[0].split()
        if not words:
            continue

        if words[0] == "v":
            if len(words) < 4:
                raise MeshFormatError(f"line {line_number}: vertex needs 3 coordinates")
            try:
                x, y, z = (float(w) for w in words[1:4])
            except ValueError:
                raise MeshFormatError(f"line {line_number}: bad vertex {line.strip()!r}") from None
            vertices.append((x, y, z))

        elif words[0] == "f":
            if len(words) < 4:
                raise MeshFormatError(f"line {line_number}: face needs at least 3 vertices")
            indices = [_face_index(w, len(vertices), line_number) for w in words[1:]]
            for i in range(1, len(indices) - 1):
                triangles.append(
                    (vertices[indices[0]], vertices[indices[i]], vertices[indices[i + 1]])
                )

    return triangles


def read_obj_triangles(path: str | Path) -> list[tuple[Vertex, Vertex, Vertex]]:
    """Read the triangles of an OBJ file.

    Raises:
        FileNotFoundError: If the file does not exist.
        MeshFormatError: If a record is malformed.
    """
    with open(path, encoding="utf-8") as f:
        return parse_obj_triangles(f)
