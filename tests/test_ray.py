"""Unit tests for the ray module.

Tests cover:
- Ray construction from two points and ray_at
- Reflection about a normal
- Degenerate directions (Taichi and Python side)
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestRayFromPoints:
    """Tests for ray_from_points and ray_at."""

    def test_direction_is_unit_length(self):
        """Test ray_from_points normalizes the direction."""
        from src.phong.core.ray import ray_from_points, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = ray_from_points(vec3(1.0, 2.0, 3.0), vec3(4.0, -2.0, 15.0))
            result[None] = ray.direction.norm()

        test_kernel()
        assert abs(result[None] - 1.0) < 1e-5

    def test_direction_points_at_destination(self):
        """Test the direction is (destination - origin) / |destination - origin|."""
        from src.phong.core.ray import ray_from_points, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = ray_from_points(vec3(0.0, 0.0, 0.0), vec3(3.0, 4.0, 0.0))
            result[None] = ray.direction

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.6) < 1e-6
        assert abs(r[1] - 0.8) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_coincident_points_give_zero_direction(self):
        """Test coincident points yield a zero direction instead of NaN."""
        from src.phong.core.ray import near_zero, ray_from_points, vec3

        flag = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = ray_from_points(vec3(1.0, 1.0, 1.0), vec3(1.0, 1.0, 1.0))
            flag[None] = near_zero(ray.direction)

        test_kernel()
        assert flag[None] == 1

    def test_ray_at(self):
        """Test ray_at walks t units along the direction."""
        from src.phong.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 1.0, 1.0), vec3(0.0, 0.0, 1.0))
            result[None] = ray_at(ray, 2.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_distance_is_euclidean(self):
        """Test ray_distance ignores the ray direction."""
        from src.phong.core.ray import make_ray, ray_distance, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0))
            result[None] = ray_distance(ray, vec3(0.0, 3.0, 4.0))

        test_kernel()
        assert abs(result[None] - 5.0) < 1e-6


class TestReflection:
    """Tests for reflect and ray_reflection."""

    def test_reflection_law(self):
        """Test d' = d - 2n(d.n) and that the angle to the normal is preserved."""
        from src.phong.core.ray import make_ray, ray_reflection, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d = vec3(1.0, -1.0, 0.0).normalized()
            ray = make_ray(vec3(0.0, 1.0, 0.0), d)
            result[None] = ray_reflection(ray, vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        s = 1.0 / math.sqrt(2.0)
        assert abs(r[0] - s) < 1e-6
        assert abs(r[1] - s) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_reflection_preserves_length(self):
        """Test reflecting a unit vector gives a unit vector."""
        from src.phong.core.ray import reflect, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            d = vec3(0.3, -0.5, 0.8).normalized()
            n = vec3(0.2, 0.9, 0.1).normalized()
            result[None] = reflect(d, n).norm()

        test_kernel()
        assert abs(result[None] - 1.0) < 1e-5

    def test_head_on_reflection_reverses(self):
        """Test a ray hitting a surface head-on bounces straight back."""
        from src.phong.core.ray import make_ray, reflection_ray, vec3

        origin = ti.field(dtype=ti.math.vec3, shape=())
        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0))
            bounced = reflection_ray(ray, vec3(0.0, 0.0, 1.0), vec3(0.0, 0.0, 1.0))
            origin[None] = bounced.origin
            direction[None] = bounced.direction

        test_kernel()
        assert abs(origin[None][2] - 1.0) < 1e-6
        assert abs(direction[None][2] - 1.0) < 1e-6


class TestPythonHelpers:
    """Tests for the Python-side vector helpers."""

    def test_unit_vector(self):
        """Test unit_vector normalizes on the Python side."""
        from src.phong.core.ray import unit_vector

        v = unit_vector((0.0, 3.0, 4.0))
        assert np.allclose(v, (0.0, 0.6, 0.8))

    def test_unit_vector_rejects_zero(self):
        """Test a zero vector raises DegenerateGeometryError."""
        from src.phong.core.ray import DegenerateGeometryError, unit_vector

        with pytest.raises(DegenerateGeometryError):
            unit_vector((0.0, 0.0, 0.0))

    def test_direction_between_rejects_coincident_points(self):
        """Test coincident points raise, and the error is a ValueError."""
        from src.phong.core.ray import direction_between

        with pytest.raises(ValueError):
            direction_between((1.0, 2.0, 3.0), (1.0, 2.0, 3.0))
