"""Unit tests for shape intersection.

Tests cover:
- Sphere hits from outside and inside, misses
- Plane hits, parallel rays and hits behind the origin
- Triangle and quad bounds
- Normal orientation against the view hint
"""

import taichi as ti


def _run(intersect_kernel):
    """Run a kernel writing (hit, point) into fresh fields and read them back."""
    hit = ti.field(dtype=ti.i32, shape=())
    point = ti.field(dtype=ti.math.vec3, shape=())
    intersect_kernel(hit, point)
    p = point[None]
    return hit[None], (p[0], p[1], p[2])


class TestSphereIntersection:
    """Tests for intersect_sphere and sphere_normal."""

    def test_direct_hit_returns_near_point(self):
        """Test a ray hitting a sphere head-on reports the near surface point."""
        from src.phong.core.ray import make_ray
        from src.phong.geometry.sphere import Sphere, intersect_sphere, vec3

        @ti.kernel
        def test_kernel(hit: ti.template(), point: ti.template()):
            ray = make_ray(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            h, p = intersect_sphere(ray, sphere)
            hit[None] = h
            point[None] = p

        did_hit, p = _run(test_kernel)
        assert did_hit == 1
        assert abs(p[2] - 1.0) < 1e-5

    def test_miss(self):
        """Test a ray passing beside a sphere misses it."""
        from src.phong.core.ray import make_ray
        from src.phong.geometry.sphere import Sphere, intersect_sphere, vec3

        @ti.kernel
        def test_kernel(hit: ti.template(), point: ti.template()):
            ray = make_ray(vec3(2.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            h, p = intersect_sphere(ray, sphere)
            hit[None] = h
            point[None] = p

        did_hit, _ = _run(test_kernel)
        assert did_hit == 0

    def test_sphere_behind_ray_missed(self):
        """Test a sphere entirely behind the ray origin is not hit."""
        from src.phong.core.ray import make_ray
        from src.phong.geometry.sphere import Sphere, intersect_sphere, vec3

        @ti.kernel
        def test_kernel(hit: ti.template(), point: ti.template()):
            ray = make_ray(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, 1.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            h, p = intersect_sphere(ray, sphere)
            hit[None] = h
            point[None] = p

        did_hit, _ = _run(test_kernel)
        assert did_hit == 0

    def test_ray_from_inside_hits_far_side(self):
        """Test a ray starting at the center hits the far surface."""
        from src.phong.core.ray import make_ray
        from src.phong.geometry.sphere import Sphere, intersect_sphere, vec3

        @ti.kernel
        def test_kernel(hit: ti.template(), point: ti.template()):
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0))
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=2.0)
            h, p = intersect_sphere(ray, sphere)
            hit[None] = h
            point[None] = p

        did_hit, p = _run(test_kernel)
        assert did_hit == 1
        assert abs(p[0] - 2.0) < 1e-5

    def test_normal_points_outward(self):
        """Test sphere_normal is the outward unit normal."""
        from src.phong.geometry.sphere import Sphere, sphere_normal, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(1.0, 0.0, 0.0), radius=2.0)
            result[None] = sphere_normal(sphere, vec3(1.0, 2.0, 0.0))

        test_kernel()
        n = result[None]
        assert abs(n[0]) < 1e-6
        assert abs(n[1] - 1.0) < 1e-6
        assert abs(n[2]) < 1e-6


class TestPlaneIntersection:
    """Tests for intersect_plane and plane_normal."""

    def test_hit(self):
        """Test a downward ray hits the floor plane."""
        from src.phong.core.ray import make_ray
        from src.phong.geometry.plane import Plane, intersect_plane, vec3

        @ti.kernel
        def test_kernel(hit: ti.template(), point: ti.template()):
            ray = make_ray(vec3(3.0, 2.0, -1.0), vec3(0.0, -1.0, 0.0))
            plane = Plane(point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 1.0, 0.0))
            h, p = intersect_plane(ray, plane)
            hit[None] = h
            point[None] = p

        did_hit, p = _run(test_kernel)
        assert did_hit == 1
        assert abs(p[0] - 3.0) < 1e-6
        assert abs(p[1]) < 1e-6
        assert abs(p[2] + 1.0) < 1e-6

    def test_parallel_ray_misses(self):
        """Test a ray parallel to the plane never hits it."""
        from src.phong.core.ray import make_ray
        from src.phong.geometry.plane import Plane, intersect_plane, vec3

        @ti.kernel
        def test_kernel(hit: ti.template(), point: ti.template()):
            ray = make_ray(vec3(0.0, 1.0, 0.0), vec3(1.0, 0.0, 0.0))
            plane = Plane(point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 1.0, 0.0))
            h, p = intersect_plane(ray, plane)
            hit[None] = h
            point[None] = p

        did_hit, _ = _run(test_kernel)
        assert did_hit == 0

    def test_plane_behind_origin_missed(self):
        """Test a ray pointing away from the plane misses it."""
        from src.phong.core.ray import make_ray
        from src.phong.geometry.plane import Plane, intersect_plane, vec3

        @ti.kernel
        def test_kernel(hit: ti.template(), point: ti.template()):
            ray = make_ray(vec3(0.0, 1.0, 0.0), vec3(0.0, 1.0, 0.0))
            plane = Plane(point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 1.0, 0.0))
            h, p = intersect_plane(ray, plane)
            hit[None] = h
            point[None] = p

        did_hit, _ = _run(test_kernel)
        assert did_hit == 0

    def test_normal_faces_viewer(self):
        """Test plane_normal flips the normal to face against the view hint."""
        from src.phong.geometry.plane import Plane, plane_normal, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            plane = Plane(point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 1.0, 0.0))
            # Looking up at the plane from below
            result[None] = plane_normal(plane, vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert abs(result[None][1] + 1.0) < 1e-6


class TestTriangleIntersection:
    """Tests for intersect_triangle."""

    def test_hit_inside(self):
        """Test a ray through the interior hits the triangle."""
        from src.phong.core.ray import make_ray
        from src.phong.geometry.triangle import Triangle, intersect_triangle, vec3

        @ti.kernel
        def test_kernel(hit: ti.template(), point: ti.template()):
            ray = make_ray(vec3(0.2, 0.2, 3.0), vec3(0.0, 0.0, -1.0))
            tri = Triangle(
                v0=vec3(0.0, 0.0, 0.0), v1=vec3(1.0, 0.0, 0.0), v2=vec3(0.0, 1.0, 0.0)
            )
            h, p = intersect_triangle(ray, tri)
            hit[None] = h
            point[None] = p

        did_hit, p = _run(test_kernel)
        assert did_hit == 1
        assert abs(p[0] - 0.2) < 1e-6
        assert abs(p[1] - 0.2) < 1e-6
        assert abs(p[2]) < 1e-6

    def test_miss_outside(self):
        """Test a ray past the hypotenuse misses the triangle."""
        from src.phong.core.ray import make_ray
        from src.phong.geometry.triangle import Triangle, intersect_triangle, vec3

        @ti.kernel
        def test_kernel(hit: ti.template(), point: ti.template()):
            ray = make_ray(vec3(0.8, 0.8, 3.0), vec3(0.0, 0.0, -1.0))
            tri = Triangle(
                v0=vec3(0.0, 0.0, 0.0), v1=vec3(1.0, 0.0, 0.0), v2=vec3(0.0, 1.0, 0.0)
            )
            h, p = intersect_triangle(ray, tri)
            hit[None] = h
            point[None] = p

        did_hit, _ = _run(test_kernel)
        assert did_hit == 0


class TestQuadIntersection:
    """Tests for intersect_quad and quad_normal."""

    def test_hit_and_miss(self):
        """Test quad bounds: inside hits, outside misses."""
        from src.phong.core.ray import make_ray
        from src.phong.geometry.quad import Quad, intersect_quad, vec3

        hits = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            quad = Quad(
                corner=vec3(0.0, 0.0, 0.0),
                edge_u=vec3(2.0, 0.0, 0.0),
                edge_v=vec3(0.0, 0.0, 1.0),
            )
            inside, _ = intersect_quad(make_ray(vec3(1.5, 1.0, 0.5), vec3(0.0, -1.0, 0.0)), quad)
            outside, _ = intersect_quad(make_ray(vec3(1.5, 1.0, 1.5), vec3(0.0, -1.0, 0.0)), quad)
            hits[0] = inside
            hits[1] = outside

        test_kernel()
        assert hits[0] == 1
        assert hits[1] == 0

    def test_normal_faces_viewer(self):
        """Test quad_normal points back toward a viewer on either side."""
        from src.phong.geometry.quad import Quad, quad_normal, vec3

        normals = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            quad = Quad(
                corner=vec3(0.0, 0.0, 0.0),
                edge_u=vec3(1.0, 0.0, 0.0),
                edge_v=vec3(0.0, 1.0, 0.0),
            )
            normals[0] = quad_normal(quad, vec3(0.0, 0.0, -1.0))
            normals[1] = quad_normal(quad, vec3(0.0, 0.0, 1.0))

        test_kernel()
        assert abs(normals[0][2] - 1.0) < 1e-6
        assert abs(normals[1][2] + 1.0) < 1e-6
