"""Taichi-based Phong ray tracer.

Renders scenes of spheres, planes, triangles, quads and triangle meshes lit
by white point lights, with one primary ray per pixel, hard shadows and a
Phong-style local illumination model (ambient, diffuse and specular terms).

Subpackages:
    core: Ray utilities, the pixel buffer and the shading integrator
    camera: Camera and view window
    geometry: Shape primitives and intersection algorithms
    scene: Scene files, shape storage and the Scene facade
    preview: Image export
"""

__version__ = "0.1.0"
