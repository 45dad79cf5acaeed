"""Taichi-based offline path tracer.

This package renders scenes of spheres and planes with diffuse, reflective
and dielectric materials into 8-bit images, with support for:
- Recursive (unrolled) light transport with a sky gradient background
- Parallel tile-based sample accumulation
- Scene building from in-memory (primitive, material) lists

Subpackages:
    core: Ray and vector utilities, integrator, tiles, settings, renderer
    geometry: Shape primitives and intersection algorithms
    materials: Material scattering models
    scene: Scene management and nearest-hit queries
    camera: Camera models with ray generation
    preview: Image export
"""

__version__ = "0.1.0"
