"""Taichi-based sphere path tracer.

This package renders scenes of spheres by Monte Carlo path tracing, with:
- Diffuse, metal and dielectric materials
- A thin-lens camera with defocus blur
- A data-parallel per-pixel sampling pipeline with deterministic output
- PPM and PNG export

Subpackages:
    core: Vectors and sampling, random streams, integrator, pipeline, config
    geometry: Sphere primitive and intersection
    materials: Scattering models
    scene: Scene management, closest-hit queries and ready-made worlds
    camera: Thin-lens camera with ray generation
    preview: Image export
"""

__version__ = "0.1.0"
