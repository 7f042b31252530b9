"""Mesh moments and mesh file I/O, tetrahedral meshes, include expansion, cache files and timing."""

__version__ = "0.1.0"
__all__ = ["cache", "mesh", "preprocess", "tetmesh", "timing"]