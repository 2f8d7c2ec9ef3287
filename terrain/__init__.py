"""Terrain Package.

Synthetic voxel chunk generation for tests and benchmarks.
"""
