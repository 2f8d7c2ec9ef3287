"""Lighting Core Package.

Voxel solidity sampling, ambient occlusion, shadow ray marching,
lightmap baking, dynamic point lights and lightmap binding for
chunked voxel worlds.
"""
