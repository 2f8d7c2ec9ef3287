"""Ambient occlusion estimate from neighbour solidity.

A cheap proxy for hemispherical occlusion: count how many of 18 fixed
neighbours are solid. The sample set is the 6 axis-aligned neighbours
plus the 12 face diagonals; corner diagonals are excluded.

    occlusion = solid_neighbours / 18     ∈ [0, 1]

The estimate is symmetric and independent of sampling order. It is not a
solid-angle integral.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from lighting_core.constants import CHUNK_SIZE
from lighting_core.voxel_sampler import is_solid

AO_DIRECTIONS: np.ndarray = np.array(
    [
        [1, 0, 0], [-1, 0, 0],
        [0, 1, 0], [0, -1, 0],
        [0, 0, 1], [0, 0, -1],
        [1, 1, 0], [1, -1, 0], [-1, 1, 0], [-1, -1, 0],
        [1, 0, 1], [1, 0, -1], [-1, 0, 1], [-1, 0, -1],
        [0, 1, 1], [0, 1, -1], [0, -1, 1], [0, -1, -1],
    ],
    dtype=np.int64,
)


@njit(cache=True)
def ambient_occlusion(
    x: float,
    y: float,
    z: float,
    voxels: np.ndarray,
    chunk_size: int = CHUNK_SIZE,
) -> float:
    """Fraction of the 18 sampled neighbours that are solid.

    Parameters
    ----------
    x, y, z : float
        World-space sample position.
    voxels : np.ndarray
        Flat uint8 chunk voxel buffer.
    chunk_size : int
        Chunk edge length in voxels.

    Returns
    -------
    float
        Occlusion in [0, 1]: 0.0 when no neighbour is solid, 1.0 when all are.
    """
    num_dirs = AO_DIRECTIONS.shape[0]
    occluded = 0
    for i in range(num_dirs):
        if is_solid(
            x + AO_DIRECTIONS[i, 0],
            y + AO_DIRECTIONS[i, 1],
            z + AO_DIRECTIONS[i, 2],
            voxels,
            chunk_size,
        ):
            occluded += 1
    return occluded / num_dirs
