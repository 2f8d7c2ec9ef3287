"""Directional shadow test by fixed-step voxel ray marching.

The ray starts at the sample point and advances one voxel length per step
along the (already normalized) point-to-light direction. After every step
the floored position is tested for solidity. The first solid voxel ends
the march.

Only two factors are ever returned: ``occluded_factor`` (0.5 by default,
a soft shadow standing in for ambient bounce light) or 1.0. There is no
accumulation along the ray and no penumbra gradient.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from lighting_core.constants import CHUNK_SIZE, SHADOW_MAX_STEPS, SHADOW_OCCLUDED_FACTOR
from lighting_core.voxel_sampler import is_solid


@njit(cache=True)
def cast_shadow_ray(
    x: float,
    y: float,
    z: float,
    direction: np.ndarray,
    voxels: np.ndarray,
    chunk_size: int = CHUNK_SIZE,
    max_steps: int = SHADOW_MAX_STEPS,
    occluded_factor: float = SHADOW_OCCLUDED_FACTOR,
) -> float:
    """March toward the light and report the shadow factor.

    Parameters
    ----------
    x, y, z : float
        Ray origin (sample point, world space).
    direction : np.ndarray
        Unit vector from the sample point toward the light. Shape: (3,).
    voxels : np.ndarray
        Flat uint8 chunk voxel buffer.
    chunk_size : int
        Chunk edge length in voxels.
    max_steps : int
        Maximum number of unit steps.
    occluded_factor : float
        Value returned on the first solid hit.

    Returns
    -------
    float
        ``occluded_factor`` if a solid voxel is hit within ``max_steps``,
        otherwise 1.0.
    """
    px = float(x)
    py = float(y)
    pz = float(z)

    for _ in range(max_steps):
        px += direction[0]
        py += direction[1]
        pz += direction[2]

        if is_solid(np.floor(px), np.floor(py), np.floor(pz), voxels, chunk_size):
            return occluded_factor

    return 1.0
