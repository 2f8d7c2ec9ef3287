"""Bounds-safe voxel solidity lookup.

The lookup functions are compiled with Numba ``@njit(cache=True)`` so the
bake kernel can call them from its inner loop without Python overhead.

Design Notes
------------
- **Chunk-local addressing**: world coordinates are floored, then reduced
  with floor-modulo (Python ``%`` semantics, which Numba preserves), so
  negative coordinates map into ``[0, chunk_size)``.
- **Wrap-around**: a neighbour query one voxel past the chunk edge wraps
  onto the opposite face of the same buffer. The buffer never sees
  neighbouring chunks, so occlusion and shadows ignore them.
- **Out-of-range index**: a buffer shorter than ``chunk_size**3`` reads as
  empty past its end instead of raising.
"""

from __future__ import annotations

import logging

import numpy as np
from numba import njit

from lighting_core.constants import CHUNK_SIZE

logger = logging.getLogger(__name__)


@njit(cache=True)
def is_solid(
    x: float,
    y: float,
    z: float,
    voxels: np.ndarray,
    chunk_size: int = CHUNK_SIZE,
) -> bool:
    """Test whether the voxel containing a world position is non-empty.

    Parameters
    ----------
    x, y, z : float
        World-space coordinates. Fractional values are floored.
    voxels : np.ndarray
        Flat chunk voxel buffer, dtype uint8, indexed
        ``y * size**2 + z * size + x``. 0 means empty.
    chunk_size : int
        Chunk edge length in voxels.

    Returns
    -------
    bool
        True if the material id at the position is non-zero. Positions
        whose index falls outside the buffer are reported as empty.
    """
    local_x = int(np.floor(float(x))) % chunk_size
    local_y = int(np.floor(float(y))) % chunk_size
    local_z = int(np.floor(float(z))) % chunk_size

    index = local_y * chunk_size * chunk_size + local_z * chunk_size + local_x

    if index < 0 or index >= voxels.shape[0]:
        return False
    return voxels[index] != 0


def as_voxel_buffer(data, chunk_size: int = CHUNK_SIZE) -> np.ndarray:
    """Convert voxel data into the flat uint8 layout the kernels expect.

    Accepts any array-like of material ids (including ``bytes``, read as
    unsigned bytes): a flat sequence in
    ``y * size**2 + z * size + x`` order, or a 3-D array indexed
    ``[y, z, x]`` (which flattens to the same order).

    Parameters
    ----------
    data : array-like
        Voxel material ids in [0, 255].
    chunk_size : int
        Expected chunk edge length.

    Returns
    -------
    np.ndarray
        Contiguous 1-D uint8 array. The input is not copied when it is
        already in this form.

    Raises
    ------
    ValueError
        If any material id is outside [0, 255].
    """
    if isinstance(data, (bytes, memoryview)):
        data = np.frombuffer(data, dtype=np.uint8)
    arr = np.asarray(data)
    if arr.dtype != np.uint8:
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise ValueError("Voxel material ids must be in [0, 255].")
        arr = arr.astype(np.uint8)
    voxels = np.ascontiguousarray(arr).reshape(-1)

    expected = chunk_size ** 3
    if voxels.shape[0] != expected:
        logger.warning(
            "Voxel buffer has %d entries, expected %d (chunk_size=%d); "
            "missing voxels read as empty",
            voxels.shape[0],
            expected,
            chunk_size,
        )
    return voxels
