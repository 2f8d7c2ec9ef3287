"""Synthetic voxel chunk generator.

Generates parametric chunk voxel buffers (empty, solid, ground slab,
pillars, cave) for exercising the lightmap baker without a terrain
subsystem. Every generator returns a flat ``uint8`` buffer in the layout
the baker consumes:

    index = y * size² + z * size + x        (0 = empty)

Internally the generators fill a ``[y, z, x]`` grid and flatten it in C
order, which produces exactly that indexing.

Shapes
------
- ``air``:     all empty.
- ``solid``:   all filled with ``material_id``.
- ``floor``:   solid for ``y < floor_height``, empty above.
- ``pillars``: floor slab plus ``pillar_count`` single-voxel columns at
  random (seeded) x/z positions rising to the top of the chunk.
- ``cave``:    solid shell with an empty box carved from the interior,
  leaving a one-voxel wall on every face.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from lighting_core.constants import CHUNK_SIZE, SyntheticChunkConfig

logger = logging.getLogger(__name__)


@dataclass
class VoxelChunk:
    """Container for a generated chunk.

    Attributes
    ----------
    voxels : np.ndarray
        Flat material ids. Shape: (size³,), dtype: uint8.
    chunk_size : int
        Edge length in voxels.
    metadata : dict
        Generator parameters and fill statistics.
    """

    voxels: np.ndarray
    chunk_size: int
    metadata: dict

    def as_grid(self) -> np.ndarray:
        """View the buffer as ``[y, z, x]``."""
        s = self.chunk_size
        return self.voxels.reshape(s, s, s)


def generate_chunk(
    config: SyntheticChunkConfig,
    chunk_size: int = CHUNK_SIZE,
) -> VoxelChunk:
    """Generate a synthetic voxel chunk from configuration.

    Dispatches to the generator named by ``config.kind``.

    Parameters
    ----------
    config : SyntheticChunkConfig
        Synthetic chunk configuration.
    chunk_size : int
        Chunk edge length in voxels.

    Returns
    -------
    VoxelChunk
        Generated voxels and metadata.

    Raises
    ------
    ValueError
        If ``config.kind`` is not recognized.
    """
    generators = {
        "air": _generate_air,
        "solid": _generate_solid,
        "floor": _generate_floor,
        "pillars": _generate_pillars,
        "cave": _generate_cave,
    }

    if config.kind not in generators:
        raise ValueError(
            f"Unknown chunk kind '{config.kind}'. "
            f"Valid options: {list(generators.keys())}"
        )

    rng = np.random.default_rng(config.seed)
    grid = generators[config.kind](config, chunk_size, rng)
    voxels = np.ascontiguousarray(grid, dtype=np.uint8).reshape(-1)

    solid_fraction = float(np.count_nonzero(voxels)) / voxels.size
    logger.info(
        "Synthetic chunk generated: kind=%s, size=%d, solid=%.1f%%, seed=%d",
        config.kind,
        chunk_size,
        solid_fraction * 100.0,
        config.seed,
    )

    metadata = {
        "kind": config.kind,
        "chunk_size": chunk_size,
        "material_id": config.material_id,
        "seed": config.seed,
        "solid_fraction": solid_fraction,
    }
    return VoxelChunk(voxels=voxels, chunk_size=chunk_size, metadata=metadata)


def _empty_grid(size: int) -> np.ndarray:
    return np.zeros((size, size, size), dtype=np.uint8)


def _generate_air(
    config: SyntheticChunkConfig, size: int, rng: np.random.Generator
) -> np.ndarray:
    return _empty_grid(size)


def _generate_solid(
    config: SyntheticChunkConfig, size: int, rng: np.random.Generator
) -> np.ndarray:
    return np.full((size, size, size), config.material_id, dtype=np.uint8)


def _generate_floor(
    config: SyntheticChunkConfig, size: int, rng: np.random.Generator
) -> np.ndarray:
    """Solid ground slab of ``floor_height`` voxels (clamped to the chunk)."""
    grid = _empty_grid(size)
    height = int(np.clip(config.floor_height, 0, size))
    grid[:height, :, :] = config.material_id
    return grid


def _generate_pillars(
    config: SyntheticChunkConfig, size: int, rng: np.random.Generator
) -> np.ndarray:
    """Ground slab plus seeded single-voxel pillars reaching the chunk top."""
    grid = _generate_floor(config, size, rng)
    columns = rng.integers(0, size, size=(config.pillar_count, 2))
    for x, z in columns:
        grid[:, z, x] = config.material_id
    return grid


def _generate_cave(
    config: SyntheticChunkConfig, size: int, rng: np.random.Generator
) -> np.ndarray:
    """Solid shell with a hollow interior."""
    grid = _generate_solid(config, size, rng)
    if size > 2:
        grid[1:-1, 1:-1, 1:-1] = 0
    return grid
