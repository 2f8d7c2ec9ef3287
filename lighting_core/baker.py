"""Lightmap baker: ambient occlusion + directional shadow per chunk.

This module is the "conductor" that drives the voxel sampler, occlusion
estimator and shadow caster over every cell of a chunk and quantizes the
result into an RGB lightmap registered under the chunk key.

Pipeline
--------
1. Parse the chunk key into integer chunk coordinates.
2. For each of the N×N×N cells, compute the world position
   ``chunk * chunk_size + cell * (chunk_size / N)``.
3. Occlusion: fraction of 18 solid neighbours.
4. Shadow: march from the cell toward the light position (0.5 or 1.0).
5. Quantize ``floor(255 * color * shadow * (1 - occlusion))`` into [0, 255].
6. Store the bytes in the registry, overwriting any previous bake in place.

Notes
-----
Cost is O(N³ · (18 + 32)) voxel lookups per bake (~200K for N = 16). The
cell loop is a Numba kernel compiled with ``nogil=True`` so several chunks
can bake concurrently on worker threads. Baking is deterministic: the same
key, buffer and light always produce identical bytes.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np
from numba import njit

from lighting_core.chunk_key import ChunkKey
from lighting_core.constants import (
    CHUNK_SIZE,
    DIRECTIONAL_LIGHT_POSITION,
    LIGHTMAP_RESOLUTION,
    RGB_CHANNELS,
    SHADOW_MAX_STEPS,
    SHADOW_OCCLUDED_FACTOR,
    WHITE,
    LightingConfig,
    hash_array,
)
from lighting_core.lightmap import Lightmap, LightmapRegistry
from lighting_core.occlusion import ambient_occlusion
from lighting_core.shadow import cast_shadow_ray
from lighting_core.voxel_sampler import as_voxel_buffer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Light Descriptor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DirectionalLight:
    """World-space light used for baking.

    Shadow rays are cast toward ``position`` from every sample point, so the
    light behaves like a distant point source rather than a pure direction.

    Attributes
    ----------
    position : tuple[float, float, float]
        World-space light position.
    color : tuple[float, float, float]
        Linear RGB in [0, 1]. White gives full-intensity 255 channels.
    """

    position: tuple[float, float, float] = DIRECTIONAL_LIGHT_POSITION
    color: tuple[float, float, float] = WHITE

    def __post_init__(self) -> None:
        if len(self.position) != 3 or len(self.color) != 3:
            raise ValueError("Light position and color must have 3 components.")
        if any(not (0.0 <= c <= 1.0) for c in self.color):
            raise ValueError(f"Light color channels must be in [0, 1], got {self.color}")


# ---------------------------------------------------------------------------
# Bake Kernel (Numba JIT)
# ---------------------------------------------------------------------------


@njit(cache=True, nogil=True)
def _bake_cells(
    voxels: np.ndarray,
    origin: np.ndarray,
    cell_scale: float,
    resolution: int,
    light_pos: np.ndarray,
    base_color: np.ndarray,
    chunk_size: int,
    max_steps: int,
    occluded_factor: float,
    out: np.ndarray,
) -> None:
    """Fill ``out`` with quantized RGB bytes for every lightmap cell.

    Parameters
    ----------
    voxels : np.ndarray
        Flat uint8 voxel buffer.
    origin : np.ndarray
        World coordinate of the chunk's minimum corner. Shape: (3,).
    cell_scale : float
        World units per lightmap cell (chunk_size / resolution).
    resolution : int
        Cells per chunk edge.
    light_pos : np.ndarray
        Light world position. Shape: (3,).
    base_color : np.ndarray
        Unshadowed channel values in [0, 255]. Shape: (3,).
    chunk_size : int
        Chunk edge length in voxels.
    max_steps : int
        Shadow march length.
    occluded_factor : float
        Shadow factor on a hit.
    out : np.ndarray
        Output bytes, shape (resolution³ * 3,), modified in place.
    """
    direction = np.empty(3, dtype=np.float64)
    n2 = resolution * resolution

    for cy in range(resolution):
        for cz in range(resolution):
            for cx in range(resolution):
                wx = origin[0] + cx * cell_scale
                wy = origin[1] + cy * cell_scale
                wz = origin[2] + cz * cell_scale

                occlusion = ambient_occlusion(wx, wy, wz, voxels, chunk_size)

                dx = light_pos[0] - wx
                dy = light_pos[1] - wy
                dz = light_pos[2] - wz
                length = np.sqrt(dx * dx + dy * dy + dz * dz)

                if length > 0.0:
                    direction[0] = dx / length
                    direction[1] = dy / length
                    direction[2] = dz / length
                    shadow = cast_shadow_ray(
                        wx, wy, wz, direction, voxels, chunk_size,
                        max_steps, occluded_factor,
                    )
                else:
                    # Sample sits on the light itself
                    shadow = 1.0

                base = (cy * n2 + cz * resolution + cx) * 3
                for c in range(3):
                    value = np.floor(base_color[c] * shadow * (1.0 - occlusion))
                    if value < 0.0:
                        value = 0.0
                    elif value > 255.0:
                        value = 255.0
                    out[base + c] = np.uint8(int(value))


# ---------------------------------------------------------------------------
# Lightmap Baker
# ---------------------------------------------------------------------------


class LightmapBaker:
    """Bakes per-chunk lightmaps and registers them by chunk key.

    Parameters
    ----------
    registry : LightmapRegistry, optional
        Destination registry. A private one is created if omitted.
    resolution : int
        Lightmap cells per chunk edge (N).
    chunk_size : int
        Voxels per chunk edge.
    light : DirectionalLight, optional
        Default light for bakes that do not pass one explicitly.
    max_steps : int
        Shadow ray march length.
    occluded_factor : float
        Shadow factor applied on a ray hit.
    """

    def __init__(
        self,
        registry: LightmapRegistry | None = None,
        resolution: int = LIGHTMAP_RESOLUTION,
        chunk_size: int = CHUNK_SIZE,
        light: DirectionalLight | None = None,
        max_steps: int = SHADOW_MAX_STEPS,
        occluded_factor: float = SHADOW_OCCLUDED_FACTOR,
    ) -> None:
        if resolution <= 0:
            raise ValueError(f"resolution must be > 0, got {resolution}")
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be > 0, got {chunk_size}")
        if max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {max_steps}")
        if not (0.0 <= occluded_factor <= 1.0):
            raise ValueError(f"occluded_factor must be in [0, 1], got {occluded_factor}")

        self.registry = registry if registry is not None else LightmapRegistry()
        self.resolution = resolution
        self.chunk_size = chunk_size
        self.light = light if light is not None else DirectionalLight()
        self.max_steps = max_steps
        self.occluded_factor = occluded_factor

        logger.info(
            "LightmapBaker initialized: N=%d, chunk_size=%d, shadow_steps=%d, "
            "light=(%.1f, %.1f, %.1f)",
            resolution,
            chunk_size,
            max_steps,
            *self.light.position,
        )

    @classmethod
    def from_config(
        cls,
        config: LightingConfig,
        registry: LightmapRegistry | None = None,
    ) -> LightmapBaker:
        """Build a baker from a loaded :class:`LightingConfig`."""
        return cls(
            registry=registry,
            resolution=config.lightmap.resolution,
            chunk_size=config.world.chunk_size,
            light=DirectionalLight(
                position=config.directional_light.position,
                color=config.directional_light.color,
            ),
            max_steps=config.shadow.max_steps,
            occluded_factor=config.shadow.occluded_factor,
        )

    @property
    def cell_scale(self) -> float:
        """World units covered by one lightmap cell."""
        return self.chunk_size / self.resolution

    def bake_chunk(
        self,
        chunk_key: str | ChunkKey,
        voxel_buffer,
        light: DirectionalLight | None = None,
    ) -> Lightmap:
        """Bake and register the lightmap for one chunk.

        Parameters
        ----------
        chunk_key : str or ChunkKey
            ``"x,y,z"`` chunk coordinates.
        voxel_buffer : array-like
            Chunk voxel material ids (see
            :func:`~lighting_core.voxel_sampler.as_voxel_buffer`).
        light : DirectionalLight, optional
            Light to bake against. Defaults to the baker's light.

        Returns
        -------
        Lightmap
            The registered lightmap. If the key was baked before at the same
            resolution, the existing object is overwritten in place and
            returned.

        Raises
        ------
        MalformedChunkKeyError
            If ``chunk_key`` does not parse to three integers.
        """
        key = ChunkKey.parse(chunk_key)
        light = light if light is not None else self.light
        voxels = as_voxel_buffer(voxel_buffer, self.chunk_size)

        n = self.resolution
        out = np.empty(n ** 3 * RGB_CHANNELS, dtype=np.uint8)
        origin = np.array(key.world_origin(self.chunk_size), dtype=np.float64)

        t0 = time.perf_counter()
        _bake_cells(
            voxels,
            origin,
            float(self.cell_scale),
            n,
            np.asarray(light.position, dtype=np.float64),
            255.0 * np.asarray(light.color, dtype=np.float64),
            self.chunk_size,
            self.max_steps,
            float(self.occluded_factor),
            out,
        )
        elapsed_ms = (time.perf_counter() - t0) * 1e3

        lightmap = self._publish(key, out)

        logger.info(
            "Baked lightmap %s (v%d): %.1f ms, mean=%.1f, dark=%.1f%%, lit=%.1f%%",
            key,
            lightmap.version,
            elapsed_ms,
            lightmap.stats["mean_intensity"],
            lightmap.stats["dark_fraction"] * 100.0,
            lightmap.stats["full_light_fraction"] * 100.0,
        )
        logger.debug("Lightmap %s sha256=%s", key, hash_array(lightmap.data))

        return lightmap

    def remove_chunk(self, chunk_key: str | ChunkKey) -> bool:
        """Drop the registered lightmap for an unloaded chunk."""
        removed = self.registry.remove(chunk_key)
        if removed is not None:
            logger.debug("Removed lightmap for chunk %s", removed.chunk_key)
        return removed is not None

    def _publish(self, key: ChunkKey, out: np.ndarray) -> Lightmap:
        """Hand bake output to the registry, which reuses the existing buffer."""
        return self.registry.publish(key, out, self.resolution, self._compute_stats(out))

    @staticmethod
    def _compute_stats(data: np.ndarray) -> dict[str, float]:
        """Compute summary statistics for a lightmap byte buffer."""
        if data.size == 0:
            return {
                "mean_intensity": 0.0,
                "dark_fraction": 1.0,
                "full_light_fraction": 0.0,
            }
        return {
            "mean_intensity": float(data.mean()),
            "dark_fraction": float(np.sum(data == 0)) / data.size,
            "full_light_fraction": float(np.sum(data == 255)) / data.size,
        }
