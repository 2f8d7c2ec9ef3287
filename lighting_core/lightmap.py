"""Lightmap container and the per-chunk lightmap registry.

A lightmap is a dense RGB byte buffer with one texel per lightmap cell,
laid out the way the renderer uploads it as a 2-D data texture:

    width  = N
    height = N * N          (Y slices stacked along the texture's v axis)
    index  = (y * N² + z * N + x) * 3

The registry is the only shared state between the baker (sole writer) and
the applier (sole reader). It is guarded by a lock so bakes running on a
worker pool can publish results while the render thread reads.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterator

import numpy as np

from lighting_core.chunk_key import ChunkKey, MalformedChunkKeyError
from lighting_core.constants import RGB_CHANNELS

logger = logging.getLogger(__name__)

TEXTURE_FORMAT = "RGB"


@dataclass
class Lightmap:
    """Baked lighting for one chunk.

    Attributes
    ----------
    chunk_key : ChunkKey
        Chunk this lightmap belongs to.
    resolution : int
        Cells per chunk edge (N).
    data : np.ndarray
        RGB bytes. Shape: (N³ * 3,), dtype: uint8.
    needs_update : bool
        Set whenever the bytes change so the renderer re-uploads them.
    version : int
        Number of bakes written into this buffer.
    stats : dict[str, float]
        Summary statistics of the last bake.
    """

    chunk_key: ChunkKey
    resolution: int
    data: np.ndarray
    needs_update: bool = True
    version: int = 0
    stats: dict[str, float] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return self.resolution

    @property
    def height(self) -> int:
        return self.resolution * self.resolution

    @property
    def texture_format(self) -> str:
        return TEXTURE_FORMAT

    def as_grid(self) -> np.ndarray:
        """View the bytes as ``[y, z, x, channel]``. Shares memory with ``data``."""
        n = self.resolution
        return self.data.reshape(n, n, n, RGB_CHANNELS)

    def texel(self, x: int, y: int, z: int) -> tuple[int, int, int]:
        """RGB bytes of one cell."""
        base = (y * self.resolution * self.resolution + z * self.resolution + x) * RGB_CHANNELS
        r, g, b = self.data[base:base + RGB_CHANNELS]
        return int(r), int(g), int(b)

    def __len__(self) -> int:
        return int(self.data.shape[0])


class LightmapRegistry:
    """Thread-safe mapping from canonical chunk key to Lightmap.

    Holds at most one lightmap per key. Keys may be given as ``"x,y,z"``
    strings or ChunkKey instances; malformed strings raise
    :class:`~lighting_core.chunk_key.MalformedChunkKeyError`, except in
    membership tests, which report them as absent.
    """

    def __init__(self) -> None:
        self._lightmaps: dict[ChunkKey, Lightmap] = {}
        self._lock = threading.Lock()

    def get(self, chunk_key: str | ChunkKey) -> Lightmap | None:
        key = ChunkKey.parse(chunk_key)
        with self._lock:
            return self._lightmaps.get(key)

    def publish(
        self,
        key: ChunkKey,
        data: np.ndarray,
        resolution: int,
        stats: dict[str, float],
    ) -> Lightmap:
        """Store bake output for ``key``.

        A registered lightmap of the same resolution is overwritten in place
        (same object, same array) while the registry lock is held, so
        :meth:`get` never returns it mid-copy. ``needs_update`` is raised
        only after the copy completes; readers that bypass the registry
        should wait for it before uploading ``data``. A resolution change
        replaces the entry with a new Lightmap.
        """
        with self._lock:
            existing = self._lightmaps.get(key)
            if existing is not None and existing.resolution == resolution:
                np.copyto(existing.data, data)
                existing.version += 1
                existing.stats = stats
                existing.needs_update = True
                return existing

            lightmap = Lightmap(
                chunk_key=key,
                resolution=resolution,
                data=data,
                needs_update=True,
                version=1,
                stats=stats,
            )
            self._lightmaps[key] = lightmap

        if existing is not None:
            logger.debug(
                "Replaced lightmap for chunk %s (resolution %d -> %d)",
                key,
                existing.resolution,
                resolution,
            )
        return lightmap

    def remove(self, chunk_key: str | ChunkKey) -> Lightmap | None:
        key = ChunkKey.parse(chunk_key)
        with self._lock:
            return self._lightmaps.pop(key, None)

    def keys(self) -> list[ChunkKey]:
        with self._lock:
            return list(self._lightmaps)

    def clear(self) -> None:
        with self._lock:
            self._lightmaps.clear()

    def __contains__(self, chunk_key: object) -> bool:
        if not isinstance(chunk_key, (str, ChunkKey)):
            return False
        try:
            return self.get(chunk_key) is not None
        except MalformedChunkKeyError:
            return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._lightmaps)

    def __iter__(self) -> Iterator[ChunkKey]:
        return iter(self.keys())
