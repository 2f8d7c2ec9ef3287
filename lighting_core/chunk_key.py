"""Chunk key parsing and formatting.

Chunk management addresses chunks with a comma-joined string of three
integer chunk coordinates (``"x,y,z"``). Registries key lightmaps by the
canonical form of that string so ``" 1, 2,3"`` and ``"1,2,3"`` refer to the
same chunk.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_FIELD = re.compile(r"\s*[+-]?[0-9]+\s*")


class MalformedChunkKeyError(ValueError):
    """Raised when a chunk key does not parse to exactly three integers."""


@dataclass(frozen=True, order=True)
class ChunkKey:
    """Integer chunk coordinates.

    Attributes
    ----------
    x, y, z : int
        Chunk coordinates (world voxel coordinate // chunk size).
    """

    x: int
    y: int
    z: int

    @classmethod
    def parse(cls, key: str | ChunkKey) -> ChunkKey:
        """Parse ``"x,y,z"`` into a ChunkKey.

        Parameters
        ----------
        key : str or ChunkKey
            Comma-joined integers. ChunkKey instances are returned as-is.

        Raises
        ------
        MalformedChunkKeyError
            If the string does not contain exactly three integer fields.
        """
        if isinstance(key, ChunkKey):
            return key
        if not isinstance(key, str):
            raise MalformedChunkKeyError(
                f"Chunk key must be a string, got {type(key).__name__}"
            )

        parts = key.split(",")
        if len(parts) != 3:
            raise MalformedChunkKeyError(
                f"Chunk key must have 3 comma-separated integers, got {key!r}"
            )
        if not all(_FIELD.fullmatch(p) for p in parts):
            raise MalformedChunkKeyError(f"Chunk key has non-integer field: {key!r}")
        x, y, z = (int(p) for p in parts)
        return cls(x, y, z)

    def world_origin(self, chunk_size: int) -> tuple[int, int, int]:
        """World voxel coordinate of the chunk's minimum corner."""
        return (self.x * chunk_size, self.y * chunk_size, self.z * chunk_size)

    def __str__(self) -> str:
        return f"{self.x},{self.y},{self.z}"
