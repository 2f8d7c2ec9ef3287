"""Minimal chunk mesh and material records.

Mesh construction is owned by the renderer; the lighting core only needs
a ``material`` attribute holding one material or an ordered sequence of
materials, each with assignable ``lightmap`` and ``needs_update`` fields.
These dataclasses describe that interface and serve hosts without their
own material types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from lighting_core.lightmap import Lightmap


@dataclass
class Material:
    """Surface material that accepts a lightmap.

    Attributes
    ----------
    name : str
        Material name.
    lightmap : Lightmap or None
        Bound lightmap; the renderer multiplies surface color by it.
    needs_update : bool
        Set when the material must be re-uploaded.
    """

    name: str = "default"
    lightmap: Lightmap | None = None
    needs_update: bool = False


@dataclass
class ChunkMesh:
    """Chunk render mesh with one or several materials.

    Attributes
    ----------
    chunk_key : str
        ``"x,y,z"`` key of the chunk this mesh renders.
    material : Material or list[Material] or None
        Single material, ordered materials, or None for untextured meshes.
    metadata : dict
        Free-form mesh statistics.
    """

    chunk_key: str
    material: Material | list[Material] | None = field(default_factory=Material)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def materials(self) -> list[Material]:
        """Materials as a list regardless of how they are stored."""
        if self.material is None:
            return []
        if isinstance(self.material, (list, tuple)):
            return list(self.material)
        return [self.material]
