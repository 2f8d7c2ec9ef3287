"""Binds baked lightmaps to chunk mesh materials."""

from __future__ import annotations

import logging
from typing import Any

from lighting_core.chunk_key import ChunkKey
from lighting_core.lightmap import LightmapRegistry

logger = logging.getLogger(__name__)


class LightmapApplier:
    """Reads the lightmap registry and assigns lightmaps to meshes.

    Parameters
    ----------
    registry : LightmapRegistry
        Registry the baker writes into.
    """

    def __init__(self, registry: LightmapRegistry) -> None:
        self._registry = registry

    def apply(self, mesh: Any, chunk_key: str | ChunkKey) -> bool:
        """Assign the chunk's lightmap to every material of ``mesh``.

        Each material gets ``lightmap`` set to the registered lightmap and
        ``needs_update`` set to True. Nothing on the mesh changes when no
        lightmap is registered for the key or the mesh has no material.

        Parameters
        ----------
        mesh : object
            Any object with a ``material`` attribute holding one material or
            a list/tuple of materials.
        chunk_key : str or ChunkKey
            ``"x,y,z"`` chunk key.

        Returns
        -------
        bool
            True if at least one material was bound.

        Raises
        ------
        MalformedChunkKeyError
            If ``chunk_key`` does not parse to three integers.
        """
        key = ChunkKey.parse(chunk_key)
        lightmap = self._registry.get(key)

        if lightmap is None:
            logger.warning(
                "No lightmap registered for chunk %s; mesh left unlit (bake missing?)",
                key,
            )
            return False

        material = getattr(mesh, "material", None)
        if material is None:
            logger.debug("Mesh for chunk %s has no material; nothing to bind", key)
            return False

        materials = material if isinstance(material, (list, tuple)) else [material]
        for mat in materials:
            mat.lightmap = lightmap
            mat.needs_update = True

        logger.debug("Bound lightmap %s (v%d) to %d material(s)", key, lightmap.version, len(materials))
        return len(materials) > 0
