"""Background bake scheduler: worker pool with per-key serialization.

Chunk bakes are CPU-bound and short, but a burst of chunk loads can queue
dozens of them. The scheduler runs bakes on a thread pool so the caller's
thread (usually the render loop) never blocks, while keeping the registry
contract:

- At most one bake per chunk key runs at a time.
- A request for a key that is already baking is queued as that key's
  single pending request. Further requests replace the pending voxel
  buffer (newest wins) and share its future.
- Different keys bake concurrently. The bake kernel releases the GIL.

Lifecycle
---------
``submit`` → Future[Lightmap]. ``shutdown(wait=True)`` stops accepting
work, cancels pending (not yet started) requests and waits for running
bakes. Running bakes are never interrupted.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from concurrent.futures import Future

import numpy as np

from lighting_core.baker import DirectionalLight, LightmapBaker
from lighting_core.chunk_key import ChunkKey
from lighting_core.constants import BAKE_WORKERS, BakingConfig
from lighting_core.lightmap import Lightmap
from lighting_core.voxel_sampler import as_voxel_buffer

logger = logging.getLogger(__name__)


class BakeScheduler:
    """Runs :meth:`LightmapBaker.bake_chunk` on a thread pool.

    Parameters
    ----------
    baker : LightmapBaker
        Baker whose registry receives the results.
    max_workers : int
        Worker thread count.
    """

    def __init__(self, baker: LightmapBaker, max_workers: int = BAKE_WORKERS) -> None:
        if max_workers <= 0:
            raise ValueError(f"max_workers must be > 0, got {max_workers}")

        self._baker = baker
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="lightmap-bake",
        )
        self._lock = threading.Lock()
        self._running: dict[ChunkKey, Future] = {}
        self._pending: dict[ChunkKey, tuple[np.ndarray, DirectionalLight | None, Future]] = {}
        self._closed = False

        logger.info("BakeScheduler started with %d worker(s)", max_workers)

    @classmethod
    def from_config(cls, baker: LightmapBaker, config: BakingConfig) -> BakeScheduler:
        return cls(baker, max_workers=config.max_workers)

    def submit(
        self,
        chunk_key: str | ChunkKey,
        voxel_buffer,
        light: DirectionalLight | None = None,
    ) -> Future:
        """Request a bake of ``chunk_key``.

        Parameters
        ----------
        chunk_key : str or ChunkKey
            ``"x,y,z"`` chunk key. Validated immediately.
        voxel_buffer : array-like
            Chunk voxels. Copied, so the caller may reuse its buffer.
        light : DirectionalLight, optional
            Light for this bake; defaults to the baker's light.

        Returns
        -------
        Future
            Resolves to the registered :class:`Lightmap`. Coalesced requests
            for the same key share one future.

        Raises
        ------
        MalformedChunkKeyError
            If the key does not parse.
        RuntimeError
            If the scheduler has been shut down.
        """
        key = ChunkKey.parse(chunk_key)
        voxels = as_voxel_buffer(voxel_buffer, self._baker.chunk_size).copy()

        with self._lock:
            if self._closed:
                raise RuntimeError("BakeScheduler has been shut down")

            if key not in self._running:
                future: Future = Future()
                self._running[key] = future
                self._executor.submit(self._run, key, voxels, light, future)
                logger.debug("Bake %s scheduled", key)
                return future

            pending = self._pending.get(key)
            if pending is not None:
                future = pending[2]
                logger.debug("Bake %s coalesced into pending request", key)
            else:
                future = Future()
                logger.debug("Bake %s queued behind running bake", key)
            self._pending[key] = (voxels, light, future)
            return future

    def pending_keys(self) -> list[ChunkKey]:
        """Keys with a bake running or queued."""
        with self._lock:
            return list(self._running)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and cancel queued requests."""
        with self._lock:
            self._closed = True
            pending = list(self._pending.values())
            self._pending.clear()

        for _, _, future in pending:
            future.cancel()

        self._executor.shutdown(wait=wait)
        logger.info("BakeScheduler shut down (%d pending request(s) cancelled)", len(pending))

    def __enter__(self) -> BakeScheduler:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    def _run(
        self,
        key: ChunkKey,
        voxels: np.ndarray,
        light: DirectionalLight | None,
        future: Future,
    ) -> None:
        try:
            if future.set_running_or_notify_cancel():
                try:
                    lightmap: Lightmap = self._baker.bake_chunk(key, voxels, light)
                except Exception as exc:
                    logger.error("Bake %s failed: %s", key, exc)
                    future.set_exception(exc)
                else:
                    future.set_result(lightmap)
        finally:
            self._start_next(key)

    def _start_next(self, key: ChunkKey) -> None:
        """Hand the key to its pending request, or release it."""
        with self._lock:
            pending = self._pending.pop(key, None)
            if pending is None or self._closed:
                del self._running[key]
                if pending is not None:
                    pending[2].cancel()
                return

            voxels, light, future = pending
            self._running[key] = future
            self._executor.submit(self._run, key, voxels, light, future)
