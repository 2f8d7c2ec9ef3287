"""Dynamic point lights with per-tick intensity flicker.

Lights live in a generational arena: :meth:`DynamicLightManager.add_light`
returns a :class:`LightHandle` ``(index, generation)``; removing a light
frees its slot and bumps the slot's generation, so handles to removed
lights go stale instead of aliasing a later light that reuses the slot.

Flicker
-------
Every tick, each light with ``flicker_amount > 0`` gets one independent
uniform draw ``u ∈ [-1, 1)``:

    intensity = original_intensity · (1 + flicker_amount · u)

There is no smoothing between ticks, so the effect is high-frequency
jitter whose variance scales with ``flicker_amount``. The random source is
a ``numpy.random.Generator`` that callers may inject or seed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator

import numpy as np

from lighting_core.constants import (
    FLICKER_AMOUNT,
    POINT_SHADOW_MAP_SIZE,
    POINT_SHADOW_NEAR,
    SHADOW_INTENSITY_THRESHOLD,
    DynamicLightConfig,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LightHandle:
    """Stable reference to a tracked light."""

    index: int
    generation: int


@dataclass
class DynamicLight:
    """A tracked point light.

    Attributes
    ----------
    position : np.ndarray
        World-space position. Shape: (3,).
    color : np.ndarray
        Linear RGB color. Shape: (3,).
    radius : float
        Light range in world units.
    intensity : float
        Current (animated) intensity, read by the renderer each frame.
    original_intensity : float
        Intensity at creation; flicker modulates around this value.
    flicker_amount : float
        Relative flicker amplitude. 0 disables animation.
    cast_shadow : bool
        Whether the renderer should allocate a shadow map for this light.
    shadow_map_size : int
        Shadow map edge length in texels when ``cast_shadow`` is set.
    shadow_near, shadow_far : float
        Shadow camera clip range; ``shadow_far`` follows the radius.
    """

    position: np.ndarray
    color: np.ndarray
    radius: float
    intensity: float
    original_intensity: float
    flicker_amount: float = FLICKER_AMOUNT
    cast_shadow: bool = False
    shadow_map_size: int = POINT_SHADOW_MAP_SIZE
    shadow_near: float = POINT_SHADOW_NEAR
    shadow_far: float = field(default=0.0)


class DynamicLightManager:
    """Tracks ephemeral point lights and animates them once per frame.

    Parameters
    ----------
    rng : np.random.Generator, optional
        Random source for flicker. Takes precedence over ``seed``.
    seed : int, optional
        Seed for a fresh ``np.random.default_rng`` when ``rng`` is omitted.
    flicker_amount : float
        Default flicker amplitude for new lights.
    shadow_intensity_threshold : float
        Lights whose intensity is strictly greater cast shadows.
    """

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
        flicker_amount: float = FLICKER_AMOUNT,
        shadow_intensity_threshold: float = SHADOW_INTENSITY_THRESHOLD,
    ) -> None:
        if flicker_amount < 0.0:
            raise ValueError(f"flicker_amount must be >= 0, got {flicker_amount}")

        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self._flicker_amount = flicker_amount
        self._shadow_threshold = shadow_intensity_threshold

        self._slots: list[DynamicLight | None] = []
        self._generations: list[int] = []
        self._free: list[int] = []

    @classmethod
    def from_config(
        cls,
        config: DynamicLightConfig,
        rng: np.random.Generator | None = None,
    ) -> DynamicLightManager:
        return cls(
            rng=rng,
            seed=config.seed,
            flicker_amount=config.flicker_amount,
            shadow_intensity_threshold=config.shadow_intensity_threshold,
        )

    # ------------------------------------------------------------------
    # Arena
    # ------------------------------------------------------------------

    def add_light(
        self,
        position,
        color,
        intensity: float,
        radius: float,
        flicker_amount: float | None = None,
    ) -> LightHandle:
        """Start tracking a point light.

        Parameters
        ----------
        position : array-like
            World-space position (3 floats).
        color : array-like
            Linear RGB color (3 floats).
        intensity : float
            Base intensity; also stored as ``original_intensity``.
        radius : float
            Light range.
        flicker_amount : float, optional
            Override of the manager's default flicker amplitude.

        Returns
        -------
        LightHandle
            Handle valid until :meth:`remove_light` is called with it.
        """
        amount = self._flicker_amount if flicker_amount is None else flicker_amount
        if amount < 0.0:
            raise ValueError(f"flicker_amount must be >= 0, got {amount}")

        pos = np.asarray(position, dtype=np.float64).reshape(3)
        col = np.asarray(color, dtype=np.float64).reshape(3)

        light = DynamicLight(
            position=pos,
            color=col,
            radius=float(radius),
            intensity=float(intensity),
            original_intensity=float(intensity),
            flicker_amount=float(amount),
            cast_shadow=intensity > self._shadow_threshold,
            shadow_far=float(radius),
        )

        if self._free:
            index = self._free.pop()
            self._slots[index] = light
        else:
            index = len(self._slots)
            self._slots.append(light)
            self._generations.append(0)

        handle = LightHandle(index, self._generations[index])
        logger.debug(
            "Added light %s: intensity=%.2f, radius=%.1f, shadows=%s",
            handle,
            light.intensity,
            light.radius,
            light.cast_shadow,
        )
        return handle

    def remove_light(self, handle: LightHandle) -> bool:
        """Stop tracking a light. Returns False for stale or unknown handles."""
        if not self._is_live(handle):
            return False
        self._slots[handle.index] = None
        self._generations[handle.index] += 1
        self._free.append(handle.index)
        logger.debug("Removed light %s", handle)
        return True

    def get(self, handle: LightHandle) -> DynamicLight | None:
        if not self._is_live(handle):
            return None
        return self._slots[handle.index]

    def __getitem__(self, handle: LightHandle) -> DynamicLight:
        light = self.get(handle)
        if light is None:
            raise KeyError(handle)
        return light

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, LightHandle) and self._is_live(handle)

    def __len__(self) -> int:
        return len(self._slots) - len(self._free)

    def __iter__(self) -> Iterator[DynamicLight]:
        return (light for light in self._slots if light is not None)

    def handles(self) -> list[LightHandle]:
        return [
            LightHandle(i, self._generations[i])
            for i, light in enumerate(self._slots)
            if light is not None
        ]

    def _is_live(self, handle: LightHandle) -> bool:
        return (
            0 <= handle.index < len(self._slots)
            and self._generations[handle.index] == handle.generation
            and self._slots[handle.index] is not None
        )

    # ------------------------------------------------------------------
    # Animation
    # ------------------------------------------------------------------

    def update(self, delta_time: float) -> None:
        """Advance flicker by one frame tick.

        ``delta_time`` is accepted for the frame-tick interface; flicker is
        redrawn per tick regardless of its value.
        """
        for light in self._slots:
            if light is None or light.flicker_amount <= 0.0:
                continue
            draw = self._rng.uniform(-1.0, 1.0)
            light.intensity = light.original_intensity * (1.0 + light.flicker_amount * draw)
