"""Lighting constants, bake parameters, and configuration loader.

Default values live here as module constants so the core can run without a
configuration file; a YAML file (``config/default_config.yaml``) overrides
them through :func:`load_config`. This module provides a typed, validated
interface to that configuration plus a few reproducibility helpers.

Conventions
-----------
- Voxel buffers are chunk-local, ``CHUNK_SIZE**3`` unsigned bytes indexed
  ``y * size**2 + z * size + x``.
- Lightmaps are ``LIGHTMAP_RESOLUTION**3 * 3`` unsigned bytes indexed
  ``(y * N**2 + z * N + x) * 3``.
- Colors are linear RGB in [0, 1]; quantization to bytes happens only in
  the baker.
"""

from __future__ import annotations

import hashlib
import logging
import platform
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numba
import numpy as np
import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

CHUNK_SIZE: int = 16
LIGHTMAP_RESOLUTION: int = 16
RGB_CHANNELS: int = 3

SHADOW_MAX_STEPS: int = 32
SHADOW_OCCLUDED_FACTOR: float = 0.5

DIRECTIONAL_LIGHT_POSITION: tuple[float, float, float] = (50.0, 200.0, 100.0)
WHITE: tuple[float, float, float] = (1.0, 1.0, 1.0)

FLICKER_AMOUNT: float = 0.2
SHADOW_INTENSITY_THRESHOLD: float = 1.0
POINT_SHADOW_MAP_SIZE: int = 512
POINT_SHADOW_NEAR: float = 0.5

BAKE_WORKERS: int = 2

DEFAULT_CONFIG_PATH: Path = (
    Path(__file__).resolve().parent.parent / "config" / "default_config.yaml"
)


# ---------------------------------------------------------------------------
# Configuration Data Classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorldConfig:
    """Voxel world layout.

    Attributes
    ----------
    chunk_size : int
        Edge length of a cubic chunk in voxels.
    """

    chunk_size: int = CHUNK_SIZE


@dataclass(frozen=True)
class LightmapConfig:
    """Lightmap layout.

    Attributes
    ----------
    resolution : int
        Cells per chunk edge (N). The lightmap holds N³ RGB cells.
    """

    resolution: int = LIGHTMAP_RESOLUTION


@dataclass(frozen=True)
class ShadowConfig:
    """Shadow ray marching parameters.

    Attributes
    ----------
    max_steps : int
        Number of unit-length steps marched toward the light.
    occluded_factor : float
        Light factor returned on the first solid hit. Kept above zero so
        shadowed cells are not fully dark.
    """

    max_steps: int = SHADOW_MAX_STEPS
    occluded_factor: float = SHADOW_OCCLUDED_FACTOR


@dataclass(frozen=True)
class DirectionalLightConfig:
    """The single world-space light used for baking.

    Attributes
    ----------
    position : tuple[float, float, float]
        World-space light position.
    color : tuple[float, float, float]
        Linear RGB color in [0, 1].
    """

    position: tuple[float, float, float] = DIRECTIONAL_LIGHT_POSITION
    color: tuple[float, float, float] = WHITE


@dataclass(frozen=True)
class DynamicLightConfig:
    """Dynamic point light defaults.

    Attributes
    ----------
    flicker_amount : float
        Relative flicker amplitude applied each tick.
    shadow_intensity_threshold : float
        Lights strictly brighter than this cast shadows.
    seed : int or None
        Seed for the flicker random source. None draws fresh entropy.
    """

    flicker_amount: float = FLICKER_AMOUNT
    shadow_intensity_threshold: float = SHADOW_INTENSITY_THRESHOLD
    seed: int | None = None


@dataclass(frozen=True)
class BakingConfig:
    """Background baking settings.

    Attributes
    ----------
    max_workers : int
        Worker threads in the bake scheduler.
    """

    max_workers: int = BAKE_WORKERS


@dataclass(frozen=True)
class SyntheticChunkConfig:
    """Configuration for synthetic voxel chunk generation.

    Attributes
    ----------
    kind : str
        Generator name ('air', 'solid', 'floor', 'pillars', 'cave').
    floor_height : int
        Height of the solid ground slab in voxels.
    pillar_count : int
        Number of random pillars for the 'pillars' generator.
    material_id : int
        Material id written into solid voxels (1-255).
    seed : int
        Random seed for reproducibility.
    """

    kind: str = "floor"
    floor_height: int = 4
    pillar_count: int = 6
    material_id: int = 1
    seed: int = 0


@dataclass
class LightingConfig:
    """Top-level lighting configuration loaded from YAML."""

    world: WorldConfig = field(default_factory=WorldConfig)
    lightmap: LightmapConfig = field(default_factory=LightmapConfig)
    shadow: ShadowConfig = field(default_factory=ShadowConfig)
    directional_light: DirectionalLightConfig = field(
        default_factory=DirectionalLightConfig
    )
    dynamic_lights: DynamicLightConfig = field(default_factory=DynamicLightConfig)
    baking: BakingConfig = field(default_factory=BakingConfig)
    synthetic_chunk: SyntheticChunkConfig = field(default_factory=SyntheticChunkConfig)


# ---------------------------------------------------------------------------
# Configuration Loader
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path = DEFAULT_CONFIG_PATH) -> LightingConfig:
    """Load and validate a lighting configuration from a YAML file.

    Sections or keys missing from the file fall back to the module
    defaults, so a partial file is valid.

    Parameters
    ----------
    config_path : str or Path
        Path to the YAML configuration file.

    Returns
    -------
    LightingConfig
        Fully populated, typed configuration object.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        If values are out of range or malformed.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    logger.info("Loading configuration from: %s", config_path)

    # --- Parse world / lightmap layout ---
    w = raw.get("world") or {}
    world = WorldConfig(chunk_size=int(w.get("chunk_size", CHUNK_SIZE)))

    lm = raw.get("lightmap") or {}
    lightmap = LightmapConfig(
        resolution=int(lm.get("resolution", LIGHTMAP_RESOLUTION)),
    )

    # --- Parse shadow marching ---
    sh = raw.get("shadow") or {}
    shadow = ShadowConfig(
        max_steps=int(sh.get("max_steps", SHADOW_MAX_STEPS)),
        occluded_factor=float(sh.get("occluded_factor", SHADOW_OCCLUDED_FACTOR)),
    )

    # --- Parse directional light ---
    dl = raw.get("directional_light") or {}
    directional_light = DirectionalLightConfig(
        position=_parse_vec3(dl.get("position", DIRECTIONAL_LIGHT_POSITION), "position"),
        color=_parse_vec3(dl.get("color", WHITE), "color"),
    )

    # --- Parse dynamic lights ---
    dyn = raw.get("dynamic_lights") or {}
    seed = dyn.get("seed")
    dynamic_lights = DynamicLightConfig(
        flicker_amount=float(dyn.get("flicker_amount", FLICKER_AMOUNT)),
        shadow_intensity_threshold=float(
            dyn.get("shadow_intensity_threshold", SHADOW_INTENSITY_THRESHOLD)
        ),
        seed=None if seed is None else int(seed),
    )

    bk = raw.get("baking") or {}
    baking = BakingConfig(max_workers=int(bk.get("max_workers", BAKE_WORKERS)))

    # --- Parse synthetic chunk generator ---
    sc = raw.get("synthetic_chunk") or {}
    defaults = SyntheticChunkConfig()
    synthetic_chunk = SyntheticChunkConfig(
        kind=str(sc.get("kind", defaults.kind)),
        floor_height=int(sc.get("floor_height", defaults.floor_height)),
        pillar_count=int(sc.get("pillar_count", defaults.pillar_count)),
        material_id=int(sc.get("material_id", defaults.material_id)),
        seed=int(sc.get("seed", defaults.seed)),
    )

    config = LightingConfig(
        world=world,
        lightmap=lightmap,
        shadow=shadow,
        directional_light=directional_light,
        dynamic_lights=dynamic_lights,
        baking=baking,
        synthetic_chunk=synthetic_chunk,
    )

    validate_config(config)
    logger.info(
        "Configuration loaded: chunk_size=%d, resolution=%d, shadow_steps=%d",
        world.chunk_size,
        lightmap.resolution,
        shadow.max_steps,
    )

    return config


def _parse_vec3(value: Any, name: str) -> tuple[float, float, float]:
    """Coerce a YAML sequence into a 3-tuple of floats."""
    try:
        x, y, z = (float(v) for v in value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a sequence of three numbers, got {value!r}") from exc
    return (x, y, z)


def validate_config(config: LightingConfig) -> None:
    """Validate range constraints on configuration values.

    Parameters
    ----------
    config : LightingConfig
        Configuration to validate.

    Raises
    ------
    ValueError
        If any value is invalid.
    """
    if config.world.chunk_size <= 0:
        raise ValueError(f"Chunk size must be positive, got {config.world.chunk_size}")
    if config.lightmap.resolution <= 0:
        raise ValueError(
            f"Lightmap resolution must be positive, got {config.lightmap.resolution}"
        )
    if config.shadow.max_steps < 0:
        raise ValueError("Shadow max_steps cannot be negative.")
    if not (0.0 <= config.shadow.occluded_factor <= 1.0):
        raise ValueError(
            f"Shadow occluded_factor must be in [0, 1], got {config.shadow.occluded_factor}"
        )
    if any(not (0.0 <= c <= 1.0) for c in config.directional_light.color):
        raise ValueError(
            f"Light color channels must be in [0, 1], got {config.directional_light.color}"
        )
    if config.dynamic_lights.flicker_amount < 0.0:
        raise ValueError("Flicker amount cannot be negative.")
    if config.baking.max_workers <= 0:
        raise ValueError("Bake scheduler needs at least one worker.")
    if not (1 <= config.synthetic_chunk.material_id <= 255):
        raise ValueError("Synthetic material_id must be in [1, 255].")

    logger.debug("Configuration validation passed.")


# ---------------------------------------------------------------------------
# Logging & Reproducibility
# ---------------------------------------------------------------------------


def setup_logging(level: str = "INFO") -> None:
    """Configure structured logging for host applications."""
    fmt = "%(name)s [%(levelname)s] %(message)s"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        stream=sys.stdout,
    )


def log_platform_info() -> None:
    """Log platform and library version information for reproducibility."""
    logger.info("=" * 70)
    logger.info("PLATFORM INFORMATION (for reproducibility)")
    logger.info("=" * 70)
    logger.info("  Python:    %s", sys.version)
    logger.info("  Platform:  %s", platform.platform())
    logger.info("  NumPy:     %s", np.__version__)
    logger.info("  Numba:     %s", numba.__version__)
    logger.info("=" * 70)


def hash_array(arr: np.ndarray) -> str:
    """Compute SHA-256 hash of a NumPy array for reproducibility verification.

    Parameters
    ----------
    arr : np.ndarray
        Array to hash.

    Returns
    -------
    str
        Hex digest of the SHA-256 hash.
    """
    return hashlib.sha256(arr.tobytes()).hexdigest()
