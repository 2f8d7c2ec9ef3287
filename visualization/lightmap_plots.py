"""Debug plots for baked lightmaps and dynamic light flicker.

Generates figures using matplotlib:
- Lightmap Y-slices as an RGB image grid
- Dynamic light intensity traces over frame ticks
"""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")  # Non-interactive backend for headless rendering

import matplotlib.pyplot as plt
import numpy as np

from lighting_core.dynamic_lights import DynamicLightManager
from lighting_core.lightmap import Lightmap, LightmapRegistry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Style
# ---------------------------------------------------------------------------

_BACKGROUND = "#1a1a2e"
_DPI = 150


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def plot_lightmap_slices(
    lightmap: Lightmap,
    layers: list[int] | None = None,
    title: str | None = None,
    output_path: Path | str | None = None,
    dpi: int = _DPI,
) -> plt.Figure:
    """Plot horizontal (constant-y) slices of a lightmap as RGB images.

    Parameters
    ----------
    lightmap : Lightmap
        Baked lightmap.
    layers : list[int], optional
        Y layers to show. Default: every layer.
    title : str, optional
        Figure title. Default: chunk key and bake version.
    output_path : Path or str, optional
        If provided, save figure to this path.
    dpi : int
        Figure resolution.

    Returns
    -------
    matplotlib.figure.Figure
        The generated figure.
    """
    n = lightmap.resolution
    if layers is None:
        layers = list(range(n))
    for y in layers:
        if not (0 <= y < n):
            raise ValueError(f"Layer {y} outside lightmap resolution {n}")

    grid = lightmap.as_grid()  # [y, z, x, rgb]
    cols = min(4, max(1, len(layers)))
    rows = max(1, int(np.ceil(len(layers) / cols)))

    fig, axes = plt.subplots(
        rows, cols, figsize=(3 * cols, 3 * rows), facecolor=_BACKGROUND, squeeze=False
    )

    for ax in axes.ravel():
        ax.set_visible(False)

    for ax, y in zip(axes.ravel(), layers):
        ax.set_visible(True)
        ax.imshow(grid[y], origin="lower", interpolation="nearest")
        ax.set_title(f"y = {y}", color="white", fontsize=10)
        ax.set_xlabel("x", color="white")
        ax.set_ylabel("z", color="white")
        ax.tick_params(colors="white")
        for spine in ax.spines.values():
            spine.set_edgecolor("#444")

    fig.suptitle(
        title or f"Lightmap {lightmap.chunk_key} (v{lightmap.version})",
        fontsize=14,
        fontweight="bold",
        color="white",
    )
    fig.tight_layout()

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, facecolor=fig.get_facecolor())
        logger.info("Lightmap slices saved: %s", output_path)

    plt.close(fig)
    return fig


def plot_flicker_trace(
    manager: DynamicLightManager,
    num_ticks: int = 120,
    delta_time: float = 1.0 / 60.0,
    title: str = "Dynamic Light Intensity",
    output_path: Path | str | None = None,
    dpi: int = _DPI,
) -> plt.Figure:
    """Tick a light manager and plot each light's intensity over time.

    The manager is advanced ``num_ticks`` times, so its lights end in the
    state of the last tick.

    Parameters
    ----------
    manager : DynamicLightManager
        Manager whose lights are traced.
    num_ticks : int
        Number of update ticks to record.
    delta_time : float
        Tick length passed to ``update`` [s].
    title : str
        Figure title.
    output_path : Path or str, optional
        If provided, save figure to this path.
    dpi : int
        Figure resolution.

    Returns
    -------
    matplotlib.figure.Figure
        The generated figure.
    """
    handles = manager.handles()
    traces = np.empty((num_ticks, len(handles)), dtype=np.float64)
    for t in range(num_ticks):
        manager.update(delta_time)
        for j, h in enumerate(handles):
            traces[t, j] = manager[h].intensity

    times = np.arange(num_ticks) * delta_time

    fig, ax = plt.subplots(1, 1, figsize=(12, 4), facecolor="#0f0f1a")
    ax.set_facecolor("#0f0f1a")

    colors = ["#ffd43b", "#ff6b6b", "#51cf66", "#748ffc", "#e599f7"]
    for j, h in enumerate(handles):
        ax.plot(
            times, traces[:, j],
            color=colors[j % len(colors)], linewidth=1.2,
            label=f"light {h.index}.{h.generation}",
        )

    ax.set_xlabel("Time [s]", color="white", fontsize=12)
    ax.set_ylabel("Intensity", color="white", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold", color="white")
    ax.tick_params(colors="white")
    ax.grid(True, alpha=0.2, color="white")

    if handles:
        legend = ax.legend(facecolor=_BACKGROUND, edgecolor="#444")
        for text in legend.get_texts():
            text.set_color("white")

    for spine in ax.spines.values():
        spine.set_edgecolor("#444")

    fig.tight_layout()

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, facecolor=fig.get_facecolor())
        logger.info("Flicker trace saved: %s", output_path)

    plt.close(fig)
    return fig


def generate_registry_plots(
    registry: LightmapRegistry,
    output_dir: Path | str = "output",
    dpi: int = _DPI,
) -> list[Path]:
    """Plot every registered lightmap into ``output_dir``.

    Returns
    -------
    list[Path]
        Paths to all generated plot files.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    saved: list[Path] = []

    for key in sorted(registry.keys()):
        lightmap = registry.get(key)
        if lightmap is None:
            continue
        p = output_dir / f"lightmap_{key.x}_{key.y}_{key.z}.png"
        plot_lightmap_slices(lightmap, output_path=p, dpi=dpi)
        saved.append(p)

    logger.info("Generated %d lightmap plots in %s", len(saved), output_dir)
    return saved
