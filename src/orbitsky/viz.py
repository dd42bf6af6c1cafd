#!/usr/bin/env python3
"""Quick-look plots for propagated satellites.

Ground tracks on a plain latitude/longitude grid, and a top-down view of
the renderer-space points the AR scene would draw. Meant for checking
propagation output without the browser front-end.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from .propagator import DEFAULT_RENDER_SCALE, SatellitePosition, to_render_coordinates

plt.rcParams.update({
    "figure.facecolor": "white",
    "axes.facecolor": "#fafafa",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "font.family": "sans-serif",
    "font.size": 10,
})


def plot_ground_track(
    track_df: pd.DataFrame,
    title: Optional[str] = None,
    save_path: Optional[str | Path] = None,
    figsize: tuple = (12, 6),
) -> plt.Figure:
    """Plot a sub-satellite track.

    Args:
        track_df: DataFrame from ``propagator.ground_track()``.
        title: Plot title.
        save_path: Path to save figure (optional).

    Returns:
        matplotlib Figure
    """
    fig, ax = plt.subplots(figsize=figsize)

    if track_df.empty:
        ax.text(0.5, 0.5, "No samples", transform=ax.transAxes,
                ha="center", va="center", fontsize=14, color="#95a5a6")
        return fig

    # Wrap to [-180, 180) and break the line where it crosses the antimeridian
    lon = (track_df["longitude_deg"].to_numpy() + 180.0) % 360.0 - 180.0
    lat = track_df["latitude_deg"].to_numpy(dtype=float).copy()
    jumps = np.where(np.abs(np.diff(lon)) > 180.0)[0]
    lon = np.insert(lon, jumps + 1, np.nan)
    lat = np.insert(lat, jumps + 1, np.nan)

    ax.plot(lon, lat, linewidth=1.2, color="#2980b9")
    ax.scatter(lon[0], lat[0], color="#2ecc71", zorder=3, label="Start")
    ax.set_xlim(-180, 180)
    ax.set_ylim(-90, 90)
    ax.set_xlabel("Longitude (°)")
    ax.set_ylabel("Latitude (°)")
    ax.set_title(title or "Ground Track")
    ax.legend(loc="lower left", fontsize=8)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_render_points(
    positions: Iterable[SatellitePosition],
    scale: float = DEFAULT_RENDER_SCALE,
    title: str = "Renderer Space (top-down)",
    save_path: Optional[str | Path] = None,
    figsize: tuple = (7, 7),
) -> plt.Figure:
    """Scatter renderer-space points in the x/z plane, Earth outline included."""
    points = np.array([to_render_coordinates(p, scale).as_tuple() for p in positions])

    fig, ax = plt.subplots(figsize=figsize)
    theta = np.linspace(0.0, 2.0 * np.pi, 256)
    ax.plot(scale * np.cos(theta), scale * np.sin(theta), color="#2c3e50", linewidth=0.8)

    if len(points):
        ax.scatter(points[:, 0], points[:, 2], s=6, color="#e67e22", alpha=0.8)

    ax.set_aspect("equal")
    ax.set_xlabel("x")
    ax.set_ylabel("z")
    ax.set_title(title)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig
