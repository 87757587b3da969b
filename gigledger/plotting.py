"""
Plotting utilities for GigLedger.

Purpose
-------
Standalone matplotlib views of the analytics results:

- ``plot_weekly_schedule``: simulator schedule, stacked block earnings per day
- ``plot_goal_progress``: horizontal progress bars for the goal waterfall
- ``plot_hours_usage``: daily and weekly hours against their caps
- ``plot_daily_hours``: rolling daily hours with the daily cap line
- ``plot_trends_heatmap``: weekday x time-of-day hourly earnings

Every function follows the same calling convention: an optional ``ax`` to
draw into, ``figsize``, ``title``, ``save_path`` and ``return_fig_ax``.
pyplot is imported lazily so the analytics layer does not require a
display backend.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from .constants import DEFAULT_DAILY_LIMIT_HOURS, DEFAULT_WEEKLY_LIMIT_HOURS

if TYPE_CHECKING:
    import pandas as pd

    from .goals import GoalProgress
    from .hours import HoursUsage
    from .simulator import SimulationResults

__all__ = [
    "plot_weekly_schedule",
    "plot_goal_progress",
    "plot_hours_usage",
    "plot_daily_hours",
    "plot_trends_heatmap",
]

_BLOCK_COLORS = {
    180: "#6baed6",
    210: "#2171b5",
    240: "#08519c",
    270: "#08306b",
}


def _finish(fig, ax, save_path: Optional[str], return_fig_ax: bool):
    if save_path:
        (fig or ax.figure).savefig(save_path, bbox_inches="tight", dpi=150)
    if return_fig_ax:
        return (fig or ax.figure, ax)
    return None


def _empty(ax, figsize, message: str, return_fig_ax: bool):
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=figsize) if ax is None else (None, ax)
    ax.set_axis_off()
    ax.text(0.5, 0.5, message, ha="center", va="center", transform=ax.transAxes)
    if return_fig_ax:
        return (fig or ax.figure, ax)
    return None


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------

def plot_weekly_schedule(
    results: "SimulationResults",
    *,
    ax=None,
    figsize: tuple = (10, 5),
    title: Optional[str] = "Optimal weekly schedule",
    save_path: Optional[str] = None,
    return_fig_ax: bool = False,
):
    """
    Stacked bars of estimated earnings per block, one bar per weekday.

    Parameters
    ----------
    results : SimulationResults
        Output of ``run_simulation``.
    ax : matplotlib.axes.Axes, optional
        Axes to draw into. A new figure is created when None.
    figsize : tuple, default (10, 5)
    title : str, optional
    save_path : str, optional
        Path to save the figure.
    return_fig_ax : bool, default False
        If True, returns ``(fig, ax)``.

    Returns
    -------
    None or (fig, ax)
    """
    if results.is_empty:
        return _empty(ax, figsize, results.reasoning, return_fig_ax)

    import matplotlib.pyplot as plt

    fig = None
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    days = results.daily_schedule
    x = np.arange(len(days))
    bottoms = np.zeros(len(days))
    labelled = set()
    for i, day in enumerate(days):
        for block in day.blocks:
            label = None
            if block.block_length not in labelled:
                label = f"{block.block_length / 60:g}hr block"
                labelled.add(block.block_length)
            ax.bar(
                x[i], block.estimated_earnings, bottom=bottoms[i],
                color=_BLOCK_COLORS.get(block.block_length, "gray"),
                edgecolor="white", label=label,
            )
            bottoms[i] += block.estimated_earnings

    for i, day in enumerate(days):
        if day.total_hours:
            ax.text(x[i], bottoms[i], f"{day.total_hours:g}h", ha="center", va="bottom", fontsize=8)

    ax.set_xticks(x)
    ax.set_xticklabels([d.day_name for d in days])
    ax.set_ylabel("Estimated earnings ($)")
    if title:
        ax.set_title(title)
    ax.grid(True, axis="y", linestyle="--", alpha=0.4)
    if labelled:
        ax.legend(loc="best")

    p = results.weekly_projection
    ax.text(
        0.02, 0.98,
        f"Gross ${p.gross_earnings:,.2f} | Gas ${p.total_gas_cost:,.2f} | Net ${p.net_earnings:,.2f}",
        transform=ax.transAxes, fontsize=9, va="top", ha="left",
        bbox=dict(boxstyle="round", facecolor="white", alpha=0.7),
    )
    return _finish(fig, ax, save_path, return_fig_ax)


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------

def plot_goal_progress(
    progress: Sequence["GoalProgress"],
    *,
    ax=None,
    figsize: tuple = (8, 4),
    title: Optional[str] = "Goal progress",
    save_path: Optional[str] = None,
    return_fig_ax: bool = False,
):
    """Horizontal bars of percent complete, in priority order (top first)."""
    if not progress:
        return _empty(ax, figsize, "No active goals", return_fig_ax)

    import matplotlib.pyplot as plt

    fig = None
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    names = [p.goal.name for p in progress]
    pct = np.array([p.percent_complete for p in progress], dtype=float)
    y = np.arange(len(progress))[::-1]
    colors = ["seagreen" if p.is_complete else "steelblue" for p in progress]

    ax.barh(y, np.full(len(progress), 100.0), color="lightgray", zorder=1)
    ax.barh(y, pct, color=colors, zorder=2)
    for yi, p in zip(y, progress):
        ax.text(
            min(p.percent_complete, 100.0) + 1, yi,
            f"${p.current_amount:,.0f} / ${p.goal.target_amount:,.0f}",
            va="center", fontsize=8,
        )

    ax.set_yticks(y)
    ax.set_yticklabels(names)
    ax.set_xlim(0, 130)
    ax.set_xlabel("Percent complete")
    if title:
        ax.set_title(title)
    return _finish(fig, ax, save_path, return_fig_ax)


# ---------------------------------------------------------------------------
# Hours
# ---------------------------------------------------------------------------

def plot_hours_usage(
    usage: "HoursUsage",
    *,
    daily_limit_hours: float = DEFAULT_DAILY_LIMIT_HOURS,
    weekly_limit_hours: float = DEFAULT_WEEKLY_LIMIT_HOURS,
    ax=None,
    figsize: tuple = (7, 3),
    title: Optional[str] = "Hours used",
    save_path: Optional[str] = None,
    return_fig_ax: bool = False,
):
    """Used vs. cap, as a fraction of each cap, for the day and the window."""
    import matplotlib.pyplot as plt

    fig = None
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    labels = ["Daily", "Rolling 7 days"]
    used = np.array([usage.daily_hours_used, usage.weekly_hours_used], dtype=float)
    caps = np.array([daily_limit_hours, weekly_limit_hours], dtype=float)
    frac = np.divide(used, caps, out=np.zeros_like(used), where=caps > 0)
    colors = ["firebrick" if f >= 1 else "darkorange" if f >= 0.8 else "steelblue" for f in frac]

    y = np.arange(2)[::-1]
    ax.barh(y, np.ones(2), color="lightgray", zorder=1)
    ax.barh(y, np.minimum(frac, 1.0), color=colors, zorder=2)
    for yi, u, c in zip(y, used, caps):
        ax.text(1.02, yi, f"{u:.1f} / {c:g}h", va="center", fontsize=9)

    ax.set_yticks(y)
    ax.set_yticklabels(labels)
    ax.set_xlim(0, 1.3)
    ax.set_xticks([0, 0.25, 0.5, 0.75, 1.0])
    ax.set_xticklabels(["0%", "25%", "50%", "75%", "100%"])
    if title:
        ax.set_title(title)
    return _finish(fig, ax, save_path, return_fig_ax)


def plot_daily_hours(
    series: "pd.Series",
    *,
    daily_limit_hours: float = DEFAULT_DAILY_LIMIT_HOURS,
    ax=None,
    figsize: tuple = (9, 4),
    title: Optional[str] = "Daily hours",
    save_path: Optional[str] = None,
    return_fig_ax: bool = False,
):
    """Bars from ``daily_hours_series`` with the daily cap as a dashed line."""
    if series.empty:
        return _empty(ax, figsize, "No data", return_fig_ax)

    import matplotlib.pyplot as plt

    fig = None
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    labels = [d.strftime("%a %m-%d") for d in series.index]
    x = np.arange(len(series))
    ax.bar(x, series.to_numpy(dtype=float), color="steelblue", zorder=2)
    ax.axhline(daily_limit_hours, color="firebrick", linestyle="--", linewidth=1.5,
               label=f"Daily cap ({daily_limit_hours:g}h)")
    ax.set_xticks(x)
    ax.set_xticklabels(labels)
    for label in ax.get_xticklabels():
        label.set_rotation(45)
        label.set_ha("right")
    ax.set_ylabel("Hours")
    if title:
        ax.set_title(title)
    ax.grid(True, axis="y", linestyle="--", alpha=0.4, zorder=0)
    ax.legend(loc="best")
    return _finish(fig, ax, save_path, return_fig_ax)


# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------

def plot_trends_heatmap(
    heatmap: "pd.DataFrame",
    *,
    ax=None,
    figsize: tuple = (9, 5),
    title: Optional[str] = "Hourly earnings by day and time",
    cmap: str = "YlGn",
    annotate: bool = True,
    save_path: Optional[str] = None,
    return_fig_ax: bool = False,
):
    """
    Heatmap of ``calculate_trends`` output.

    Cells with no blocks (0.0) are left blank when ``annotate`` is True.
    """
    if heatmap.empty:
        return _empty(ax, figsize, "No data", return_fig_ax)

    import matplotlib.pyplot as plt

    fig = None
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    values = heatmap.to_numpy(dtype=float)
    vmax = values.max() if values.size and values.max() > 0 else 1.0
    im = ax.imshow(values, cmap=cmap, vmin=0.0, vmax=vmax, aspect="auto")

    ax.set_xticks(np.arange(values.shape[1]))
    ax.set_xticklabels(list(heatmap.columns))
    ax.set_yticks(np.arange(values.shape[0]))
    ax.set_yticklabels(list(heatmap.index))
    if annotate:
        for i in range(values.shape[0]):
            for j in range(values.shape[1]):
                if values[i, j] > 0:
                    ax.text(j, i, f"${values[i, j]:.0f}", ha="center", va="center", fontsize=8)

    (fig or ax.figure).colorbar(im, ax=ax, label="$/hour")
    if title:
        ax.set_title(title)
    return _finish(fig, ax, save_path, return_fig_ax)
