"""
Plot utility functions for retirement simulation charts.

This module provides common plotting utilities used across visualization modules.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from engine import SimulationResult, SimulationPath


def format_currency_axis(ax: plt.Axes, axis: str = 'y') -> None:
    """Format axis labels as currency in millions."""
    def currency_formatter(x, pos):
        return f'${x / 1e6:,.1f}M'

    if axis == 'y':
        ax.yaxis.set_major_formatter(plt.FuncFormatter(currency_formatter))
    else:
        ax.xaxis.set_major_formatter(plt.FuncFormatter(currency_formatter))


def thin_sample_paths(
    result: 'SimulationResult',
    step: int = 100,
    limit: int = 10,
) -> List['SimulationPath']:
    """Every ``step``-th path in generation order, at most ``limit`` of them."""
    return list(result.paths[::step][:limit])


def plot_fan_chart(
    ax: plt.Axes,
    paths: np.ndarray,
    x: np.ndarray,
    percentiles: List[int] = None,
    color: str = 'blue',
    label_prefix: str = '',
    alpha_outer: float = 0.2,
    alpha_inner: float = 0.35,
    show_median_label: bool = True,
) -> np.ndarray:
    """
    Plot a fan chart with percentile bands.

    Args:
        ax: Matplotlib axes to plot on
        paths: 2D array of shape (n_simulations, n_periods)
        x: X-axis values
        percentiles: List of percentiles to plot [5, 25, 50, 75, 95]
        color: Color for the bands and median line
        label_prefix: Prefix for legend labels
        alpha_outer: Transparency for outer band (5-95%)
        alpha_inner: Transparency for inner band (25-75%)
        show_median_label: Whether to add median to legend

    Returns:
        Array of percentile values at each time point (shape: n_percentiles x n_periods)
    """
    if percentiles is None:
        percentiles = [5, 25, 50, 75, 95]

    pctl_values = np.percentile(paths, percentiles, axis=0)
    p_idx = {p: i for i, p in enumerate(percentiles)}

    if 5 in p_idx and 95 in p_idx:
        ax.fill_between(x, pctl_values[p_idx[5]], pctl_values[p_idx[95]],
                        alpha=alpha_outer, color=color, label=f'{label_prefix} 5-95th pctl'.strip())

    if 25 in p_idx and 75 in p_idx:
        ax.fill_between(x, pctl_values[p_idx[25]], pctl_values[p_idx[75]],
                        alpha=alpha_inner, color=color, label=f'{label_prefix} 25-75th pctl'.strip())

    if 50 in p_idx:
        label = f'{label_prefix} Median'.strip() if show_median_label else None
        ax.plot(x, pctl_values[p_idx[50]], color=color, linewidth=2, label=label)

    return pctl_values
