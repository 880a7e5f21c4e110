"""
Monte Carlo visualization plots for retirement simulation results.

This module provides plotting functions for portfolio balance fan charts,
selected sample runs, final balance distributions and failure timing.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Tuple, TYPE_CHECKING

from .styles import COLORS, SAMPLE_RUN_COLORS
from .helpers import format_currency_axis, plot_fan_chart, thin_sample_paths

if TYPE_CHECKING:
    from engine import SimulationResult, SampleRunSelection


def create_portfolio_paths_chart(
    result: 'SimulationResult',
    figsize: Tuple[int, int] = (12, 7),
    show_samples: bool = True,
) -> plt.Figure:
    """
    Fan chart of portfolio balances with the median path and thin sample paths.

    Args:
        result: Monte Carlo simulation result
        figsize: Figure size
        show_samples: If True, draw every 100th path (max 10) in light gray

    Returns:
        matplotlib Figure
    """
    fig, ax = plt.subplots(figsize=figsize)
    years = np.arange(result.params.retirement_years + 1)

    if show_samples:
        for path in thin_sample_paths(result):
            ax.plot(years, path.portfolio_values, color=COLORS['sample'], alpha=0.4, linewidth=0.8)

    plot_fan_chart(ax, result.balance_matrix, years, color=COLORS['balance'],
                   show_median_label=False)
    ax.plot(years, result.median_path.portfolio_values, color=COLORS['median'],
            linewidth=2.5, label='Median path')

    ax.set_xlabel('Year of Retirement')
    ax.set_ylabel('Portfolio Value')
    ax.set_title(f'Portfolio Value Over Time ({result.success_rate:.1f}% success)')
    ax.set_xlim(0, years[-1])
    ax.set_ylim(0, None)
    format_currency_axis(ax)
    ax.legend(loc='upper left', fontsize=9)

    plt.tight_layout()
    return fig


def plot_sample_runs(
    selection: 'SampleRunSelection',
    figsize: Tuple[int, int] = (12, 7),
) -> plt.Figure:
    """
    The selected sample runs (best, worst, median, random success/failure).
    """
    fig, ax = plt.subplots(figsize=figsize)

    for run in selection.runs():
        years = np.arange(len(run.path.portfolio_values))
        linestyle = '--' if run.kind.startswith('random') else '-'
        ax.plot(years, run.path.portfolio_values, color=SAMPLE_RUN_COLORS[run.kind],
                linestyle=linestyle, linewidth=2, label=run.label)

        if run.path.failure_year is not None:
            ax.plot(run.path.failure_year, 0, marker='x', markersize=10,
                    color=SAMPLE_RUN_COLORS[run.kind])

    ax.set_xlabel('Year of Retirement')
    ax.set_ylabel('Portfolio Value')
    ax.set_title('Sample Runs')
    ax.set_ylim(0, None)
    format_currency_axis(ax)
    ax.legend(loc='upper left', fontsize=9)

    plt.tight_layout()
    return fig


def plot_final_balance_distribution(
    result: 'SimulationResult',
    bins: int = 50,
    figsize: Tuple[int, int] = (12, 6),
) -> plt.Figure:
    """
    Histogram of final balances with the 5th/50th/95th percentile markers.

    Depleted paths (final balance 0) are reported in the title rather than
    drawn, since they would swamp the first bin.
    """
    fig, ax = plt.subplots(figsize=figsize)

    final_balances = result.final_balances
    positive = final_balances[final_balances > 0]
    n_depleted = len(final_balances) - len(positive)

    if len(positive):
        ax.hist(positive, bins=bins, alpha=0.6, color=COLORS['balance'])

    markers = [
        (result.worst_case_balance, '5th pctl', COLORS['failure'], ':'),
        (result.median_ending_balance, 'Median', COLORS['median'], '-'),
        (result.best_case_balance, '95th pctl', COLORS['success'], ':'),
    ]
    for value, label, color, linestyle in markers:
        ax.axvline(x=value, color=color, linestyle=linestyle, linewidth=2, label=label)

    ax.set_xlabel('Final Balance')
    ax.set_ylabel('Number of Paths')
    ax.set_title(f'Distribution of Final Balances ({n_depleted} of {len(final_balances)} depleted)')
    format_currency_axis(ax, axis='x')
    ax.legend()

    plt.tight_layout()
    return fig


def plot_failure_probability(
    result: 'SimulationResult',
    figsize: Tuple[int, int] = (12, 5),
) -> plt.Figure:
    """Cumulative probability of having run out of money by each year."""
    fig, ax = plt.subplots(figsize=figsize)

    failure_prob = 100 * result.failure_probability_by_year()
    years = np.arange(len(failure_prob))

    ax.fill_between(years, 0, failure_prob, color=COLORS['failure'], alpha=0.3)
    ax.plot(years, failure_prob, color=COLORS['failure'], linewidth=2)

    ax.set_xlabel('Year of Retirement')
    ax.set_ylabel('Depleted (%)')
    ax.set_title('Cumulative Probability of Portfolio Depletion')
    ax.set_xlim(0, years[-1])
    ax.set_ylim(0, max(5.0, failure_prob.max() * 1.1))

    plt.tight_layout()
    return fig
