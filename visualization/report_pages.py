"""
PDF report pages for a retirement simulation run.

Each page is a standalone matplotlib figure; write_report() collects them
into a single PDF via PdfPages.
"""

import logging
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from typing import List, TYPE_CHECKING

from .monte_carlo_plots import (
    create_portfolio_paths_chart,
    plot_sample_runs,
    plot_final_balance_distribution,
    plot_failure_probability,
)

if TYPE_CHECKING:
    from engine import SimulationResult, SampleRunSelection

logger = logging.getLogger(__name__)


def create_summary_page(result: 'SimulationResult') -> plt.Figure:
    """Text page listing the run parameters and headline statistics."""
    params = result.params

    fig = plt.figure(figsize=(11, 8.5))
    fig.suptitle('Retirement Monte Carlo Summary', fontweight='bold')

    lines = [
        ('Initial portfolio', f'${params.initial_portfolio:,.0f}'),
        ('First-year withdrawal', f'${params.annual_withdrawal:,.0f} ({100 * params.withdrawal_rate:.2f}%)'),
        ('Retirement years', f'{params.retirement_years}'),
        ('Allocation', f'{100 * params.stock_allocation:.0f}% stocks / {100 * params.bond_allocation:.0f}% bonds'),
        ('Return source', params.return_source.value),
        ('Post-failure policy', params.post_failure_policy.value),
        ('Simulations', f'{result.total_paths:,}'),
        ('', ''),
        ('Success rate', f'{result.success_rate:.1f}% ({result.successful_paths:,} of {result.total_paths:,})'),
        ('5th percentile final balance', f'${result.worst_case_balance:,.0f}'),
        ('Median final balance', f'${result.median_ending_balance:,.0f}'),
        ('95th percentile final balance', f'${result.best_case_balance:,.0f}'),
    ]

    y = 0.85
    for label, value in lines:
        fig.text(0.12, y, label, fontsize=13)
        fig.text(0.55, y, value, fontsize=13, fontweight='bold')
        y -= 0.055

    return fig


def build_report_pages(
    result: 'SimulationResult',
    selection: 'SampleRunSelection',
) -> List[plt.Figure]:
    """All report pages in order."""
    return [
        create_summary_page(result),
        create_portfolio_paths_chart(result),
        plot_sample_runs(selection),
        plot_final_balance_distribution(result),
        plot_failure_probability(result),
    ]


def write_report(
    output_path: str,
    result: 'SimulationResult',
    selection: 'SampleRunSelection',
) -> str:
    """
    Write the full report to a PDF.

    Returns:
        Path to generated PDF file
    """
    with PdfPages(output_path) as pdf:
        for fig in build_report_pages(result, selection):
            pdf.savefig(fig, bbox_inches='tight')
            plt.close(fig)

    logger.info("Report written to %s", output_path)
    return output_path
