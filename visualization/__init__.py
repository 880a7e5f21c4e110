"""
Visualization module for retirement Monte Carlo analysis.

This module consolidates all matplotlib visualization code, providing a
clean separation from the simulation engine.

Submodules:
- styles: Color schemes, fonts, and style constants
- helpers: Common plotting utilities
- monte_carlo_plots: Fan charts, sample runs, distributions
- report_pages: PDF report assembly
"""

# Import styles and helpers
from .styles import (
    COLORS,
    SAMPLE_RUN_COLORS,
)

from .helpers import (
    format_currency_axis,
    thin_sample_paths,
    plot_fan_chart,
)

# Import Monte Carlo plots
from .monte_carlo_plots import (
    create_portfolio_paths_chart,
    plot_sample_runs,
    plot_final_balance_distribution,
    plot_failure_probability,
)

# Import report page layouts
from .report_pages import (
    create_summary_page,
    build_report_pages,
    write_report,
)

__all__ = [
    # Styles
    'COLORS',
    'SAMPLE_RUN_COLORS',

    # Helpers
    'format_currency_axis',
    'thin_sample_paths',
    'plot_fan_chart',

    # Monte Carlo plots
    'create_portfolio_paths_chart',
    'plot_sample_runs',
    'plot_final_balance_distribution',
    'plot_failure_probability',

    # Report pages
    'create_summary_page',
    'build_report_pages',
    'write_report',
]
