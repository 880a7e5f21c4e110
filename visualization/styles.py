"""
Centralized style definitions for retirement simulation charts.

This module provides the shared palette and figure style for all plots.
"""

import matplotlib.pyplot as plt

# Set consistent style for all figures
plt.style.use('seaborn-v0_8-whitegrid')

# Main color scheme (colorblind-friendly: blue-orange palette)
COLORS = {
    # Primary colors (colorblind-safe)
    'blue': '#1A759F',
    'orange': '#E07A5F',
    'teal': '#2A9D8F',
    'amber': '#E9C46A',
    'gray': '#95a5a6',

    # Semantic colors
    'balance': '#457B9D',     # Portfolio balance bands
    'median': '#1D3557',      # Median path
    'sample': '#95a5a6',      # Thinned sample paths
    'withdrawal': '#E07A5F',
    'success': '#2A9D8F',
    'failure': '#E07A5F',
}

# One color per selected sample run (matches SAMPLE_RUN_LABELS order)
SAMPLE_RUN_COLORS = {
    'best_case': '#264653',       # Deep teal
    'worst_case': '#BC6C25',      # Rust
    'median': '#1A759F',          # Deep blue
    'random_success': '#2A9D8F',  # Teal
    'random_failure': '#E07A5F',  # Burnt orange
}

