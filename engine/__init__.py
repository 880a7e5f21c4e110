"""
Monte Carlo engine for retirement portfolio survival.

This module provides the components for projecting how long a retirement
portfolio lasts under uncertain markets:
- Parameter and result dataclasses (params.py)
- Historical annual returns table (historical.py)
- Market return generation, parametric and historical (returns.py)
- Path simulator and Monte Carlo aggregator (simulation.py)
- Sample run selection and year-detail reconstruction (sampling.py)
"""

# Constants
from .params import (
    DEFAULT_WITHDRAWAL_RATE,
    DEFAULT_STOCK_ALLOCATION,
    DEFAULT_BOND_ALLOCATION,
    DEFAULT_NUMBER_OF_SIMULATIONS,
    DEFAULT_RETIREMENT_YEARS,
)

# Parameter dataclasses
from .params import (
    ReturnSource,
    PostFailurePolicy,
    AssetAssumption,
    MarketAssumptions,
    MarketReturn,
    Allocation,
    SimulationParams,
    load_params,
    # Result dataclasses
    SimulationPath,
    RankedPaths,
    SimulationResult,
    SampleRun,
    SampleRunSelection,
    SAMPLE_RUN_LABELS,
    YearDetail,
)

# Historical data
from .historical import (
    YearlyReturn,
    HISTORICAL_RETURNS,
    HistoricalStats,
    random_historical_year,
    get_historical_return,
    calculate_historical_stats,
)

# Return generation
from .returns import (
    ReturnGenerator,
    box_muller_normal,
    generate_parametric_return,
    generate_historical_return,
    generate_return,
    make_return_generator,
)

# Simulation engines
from .simulation import (
    calculate_initial_withdrawal,
    simulate_path,
    rank_paths,
    run_simulation,
    compute_summary_stats,
)

# Sample selection
from .sampling import (
    select_samples,
    derive_year_details,
    year_details_frame,
    sample_runs_frame,
)

__all__ = [
    # Constants
    'DEFAULT_WITHDRAWAL_RATE',
    'DEFAULT_STOCK_ALLOCATION',
    'DEFAULT_BOND_ALLOCATION',
    'DEFAULT_NUMBER_OF_SIMULATIONS',
    'DEFAULT_RETIREMENT_YEARS',
    # Params
    'ReturnSource',
    'PostFailurePolicy',
    'AssetAssumption',
    'MarketAssumptions',
    'MarketReturn',
    'Allocation',
    'SimulationParams',
    'load_params',
    # Results
    'SimulationPath',
    'RankedPaths',
    'SimulationResult',
    'SampleRun',
    'SampleRunSelection',
    'SAMPLE_RUN_LABELS',
    'YearDetail',
    # Historical data
    'YearlyReturn',
    'HISTORICAL_RETURNS',
    'HistoricalStats',
    'random_historical_year',
    'get_historical_return',
    'calculate_historical_stats',
    # Returns
    'ReturnGenerator',
    'box_muller_normal',
    'generate_parametric_return',
    'generate_historical_return',
    'generate_return',
    'make_return_generator',
    # Simulation
    'calculate_initial_withdrawal',
    'simulate_path',
    'rank_paths',
    'run_simulation',
    'compute_summary_stats',
    # Sampling
    'select_samples',
    'derive_year_details',
    'year_details_frame',
    'sample_runs_frame',
]
