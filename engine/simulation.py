"""
Simulation engine for retirement portfolio survival.

This module contains the single-path simulator and the Monte Carlo
aggregator that runs many independent paths and derives success-rate and
percentile statistics.
"""

import logging
import numpy as np
import pandas as pd
from typing import Optional, Sequence

from .params import (
    DEFAULT_WITHDRAWAL_RATE,
    WORST_CASE_PERCENTILE,
    MEDIAN_PERCENTILE,
    BEST_CASE_PERCENTILE,
    PostFailurePolicy,
    SimulationParams,
    SimulationPath,
    RankedPaths,
    SimulationResult,
)
from .returns import ReturnGenerator, make_return_generator

logger = logging.getLogger(__name__)


def calculate_initial_withdrawal(
    portfolio_value: float,
    withdrawal_rate: float = DEFAULT_WITHDRAWAL_RATE,
) -> float:
    """First-year withdrawal for a given withdrawal rate (4% rule by default)."""
    return portfolio_value * withdrawal_rate


# =============================================================================
# Path Simulator
# =============================================================================

def simulate_path(
    params: SimulationParams,
    return_generator: ReturnGenerator,
) -> SimulationPath:
    """
    Evolve one portfolio through the retirement horizon.

    Each year: grow by the drawn return, inflate the withdrawal, withdraw,
    then record the floored balance. The working balance itself is never
    floored under PostFailurePolicy.CONTINUE, so a failed path keeps
    compounding its negative value. Under FREEZE it is clamped to 0 at the
    failure year and held there.

    Args:
        params: Simulation parameters
        return_generator: Called once per year with the allocation; returns
            (portfolio_return, inflation)

    Returns:
        SimulationPath with years + 1 balances and years withdrawals
    """
    years = params.retirement_years
    freeze = params.post_failure_policy == PostFailurePolicy.FREEZE

    portfolio = float(params.initial_portfolio)
    current_withdrawal = float(params.annual_withdrawal)

    portfolio_values = np.zeros(years + 1)
    withdrawals = np.zeros(years)
    portfolio_values[0] = portfolio
    failure_year = None

    for year in range(1, years + 1):
        # Always draw so both policies consume the same random stream
        portfolio_return, inflation = return_generator(params.allocation)

        current_withdrawal = current_withdrawal * (1 + inflation)

        if freeze and failure_year is not None:
            portfolio = 0.0
        else:
            portfolio = portfolio * (1 + portfolio_return)
            portfolio = portfolio - current_withdrawal

        portfolio_values[year] = max(0.0, portfolio)
        withdrawals[year - 1] = current_withdrawal

        if portfolio <= 0 and failure_year is None:
            failure_year = year
            if freeze:
                portfolio = 0.0

    portfolio_values.setflags(write=False)
    withdrawals.setflags(write=False)

    return SimulationPath(
        portfolio_values=portfolio_values,
        withdrawals=withdrawals,
        success=bool(portfolio > 0),
        failure_year=failure_year,
        final_balance=max(0.0, portfolio),
    )


# =============================================================================
# Monte Carlo Aggregator
# =============================================================================

def rank_paths(paths: Sequence[SimulationPath]) -> RankedPaths:
    """Rank paths ascending by final balance; ties keep generation order."""
    paths = tuple(paths)
    final_balances = np.array([p.final_balance for p in paths])
    order = np.argsort(final_balances, kind='stable')
    order.setflags(write=False)
    return RankedPaths(paths=paths, order=order)


def run_simulation(
    params: SimulationParams = None,
    rng: Optional[np.random.Generator] = None,
    return_generator: Optional[ReturnGenerator] = None,
) -> SimulationResult:
    """
    Run the full Monte Carlo retirement simulation.

    Exactly params.number_of_simulations independent paths are simulated and
    all of them are kept.

    Args:
        params: Simulation parameters
        rng: Random stream; defaults to one seeded from params.random_seed.
            Unused when return_generator is given.
        return_generator: Overrides the return source entirely (stubs, tests)

    Returns:
        SimulationResult with success rate, percentile balances and all paths
    """
    if params is None:
        params = SimulationParams()
    if return_generator is None:
        if rng is None:
            rng = np.random.default_rng(params.random_seed)
        return_generator = make_return_generator(params.return_source, rng)
    elif rng is not None:
        logger.debug("Custom return generator given; ignoring the supplied rng")

    n_sims = params.number_of_simulations
    logger.debug(
        "Running %d simulations over %d years (%s returns, %.0f/%.0f stock/bond)",
        n_sims, params.retirement_years, params.return_source.value,
        100 * params.stock_allocation, 100 * params.bond_allocation,
    )

    paths = [simulate_path(params, return_generator) for _ in range(n_sims)]

    successful_paths = sum(1 for p in paths if p.success)
    success_rate = 100.0 * successful_paths / n_sims

    ranked = rank_paths(paths)
    median_path = ranked.path_at(MEDIAN_PERCENTILE)

    result = SimulationResult(
        success_rate=success_rate,
        successful_paths=successful_paths,
        total_paths=n_sims,
        median_ending_balance=median_path.final_balance,
        worst_case_balance=ranked.balance_at(WORST_CASE_PERCENTILE),
        best_case_balance=ranked.balance_at(BEST_CASE_PERCENTILE),
        median_path=median_path,
        paths=ranked.paths,
        ranked=ranked,
        params=params,
    )

    logger.info(
        "Simulation complete: %.1f%% success (%d/%d), median ending balance %.0f",
        success_rate, successful_paths, n_sims, result.median_ending_balance,
    )
    return result


# =============================================================================
# Analysis Functions
# =============================================================================

def compute_summary_stats(result: SimulationResult) -> pd.DataFrame:
    """Summary statistics of a run as a one-row table."""
    final_balances = result.final_balances
    failure_years = result.failure_years
    failed = failure_years[~np.isnan(failure_years)]

    stats = [{
        'Source': result.params.return_source.value,
        'Success Rate (%)': result.success_rate,
        'Successful Paths': result.successful_paths,
        'Total Paths': result.total_paths,
        '5th Pctl Final Balance': result.worst_case_balance,
        'Median Final Balance': result.median_ending_balance,
        '95th Pctl Final Balance': result.best_case_balance,
        'Mean Final Balance': float(np.mean(final_balances)),
        'Median Failure Year': float(np.median(failed)) if len(failed) else np.nan,
    }]

    return pd.DataFrame(stats).set_index('Source')
