"""
Representative sample runs for drill-down display.

Picks the best, worst and median paths plus one random success and one
random failure from a SimulationResult, and reconstructs year-by-year
detail (including the implied market return) from a recorded path.
"""

import logging
import numpy as np
import pandas as pd
from typing import List, Optional

from .params import (
    WORST_CASE_PERCENTILE,
    MEDIAN_PERCENTILE,
    BEST_CASE_PERCENTILE,
    SimulationResult,
    SimulationPath,
    SampleRun,
    SampleRunSelection,
    YearDetail,
)

logger = logging.getLogger(__name__)


def select_samples(
    result: SimulationResult,
    rng: Optional[np.random.Generator] = None,
) -> SampleRunSelection:
    """
    Select representative runs from a simulation result.

    Best/worst/median come from the result's ranked view. The random
    successful run excludes the best-case and median paths (by index) when
    any other successful path exists, otherwise it falls back to the first
    successful path. If nothing succeeded it is None; if nothing failed the
    random failure is None.
    """
    if rng is None:
        rng = np.random.default_rng()

    paths = result.paths
    ranked = result.ranked

    best_idx = ranked.index_at(BEST_CASE_PERCENTILE)
    worst_idx = ranked.index_at(WORST_CASE_PERCENTILE)
    median_idx = ranked.index_at(MEDIAN_PERCENTILE)

    successful = [i for i, p in enumerate(paths) if p.success]
    failed = [i for i, p in enumerate(paths) if not p.success]

    available = [i for i in successful if i != best_idx and i != median_idx]
    if available:
        success_idx = available[int(rng.integers(len(available)))]
    elif successful:
        logger.debug("No distinct successful path available; using first successful path")
        success_idx = successful[0]
    else:
        logger.warning("No successful paths in %d simulations; random success is empty", len(paths))
        success_idx = None

    failure_idx = failed[int(rng.integers(len(failed)))] if failed else None

    def run(kind: str, index: Optional[int]) -> Optional[SampleRun]:
        if index is None:
            return None
        return SampleRun(kind=kind, index=index, path=paths[index])

    return SampleRunSelection(
        best_case=run('best_case', best_idx),
        worst_case=run('worst_case', worst_idx),
        median=run('median', median_idx),
        random_success=run('random_success', success_idx),
        random_failure=run('random_failure', failure_idx),
    )


def derive_year_details(path: SimulationPath, initial_portfolio: float) -> List[YearDetail]:
    """
    Reconstruct year-by-year detail from a recorded path.

    The market return is recovered by inverting

        ending = starting * (1 + r) - withdrawal

    which is exact only while the recorded ending balance was not floored.
    A non-positive starting balance gives a return of 0.
    """
    details = []

    for i, withdrawal in enumerate(path.withdrawals):
        starting_balance = initial_portfolio if i == 0 else float(path.portfolio_values[i])
        ending_balance = float(path.portfolio_values[i + 1])

        portfolio_after_return = ending_balance + withdrawal
        if starting_balance > 0:
            market_return = (portfolio_after_return - starting_balance) / starting_balance
        else:
            market_return = 0.0

        details.append(YearDetail(
            year=i + 1,
            starting_balance=starting_balance,
            market_return=market_return,
            withdrawal=float(withdrawal),
            ending_balance=max(0.0, ending_balance),
        ))

    return details


def year_details_frame(details: List[YearDetail]) -> pd.DataFrame:
    """Year details as a table indexed by year."""
    return pd.DataFrame([
        {
            'Year': d.year,
            'Starting Balance': d.starting_balance,
            'Market Return': d.market_return,
            'Withdrawal': d.withdrawal,
            'Ending Balance': d.ending_balance,
        }
        for d in details
    ]).set_index('Year')


def sample_runs_frame(selection: SampleRunSelection, initial_portfolio: float) -> pd.DataFrame:
    """Year details of every selected run stacked into one long table."""
    frames = []
    for run in selection.runs():
        frame = year_details_frame(derive_year_details(run.path, initial_portfolio))
        frame.insert(0, 'Run', run.label)
        frame.insert(1, 'Path Index', run.index)
        frames.append(frame)
    return pd.concat(frames)
