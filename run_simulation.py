#!/usr/bin/env python3
"""
Run a retirement Monte Carlo simulation from the command line.

Prints the success rate, percentile balances and the selected sample runs,
and optionally writes a PDF report and a CSV of the sample-run year details.
"""

import logging
from dataclasses import replace

import numpy as np

from engine import (
    DEFAULT_WITHDRAWAL_RATE,
    Allocation,
    SimulationParams,
    load_params,
    calculate_initial_withdrawal,
    run_simulation,
    compute_summary_stats,
    select_samples,
    derive_year_details,
    sample_runs_frame,
)

logger = logging.getLogger(__name__)


def build_params(
    config_path: str = None,
    initial_portfolio: float = None,
    withdrawal: float = None,
    withdrawal_rate: float = None,
    years: int = None,
    stock_allocation: float = None,
    simulations: int = None,
    source: str = None,
    post_failure: str = None,
    seed: int = None,
) -> SimulationParams:
    """
    Merge a config file (or the defaults) with explicit overrides.

    A withdrawal amount wins over a withdrawal rate; the rate is applied to
    the final initial portfolio. Without a config file, a new initial
    portfolio gets the default 4% withdrawal unless one is given.
    """
    params = load_params(config_path) if config_path else SimulationParams()

    overrides = {
        'initial_portfolio': initial_portfolio,
        'retirement_years': years,
        'number_of_simulations': simulations,
        'return_source': source,
        'post_failure_policy': post_failure,
        'random_seed': seed,
    }
    if stock_allocation is not None:
        overrides['allocation'] = Allocation.from_stock(stock_allocation)
    overrides = {k: v for k, v in overrides.items() if v is not None}
    params = replace(params, **overrides)

    if withdrawal is not None:
        params = replace(params, annual_withdrawal=withdrawal)
    elif withdrawal_rate is not None or (initial_portfolio is not None and not config_path):
        if withdrawal_rate is None:
            withdrawal_rate = DEFAULT_WITHDRAWAL_RATE
        params = replace(
            params,
            annual_withdrawal=calculate_initial_withdrawal(params.initial_portfolio, withdrawal_rate),
        )
    return params


def print_results(result, selection) -> None:
    """Print headline statistics and the sample runs."""
    params = result.params

    print("\n" + "=" * 78)
    print("RETIREMENT MONTE CARLO RESULTS")
    print("=" * 78)
    print(f"Initial portfolio: ${params.initial_portfolio:,.0f}   "
          f"Withdrawal: ${params.annual_withdrawal:,.0f} ({100 * params.withdrawal_rate:.2f}%)")
    print(f"Years: {params.retirement_years}   "
          f"Allocation: {100 * params.stock_allocation:.0f}/{100 * params.bond_allocation:.0f}   "
          f"Source: {params.return_source.value}   Paths: {result.total_paths:,}")
    print("-" * 78)
    print(compute_summary_stats(result).T.to_string())

    print("\n" + "-" * 78)
    print("SAMPLE RUNS")
    print("-" * 78)
    print(f"{'Run':<30} {'Path':>6} {'Final Balance':>16} {'Failure Year':>14}")
    for run in selection.runs():
        failure = '-' if run.path.failure_year is None else str(run.path.failure_year)
        print(f"{run.label:<30} {run.index:>6} {run.path.final_balance:>16,.0f} {failure:>14}")

    median_details = derive_year_details(selection.median.path, params.initial_portfolio)
    worst_year = min(median_details, key=lambda d: d.market_return)
    print(f"\nMedian run's worst year: year {worst_year.year} "
          f"({100 * worst_year.market_return:+.1f}% market return)")
    print("=" * 78)


def main(
    params: SimulationParams,
    output_path: str = None,
    details_csv: str = None,
    verbose: bool = True,
):
    """
    Run the simulation, select sample runs and emit the requested outputs.

    Returns:
        Tuple of (SimulationResult, SampleRunSelection)
    """
    rng = np.random.default_rng(params.random_seed)
    result = run_simulation(params, rng=rng)
    selection = select_samples(result, rng=rng)

    if verbose:
        print_results(result, selection)

    if details_csv:
        sample_runs_frame(selection, params.initial_portfolio).to_csv(details_csv)
        logger.info("Sample run details written to %s", details_csv)

    if output_path:
        # Imported lazily so text-only runs never touch matplotlib
        from visualization import write_report
        write_report(output_path, result, selection)

    return result, selection


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(
        description='Monte Carlo projection of retirement portfolio survival'
    )
    parser.add_argument('--config', default=None,
                        help='JSON file with simulation parameters (flags override it)')
    parser.add_argument('--initial-portfolio', type=float, default=None,
                        help='Starting portfolio value (default: 1,000,000)')
    parser.add_argument('--withdrawal', type=float, default=None,
                        help='First-year withdrawal amount (default: 4%% of the portfolio)')
    parser.add_argument('--withdrawal-rate', type=float, default=None,
                        help='First-year withdrawal as a fraction of the portfolio, e.g. 0.04')
    parser.add_argument('--years', type=int, default=None,
                        help='Years in retirement (default: 30)')
    parser.add_argument('--stock-allocation', type=float, default=None,
                        help='Stock fraction; the rest is bonds (default: 0.60)')
    parser.add_argument('--simulations', type=int, default=None,
                        help='Number of Monte Carlo paths (default: 1000)')
    parser.add_argument('--source', choices=['parametric', 'historical'], default=None,
                        help='Return source (default: parametric)')
    parser.add_argument('--post-failure', choices=['continue', 'freeze'], default=None,
                        help='Working balance after depletion (default: continue)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed (default: fresh entropy)')
    parser.add_argument('-o', '--output', default=None,
                        help='Write a PDF report to this path')
    parser.add_argument('--details-csv', default=None,
                        help='Write sample run year details to this CSV path')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Suppress printed results')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        sim_params = build_params(
            config_path=args.config,
            initial_portfolio=args.initial_portfolio,
            withdrawal=args.withdrawal,
            withdrawal_rate=args.withdrawal_rate,
            years=args.years,
            stock_allocation=args.stock_allocation,
            simulations=args.simulations,
            source=args.source,
            post_failure=args.post_failure,
            seed=args.seed,
        )
    except (ValueError, OSError) as exc:
        parser.error(str(exc))

    main(
        sim_params,
        output_path=args.output,
        details_csv=args.details_csv,
        verbose=not args.quiet,
    )
