"""
Tests for the path simulator and the Monte Carlo aggregator.

Deterministic return generators pin down the year-by-year arithmetic; a
seeded parametric run checks the statistical invariants of the aggregate.
"""

import logging
import math

import numpy as np
import pandas as pd
import pytest

from engine import (
    Allocation,
    SimulationParams,
    PostFailurePolicy,
    ReturnSource,
    calculate_initial_withdrawal,
    simulate_path,
    rank_paths,
    run_simulation,
    compute_summary_stats,
)


# =============================================================================
# Path Simulator
# =============================================================================

def test_single_year_with_flat_market(constant_returns_factory):
    """Zero return and zero inflation: balance drops by exactly the withdrawal."""
    params = SimulationParams(
        initial_portfolio=1_000_000,
        annual_withdrawal=40_000,
        retirement_years=1,
        number_of_simulations=1,
    )
    path = simulate_path(params, constant_returns_factory(0.0, 0.0))

    assert path.portfolio_values[1] == 1_000_000 - 40_000
    assert path.success is True
    assert path.failure_year is None
    assert path.final_balance == 960_000
    assert list(path.withdrawals) == [40_000]


def test_single_year_withdrawal_exceeds_portfolio(constant_returns_factory):
    params = SimulationParams(initial_portfolio=30_000, annual_withdrawal=40_000, retirement_years=1)
    path = simulate_path(params, constant_returns_factory(0.0, 0.0))

    assert path.portfolio_values[1] == 0.0
    assert path.success is False
    assert path.failure_year == 1
    assert path.final_balance == 0.0


def test_growth_then_inflated_withdrawal(constant_returns_factory):
    """Each year: grow, inflate the withdrawal, then withdraw."""
    params = SimulationParams(initial_portfolio=1_000_000, annual_withdrawal=50_000, retirement_years=5)
    path = simulate_path(params, constant_returns_factory(0.05, 0.02))

    expected_balance = 1_000_000.0
    withdrawal = 50_000.0
    for year in range(1, 6):
        withdrawal *= 1.02
        expected_balance = expected_balance * 1.05 - withdrawal
        assert path.portfolio_values[year] == pytest.approx(expected_balance)
        assert path.withdrawals[year - 1] == pytest.approx(withdrawal)

    assert path.portfolio_values[0] == 1_000_000
    assert path.final_balance == pytest.approx(expected_balance)


def test_path_lengths(constant_returns_factory):
    params = SimulationParams(retirement_years=17)
    path = simulate_path(params, constant_returns_factory(0.03, 0.01))
    assert len(path.portfolio_values) == 18
    assert len(path.withdrawals) == 17
    assert path.years == 17


def test_withdrawal_keeps_inflating_after_failure(constant_returns_factory):
    params = SimulationParams(initial_portfolio=100, annual_withdrawal=60, retirement_years=4)
    path = simulate_path(params, constant_returns_factory(0.0, 0.10))

    assert path.failure_year == 2
    assert path.withdrawals == pytest.approx([66.0, 72.6, 79.86, 87.846])
    assert path.portfolio_values == pytest.approx([100, 34.0, 0.0, 0.0, 0.0])


def test_failure_year_is_first_depletion(constant_returns_factory):
    params = SimulationParams(initial_portfolio=100, annual_withdrawal=60, retirement_years=3)
    path = simulate_path(params, constant_returns_factory(0.0, 0.0))

    assert list(path.portfolio_values) == [100, 40, 0, 0]
    assert path.failure_year == 2
    assert path.success is False
    assert path.final_balance == 0.0
    assert path.total_withdrawn == 180


def test_generator_called_once_per_year_with_allocation():
    calls = []

    def recording_generator(allocation):
        calls.append(allocation)
        return (0.0, 0.0)

    allocation = Allocation(stock=0.3, bond=0.7)
    params = SimulationParams(retirement_years=12, allocation=allocation)
    simulate_path(params, recording_generator)

    assert len(calls) == 12
    assert all(a is allocation for a in calls)


# Year 3 return below -100% flips a negative working balance positive
RECOVERY_SCRIPT = [(0.0, 0.0), (0.0, 0.0), (-6.0, 0.0)]


def test_continue_policy_compounds_negative_balance(scripted_returns_factory):
    """The unfloored working balance keeps evolving after failure."""
    params = SimulationParams(initial_portfolio=100, annual_withdrawal=60, retirement_years=3)
    path = simulate_path(params, scripted_returns_factory(RECOVERY_SCRIPT))

    # Year 2: -20 (recorded 0). Year 3: -20 * (1 - 6) - 60 = 40
    assert list(path.portfolio_values) == [100, 40, 0, 40]
    assert path.failure_year == 2
    assert path.success is True
    assert path.final_balance == 40


def test_freeze_policy_holds_balance_at_zero(scripted_returns_factory):
    params = SimulationParams(
        initial_portfolio=100,
        annual_withdrawal=60,
        retirement_years=3,
        post_failure_policy=PostFailurePolicy.FREEZE,
    )
    path = simulate_path(params, scripted_returns_factory(RECOVERY_SCRIPT))

    assert list(path.portfolio_values) == [100, 40, 0, 0]
    assert path.failure_year == 2
    assert path.success is False
    assert path.final_balance == 0.0
    assert list(path.withdrawals) == [60, 60, 60]


def test_policies_agree_before_failure(constant_returns_factory):
    continue_params = SimulationParams(initial_portfolio=1_000, annual_withdrawal=100, retirement_years=20)
    freeze_params = SimulationParams(
        initial_portfolio=1_000, annual_withdrawal=100, retirement_years=20,
        post_failure_policy='freeze',
    )
    generator = constant_returns_factory(0.02, 0.03)

    a = simulate_path(continue_params, generator)
    b = simulate_path(freeze_params, generator)

    assert np.array_equal(a.portfolio_values, b.portfolio_values)
    assert a.failure_year == b.failure_year
    assert a.success == b.success is False


def test_identical_stub_gives_identical_paths(constant_returns_factory):
    params = SimulationParams(retirement_years=30)
    generator = constant_returns_factory(0.04, 0.025)

    first = simulate_path(params, generator)
    second = simulate_path(params, generator)

    assert np.array_equal(first.portfolio_values, second.portfolio_values)
    assert np.array_equal(first.withdrawals, second.withdrawals)
    assert first.final_balance == second.final_balance
    # Distinct runs are still distinct paths
    assert first is not second
    assert first != second


def test_recorded_arrays_are_read_only(constant_returns_factory):
    path = simulate_path(SimulationParams(retirement_years=3), constant_returns_factory())
    with pytest.raises(ValueError):
        path.portfolio_values[1] = 123.0
    with pytest.raises(ValueError):
        path.withdrawals[0] = 1.0


def test_zero_withdrawal_with_empty_portfolio_fails(constant_returns_factory):
    """A zero balance is not positive, so it counts as depleted."""
    params = SimulationParams(initial_portfolio=0, annual_withdrawal=0, retirement_years=2)
    path = simulate_path(params, constant_returns_factory(0.1, 0.0))
    assert path.failure_year == 1
    assert path.success is False


# =============================================================================
# Monte Carlo Aggregator
# =============================================================================

def test_calculate_initial_withdrawal():
    assert calculate_initial_withdrawal(1_000_000) == pytest.approx(40_000)
    assert calculate_initial_withdrawal(1_000_000, 0.035) == pytest.approx(35_000)


def test_default_scenario_is_not_degenerate():
    """1M, 40k, 30 years, 60/40, 1000 parametric paths."""
    params = SimulationParams(
        initial_portfolio=1_000_000,
        annual_withdrawal=40_000,
        retirement_years=30,
        allocation=Allocation(0.6, 0.4),
        number_of_simulations=1000,
        return_source=ReturnSource.PARAMETRIC,
        random_seed=42,
    )
    result = run_simulation(params)
    assert 0 < result.success_rate < 100


def test_path_invariants(parametric_result):
    years = parametric_result.params.retirement_years
    for path in parametric_result.paths:
        assert len(path.portfolio_values) == years + 1
        assert len(path.withdrawals) == years
        assert np.all(path.portfolio_values >= 0)
        assert path.final_balance == max(0.0, path.portfolio_values[-1])


def test_all_paths_are_kept(parametric_result):
    assert len(parametric_result.paths) == 500
    assert parametric_result.total_paths == 500
    assert len(set(map(id, parametric_result.paths))) == 500


def test_success_rate_matches_success_count(parametric_result):
    count = sum(1 for p in parametric_result.paths if p.success)
    assert parametric_result.successful_paths == count
    assert parametric_result.success_rate == pytest.approx(100 * count / 500)
    assert 0 <= parametric_result.success_rate <= 100


def test_percentile_ordering(parametric_result):
    r = parametric_result
    assert r.worst_case_balance <= r.median_ending_balance <= r.best_case_balance


def test_percentiles_index_the_sorted_balances(parametric_result):
    n = parametric_result.total_paths
    sorted_balances = sorted(p.final_balance for p in parametric_result.paths)

    assert parametric_result.worst_case_balance == sorted_balances[math.floor(n * 0.05)]
    assert parametric_result.median_ending_balance == sorted_balances[math.floor(n / 2)]
    assert parametric_result.best_case_balance == sorted_balances[math.floor(n * 0.95)]


def test_median_path_is_a_real_path(parametric_result):
    median = parametric_result.median_path
    assert any(median is p for p in parametric_result.paths)
    assert median.final_balance == parametric_result.median_ending_balance


def test_seeded_runs_are_reproducible():
    params = SimulationParams(number_of_simulations=50, retirement_years=20, random_seed=11)
    a = run_simulation(params)
    b = run_simulation(params)
    assert np.array_equal(a.final_balances, b.final_balances)
    assert a.success_rate == b.success_rate


def test_explicit_rng_overrides_seed():
    params = SimulationParams(number_of_simulations=20, retirement_years=10, random_seed=1)
    a = run_simulation(params, rng=np.random.default_rng(2))
    b = run_simulation(SimulationParams(number_of_simulations=20, retirement_years=10, random_seed=2))
    assert np.array_equal(a.final_balances, b.final_balances)


def test_custom_generator_ignores_rng(constant_returns_factory, caplog):
    params = SimulationParams(number_of_simulations=5, retirement_years=3)
    rng = np.random.default_rng(3)
    state = rng.bit_generator.state

    with caplog.at_level(logging.DEBUG, logger='engine.simulation'):
        run_simulation(params, rng=rng, return_generator=constant_returns_factory(0.05, 0.0))

    assert rng.bit_generator.state == state
    assert "ignoring the supplied rng" in caplog.text


def test_historical_mode_runs():
    params = SimulationParams(
        number_of_simulations=200,
        retirement_years=30,
        return_source='historical',
        random_seed=5,
    )
    result = run_simulation(params)
    assert result.total_paths == 200
    assert 0 <= result.success_rate <= 100


def test_ties_keep_generation_order(constant_returns_factory):
    """Every path depletes, so all final balances tie at zero."""
    params = SimulationParams(
        initial_portfolio=100, annual_withdrawal=60, retirement_years=3, number_of_simulations=9,
    )
    result = run_simulation(params, return_generator=constant_returns_factory(0.0, 0.0))

    assert list(result.ranked.order) == list(range(9))
    assert result.median_path is result.paths[4]
    assert result.success_rate == 0.0
    assert result.worst_case_balance == result.best_case_balance == 0.0


def test_single_simulation_percentiles(constant_returns_factory):
    params = SimulationParams(retirement_years=5, number_of_simulations=1)
    result = run_simulation(params, return_generator=constant_returns_factory(0.05, 0.0))

    only = result.paths[0]
    assert result.median_path is only
    assert result.ranked.path_at(0.05) is only
    assert result.ranked.path_at(0.95) is only


def test_rank_paths_sorts_ascending(scripted_returns_factory):
    params = SimulationParams(initial_portfolio=100, annual_withdrawal=0, retirement_years=1)
    generator = scripted_returns_factory([(0.3, 0.0), (-0.1, 0.0), (0.0, 0.0), (-0.1, 0.0)])
    paths = [simulate_path(params, generator) for _ in range(4)]

    ranked = rank_paths(paths)

    # Paths 1 and 3 tie at 90; the earlier one ranks first
    assert list(ranked.order) == [1, 3, 2, 0]
    assert [p.final_balance for p in ranked] == pytest.approx([90, 90, 100, 130])
    assert len(ranked) == 4


# =============================================================================
# Derived Views
# =============================================================================

def test_matrices_and_percentiles(parametric_result):
    years = parametric_result.params.retirement_years
    assert parametric_result.balance_matrix.shape == (500, years + 1)
    assert parametric_result.withdrawal_matrix.shape == (500, years)

    bands = parametric_result.balance_percentiles()
    assert bands.shape == (5, years + 1)
    assert np.all(np.diff(bands, axis=0) >= 0)
    assert np.allclose(bands[:, 0], 1_000_000)


def test_failure_probability_by_year(constant_returns_factory):
    params = SimulationParams(
        initial_portfolio=100, annual_withdrawal=60, retirement_years=3, number_of_simulations=4,
    )
    result = run_simulation(params, return_generator=constant_returns_factory(0.0, 0.0))
    assert list(result.failure_probability_by_year()) == [0.0, 0.0, 1.0, 1.0]


def test_failure_probability_is_cumulative(parametric_result):
    prob = parametric_result.failure_probability_by_year()
    assert prob[0] == 0.0
    assert np.all(np.diff(prob) >= 0)
    assert prob[-1] <= 1.0


def test_summary_stats_frame(parametric_result):
    stats = compute_summary_stats(parametric_result)
    assert isinstance(stats, pd.DataFrame)
    assert list(stats.index) == ['parametric']
    row = stats.loc['parametric']
    assert row['Success Rate (%)'] == pytest.approx(parametric_result.success_rate)
    assert row['Median Final Balance'] == pytest.approx(parametric_result.median_ending_balance)
    assert row['Total Paths'] == 500
