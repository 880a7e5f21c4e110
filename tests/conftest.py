"""
Shared fixtures and deterministic return generators for the engine tests.
"""

import numpy as np
import pytest

from engine import SimulationParams, run_simulation


def constant_returns(portfolio_return: float = 0.0, inflation: float = 0.0):
    """Return generator that yields the same market every year."""
    def generator(allocation):
        return (portfolio_return, inflation)
    return generator


def scripted_returns(sequence):
    """Return generator that replays (portfolio_return, inflation) pairs in order."""
    it = iter(sequence)

    def generator(allocation):
        return next(it)
    return generator


@pytest.fixture
def constant_returns_factory():
    return constant_returns


@pytest.fixture
def scripted_returns_factory():
    return scripted_returns


@pytest.fixture(scope="module")
def parametric_result():
    """
    A realistic parametric run, shared across tests in a module.

    Uses module scope to avoid re-running the Monte Carlo for each test.
    """
    params = SimulationParams(
        initial_portfolio=1_000_000,
        annual_withdrawal=40_000,
        retirement_years=30,
        number_of_simulations=500,
        random_seed=7,
    )
    return run_simulation(params)


@pytest.fixture
def rng():
    return np.random.default_rng(12345)
