"""
Market return generation for the retirement Monte Carlo engine.

Two sources of yearly (portfolio return, inflation) samples:
- Parametric: independent normal draws per asset class via Box-Muller
- Historical: uniform resampling (with replacement) of real annual returns

Randomness always comes from an explicit numpy Generator so callers can
seed it, or replace the whole generator with a deterministic stub.
"""

import numpy as np
from typing import Callable, Sequence, Tuple

from .params import (
    Allocation,
    MarketAssumptions,
    MarketReturn,
    ReturnSource,
)
from .historical import HISTORICAL_RETURNS, YearlyReturn, random_historical_year


# Anything that maps an allocation to one year's (portfolio_return, inflation)
ReturnGenerator = Callable[[Allocation], Tuple[float, float]]


# =============================================================================
# Normal Draws
# =============================================================================

def box_muller_normal(mean: float, std_dev: float, rng: np.random.Generator) -> float:
    """
    Draw one normal deviate with the Box-Muller transform.

        z = sqrt(-2 ln u1) * cos(2 pi u2)

    u1 is taken from (0, 1] so the log is always finite.
    """
    u1 = 1.0 - rng.random()
    u2 = rng.random()
    z = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
    return mean + std_dev * z


# =============================================================================
# Return Generators
# =============================================================================

def generate_parametric_return(
    allocation: Allocation,
    rng: np.random.Generator,
    assumptions: MarketAssumptions = None,
) -> MarketReturn:
    """
    Allocation-weighted normal return plus a normal inflation draw.

    Draw order is stocks, bonds, inflation. Negative inflation is clamped to 0.
    """
    if assumptions is None:
        assumptions = MarketAssumptions()

    stock_return = box_muller_normal(assumptions.stocks.mean, assumptions.stocks.std_dev, rng)
    bond_return = box_muller_normal(assumptions.bonds.mean, assumptions.bonds.std_dev, rng)
    inflation = box_muller_normal(assumptions.inflation.mean, assumptions.inflation.std_dev, rng)

    portfolio_return = stock_return * allocation.stock + bond_return * allocation.bond

    return MarketReturn(float(portfolio_return), float(max(0.0, inflation)))


def generate_historical_return(
    allocation: Allocation,
    rng: np.random.Generator,
    table: Sequence[YearlyReturn] = HISTORICAL_RETURNS,
) -> MarketReturn:
    """
    Allocation-weighted return of one randomly chosen historical year.

    The year's inflation is passed through unmodified (deflation included).
    """
    record = random_historical_year(rng, table)
    portfolio_return = record.equity_return * allocation.stock + record.bond_return * allocation.bond
    return MarketReturn(portfolio_return, record.inflation_rate)


def generate_return(
    allocation: Allocation,
    source: ReturnSource,
    rng: np.random.Generator,
    assumptions: MarketAssumptions = None,
    table: Sequence[YearlyReturn] = HISTORICAL_RETURNS,
) -> MarketReturn:
    """Draw one year's (portfolio_return, inflation) from the chosen source."""
    source = ReturnSource(source)
    if source == ReturnSource.HISTORICAL:
        return generate_historical_return(allocation, rng, table)
    return generate_parametric_return(allocation, rng, assumptions)


def make_return_generator(
    source: ReturnSource,
    rng: np.random.Generator,
    assumptions: MarketAssumptions = None,
    table: Sequence[YearlyReturn] = HISTORICAL_RETURNS,
) -> ReturnGenerator:
    """Bind a source and random stream into a ReturnGenerator."""
    source = ReturnSource(source)

    def generator(allocation: Allocation) -> MarketReturn:
        return generate_return(allocation, source, rng, assumptions, table)

    return generator
