"""
Core parameter and result dataclasses for the retirement Monte Carlo engine.

This module contains all parameter dataclasses used throughout the engine,
together with the result containers produced by the simulator, the
aggregator and the sample selector.
"""

import json
import math
import numbers
import numpy as np
from dataclasses import dataclass, field, fields
from typing import Optional, Tuple, NamedTuple, Iterator
from enum import Enum


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_WITHDRAWAL_RATE = 0.04      # 4% rule
DEFAULT_STOCK_ALLOCATION = 0.60
DEFAULT_BOND_ALLOCATION = 0.40
DEFAULT_NUMBER_OF_SIMULATIONS = 1000
DEFAULT_RETIREMENT_YEARS = 30

# Percentile ranks used for the headline statistics
WORST_CASE_PERCENTILE = 0.05
MEDIAN_PERCENTILE = 0.50
BEST_CASE_PERCENTILE = 0.95

ALLOCATION_TOLERANCE = 1e-6


def _require_number(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return value


def _require_count(name: str, value) -> int:
    """Whole-number values (including 30.0 from JSON) become int; anything else is rejected."""
    value = _require_number(name, value)
    if not float(value).is_integer() or value < 1:
        raise ValueError(f"{name} must be an integer >= 1, got {value}")
    return int(value)


# =============================================================================
# Enums
# =============================================================================

class ReturnSource(Enum):
    """Where yearly market returns come from."""
    PARAMETRIC = "parametric"  # Independent normal draws per asset class
    HISTORICAL = "historical"  # Uniform resampling of real annual returns


class PostFailurePolicy(Enum):
    """What happens to the working balance once a path has failed."""
    CONTINUE = "continue"  # Keep compounding the (negative) working balance
    FREEZE = "freeze"      # Clamp to zero at failure and hold there


# =============================================================================
# Market Assumptions
# =============================================================================

@dataclass(frozen=True)
class AssetAssumption:
    """Mean and standard deviation of a normally distributed annual rate."""
    mean: float
    std_dev: float


@dataclass(frozen=True)
class MarketAssumptions:
    """Long-run statistics used by the parametric return generator."""
    stocks: AssetAssumption = AssetAssumption(mean=0.07, std_dev=0.18)
    bonds: AssetAssumption = AssetAssumption(mean=0.02, std_dev=0.05)
    inflation: AssetAssumption = AssetAssumption(mean=0.03, std_dev=0.02)


class MarketReturn(NamedTuple):
    """One year's market outcome."""
    portfolio_return: float
    inflation: float


# =============================================================================
# Simulation Parameters
# =============================================================================

@dataclass(frozen=True)
class Allocation:
    """
    Stock/bond split of the portfolio.

    Both fractions must lie in [0, 1] and sum to 1. The return generator
    uses them exactly as given.
    """
    stock: float = DEFAULT_STOCK_ALLOCATION
    bond: float = DEFAULT_BOND_ALLOCATION

    def __post_init__(self):
        for name in ('stock', 'bond'):
            value = _require_number(f"{name} allocation", getattr(self, name))
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} allocation must be between 0 and 1, got {value}")
        total = self.stock + self.bond
        if abs(total - 1.0) > ALLOCATION_TOLERANCE:
            raise ValueError(
                f"Allocation must sum to 1.0, got stock={self.stock} + bond={self.bond} = {total}"
            )

    @classmethod
    def from_stock(cls, stock: float) -> 'Allocation':
        """Build a two-asset allocation from the stock fraction alone."""
        return cls(stock=stock, bond=1.0 - stock)


@dataclass(frozen=True)
class SimulationParams:
    """Parameters for one Monte Carlo retirement run."""
    initial_portfolio: float = 1_000_000
    annual_withdrawal: float = 40_000      # First-year withdrawal, inflated every year
    retirement_years: int = DEFAULT_RETIREMENT_YEARS
    allocation: Allocation = field(default_factory=Allocation)
    number_of_simulations: int = DEFAULT_NUMBER_OF_SIMULATIONS
    return_source: ReturnSource = ReturnSource.PARAMETRIC
    post_failure_policy: PostFailurePolicy = PostFailurePolicy.CONTINUE
    random_seed: Optional[int] = None     # None draws fresh OS entropy

    def __post_init__(self):
        # Accept plain strings for the enum fields (config files, CLI)
        object.__setattr__(self, 'return_source', ReturnSource(self.return_source))
        object.__setattr__(self, 'post_failure_policy', PostFailurePolicy(self.post_failure_policy))
        if isinstance(self.allocation, dict):
            unknown = sorted(set(self.allocation) - {f.name for f in fields(Allocation)})
            if unknown:
                raise ValueError(f"Unknown allocation key(s): {unknown}")
            object.__setattr__(self, 'allocation', Allocation(**self.allocation))
        if not isinstance(self.allocation, Allocation):
            raise ValueError(f"allocation must be an Allocation or mapping, got {self.allocation!r}")

        if _require_number('initial_portfolio', self.initial_portfolio) < 0:
            raise ValueError(f"initial_portfolio must be >= 0, got {self.initial_portfolio}")
        if _require_number('annual_withdrawal', self.annual_withdrawal) < 0:
            raise ValueError(f"annual_withdrawal must be >= 0, got {self.annual_withdrawal}")
        object.__setattr__(
            self, 'retirement_years', _require_count('retirement_years', self.retirement_years))
        object.__setattr__(
            self, 'number_of_simulations',
            _require_count('number_of_simulations', self.number_of_simulations))

    @property
    def stock_allocation(self) -> float:
        return self.allocation.stock

    @property
    def bond_allocation(self) -> float:
        return self.allocation.bond

    @property
    def withdrawal_rate(self) -> float:
        """Initial withdrawal as a fraction of the starting portfolio."""
        if self.initial_portfolio <= 0:
            return 0.0
        return self.annual_withdrawal / self.initial_portfolio

    @classmethod
    def from_dict(cls, data: dict) -> 'SimulationParams':
        """
        Build parameters from a plain mapping (e.g. a parsed JSON config).

        Accepts either a nested ``allocation`` mapping or the flat
        ``stock_allocation``/``bond_allocation`` keys.
        """
        data = dict(data)
        known = {f.name for f in fields(cls)}

        stock = data.pop('stock_allocation', None)
        bond = data.pop('bond_allocation', None)
        if stock is not None or bond is not None:
            if 'allocation' in data:
                raise ValueError("Give either 'allocation' or stock/bond fractions, not both")
            if stock is None:
                stock = 1.0 - _require_number('bond_allocation', bond)
            if bond is None:
                bond = 1.0 - _require_number('stock_allocation', stock)
            data['allocation'] = Allocation(stock=stock, bond=bond)

        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown simulation parameter(s): {unknown}")
        return cls(**data)


def load_params(path: str) -> SimulationParams:
    """Load simulation parameters from a JSON file."""
    with open(path, 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must contain a JSON object")
    return SimulationParams.from_dict(data)


# =============================================================================
# Result Dataclasses
# =============================================================================

@dataclass(frozen=True, eq=False)
class SimulationPath:
    """
    One simulated retirement trajectory.

    Paths compare by identity: two separately simulated paths are distinct
    even if their numbers happen to match.
    """
    portfolio_values: np.ndarray        # (years + 1,) floored at 0, [0] = initial balance
    withdrawals: np.ndarray             # (years,) inflated withdrawal each year
    success: bool                       # Working balance still positive after the last year
    failure_year: Optional[int]         # First year the pre-floor balance hit <= 0
    final_balance: float                # max(0, working balance)

    @property
    def years(self) -> int:
        return len(self.withdrawals)

    @property
    def total_withdrawn(self) -> float:
        return float(np.sum(self.withdrawals))


@dataclass(frozen=True, eq=False)
class RankedPaths:
    """
    Paths ranked ascending by final balance.

    ``order[k]`` is the index (into generation order) of the path at rank k.
    Ties keep generation order.
    """
    paths: Tuple[SimulationPath, ...]
    order: np.ndarray

    def __len__(self) -> int:
        return len(self.order)

    def index_at(self, p: float) -> int:
        """Generation index of the path at rank floor(n * p)."""
        rank = math.floor(len(self.order) * p)
        rank = min(rank, len(self.order) - 1)
        return int(self.order[rank])

    def path_at(self, p: float) -> SimulationPath:
        return self.paths[self.index_at(p)]

    def balance_at(self, p: float) -> float:
        return self.path_at(p).final_balance

    def __iter__(self) -> Iterator[SimulationPath]:
        return (self.paths[i] for i in self.order)


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """
    Aggregate result of a Monte Carlo run.

    ``paths`` keeps generation order; ``ranked`` is the single sorted view
    used for every percentile lookup.
    """
    success_rate: float                 # Percentage of successful paths (0-100)
    successful_paths: int
    total_paths: int
    median_ending_balance: float
    worst_case_balance: float           # 5th percentile final balance
    best_case_balance: float            # 95th percentile final balance
    median_path: SimulationPath
    paths: Tuple[SimulationPath, ...]
    ranked: RankedPaths
    params: SimulationParams

    @property
    def final_balances(self) -> np.ndarray:
        """Final balances in generation order. Shape: (n_paths,)"""
        return np.array([p.final_balance for p in self.paths])

    @property
    def balance_matrix(self) -> np.ndarray:
        """Recorded balances. Shape: (n_paths, years + 1)"""
        return np.vstack([p.portfolio_values for p in self.paths])

    @property
    def withdrawal_matrix(self) -> np.ndarray:
        """Withdrawals. Shape: (n_paths, years)"""
        return np.vstack([p.withdrawals for p in self.paths])

    @property
    def failure_years(self) -> np.ndarray:
        """Failure year per path (NaN where the path never failed)."""
        return np.array([
            np.nan if p.failure_year is None else p.failure_year
            for p in self.paths
        ])

    def balance_percentiles(self, percentiles=(5, 25, 50, 75, 95)) -> np.ndarray:
        """
        Percentiles of recorded balances for every year.

        Returns:
            Array of shape [n_percentiles, years + 1]
        """
        return np.percentile(self.balance_matrix, list(percentiles), axis=0)

    def failure_probability_by_year(self) -> np.ndarray:
        """
        Cumulative share of paths that have failed by the end of each year.

        Returns:
            Array of shape [years + 1]; entry 0 is always 0.
        """
        years = self.params.retirement_years
        failed_by = np.zeros(years + 1)
        for fy in self.failure_years:
            if not np.isnan(fy):
                failed_by[int(fy):] += 1
        return failed_by / self.total_paths


@dataclass(frozen=True)
class SampleRun:
    """A selected path together with where it sits in the result."""
    kind: str                           # 'best_case', 'worst_case', ...
    index: int                          # Generation index in SimulationResult.paths
    path: SimulationPath

    @property
    def label(self) -> str:
        return SAMPLE_RUN_LABELS[self.kind]


SAMPLE_RUN_LABELS = {
    'best_case': '95th Percentile (Best Case)',
    'worst_case': '5th Percentile (Worst Case)',
    'median': '50th Percentile (Median)',
    'random_success': 'Random Successful Run',
    'random_failure': 'Random Failed Run',
}


@dataclass(frozen=True)
class SampleRunSelection:
    """Representative paths chosen for drill-down display."""
    best_case: SampleRun
    worst_case: SampleRun
    median: SampleRun
    random_success: Optional[SampleRun]   # None only if no path succeeded
    random_failure: Optional[SampleRun]   # None if no path failed

    def runs(self) -> Iterator[SampleRun]:
        """Selected runs in display order, skipping missing ones."""
        for kind in SAMPLE_RUN_LABELS:
            run = getattr(self, kind)
            if run is not None:
                yield run


@dataclass(frozen=True)
class YearDetail:
    """Reconstructed per-year view of a path."""
    year: int                           # 1-based year of retirement
    starting_balance: float
    market_return: float                # Inferred from balances and withdrawal
    withdrawal: float
    ending_balance: float
