"""
Historical annual market returns, 1970-2024.

Sources:
- S&P 500 total return (dividends reinvested)
- 10-year Treasury total return
- CPI-U inflation

Values are decimal fractions (0.10 = 10%). The 2024 row is an estimate.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class YearlyReturn:
    """Recorded returns for one calendar year."""
    year: int
    equity_return: float     # S&P 500 total return
    bond_return: float       # 10-year Treasury return
    inflation_rate: float    # CPI inflation


HISTORICAL_RETURNS: Tuple[YearlyReturn, ...] = (
    YearlyReturn(1970, 0.0401, 0.0812, 0.0574),
    YearlyReturn(1971, 0.1431, 0.0920, 0.0440),
    YearlyReturn(1972, 0.1898, 0.0543, 0.0327),
    YearlyReturn(1973, -0.1466, 0.0394, 0.0621),
    YearlyReturn(1974, -0.2647, 0.0569, 0.1103),
    YearlyReturn(1975, 0.3720, 0.0919, 0.0913),
    YearlyReturn(1976, 0.2384, 0.1175, 0.0586),
    YearlyReturn(1977, -0.0718, 0.0471, 0.0651),
    YearlyReturn(1978, 0.0656, 0.0741, 0.0761),
    YearlyReturn(1979, 0.1844, 0.0578, 0.1135),
    YearlyReturn(1980, 0.3242, 0.0367, 0.1355),
    YearlyReturn(1981, -0.0491, 0.1540, 0.1025),
    YearlyReturn(1982, 0.2155, 0.3209, 0.0619),
    YearlyReturn(1983, 0.2256, 0.0235, 0.0323),
    YearlyReturn(1984, 0.0627, 0.1543, 0.0439),
    YearlyReturn(1985, 0.3165, 0.3097, 0.0356),
    YearlyReturn(1986, 0.1847, 0.2422, 0.0186),
    YearlyReturn(1987, 0.0525, 0.0270, 0.0368),
    YearlyReturn(1988, 0.1661, 0.0853, 0.0413),
    YearlyReturn(1989, 0.3169, 0.1811, 0.0480),
    YearlyReturn(1990, -0.0310, 0.0818, 0.0540),
    YearlyReturn(1991, 0.3047, 0.1792, 0.0424),
    YearlyReturn(1992, 0.0762, 0.0805, 0.0303),
    YearlyReturn(1993, 0.1008, 0.1517, 0.0296),
    YearlyReturn(1994, 0.0132, -0.0773, 0.0261),
    YearlyReturn(1995, 0.3758, 0.2341, 0.0281),
    YearlyReturn(1996, 0.2296, 0.0043, 0.0298),
    YearlyReturn(1997, 0.3336, 0.0959, 0.0233),
    YearlyReturn(1998, 0.2858, 0.1302, 0.0155),
    YearlyReturn(1999, 0.2104, -0.0751, 0.0219),
    YearlyReturn(2000, -0.0910, 0.1660, 0.0338),
    YearlyReturn(2001, -0.1189, 0.0551, 0.0283),
    YearlyReturn(2002, -0.2210, 0.1515, 0.0159),
    YearlyReturn(2003, 0.2869, 0.0238, 0.0227),
    YearlyReturn(2004, 0.1088, 0.0481, 0.0268),
    YearlyReturn(2005, 0.0491, 0.0293, 0.0339),
    YearlyReturn(2006, 0.1579, 0.0197, 0.0323),
    YearlyReturn(2007, 0.0549, 0.0984, 0.0285),
    YearlyReturn(2008, -0.3700, 0.2025, 0.0385),
    YearlyReturn(2009, 0.2646, -0.0822, -0.0036),
    YearlyReturn(2010, 0.1506, 0.0854, 0.0164),
    YearlyReturn(2011, 0.0211, 0.1675, 0.0316),
    YearlyReturn(2012, 0.1600, 0.0297, 0.0207),
    YearlyReturn(2013, 0.3239, -0.0901, 0.0150),
    YearlyReturn(2014, 0.1369, 0.1086, 0.0076),
    YearlyReturn(2015, 0.0138, 0.0087, 0.0012),
    YearlyReturn(2016, 0.1196, 0.0069, 0.0131),
    YearlyReturn(2017, 0.2183, 0.0241, 0.0213),
    YearlyReturn(2018, -0.0438, 0.0002, 0.0244),
    YearlyReturn(2019, 0.3157, 0.0850, 0.0181),
    YearlyReturn(2020, 0.1840, 0.1104, 0.0124),
    YearlyReturn(2021, 0.2889, -0.0243, 0.0470),
    YearlyReturn(2022, -0.1811, -0.1731, 0.0801),
    YearlyReturn(2023, 0.2643, 0.0297, 0.0410),
    YearlyReturn(2024, 0.2500, 0.0450, 0.0335),
)


@dataclass(frozen=True)
class SeriesStats:
    """Summary of one historical series."""
    mean: float
    min: float
    max: float


@dataclass(frozen=True)
class HistoricalStats:
    """Summary of a historical returns table."""
    equity: SeriesStats
    bonds: SeriesStats
    inflation: SeriesStats
    start_year: int
    end_year: int
    total_years: int


def random_historical_year(
    rng: np.random.Generator,
    table: Sequence[YearlyReturn] = HISTORICAL_RETURNS,
) -> YearlyReturn:
    """Pick one year uniformly at random. Each call is independent."""
    return table[int(rng.integers(len(table)))]


def get_historical_return(
    year: int,
    table: Sequence[YearlyReturn] = HISTORICAL_RETURNS,
) -> Optional[YearlyReturn]:
    """Look up a calendar year, or None if the table does not cover it."""
    for record in table:
        if record.year == year:
            return record
    return None


def _series_stats(values: np.ndarray) -> SeriesStats:
    return SeriesStats(
        mean=float(np.mean(values)),
        min=float(np.min(values)),
        max=float(np.max(values)),
    )


def calculate_historical_stats(
    table: Sequence[YearlyReturn] = HISTORICAL_RETURNS,
) -> HistoricalStats:
    """Mean/min/max of each series and the covered year range."""
    equity = np.array([r.equity_return for r in table])
    bonds = np.array([r.bond_return for r in table])
    inflation = np.array([r.inflation_rate for r in table])

    return HistoricalStats(
        equity=_series_stats(equity),
        bonds=_series_stats(bonds),
        inflation=_series_stats(inflation),
        start_year=table[0].year,
        end_year=table[-1].year,
        total_years=len(table),
    )
