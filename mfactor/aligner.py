"""Align per-symbol factor series onto a shared reference calendar.

Every structure built by the engine is a timestamps x symbols frame whose
index is the reference calendar and whose columns follow the universe
order. Cells without native data stay NaN: the aligner never fills,
interpolates or zeroes missing values.
"""

import pandas as pd
from typing import List, Sequence

from .core import Factor
from .panel import Panel
from .query import Query
from .logging import get_logger

logger = get_logger(__name__)


def reference_calendar(panel: Panel, ref_symbol: str, query: Query) -> pd.DatetimeIndex:
    """Dates of ``ref_symbol``'s bars in ``panel`` selected by ``query``.

    Raises
    ------
    ValueError
        If the reference symbol is absent from the panel or the query
        selects no dates.
    """
    dates = query.apply(panel.dates_for(ref_symbol))
    if len(dates) == 0:
        raise ValueError(f"Reference calendar is empty for '{ref_symbol}' with {query!r}")
    return pd.DatetimeIndex(dates, name='timestamp')


def align_factor(factor: Factor, dates: pd.DatetimeIndex, symbols: Sequence[str]) -> pd.DataFrame:
    """Re-index one input factor onto the calendar and universe.

    Symbols with no value on any calendar date keep an all-NaN column.
    """
    wide = factor.to_wide(index=dates, columns=symbols)

    empty = [s for s in symbols if wide[s].isna().all()]
    if empty:
        logger.warning("Symbols without calendar overlap", factor=factor.name, symbols=empty)

    return wide


def align_all(factors: Sequence[Factor], dates: pd.DatetimeIndex,
              symbols: Sequence[str]) -> List[pd.DataFrame]:
    """Align every input factor, preserving input order."""
    return [align_factor(f, dates, symbols) for f in factors]


def align_prices(panel: Panel, dates: pd.DatetimeIndex, symbols: Sequence[str],
                 column: str = 'close') -> pd.DataFrame:
    """Prices from ``panel[column]`` on the calendar, one column per symbol."""
    return panel[column].to_wide(index=dates, columns=symbols)
