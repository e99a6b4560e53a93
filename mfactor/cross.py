"""Position indices and descending cross-sections over a combined factor table."""

import numpy as np
import pandas as pd
from typing import Dict, Tuple

from .errors import UnknownDateError, UnknownSecurityError

CrossSection = Tuple[Tuple[str, float], ...]


def _sorted_cross(symbols: np.ndarray, values: np.ndarray) -> CrossSection:
    defined = ~np.isnan(values)
    symbols = symbols[defined]
    values = values[defined]
    # stable sort on the negated values keeps universe order among ties
    order = np.argsort(-values, kind='stable')
    return tuple((str(symbols[i]), float(values[i])) for i in order)


class CrossSectionIndex:
    """Lookup tables built once from a calendar x universe factor table.

    Attributes
    ----------
    symbol_index : dict
        Symbol -> column position
    date_index : dict
        pd.Timestamp -> row position
    cross : tuple
        One cross-section per calendar date, each a tuple of
        ``(symbol, value)`` sorted by descending value
    """

    def __init__(self, symbol_index: Dict[str, int], date_index: Dict[pd.Timestamp, int],
                 cross: Tuple[CrossSection, ...]):
        self.symbol_index = symbol_index
        self.date_index = date_index
        self.cross = cross

    @classmethod
    def build(cls, table: pd.DataFrame) -> 'CrossSectionIndex':
        symbol_index = {s: i for i, s in enumerate(table.columns)}
        date_index = {pd.Timestamp(d): i for i, d in enumerate(table.index)}

        symbols = np.asarray(table.columns, dtype=object)
        values = table.to_numpy(dtype=float)
        cross = tuple(_sorted_cross(symbols, row) for row in values)

        return cls(symbol_index, date_index, cross)

    def position_of_symbol(self, symbol: str) -> int:
        try:
            return self.symbol_index[symbol]
        except (KeyError, TypeError):
            raise UnknownSecurityError(symbol) from None

    def position_of_date(self, date) -> int:
        try:
            return self.date_index[pd.Timestamp(date)]
        except (KeyError, TypeError, ValueError):
            raise UnknownDateError(date) from None

    def get_cross(self, date) -> CrossSection:
        return self.cross[self.position_of_date(date)]

    def __len__(self):
        return len(self.cross)
