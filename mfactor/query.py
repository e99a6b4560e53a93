"""Date-range query selecting the reference calendar from a symbol's bars."""

import numpy as np
import pandas as pd
from typing import Optional, Union

DateLike = Union[str, pd.Timestamp, None]


class Query:
    """Range of bars to use, by date or by bar position.

    ``Query.by_date(start, end)`` keeps timestamps with ``start <= t < end``;
    either bound may be open. ``Query.by_index(start, end)`` keeps bars by
    position with Python slice semantics, so ``Query.by_index(-20)``
    selects the last twenty bars.
    """

    DATE = 'date'
    INDEX = 'index'

    def __init__(self, kind: str = DATE, start=None, end=None):
        if kind not in (self.DATE, self.INDEX):
            raise ValueError(f"Invalid query kind: {kind}. Must be 'date' or 'index'")

        if kind == self.DATE:
            start = pd.Timestamp(start) if start is not None else None
            end = pd.Timestamp(end) if end is not None else None
            if start is not None and end is not None and start > end:
                raise ValueError("Query start must not be after end")
        else:
            for bound in (start, end):
                if bound is not None and not isinstance(bound, int):
                    raise TypeError("Index query bounds must be int or None")

        self.kind = kind
        self.start = start
        self.end = end

    @classmethod
    def by_date(cls, start: DateLike = None, end: DateLike = None) -> 'Query':
        return cls(cls.DATE, start, end)

    @classmethod
    def by_index(cls, start: Optional[int] = 0, end: Optional[int] = None) -> 'Query':
        return cls(cls.INDEX, start, end)

    def apply(self, dates: pd.DatetimeIndex) -> pd.DatetimeIndex:
        """Select the part of a sorted DatetimeIndex covered by this query."""
        dates = pd.DatetimeIndex(dates)
        if self.kind == self.INDEX:
            return dates[self.start:self.end]

        mask = np.ones(len(dates), dtype=bool)
        if self.start is not None:
            mask &= dates >= self.start
        if self.end is not None:
            mask &= dates < self.end
        return dates[mask]

    def to_dict(self) -> dict:
        if self.kind == self.DATE:
            start = self.start.isoformat() if self.start is not None else None
            end = self.end.isoformat() if self.end is not None else None
        else:
            start, end = self.start, self.end
        return {'kind': self.kind, 'start': start, 'end': end}

    @classmethod
    def from_dict(cls, data: dict) -> 'Query':
        return cls(data['kind'], data.get('start'), data.get('end'))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return (self.kind, self.start, self.end) == (other.kind, other.start, other.end)

    def __hash__(self):
        return hash((self.kind, self.start, self.end))

    def __repr__(self):
        return f"Query({self.kind}, start={self.start}, end={self.end})"
