"""Long-format factor container shared by every engine component."""

import pandas as pd
import numpy as np
from typing import Union, Optional, List, Sequence


class Factor:
    """Factor values for many symbols over time.

    Parameters
    ----------
    data : pd.DataFrame or str
        DataFrame with columns (timestamp, symbol, factor) or path to CSV
    name : str, optional
        Factor name

    Attributes
    ----------
    data : pd.DataFrame
        Sorted factor data (timestamp, symbol, factor)
    name : str
        Factor identifier
    """

    def __init__(self, data: Union[pd.DataFrame, str], name: Optional[str] = None):
        if isinstance(data, str):
            df = pd.read_csv(data, parse_dates=['timestamp'], dtype={'symbol': str})
        else:
            df = data.copy()

        if isinstance(df.index, pd.MultiIndex):
            df = df.reset_index()

        if len(df.columns) == 3 and 'factor' not in df.columns:
            df.columns = ['timestamp', 'symbol', 'factor']
        elif 'factor' not in df.columns:
            factor_cols = [col for col in df.columns
                          if col not in ['timestamp', 'symbol']]
            if not factor_cols:
                raise ValueError("No factor column found")
            df = df[['timestamp', 'symbol', factor_cols[0]]]
            df.columns = ['timestamp', 'symbol', 'factor']

        self.data = df[['timestamp', 'symbol', 'factor']].copy()
        self.data['timestamp'] = pd.to_datetime(self.data['timestamp'])
        self.data['symbol'] = self.data['symbol'].astype(str)
        self.data['factor'] = pd.to_numeric(self.data['factor'], errors='coerce')
        self.data = self.data.sort_values(['timestamp', 'symbol']).reset_index(drop=True)
        self.name = name or 'factor'

    @classmethod
    def from_wide(cls, frame: pd.DataFrame, name: Optional[str] = None) -> 'Factor':
        """Build a Factor from a timestamps x symbols frame, dropping NaN cells."""
        stacked = frame.rename_axis(index='timestamp', columns='symbol').stack(future_stack=True)
        df = stacked.rename('factor').reset_index().dropna(subset=['factor'])
        return cls(df, name)

    def to_wide(self, index: Optional[Sequence] = None,
                columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """Pivot to a timestamps x symbols frame.

        ``index`` and ``columns`` reindex the result; cells without data
        are NaN. Duplicate (timestamp, symbol) rows raise ValueError.
        """
        if self.data.duplicated(['timestamp', 'symbol']).any():
            raise ValueError(f"Factor '{self.name}' has duplicate (timestamp, symbol) rows")

        wide = self.data.pivot(index='timestamp', columns='symbol', values='factor')
        wide = wide.astype(float)
        if index is not None:
            wide = wide.reindex(index=pd.DatetimeIndex(index))
        if columns is not None:
            wide = wide.reindex(columns=list(columns))
        wide.index.name = 'timestamp'
        wide.columns.name = 'symbol'
        return wide

    def to_df(self) -> pd.DataFrame:
        return self.data.copy()

    def to_csv(self, path: str) -> str:
        self.data.to_csv(path, index=False)
        return path

    @property
    def symbols(self) -> List[str]:
        return self.data['symbol'].unique().tolist()

    @property
    def timestamps(self) -> pd.DatetimeIndex:
        return pd.DatetimeIndex(self.data['timestamp'].unique())

    def __len__(self) -> int:
        return len(self.data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Factor):
            return NotImplemented
        return self.name == other.name and self.data.equals(other.data)

    __hash__ = None

    def info(self) -> None:
        from .console import print
        n_obs = len(self.data)
        n_symbols = self.data['symbol'].nunique()
        n_nan = self.data['factor'].isna().sum()
        nan_ratio = n_nan / n_obs if n_obs > 0 else 0

        print(f"Factor: {self.name}")
        print(f"  obs={n_obs}, symbols={n_symbols}, period={self._time_range()}")
        print(f"  NaN: {n_nan} ({nan_ratio:.1%})")

    def _time_range(self) -> str:
        if self.data.empty:
            return 'empty'
        return (f"{self.data['timestamp'].min().strftime('%Y-%m-%d')} to "
                f"{self.data['timestamp'].max().strftime('%Y-%m-%d')}")

    def __repr__(self):
        n_obs = len(self.data)
        n_symbols = self.data['symbol'].nunique()
        valid_ratio = self.data['factor'].notna().mean() if n_obs else np.nan
        return (f"Factor(name={self.name}, obs={n_obs}, symbols={n_symbols}, "
               f"valid={valid_ratio:.1%}, period={self._time_range()})")

    def __str__(self):
        n_symbols = self.data['symbol'].nunique()
        return f"Factor({self.name}): {len(self.data)} obs, {n_symbols} symbols"
