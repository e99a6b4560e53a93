"""Multi-factor synthesis engine.

``MultiFactor`` aligns its input factors onto the reference calendar of
one symbol, hands them to a combiner, and serves the combined factor,
its descending cross-sections and its IC / ICIR diagnostics. Everything
derived is computed together, once, on first access, and is read-only
afterwards.
"""

import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .aligner import align_all, align_prices, reference_calendar
from .combiner import CombineContext, EqualWeight, combiner_from_dict, combiner_to_dict
from .constants import (
    CONFIG_FILE, CONFIG_VERSION, DEFAULT_IC_N, FACTORS_DIR, PANEL_FILE,
)
from .core import Factor
from .cross import CrossSectionIndex
from .ic import daily_ic, forward_returns, ic_summary, rolling_icir
from .logging import get_logger, log_execution_time
from .panel import Panel
from .query import Query

logger = get_logger(__name__)

_DEFAULT_PARAMS = {
    'ic_n': DEFAULT_IC_N,
    'use_spearman': True,
}


class ComputeOnce:
    """Run a function at most once successfully and publish its result.

    The first caller of ``get`` runs the function while holding the lock;
    concurrent callers block on the lock and then read the published
    result. A raising function publishes nothing, so the next ``get``
    tries again. The function must not call ``get`` on the same gate.
    """

    def __init__(self, func: Callable):
        self._func = func
        self._lock = threading.Lock()
        self._value = None

    @property
    def is_set(self) -> bool:
        return self._value is not None

    def get(self):
        value = self._value
        if value is None:
            with self._lock:
                value = self._value
                if value is None:
                    value = self._func()
                    self._value = value
        return value

    @contextmanager
    def locked(self):
        """Hold the gate lock, waiting for any running calculation to finish."""
        with self._lock:
            yield


class _Derived(NamedTuple):
    table: pd.DataFrame
    prices: pd.DataFrame
    index: CrossSectionIndex
    ic: pd.Series
    ic_n: int
    method: str


def _check_int(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")


def _validate_param(name: str, value):
    if name not in _DEFAULT_PARAMS:
        raise ValueError(f"Unknown parameter: {name}. Must be one of {list(_DEFAULT_PARAMS)}")
    if name == 'ic_n':
        _check_int(name, value)
        if value < 1:
            raise ValueError("ic_n must be positive")
    elif name == 'use_spearman' and not isinstance(value, bool):
        raise TypeError("use_spearman must be a bool")


class MultiFactor:
    """Combined factor over a universe, with cross-sections and IC diagnostics.

    Parameters
    ----------
    factors : list of Factor
        Input factors; each covers any subset of the universe
    symbols : list of str
        Universe, in the order every per-symbol result follows
    panel : Panel
        Market data with a ``close`` column; source of the reference
        calendar and of forward returns
    ref_symbol : str
        Symbol whose bars define the reference calendar
    query : Query, optional
        Range of the reference symbol's bars to use (default: all)
    combiner : callable, optional
        ``combiner(inputs, context) -> DataFrame`` (default: ``EqualWeight()``)
    name : str, default 'MultiFactor'
        Engine name
    **params
        ``ic_n`` (int, default 5): default IC horizon in calendar dates.
        ``use_spearman`` (bool, default True): rank IC, else Pearson.

    Examples
    --------
    >>> mf = MultiFactor([momentum, value], ['BTC', 'ETH', 'SOL'], panel, 'BTC', ic_n=5)
    >>> mf.get_cross('2024-03-01')
    [('SOL', 1.2), ('BTC', 0.3), ('ETH', -1.5)]
    >>> mf.get_icir(20).dropna().mean()
    """

    def __init__(self, factors: Union[Factor, Sequence[Factor]], symbols: Sequence[str],
                 panel: Panel, ref_symbol: str, query: Optional[Query] = None,
                 combiner: Optional[Callable] = None, name: str = 'MultiFactor',
                 **params):
        if isinstance(factors, Factor):
            factors = [factors]
        factors = list(factors)
        if not factors:
            raise ValueError("Must provide at least one factor")
        if not all(isinstance(f, Factor) for f in factors):
            raise TypeError("factors must be a Factor or list of Factors.")

        symbols = [str(s) for s in symbols]
        if not symbols:
            raise ValueError("Must provide at least one security")
        if len(set(symbols)) != len(symbols):
            raise ValueError("Universe contains duplicate symbols")

        if not isinstance(panel, Panel):
            raise TypeError("panel must be a Panel object.")
        if 'close' not in panel.columns:
            raise ValueError("Panel must have a 'close' column")

        combiner = combiner if combiner is not None else EqualWeight()
        if not callable(combiner):
            raise TypeError("combiner must be callable")

        self._params = dict(_DEFAULT_PARAMS)
        for key, value in params.items():
            _validate_param(key, value)
            self._params[key] = value

        self._name = name
        self._factors = factors
        self._symbols = symbols
        self._panel = panel
        self._ref_symbol = str(ref_symbol)
        self._query = query if query is not None else Query.by_date()
        self._combiner = combiner

        self._ref_dates = reference_calendar(panel, self._ref_symbol, self._query)
        self._gate = ComputeOnce(self._calculate_all)

    # ==================== Configuration ====================

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value

    @property
    def factors(self) -> List[Factor]:
        return list(self._factors)

    @property
    def symbols(self) -> List[str]:
        return list(self._symbols)

    @property
    def panel(self) -> Panel:
        return self._panel

    @property
    def ref_symbol(self) -> str:
        return self._ref_symbol

    @property
    def combiner(self) -> Callable:
        return self._combiner

    @property
    def is_calculated(self) -> bool:
        return self._gate.is_set

    def get_datetime_list(self) -> pd.DatetimeIndex:
        return self._ref_dates

    def get_query(self) -> Query:
        return self._query

    def get_param(self, name: str):
        if name not in self._params:
            raise ValueError(f"Unknown parameter: {name}. Must be one of {list(self._params)}")
        return self._params[name]

    def get_params(self) -> dict:
        return dict(self._params)

    def set_param(self, name: str, value) -> None:
        """Change a parameter; only allowed before the first calculation."""
        _validate_param(name, value)
        with self._gate.locked():
            if self.is_calculated:
                raise RuntimeError("Parameters are frozen once calculated; use clone() first")
            self._params[name] = value

    # ==================== Calculation ====================

    def _derived(self) -> _Derived:
        return self._gate.get()

    def _check_table(self, table) -> pd.DataFrame:
        if not isinstance(table, pd.DataFrame):
            raise TypeError(f"Combiner must return a DataFrame, got {type(table).__name__}")

        same_dates = table.index.equals(self._ref_dates)
        same_symbols = list(table.columns) == self._symbols
        if not (same_dates and same_symbols):
            if (len(table.index) != len(self._ref_dates) or
                    set(table.index) != set(self._ref_dates) or
                    len(table.columns) != len(self._symbols) or
                    set(table.columns) != set(self._symbols)):
                raise ValueError("Combiner output must cover exactly the reference dates and universe")
            table = table.reindex(index=self._ref_dates, columns=self._symbols)

        table = table.astype(float)
        table.index.name = 'timestamp'
        table.columns.name = 'symbol'
        return table

    @log_execution_time(label='multi-factor calculation')
    def _calculate_all(self) -> _Derived:
        dates, symbols = self._ref_dates, self._symbols
        params = dict(self._params)
        ic_n = params['ic_n']
        logger.debug("Calculating multi-factor", name=self._name, factors=len(self._factors),
                     symbols=len(symbols), dates=len(dates))

        inputs = align_all(self._factors, dates, symbols)
        prices = align_prices(self._panel, dates, symbols)
        returns = forward_returns(prices, ic_n)

        context = CombineContext(dates, tuple(symbols), returns, ic_n, params['use_spearman'])
        table = self._check_table(self._combiner(inputs, context))

        index = CrossSectionIndex.build(table)
        ic = daily_ic(table, returns, context.method)

        logger.info("Calculated multi-factor", name=self._name, symbols=len(symbols),
                    dates=len(dates), ic_defined=int(ic.notna().sum()))
        return _Derived(table, prices, index, ic, ic_n, context.method)

    # ==================== Accessors ====================

    def get_factor(self, symbol: str) -> pd.Series:
        """Combined factor of ``symbol`` over the reference calendar.

        Raises
        ------
        UnknownSecurityError
            If ``symbol`` is not in the universe.
        """
        derived = self._derived()
        pos = derived.index.position_of_symbol(symbol)
        return derived.table.iloc[:, pos].copy()

    def get_all_factors(self) -> List[pd.Series]:
        """Combined factors of every symbol, in universe order."""
        table = self._derived().table
        return [table.iloc[:, i].copy() for i in range(table.shape[1])]

    def get_cross(self, date) -> List[Tuple[str, float]]:
        """``(symbol, value)`` pairs defined on ``date``, descending by value.

        Ties keep universe order. A known date without any value gives an
        empty list; a date outside the calendar raises ``UnknownDateError``.
        """
        return list(self._derived().index.get_cross(date))

    def get_all_cross(self) -> List[List[Tuple[str, float]]]:
        """One cross-section per calendar date, in calendar order."""
        return [list(cross) for cross in self._derived().index.cross]

    @staticmethod
    def _check_horizon(ndays: int) -> None:
        _check_int('ndays', ndays)
        if ndays < 0:
            raise ValueError("IC horizon must not be negative")

    def get_ic(self, ndays: int = 0) -> pd.Series:
        """IC of the combined factor against ``ndays``-date forward returns.

        Parameters
        ----------
        ndays : int, default 0
            Forward horizon; 0 means the ``ic_n`` parameter.

        Returns
        -------
        pd.Series
            IC per calendar date, NaN where undefined
        """
        self._check_horizon(ndays)
        derived = self._derived()
        # 0 is reserved for the ic_n the cached IC was calculated with
        if ndays in (0, derived.ic_n):
            return derived.ic.copy()
        return daily_ic(derived.table, forward_returns(derived.prices, ndays), derived.method)

    def get_icir(self, ir_n: int, ic_n: int = 0) -> pd.Series:
        """Rolling ICIR over ``ir_n`` dates of the ``ic_n``-horizon IC (0: ``ic_n`` parameter)."""
        _check_int('ir_n', ir_n)
        if ir_n < 1:
            raise ValueError("Window must be positive")
        self._check_horizon(ic_n)
        return rolling_icir(self.get_ic(ic_n), ir_n)

    def get_ic_summary(self, ndays: int = 0, newey_west: bool = True) -> dict:
        return ic_summary(self.get_ic(ndays), newey_west=newey_west)

    def to_factor(self) -> Factor:
        """Combined table as a long-format Factor named after the engine."""
        return Factor.from_wide(self._derived().table, self._name)

    def clone(self) -> 'MultiFactor':
        """Uncalculated engine with the same configuration."""
        return MultiFactor(self._factors, self._symbols, self._panel, self._ref_symbol,
                           query=self._query, combiner=self._combiner, name=self._name,
                           **self._params)

    # ==================== Persistence ====================

    def save(self, path: Union[str, Path]) -> str:
        """Write the configuration to directory ``path``.

        Only inputs are written; derived state is rebuilt after ``load``.
        """
        combiner = combiner_to_dict(self._combiner)
        root = Path(path)
        (root / FACTORS_DIR).mkdir(parents=True, exist_ok=True)

        config = {
            'version': CONFIG_VERSION,
            'name': self._name,
            'params': self._params,
            'symbols': self._symbols,
            'ref_symbol': self._ref_symbol,
            'query': self._query.to_dict(),
            'combiner': combiner,
            'factors': [],
        }

        for i, factor in enumerate(self._factors):
            rel = f"{FACTORS_DIR}/factor_{i}.csv"
            factor.to_csv(str(root / rel))
            config['factors'].append({'name': factor.name, 'file': rel})

        self._panel.to_csv(str(root / PANEL_FILE))
        (root / CONFIG_FILE).write_text(json.dumps(config, indent=2), encoding='utf-8')

        logger.debug("Saved multi-factor", name=self._name, path=str(root))
        return str(root)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'MultiFactor':
        root = Path(path)
        config = json.loads((root / CONFIG_FILE).read_text(encoding='utf-8'))

        version = config.get('version')
        if version != CONFIG_VERSION:
            raise ValueError(f"Unsupported config version: {version}")

        factors = [Factor(str(root / item['file']), item['name']) for item in config['factors']]
        panel = Panel.from_csv(str(root / PANEL_FILE))

        return cls(factors, config['symbols'], panel, config['ref_symbol'],
                   query=Query.from_dict(config['query']),
                   combiner=combiner_from_dict(config['combiner']),
                   name=config['name'], **config['params'])

    # ==================== Display ====================

    def info(self) -> None:
        from .console import console, Table

        table = Table(title=f"MultiFactor: {self._name}")
        table.add_column("Field")
        table.add_column("Value")
        table.add_row("factors", ', '.join(f.name for f in self._factors))
        table.add_row("symbols", str(len(self._symbols)))
        table.add_row("reference", self._ref_symbol)
        table.add_row("dates", f"{len(self._ref_dates)} ({self._ref_dates[0]:%Y-%m-%d} to "
                               f"{self._ref_dates[-1]:%Y-%m-%d})")
        table.add_row("combiner", repr(self._combiner))
        table.add_row("params", str(self._params))
        table.add_row("calculated", str(self.is_calculated))
        console.print(table)

    def __repr__(self):
        return (f"MultiFactor(name={self._name}, factors={len(self._factors)}, "
                f"symbols={len(self._symbols)}, dates={len(self._ref_dates)}, "
                f"combiner={self._combiner!r}, calculated={self.is_calculated})")
