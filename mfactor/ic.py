"""
Information Coefficient (IC) diagnostics on calendar-aligned frames.

All inputs are timestamps x symbols frames sharing one index. Every
function returns a series over that full index, with NaN wherever the
statistic is undefined (insufficient look-ahead, too few pairs, zero
variance), so callers can iterate whole series and tolerate holes.
"""

import numpy as np
import pandas as pd
from typing import Literal, Optional
from scipy import stats

from .constants import EPSILON, MIN_IC_PAIRS, NEWEY_WEST_MIN_PERIODS


def _replace_inf(frame):
    return frame.replace([np.inf, -np.inf], np.nan)


def forward_returns(prices: pd.DataFrame, ndays: int) -> pd.DataFrame:
    """
    Return from each calendar date to ``ndays`` calendar dates later.

    Parameters
    ----------
    prices : pd.DataFrame
        Close prices, timestamps x symbols
    ndays : int
        Look-ahead in calendar positions, at least 1

    Returns
    -------
    pd.DataFrame
        ``price[t + ndays] / price[t] - 1``; the final ``ndays`` rows are NaN
    """
    if ndays < 1:
        raise ValueError("Forward return horizon must be positive")

    returns = prices.shift(-ndays) / prices - 1
    return _replace_inf(returns)


def daily_ic(
    factors: pd.DataFrame,
    returns: pd.DataFrame,
    method: Literal['spearman', 'pearson'] = 'spearman'
) -> pd.Series:
    """
    Cross-sectional correlation between factor values and forward returns.

    Only symbols with both values defined on a date take part. The IC of
    a date is NaN with fewer than ``MIN_IC_PAIRS`` such symbols or when
    either side is constant across them.

    Parameters
    ----------
    factors : pd.DataFrame
        Factor values, timestamps x symbols
    returns : pd.DataFrame
        Forward returns with the same index and columns
    method : {'spearman', 'pearson'}, default 'spearman'
        Rank (average ranks on ties) or linear correlation

    Returns
    -------
    pd.Series
        IC per date, bounded to [-1, 1]
    """
    if method not in ('spearman', 'pearson'):
        raise ValueError(f"Unknown method: {method}")

    returns = returns.reindex(index=factors.index, columns=factors.columns)
    f_data = _replace_inf(factors)
    r_data = _replace_inf(returns)

    valid = f_data.notna() & r_data.notna()
    f_data = f_data.where(valid)
    r_data = r_data.where(valid)

    if method == 'spearman':
        f_data = f_data.rank(axis=1, method='average', na_option='keep')
        r_data = r_data.rank(axis=1, method='average', na_option='keep')

    f_demean = f_data.sub(f_data.mean(axis=1, skipna=True), axis=0)
    r_demean = r_data.sub(r_data.mean(axis=1, skipna=True), axis=0)

    numer = (f_demean * r_demean).sum(axis=1, skipna=True)
    denom = np.sqrt(f_demean.pow(2).sum(axis=1, skipna=True) *
                    r_demean.pow(2).sum(axis=1, skipna=True))

    # a constant side has no ranking information
    f_varies = f_data.max(axis=1) > f_data.min(axis=1)
    r_varies = r_data.max(axis=1) > r_data.min(axis=1)
    defined = (valid.sum(axis=1) >= MIN_IC_PAIRS) & f_varies & r_varies

    with np.errstate(divide='ignore', invalid='ignore'):
        ic = numer / denom

    ic = ic.where(defined & (denom > 0)).clip(lower=-1.0, upper=1.0)
    ic.name = 'ic'
    return ic.astype(float)


def rolling_icir(ic: pd.Series, ir_n: int) -> pd.Series:
    """
    Rolling IC mean divided by rolling IC standard deviation.

    A value exists at date *t* only when the ``ir_n`` IC values ending at
    *t* are all defined and their sample standard deviation exceeds
    ``EPSILON``. ``ir_n == 1`` therefore yields an all-NaN series.

    Parameters
    ----------
    ic : pd.Series
        IC time series
    ir_n : int
        Window length in calendar positions

    Returns
    -------
    pd.Series
        ICIR per date
    """
    if ir_n < 1:
        raise ValueError("Window must be positive")

    window = ic.rolling(ir_n, min_periods=ir_n)
    mean = window.mean()
    std = window.std()

    icir = (mean / std).where(std > EPSILON)
    icir.name = 'icir'
    return icir.astype(float)


def ic_summary(
    ic: pd.Series,
    newey_west: bool = True,
    lag: Optional[int] = None
) -> dict:
    """
    Calculate IC statistics (mean, std, ICIR, hit rate, etc).

    Parameters
    ----------
    ic : pd.Series
        IC time series
    newey_west : bool, default True
        Apply Newey-West autocorrelation adjustment
    lag : int, optional
        Lag for Newey-West (default: auto)

    Returns
    -------
    dict
        Statistics: mean_ic, std_ic, icir, icir_nw, hit_rate, n_periods,
        t_stat and p_value of the mean IC against zero, etc.
    """
    ic_clean = ic.dropna()

    if len(ic_clean) == 0:
        return {'mean_ic': np.nan, 'std_ic': np.nan, 'icir': np.nan,
                'icir_nw': np.nan, 'hit_rate': np.nan, 'ic_pos_mean': np.nan,
                'ic_neg_mean': np.nan, 'n_periods': 0, 'ic_min': np.nan,
                'ic_max': np.nan, 't_stat': np.nan, 'p_value': np.nan}

    mean_ic = ic_clean.mean()
    std_ic = ic_clean.std()
    icir = mean_ic / std_ic if std_ic > EPSILON else np.nan

    if newey_west and len(ic_clean) > NEWEY_WEST_MIN_PERIODS:
        if lag is None:
            lag = min(int(4 * (len(ic_clean) / 100) ** (2/9)), len(ic_clean) // 4)

        nw_std = _newey_west_std(ic_clean.values, lag)
        icir_nw = mean_ic / nw_std if nw_std > EPSILON else np.nan
    else:
        icir_nw = icir

    if len(ic_clean) > 1 and std_ic > EPSILON:
        t_stat, p_value = stats.ttest_1samp(ic_clean.values, 0.0)
    else:
        t_stat, p_value = np.nan, np.nan

    return {
        'mean_ic': mean_ic,
        'std_ic': std_ic,
        'icir': icir,
        'icir_nw': icir_nw,
        'hit_rate': (ic_clean > 0).mean(),
        'ic_pos_mean': ic_clean[ic_clean > 0].mean() if (ic_clean > 0).any() else 0.0,
        'ic_neg_mean': ic_clean[ic_clean < 0].mean() if (ic_clean < 0).any() else 0.0,
        'n_periods': len(ic_clean),
        'ic_min': ic_clean.min(),
        'ic_max': ic_clean.max(),
        't_stat': t_stat,
        'p_value': p_value,
    }


def _newey_west_std(data: np.ndarray, lag: int) -> float:
    """Newey-West standard error accounting for autocorrelation."""
    n = len(data)
    mean = np.mean(data)

    var = np.sum((data - mean) ** 2) / n

    for k in range(1, lag + 1):
        weight = 1 - k / (lag + 1)
        autocov = np.sum((data[k:] - mean) * (data[:-k] - mean)) / n
        var += 2 * weight * autocov

    return np.sqrt(max(var, 0.0))
