"""Shared pytest fixtures for mfactor tests."""

import pytest
import pandas as pd
import numpy as np


@pytest.fixture
def sample_dates():
    """Generate 60 consecutive dates starting from 2024-01-01."""
    return pd.date_range('2024-01-01', periods=60, freq='D')


@pytest.fixture
def sample_symbols():
    """Standard test symbols matching real usage patterns."""
    return ['BTC', 'ETH', 'SOL', 'ARB', 'OP', 'POL']


@pytest.fixture
def sample_panel_data(sample_dates, sample_symbols):
    """Create sample OHLCV data with realistic price structure.

    Returns DataFrame with columns: timestamp, symbol, open, high, low, close, volume
    """
    data = []
    rng = np.random.default_rng(42)

    base_prices = {'BTC': 40000, 'ETH': 2000, 'SOL': 100, 'ARB': 1.5, 'OP': 2.0, 'POL': 0.8}

    for symbol in sample_symbols:
        price = base_prices.get(symbol, 100)

        for date in sample_dates:
            price = price * (1 + rng.normal() * 0.03)
            high = price * (1 + abs(rng.normal()) * 0.01)
            low = price * (1 - abs(rng.normal()) * 0.01)

            data.append({
                'timestamp': date,
                'symbol': symbol,
                'open': low + (high - low) * rng.random(),
                'high': high,
                'low': low,
                'close': price,
                'volume': max(1000 * (1 + rng.normal() * 0.3), 0),
            })

    return pd.DataFrame(data)


@pytest.fixture
def sample_panel(sample_panel_data):
    from mfactor import Panel
    return Panel(sample_panel_data)


def _random_factor_data(dates, symbols, seed):
    rng = np.random.default_rng(seed)
    data = []
    for symbol in symbols:
        values = rng.normal() + np.cumsum(rng.normal(size=len(dates)) * 0.1)
        for i, date in enumerate(dates):
            data.append({'timestamp': date, 'symbol': symbol, 'factor': values[i]})
    return pd.DataFrame(data)


@pytest.fixture
def sample_factor_data(sample_dates, sample_symbols):
    """60 dates x 6 symbols = 360 rows of (timestamp, symbol, factor)."""
    return _random_factor_data(sample_dates, sample_symbols, seed=7)


@pytest.fixture
def momentum_factor(sample_factor_data):
    from mfactor import Factor
    return Factor(sample_factor_data, name='momentum')


@pytest.fixture
def value_factor(sample_dates, sample_symbols):
    from mfactor import Factor
    return Factor(_random_factor_data(sample_dates, sample_symbols, seed=11), name='value')


@pytest.fixture
def sample_engine(momentum_factor, value_factor, sample_symbols, sample_panel):
    """Equal-weight engine over the sample universe with BTC as reference."""
    from mfactor import MultiFactor
    return MultiFactor([momentum_factor, value_factor], sample_symbols, sample_panel,
                       'BTC', name='mom_value', ic_n=3)


# ==================== Three-symbol scenario ====================

@pytest.fixture
def abc_dates():
    return pd.date_range('2024-01-01', periods=3, freq='D')


@pytest.fixture
def abc_panel(abc_dates):
    """Close prices: A rises, B falls, C rises slowly."""
    from mfactor import Panel
    closes = {
        'A': [10.0, 11.0, 12.0],
        'B': [10.0, 9.0, 8.0],
        'C': [10.0, 10.5, 11.0],
    }
    rows = [
        {'timestamp': date, 'symbol': symbol, 'close': closes[symbol][i]}
        for symbol in closes
        for i, date in enumerate(abc_dates)
    ]
    return Panel(pd.DataFrame(rows))


@pytest.fixture
def abc_factor(abc_dates):
    """d1 = {A:3, B:1, C:2}, d2 = {A:1, B:2, C:3}, d3 = {A:2, B:2, C:1}."""
    from mfactor import Factor
    values = {
        'A': [3.0, 1.0, 2.0],
        'B': [1.0, 2.0, 2.0],
        'C': [2.0, 3.0, 1.0],
    }
    rows = [
        {'timestamp': date, 'symbol': symbol, 'factor': values[symbol][i]}
        for symbol in values
        for i, date in enumerate(abc_dates)
    ]
    return Factor(pd.DataFrame(rows), 'abc')


@pytest.fixture
def abc_engine(abc_factor, abc_panel):
    from mfactor import MultiFactor
    return MultiFactor([abc_factor], ['A', 'B', 'C'], abc_panel, 'A', name='abc', ic_n=1)
