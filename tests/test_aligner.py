"""Unit tests for calendar alignment."""

import logging

import pytest
import numpy as np
import pandas as pd

from mfactor import Factor, Panel, Query
from mfactor.aligner import align_all, align_factor, align_prices, reference_calendar


@pytest.fixture
def gappy_panel():
    """REF trades every day, OTHER skips 2024-01-03."""
    rows = []
    for date in pd.date_range('2024-01-01', periods=5, freq='D'):
        rows.append({'timestamp': date, 'symbol': 'REF', 'close': 1.0})
        if date != pd.Timestamp('2024-01-03'):
            rows.append({'timestamp': date, 'symbol': 'OTHER', 'close': 2.0})
    return Panel(pd.DataFrame(rows))


class TestReferenceCalendar:

    def test_calendar_follows_reference_symbol(self, gappy_panel):
        full = reference_calendar(gappy_panel, 'REF', Query.by_date())
        sparse = reference_calendar(gappy_panel, 'OTHER', Query.by_date())

        assert len(full) == 5
        assert len(sparse) == 4
        assert pd.Timestamp('2024-01-03') not in sparse

    def test_calendar_strictly_increasing(self, sample_panel):
        dates = reference_calendar(sample_panel, 'BTC', Query.by_date())

        assert dates.is_monotonic_increasing
        assert dates.is_unique

    def test_query_restricts_calendar(self, gappy_panel):
        dates = reference_calendar(gappy_panel, 'REF', Query.by_index(-2))

        assert list(dates.strftime('%Y-%m-%d')) == ['2024-01-04', '2024-01-05']

    def test_unknown_reference_raises(self, gappy_panel):
        with pytest.raises(ValueError, match="not found"):
            reference_calendar(gappy_panel, 'NOPE', Query.by_date())

    def test_empty_calendar_raises(self, gappy_panel):
        with pytest.raises(ValueError, match="empty"):
            reference_calendar(gappy_panel, 'REF', Query.by_date('2025-01-01'))


class TestAlignFactor:

    def test_missing_dates_stay_nan(self, gappy_panel):
        """A date absent from the factor is NaN, not zero or forward-filled."""
        dates = reference_calendar(gappy_panel, 'REF', Query.by_date())
        df = pd.DataFrame({
            'timestamp': ['2024-01-01', '2024-01-02', '2024-01-04'],
            'symbol': ['REF'] * 3,
            'factor': [1.0, 2.0, 4.0],
        })

        wide = align_factor(Factor(df, 'f'), dates, ['REF'])

        assert wide['REF'].tolist()[:2] == [1.0, 2.0]
        assert np.isnan(wide.loc['2024-01-03', 'REF'])
        assert wide.loc['2024-01-04', 'REF'] == 4.0
        assert np.isnan(wide.loc['2024-01-05', 'REF'])

    def test_dates_outside_calendar_dropped(self, gappy_panel):
        dates = reference_calendar(gappy_panel, 'OTHER', Query.by_date())
        df = pd.DataFrame({
            'timestamp': ['2024-01-03', '2024-01-04'],
            'symbol': ['REF', 'REF'],
            'factor': [3.0, 4.0],
        })

        wide = align_factor(Factor(df, 'f'), dates, ['REF'])

        assert wide.index.equals(dates)
        assert wide['REF'].notna().sum() == 1

    def test_symbol_without_overlap_is_all_nan(self, abc_factor, abc_dates, caplog):
        with caplog.at_level(logging.WARNING, logger='mfactor'):
            wide = align_factor(abc_factor, abc_dates, ['A', 'D'])

        assert list(wide.columns) == ['A', 'D']
        assert wide['D'].isna().all()
        assert wide['A'].notna().all()
        assert any('without calendar overlap' in r.getMessage() for r in caplog.records)

    def test_align_all_keeps_factor_order(self, momentum_factor, value_factor, sample_panel,
                                          sample_symbols):
        dates = reference_calendar(sample_panel, 'BTC', Query.by_date())
        aligned = align_all([value_factor, momentum_factor], dates, sample_symbols)

        expected = value_factor.to_wide(index=dates, columns=sample_symbols)
        pd.testing.assert_frame_equal(aligned[0], expected)
        assert len(aligned) == 2

    def test_align_prices(self, abc_panel, abc_dates):
        prices = align_prices(abc_panel, abc_dates, ['B', 'A'])

        assert list(prices.columns) == ['B', 'A']
        assert prices['B'].tolist() == [10.0, 9.0, 8.0]
