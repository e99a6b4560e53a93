"""Unit tests for mfactor Panel class."""

import pytest
import pandas as pd
from mfactor import Panel, Factor


class TestPanelInit:
    """Tests for Panel initialization."""

    def test_init_from_flat_dataframe(self, sample_panel_data):
        panel = Panel(sample_panel_data)

        assert 'close' in panel.columns
        assert set(panel.symbols) == set(sample_panel_data['symbol'])

    def test_init_from_multiindex(self, sample_panel_data):
        df = sample_panel_data.set_index(['timestamp', 'symbol'])
        panel = Panel(df)

        assert 'timestamp' in panel.data.columns
        assert 'symbol' in panel.data.columns

    def test_init_missing_columns_raises(self):
        df = pd.DataFrame({'value': [1, 2, 3]})

        with pytest.raises(ValueError, match="timestamp.*symbol"):
            Panel(df)


class TestPanelAccess:
    """Tests for column extraction and slicing."""

    def test_getitem_string(self, sample_panel):
        close = sample_panel['close']

        assert isinstance(close, Factor)
        assert close.name == 'close'

    def test_getitem_list(self, sample_panel):
        subset = sample_panel[['open', 'close']]

        assert isinstance(subset, Panel)
        assert set(subset.columns) == {'open', 'close'}

    def test_missing_column_raises(self, sample_panel):
        with pytest.raises(ValueError, match="not found"):
            sample_panel['nonexistent']

    def test_slice_time_and_symbols(self, sample_panel):
        sliced = sample_panel.slice_time('2024-01-10', '2024-01-19').slice_symbols('ETH')

        assert sliced.symbols == ['ETH']
        assert len(sliced.timestamps) == 10

    def test_dates_for(self, abc_panel, abc_dates):
        dates = abc_panel.dates_for('B')

        assert dates.equals(abc_dates)
        assert dates.is_monotonic_increasing

    def test_dates_for_unknown_symbol(self, abc_panel):
        with pytest.raises(ValueError, match="not found"):
            abc_panel.dates_for('Z')


class TestPanelIO:
    """Tests for CSV persistence."""

    def test_from_csv_roundtrip(self, sample_panel, tmp_path):
        csv_path = tmp_path / 'test_panel.csv'
        sample_panel.to_csv(str(csv_path))

        loaded = Panel.from_csv(str(csv_path))

        assert len(loaded) == len(sample_panel)
        assert set(loaded.columns) == set(sample_panel.columns)

    def test_repr(self, sample_panel):
        assert '6 symbols' in repr(sample_panel)
