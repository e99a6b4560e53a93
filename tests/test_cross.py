"""Unit tests for the cross-section index."""

import pytest
import numpy as np
import pandas as pd

from mfactor import UnknownDateError, UnknownSecurityError
from mfactor.cross import CrossSectionIndex


@pytest.fixture
def table():
    index = pd.date_range('2024-01-01', periods=3, freq='D')
    return pd.DataFrame({
        'A': [3.0, np.nan, 1.0],
        'B': [1.0, np.nan, 1.0],
        'C': [2.0, np.nan, 5.0],
        'D': [2.0, np.nan, np.nan],
    }, index=index)


class TestBuild:

    def test_position_maps(self, table):
        index = CrossSectionIndex.build(table)

        assert index.symbol_index == {'A': 0, 'B': 1, 'C': 2, 'D': 3}
        assert index.position_of_date('2024-01-03') == 2
        assert len(index) == 3

    def test_descending_with_stable_ties(self, table):
        index = CrossSectionIndex.build(table)

        assert index.get_cross('2024-01-01') == (('A', 3.0), ('C', 2.0), ('D', 2.0), ('B', 1.0))
        assert index.get_cross('2024-01-03') == (('C', 5.0), ('A', 1.0), ('B', 1.0))

    def test_known_date_without_values_is_empty(self, table):
        index = CrossSectionIndex.build(table)

        assert index.get_cross(pd.Timestamp('2024-01-02')) == ()

    def test_values_are_plain_floats(self, table):
        cross = CrossSectionIndex.build(table).get_cross('2024-01-01')

        assert all(type(value) is float for _, value in cross)
        assert all(type(symbol) is str for symbol, _ in cross)


class TestLookupErrors:

    def test_unknown_date(self, table):
        index = CrossSectionIndex.build(table)

        with pytest.raises(UnknownDateError):
            index.get_cross('2023-12-31')

    def test_unparseable_date(self, table):
        with pytest.raises(UnknownDateError):
            CrossSectionIndex.build(table).position_of_date('not a date')

    def test_unknown_symbol(self, table):
        index = CrossSectionIndex.build(table)

        with pytest.raises(UnknownSecurityError) as excinfo:
            index.position_of_symbol('Z')

        assert excinfo.value.symbol == 'Z'
        assert isinstance(excinfo.value, KeyError)
