"""
test_data.py
------------

Tests for FluSeries, held-out splits and Flu Trends file I/O.
"""

import numpy as np
import pytest

from flustate.data import (
    FluSeries,
    hold_out,
    hold_out_every,
    hold_out_last,
    load_flu_trends_csv,
    load_series_csv,
    save_series_csv,
)
from flustate.errors import LengthMismatch

FLU_TRENDS_EXPORT = """\
Google Flu Trends - United States
Copyright 2015 Google Inc.

Exported data may be used for any purpose, subject to the Google Terms of Service.

Date,United States,Alabama,Massachusetts
2003-09-28,907,,250
2003-10-05,983,,265
2003-10-12,1051,,
2003-10-19,1102,,301
"""


# =============================================================================
# FluSeries
# =============================================================================


class TestFluSeries:
    def test_length_checked(self):
        with pytest.raises(LengthMismatch):
            FluSeries(["a", "b"], [1.0])

    def test_log(self, flu_series):
        logged = flu_series.log()
        assert logged.scale == "log"
        np.testing.assert_allclose(logged.values, np.log(flu_series.values))
        assert logged.dates == flu_series.dates

    def test_log_twice(self, flu_series):
        with pytest.raises(ValueError, match="already"):
            flu_series.log().log()

    def test_log_non_positive(self):
        with pytest.raises(ValueError, match="positive"):
            FluSeries.from_arrays([1.0, 0.0, 2.0]).log()

    def test_log_keeps_missing(self):
        logged = FluSeries.from_arrays([1.0, np.nan, np.e]).log()
        assert np.isnan(logged.values[1])
        assert logged.values[2] == pytest.approx(1.0)

    def test_missing_summary(self):
        series = FluSeries.from_arrays([1.0, np.nan, 2.0])
        assert series.n_missing == 1
        assert series.observed_mask.tolist() == [True, False, True]
        assert series.dates == ["1", "2", "3"]

    def test_tail(self, flu_series):
        tail = flu_series.tail(4)
        assert len(tail) == 4
        assert tail.dates == flu_series.dates[-4:]


# =============================================================================
# Held-out splits
# =============================================================================


class TestHoldOut:
    """The fitting input never carries the withheld values."""

    def test_fit_values_masked(self):
        values = np.arange(1.0, 11.0)
        split = hold_out(values, [7, 2])
        assert split.indices == (2, 7)
        assert np.isnan(split.fit_values[[2, 7]]).all()
        assert not np.isnan(np.delete(split.fit_values, [2, 7])).any()
        np.testing.assert_array_equal(split.truth, [3.0, 8.0])
        assert values[2] == 3.0

    def test_observed_reference(self):
        split = hold_out(np.arange(1.0, 6.0), [4])
        ref = split.observed
        assert ref[4] == 5.0
        assert np.isnan(ref[:4]).all()

    def test_negative_indices(self):
        assert hold_out(np.arange(5.0), [-1]).indices == (4,)

    @pytest.mark.parametrize("indices", [[], [5], [-6]])
    def test_bad_indices(self, indices):
        with pytest.raises(ValueError):
            hold_out(np.arange(5.0), indices)

    def test_cannot_hold_out_missing(self):
        with pytest.raises(ValueError, match="already-missing"):
            hold_out([1.0, np.nan, 3.0], [1])

    def test_hold_out_last(self):
        split = hold_out_last(np.arange(10.0), 3)
        assert split.indices == (7, 8, 9)
        assert len(split) == 3
        with pytest.raises(ValueError):
            hold_out_last(np.arange(10.0), 10)

    def test_hold_out_every(self):
        split = hold_out_every(np.arange(10.0), 4, offset=1)
        assert split.indices == (1, 5, 9)
        with pytest.raises(ValueError):
            hold_out_every(np.arange(10.0), 1)


# =============================================================================
# I/O
# =============================================================================


class TestIO:
    def test_load_flu_trends(self, tmp_path):
        path = tmp_path / "gflu_data.txt"
        path.write_text(FLU_TRENDS_EXPORT)
        series = load_flu_trends_csv(path)
        assert series.region == "Massachusetts"
        assert series.dates[0] == "2003-09-28"
        assert len(series) == 4
        assert np.isnan(series.values[2])
        assert series.values[3] == 301.0

    def test_other_region(self, tmp_path):
        path = tmp_path / "gflu_data.txt"
        path.write_text(FLU_TRENDS_EXPORT)
        assert load_flu_trends_csv(path, region="Alabama").n_missing == 4

    def test_unknown_region(self, tmp_path):
        path = tmp_path / "gflu_data.txt"
        path.write_text(FLU_TRENDS_EXPORT)
        with pytest.raises(ValueError, match="Vermont"):
            load_flu_trends_csv(path, region="Vermont")

    def test_no_header(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("just some text\n1,2,3\n")
        with pytest.raises(ValueError, match="Date,"):
            load_flu_trends_csv(path)

    def test_save_and_load(self, tmp_path):
        series = FluSeries(["2013-01-06", "2013-01-13"], [410.0, np.nan], region="Massachusetts")
        path = tmp_path / "series.csv"
        save_series_csv(series, path)
        loaded = load_series_csv(path)
        assert loaded.region == "Massachusetts"
        assert loaded.dates == series.dates
        assert loaded.values[0] == 410.0 and np.isnan(loaded.values[1])
