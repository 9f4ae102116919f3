"""
test_change.py
--------------
Unit tests for the year-over-year change analysis.
"""
import numpy as np
import pandas as pd
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from admit_forecast.analysis.change import calendar_window, compute_change, parse_month_day
from admit_forecast.data.series_store import TimeSeries
from admit_forecast.exceptions import AlignmentError

DEADLINES = {"early_decision": "11-01", "regular_decision": "01-01"}


def make_history(n=260, start="2017-07-02", entity="columbia") -> TimeSeries:
    rng = np.random.default_rng(9)
    idx = pd.date_range(start, periods=n, freq="7D")
    return TimeSeries(entity, pd.Series(rng.uniform(10, 90, n), index=idx))


def shifted_forecast(history: TimeSeries, delta: float = 5.0, h: int = 52) -> pd.Series:
    """Last year's values plus a constant, on the next `h` weeks."""
    return pd.Series(history.to_numpy()[-52:][:h] + delta, index=history.future_index(h))


class TestParseMonthDay:
    def test_parse(self):
        assert parse_month_day("08-01") == (8, 1)

    @pytest.mark.parametrize("bad", ["8/1", "13-01", "02-30", "02-29", "aug"])
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            parse_month_day(bad)


class TestCalendarWindow:
    def test_wrapping_window(self):
        dates = pd.date_range("2022-06-26", periods=52, freq="7D")
        start, end = calendar_window(dates, "08-01", "01-01")
        assert start == pd.Timestamp("2022-08-01")
        assert end == pd.Timestamp("2023-01-01")

    def test_partial_window_at_forecast_start(self):
        dates = pd.date_range("2022-09-25", periods=52, freq="7D")
        start, end = calendar_window(dates, "08-01", "01-01")
        assert (start, end) == (pd.Timestamp("2022-08-01"), pd.Timestamp("2023-01-01"))

    def test_no_window_in_range(self):
        dates = pd.date_range("2022-02-06", periods=20, freq="7D")
        with pytest.raises(AlignmentError):
            calendar_window(dates, "08-01", "01-01")


class TestComputeChange:
    def test_constant_shift(self):
        history = make_history()
        fc = shifted_forecast(history, delta=5.0)
        change = compute_change("columbia", fc, history, "08-01", "01-01")
        assert len(change) > 0
        np.testing.assert_allclose(change.values.to_numpy(), 5.0)
        assert change.values.index.min() >= pd.Timestamp("2022-08-01")
        assert change.values.index.max() <= pd.Timestamp("2023-01-01")

    def test_prior_dates_one_cycle_earlier(self):
        history = make_history()
        change = compute_change("columbia", shifted_forecast(history), history)
        deltas = change.values.index - change.prior_dates
        assert (deltas == pd.Timedelta(weeks=52)).all()

    def test_markers_and_baseline(self):
        history = make_history()
        change = compute_change(
            "columbia", shifted_forecast(history), history, deadlines=DEADLINES, baseline=0.0
        )
        assert change.markers["early_decision"] == pd.Timestamp("2022-11-01")
        assert change.markers["regular_decision"] == pd.Timestamp("2023-01-01")
        assert change.baseline == 0.0

    def test_length_mismatch_raises(self):
        history = make_history()
        fc = shifted_forecast(history)
        # drop one realised week inside the prior-year window
        gap = history.values.drop(pd.Timestamp("2021-10-03"))
        with pytest.raises(AlignmentError):
            compute_change("columbia", fc, history.with_values(gap))

    def test_history_clips_to_prior_overlap(self):
        history = make_history()
        fc = shifted_forecast(history)
        recent = history.with_values(history.values.loc["2021-11-01":])
        change = compute_change("columbia", fc, recent)
        assert change.values.index[0] == pd.Timestamp("2022-11-06")
        assert change.prior_dates[0] == recent.dates[0]
        assert change.values.index[-1] == pd.Timestamp("2023-01-01")

    def test_prior_window_outside_history(self):
        history = make_history()
        fc = shifted_forecast(history)
        old = history.with_values(history.values.loc[:"2021-07-01"])
        with pytest.raises(AlignmentError):
            compute_change("columbia", fc, old)

    def test_history_ending_in_september(self):
        history = make_history(start="2017-10-01")
        assert history.last_date == pd.Timestamp("2022-09-18")
        change = compute_change("columbia", shifted_forecast(history, delta=-2.0), history)
        assert change.window_start == pd.Timestamp("2022-08-01")
        assert change.values.index[0] == pd.Timestamp("2022-09-25")
        assert change.values.index[-1] == pd.Timestamp("2023-01-01")
        assert len(change) == 15
        np.testing.assert_allclose(change.values.to_numpy(), -2.0)

    def test_forecast_without_window(self):
        history = make_history()
        fc = shifted_forecast(history, h=4)
        with pytest.raises(AlignmentError):
            compute_change("columbia", fc, history)

    def test_alignment_error_is_value_error(self):
        history = make_history()
        with pytest.raises(ValueError):
            compute_change("columbia", shifted_forecast(history, h=4), history)

    def test_to_frame(self):
        history = make_history()
        df = compute_change("columbia", shifted_forecast(history), history).to_frame()
        assert list(df.columns) == ["entity", "date", "prior_date", "change"]
