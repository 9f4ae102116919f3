"""
test_preprocess.py
------------------
Unit tests for the series store and preprocessing.
"""
import numpy as np
import pandas as pd
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from admit_forecast.data.series_store import SeriesStore, TimeSeries
from admit_forecast.exceptions import InsufficientDataError, MissingDataError, RangeError
from admit_forecast.features.preprocess import sanitize, split


def make_ts(values, entity="stanford", start="2018-07-01", period=52) -> TimeSeries:
    idx = pd.date_range(start, periods=len(values), freq="7D")
    return TimeSeries(entity, pd.Series(np.asarray(values, dtype=float), index=idx), period=period)


class TestTimeSeries:
    def test_rejects_duplicate_dates(self):
        idx = pd.DatetimeIndex(["2020-01-05", "2020-01-05", "2020-01-12"])
        with pytest.raises(ValueError):
            TimeSeries("x", pd.Series([1.0, 2.0, 3.0], index=idx))

    def test_rejects_unordered_dates(self):
        idx = pd.DatetimeIndex(["2020-01-12", "2020-01-05"])
        with pytest.raises(ValueError):
            TimeSeries("x", pd.Series([1.0, 2.0], index=idx))

    def test_rejects_negative_values(self):
        with pytest.raises(ValueError):
            make_ts([1.0, -2.0, 3.0])

    def test_no_upper_bound(self):
        assert len(make_ts([0.0, 150.0, 1e4])) == 3

    def test_future_index_starts_one_week_later(self):
        ts = make_ts(np.arange(10) + 1)
        future = ts.future_index(3)
        assert future[0] == ts.last_date + pd.Timedelta(weeks=1)
        assert len(future) == 3
        assert future.is_monotonic_increasing


class TestSeriesStore:
    def test_load_missing_entity(self):
        store = SeriesStore({"mit": make_ts([1, 2, 3], entity="mit")})
        with pytest.raises(MissingDataError):
            store.load("yale")
        # also catchable as a plain KeyError
        with pytest.raises(KeyError):
            store.load("yale")

    def test_window_inclusive(self):
        ts = make_ts(np.arange(1, 11))
        w = SeriesStore.window(ts, 2, 5)
        assert list(w.to_numpy()) == [3.0, 4.0, 5.0, 6.0]
        assert w.dates[0] == ts.dates[2]
        assert w.period == ts.period

    @pytest.mark.parametrize("start,end", [(-1, 3), (0, 10), (5, 4)])
    def test_window_out_of_bounds(self, start, end):
        ts = make_ts(np.arange(1, 11))
        with pytest.raises(RangeError):
            SeriesStore.window(ts, start, end)

    def test_from_frames(self):
        frames = {
            "mit": pd.DataFrame({
                "date": pd.to_datetime(["2020-01-12", "2020-01-05", "2020-01-19"]),
                "value": [2, 1, 3],
            })
        }
        store = SeriesStore.from_frames(frames, period=52)
        ts = store.load("mit")
        assert store.entities() == ["mit"]
        assert list(ts.to_numpy()) == [1.0, 2.0, 3.0]  # sorted by date
        assert "mit" in store and "yale" not in store
        assert len(store) == 1

    def test_add_replaces_and_extends(self):
        store = SeriesStore()
        store.add(make_ts([1, 2, 3], entity="mit"))
        store.add(make_ts([4, 5], entity="yale"))
        store.add(make_ts([7, 8, 9, 10], entity="mit"))
        assert store.entities() == ["mit", "yale"]
        assert len(store) == 2
        assert len(store.load("mit")) == 4


class TestSanitize:
    def test_clean_series_unchanged(self):
        ts = make_ts([5.0, 12.0, 1.0, 40.0])
        out = sanitize(ts)
        pd.testing.assert_series_equal(out.values, ts.values)

    def test_zeros_replaced_only_where_zero(self):
        raw = np.array([0.0, 12.0, 0.0, 40.0, 0.5])
        ts = make_ts(raw)
        out = sanitize(ts).to_numpy()
        assert (out != 0).all()
        changed = out != raw
        assert list(np.where(changed)[0]) == [0, 2]
        assert list(out[changed]) == [1.0, 1.0]

    def test_input_not_mutated(self):
        ts = make_ts([0.0, 3.0])
        sanitize(ts)
        assert ts.to_numpy()[0] == 0.0

    def test_idempotent(self):
        ts = sanitize(make_ts([0.0, 3.0, 0.0]))
        pd.testing.assert_series_equal(sanitize(ts).values, ts.values)


class TestSplit:
    @pytest.mark.parametrize("n_valid", [1, 10, 52, 99])
    def test_split_partitions_series(self, n_valid):
        ts = make_ts(np.arange(1, 101))
        train, valid = split(ts, n_valid)
        assert len(train) + len(valid) == len(ts)
        assert list(valid.to_numpy()) == list(ts.to_numpy()[-n_valid:])
        assert train.last_date < valid.dates[0]

    def test_too_short_raises(self):
        ts = make_ts(np.arange(1, 53))
        with pytest.raises(InsufficientDataError):
            split(ts, 52)

    def test_insufficient_is_value_error(self):
        with pytest.raises(ValueError):
            split(make_ts([1.0, 2.0]), 5)
