"""
test_metrics.py
---------------
Unit tests for the metrics and model-selection modules.
"""
import math

import numpy as np
import pandas as pd
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.evaluation.metrics import mae, rmse, mape, compute_all_metrics
from admit_forecast.evaluation.selection import (
    ScoreRecord,
    leaderboard,
    rank,
    score_strategies,
    score_strategy,
)
from admit_forecast.exceptions import ModelFitError
from admit_forecast.features.preprocess import split
from admit_forecast.models.base import ForecastStrategy
from admit_forecast.models.catalog import STRATEGY_ORDER
from admit_forecast.models.holt_winters_model import HoltWinters
from admit_forecast.models.snaive_model import SeasonalNaive


# ── Metric Tests ──────────────────────────────────────────────────────────────

class TestMetrics:
    def test_mae_perfect(self):
        y = np.array([1.0, 2.0, 3.0])
        assert mae(y, y) == pytest.approx(0.0)

    def test_mae_basic(self):
        y_true = np.array([1.0, 2.0, 3.0])
        y_pred = np.array([2.0, 3.0, 4.0])
        assert mae(y_true, y_pred) == pytest.approx(1.0)

    def test_rmse_basic(self):
        y_true = np.array([1.0, 1.0, 1.0, 1.0])
        y_pred = np.array([3.0, 3.0, 3.0, 3.0])
        assert rmse(y_true, y_pred) == pytest.approx(2.0)

    def test_mape_perfect(self):
        y = np.array([1.0, 2.0, 3.0])
        assert mape(y, y) == pytest.approx(0.0)

    def test_mape_basic(self):
        y_true = np.array([10.0, 20.0])
        y_pred = np.array([11.0, 15.0])
        # (10% + 25%) / 2
        assert mape(y_true, y_pred) == pytest.approx(17.5)

    def test_mape_zero_only_when_equal(self):
        y_true = np.array([10.0, 20.0, 30.0])
        y_pred = y_true.copy()
        y_pred[1] += 1e-6
        assert mape(y_true, y_pred) > 0

    def test_mape_rejects_zero_actuals(self):
        with pytest.raises(ValueError):
            mape(np.array([0.0, 1.0]), np.array([1.0, 1.0]))

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            mape(np.array([1.0, 2.0]), np.array([1.0]))

    def test_compute_all_metrics_keys(self):
        y = np.array([1.0, 2.0, 3.0])
        assert set(compute_all_metrics(y, y).keys()) == {"mape", "mae", "rmse"}

    def test_metrics_non_negative(self):
        rng = np.random.default_rng(0)
        y_true = rng.uniform(1, 100, 100)
        y_pred = rng.uniform(0, 100, 100)
        for k, v in compute_all_metrics(y_true, y_pred).items():
            assert v >= 0, f"{k} should be non-negative, got {v}"


# ── Ranking Tests ─────────────────────────────────────────────────────────────

class TestRank:
    def test_lowest_mape_wins(self):
        best = rank("mit", {"snaive": 12.0, "tslm": 8.5, "nnar": 9.0}, STRATEGY_ORDER)
        assert best.strategy == "tslm"
        assert best.mape == pytest.approx(8.5)

    def test_tie_goes_to_earlier_declared(self):
        scores = {"tslm_fourier": 5.0, "tslm": 5.0, "auto_arima": 5.0}
        assert rank("yale", scores, STRATEGY_ORDER).strategy == "tslm"

    def test_tie_break_independent_of_dict_order(self):
        a = rank("yale", {"nnar": 3.0, "snaive": 3.0}, STRATEGY_ORDER)
        b = rank("yale", {"snaive": 3.0, "nnar": 3.0}, STRATEGY_ORDER)
        assert a == b
        assert a.strategy == "snaive"

    def test_repeated_runs_are_deterministic(self):
        scores = {name: 10.0 - i % 3 for i, name in enumerate(STRATEGY_ORDER)}
        picks = {rank("mit", scores, STRATEGY_ORDER).strategy for _ in range(20)}
        assert len(picks) == 1

    def test_infinite_and_nan_excluded(self):
        scores = {"snaive": math.inf, "ses_diff": math.nan, "tslm": 40.0}
        assert rank("mit", scores, STRATEGY_ORDER).strategy == "tslm"

    def test_all_failed_raises(self):
        with pytest.raises(ModelFitError):
            rank("mit", {"snaive": math.inf, "tslm": math.inf}, STRATEGY_ORDER)


# ── Scoring Tests ─────────────────────────────────────────────────────────────

def make_series(n: int = 156, period: int = 52, seed: int = 0) -> TimeSeries:
    rng = np.random.default_rng(seed)
    t = np.arange(n)
    values = 40 + 8 * np.sin(2 * np.pi * t / period) + rng.normal(0, 1, n)
    idx = pd.date_range("2019-07-07", periods=n, freq="7D")
    return TimeSeries("harvard", pd.Series(values, index=idx), period=period)


class Boom(ForecastStrategy):
    name = "boom"

    def _fit(self, train):
        raise np.linalg.LinAlgError("singular matrix")


class TestScoring:
    def test_score_strategy_records_metrics(self):
        train, valid = split(make_series(), 52)
        record, fc = score_strategy(SeasonalNaive(), train, valid)
        assert record.status == "ok"
        assert record.mape >= 0
        assert len(fc) == 52
        assert fc.index[0] == valid.dates[0]

    def test_failed_strategy_recorded_as_infinite(self):
        train, valid = split(make_series(), 52)
        record, fc = score_strategy(Boom(), train, valid)
        assert record.status == "failed"
        assert math.isinf(record.mape)
        assert "singular" in record.error
        assert fc is None

    def test_unavailable_strategy_is_skipped(self):
        train, valid = split(make_series(), 52)
        record, _ = score_strategy(HoltWinters(max_period=24), train, valid)
        assert record.status == "skipped"
        assert not record.usable

    def test_failure_does_not_block_other_strategies(self):
        train, valid = split(make_series(), 52)
        result = score_strategies(train, valid, {"boom": Boom(), "snaive": SeasonalNaive()})
        assert [r.strategy for r in result.records] == ["boom", "snaive"]
        assert rank("harvard", result.scores, ["boom", "snaive"]).strategy == "snaive"
        assert set(result.forecasts) == {"snaive"}


class TestLeaderboard:
    def test_sorted_with_catalog_tie_break(self):
        records = [
            ScoreRecord("mit", "tslm_fourier", 4.0),
            ScoreRecord("mit", "snaive", 4.0),
            ScoreRecord("mit", "tslm", 2.0),
            ScoreRecord("mit", "holt_winters", math.inf, status="skipped"),
            ScoreRecord("yale", "snaive", 1.0),
        ]
        lb = leaderboard(records, STRATEGY_ORDER)
        mit = lb[lb["entity"] == "mit"]
        assert list(mit["strategy"]) == ["tslm", "snaive", "tslm_fourier", "holt_winters"]
        assert list(mit["rank"]) == [1, 2, 3, 4]
        assert "mape" in lb.columns

    def test_empty(self):
        assert leaderboard([], STRATEGY_ORDER).empty
