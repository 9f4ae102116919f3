"""
holt_winters_model.py
---------------------
Holt-Winters exponential smoothing (level + trend + seasonal).

The seasonal state has one component per season, which becomes
ill-conditioned for long periods; the strategy therefore declines any series
whose period exceeds `max_period` (24 by default). With weekly data (P = 52)
it is reported as unavailable and excluded from ranking.
"""

from __future__ import annotations
import warnings

import numpy as np
from statsmodels.tsa.holtwinters import ExponentialSmoothing
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.models.base import FittedModel, ForecastStrategy

warnings.filterwarnings("ignore", category=ConvergenceWarning)
warnings.filterwarnings("ignore", module="statsmodels")


class HoltWintersFit(FittedModel):
    def __init__(self, name, series, results) -> None:
        super().__init__(name, series)
        self.results = results

    def _predict(self, h: int) -> np.ndarray:
        return self.results.forecast(h)


class HoltWinters(ForecastStrategy):
    name = "holt_winters"

    def __init__(self, max_period: int = 24, trend: str = "add", seasonal: str = "add") -> None:
        self.max_period = max_period
        self.trend = trend
        self.seasonal = seasonal

    def supports(self, series: TimeSeries) -> bool:
        return series.period <= self.max_period and len(series) >= 2 * series.period

    def unsupported_reason(self, series: TimeSeries) -> str:
        if series.period > self.max_period:
            return (
                f"holt_winters disabled: seasonal period {series.period} "
                f"exceeds {self.max_period}"
            )
        return f"holt_winters needs two full seasons, got {len(series)} weeks"

    def _fit(self, train: TimeSeries) -> FittedModel:
        results = ExponentialSmoothing(
            train.to_numpy(),
            trend=self.trend,
            seasonal=self.seasonal,
            seasonal_periods=train.period,
            initialization_method="estimated",
        ).fit()
        return HoltWintersFit(self.name, train, results)
