"""snaive_model.py — Seasonal naive: repeat the last observed season."""
from __future__ import annotations
import numpy as np

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.models.base import FittedModel, ForecastStrategy


class SeasonalNaiveFit(FittedModel):
    def __init__(self, name: str, series: TimeSeries, last_season: np.ndarray) -> None:
        super().__init__(name, series)
        self.last_season = last_season

    def _predict(self, h: int) -> np.ndarray:
        # step k reads train[n - P + (k mod P)]
        return self.last_season[np.arange(h) % len(self.last_season)]


class SeasonalNaive(ForecastStrategy):
    name = "snaive"

    def supports(self, series: TimeSeries) -> bool:
        return len(series) >= series.period

    def unsupported_reason(self, series: TimeSeries) -> str:
        return f"snaive needs one full season ({series.period} weeks), got {len(series)}"

    def _fit(self, train: TimeSeries) -> FittedModel:
        values = train.to_numpy()
        return SeasonalNaiveFit(self.name, train, values[-train.period:].copy())
