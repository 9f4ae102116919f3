"""
moving_average_model.py
-----------------------
Flat-line moving-average forecasts.

Both variants smooth the training window and repeat the last defined
smoothed value across the whole horizon; nothing is re-estimated per step.

    ma_trailing : mean of the last `window` observations
    ma_centered : centred moving average of order `order`; an even order
                  uses the 2×order weighting, so the last defined value sits
                  order/2 weeks before the end of the window
"""

from __future__ import annotations
import numpy as np
import pandas as pd

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.models.base import FittedModel, ForecastStrategy


def centered_ma_weights(order: int) -> np.ndarray:
    if order % 2:
        return np.full(order, 1.0 / order)
    w = np.full(order + 1, 1.0 / order)
    w[0] = w[-1] = 0.5 / order
    return w


class FlatFit(FittedModel):
    def __init__(self, name: str, series: TimeSeries, level: float) -> None:
        super().__init__(name, series)
        self.level = level

    def _predict(self, h: int) -> np.ndarray:
        return np.full(h, self.level)


class TrailingMovingAverage(ForecastStrategy):
    name = "ma_trailing"

    def __init__(self, window: int = 12) -> None:
        if window < 1:
            raise ValueError(f"window must be >= 1, got {window}")
        self.window = window

    def supports(self, series: TimeSeries) -> bool:
        return len(series) >= self.window

    def unsupported_reason(self, series: TimeSeries) -> str:
        return f"ma_trailing needs {self.window} weeks, got {len(series)}"

    def _fit(self, train: TimeSeries) -> FittedModel:
        smoothed = pd.Series(train.to_numpy()).rolling(self.window).mean()
        return FlatFit(self.name, train, float(smoothed.iloc[-1]))


class CenteredMovingAverage(ForecastStrategy):
    name = "ma_centered"

    def __init__(self, order: int = 12) -> None:
        if order < 1:
            raise ValueError(f"order must be >= 1, got {order}")
        self.order = order
        self.weights = centered_ma_weights(order)

    def supports(self, series: TimeSeries) -> bool:
        return len(series) >= len(self.weights)

    def unsupported_reason(self, series: TimeSeries) -> str:
        return f"ma_centered needs {len(self.weights)} weeks, got {len(series)}"

    def _fit(self, train: TimeSeries) -> FittedModel:
        # weights are symmetric, so convolution == correlation
        smoothed = np.convolve(train.to_numpy(), self.weights, mode="valid")
        return FlatFit(self.name, train, float(smoothed[-1]))
