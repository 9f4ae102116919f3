"""
regression_model.py
-------------------
Time-series linear models (trend + seasonal terms) fitted with scikit-learn.

Two catalog entries share this implementation:
    tslm          : trend + one-hot season-of-year dummies
    tslm_fourier  : trend + season dummies + sin/cos harmonics (dummies can be
                    switched off to leave the low-parameter harmonic model)

Forecasting rebuilds the same design matrix at positions n..n+h-1, which
extrapolates the trend and tiles the fitted seasonal pattern.
"""

from __future__ import annotations
import logging

import numpy as np
from sklearn.linear_model import LinearRegression

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.features.build_features import build_design_matrix
from admit_forecast.models.base import FittedModel, ForecastStrategy

logger = logging.getLogger(__name__)


class LinearSeasonalFit(FittedModel):
    def __init__(self, name, series, model: LinearRegression, design_kwargs: dict) -> None:
        super().__init__(name, series)
        self.model = model
        self.design_kwargs = design_kwargs

    def _predict(self, h: int) -> np.ndarray:
        n = len(self.series)
        X = build_design_matrix(np.arange(n, n + h), self.series.period, **self.design_kwargs)
        return self.model.predict(X.to_numpy())


class LinearSeasonalRegression(ForecastStrategy):
    """
    Args:
        name           : catalog name
        trend          : include a linear trend term
        season_dummies : include season-of-year dummies
        harmonics      : Fourier sin/cos pairs (0 = none)
    """

    def __init__(
        self,
        name: str = "tslm",
        trend: bool = True,
        season_dummies: bool = True,
        harmonics: int = 0,
    ) -> None:
        self.name = name
        self.design_kwargs = {
            "trend": trend,
            "season_dummies": season_dummies,
            "harmonics": harmonics,
        }

    def _n_params(self, period: int) -> int:
        k = 1 + int(self.design_kwargs["trend"])
        if self.design_kwargs["season_dummies"]:
            k += period - 1
        return k + 2 * self.design_kwargs["harmonics"]

    def supports(self, series: TimeSeries) -> bool:
        return len(series) > self._n_params(series.period)

    def unsupported_reason(self, series: TimeSeries) -> str:
        return (
            f"{self.name} has {self._n_params(series.period)} parameters, "
            f"series has only {len(series)} weeks"
        )

    def _fit(self, train: TimeSeries) -> FittedModel:
        X = build_design_matrix(np.arange(len(train)), train.period, **self.design_kwargs)
        model = LinearRegression().fit(X.to_numpy(), train.to_numpy())
        logger.debug(f"{self.name}[{train.entity}] fitted {X.shape[1]} features")
        return LinearSeasonalFit(self.name, train, model, self.design_kwargs)


def tslm() -> LinearSeasonalRegression:
    return LinearSeasonalRegression(name="tslm", trend=True, season_dummies=True, harmonics=0)


def tslm_fourier(harmonics: int = 1, include_season_dummies: bool = True) -> LinearSeasonalRegression:
    return LinearSeasonalRegression(
        name="tslm_fourier",
        trend=True,
        season_dummies=include_season_dummies,
        harmonics=harmonics,
    )
