"""
base.py
-------
Common fit/forecast contract shared by every strategy in the catalog.

    strategy = SeasonalNaive()
    fitted = strategy.fit(train)        # TimeSeries -> FittedModel
    fc = fitted.forecast(52)            # pd.Series on the next 52 weeks

Subclasses implement `_fit` (and optionally `supports`). Library errors
raised while fitting or predicting are re-raised as ModelFitError so the
evaluator can drop a single strategy without losing the entity.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod

import numpy as np
import pandas as pd

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.exceptions import ModelFitError, StrategyUnavailableError

logger = logging.getLogger(__name__)


class FittedModel(ABC):
    """
    Result of fitting one strategy to a training window.

    Args:
        name   : strategy name that produced this fit
        series : the series the model was fitted on
    """

    def __init__(self, name: str, series: TimeSeries) -> None:
        self.name = name
        self.series = series

    @abstractmethod
    def _predict(self, h: int) -> np.ndarray:
        """Return `h` point forecasts following the training window."""

    def forecast(self, h: int) -> pd.Series:
        if h < 1:
            raise ValueError(f"Forecast horizon must be >= 1, got {h}")
        try:
            preds = np.asarray(self._predict(h), dtype=float).ravel()
        except ModelFitError:
            raise
        except Exception as exc:
            raise ModelFitError(f"{self.name} forecast failed: {exc}") from exc
        if len(preds) != h:
            raise ModelFitError(f"{self.name} produced {len(preds)} points, expected {h}")
        if not np.isfinite(preds).all():
            raise ModelFitError(f"{self.name} produced non-finite forecasts")
        return pd.Series(preds, index=self.series.future_index(h), name=self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name}, n={len(self.series)})"


class ForecastStrategy(ABC):
    """A named, configurable way of turning a training window into a FittedModel."""

    name: str = "strategy"

    def supports(self, series: TimeSeries) -> bool:
        """Whether the strategy's preconditions hold for `series`."""
        return True

    def unsupported_reason(self, series: TimeSeries) -> str:
        return f"{self.name} does not support series '{series.entity}'"

    @abstractmethod
    def _fit(self, train: TimeSeries) -> FittedModel:
        ...

    def fit(self, train: TimeSeries) -> FittedModel:
        if not self.supports(train):
            raise StrategyUnavailableError(self.unsupported_reason(train))
        try:
            return self._fit(train)
        except ModelFitError:
            raise
        except Exception as exc:
            raise ModelFitError(f"{self.name} failed on '{train.entity}': {exc}") from exc

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name})"
