"""
ses_model.py
------------
Simple exponential smoothing on the seasonally + first differenced series.

The series is differenced at lag P (removes the annual cycle) and then at
lag 1 (removes the remaining trend); a level-only SES with a fixed α is
fitted to what is left. Its forecast is flat on the differenced scale.

With `reintegrate=True` (the default) the flat differenced forecast is
integrated back through both differences, so the forecast lives on the
same scale as the validation data it is scored against. `reintegrate=False`
returns the raw differenced-scale forecast instead.

α is fixed per run and may be overridden per entity via `alpha_overrides`.
"""

from __future__ import annotations
import logging
import warnings
from typing import Mapping, Optional

import numpy as np
from statsmodels.tsa.holtwinters import SimpleExpSmoothing
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.models.base import FittedModel, ForecastStrategy

warnings.filterwarnings("ignore", category=ConvergenceWarning)
warnings.filterwarnings("ignore", module="statsmodels")

logger = logging.getLogger(__name__)


def seasonal_then_first_difference(values: np.ndarray, period: int) -> np.ndarray:
    """diff(diff(y, lag=P), lag=1)."""
    seasonal = values[period:] - values[:-period]
    return np.diff(seasonal)


def integrate_differenced_forecast(
    history: np.ndarray,
    diff_forecast: np.ndarray,
    period: int,
) -> np.ndarray:
    """
    Undo diff(diff(y, P), 1) for a forecast made on the differenced scale.

    z_t = y_t - y_{t-P} is rebuilt cumulatively from its last observed value,
    then y_t = y_{t-P} + z_t, reading earlier forecasts once t-P is past the
    end of history.
    """
    n = len(history)
    ext = np.concatenate([history, np.empty(len(diff_forecast))])
    z_last = history[-1] - history[-1 - period]
    for k, w in enumerate(diff_forecast):
        z_last = z_last + w
        t = n + k
        ext[t] = ext[t - period] + z_last
    return ext[n:]


class SESDifferencedFit(FittedModel):
    def __init__(self, name, series, level: float, alpha: float, reintegrate: bool) -> None:
        super().__init__(name, series)
        self.level = level
        self.alpha = alpha
        self.reintegrate = reintegrate

    def _predict(self, h: int) -> np.ndarray:
        flat = np.full(h, self.level)
        if not self.reintegrate:
            return flat
        return integrate_differenced_forecast(self.series.to_numpy(), flat, self.series.period)


class SESDifferenced(ForecastStrategy):
    """
    Args:
        alpha           : default smoothing coefficient, in (0, 1)
        alpha_overrides : entity -> α replacing the default for that entity
        reintegrate     : return forecasts on the original scale
    """

    name = "ses_diff"

    def __init__(
        self,
        alpha: float = 0.5,
        alpha_overrides: Optional[Mapping[str, float]] = None,
        reintegrate: bool = True,
    ) -> None:
        self.alpha = alpha
        self.alpha_overrides = dict(alpha_overrides or {})
        self.reintegrate = reintegrate
        for a in [alpha, *self.alpha_overrides.values()]:
            if not 0 < a < 1:
                raise ValueError(f"alpha must be in (0, 1), got {a}")

    def alpha_for(self, entity: str) -> float:
        return self.alpha_overrides.get(entity, self.alpha)

    def supports(self, series: TimeSeries) -> bool:
        # at least a few points must survive both differences
        return len(series) >= series.period + 3

    def unsupported_reason(self, series: TimeSeries) -> str:
        return f"ses_diff needs more than {series.period + 2} weeks, got {len(series)}"

    def _fit(self, train: TimeSeries) -> FittedModel:
        alpha = self.alpha_for(train.entity)
        diffed = seasonal_then_first_difference(train.to_numpy(), train.period)
        fit = SimpleExpSmoothing(diffed, initialization_method="estimated").fit(
            smoothing_level=alpha, optimized=True
        )
        level = float(fit.forecast(1)[0])
        logger.debug(f"ses_diff[{train.entity}] α={alpha} level={level:.4f}")
        return SESDifferencedFit(self.name, train, level, alpha, self.reintegrate)
