"""
stl_model.py
------------
STL decomposition + ETS forecast of the seasonally adjusted series.

    y = seasonal + (trend + remainder)
          │               │
          │               └── ETS model, picked by AICc among additive-error
          │                   variants (no trend / trend / damped trend, plus
          │                   multiplicative error on strictly positive data)
          └── last STL season repeated across the horizon
"""

from __future__ import annotations
import logging
import math
import warnings

import numpy as np
from statsmodels.tsa.exponential_smoothing.ets import ETSModel
from statsmodels.tsa.seasonal import STL
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.exceptions import ModelFitError
from admit_forecast.models.base import FittedModel, ForecastStrategy

warnings.filterwarnings("ignore", category=ConvergenceWarning)
warnings.filterwarnings("ignore", module="statsmodels")

logger = logging.getLogger(__name__)

# (error, trend, damped_trend)
ETS_CANDIDATES = [
    ("add", None, False),
    ("add", "add", False),
    ("add", "add", True),
    ("mul", None, False),
    ("mul", "add", False),
    ("mul", "add", True),
]


def select_ets(values: np.ndarray):
    """Fit each admissible ETS variant and return (spec, results) with the lowest AICc."""
    best, best_ic = None, math.inf
    positive = bool((values > 0).all())
    for error, trend, damped in ETS_CANDIDATES:
        if error == "mul" and not positive:
            continue
        try:
            res = ETSModel(values, error=error, trend=trend, damped_trend=damped).fit(disp=False)
        except (ValueError, np.linalg.LinAlgError) as exc:
            logger.debug(f"ETS({error},{trend},{damped}) skipped: {exc}")
            continue
        ic = res.aicc
        if np.isfinite(ic) and ic < best_ic:
            best, best_ic = ((error, trend, damped), res), ic
    if best is None:
        raise ModelFitError("no ETS variant could be fitted to the seasonally adjusted series")
    return best


class STLETSFit(FittedModel):
    def __init__(self, name, series, last_season: np.ndarray, ets_spec, ets_results) -> None:
        super().__init__(name, series)
        self.last_season = last_season
        self.ets_spec = ets_spec
        self.ets_results = ets_results

    def _predict(self, h: int) -> np.ndarray:
        seasonal = self.last_season[np.arange(h) % len(self.last_season)]
        return np.asarray(self.ets_results.forecast(h)) + seasonal


class STLETS(ForecastStrategy):
    name = "stlf"

    def __init__(self, robust: bool = True) -> None:
        self.robust = robust

    def supports(self, series: TimeSeries) -> bool:
        return series.period >= 2 and len(series) >= 2 * series.period

    def unsupported_reason(self, series: TimeSeries) -> str:
        return f"stlf needs two full seasons, got {len(series)} weeks"

    def _fit(self, train: TimeSeries) -> FittedModel:
        values = train.to_numpy()
        decomp = STL(values, period=train.period, robust=self.robust).fit()
        seasonal = np.asarray(decomp.seasonal)
        adjusted = values - seasonal
        spec, results = select_ets(adjusted)
        logger.debug(f"stlf[{train.entity}] ETS{spec} aicc={results.aicc:.2f}")
        return STLETSFit(self.name, train, seasonal[-train.period:].copy(), spec, results)
