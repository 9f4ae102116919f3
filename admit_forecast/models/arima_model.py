"""
arima_model.py
--------------
Automatic seasonal ARIMA via pmdarima's `auto_arima`.

    d : KPSS unit-root test (pmdarima `test="kpss"`)
    D : seasonal differencing test (`seasonal_test`, OCSB by default)
    (p,q)(P,Q) : stepwise search (default) or exhaustive search within the
                 configured bounds, scored by the information criterion

A constant series has no variance to model; it short-circuits to the
ARIMA(0,0,0)(0,0,0) mean model instead of running the search.
"""

from __future__ import annotations
import logging

import numpy as np

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.features.preprocess import is_constant
from admit_forecast.models.base import FittedModel, ForecastStrategy

logger = logging.getLogger(__name__)


class ArimaFit(FittedModel):
    def __init__(self, name, series, order, seasonal_order, model=None, mean: float = 0.0) -> None:
        super().__init__(name, series)
        self.order = tuple(order)
        self.seasonal_order = tuple(seasonal_order)
        self.model = model
        self.mean = mean

    @property
    def label(self) -> str:
        p, d, q = self.order
        P, D, Q, m = self.seasonal_order
        return f"ARIMA({p},{d},{q})({P},{D},{Q})[{m}]"

    def _predict(self, h: int) -> np.ndarray:
        if self.model is None:
            return np.full(h, self.mean)
        return np.asarray(self.model.predict(n_periods=h))


class AutoARIMA(ForecastStrategy):
    """
    Args:
        max_p, max_q   : bounds for non-seasonal AR / MA orders
        max_P, max_Q   : bounds for seasonal AR / MA orders
        max_d, max_D   : bounds for non-seasonal / seasonal differencing
        max_order      : bound on p + q + P + Q (exhaustive search only)
        stepwise       : stepwise search instead of the exhaustive one
        information_criterion : "aicc", "aic", "bic" or "hqic"
        maxiter        : optimizer iterations per candidate
        seasonal_test  : pmdarima seasonal differencing test ("ocsb" or "ch")
    """

    name = "auto_arima"

    def __init__(
        self,
        max_p: int = 2,
        max_q: int = 2,
        max_P: int = 1,
        max_Q: int = 1,
        max_d: int = 2,
        max_D: int = 1,
        max_order: int = 5,
        stepwise: bool = True,
        information_criterion: str = "aicc",
        maxiter: int = 50,
        seasonal_test: str = "ocsb",
    ) -> None:
        if information_criterion not in ("aicc", "aic", "bic", "hqic"):
            raise ValueError(f"Unknown information criterion: {information_criterion}")
        self.max_p, self.max_q = max_p, max_q
        self.max_P, self.max_Q = max_P, max_Q
        self.max_d, self.max_D = max_d, max_D
        self.max_order = max_order
        self.stepwise = stepwise
        self.ic = information_criterion
        self.maxiter = maxiter
        self.seasonal_test = seasonal_test

    def supports(self, series: TimeSeries) -> bool:
        return len(series) >= 10

    def unsupported_reason(self, series: TimeSeries) -> str:
        return f"auto_arima needs at least 10 weeks, got {len(series)}"

    def search_kwargs(self, n: int, period: int) -> dict:
        """Keyword arguments for `pmdarima.auto_arima` on a series of length n."""
        seasonal = period > 1 and n >= 2 * period
        return dict(
            start_p=0, start_q=0, start_P=0, start_Q=0,
            max_p=self.max_p, max_q=self.max_q,
            max_P=self.max_P if seasonal else 0,
            max_Q=self.max_Q if seasonal else 0,
            max_d=self.max_d,
            max_D=self.max_D if seasonal else 0,
            max_order=self.max_order,
            m=period if seasonal else 1,
            seasonal=seasonal,
            seasonal_test=self.seasonal_test,
            test="kpss",
            information_criterion=self.ic,
            stepwise=self.stepwise,
            maxiter=self.maxiter,
            suppress_warnings=True,
            error_action="ignore",
            trace=False,
        )

    def _fit(self, train: TimeSeries) -> FittedModel:
        values = train.to_numpy()
        if is_constant(values):
            logger.info(f"auto_arima[{train.entity}]: constant series, using ARIMA(0,0,0) mean model")
            return ArimaFit(
                self.name, train, (0, 0, 0), (0, 0, 0, train.period), mean=float(values[0])
            )
        from pmdarima import auto_arima

        model = auto_arima(values, **self.search_kwargs(len(values), train.period))
        fit = ArimaFit(self.name, train, model.order, model.seasonal_order, model=model)
        logger.info(f"auto_arima[{train.entity}]: selected {fit.label}")
        return fit
