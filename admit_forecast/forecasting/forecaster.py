"""
forecaster.py
-------------
Refit the selected strategy on the full history and extrapolate.

The same strategy object that was scored on the training window is reused
here, so validation-time and production-time behaviour cannot drift apart.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

import pandas as pd

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.models.base import ForecastStrategy

logger = logging.getLogger(__name__)


@dataclass
class ForecastResult:
    """`values` is indexed by the weeks immediately after the last observation."""
    entity: str
    strategy: str
    values: pd.Series

    @property
    def horizon(self) -> int:
        return len(self.values)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "entity": self.entity,
            "strategy": self.strategy,
            "date": self.values.index,
            "forecast": self.values.to_numpy(),
        })


def refit_and_forecast(
    series: TimeSeries,
    strategy: ForecastStrategy,
    horizon: int = 52,
) -> ForecastResult:
    """
    Fit `strategy` on the entire series and forecast `horizon` weeks ahead.

    Raises:
        ModelFitError if the strategy cannot be fitted to the full history
    """
    logger.info(f"[{series.entity}] refitting {strategy.name} on {len(series)} weeks, horizon={horizon}")
    fitted = strategy.fit(series)
    values = fitted.forecast(horizon)
    return ForecastResult(entity=series.entity, strategy=strategy.name, values=values)
