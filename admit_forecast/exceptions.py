"""exceptions.py — Error taxonomy for the forecasting pipeline."""
from __future__ import annotations


class ForecastPipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class MissingDataError(ForecastPipelineError, KeyError):
    """An entity has no series in the store."""

    def __str__(self) -> str:
        # KeyError repr-quotes its message; keep it readable in logs
        return str(self.args[0]) if self.args else ""


class InsufficientDataError(ForecastPipelineError, ValueError):
    """A series is too short for the requested validation window."""


class RangeError(ForecastPipelineError, IndexError):
    """A positional window falls outside the series bounds."""


class AlignmentError(ForecastPipelineError, ValueError):
    """Forecast and prior-year change windows cannot be aligned."""


class ModelFitError(ForecastPipelineError, RuntimeError):
    """A strategy failed to fit or produced an unusable forecast."""


class StrategyUnavailableError(ModelFitError):
    """A strategy's precondition rejects the series (e.g. period too long)."""
