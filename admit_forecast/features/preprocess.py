"""
preprocess.py
-------------
Cleaning and train/validation splitting ahead of model fitting.

Key design decisions:
- Zeros are replaced (not dropped) so the weekly grid stays intact and MAPE
  stays defined on the validation window.
- The validation window is always the chronologically last `n_valid` weeks.
"""

from __future__ import annotations
import logging

import numpy as np

from admit_forecast.data.series_store import SeriesStore, TimeSeries
from admit_forecast.exceptions import InsufficientDataError

logger = logging.getLogger(__name__)


def sanitize(series: TimeSeries, replacement: float = 1.0) -> TimeSeries:
    """
    Replace every exact-zero value with `replacement`.

    Returns a new TimeSeries; the input is left untouched.
    """
    values = series.values.copy()
    zeros = values.to_numpy() == 0
    if zeros.any():
        logger.info(f"{series.entity}: replacing {int(zeros.sum())} zero weeks with {replacement}")
        values[zeros] = replacement
    return series.with_values(values)


def split(series: TimeSeries, n_valid: int) -> tuple[TimeSeries, TimeSeries]:
    """
    Split into (train, valid) where valid is the last `n_valid` points.

    Raises:
        InsufficientDataError if the series cannot hold a non-empty training prefix
    """
    n = len(series)
    if n_valid < 1:
        raise InsufficientDataError(f"n_valid must be >= 1, got {n_valid}")
    if n <= n_valid:
        raise InsufficientDataError(
            f"{series.entity}: {n} weeks is not enough for a {n_valid}-week validation window"
        )
    train = SeriesStore.window(series, 0, n - n_valid - 1)
    valid = SeriesStore.window(series, n - n_valid, n - 1)
    return train, valid


def is_constant(values: np.ndarray) -> bool:
    """True when every value equals the first one (degenerate for variance-based fits)."""
    return len(values) > 0 and bool(np.all(values == values[0]))
