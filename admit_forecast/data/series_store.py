"""
series_store.py
---------------
Per-entity weekly search-interest series and positional windowing.

Every series lives on a strictly increasing weekly DatetimeIndex and carries
its seasonal period (52 weeks = one admissions cycle). Series are never
mutated: preprocessing steps build new TimeSeries via `with_values`.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Mapping

import numpy as np
import pandas as pd

from admit_forecast.exceptions import MissingDataError, RangeError

logger = logging.getLogger(__name__)

WEEK = pd.Timedelta(weeks=1)


@dataclass(frozen=True, eq=False)
class TimeSeries:
    """
    One entity's weekly series.

    Args:
        entity : stable entity key (school / admissions topic)
        values : float Series indexed by week-start timestamps
        period : seasonal period in observations
    """
    entity: str
    values: pd.Series
    period: int = 52

    def __post_init__(self) -> None:
        idx = self.values.index
        if not isinstance(idx, pd.DatetimeIndex):
            raise ValueError(f"{self.entity}: series must be indexed by dates")
        if idx.has_duplicates:
            raise ValueError(f"{self.entity}: duplicate timestamps in series")
        if not idx.is_monotonic_increasing:
            raise ValueError(f"{self.entity}: timestamps must be strictly increasing")
        if self.period < 1:
            raise ValueError(f"period must be >= 1, got {self.period}")
        arr = self.values.to_numpy(dtype=float)
        if np.isnan(arr).any():
            raise ValueError(f"{self.entity}: series contains missing values")
        if (arr < 0).any():
            raise ValueError(f"{self.entity}: search-interest values must be non-negative")

    def __len__(self) -> int:
        return len(self.values)

    @property
    def dates(self) -> pd.DatetimeIndex:
        return self.values.index

    @property
    def last_date(self) -> pd.Timestamp:
        return self.values.index[-1]

    def to_numpy(self) -> np.ndarray:
        return self.values.to_numpy(dtype=float)

    def future_index(self, h: int) -> pd.DatetimeIndex:
        """The `h` weekly timestamps immediately after the last observation."""
        return pd.date_range(self.last_date + WEEK, periods=h, freq=WEEK)

    def with_values(self, values: pd.Series) -> "TimeSeries":
        """Derived series for the same entity and period."""
        return TimeSeries(entity=self.entity, values=values, period=self.period)


class SeriesStore:
    """
    Holds one TimeSeries per entity.

    Usage:
        store = SeriesStore.from_frames(load_trends_data(config), period=52)
        ts = store.load("harvard")
        last_year = store.window(ts, len(ts) - 52, len(ts) - 1)
    """

    def __init__(self, series: Mapping[str, TimeSeries] | None = None) -> None:
        self._series: dict[str, TimeSeries] = dict(series or {})

    @classmethod
    def from_frames(
        cls,
        frames: Mapping[str, pd.DataFrame],
        period: int = 52,
        date_col: str = "date",
        value_col: str = "value",
    ) -> "SeriesStore":
        """Build a store from ingestion tables (one two-column frame per entity)."""
        store = cls()
        for entity, df in frames.items():
            s = (
                df.sort_values(date_col)
                .set_index(date_col)[value_col]
                .astype(float)
                .rename(entity)
            )
            s.index = pd.DatetimeIndex(s.index, name="date")
            store.add(TimeSeries(entity=entity, values=s, period=period))
            logger.info(
                f"Loaded {entity}: {len(s)} weeks "
                f"({s.index[0].date()} → {s.index[-1].date()})"
            )
        return store

    def add(self, series: TimeSeries) -> None:
        self._series[series.entity] = series

    def entities(self) -> list[str]:
        return list(self._series)

    def __contains__(self, entity: str) -> bool:
        return entity in self._series

    def __len__(self) -> int:
        return len(self._series)

    def load(self, entity: str) -> TimeSeries:
        if entity not in self:
            raise MissingDataError(f"No series loaded for entity '{entity}'")
        return self._series[entity]

    @staticmethod
    def window(series: TimeSeries, start: int, end: int) -> TimeSeries:
        """Inclusive positional slice [start, end], time order preserved."""
        n = len(series)
        if start < 0 or end >= n or start > end:
            raise RangeError(
                f"{series.entity}: window [{start}, {end}] outside series of length {n}"
            )
        return series.with_values(series.values.iloc[start : end + 1])
