"""
change.py
---------
Year-over-year change over the admissions application window.

For the configured calendar window (Aug 1 – Jan 1 by default), the forecast
weeks falling inside the window are compared with the realised weeks one
seasonal cycle (P weeks) earlier:

    change[i] = forecast_window[i] - history_window[i]

When the forecast or the history covers only part of the window, both sides
are clipped to the weeks present in each, so the change series spans the
overlap. Alignment is by position within the window. Shifting by P weeks
rather than by a calendar year keeps both windows on the same weekday grid,
so regular weekly series always yield windows of equal length.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

import pandas as pd

from admit_forecast.data.series_store import WEEK, TimeSeries
from admit_forecast.exceptions import AlignmentError

logger = logging.getLogger(__name__)


@dataclass
class ChangeSeries:
    """
    Pointwise forecast-minus-prior-year differences for one entity.

    `markers` holds the deadline dates (label -> date) and `baseline` the
    reference level the plotting layer draws as a horizontal line.
    """
    entity: str
    values: pd.Series
    prior_dates: pd.DatetimeIndex
    window_start: pd.Timestamp
    window_end: pd.Timestamp
    markers: dict[str, pd.Timestamp] = field(default_factory=dict)
    baseline: float = 0.0

    def __len__(self) -> int:
        return len(self.values)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "entity": self.entity,
            "date": self.values.index,
            "prior_date": self.prior_dates,
            "change": self.values.to_numpy(),
        })


def parse_month_day(value: str) -> tuple[int, int]:
    """'08-01' -> (8, 1). Feb 29 is rejected since it has no date in most years."""
    try:
        month, day = (int(part) for part in str(value).split("-"))
        pd.Timestamp(year=2001, month=month, day=day)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected MM-DD, got {value!r}") from exc
    return month, day


def calendar_window(
    dates: pd.DatetimeIndex,
    window_start: str,
    window_end: str,
) -> tuple[pd.Timestamp, pd.Timestamp]:
    """
    The [start, end] calendar window holding the most of `dates`.

    The window wraps into the next year when its end falls before its start
    (Aug 1 – Jan 1). Partial overlap counts; among equally covered windows
    the earliest wins.
    """
    sm, sd = parse_month_day(window_start)
    em, ed = parse_month_day(window_end)
    wraps = (em, ed) < (sm, sd)
    first, last = dates[0], dates[-1]
    best, best_count = None, 0
    for year in range(first.year - 1, last.year + 1):
        start = pd.Timestamp(year=year, month=sm, day=sd)
        end = pd.Timestamp(year=year + int(wraps), month=em, day=ed)
        count = int(((dates >= start) & (dates <= end)).sum())
        if count > best_count:
            best, best_count = (start, end), count
    if best is None:
        raise AlignmentError(
            f"No {window_start}..{window_end} window overlaps {first.date()} → {last.date()}"
        )
    return best


def validate_change_config(change_cfg: Mapping) -> None:
    """Parse every MM-DD in the `change` config section; ValueError on the first bad one."""
    parse_month_day(change_cfg.get("window_start", "08-01"))
    parse_month_day(change_cfg.get("window_end", "01-01"))
    for md in (change_cfg.get("deadlines") or {}).values():
        parse_month_day(md)


def deadline_markers(
    deadlines: Optional[Mapping[str, str]],
    window_start: pd.Timestamp,
    window_end: pd.Timestamp,
) -> dict[str, pd.Timestamp]:
    """Place each MM-DD deadline on its occurrence inside the window."""
    markers = {}
    for label, md in (deadlines or {}).items():
        month, day = parse_month_day(md)
        for year in (window_start.year, window_end.year):
            ts = pd.Timestamp(year=year, month=month, day=day)
            if window_start <= ts <= window_end:
                markers[label] = ts
                break
        else:
            logger.warning(f"Deadline {label} ({md}) falls outside {window_start.date()}..{window_end.date()}")
    return markers


def compute_change(
    entity: str,
    forecast: pd.Series,
    history: TimeSeries,
    window_start: str = "08-01",
    window_end: str = "01-01",
    deadlines: Optional[Mapping[str, str]] = None,
    baseline: float = 0.0,
) -> ChangeSeries:
    """
    Forecast minus prior-cycle realised values over the calendar window.

    Args:
        entity       : entity key
        forecast     : forward forecast indexed by future weeks
        history      : realised (sanitized) series the forecast extends
        window_start : window start as MM-DD
        window_end   : window end as MM-DD (inclusive; may wrap the year)
        deadlines    : label -> MM-DD markers for the plotting layer
        baseline     : reference line level

    Raises:
        AlignmentError if the window overlap is empty or the two clipped
        windows differ in length
    """
    if forecast.empty:
        raise AlignmentError(f"{entity}: empty forecast")
    start, end = calendar_window(pd.DatetimeIndex(forecast.index), window_start, window_end)

    # keep only weeks whose prior-cycle counterpart lies inside the history
    shift = WEEK * history.period
    hist = history.values
    lo = max(start, hist.index[0] + shift)
    hi = min(end, hist.index[-1] + shift)
    fc_window = forecast.loc[lo:hi] if lo <= hi else forecast.iloc[:0]
    if fc_window.empty:
        raise AlignmentError(
            f"{entity}: no forecast week in {start.date()}..{end.date()} has a realised "
            f"prior-cycle week in {hist.index[0].date()} → {hist.index[-1].date()}"
        )
    hist_window = hist.loc[fc_window.index[0] - shift:fc_window.index[-1] - shift]

    if len(fc_window) != len(hist_window):
        raise AlignmentError(
            f"{entity}: forecast window has {len(fc_window)} weeks, "
            f"prior window has {len(hist_window)}"
        )
    if len(fc_window) < len(forecast.loc[start:end]):
        logger.info(
            f"[{entity}] change window clipped to {fc_window.index[0].date()}..{fc_window.index[-1].date()}"
        )

    values = pd.Series(
        fc_window.to_numpy() - hist_window.to_numpy(),
        index=fc_window.index,
        name="change",
    )
    logger.info(
        f"[{entity}] change over {start.date()}..{end.date()}: "
        f"mean {values.mean():+.2f}, {int((values > baseline).sum())}/{len(values)} weeks above baseline"
    )
    return ChangeSeries(
        entity=entity,
        values=values,
        prior_dates=pd.DatetimeIndex(hist_window.index),
        window_start=start,
        window_end=end,
        markers=deadline_markers(deadlines, start, end),
        baseline=baseline,
    )
