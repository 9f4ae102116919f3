"""
selection.py
------------
Hold-out scoring of every catalog strategy and best-model selection.

    train ─► strategy.fit ─► forecast(len(valid)) ─► MAPE vs valid
                                          │
       {strategy: MAPE} ──► rank ──► BestModelChoice

A strategy that is unavailable for the series or fails to fit is recorded
with an infinite MAPE and the reason, and is never selected. Ranking is a
strict minimum; exact ties go to the strategy declared first in the catalog.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

import pandas as pd

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.evaluation.metrics import compute_all_metrics
from admit_forecast.exceptions import ModelFitError, StrategyUnavailableError
from admit_forecast.models.base import ForecastStrategy

logger = logging.getLogger(__name__)


@dataclass
class ScoreRecord:
    """One strategy's hold-out score for one entity."""
    entity: str
    strategy: str
    mape: float
    mae: float = math.nan
    rmse: float = math.nan
    status: str = "ok"  # ok | skipped | failed
    error: Optional[str] = None

    @property
    def usable(self) -> bool:
        return self.status == "ok" and math.isfinite(self.mape)


@dataclass(frozen=True)
class BestModelChoice:
    entity: str
    strategy: str
    mape: float


@dataclass
class EvaluationResult:
    """All scores for one entity plus the validation-window forecasts."""
    entity: str
    records: list[ScoreRecord] = field(default_factory=list)
    forecasts: dict[str, pd.Series] = field(default_factory=dict)

    @property
    def scores(self) -> dict[str, float]:
        return {r.strategy: r.mape for r in self.records}

    def __repr__(self) -> str:
        ok = sum(r.usable for r in self.records)
        return f"EvaluationResult(entity={self.entity}, scored={ok}/{len(self.records)})"


def score_strategy(
    strategy: ForecastStrategy,
    train: TimeSeries,
    valid: TimeSeries,
) -> tuple[ScoreRecord, Optional[pd.Series]]:
    """Fit on train, forecast the validation horizon and score it."""
    try:
        fitted = strategy.fit(train)
        fc = fitted.forecast(len(valid))
    except StrategyUnavailableError as exc:
        logger.warning(f"[{train.entity}] {strategy.name} skipped: {exc}")
        return ScoreRecord(train.entity, strategy.name, math.inf, status="skipped", error=str(exc)), None
    except ModelFitError as exc:
        logger.warning(f"[{train.entity}] {strategy.name} failed: {exc}")
        return ScoreRecord(train.entity, strategy.name, math.inf, status="failed", error=str(exc)), None

    metrics = compute_all_metrics(valid.to_numpy(), fc.to_numpy())
    logger.info(f"[{train.entity}] {strategy.name:<13} MAPE={metrics['mape']:.2f}%")
    return ScoreRecord(train.entity, strategy.name, **metrics), fc


def score_strategies(
    train: TimeSeries,
    valid: TimeSeries,
    catalog: Mapping[str, ForecastStrategy],
) -> EvaluationResult:
    """Score every strategy in catalog order."""
    result = EvaluationResult(entity=train.entity)
    for strategy in catalog.values():
        record, fc = score_strategy(strategy, train, valid)
        result.records.append(record)
        if fc is not None:
            result.forecasts[strategy.name] = fc
    return result


def rank(
    entity: str,
    scores: Mapping[str, float],
    order: Sequence[str],
) -> BestModelChoice:
    """
    Pick the strategy with the lowest finite MAPE.

    Args:
        entity : entity key
        scores : strategy name -> MAPE (inf / nan for excluded strategies)
        order  : catalog declaration order, used to break exact ties

    Raises:
        ModelFitError if no strategy has a finite score
    """
    position = {name: i for i, name in enumerate(order)}
    finite = {name: s for name, s in scores.items() if s is not None and math.isfinite(s)}
    if not finite:
        raise ModelFitError(f"All {len(scores)} strategies failed for entity '{entity}'")
    best = min(finite, key=lambda name: (finite[name], position.get(name, len(position)), name))
    return BestModelChoice(entity=entity, strategy=best, mape=finite[best])


def leaderboard(records: Sequence[ScoreRecord], order: Sequence[str]) -> pd.DataFrame:
    """
    Per-entity leaderboard DataFrame, best first within each entity.

    Columns: entity, rank, strategy, mape, mae, rmse, status, error.
    """
    position = {name: i for i, name in enumerate(order)}
    df = pd.DataFrame([vars(r) for r in records])
    if df.empty:
        return pd.DataFrame(columns=["entity", "rank", "strategy", "mape", "mae", "rmse", "status", "error"])
    df["_pos"] = df["strategy"].map(position).fillna(len(position))
    df = df.sort_values(["entity", "mape", "_pos"]).drop(columns="_pos")
    df.insert(1, "rank", df.groupby("entity").cumcount() + 1)
    df["mape"] = df["mape"].round(4)
    return df.reset_index(drop=True)
