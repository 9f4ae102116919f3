"""
pipeline.py
-----------
Master pipeline: load → sanitize → split → score catalog → select → refit → forecast → YoY change.

Each entity runs independently; a failure in one entity (too little data, no
strategy fits, window misalignment) is recorded and the batch carries on.

Usage:
    python -m admit_forecast.pipeline
    python -m admit_forecast.pipeline --entities harvard mit --models snaive tslm tslm_fourier
"""

from __future__ import annotations
import argparse
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Mapping, Optional

import pandas as pd

from admit_forecast.analysis.change import ChangeSeries, compute_change, validate_change_config
from admit_forecast.data.series_store import SeriesStore, TimeSeries
from admit_forecast.evaluation.selection import (
    BestModelChoice,
    EvaluationResult,
    leaderboard,
    rank,
    score_strategies,
)
from admit_forecast.exceptions import ForecastPipelineError
from admit_forecast.features.preprocess import sanitize, split
from admit_forecast.forecasting.forecaster import ForecastResult, refit_and_forecast
from admit_forecast.models.base import ForecastStrategy
from admit_forecast.models.catalog import STRATEGY_ORDER, build_catalog
from admit_forecast.utils.data_loader import load_config, load_trends_data, resolve_path

logger = logging.getLogger(__name__)


@dataclass
class EntityResult:
    """Everything the reporting layer needs for one entity."""
    entity: str
    series: TimeSeries
    evaluation: EvaluationResult
    best: BestModelChoice
    forecast: ForecastResult
    change: ChangeSeries

    def __repr__(self) -> str:
        return (
            f"EntityResult(entity={self.entity}, best={self.best.strategy}, "
            f"MAPE={self.best.mape:.2f}%, change_weeks={len(self.change)})"
        )


@dataclass
class BatchResult:
    results: dict[str, EntityResult] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    def leaderboard(self) -> pd.DataFrame:
        records = [r for res in self.results.values() for r in res.evaluation.records]
        return leaderboard(records, STRATEGY_ORDER)

    def best_models(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{"entity": e, "strategy": r.best.strategy, "mape": r.best.mape}
             for e, r in self.results.items()],
            columns=["entity", "strategy", "mape"],
        )

    def forecasts(self) -> pd.DataFrame:
        frames = [r.forecast.to_frame() for r in self.results.values()]
        return pd.concat(frames, ignore_index=True) if frames else pd.DataFrame()

    def changes(self) -> pd.DataFrame:
        frames = [r.change.to_frame() for r in self.results.values()]
        return pd.concat(frames, ignore_index=True) if frames else pd.DataFrame()


def run_entity(
    store: SeriesStore,
    entity: str,
    config: dict,
    catalog: Optional[Mapping[str, ForecastStrategy]] = None,
) -> EntityResult:
    """Full per-entity pipeline. Raises ForecastPipelineError subclasses on failure."""
    series_cfg = config.get("series", {})
    change_cfg = config.get("change", {})
    catalog = catalog if catalog is not None else build_catalog(config)

    raw = store.load(entity)
    series = sanitize(raw, replacement=series_cfg.get("zero_replacement", 1))
    train, valid = split(series, series_cfg.get("n_valid", 52))
    logger.info(f"[{entity}] train={len(train)} weeks, valid={len(valid)} weeks")

    evaluation = score_strategies(train, valid, catalog)
    best = rank(entity, evaluation.scores, list(catalog))
    logger.info(f"[{entity}] best strategy: {best.strategy} (MAPE={best.mape:.2f}%)")

    forecast = refit_and_forecast(series, catalog[best.strategy], horizon=series_cfg.get("horizon", 52))
    change = compute_change(
        entity,
        forecast.values,
        series,
        window_start=change_cfg.get("window_start", "08-01"),
        window_end=change_cfg.get("window_end", "01-01"),
        deadlines=change_cfg.get("deadlines"),
        baseline=change_cfg.get("baseline", 0.0),
    )
    return EntityResult(entity, series, evaluation, best, forecast, change)


def run_batch(
    store: SeriesStore,
    config: dict,
    entities: Optional[list[str]] = None,
    enabled_models: Optional[list[str]] = None,
) -> BatchResult:
    """
    Run every entity, sequentially or on a thread pool (`evaluation.n_jobs`).

    Per-entity ForecastPipelineErrors are collected in `failures`. A malformed
    `change` section raises ValueError before any entity runs.
    """
    validate_change_config(config.get("change", {}))
    entities = entities if entities is not None else store.entities()
    n_jobs = config.get("evaluation", {}).get("n_jobs", 1)
    catalog = build_catalog(config, enabled=enabled_models)
    batch = BatchResult()

    def _record(entity: str, fn) -> None:
        try:
            batch.results[entity] = fn()
        except ForecastPipelineError as e:
            logger.error(f"[{entity}] failed: {type(e).__name__}: {e}")
            batch.failures[entity] = f"{type(e).__name__}: {e}"

    if n_jobs <= 1 or len(entities) <= 1:
        for entity in entities:
            logger.info(f"\n▶ {entity}")
            _record(entity, lambda e=entity: run_entity(store, e, config, catalog))
    else:
        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            futures = {
                executor.submit(run_entity, store, e, config, catalog): e for e in entities
            }
            for future in as_completed(futures):
                _record(futures[future], future.result)

    # keep the caller's entity order regardless of completion order
    batch.results = {e: batch.results[e] for e in entities if e in batch.results}
    logger.info(f"Batch complete: {len(batch.results)} ok, {len(batch.failures)} failed")
    return batch


def run_pipeline(
    config: dict,
    entities: Optional[list[str]] = None,
    enabled_models: Optional[list[str]] = None,
) -> BatchResult:
    """End-to-end pipeline execution."""
    out_dir = resolve_path(config["evaluation"]["output_dir"])
    out_dir.mkdir(parents=True, exist_ok=True)

    # ── 1. Load Data ──────────────────────────────────────────────────────────
    logger.info("=" * 60)
    logger.info("STEP 1/3 — Loading search-interest series")
    logger.info("=" * 60)
    frames = load_trends_data(config)
    store = SeriesStore.from_frames(frames, period=config["series"]["period"])
    logger.info(f"{len(store)} entities in store")

    # ── 2. Select, refit, forecast ────────────────────────────────────────────
    logger.info("=" * 60)
    logger.info("STEP 2/3 — Model selection and forecasting")
    logger.info("=" * 60)
    batch = run_batch(store, config, entities=entities, enabled_models=enabled_models)

    # ── 3. Outputs ────────────────────────────────────────────────────────────
    logger.info("=" * 60)
    logger.info("STEP 3/3 — Writing outputs")
    logger.info("=" * 60)
    board = batch.leaderboard()
    board.to_csv(out_dir / "leaderboard.csv", index=False)
    batch.best_models().to_csv(out_dir / "best_models.csv", index=False)
    if batch.results:
        batch.forecasts().to_parquet(out_dir / "forecasts.parquet", index=False)
        batch.changes().to_parquet(out_dir / "changes.parquet", index=False)

    print("\n" + "=" * 60)
    print("🏆  BEST MODEL PER ENTITY (hold-out MAPE)")
    print("=" * 60)
    print(batch.best_models().to_string(index=False))
    for entity, reason in batch.failures.items():
        print(f"⚠️  {entity}: {reason}")
    print(f"\n✅ Outputs → {out_dir}/")
    return batch


def main():
    parser = argparse.ArgumentParser(description="Admissions search-interest forecasting pipeline")
    parser.add_argument("--config", default="configs/default.yaml", help="Config YAML path")
    parser.add_argument("--entities", nargs="+", help="Subset of entities to run")
    parser.add_argument("--models", nargs="+", help=f"Subset of strategies: {' '.join(STRATEGY_ORDER)}")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler()],
    )
    run_pipeline(load_config(args.config), entities=args.entities, enabled_models=args.models)


if __name__ == "__main__":
    main()
