"""
catalog.py
----------
The fixed, ordered set of candidate strategies.

Declaration order matters: when two strategies score the same MAPE the one
declared first wins, so STRATEGY_ORDER is the tie-break order.
"""

from __future__ import annotations
import logging
from typing import Optional

from admit_forecast.models.arima_model import AutoARIMA
from admit_forecast.models.base import ForecastStrategy
from admit_forecast.models.holt_winters_model import HoltWinters
from admit_forecast.models.moving_average_model import CenteredMovingAverage, TrailingMovingAverage
from admit_forecast.models.nnar_model import NNAR
from admit_forecast.models.regression_model import tslm, tslm_fourier
from admit_forecast.models.ses_model import SESDifferenced
from admit_forecast.models.snaive_model import SeasonalNaive
from admit_forecast.models.stl_model import STLETS

logger = logging.getLogger(__name__)

STRATEGY_ORDER = [
    "snaive",
    "ses_diff",
    "tslm",
    "ma_trailing",
    "ma_centered",
    "holt_winters",
    "stlf",
    "auto_arima",
    "nnar",
    "tslm_fourier",
]


_BUILDERS = {
    "snaive": lambda cfg: SeasonalNaive(),
    "ses_diff": lambda cfg: SESDifferenced(
        alpha=cfg.get("alpha", 0.5),
        alpha_overrides=cfg.get("alpha_overrides") or {},
        reintegrate=cfg.get("reintegrate", True),
    ),
    "tslm": lambda cfg: tslm(),
    "ma_trailing": lambda cfg: TrailingMovingAverage(window=cfg.get("window", 12)),
    "ma_centered": lambda cfg: CenteredMovingAverage(order=cfg.get("order", 12)),
    "holt_winters": lambda cfg: HoltWinters(
        max_period=cfg.get("max_period", 24),
        trend=cfg.get("trend", "add"),
        seasonal=cfg.get("seasonal", "add"),
    ),
    "stlf": lambda cfg: STLETS(robust=cfg.get("robust", True)),
    "auto_arima": lambda cfg: AutoARIMA(
        max_p=cfg.get("max_p", 2),
        max_q=cfg.get("max_q", 2),
        max_P=cfg.get("max_P", 1),
        max_Q=cfg.get("max_Q", 1),
        max_d=cfg.get("max_d", 2),
        max_D=cfg.get("max_D", 1),
        max_order=cfg.get("max_order", 5),
        stepwise=cfg.get("stepwise", True),
        information_criterion=cfg.get("information_criterion", "aicc"),
        maxiter=cfg.get("maxiter", 50),
        seasonal_test=cfg.get("seasonal_test", "ocsb"),
    ),
    "nnar": lambda cfg: NNAR(
        p=cfg.get("p", 12),
        P=cfg.get("P", 1),
        size=cfg.get("size", 7),
        repeats=cfg.get("repeats", 20),
        epochs=cfg.get("epochs", 200),
        lr=cfg.get("lr", 0.01),
        weight_decay=cfg.get("weight_decay", 1e-3),
        seed=cfg.get("seed", 42),
        device=cfg.get("device", "cpu"),
    ),
    "tslm_fourier": lambda cfg: tslm_fourier(
        harmonics=cfg.get("harmonics", 1),
        include_season_dummies=cfg.get("include_season_dummies", True),
    ),
}


def build_catalog(config: dict, enabled: Optional[list[str]] = None) -> dict[str, ForecastStrategy]:
    """
    Instantiate enabled strategies in catalog order.

    Args:
        config  : pipeline config; reads the `models` section
        enabled : explicit subset of strategy names (overrides `enabled` flags)
    """
    model_cfg = config.get("models", {})
    if enabled is not None:
        unknown = set(enabled) - set(STRATEGY_ORDER)
        if unknown:
            raise ValueError(f"Unknown strategies: {sorted(unknown)}")

    def is_enabled(name: str) -> bool:
        if enabled is not None:
            return name in enabled
        return model_cfg.get(name, {}).get("enabled", True)

    catalog = {}
    for name in STRATEGY_ORDER:
        if is_enabled(name):
            catalog[name] = _BUILDERS[name](model_cfg.get(name, {}))
    logger.info(f"Model catalog: {list(catalog)}")
    return catalog
