"""
build_features.py
-----------------
Design matrices for the regression and neural-network strategies.

Key design decisions:
- Features are a function of the absolute position t within the series, so
  forecasting simply continues t past the training window and the seasonal
  phase stays aligned.
- Season dummies always span the full period (first season dropped as the
  baseline) so train and forecast matrices have identical columns.
"""

from __future__ import annotations
import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


# ── Trend ─────────────────────────────────────────────────────────────────────

def add_trend_feature(df: pd.DataFrame, positions: np.ndarray) -> pd.DataFrame:
    """Linear trend counted from 1 at the first training observation."""
    df = df.copy()
    df["trend"] = positions.astype(float) + 1.0
    return df


# ── Seasonal Dummies ──────────────────────────────────────────────────────────

def add_season_dummies(df: pd.DataFrame, positions: np.ndarray, period: int) -> pd.DataFrame:
    """
    One-hot season-of-year columns season_2 ... season_P.

    Season 1 is the baseline absorbed by the intercept.
    """
    df = df.copy()
    season = positions % period
    for s in range(1, period):
        df[f"season_{s + 1}"] = (season == s).astype(float)
    return df


# ── Fourier Terms ─────────────────────────────────────────────────────────────

def add_fourier_terms(
    df: pd.DataFrame,
    positions: np.ndarray,
    period: int,
    harmonics: int = 1,
) -> pd.DataFrame:
    """
    sin/cos pairs sin(2πkt/P), cos(2πkt/P) for k = 1..harmonics.

    Smooth seasonal shape with 2K parameters instead of P-1 dummies.
    """
    if harmonics < 1 or 2 * harmonics > period:
        raise ValueError(f"harmonics must be in [1, {period // 2}], got {harmonics}")
    df = df.copy()
    t = positions.astype(float) + 1.0
    for k in range(1, harmonics + 1):
        df[f"sin_{k}"] = np.sin(2 * np.pi * k * t / period)
        df[f"cos_{k}"] = np.cos(2 * np.pi * k * t / period)
        # sin of the Nyquist harmonic is identically zero
        if 2 * k == period:
            df = df.drop(columns=f"sin_{k}")
    return df


# ── Master Builder ────────────────────────────────────────────────────────────

def build_design_matrix(
    positions: np.ndarray,
    period: int,
    trend: bool = True,
    season_dummies: bool = False,
    harmonics: int = 0,
) -> pd.DataFrame:
    """
    Regression design matrix for the given absolute positions.

    Args:
        positions      : integer positions (0 = first training week)
        period         : seasonal period
        trend          : include a linear trend column
        season_dummies : include one-hot season-of-year columns
        harmonics      : number of Fourier sin/cos pairs (0 = none)
    """
    positions = np.asarray(positions)
    df = pd.DataFrame(index=range(len(positions)))
    if trend:
        df = add_trend_feature(df, positions)
    if season_dummies:
        df = add_season_dummies(df, positions, period)
    if harmonics:
        df = add_fourier_terms(df, positions, period, harmonics)
    if df.shape[1] == 0:
        raise ValueError("Design matrix needs at least one feature group")
    return df


# ── Lagged Inputs ─────────────────────────────────────────────────────────────

def nnar_lags(p: int, P: int, period: int) -> list[int]:
    """Lags 1..p plus the first P seasonal lags (period, 2·period, ...)."""
    lags = list(range(1, p + 1))
    for j in range(1, P + 1):
        lag = j * period
        if lag not in lags:
            lags.append(lag)
    return sorted(lags)


def lag_matrix(values: np.ndarray, lags: list[int]) -> tuple[np.ndarray, np.ndarray]:
    """
    Supervised (X, y) pairs where each row of X holds values at the given lags.

    Rows start at max(lags), so no row reads before the series start.
    """
    max_lag = max(lags)
    if len(values) <= max_lag:
        raise ValueError(f"Need more than {max_lag} observations for lags {lags}, got {len(values)}")
    rows = np.arange(max_lag, len(values))
    X = np.column_stack([values[rows - lag] for lag in lags])
    y = values[rows]
    return X, y
