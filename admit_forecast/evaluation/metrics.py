"""
metrics.py
----------
Forecast accuracy metrics: MAPE (the selection metric), MAE and RMSE.
"""

from __future__ import annotations
import numpy as np


def _aligned(y_true, y_pred) -> tuple[np.ndarray, np.ndarray]:
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.shape != y_pred.shape:
        raise ValueError(f"Length mismatch: actual {y_true.shape} vs forecast {y_pred.shape}")
    if y_true.size == 0:
        raise ValueError("Cannot score an empty window")
    return y_true, y_pred


def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Mean Absolute Error."""
    y_true, y_pred = _aligned(y_true, y_pred)
    return float(np.mean(np.abs(y_true - y_pred)))


def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Root Mean Squared Error."""
    y_true, y_pred = _aligned(y_true, y_pred)
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def mape(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Mean Absolute Percentage Error, in percent.

        MAPE = mean(|actual - forecast| / |actual|) * 100

    Actuals must be non-zero; `sanitize` guarantees this upstream.
    """
    y_true, y_pred = _aligned(y_true, y_pred)
    if (y_true == 0).any():
        raise ValueError("MAPE is undefined for zero actuals; sanitize the series first")
    return float(100.0 * np.mean(np.abs(y_true - y_pred) / np.abs(y_true)))


def compute_all_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> dict[str, float]:
    """Compute all standard metrics and return as a dict."""
    return {
        "mape": mape(y_true, y_pred),
        "mae": mae(y_true, y_pred),
        "rmse": rmse(y_true, y_pred),
    }
