"""
nnar_model.py
-------------
Autoregressive feed-forward network, NNAR(p, P, size).

Inputs are the last `p` weeks plus the value `P` seasons back; a single
hidden layer of `size` logistic units feeds a linear output.

    [y(t-1) ... y(t-p), y(t-52)] → Linear → Sigmoid → Linear → ŷ(t)

Training is repeated `repeats` times from different seeded initialisations
and the networks' outputs are averaged. Multi-step forecasts are recursive:
each averaged prediction is appended to the history and becomes an input
for the next step.

Series are normalised (zero mean, unit variance) before training, then
denormalised, as the logistic units saturate on raw 0-100 interest values.
Initial weights are drawn from a per-repeat torch.Generator, so forecasts
are reproducible and independent of the global RNG state.
"""

from __future__ import annotations
import logging
from typing import Optional

import numpy as np
import torch
import torch.nn as nn

from admit_forecast.data.series_store import TimeSeries
from admit_forecast.features.build_features import lag_matrix, nnar_lags
from admit_forecast.models.base import FittedModel, ForecastStrategy

logger = logging.getLogger(__name__)


# ── Model Architecture ────────────────────────────────────────────────────────

class NNARNet(nn.Module):
    """
    Single-hidden-layer autoregressive network.

    Args:
        n_inputs : number of lagged inputs
        size     : hidden units
    """

    def __init__(self, n_inputs: int, size: int = 7) -> None:
        super().__init__()
        self.hidden = nn.Linear(n_inputs, size)
        self.out = nn.Linear(size, 1)

    def reset_parameters(self, generator: torch.Generator, scale: float = 0.5) -> None:
        with torch.no_grad():
            for p in self.parameters():
                p.copy_((torch.rand(p.shape, generator=generator) * 2 - 1) * scale)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.out(torch.sigmoid(self.hidden(x))).squeeze(-1)


# ── Fitted ensemble ───────────────────────────────────────────────────────────

class NNARFit(FittedModel):
    def __init__(self, name, series, nets: list[NNARNet], lags: list[int],
                 mean: float, std: float, device: torch.device) -> None:
        super().__init__(name, series)
        self.nets = nets
        self.lags = lags
        self.mean = mean
        self.std = std
        self.device = device

    def _predict(self, h: int) -> np.ndarray:
        history = list((self.series.to_numpy() - self.mean) / self.std)
        preds = []
        with torch.no_grad():
            for _ in range(h):
                x = torch.tensor(
                    [[history[-lag] for lag in self.lags]], dtype=torch.float32, device=self.device
                )
                step = float(np.mean([net(x).item() for net in self.nets]))
                history.append(step)
                preds.append(step)
        return np.asarray(preds) * self.std + self.mean


# ── Trainer ───────────────────────────────────────────────────────────────────

class NNAR(ForecastStrategy):
    """
    Args:
        p            : non-seasonal lags
        P            : seasonal lags
        size         : hidden units
        repeats      : independently initialised networks to average
        epochs       : full-batch training epochs per network
        lr           : Adam learning rate
        weight_decay : L2 penalty
        seed         : base seed; repeat r uses seed + r
        device       : torch device string
    """

    name = "nnar"

    def __init__(
        self,
        p: int = 12,
        P: int = 1,
        size: int = 7,
        repeats: int = 20,
        epochs: int = 200,
        lr: float = 0.01,
        weight_decay: float = 1e-3,
        seed: int = 42,
        device: Optional[str] = "cpu",
    ) -> None:
        self.p = p
        self.P = P
        self.size = size
        self.repeats = repeats
        self.epochs = epochs
        self.lr = lr
        self.weight_decay = weight_decay
        self.seed = seed
        self.device = torch.device(device or "cpu")

    def supports(self, series: TimeSeries) -> bool:
        return len(series) > max(nnar_lags(self.p, self.P, series.period)) + 1

    def unsupported_reason(self, series: TimeSeries) -> str:
        lags = nnar_lags(self.p, self.P, series.period)
        return f"nnar needs more than {max(lags) + 1} weeks for lags {lags}, got {len(series)}"

    def _train_one(self, X: torch.Tensor, y: torch.Tensor, repeat: int) -> NNARNet:
        gen = torch.Generator().manual_seed(self.seed + repeat)
        net = NNARNet(X.shape[1], self.size)
        net.reset_parameters(gen)
        net.to(self.device)
        optimizer = torch.optim.Adam(net.parameters(), lr=self.lr, weight_decay=self.weight_decay)
        criterion = nn.MSELoss()
        net.train()
        for _ in range(self.epochs):
            optimizer.zero_grad()
            loss = criterion(net(X), y)
            loss.backward()
            optimizer.step()
        net.eval()
        return net

    def _fit(self, train: TimeSeries) -> FittedModel:
        values = train.to_numpy()
        mean, std = float(values.mean()), float(values.std()) + 1e-8
        lags = nnar_lags(self.p, self.P, train.period)
        X_np, y_np = lag_matrix((values - mean) / std, lags)
        X = torch.tensor(X_np, dtype=torch.float32, device=self.device)
        y = torch.tensor(y_np, dtype=torch.float32, device=self.device)

        nets = [self._train_one(X, y, r) for r in range(self.repeats)]
        logger.debug(
            f"nnar[{train.entity}] trained {self.repeats} × NNAR({self.p},{self.P},{self.size}) "
            f"on {len(y_np)} samples"
        )
        return NNARFit(self.name, train, nets, lags, mean, std, self.device)
