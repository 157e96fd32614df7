"""Mathematical helpers on dense 2D tensors.

Everything runs on CPU in double precision without autograd; gradients are
derived by hand in :mod:`gate_network.training.objectives`.
"""
from __future__ import annotations

from typing import Sequence

import torch
from torch import Tensor

DTYPE = torch.float64


def as_matrix(values: Tensor | Sequence[float] | Sequence[Sequence[float]]) -> Tensor:
    """Return ``values`` as a detached 2D float64 tensor.

    A flat sequence becomes a single row.
    """

    matrix = torch.as_tensor(values, dtype=DTYPE).detach()
    if matrix.ndim == 1:
        matrix = matrix.unsqueeze(0)
    if matrix.ndim != 2:
        raise ValueError("expected a vector or a matrix")
    return matrix


def sigmoid(x: Tensor) -> Tensor:
    """Elementwise ``1 / (1 + exp(-x))``."""

    return torch.sigmoid(x)


def sigmoid_derivative(activated: Tensor) -> Tensor:
    """Derivative of the sigmoid expressed through its output ``s``: ``s * (1 - s)``."""

    return activated * (1.0 - activated)


def clamp_probabilities(p: Tensor, eps: float = 1e-7) -> Tensor:
    """Clamp probabilities into ``[eps, 1 - eps]`` so logarithms stay finite."""

    if not 0.0 < eps < 0.5:
        raise ValueError("eps must lie in (0, 0.5)")
    return torch.clamp(p, eps, 1.0 - eps)


def round_predictions(p: Tensor, threshold: float = 0.5) -> Tensor:
    """Map probabilities to 0/1 labels, values at the threshold round up."""

    return (p >= threshold).to(DTYPE)
