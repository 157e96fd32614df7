"""Binary cross-entropy objective and hand-derived gradients."""
from __future__ import annotations

from typing import List, Tuple

from torch import Tensor

from ..core import clamp_probabilities, round_predictions, sigmoid_derivative
from ..models.network import GateNetwork, LayerGradients


def binary_cross_entropy(predictions: Tensor, targets: Tensor, eps: float = 1e-7) -> float:
    """Mean of ``-(y log p + (1 - y) log(1 - p))`` with ``p`` clamped away from 0 and 1."""

    if predictions.shape != targets.shape:
        raise ValueError("predictions and targets must have the same shape")
    p = clamp_probabilities(predictions, eps)
    losses = -(targets * p.log() + (1.0 - targets) * (1.0 - p).log())
    return float(losses.mean())


def accuracy(predictions: Tensor, targets: Tensor) -> float:
    """Fraction of rows whose prediction rounded at 0.5 equals the target."""

    if predictions.shape != targets.shape:
        raise ValueError("predictions and targets must have the same shape")
    matches = round_predictions(predictions) == targets
    return float(matches.double().mean())


def backpropagate(
    model: GateNetwork,
    inputs: Tensor,
    targets: Tensor,
    *,
    eps: float = 1e-7,
) -> Tuple[float, float, List[LayerGradients]]:
    """Run a full-batch forward pass and return ``(loss, accuracy, gradients)``.

    With a sigmoid output the derivative of the mean cross-entropy with respect
    to the output pre-activation reduces to ``(p - y) / n``. The hidden layer
    receives that error through the output weights, scaled by ``h * (1 - h)``.
    """

    hidden_layer, output_layer = model.layers
    hidden, predictions = model.forward_batch(inputs)
    num_samples = inputs.shape[0]

    loss = binary_cross_entropy(predictions, targets, eps)
    acc = accuracy(predictions, targets)

    # Output layer
    delta_output = (predictions - targets) / num_samples
    grad_w2 = hidden.T @ delta_output
    grad_b2 = delta_output.sum(dim=0)

    # Hidden layer
    delta_hidden = (delta_output @ output_layer.weight.T) * sigmoid_derivative(hidden)
    grad_w1 = inputs.T @ delta_hidden
    grad_b1 = delta_hidden.sum(dim=0)

    gradients = [
        LayerGradients(weight=grad_w1, bias=grad_b1),
        LayerGradients(weight=grad_w2, bias=grad_b2),
    ]
    return loss, acc, gradients


__all__ = ["accuracy", "backpropagate", "binary_cross_entropy"]
