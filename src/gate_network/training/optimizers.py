"""Update rules turning raw gradients into the steps applied to the network."""
from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

import torch

from ..models.network import LayerGradients


class UpdateRule(Protocol):
    def direction(self, gradients: Sequence[LayerGradients]) -> List[LayerGradients]:
        ...


class GradientDescent:
    """Plain gradient descent: the step direction is the gradient itself."""

    def direction(self, gradients: Sequence[LayerGradients]) -> List[LayerGradients]:
        return list(gradients)


class Adam:
    """Adaptive moment estimation with bias correction.

    ``direction`` returns ``m_hat / (sqrt(v_hat) + epsilon)``; scaling by the
    learning rate happens in :meth:`GateNetwork.apply_gradient_step`. The rule is
    stateful and must be recreated for every training run.
    """

    def __init__(self, beta1: float = 0.9, beta2: float = 0.999, epsilon: float = 1e-7) -> None:
        if not 0.0 <= beta1 < 1.0:
            raise ValueError("beta1 must lie in [0, 1)")
        if not 0.0 <= beta2 < 1.0:
            raise ValueError("beta2 must lie in [0, 1)")
        if epsilon <= 0:
            raise ValueError("epsilon must be positive")
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon
        self.step = 0
        self._first: Optional[List[LayerGradients]] = None
        self._second: Optional[List[LayerGradients]] = None

    def direction(self, gradients: Sequence[LayerGradients]) -> List[LayerGradients]:
        if self._first is None or self._second is None:
            self._first = [_zeros_like(grad) for grad in gradients]
            self._second = [_zeros_like(grad) for grad in gradients]
        self.step += 1
        correction1 = 1.0 - self.beta1**self.step
        correction2 = 1.0 - self.beta2**self.step

        directions: List[LayerGradients] = []
        for grad, first, second in zip(gradients, self._first, self._second):
            first.weight.mul_(self.beta1).add_(grad.weight, alpha=1.0 - self.beta1)
            first.bias.mul_(self.beta1).add_(grad.bias, alpha=1.0 - self.beta1)
            second.weight.mul_(self.beta2).addcmul_(grad.weight, grad.weight, value=1.0 - self.beta2)
            second.bias.mul_(self.beta2).addcmul_(grad.bias, grad.bias, value=1.0 - self.beta2)
            directions.append(
                LayerGradients(
                    weight=(first.weight / correction1)
                    / ((second.weight / correction2).sqrt() + self.epsilon),
                    bias=(first.bias / correction1) / ((second.bias / correction2).sqrt() + self.epsilon),
                )
            )
        return directions


def _zeros_like(grad: LayerGradients) -> LayerGradients:
    return LayerGradients(weight=torch.zeros_like(grad.weight), bias=torch.zeros_like(grad.bias))


def build_update_rule(
    name: str,
    *,
    beta1: float = 0.9,
    beta2: float = 0.999,
    epsilon: float = 1e-7,
) -> UpdateRule:
    """Instantiate the update rule called ``name`` (``"sgd"`` or ``"adam"``)."""

    if name == "sgd":
        return GradientDescent()
    if name == "adam":
        return Adam(beta1=beta1, beta2=beta2, epsilon=epsilon)
    raise ValueError("optimizer must be either 'sgd' or 'adam'")


__all__ = ["Adam", "GradientDescent", "UpdateRule", "build_update_rule"]
