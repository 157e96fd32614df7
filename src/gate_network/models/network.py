"""Two-layer sigmoid network with a fixed 2-3-1 topology."""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import torch
from torch import Tensor

from ..core import DTYPE, as_matrix, sigmoid
from ..errors import ModelNotInitialized
from ..inspection.snapshot import ActivationSnapshot, WeightSnapshot

logger = logging.getLogger(__name__)

_generations = itertools.count(1)


@dataclass(slots=True)
class NetworkConfig:
    """Configuration for :class:`GateNetwork`.

    Parameters
    ----------
    init_std:
        Standard deviation of the zero-mean normal distribution the weights are
        drawn from. Biases always start at zero.
    seed:
        Optional seed for the weight initialiser. ``None`` draws a fresh seed so
        every reset produces a different network.
    use_bias:
        When disabled the biases stay at zero and are never updated.
    """

    init_std: float = 0.05
    seed: Optional[int] = None
    use_bias: bool = True

    def __post_init__(self) -> None:
        if self.init_std <= 0:
            raise ValueError("init_std must be positive")
        if self.seed is not None and self.seed < 0:
            raise ValueError("seed must be non-negative")


@dataclass(slots=True)
class LayerGradients:
    """Loss gradients (or update directions) for one dense layer."""

    weight: Tensor
    bias: Tensor


class DenseLayer:
    """Fully connected layer ``sigmoid(x @ weight + bias)``."""

    def __init__(self, weight: Tensor, bias: Tensor) -> None:
        if weight.ndim != 2:
            raise ValueError("weight must have shape (in_dim, out_dim)")
        if bias.shape != (weight.shape[1],):
            raise ValueError("bias must have shape (out_dim,)")
        self.weight = weight
        self.bias = bias

    @property
    def in_dim(self) -> int:
        return int(self.weight.shape[0])

    @property
    def out_dim(self) -> int:
        return int(self.weight.shape[1])

    def pre_activation(self, x: Tensor) -> Tensor:
        return x @ self.weight + self.bias

    def __call__(self, x: Tensor) -> Tensor:
        return sigmoid(self.pre_activation(x))


class GateNetwork:
    """Hidden layer 2->3 and output layer 3->1, both with sigmoid activations.

    The network owns its weight and bias tensors exclusively. Reads hand out
    copies (:meth:`weights`) or plain floats (:meth:`forward`), and
    :meth:`apply_gradient_step` is the only method that mutates parameters.
    """

    input_dim = 2
    hidden_dim = 3
    output_dim = 1

    def __init__(self, config: Optional[NetworkConfig] = None) -> None:
        self.config = config or NetworkConfig()
        self.generation = next(_generations)
        self._layers: Optional[Tuple[DenseLayer, DenseLayer]] = self._initialise_layers()
        logger.debug("initialised network generation %d", self.generation)

    def _initialise_layers(self) -> Tuple[DenseLayer, DenseLayer]:
        generator = torch.Generator()
        if self.config.seed is None:
            generator.seed()
        else:
            generator.manual_seed(self.config.seed)

        def normal(rows: int, cols: int) -> Tensor:
            return torch.randn(rows, cols, generator=generator, dtype=DTYPE) * self.config.init_std

        hidden = DenseLayer(
            normal(self.input_dim, self.hidden_dim),
            torch.zeros(self.hidden_dim, dtype=DTYPE),
        )
        output = DenseLayer(
            normal(self.hidden_dim, self.output_dim),
            torch.zeros(self.output_dim, dtype=DTYPE),
        )
        return hidden, output

    @property
    def is_initialized(self) -> bool:
        return self._layers is not None

    @property
    def layers(self) -> Tuple[DenseLayer, DenseLayer]:
        if self._layers is None:
            raise ModelNotInitialized(f"network generation {self.generation} has been disposed")
        return self._layers

    def forward_batch(self, inputs: Tensor) -> Tuple[Tensor, Tensor]:
        """Return ``(hidden, output)`` activations for a ``(batch, 2)`` input."""

        hidden_layer, output_layer = self.layers
        x = as_matrix(inputs)
        if x.shape[1] != self.input_dim:
            raise ValueError("inputs must have shape (batch, 2)")
        hidden = hidden_layer(x)
        output = output_layer(hidden)
        return hidden, output

    def forward(self, input_pair: Sequence[float]) -> ActivationSnapshot:
        """Activations of every neuron for one input pair.

        The result lists the two inputs, the three hidden activations and the
        output activation, in that order.
        """

        if len(input_pair) != self.input_dim:
            raise ValueError("input_pair must contain exactly two values")
        a, b = (float(value) for value in input_pair)
        hidden, output = self.forward_batch(torch.tensor([[a, b]], dtype=DTYPE))
        values = (a, b, *hidden[0].tolist(), float(output[0, 0]))
        return ActivationSnapshot(values=values, generation=self.generation)

    def predict(self, inputs: Tensor) -> list[int]:
        """Outputs rounded at 0.5 for every row of ``inputs``."""

        _, output = self.forward_batch(inputs)
        return [int(value >= 0.5) for value in output[:, 0].tolist()]

    def weights(self) -> WeightSnapshot:
        """Independent copy of the current weight matrices and biases."""

        layers = self.layers
        return WeightSnapshot(
            matrices=tuple(layer.weight.clone() for layer in layers),
            biases=tuple(layer.bias.clone() for layer in layers),
            generation=self.generation,
        )

    def apply_gradient_step(self, gradients: Sequence[LayerGradients], learning_rate: float) -> None:
        """Update every layer in place with ``param -= learning_rate * gradient``."""

        layers = self.layers
        if len(gradients) != len(layers):
            raise ValueError(f"expected {len(layers)} layer gradients, got {len(gradients)}")
        for layer, grad in zip(layers, gradients):
            if grad.weight.shape != layer.weight.shape:
                raise ValueError("weight gradient shape does not match layer")
            if grad.bias.shape != layer.bias.shape:
                raise ValueError("bias gradient shape does not match layer")
        for layer, grad in zip(layers, gradients):
            layer.weight.sub_(learning_rate * grad.weight)
            if self.config.use_bias:
                layer.bias.sub_(learning_rate * grad.bias)

    def dispose(self) -> None:
        """Release the parameters. Later use raises :class:`ModelNotInitialized`."""

        self._layers = None
        logger.debug("disposed network generation %d", self.generation)


def initialize(config: Optional[NetworkConfig] = None) -> GateNetwork:
    """Create a freshly initialised :class:`GateNetwork`."""

    return GateNetwork(config)


__all__ = ["DenseLayer", "GateNetwork", "LayerGradients", "NetworkConfig", "initialize"]
