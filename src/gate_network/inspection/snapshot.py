"""Weight and activation snapshots consumed by visualisations."""
from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from typing import TYPE_CHECKING, ContextManager, Iterator, Optional, Sequence, Tuple

from torch import Tensor

from ..errors import ModelNotInitialized

if TYPE_CHECKING:  # pragma: no cover - import-time hinting only
    from ..models.network import GateNetwork


@dataclass(frozen=True, slots=True)
class WeightSnapshot:
    """Copies of every layer's weight matrix (``in_dim x out_dim``) and bias."""

    matrices: Tuple[Tensor, ...]
    biases: Tuple[Tensor, ...]
    generation: int

    def __len__(self) -> int:
        return len(self.matrices)

    def __getitem__(self, index: int) -> Tensor:
        return self.matrices[index]

    def __iter__(self) -> Iterator[Tensor]:
        return iter(self.matrices)

    def tolist(self) -> list[list[list[float]]]:
        """Nested lists of the weight matrices, one entry per layer."""

        return [matrix.tolist() for matrix in self.matrices]


@dataclass(frozen=True, slots=True)
class ActivationSnapshot:
    """Activations ordered as 2 inputs, 3 hidden neurons, 1 output neuron."""

    values: Tuple[float, ...]
    generation: int

    def __post_init__(self) -> None:
        if len(self.values) != 6:
            raise ValueError("activation snapshot must hold exactly 6 values")

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)

    @property
    def inputs(self) -> Tuple[float, float]:
        return self.values[0], self.values[1]

    @property
    def hidden(self) -> Tuple[float, float, float]:
        return self.values[2], self.values[3], self.values[4]

    @property
    def output(self) -> float:
        return self.values[5]

    @property
    def prediction(self) -> int:
        """Output activation rounded at 0.5."""

        return int(self.output >= 0.5)


def extract(
    model: "GateNetwork",
    input_pair: Sequence[float],
    *,
    lock: Optional[ContextManager] = None,
) -> Tuple[WeightSnapshot, ActivationSnapshot]:
    """Take weights and activations for ``input_pair`` from the same model state.

    Pass the lock guarding training epochs so the pair cannot straddle an update.
    """

    if model is None or not model.is_initialized:
        raise ModelNotInitialized("cannot extract a snapshot without an initialised model")
    with lock if lock is not None else nullcontext():
        weights = model.weights()
        activations = model.forward(input_pair)
    return weights, activations


__all__ = ["ActivationSnapshot", "WeightSnapshot", "extract"]
