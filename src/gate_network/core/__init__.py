"""Dense matrix primitives shared by the model and the trainer."""

from .tensor_ops import (
    DTYPE,
    as_matrix,
    clamp_probabilities,
    round_predictions,
    sigmoid,
    sigmoid_derivative,
)

__all__ = [
    "DTYPE",
    "as_matrix",
    "clamp_probabilities",
    "round_predictions",
    "sigmoid",
    "sigmoid_derivative",
]
