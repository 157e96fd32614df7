import math

import pytest

torch = pytest.importorskip("torch")

from gate_network.core import (
    DTYPE,
    as_matrix,
    clamp_probabilities,
    round_predictions,
    sigmoid,
    sigmoid_derivative,
)


def test_as_matrix_promotes_vectors_to_rows() -> None:
    matrix = as_matrix([1, 0])
    assert matrix.shape == (1, 2)
    assert matrix.dtype == DTYPE
    assert as_matrix([[1.0, 2.0], [3.0, 4.0]]).shape == (2, 2)
    with pytest.raises(ValueError):
        as_matrix(torch.zeros(2, 2, 2))


def test_sigmoid_values() -> None:
    x = torch.tensor([0.0, 2.0, -2.0], dtype=DTYPE)
    values = sigmoid(x)
    assert values[0].item() == pytest.approx(0.5)
    assert values[1].item() == pytest.approx(1.0 / (1.0 + math.exp(-2.0)))
    assert values[1].item() + values[2].item() == pytest.approx(1.0)


def test_sigmoid_derivative_from_output() -> None:
    s = torch.tensor([0.5, 0.9], dtype=DTYPE)
    assert sigmoid_derivative(s).tolist() == pytest.approx([0.25, 0.09])


def test_clamp_probabilities_keeps_logs_finite() -> None:
    p = clamp_probabilities(torch.tensor([0.0, 0.3, 1.0], dtype=DTYPE), eps=1e-7)
    assert p.tolist() == pytest.approx([1e-7, 0.3, 1.0 - 1e-7])
    assert torch.isfinite(p.log()).all()
    assert torch.isfinite((1.0 - p).log()).all()
    with pytest.raises(ValueError):
        clamp_probabilities(p, eps=0.0)


def test_round_predictions_threshold() -> None:
    p = torch.tensor([[0.1], [0.5], [0.49], [0.99]], dtype=DTYPE)
    assert round_predictions(p)[:, 0].tolist() == [0.0, 1.0, 0.0, 1.0]
