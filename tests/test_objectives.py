import math

import pytest

torch = pytest.importorskip("torch")
from torch.nn import functional as F

from gate_network.core import DTYPE
from gate_network.data import generate
from gate_network.models import GateNetwork, NetworkConfig
from gate_network.training import accuracy, backpropagate, binary_cross_entropy


def test_binary_cross_entropy_at_half() -> None:
    p = torch.full((4, 1), 0.5, dtype=DTYPE)
    y = torch.tensor([[0.0], [1.0], [1.0], [0.0]], dtype=DTYPE)
    assert binary_cross_entropy(p, y) == pytest.approx(math.log(2.0))


def test_binary_cross_entropy_is_finite_for_saturated_predictions() -> None:
    p = torch.tensor([[0.0], [1.0]], dtype=DTYPE)
    y = torch.tensor([[1.0], [0.0]], dtype=DTYPE)
    loss = binary_cross_entropy(p, y, eps=1e-7)
    assert math.isfinite(loss)
    assert loss == pytest.approx(-math.log(1e-7), rel=1e-6)


def test_binary_cross_entropy_rejects_shape_mismatch() -> None:
    with pytest.raises(ValueError):
        binary_cross_entropy(torch.zeros(4, 1, dtype=DTYPE), torch.zeros(4, dtype=DTYPE))


def test_accuracy_counts_rounded_matches() -> None:
    p = torch.tensor([[0.2], [0.7], [0.4], [0.9]], dtype=DTYPE)
    y = torch.tensor([[0.0], [1.0], [1.0], [0.0]], dtype=DTYPE)
    assert accuracy(p, y) == pytest.approx(0.5)


def test_backpropagate_matches_autograd() -> None:
    model = GateNetwork(NetworkConfig(seed=3, init_std=0.5))
    inputs, targets = generate("XOR").as_tensors()
    loss, acc, gradients = backpropagate(model, inputs, targets)

    hidden, output = model.layers
    params = [
        hidden.weight.clone().requires_grad_(True),
        hidden.bias.clone().requires_grad_(True),
        output.weight.clone().requires_grad_(True),
        output.bias.clone().requires_grad_(True),
    ]
    h = torch.sigmoid(inputs @ params[0] + params[1])
    p = torch.sigmoid(h @ params[2] + params[3])
    reference = F.binary_cross_entropy(p, targets)
    reference.backward()

    assert loss == pytest.approx(reference.item())
    assert 0.0 <= acc <= 1.0
    assert torch.allclose(gradients[0].weight, params[0].grad)
    assert torch.allclose(gradients[0].bias, params[1].grad)
    assert torch.allclose(gradients[1].weight, params[2].grad)
    assert torch.allclose(gradients[1].bias, params[3].grad)


def test_backpropagate_does_not_mutate_model() -> None:
    model = GateNetwork(NetworkConfig(seed=4))
    before = model.weights()
    backpropagate(model, *generate("AND").as_tensors())
    for a, b in zip(before, model.weights()):
        assert torch.equal(a, b)
