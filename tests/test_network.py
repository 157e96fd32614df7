import pytest

torch = pytest.importorskip("torch")

from gate_network.core import DTYPE
from gate_network.errors import ModelNotInitialized
from gate_network.models import GateNetwork, LayerGradients, NetworkConfig, initialize


def _set_parameters(model: GateNetwork) -> None:
    hidden, output = model.layers
    hidden.weight.copy_(torch.tensor([[0.5, -1.0, 2.0], [1.5, 0.25, -0.5]], dtype=DTYPE))
    hidden.bias.copy_(torch.tensor([0.1, -0.2, 0.0], dtype=DTYPE))
    output.weight.copy_(torch.tensor([[1.0], [-2.0], [0.5]], dtype=DTYPE))
    output.bias.copy_(torch.tensor([0.3], dtype=DTYPE))


def _zero_gradients(model: GateNetwork) -> list[LayerGradients]:
    return [
        LayerGradients(weight=torch.zeros_like(layer.weight), bias=torch.zeros_like(layer.bias))
        for layer in model.layers
    ]


def test_initialize_allocates_fixed_topology() -> None:
    model = initialize(NetworkConfig(seed=0))
    hidden, output = model.layers
    assert hidden.weight.shape == (2, 3)
    assert output.weight.shape == (3, 1)
    assert (hidden.in_dim, hidden.out_dim) == (2, 3)
    assert (output.in_dim, output.out_dim) == (3, 1)
    assert torch.count_nonzero(hidden.bias) == 0
    assert torch.count_nonzero(output.bias) == 0
    assert hidden.weight.abs().max() < 0.5


def test_seed_makes_initialisation_reproducible() -> None:
    first = GateNetwork(NetworkConfig(seed=123)).weights()
    second = GateNetwork(NetworkConfig(seed=123)).weights()
    other = GateNetwork(NetworkConfig(seed=124)).weights()
    for a, b in zip(first, second):
        assert torch.equal(a, b)
    assert not torch.equal(first[0], other[0])


def test_initial_weights_follow_configured_scale() -> None:
    weights = GateNetwork(NetworkConfig(seed=0, init_std=10.0)).weights()
    assert weights[0].abs().max() > 0.5


def test_every_model_gets_a_new_generation() -> None:
    first = GateNetwork()
    second = GateNetwork()
    assert second.generation > first.generation


def test_forward_matches_manual_computation() -> None:
    model = GateNetwork(NetworkConfig(seed=0))
    _set_parameters(model)
    snapshot = model.forward((1, 0))

    x = torch.tensor([[1.0, 0.0]], dtype=DTYPE)
    hidden, output = model.layers
    h = torch.sigmoid(x @ hidden.weight + hidden.bias)
    p = torch.sigmoid(h @ output.weight + output.bias)

    assert len(snapshot) == 6
    assert snapshot.inputs == (1.0, 0.0)
    assert list(snapshot.hidden) == pytest.approx(h[0].tolist())
    assert snapshot.output == pytest.approx(p.item())
    assert snapshot.generation == model.generation


def test_forward_is_deterministic_and_pure() -> None:
    model = GateNetwork(NetworkConfig(seed=5))
    before = model.weights()
    first = model.forward((1, 1))
    second = model.forward((1, 1))
    assert first.values == second.values
    after = model.weights()
    for a, b in zip(before, after):
        assert torch.equal(a, b)


def test_forward_rejects_wrong_arity() -> None:
    model = GateNetwork(NetworkConfig(seed=0))
    with pytest.raises(ValueError):
        model.forward((1, 0, 1))


def test_forward_batch_shapes_and_predict() -> None:
    model = GateNetwork(NetworkConfig(seed=0))
    inputs = torch.tensor([[0, 0], [0, 1], [1, 0], [1, 1]], dtype=DTYPE)
    hidden, output = model.forward_batch(inputs)
    assert hidden.shape == (4, 3)
    assert output.shape == (4, 1)
    assert set(model.predict(inputs)) <= {0, 1}
    with pytest.raises(ValueError):
        model.forward_batch(torch.zeros(4, 3, dtype=DTYPE))


def test_weight_snapshot_does_not_alias_model() -> None:
    model = GateNetwork(NetworkConfig(seed=1))
    snapshot = model.weights()
    kept = [matrix.clone() for matrix in snapshot]
    gradients = [
        LayerGradients(weight=torch.ones_like(layer.weight), bias=torch.ones_like(layer.bias))
        for layer in model.layers
    ]
    model.apply_gradient_step(gradients, learning_rate=0.5)
    for matrix, original in zip(snapshot, kept):
        assert torch.equal(matrix, original)
    assert not torch.equal(model.weights()[0], snapshot[0])


def test_apply_gradient_step_updates_weights_and_biases() -> None:
    model = GateNetwork(NetworkConfig(seed=2))
    before = model.weights()
    gradients = _zero_gradients(model)
    gradients[0].weight[0, 1] = 2.0
    gradients[1].bias[0] = -1.0
    model.apply_gradient_step(gradients, learning_rate=0.1)
    after = model.weights()
    assert after[0][0, 1].item() == pytest.approx(before[0][0, 1].item() - 0.2)
    assert after.biases[1][0].item() == pytest.approx(before.biases[1][0].item() + 0.1)
    assert torch.equal(after[1], before[1])


def test_apply_gradient_step_validates_shapes() -> None:
    model = GateNetwork(NetworkConfig(seed=0))
    gradients = _zero_gradients(model)
    with pytest.raises(ValueError):
        model.apply_gradient_step(gradients[:1], learning_rate=0.1)
    bad = [LayerGradients(weight=torch.zeros(3, 2, dtype=DTYPE), bias=gradients[0].bias), gradients[1]]
    with pytest.raises(ValueError):
        model.apply_gradient_step(bad, learning_rate=0.1)


def test_biases_stay_fixed_without_bias() -> None:
    model = GateNetwork(NetworkConfig(seed=0, use_bias=False))
    gradients = [
        LayerGradients(weight=torch.ones_like(layer.weight), bias=torch.ones_like(layer.bias))
        for layer in model.layers
    ]
    model.apply_gradient_step(gradients, learning_rate=1.0)
    assert all(torch.count_nonzero(bias) == 0 for bias in model.weights().biases)


def test_disposed_model_raises() -> None:
    model = GateNetwork(NetworkConfig(seed=0))
    model.dispose()
    assert not model.is_initialized
    with pytest.raises(ModelNotInitialized):
        model.forward((0, 1))
    with pytest.raises(ModelNotInitialized):
        model.weights()


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        NetworkConfig(init_std=0.0)
    with pytest.raises(ValueError):
        NetworkConfig(seed=-1)
