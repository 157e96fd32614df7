"""Network model for the logical-operation playground."""

from .network import DenseLayer, GateNetwork, LayerGradients, NetworkConfig, initialize

__all__ = ["DenseLayer", "GateNetwork", "LayerGradients", "NetworkConfig", "initialize"]
