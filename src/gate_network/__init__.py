"""Train a tiny 2-3-1 sigmoid network on logical operations and inspect it.

The package is organised leaf first:

- ``core``: dense matrix helpers on float64 tensors,
- ``data``: truth tables for the supported operations,
- ``models``: the two-layer network,
- ``training``: loss, backpropagation, update rules and the epoch loop,
- ``inspection``: weight and activation snapshots for display layers,
- ``session``: the stateful facade a user interface drives.
"""

from .data import Operation, TruthTable, expected_output, generate
from .errors import (
    GateNetworkError,
    InvalidOperation,
    ModelNotInitialized,
    TrainingAlreadyInProgress,
)
from .inspection import ActivationSnapshot, WeightSnapshot, extract
from .models import GateNetwork, NetworkConfig, initialize
from .session import NetworkSession, SessionConfig, TrainingState
from .training import GateTrainer, TrainerConfig, TrainingResult, train

__all__ = [
    "ActivationSnapshot",
    "GateNetwork",
    "GateNetworkError",
    "GateTrainer",
    "InvalidOperation",
    "ModelNotInitialized",
    "NetworkConfig",
    "NetworkSession",
    "Operation",
    "SessionConfig",
    "TrainerConfig",
    "TrainingAlreadyInProgress",
    "TrainingResult",
    "TrainingState",
    "TruthTable",
    "WeightSnapshot",
    "expected_output",
    "extract",
    "generate",
    "initialize",
    "train",
]
