"""Training utilities for the gate network."""

from .objectives import accuracy, backpropagate, binary_cross_entropy
from .optimizers import Adam, GradientDescent, UpdateRule, build_update_rule
from .trainer import (
    EpochMetrics,
    GateTrainer,
    TrainerConfig,
    TrainingHistory,
    TrainingResult,
    train,
)

__all__ = [
    "Adam",
    "EpochMetrics",
    "GateTrainer",
    "GradientDescent",
    "TrainerConfig",
    "TrainingHistory",
    "TrainingResult",
    "UpdateRule",
    "accuracy",
    "backpropagate",
    "binary_cross_entropy",
    "build_update_rule",
    "train",
]
