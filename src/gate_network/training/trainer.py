"""Full-batch training loop for :class:`~gate_network.models.GateNetwork`."""
from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Callable, ContextManager, Optional

from torch import Tensor
from tqdm.auto import tqdm

from ..data.truth_tables import TruthTable
from ..errors import ModelNotInitialized, TrainingAlreadyInProgress
from ..models.network import GateNetwork
from .objectives import backpropagate
from .optimizers import UpdateRule, build_update_rule

logger = logging.getLogger(__name__)

EpochCallback = Callable[[int, float, float], None]
StopPredicate = Callable[[], bool]


@dataclass(slots=True)
class TrainerConfig:
    """Stopping criteria and update rule for :class:`GateTrainer`.

    Parameters
    ----------
    max_epochs:
        Upper bound on the number of epochs of a single run.
    target_accuracy:
        Training stops as soon as the epoch accuracy strictly exceeds this value.
    learning_rate:
        Fixed step size passed to :meth:`GateNetwork.apply_gradient_step`.
    optimizer:
        ``"sgd"`` applies the raw gradient, ``"adam"`` applies the bias-corrected
        moment estimate instead.
    epsilon:
        Probabilities are clamped into ``[epsilon, 1 - epsilon]`` before the loss
        takes logarithms.
    progress_bar:
        Show a ``tqdm`` bar while training.
    """

    max_epochs: int = 100
    target_accuracy: float = 0.95
    learning_rate: float = 0.1
    optimizer: str = "adam"
    epsilon: float = 1e-7
    adam_beta1: float = 0.9
    adam_beta2: float = 0.999
    adam_epsilon: float = 1e-7
    progress_bar: bool = False

    def __post_init__(self) -> None:
        if self.max_epochs <= 0:
            raise ValueError("max_epochs must be positive")
        if not 0.0 <= self.target_accuracy <= 1.0:
            raise ValueError("target_accuracy must lie in [0, 1]")
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")
        if self.optimizer not in {"sgd", "adam"}:
            raise ValueError("optimizer must be either 'sgd' or 'adam'")
        if not 0.0 < self.epsilon < 0.5:
            raise ValueError("epsilon must lie in (0, 0.5)")


@dataclass(slots=True)
class EpochMetrics:
    epoch: int
    loss: float
    accuracy: float


@dataclass
class TrainingHistory:
    """Per-epoch metrics collected during :meth:`GateTrainer.train`."""

    losses: list[float] = field(default_factory=list)
    accuracies: list[float] = field(default_factory=list)

    def append(self, metrics: EpochMetrics) -> None:
        self.losses.append(metrics.loss)
        self.accuracies.append(metrics.accuracy)

    def __len__(self) -> int:
        return len(self.losses)


@dataclass(slots=True)
class TrainingResult:
    """Outcome of a training run.

    ``final_loss`` and ``final_accuracy`` are measured during the last epoch,
    before its update was applied. ``aborted`` is set when ``should_stop`` ended
    the run or the model was disposed underneath it.
    """

    epochs_run: int
    final_loss: float
    reached_target: bool
    final_accuracy: float = 0.0
    aborted: bool = False
    history: TrainingHistory = field(default_factory=TrainingHistory)


class GateTrainer:
    """Run gradient-descent epochs of a network against a truth table.

    Each epoch is executed under ``lock`` (when given) so that readers holding
    the same lock only ever observe the network between updates. A trainer
    instance runs one training loop at a time.
    """

    def __init__(
        self,
        config: Optional[TrainerConfig] = None,
        *,
        lock: Optional[ContextManager] = None,
    ) -> None:
        self.config = config or TrainerConfig()
        self._lock = lock if lock is not None else nullcontext()
        self._guard = threading.Lock()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def train_epoch(
        self,
        model: GateNetwork,
        inputs: Tensor,
        targets: Tensor,
        rule: UpdateRule,
        epoch: int,
    ) -> EpochMetrics:
        """Evaluate, backpropagate and apply a single update."""

        loss, acc, gradients = backpropagate(model, inputs, targets, eps=self.config.epsilon)
        model.apply_gradient_step(rule.direction(gradients), self.config.learning_rate)
        return EpochMetrics(epoch=epoch, loss=loss, accuracy=acc)

    def train(
        self,
        model: Optional[GateNetwork],
        truth_table: TruthTable,
        *,
        on_epoch: Optional[EpochCallback] = None,
        should_stop: Optional[StopPredicate] = None,
    ) -> TrainingResult:
        """Train until the target accuracy is exceeded or ``max_epochs`` is reached.

        ``on_epoch(epoch_index, loss, accuracy)`` is invoked after every update
        with a zero-based index. ``should_stop`` is checked before each epoch.
        """

        if model is None or not model.is_initialized:
            raise ModelNotInitialized("train requires an initialised model")
        with self._guard:
            if self._running:
                raise TrainingAlreadyInProgress("this trainer is already running")
            self._running = True
        try:
            return self._run(model, truth_table, on_epoch, should_stop)
        finally:
            with self._guard:
                self._running = False

    def _run(
        self,
        model: GateNetwork,
        truth_table: TruthTable,
        on_epoch: Optional[EpochCallback],
        should_stop: Optional[StopPredicate],
    ) -> TrainingResult:
        config = self.config
        inputs, targets = truth_table.as_tensors()
        rule = build_update_rule(
            config.optimizer,
            beta1=config.adam_beta1,
            beta2=config.adam_beta2,
            epsilon=config.adam_epsilon,
        )
        history = TrainingHistory()
        last: Optional[EpochMetrics] = None
        reached_target = False
        aborted = False

        logger.info(
            "training %s for up to %d epochs (optimizer=%s, lr=%g)",
            truth_table.operation.value,
            config.max_epochs,
            config.optimizer,
            config.learning_rate,
        )
        progress = tqdm(
            total=config.max_epochs,
            desc=f"Training {truth_table.operation.value}",
            leave=False,
            disable=not config.progress_bar,
        )
        try:
            for epoch in range(config.max_epochs):
                with self._lock:
                    if (should_stop is not None and should_stop()) or not model.is_initialized:
                        aborted = True
                        break
                    last = self.train_epoch(model, inputs, targets, rule, epoch)
                history.append(last)
                progress.update(1)
                progress.set_postfix(loss=f"{last.loss:.4f}", acc=f"{last.accuracy:.2f}")
                logger.debug("epoch %d loss=%.6f accuracy=%.2f", epoch + 1, last.loss, last.accuracy)
                if on_epoch is not None:
                    on_epoch(epoch, last.loss, last.accuracy)
                if last.accuracy > config.target_accuracy:
                    reached_target = True
                    break
        finally:
            progress.close()

        if aborted:
            logger.warning("training %s aborted after %d epochs", truth_table.operation.value, len(history))
        else:
            logger.info(
                "training %s finished after %d epochs (loss=%.4f, reached_target=%s)",
                truth_table.operation.value,
                len(history),
                last.loss if last is not None else 0.0,
                reached_target,
            )
        return TrainingResult(
            epochs_run=len(history),
            final_loss=last.loss if last is not None else 0.0,
            reached_target=reached_target,
            final_accuracy=last.accuracy if last is not None else 0.0,
            aborted=aborted,
            history=history,
        )


def train(
    model: Optional[GateNetwork],
    truth_table: TruthTable,
    max_epochs: int = 100,
    target_accuracy: float = 0.95,
    on_epoch: Optional[EpochCallback] = None,
    *,
    learning_rate: float = 0.1,
    optimizer: str = "adam",
) -> TrainingResult:
    """Convenience wrapper building a :class:`GateTrainer` for a single run."""

    config = TrainerConfig(
        max_epochs=max_epochs,
        target_accuracy=target_accuracy,
        learning_rate=learning_rate,
        optimizer=optimizer,
    )
    return GateTrainer(config).train(model, truth_table, on_epoch=on_epoch)


__all__ = [
    "EpochCallback",
    "EpochMetrics",
    "GateTrainer",
    "StopPredicate",
    "TrainerConfig",
    "TrainingHistory",
    "TrainingResult",
    "train",
]
