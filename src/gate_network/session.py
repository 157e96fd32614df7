"""Stateful facade driven by an interactive front end.

A :class:`NetworkSession` owns the current network, the selected operation and
input pair, and the training state. Every change to the inputs, the operation
or the weights recomputes a snapshot and hands it to the subscribed listeners.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from .data.truth_tables import Operation, TruthTable, expected_output, generate
from .errors import ModelNotInitialized, TrainingAlreadyInProgress
from .inspection.snapshot import ActivationSnapshot, WeightSnapshot, extract
from .models.network import GateNetwork, NetworkConfig
from .training.trainer import GateTrainer, TrainerConfig, TrainingResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, float, float], None]
SnapshotListener = Callable[[WeightSnapshot, ActivationSnapshot], None]


@dataclass(slots=True)
class SessionConfig:
    """Network, trainer and publishing settings for :class:`NetworkSession`."""

    network: NetworkConfig = field(default_factory=NetworkConfig)
    trainer: TrainerConfig = field(default_factory=TrainerConfig)
    snapshot_interval: int = 5

    def __post_init__(self) -> None:
        if self.snapshot_interval <= 0:
            raise ValueError("snapshot_interval must be positive")


@dataclass(slots=True)
class TrainingState:
    epoch_count: int = 0
    progress_fraction: float = 0.0
    loss: float = 0.0
    accuracy: float = 0.0
    is_training: bool = False


def _validate_bit(value: object, name: str) -> int:
    if isinstance(value, str) or value not in (0, 1):
        raise ValueError(f"{name} must be 0 or 1")
    return int(value)  # type: ignore[call-overload]


class NetworkSession:
    """Own one :class:`GateNetwork` and coordinate training, resets and snapshots.

    Locks are always taken in the order model lock, then state lock. Training
    epochs and snapshot reads share the model lock, so a snapshot never mixes
    weights from two different updates.
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        *,
        operation: Operation | str = Operation.AND,
        inputs: Tuple[int, int] = (0, 0),
    ) -> None:
        self.config = config or SessionConfig()
        self._operation = Operation.parse(operation)
        self._inputs = (_validate_bit(inputs[0], "a"), _validate_bit(inputs[1], "b"))
        self._model: Optional[GateNetwork] = None
        self._generation = 0
        self._state = TrainingState()
        self._model_lock = threading.RLock()
        self._state_lock = threading.Lock()
        self._stop_requested = threading.Event()
        self._listeners: List[SnapshotListener] = []
        self._executor: Optional[ThreadPoolExecutor] = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def model(self) -> Optional[GateNetwork]:
        return self._model

    @property
    def operation(self) -> Operation:
        return self._operation

    @property
    def inputs(self) -> Tuple[int, int]:
        return self._inputs

    @property
    def truth_table(self) -> TruthTable:
        return generate(self._operation)

    @property
    def training_state(self) -> TrainingState:
        """Copy of the current training state."""

        with self._state_lock:
            return replace(self._state)

    @property
    def is_training(self) -> bool:
        with self._state_lock:
            return self._state.is_training

    def expected_output(self) -> int:
        """Expected output of the selected operation for the current inputs."""

        return expected_output(self._operation, *self._inputs)

    # ------------------------------------------------------------------
    # Model lifecycle
    # ------------------------------------------------------------------
    def initialize(self) -> GateNetwork:
        """Allocate a fresh network, discarding any previous one."""

        with self._model_lock:
            with self._state_lock:
                previous = self._model
                if previous is not None:
                    previous.dispose()
                self._model = GateNetwork(self.config.network)
                self._generation += 1
                self._state = TrainingState()
                model = self._model
        self._publish()
        return model

    def reset(self) -> GateNetwork:
        """Dispose the current network and start over with zeroed training state.

        A training run in progress notices the new generation at its next epoch
        boundary and stops without touching the fresh state.
        """

        was_training = self.is_training
        model = self.initialize()
        logger.info(
            "reset network to generation %d%s",
            model.generation,
            " (aborting training in progress)" if was_training else "",
        )
        return model

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    def set_inputs(self, a: int, b: int) -> None:
        self._inputs = (_validate_bit(a, "a"), _validate_bit(b, "b"))
        self._publish()

    def set_operation(self, name: Operation | str) -> None:
        """Select the operation used by the next training run.

        Unknown names raise :class:`~gate_network.errors.InvalidOperation` and
        leave the current selection untouched.
        """

        self._operation = Operation.parse(name)
        self._publish()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def subscribe(self, listener: SnapshotListener) -> None:
        """Register ``listener(weights, activations)``.

        During :meth:`train_async` listeners run on the worker thread.
        """

        self._listeners.append(listener)

    def unsubscribe(self, listener: SnapshotListener) -> None:
        self._listeners.remove(listener)

    def get_snapshot(self) -> Tuple[WeightSnapshot, ActivationSnapshot]:
        with self._model_lock:
            if self._model is None:
                raise ModelNotInitialized("call initialize() before requesting a snapshot")
            return extract(self._model, self._inputs, lock=self._model_lock)

    def _publish(self, generation: Optional[int] = None) -> None:
        with self._model_lock:
            if self._model is None:
                return
            if generation is not None and generation != self._generation:
                return
            snapshot = extract(self._model, self._inputs, lock=self._model_lock)
        for listener in list(self._listeners):
            listener(*snapshot)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def train(self, on_progress: Optional[ProgressCallback] = None) -> TrainingResult:
        """Train the current network on the selected operation, blocking until done.

        ``on_progress(epoch, progress_pct, loss)`` receives the one-based epoch
        count and the percentage of ``max_epochs`` completed.
        """

        generation, model, table = self._begin_training()
        return self._run_training(generation, model, table, on_progress)

    def train_async(self, on_progress: Optional[ProgressCallback] = None) -> "Future[TrainingResult]":
        """Start training on a worker thread and return a future for the result."""

        generation, model, table = self._begin_training()
        try:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="gate-train")
            return self._executor.submit(self._run_training, generation, model, table, on_progress)
        except BaseException:
            self._finish_training(generation)
            raise

    def request_stop(self) -> bool:
        """Ask the running training loop to stop after its current epoch."""

        if not self.is_training:
            return False
        self._stop_requested.set()
        return True

    def _begin_training(self) -> Tuple[int, GateNetwork, TruthTable]:
        with self._state_lock:
            if self._model is None:
                raise ModelNotInitialized("call initialize() before training")
            if self._state.is_training:
                raise TrainingAlreadyInProgress("a training run is already in progress")
            self._state.is_training = True
            self._stop_requested.clear()
            return self._generation, self._model, generate(self._operation)

    def _finish_training(self, generation: int) -> None:
        with self._state_lock:
            if generation == self._generation:
                self._state.is_training = False

    def _run_training(
        self,
        generation: int,
        model: GateNetwork,
        table: TruthTable,
        on_progress: Optional[ProgressCallback],
    ) -> TrainingResult:
        trainer = GateTrainer(self.config.trainer, lock=self._model_lock)
        max_epochs = self.config.trainer.max_epochs
        interval = self.config.snapshot_interval

        def should_stop() -> bool:
            return self._stop_requested.is_set() or generation != self._generation

        def on_epoch(epoch: int, loss: float, accuracy: float) -> None:
            count = epoch + 1
            with self._state_lock:
                if generation != self._generation:
                    return
                self._state.epoch_count = count
                self._state.progress_fraction = count / max_epochs
                self._state.loss = loss
                self._state.accuracy = accuracy
            if on_progress is not None:
                on_progress(count, 100.0 * count / max_epochs, loss)
            if epoch % interval == 0:
                self._publish(generation)

        try:
            result = trainer.train(model, table, on_epoch=on_epoch, should_stop=should_stop)
        finally:
            self._finish_training(generation)
        self._publish(generation)
        return result

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Stop any training run and shut down the worker thread."""

        self.request_stop()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "NetworkSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "NetworkSession",
    "ProgressCallback",
    "SessionConfig",
    "SnapshotListener",
    "TrainingState",
]
