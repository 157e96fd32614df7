"""Exceptions raised by the gate network package."""

from __future__ import annotations


class GateNetworkError(Exception):
    """Base class for recoverable errors reported to callers."""


class InvalidOperation(GateNetworkError, ValueError):
    """Raised when an operation name is not one of the supported gates."""

    def __init__(self, name: object) -> None:
        super().__init__(f"unsupported operation: {name!r}")
        self.name = name


class ModelNotInitialized(GateNetworkError, RuntimeError):
    """Raised when a model is used before ``initialize`` or after disposal."""


class TrainingAlreadyInProgress(GateNetworkError, RuntimeError):
    """Raised on a re-entrant training request."""


__all__ = [
    "GateNetworkError",
    "InvalidOperation",
    "ModelNotInitialized",
    "TrainingAlreadyInProgress",
]
