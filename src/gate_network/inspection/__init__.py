"""Read-only views of a network for display layers."""

from .snapshot import ActivationSnapshot, WeightSnapshot, extract

__all__ = ["ActivationSnapshot", "WeightSnapshot", "extract"]
