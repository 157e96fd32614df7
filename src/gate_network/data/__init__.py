"""Training data for the supported logical operations."""

from .truth_tables import INPUT_PAIRS, Operation, TruthTable, expected_output, generate

__all__ = ["INPUT_PAIRS", "Operation", "TruthTable", "expected_output", "generate"]
