"""Truth tables for two-input logical operations."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import torch
from torch import Tensor

from ..core import DTYPE
from ..errors import InvalidOperation

InputPair = Tuple[int, int]

INPUT_PAIRS: Tuple[InputPair, ...] = ((0, 0), (0, 1), (1, 0), (1, 1))


class Operation(str, Enum):
    """Logical operations the network can be trained on."""

    AND = "AND"
    OR = "OR"
    XOR = "XOR"
    NAND = "NAND"
    NOR = "NOR"
    XNOR = "XNOR"
    IMPLIES = "IMPLIES"
    NIMPLIES = "NIMPLIES"
    NOT = "NOT"
    BUFFER = "BUFFER"

    @classmethod
    def parse(cls, name: "Operation | str") -> "Operation":
        """Resolve ``name`` to an :class:`Operation`, ignoring case and padding."""

        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise InvalidOperation(name)
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise InvalidOperation(name) from None


# Outputs for (0,0), (0,1), (1,0), (1,1). NOT and BUFFER act on the first input.
_OUTPUTS: dict[Operation, Tuple[int, int, int, int]] = {
    Operation.AND: (0, 0, 0, 1),
    Operation.OR: (0, 1, 1, 1),
    Operation.XOR: (0, 1, 1, 0),
    Operation.NAND: (1, 1, 1, 0),
    Operation.NOR: (1, 0, 0, 0),
    Operation.XNOR: (1, 0, 0, 1),
    Operation.IMPLIES: (1, 1, 0, 1),
    Operation.NIMPLIES: (0, 0, 1, 0),
    Operation.NOT: (1, 1, 0, 0),
    Operation.BUFFER: (0, 0, 1, 1),
}


@dataclass(frozen=True, slots=True)
class TruthTable:
    """Four fixed input pairs and the expected output of ``operation`` for each."""

    operation: Operation
    outputs: Tuple[int, int, int, int]
    inputs: Tuple[InputPair, ...] = INPUT_PAIRS

    def __post_init__(self) -> None:
        if self.inputs != INPUT_PAIRS:
            raise ValueError("truth table inputs are fixed to the four binary pairs")
        if len(self.outputs) != len(INPUT_PAIRS):
            raise ValueError("truth table must have exactly 4 outputs")
        if any(value not in (0, 1) for value in self.outputs):
            raise ValueError("truth table outputs must be 0 or 1")

    def rows(self) -> list[tuple[InputPair, int]]:
        return list(zip(self.inputs, self.outputs))

    def lookup(self, a: int, b: int) -> int:
        """Expected output for the pair ``(a, b)``."""

        return self.outputs[INPUT_PAIRS.index((a, b))]

    def as_tensors(self) -> Tuple[Tensor, Tensor]:
        """Return ``(inputs, targets)`` with shapes ``(4, 2)`` and ``(4, 1)``."""

        inputs = torch.tensor(self.inputs, dtype=DTYPE)
        targets = torch.tensor(self.outputs, dtype=DTYPE).unsqueeze(-1)
        return inputs, targets


def generate(operation: Operation | str) -> TruthTable:
    """Build the truth table for ``operation``.

    Unknown names raise :class:`~gate_network.errors.InvalidOperation` rather than
    falling back to AND.
    """

    op = Operation.parse(operation)
    return TruthTable(operation=op, outputs=_OUTPUTS[op])


def expected_output(operation: Operation | str, a: int, b: int) -> int:
    """Expected output of ``operation`` for a single input pair."""

    if (a, b) not in INPUT_PAIRS:
        raise ValueError("inputs must be 0 or 1")
    return generate(operation).lookup(a, b)


__all__ = ["INPUT_PAIRS", "InputPair", "Operation", "TruthTable", "expected_output", "generate"]
