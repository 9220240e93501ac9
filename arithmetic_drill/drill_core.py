from __future__ import annotations

import math
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum


class Operation(str, Enum):
    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    MULTIPLICATION = "multiplication"
    DIVISION = "division"

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    def apply(self, acc: int, operand: int) -> int | None:
        """Apply this operation to the running accumulator.

        Division is exact integer division: a zero divisor or a remainder makes
        the step undefined and ``None`` is returned.
        """

        if self is Operation.ADDITION:
            return acc + operand
        if self is Operation.SUBTRACTION:
            return acc - operand
        if self is Operation.MULTIPLICATION:
            return acc * operand
        if operand == 0 or acc % operand != 0:
            return None
        return acc // operand


_SYMBOLS = {
    Operation.ADDITION: "+",
    Operation.SUBTRACTION: "-",
    Operation.MULTIPLICATION: "×",
    Operation.DIVISION: "÷",
}

# Canonical order; also the order of the setup form.
ALL_OPERATIONS: tuple[Operation, ...] = tuple(Operation)


class OperatorMixing(str, Enum):
    SINGLE = "single"
    MIXED = "mixed"


def normalize_operations(operations: Iterable[Operation | str]) -> tuple[Operation, ...]:
    """Coerce names to ``Operation`` and return them de-duplicated in canonical order."""

    chosen = {Operation(op) for op in operations}
    return tuple(op for op in ALL_OPERATIONS if op in chosen)


@dataclass(frozen=True, slots=True)
class DrillConfig:
    """Immutable per-session configuration.

    Only structural errors are rejected here. Whether the combination can
    actually produce problems is answered by ``constraints.validate_config``.
    """

    operations: tuple[Operation, ...] = (Operation.ADDITION,)
    operand_digits: int = 1
    result_digits: int = 2
    operand_count: int = 2
    operator_mixing: OperatorMixing = OperatorMixing.SINGLE
    problem_count: int = 10  # 0 = unbounded

    def __post_init__(self) -> None:
        object.__setattr__(self, "operations", normalize_operations(self.operations))
        object.__setattr__(self, "operator_mixing", OperatorMixing(self.operator_mixing))
        if self.operand_digits < 1:
            raise ValueError("operand_digits must be >= 1")
        if self.result_digits < 1:
            raise ValueError("result_digits must be >= 1")
        if self.problem_count < 0:
            raise ValueError("problem_count must be >= 0")

    @property
    def mixing_enabled(self) -> bool:
        return (
            self.operator_mixing is OperatorMixing.MIXED
            and len(self.operations) >= 2
            and self.operand_count >= 3
        )

    @property
    def operand_min(self) -> int:
        return 10 ** (self.operand_digits - 1)

    @property
    def operand_max(self) -> int:
        return 10**self.operand_digits - 1

    def allows(self, op: Operation) -> bool:
        return op in self.operations


@dataclass(frozen=True, slots=True)
class Problem:
    operands: tuple[int, ...]
    operators: tuple[Operation, ...]
    answer: int
    expression: str = field(init=False)

    def __post_init__(self) -> None:
        if len(self.operators) != len(self.operands) - 1:
            raise ValueError("operators must fill every gap between operands")
        parts = [str(self.operands[0])]
        for op, operand in zip(self.operators, self.operands[1:]):
            parts.append(op.symbol)
            parts.append(str(operand))
        object.__setattr__(self, "expression", " ".join(parts))

    @property
    def prompt(self) -> str:
        return f"{self.expression} = ?"


def evaluate_left_to_right(operands: Sequence[int], operators: Sequence[Operation]) -> int | None:
    """Evaluate strictly left to right with no precedence. ``None`` means undefined."""

    if not operands:
        return None
    acc: int | None = operands[0]
    for op, operand in zip(operators, operands[1:]):
        acc = op.apply(acc, operand)
        if acc is None:
            return None
    return acc


_LOG10_2 = math.log10(2)


def digit_count(n: int) -> int:
    """Decimal width of ``n`` (sign ignored), without converting it to text.

    Products of wide operands can run past the interpreter's int-to-str limit.
    """

    n = abs(int(n))
    if n < 10:
        return 1
    width = int(n.bit_length() * _LOG10_2)
    while 10**width > n:
        width -= 1
    while 10 ** (width + 1) <= n:
        width += 1
    return width + 1


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def choice(self, seq: Sequence[Operation]) -> Operation:
        return self._rng.choice(seq)


class ConfigurationRejected(ValueError):
    """The analytic validator refused a configuration; fix it and start again."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class GenerationInfeasible(RuntimeError):
    """The generator spent its whole attempt budget without an acceptable problem."""

    def __init__(self, reason: str, *, attempts: int) -> None:
        super().__init__(reason)
        self.reason = reason
        self.attempts = attempts
