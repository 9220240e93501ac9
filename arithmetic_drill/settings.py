"""Setup-form defaults and runtime settings.

Form fields arrive as raw text. Anything that is not a positive whole number
falls back to the field default (the problem count alone keeps 0,
meaning unlimited), and stray non-digit characters are dropped,
matching how the setup form has always treated its number inputs.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .drill_core import DrillConfig, Operation, OperatorMixing, normalize_operations

FEEDBACK_DELAY_ENV = "ARITH_DRILL_FEEDBACK_DELAY_S"
LOG_LEVEL_ENV = "ARITH_DRILL_LOG_LEVEL"
SEED_ENV = "ARITH_DRILL_SEED"

DEFAULT_OPERAND_DIGITS = 1
DEFAULT_RESULT_DIGITS = 2
DEFAULT_OPERAND_COUNT = 2
DEFAULT_PROBLEM_COUNT = 10
DEFAULT_OPERATIONS: tuple[Operation, ...] = (Operation.ADDITION,)

DEFAULT_FIELDS: dict[str, int] = {
    "operand_digits": DEFAULT_OPERAND_DIGITS,
    "result_digits": DEFAULT_RESULT_DIGITS,
    "operand_count": DEFAULT_OPERAND_COUNT,
    "problem_count": DEFAULT_PROBLEM_COUNT,
}

_NON_DIGITS = re.compile(r"\D")


def default_config() -> DrillConfig:
    return DrillConfig(
        operations=DEFAULT_OPERATIONS,
        operand_digits=DEFAULT_OPERAND_DIGITS,
        result_digits=DEFAULT_RESULT_DIGITS,
        operand_count=DEFAULT_OPERAND_COUNT,
        operator_mixing=OperatorMixing.SINGLE,
        problem_count=DEFAULT_PROBLEM_COUNT,
    )


def sanitize_digits(text: str) -> str:
    return _NON_DIGITS.sub("", text)


def field_int(text: str, default: int, *, allow_zero: bool = False) -> int:
    digits = sanitize_digits(text)
    if not digits:
        return default
    value = int(digits)
    if value == 0 and not allow_zero:
        return default
    return value


def mixing_option_visible(operations: Iterable[Operation | str], operand_count: int) -> bool:
    return len(normalize_operations(operations)) >= 2 and operand_count >= 3


def config_from_fields(
    operations: Iterable[Operation | str],
    *,
    operand_digits: str = "",
    result_digits: str = "",
    operand_count: str = "",
    problem_count: str = "",
    operator_mixing: str = OperatorMixing.SINGLE.value,
) -> DrillConfig:
    """Build a ``DrillConfig`` from raw setup-form text."""

    try:
        mixing = OperatorMixing(operator_mixing)
    except ValueError:
        mixing = OperatorMixing.SINGLE

    return DrillConfig(
        operations=normalize_operations(operations),
        operand_digits=field_int(operand_digits, DEFAULT_OPERAND_DIGITS),
        result_digits=field_int(result_digits, DEFAULT_RESULT_DIGITS),
        operand_count=field_int(operand_count, DEFAULT_OPERAND_COUNT),
        operator_mixing=mixing,
        problem_count=field_int(problem_count, DEFAULT_PROBLEM_COUNT, allow_zero=True),
    )


def _as_float(value: object, fallback: float) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback


def _as_int(value: object, fallback: int | None) -> int | None:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback


@dataclass(frozen=True, slots=True)
class AppSettings:
    feedback_delay_s: float = 1.0
    log_level: int = logging.WARNING
    seed: int | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppSettings":
        env = os.environ if environ is None else environ

        delay = _as_float(env.get(FEEDBACK_DELAY_ENV, ""), 1.0)
        if delay < 0.0:
            delay = 1.0

        level_name = env.get(LOG_LEVEL_ENV, "").strip().upper()
        level = logging.getLevelName(level_name) if level_name else logging.WARNING
        if not isinstance(level, int):
            level = logging.WARNING

        seed = _as_int(env.get(SEED_ENV, ""), None)
        return cls(feedback_delay_s=delay, log_level=level, seed=seed)
