"""Constraint logic shared by the analytic validator and the problem generator.

``answer_violation`` is the single acceptance test for a final answer. The
generator calls it on every sampled expression; ``validate_config`` calls it on
analytic extremes (largest product, smallest sum, largest quotient) so both
sides always agree on what a legal answer looks like.

The validator only screens necessary conditions. A configuration it accepts
may still be infeasible in practice, in which case the generator's attempt
budget is the final arbiter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .drill_core import DrillConfig, Operation, digit_count

logger = logging.getLogger(__name__)

# Heuristic upper bounds on operand count when answers are single digits,
# keyed by operation: (cap for 1-digit operands, cap for wider operands).
SINGLE_DIGIT_RESULT_CAPS: dict[Operation, tuple[int, int]] = {
    Operation.ADDITION: (9, 1),
    Operation.SUBTRACTION: (9, 2),
    Operation.MULTIPLICATION: (3, 1),
    Operation.DIVISION: (9, 3),
}


@dataclass(frozen=True, slots=True)
class ConfigCheck:
    ok: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.ok


ACCEPTED = ConfigCheck(ok=True)


def answer_violation(answer: int | None, config: DrillConfig) -> str | None:
    """Return why ``answer`` is unacceptable under ``config``, or None if it is fine."""

    if answer is None:
        return "expression is undefined (division by zero or with a remainder)"
    width = digit_count(answer)
    if width > config.result_digits:
        return f"answer has {width} digits, more than {config.result_digits}"
    if answer < 0 and not config.allows(Operation.SUBTRACTION):
        return "answer is negative but subtraction is not selected"
    return None


def max_operands_for_single_digit(config: DrillConfig) -> int:
    wide = 0 if config.operand_digits == 1 else 1
    return max((SINGLE_DIGIT_RESULT_CAPS[op][wide] for op in config.operations), default=0)


def validate_config(config: DrillConfig) -> ConfigCheck:
    """Screen a configuration before a session starts.

    Checks run in a fixed order and the first failure wins.
    """

    reason = _first_rejection(config)
    if reason is None:
        return ACCEPTED
    logger.debug("configuration rejected: %s", reason)
    return ConfigCheck(ok=False, reason=reason)


def _first_rejection(config: DrillConfig) -> str | None:
    d = config.operand_digits
    r = config.result_digits
    n = config.operand_count

    if not config.operations:
        return "Please select at least one operation."

    if n < 2:
        return "Number of values must be at least 2."

    if config.allows(Operation.MULTIPLICATION):
        max_product = config.operand_max * config.operand_max
        if answer_violation(max_product, config) is not None:
            return (
                f"For multiplication with {d}-digit numbers, answers should have "
                f"at least {digit_count(max_product)} digits."
            )

    if r == 1:
        limit = max_operands_for_single_digit(config)
        if n > limit:
            return (
                f"With {d}-digit operands and {r}-digit answers, the current limit is "
                f"{limit} operands. Please reduce the number of operands."
            )

    if config.allows(Operation.ADDITION) and n > 1:
        min_sum = n * config.operand_min
        if answer_violation(min_sum, config) is not None:
            return (
                f"For addition with {n} {d}-digit numbers, answers must have "
                f"at least {digit_count(min_sum)} digits."
            )

    if config.allows(Operation.DIVISION):
        if n < 2:
            return "Division requires at least 2 operands."
        # Widest quotient rounded up (99 / 10 -> 10), so wider operands need 2-digit answers.
        max_ratio = -(-config.operand_max // config.operand_min)
        if answer_violation(max_ratio, config) is not None:
            return (
                f"For division with {d}-digit numbers, answers may have "
                f"up to {digit_count(max_ratio)} digits."
            )

    return None
