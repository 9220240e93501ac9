from __future__ import annotations

import logging
from dataclasses import dataclass

from .constraints import answer_violation
from .drill_core import DrillConfig, Operation, Problem, SeededRng, evaluate_left_to_right

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 100


@dataclass(frozen=True, slots=True)
class Infeasible:
    """No acceptable problem was found within the attempt budget."""

    attempts: int
    reason: str


def generate_problem(
    config: DrillConfig,
    rng: SeededRng,
    *,
    max_attempts: int = MAX_ATTEMPTS,
) -> Problem | Infeasible:
    """Sample problems until one satisfies every constraint or the budget runs out.

    Each attempt draws ``operand_count`` operands of exactly ``operand_digits``
    digits, picks the operator sequence (one operator repeated, or one per gap
    when mixing is in effect), evaluates left to right and hands the final
    answer to ``answer_violation``. The first accepted attempt wins.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    if not config.operations:
        return Infeasible(attempts=0, reason="No operations selected.")
    if config.operand_count < 2:
        return Infeasible(attempts=0, reason="Number of values must be at least 2.")

    gaps = config.operand_count - 1
    last_violation = ""
    for attempt in range(1, max_attempts + 1):
        operands = tuple(
            rng.randint(config.operand_min, config.operand_max) for _ in range(config.operand_count)
        )
        operators = _pick_operators(config, rng, gaps)
        answer = evaluate_left_to_right(operands, operators)

        violation = answer_violation(answer, config)
        if violation is None:
            assert answer is not None
            logger.debug("accepted problem after %d attempt(s)", attempt)
            return Problem(operands=operands, operators=operators, answer=answer)
        last_violation = violation

    logger.warning(
        "no valid problem after %d attempts (last rejection: %s)", max_attempts, last_violation
    )
    return Infeasible(
        attempts=max_attempts,
        reason="Could not generate valid problems with current settings. Please adjust your constraints.",
    )


def _pick_operators(config: DrillConfig, rng: SeededRng, gaps: int) -> tuple[Operation, ...]:
    if config.mixing_enabled:
        return tuple(rng.choice(config.operations) for _ in range(gaps))
    return (rng.choice(config.operations),) * gaps


class ProblemGenerator:
    """Deterministic problem stream for one configuration."""

    def __init__(self, config: DrillConfig, *, seed: int | None = None, max_attempts: int = MAX_ATTEMPTS) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._config = config
        self._rng = SeededRng(seed)
        self._max_attempts = int(max_attempts)

    @property
    def config(self) -> DrillConfig:
        return self._config

    def next_problem(self) -> Problem | Infeasible:
        return generate_problem(self._config, self._rng, max_attempts=self._max_attempts)
