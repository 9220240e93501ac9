"""Session coordinator for arithmetic drills.

One ``DrillSession`` owns the single live session: configuration, counters and
the current problem. The presentation layer holds a handle to it and only
calls the entry points below.

States::

    IDLE --start()--> ACTIVE --(quota reached | end() | generation infeasible)--> IDLE

Scoring and advancing are separate steps. ``submit_answer`` scores right away
and schedules the next problem ``feedback_delay_s`` later; ``update`` (called
every frame) performs that advance once the clock says it is due, and
``next_problem`` performs it on demand.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from .clock import Clock
from .constraints import ConfigCheck, validate_config
from .drill_core import ConfigurationRejected, DrillConfig, GenerationInfeasible, Problem
from .problem_generator import MAX_ATTEMPTS, Infeasible, ProblemGenerator
from .results import AnswerOutcome, EndReason, SessionCounters, SessionSummary, summarize

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?\d+")


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


def parse_answer(raw: str) -> int | None:
    """Parse typed answer text as a signed integer; None when it is not one."""

    text = raw.strip()
    if not _INT_RE.fullmatch(text):
        return None
    try:
        return int(text)
    except ValueError:
        # past the interpreter's int conversion digit limit
        return None


class DrillSession:
    def __init__(
        self,
        *,
        clock: Clock,
        seed: int | None = None,
        feedback_delay_s: float = 1.0,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        if feedback_delay_s < 0.0:
            raise ValueError("feedback_delay_s must be >= 0")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self._clock = clock
        self._seed = seed
        self._feedback_delay_s = float(feedback_delay_s)
        self._max_attempts = int(max_attempts)

        self._state = SessionState.IDLE
        self._config: DrillConfig | None = None
        self._generator: ProblemGenerator | None = None

        self._problems_solved = 0
        self._correct_answers = 0
        self._current: Problem | None = None
        self._presented_at_s: float | None = None
        self._advance_at_s: float | None = None
        self._outcomes: list[AnswerOutcome] = []
        self._last_summary: SessionSummary | None = None

    # -- read-only views ----------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def config(self) -> DrillConfig | None:
        return self._config

    @property
    def current_problem(self) -> Problem | None:
        return self._current

    @property
    def problems_solved(self) -> int:
        return self._problems_solved

    @property
    def correct_answers(self) -> int:
        return self._correct_answers

    @property
    def counters(self) -> SessionCounters:
        total = 0 if self._config is None else self._config.problem_count
        return SessionCounters(
            problems_solved=self._problems_solved,
            correct_answers=self._correct_answers,
            total_problems=total,
        )

    @property
    def accuracy(self) -> int:
        return self.counters.accuracy

    @property
    def progress(self) -> float:
        return self.counters.progress

    @property
    def awaiting_next(self) -> bool:
        """True between a scored answer and the reveal of the next problem."""
        return self._advance_at_s is not None

    @property
    def outcomes(self) -> list[AnswerOutcome]:
        return list(self._outcomes)

    @property
    def last_summary(self) -> SessionSummary | None:
        return self._last_summary

    # -- entry points -------------------------------------------------------
    def validate(self, config: DrillConfig) -> ConfigCheck:
        return validate_config(config)

    def start(self, config: DrillConfig) -> Problem:
        """Validate ``config`` and open a new session with its first problem.

        Any live session is ended first, so a rejected config leaves the
        coordinator idle.
        """

        if self.is_active:
            self.end()

        check = validate_config(config)
        if not check:
            assert check.reason is not None
            logger.info("session not started: %s", check.reason)
            raise ConfigurationRejected(check.reason)

        self._config = config
        self._generator = ProblemGenerator(config, seed=self._seed, max_attempts=self._max_attempts)
        self._problems_solved = 0
        self._correct_answers = 0
        self._current = None
        self._presented_at_s = None
        self._advance_at_s = None
        self._outcomes = []
        self._last_summary = None
        self._state = SessionState.ACTIVE
        logger.info(
            "session started: ops=%s operand_digits=%d result_digits=%d operands=%d problems=%d",
            ",".join(op.value for op in config.operations),
            config.operand_digits,
            config.result_digits,
            config.operand_count,
            config.problem_count,
        )

        first = self.next_problem()
        if not isinstance(first, Problem):
            reason = "" if first is None or first.error is None else first.error
            raise GenerationInfeasible(reason, attempts=self._max_attempts)
        return first

    def submit_answer(self, raw: str) -> AnswerOutcome | None:
        """Score ``raw`` against the current problem.

        Ignored (returns None) when no session is active, there is no current
        problem, or the previous answer is still waiting for its advance.
        """

        if not self.is_active or self._current is None or self._advance_at_s is not None:
            return None

        now = self._clock.now()
        value = parse_answer(raw)
        is_correct = value is not None and value == self._current.answer

        self._problems_solved += 1
        if is_correct:
            self._correct_answers += 1

        presented = now if self._presented_at_s is None else self._presented_at_s
        outcome = AnswerOutcome(
            is_correct=is_correct,
            correct_answer=self._current.answer,
            user_answer=value,
            raw=raw,
            counters=self.counters,
            response_time_s=max(0.0, now - presented),
        )
        self._outcomes.append(outcome)
        self._advance_at_s = now + self._feedback_delay_s
        return outcome

    def update(self) -> Problem | SessionSummary | None:
        """Advance to the next problem once the feedback delay has elapsed."""

        if not self.is_active or self._advance_at_s is None:
            return None
        if self._clock.now() < self._advance_at_s:
            return None
        return self.next_problem()

    def time_until_advance_s(self) -> float | None:
        if self._advance_at_s is None:
            return None
        return max(0.0, self._advance_at_s - self._clock.now())

    def next_problem(self) -> Problem | SessionSummary | None:
        """Deal the next problem, or end the session on quota or infeasibility."""

        if not self.is_active:
            return None
        assert self._config is not None
        assert self._generator is not None

        self._advance_at_s = None
        total = self._config.problem_count
        if total > 0 and self._problems_solved >= total:
            return self._finish(EndReason.QUOTA)

        result = self._generator.next_problem()
        if isinstance(result, Infeasible):
            logger.warning("ending session: %s (%d attempts)", result.reason, result.attempts)
            return self._finish(EndReason.INFEASIBLE, error=result.reason)

        self._current = result
        self._presented_at_s = self._clock.now()
        return result

    def end(self) -> SessionSummary:
        """Stop the session now and report on whatever was answered."""

        if self.is_active:
            return self._finish(EndReason.USER)
        if self._last_summary is not None:
            return self._last_summary
        return summarize(self.counters, end_reason=EndReason.USER)

    def _finish(self, reason: EndReason, *, error: str | None = None) -> SessionSummary:
        self._state = SessionState.IDLE
        self._current = None
        self._presented_at_s = None
        self._advance_at_s = None
        summary = summarize(self.counters, end_reason=reason, error=error)
        self._last_summary = summary
        logger.info(
            "session ended (%s): solved=%d correct=%d accuracy=%d%% score=%d",
            reason.value,
            summary.problems_solved,
            summary.correct_answers,
            summary.accuracy,
            summary.score,
        )
        return summary
