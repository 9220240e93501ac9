from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .drill_core import round_half_up


class PerformanceTier(str, Enum):
    EXCELLENT = "excellent"
    GREAT = "great"
    GOOD = "good"
    KEEP_PRACTICING = "keep_practicing"

    @property
    def message(self) -> str:
        return _TIER_MESSAGES[self]


_TIER_MESSAGES = {
    PerformanceTier.EXCELLENT: "Excellent work! You're a math wizard!",
    PerformanceTier.GREAT: "Great job! You're doing very well!",
    PerformanceTier.GOOD: "Good effort! Keep practicing to improve!",
    PerformanceTier.KEEP_PRACTICING: "Keep practicing! You'll get better with time!",
}


class EndReason(str, Enum):
    QUOTA = "quota"
    USER = "user"
    INFEASIBLE = "infeasible"


def accuracy_percent(solved: int, correct: int) -> int:
    """Whole-number percentage, halves rounded up; 0 before any answer."""

    if solved <= 0:
        return 0
    return round_half_up(correct * 100.0 / solved)


def session_score(correct: int, accuracy: int) -> int:
    return correct * accuracy


def tier_for(accuracy: int) -> PerformanceTier:
    if accuracy >= 90:
        return PerformanceTier.EXCELLENT
    if accuracy >= 75:
        return PerformanceTier.GREAT
    if accuracy >= 60:
        return PerformanceTier.GOOD
    return PerformanceTier.KEEP_PRACTICING


@dataclass(frozen=True, slots=True)
class SessionCounters:
    """Live counters for display."""

    problems_solved: int
    correct_answers: int
    total_problems: int  # 0 = unbounded

    @property
    def accuracy(self) -> int:
        return accuracy_percent(self.problems_solved, self.correct_answers)

    @property
    def progress(self) -> float:
        if self.total_problems <= 0:
            return 0.0
        return min(1.0, self.problems_solved / self.total_problems)


@dataclass(frozen=True, slots=True)
class AnswerOutcome:
    is_correct: bool
    correct_answer: int
    user_answer: int | None
    raw: str
    counters: SessionCounters
    response_time_s: float

    @property
    def feedback(self) -> str:
        return "Correct!" if self.is_correct else f"Incorrect! Answer: {self.correct_answer}"


@dataclass(frozen=True, slots=True)
class SessionSummary:
    problems_solved: int
    correct_answers: int
    accuracy: int
    score: int
    tier: PerformanceTier
    end_reason: EndReason
    error: str | None = None

    @property
    def message(self) -> str:
        return self.tier.message


def summarize(counters: SessionCounters, *, end_reason: EndReason, error: str | None = None) -> SessionSummary:
    """Build the end-of-session performance summary from the current counters."""

    accuracy = counters.accuracy
    return SessionSummary(
        problems_solved=counters.problems_solved,
        correct_answers=counters.correct_answers,
        accuracy=accuracy,
        score=session_score(counters.correct_answers, accuracy),
        tier=tier_for(accuracy),
        end_reason=end_reason,
        error=error,
    )
