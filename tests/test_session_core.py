from __future__ import annotations

import sys
from dataclasses import dataclass

import pytest

from arithmetic_drill.drill_core import (
    ConfigurationRejected,
    DrillConfig,
    GenerationInfeasible,
    Operation,
    Problem,
)
from arithmetic_drill.problem_generator import Infeasible, ProblemGenerator
from arithmetic_drill.results import EndReason, PerformanceTier, SessionSummary
from arithmetic_drill.session import DrillSession, SessionState, parse_answer


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


def _config(**overrides: object) -> DrillConfig:
    base: dict[str, object] = {
        "operations": (Operation.ADDITION,),
        "operand_digits": 1,
        "result_digits": 2,
        "operand_count": 2,
        "problem_count": 3,
    }
    base.update(overrides)
    return DrillConfig(**base)  # type: ignore[arg-type]


def test_parse_answer() -> None:
    assert parse_answer("42") == 42
    assert parse_answer(" -7 ") == -7
    assert parse_answer("+3") == 3
    assert parse_answer("") is None
    assert parse_answer("-") is None
    assert parse_answer("4a") is None
    assert parse_answer("1_000") is None


def test_start_rejects_invalid_config_and_stays_idle() -> None:
    session = DrillSession(clock=FakeClock(), seed=1)
    bad = _config(operations=(Operation.MULTIPLICATION,), operand_digits=2, result_digits=3)

    assert not session.validate(bad)
    with pytest.raises(ConfigurationRejected) as excinfo:
        session.start(bad)

    assert "multiplication" in excinfo.value.reason
    assert session.state is SessionState.IDLE
    assert session.current_problem is None


def test_start_deals_first_problem_with_zeroed_counters() -> None:
    session = DrillSession(clock=FakeClock(), seed=1)
    first = session.start(_config())

    assert session.is_active
    assert session.current_problem is first
    assert (session.problems_solved, session.correct_answers, session.accuracy) == (0, 0, 0)
    assert session.progress == 0.0


def test_submit_scores_and_schedules_advance() -> None:
    clock = FakeClock()
    session = DrillSession(clock=clock, seed=2, feedback_delay_s=1.0)
    first = session.start(_config())

    clock.advance(0.75)
    outcome = session.submit_answer(str(first.answer))
    assert outcome is not None
    assert outcome.is_correct
    assert outcome.feedback == "Correct!"
    assert outcome.response_time_s == pytest.approx(0.75)
    assert outcome.counters.problems_solved == 1
    assert session.correct_answers == 1
    assert session.awaiting_next

    # Second submission for the same problem is ignored.
    assert session.submit_answer(str(first.answer)) is None
    assert session.problems_solved == 1

    clock.advance(0.5)
    assert session.update() is None
    assert session.time_until_advance_s() == pytest.approx(0.5)

    clock.advance(0.5)
    nxt = session.update()
    assert isinstance(nxt, Problem)
    assert session.current_problem is nxt
    assert not session.awaiting_next


def test_wrong_and_malformed_answers_count_as_incorrect() -> None:
    session = DrillSession(clock=FakeClock(), seed=3, feedback_delay_s=0.0)
    p = session.start(_config(problem_count=0))

    outcome = session.submit_answer(str(p.answer + 1))
    assert outcome is not None and not outcome.is_correct
    assert outcome.feedback == f"Incorrect! Answer: {p.answer}"
    session.next_problem()

    outcome = session.submit_answer("abc")
    assert outcome is not None and not outcome.is_correct
    assert outcome.user_answer is None
    session.next_problem()

    outcome = session.submit_answer("")
    assert outcome is not None and not outcome.is_correct

    assert session.problems_solved == 3
    assert session.correct_answers == 0


def test_quota_reached_ends_on_next_problem() -> None:
    session = DrillSession(clock=FakeClock(), seed=4, feedback_delay_s=0.0)
    session.start(_config(problem_count=3))

    for i in range(3):
        p = session.current_problem
        assert p is not None
        assert session.submit_answer(str(p.answer)) is not None
        if i < 2:
            assert isinstance(session.next_problem(), Problem)

    assert session.progress == 1.0
    summary = session.next_problem()
    assert isinstance(summary, SessionSummary)
    assert summary.problems_solved == 3
    assert summary.correct_answers == 3
    assert summary.accuracy == 100
    assert summary.score == 300
    assert summary.end_reason is EndReason.QUOTA
    assert summary.tier is PerformanceTier.EXCELLENT
    assert session.state is SessionState.IDLE
    assert session.last_summary == summary


def test_inputs_are_ignored_when_idle() -> None:
    session = DrillSession(clock=FakeClock())
    assert session.submit_answer("1") is None
    assert session.next_problem() is None
    assert session.update() is None


def test_end_is_always_safe() -> None:
    session = DrillSession(clock=FakeClock(), seed=5, feedback_delay_s=0.0)

    empty = session.end()
    assert (empty.problems_solved, empty.accuracy, empty.score) == (0, 0, 0)

    p = session.start(_config(problem_count=10))
    session.submit_answer(str(p.answer))
    session.next_problem()
    session.submit_answer("-1")

    summary = session.end()
    assert summary.end_reason is EndReason.USER
    assert (summary.problems_solved, summary.correct_answers, summary.accuracy, summary.score) == (2, 1, 50, 50)
    assert not session.is_active
    assert session.end() == summary


def test_restart_replaces_the_live_session() -> None:
    session = DrillSession(clock=FakeClock(), seed=6, feedback_delay_s=0.0)
    p = session.start(_config())
    session.submit_answer(str(p.answer))

    session.start(_config(problem_count=5))
    assert session.is_active
    assert session.problems_solved == 0
    assert session.outcomes == []
    assert session.counters.total_problems == 5


def test_same_seed_same_problems() -> None:
    s1 = DrillSession(clock=FakeClock(), seed=77)
    s2 = DrillSession(clock=FakeClock(), seed=77)
    cfg = _config(operations=(Operation.ADDITION, Operation.SUBTRACTION), operand_count=3)
    assert s1.start(cfg) == s2.start(cfg)


def test_infeasible_first_problem_raises_and_ends_session() -> None:
    session = DrillSession(clock=FakeClock(), seed=1)
    cfg = _config(operand_digits=2, result_digits=2, operand_count=9)

    with pytest.raises(GenerationInfeasible) as excinfo:
        session.start(cfg)

    assert "adjust your constraints" in excinfo.value.reason
    assert excinfo.value.attempts == 100
    assert session.state is SessionState.IDLE
    assert session.last_summary is not None
    assert session.last_summary.end_reason is EndReason.INFEASIBLE


def test_infeasible_mid_session_ends_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    session = DrillSession(clock=FakeClock(), seed=8, feedback_delay_s=0.0)
    p = session.start(_config(problem_count=0))
    session.submit_answer(str(p.answer))

    monkeypatch.setattr(
        ProblemGenerator,
        "next_problem",
        lambda self: Infeasible(attempts=100, reason="no luck"),
    )
    summary = session.next_problem()

    assert isinstance(summary, SessionSummary)
    assert summary.end_reason is EndReason.INFEASIBLE
    assert summary.error == "no luck"
    assert summary.problems_solved == 1
    assert not session.is_active


def test_constructor_validation() -> None:
    with pytest.raises(ValueError):
        DrillSession(clock=FakeClock(), feedback_delay_s=-1.0)
    with pytest.raises(ValueError):
        DrillSession(clock=FakeClock(), max_attempts=0)


def test_rejected_restart_ends_live_session_and_stays_idle() -> None:
    session = DrillSession(clock=FakeClock(), seed=3)
    p = session.start(_config())
    session.submit_answer(str(p.answer))

    bad = _config(operations=())
    with pytest.raises(ConfigurationRejected):
        session.start(bad)

    assert session.state is SessionState.IDLE
    assert session.current_problem is None
    assert session.last_summary is not None
    assert session.last_summary.end_reason is EndReason.USER
    assert session.last_summary.problems_solved == 1


def test_wide_multiplication_start_raises_infeasible() -> None:
    session = DrillSession(clock=FakeClock(), seed=1)
    cfg = _config(operations=(Operation.MULTIPLICATION,), operand_digits=499, result_digits=998, operand_count=10)

    with pytest.raises(GenerationInfeasible):
        session.start(cfg)
    assert session.state is SessionState.IDLE


@pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="no int conversion digit limit")
def test_parse_answer_rejects_text_past_int_conversion_limit() -> None:
    assert parse_answer("9" * 5000) is None
