from __future__ import annotations

from dataclasses import dataclass

from arithmetic_drill.drill_core import DrillConfig, Operation, OperatorMixing, Problem
from arithmetic_drill.results import EndReason, PerformanceTier, SessionSummary
from arithmetic_drill.session import DrillSession


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


def test_headless_scripted_run_produces_expected_summary() -> None:
    clock = FakeClock()
    session = DrillSession(clock=clock, seed=555, feedback_delay_s=1.0)
    config = DrillConfig(
        operations=(Operation.ADDITION, Operation.SUBTRACTION, Operation.MULTIPLICATION),
        operand_digits=1,
        result_digits=2,
        operand_count=3,
        operator_mixing=OperatorMixing.MIXED,
        problem_count=4,
    )

    session.start(config)
    script = [True, True, False, True]
    summary: SessionSummary | None = None

    for answer_correctly in script:
        p = session.current_problem
        assert p is not None
        clock.advance(2.0)
        typed = str(p.answer) if answer_correctly else str(p.answer + 1)
        outcome = session.submit_answer(typed)
        assert outcome is not None
        assert outcome.is_correct is answer_correctly

        # Frames tick by until the feedback delay has elapsed.
        for _ in range(5):
            clock.advance(0.25)
            result = session.update()
            if result is not None:
                break
        else:
            raise AssertionError("session never advanced")

        if isinstance(result, SessionSummary):
            summary = result
        else:
            assert isinstance(result, Problem)

    assert summary is not None
    assert summary.end_reason is EndReason.QUOTA
    assert (summary.problems_solved, summary.correct_answers) == (4, 3)
    assert summary.accuracy == 75
    assert summary.score == 225
    assert summary.tier is PerformanceTier.GREAT
    assert [o.response_time_s for o in session.outcomes] == [2.0, 2.0, 2.0, 2.0]


def test_unbounded_session_runs_until_ended() -> None:
    clock = FakeClock()
    session = DrillSession(clock=clock, seed=9, feedback_delay_s=0.5)
    session.start(
        DrillConfig(
            operations=(Operation.DIVISION,),
            operand_digits=1,
            result_digits=1,
            operand_count=2,
            problem_count=0,
        )
    )

    for _ in range(25):
        p = session.current_problem
        assert p is not None
        a, b = p.operands
        assert a % b == 0 and p.answer == a // b
        session.submit_answer(str(p.answer))
        clock.advance(0.5)
        assert isinstance(session.update(), Problem)

    assert session.progress == 0.0
    summary = session.end()
    assert summary.problems_solved == 25
    assert summary.accuracy == 100
    assert summary.score == 2500
