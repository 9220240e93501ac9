"""Pygame UI shell for the arithmetic drill trainer.

Screens:
- Main menu
- Setup (configuration form with live validation)
- Drill (one problem at a time, typed answers, running counters)
- Summary (end-of-session performance)

All generation, validation, scoring and session state live in the core
modules; this layer only renders and forwards input.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .clock import RealClock
from .constraints import validate_config
from .drill_core import (
    ALL_OPERATIONS,
    ConfigurationRejected,
    DrillConfig,
    GenerationInfeasible,
    Operation,
    OperatorMixing,
    Problem,
)
from .results import EndReason, SessionSummary
from .session import DrillSession
from .settings import (
    DEFAULT_FIELDS,
    DEFAULT_OPERATIONS,
    AppSettings,
    config_from_fields,
    field_int,
    mixing_option_visible,
    sanitize_digits,
)

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

BG = (3, 9, 78)
PANEL_BG = (8, 18, 104)
BORDER = (226, 236, 255)
TEXT_MAIN = (238, 245, 255)
TEXT_MUTED = (186, 200, 224)
ACTIVE_BG = (244, 248, 255)
ACTIVE_TEXT = (14, 26, 74)
GOOD = (150, 230, 160)
BAD = (240, 150, 150)

_SUBMIT_KEYS = (pygame.K_RETURN, pygame.K_KP_ENTER)
_BACK_KEYS = (pygame.K_ESCAPE,)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    @property
    def top(self) -> Screen | None:
        return self._screens[-1] if self._screens else None

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the last/root screen; root handles its own quit/back behavior.
        if len(self._screens) > 1:
            self._screens.pop()

    def replace(self, screen: Screen) -> None:
        self.pop()
        self.push(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


def _draw_frame(surface: pygame.Surface) -> pygame.Rect:
    w, h = surface.get_size()
    surface.fill(BG)
    margin = max(10, min(26, w // 34))
    frame = pygame.Rect(margin, margin, max(260, w - margin * 2), max(220, h - margin * 2))
    pygame.draw.rect(surface, PANEL_BG, frame)
    pygame.draw.rect(surface, BORDER, frame, 2)
    return frame


class MenuScreen:
    def __init__(self, app: App, title: str, items: list[MenuItem], *, is_root: bool = False) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._is_root = is_root
        self._title_font = pygame.font.Font(None, 42)
        self._item_font = pygame.font.Font(None, 32)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_UP, pygame.K_w):
            self._move(-1)
        elif event.key in (pygame.K_DOWN, pygame.K_s):
            self._move(1)
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._activate()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._back()

    def _move(self, delta: int) -> None:
        if not self._items:
            return
        self._selected = (self._selected + delta) % len(self._items)

    def _activate(self) -> None:
        if not self._items:
            return
        self._items[self._selected].action()

    def _back(self) -> None:
        if self._is_root:
            self._app.quit()
        else:
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        frame = _draw_frame(surface)
        title = self._title_font.render(self._title, True, TEXT_MAIN)
        surface.blit(title, (frame.x + 28, frame.y + 24))

        y = frame.y + 96
        for idx, item in enumerate(self._items):
            row = pygame.Rect(frame.x + 24, y, frame.w - 48, 40)
            selected = idx == self._selected
            if selected:
                pygame.draw.rect(surface, ACTIVE_BG, row)
            color = ACTIVE_TEXT if selected else TEXT_MAIN
            label = self._item_font.render(item.label, True, color)
            surface.blit(label, (row.x + 14, row.y + 8))
            y += 48


# -- Setup ---------------------------------------------------------------------

_NUMBER_FIELDS: tuple[tuple[str, str], ...] = (
    ("operand_digits", "Digits per value"),
    ("result_digits", "Max digits in answer"),
    ("operand_count", "Number of values"),
    ("problem_count", "Problems (0 = unlimited)"),
)


class SetupScreen:
    """Configuration form.

    Rows: one toggle per operation, the four number fields, the operator
    mixing selector (only while it applies) and a Start row. Up/Down moves,
    Space/Left/Right toggles, digits and Backspace edit numbers, R resets to
    defaults, Enter starts a session. The validator runs on every render so
    the form always shows the current problem with the settings.
    """

    def __init__(self, app: App, *, session: DrillSession) -> None:
        self._app = app
        self._session = session
        self._font = pygame.font.Font(None, 30)
        self._small_font = pygame.font.Font(None, 24)
        self._selected = 0
        self._start_error: str | None = None
        self.reset_to_defaults()

    def reset_to_defaults(self) -> None:
        self._operations: set[Operation] = set(DEFAULT_OPERATIONS)
        self._fields: dict[str, str] = {key: str(value) for key, value in DEFAULT_FIELDS.items()}
        self._mixing = OperatorMixing.SINGLE
        self._start_error = None

    @property
    def start_error(self) -> str | None:
        return self._start_error

    # Row model is rebuilt each time so the mixing row appears/disappears live.
    def _rows(self) -> list[str]:
        rows = [f"op:{op.value}" for op in ALL_OPERATIONS]
        rows.extend(f"field:{key}" for key, _ in _NUMBER_FIELDS)
        if self._mixing_visible():
            rows.append("mixing")
        rows.append("start")
        return rows

    def _mixing_visible(self) -> bool:
        count = field_int(self._fields["operand_count"], DEFAULT_FIELDS["operand_count"])
        return mixing_option_visible(self._operations, count)

    def current_config(self) -> DrillConfig:
        return config_from_fields(
            self._operations,
            operand_digits=self._fields["operand_digits"],
            result_digits=self._fields["result_digits"],
            operand_count=self._fields["operand_count"],
            problem_count=self._fields["problem_count"],
            operator_mixing=self._mixing.value,
        )

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        rows = self._rows()
        self._selected = min(self._selected, len(rows) - 1)
        row = rows[self._selected]

        if event.key in _BACK_KEYS:
            self._app.pop()
        elif event.key in (pygame.K_UP, pygame.K_DOWN):
            self._leave_row(row)
            delta = -1 if event.key == pygame.K_UP else 1
            self._selected = (self._selected + delta) % len(rows)
        elif event.key in _SUBMIT_KEYS:
            self._leave_row(row)
            self._start()
        elif event.key == pygame.K_r:
            self.reset_to_defaults()
        elif event.key in (pygame.K_SPACE, pygame.K_LEFT, pygame.K_RIGHT):
            self._toggle(row)
        elif event.key == pygame.K_BACKSPACE:
            if row.startswith("field:"):
                key = row.split(":", 1)[1]
                self._fields[key] = self._fields[key][:-1]
        else:
            ch = getattr(event, "unicode", "")
            if row.startswith("field:") and ch and ch.isdigit():
                key = row.split(":", 1)[1]
                self._fields[key] = sanitize_digits(self._fields[key] + ch)[:3]

    def _leave_row(self, row: str) -> None:
        # Empty number fields snap back to their default when focus leaves them.
        if row.startswith("field:"):
            key = row.split(":", 1)[1]
            if self._fields[key] == "":
                self._fields[key] = str(DEFAULT_FIELDS[key])

    def _toggle(self, row: str) -> None:
        if row.startswith("op:"):
            op = Operation(row.split(":", 1)[1])
            if op in self._operations:
                self._operations.discard(op)
            else:
                self._operations.add(op)
        elif row == "mixing":
            self._mixing = (
                OperatorMixing.MIXED if self._mixing is OperatorMixing.SINGLE else OperatorMixing.SINGLE
            )
        elif row == "start":
            self._start()

    def _start(self) -> None:
        config = self.current_config()
        try:
            self._session.start(config)
        except ConfigurationRejected as exc:
            self._start_error = exc.reason
            return
        except GenerationInfeasible as exc:
            self._start_error = exc.reason
            return
        self._start_error = None
        self._app.push(DrillScreen(self._app, session=self._session))

    def render(self, surface: pygame.Surface) -> None:
        frame = _draw_frame(surface)
        title = self._font.render("Practice Setup", True, TEXT_MAIN)
        surface.blit(title, (frame.x + 28, frame.y + 18))

        rows = self._rows()
        y = frame.y + 56
        for idx, row in enumerate(rows):
            selected = idx == self._selected
            rect = pygame.Rect(frame.x + 24, y, frame.w // 2, 30)
            if selected:
                pygame.draw.rect(surface, ACTIVE_BG, rect)
            color = ACTIVE_TEXT if selected else TEXT_MAIN
            text = self._font.render(self._row_label(row), True, color)
            surface.blit(text, (rect.x + 10, rect.y + 5))
            y += 34

        check = validate_config(self.current_config())
        message = self._start_error if self._start_error is not None else check.reason
        if message:
            err = self._small_font.render(message, True, BAD)
            surface.blit(err, (frame.x + 28, frame.bottom - 64))
        hint = self._small_font.render(
            "Up/Down move  Space toggle  digits edit  R reset  Enter start  Esc back",
            True,
            TEXT_MUTED,
        )
        surface.blit(hint, (frame.x + 28, frame.bottom - 32))

    def _row_label(self, row: str) -> str:
        if row.startswith("op:"):
            op = Operation(row.split(":", 1)[1])
            mark = "[x]" if op in self._operations else "[ ]"
            return f"{mark} {op.value.capitalize()} ({op.symbol})"
        if row.startswith("field:"):
            key = row.split(":", 1)[1]
            label = dict(_NUMBER_FIELDS)[key]
            return f"{label}: {self._fields[key]}"
        if row == "mixing":
            return f"Operators: {self._mixing.value}"
        return "Start"


# -- Drill ---------------------------------------------------------------------


class DrillScreen:
    def __init__(self, app: App, *, session: DrillSession) -> None:
        self._app = app
        self._session = session
        self._input = ""
        self._feedback: str | None = None
        self._feedback_ok = False
        self._problem_font = pygame.font.Font(None, 84)
        self._input_font = pygame.font.Font(None, 58)
        self._small_font = pygame.font.Font(None, 26)
        config = session.config
        self._allow_negative = config is not None and config.allows(Operation.SUBTRACTION)

    @property
    def typed(self) -> str:
        return self._input

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in _BACK_KEYS:
            self._show_summary(self._session.end())
            return
        if event.key in _SUBMIT_KEYS:
            self._submit()
            return
        if self._session.awaiting_next:
            return
        if event.key == pygame.K_BACKSPACE:
            self._input = self._input[:-1]
        elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            if self._allow_negative:
                self._input = self._input[1:] if self._input.startswith("-") else "-" + self._input
        else:
            ch = getattr(event, "unicode", "")
            if ch and ch.isdigit():
                self._input += ch

    def _submit(self) -> None:
        outcome = self._session.submit_answer(self._input)
        if outcome is None:
            return
        self._feedback = outcome.feedback
        self._feedback_ok = outcome.is_correct

    def _show_summary(self, summary: SessionSummary) -> None:
        self._app.replace(SummaryScreen(self._app, summary=summary))

    def _tick(self) -> None:
        result = self._session.update()
        if isinstance(result, Problem):
            self._input = ""
            self._feedback = None
        elif isinstance(result, SessionSummary):
            self._show_summary(result)

    def render(self, surface: pygame.Surface) -> None:
        self._tick()
        if self._app.top is not self:
            return

        frame = _draw_frame(surface)
        counters = self._session.counters
        stats = (
            f"Solved: {counters.problems_solved}   Correct: {counters.correct_answers}   "
            f"Accuracy: {counters.accuracy}%"
        )
        surface.blit(self._small_font.render(stats, True, TEXT_MAIN), (frame.x + 28, frame.y + 22))

        if counters.total_problems > 0:
            bar = pygame.Rect(frame.x + 28, frame.y + 52, frame.w - 56, 10)
            pygame.draw.rect(surface, BORDER, bar, 1)
            filled = bar.copy()
            filled.w = int(bar.w * counters.progress)
            pygame.draw.rect(surface, ACTIVE_BG, filled)

        problem = self._session.current_problem
        if problem is not None:
            text = self._problem_font.render(problem.prompt, True, TEXT_MAIN)
            surface.blit(text, text.get_rect(center=(frame.centerx, frame.y + frame.h // 3)))

        typed = self._input_font.render(self._input or "_", True, TEXT_MAIN)
        surface.blit(typed, typed.get_rect(center=(frame.centerx, frame.y + frame.h // 2 + 20)))

        if self._feedback:
            color = GOOD if self._feedback_ok else BAD
            fb = self._small_font.render(self._feedback, True, color)
            surface.blit(fb, fb.get_rect(center=(frame.centerx, frame.y + frame.h // 2 + 80)))

        hint = "Type answer then Enter   Esc ends session"
        if self._allow_negative:
            hint += "   - toggles sign"
        surface.blit(self._small_font.render(hint, True, TEXT_MUTED), (frame.x + 28, frame.bottom - 32))


class SummaryScreen:
    def __init__(self, app: App, *, summary: SessionSummary) -> None:
        self._app = app
        self._summary = summary
        self._font = pygame.font.Font(None, 34)

    @property
    def summary(self) -> SessionSummary:
        return self._summary

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        frame = _draw_frame(surface)
        s = self._summary
        lines = ["Session Complete", ""]
        if s.end_reason is EndReason.INFEASIBLE and s.error:
            lines.append(s.error)
            lines.append("")
        lines.extend(
            [
                f"Problems solved: {s.problems_solved}",
                f"Correct answers: {s.correct_answers}",
                f"Accuracy: {s.accuracy}%",
                f"Score: {s.score}",
                "",
                s.message,
                "",
                "Press any key to return to setup",
            ]
        )
        y = frame.y + 28
        for line in lines:
            color = BAD if line == s.error else TEXT_MAIN
            surface.blit(self._font.render(line, True, color), (frame.x + 28, y))
            y += 38


def run(*, max_frames: int | None = None, event_injector: Callable[[int], None] | None = None) -> int:
    settings = AppSettings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.debug("starting (seed=%s, feedback_delay_s=%.2f)", settings.seed, settings.feedback_delay_s)

    pygame.init()
    pygame.display.set_caption("Arithmetic Drill")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)
    session = DrillSession(
        clock=RealClock(),
        seed=settings.seed,
        feedback_delay_s=settings.feedback_delay_s,
    )

    main_items = [
        MenuItem("Practice", lambda: app.push(SetupScreen(app, session=session))),
        MenuItem("Quit", app.quit),
    ]
    app.push(MenuScreen(app, "Arithmetic Drill", main_items, is_root=True))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        if session.is_active:
            session.end()
        pygame.quit()

    return 0
