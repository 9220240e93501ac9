from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Source of monotonic seconds for scheduling the advance to the next problem."""

    def now(self) -> float: ...


class RealClock:
    def now(self) -> float:
        return time.monotonic()
