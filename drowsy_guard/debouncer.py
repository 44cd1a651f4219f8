"""
Temporal debounce tracking.

Answers "how long has this condition been continuously true". The session keeps
one instance for eye closure and one for subject absence.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DebounceState:
    started_at: Optional[float] = None
    elapsed_ms: float = 0.0


def advance(state: DebounceState, condition: bool, now: float) -> DebounceState:
    """Pure debounce step: returns the state after observing `condition` at `now`."""
    if not condition:
        return DebounceState()
    started_at = state.started_at if state.started_at is not None else now
    return DebounceState(started_at=started_at, elapsed_ms=max(0.0, now - started_at))


class Debouncer:
    """Stateful wrapper around `advance`."""

    def __init__(self, name: str):
        self.name = name
        self.state = DebounceState()

    @property
    def elapsed_ms(self) -> float:
        return self.state.elapsed_ms

    def update(self, condition: bool, now: float) -> float:
        self.state = advance(self.state, condition, now)
        return self.state.elapsed_ms

    def reset(self):
        self.state = DebounceState()
