from __future__ import annotations

from dataclasses import dataclass

from session import Mark, SessionState


CHARS_PER_WORD = 5.0
SPEED_UNIT = "chars/min"


@dataclass(frozen=True)
class Snapshot:
    completed: int
    attempts: int
    errors: int
    accuracy: float | None
    speed: float | None
    elapsed: float
    speed_unit: str = SPEED_UNIT

    @property
    def wpm(self) -> float | None:
        if self.speed is None:
            return None
        return self.speed / CHARS_PER_WORD


def snapshot(state: SessionState) -> Snapshot:
    """Accuracy and speed over the completed positions of ``state``.

    Every miss recorded at a completed position counts as an extra attempt,
    so retries lower accuracy even though the position ends up correct.
    ``None`` marks a metric that is undefined so far.
    """
    completed = state.cursor
    correct = sum(1 for i in range(completed) if state.outcome_at(i).mark is Mark.CORRECT)
    errors = sum(state.misses_at(i) for i in range(completed))
    attempts = completed + errors
    accuracy = (correct / attempts) if attempts > 0 else None

    elapsed = state.elapsed()
    speed = (completed / (elapsed / 60.0)) if elapsed > 0 else None

    return Snapshot(
        completed=completed,
        attempts=attempts,
        errors=errors,
        accuracy=accuracy,
        speed=speed,
        elapsed=elapsed,
    )
