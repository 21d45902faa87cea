from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
from enum import Enum
import time
from typing import Callable

from corpus import TargetText


class Mark(Enum):
    UNTYPED = "."
    CORRECT = "+"
    INCORRECT = "!"
    CORRECTED = "~"


@dataclass(frozen=True)
class Outcome:
    mark: Mark
    observed: str | None = None

    @classmethod
    def incorrect(cls, observed: str) -> Outcome:
        return cls(Mark.INCORRECT, observed)


UNTYPED = Outcome(Mark.UNTYPED)
CORRECT = Outcome(Mark.CORRECT)
CORRECTED = Outcome(Mark.CORRECTED)

# Marks allowed in the slot under the cursor.
_CURSOR_MARKS = (Mark.UNTYPED, Mark.INCORRECT, Mark.CORRECTED)


class Phase(Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETE = "complete"


class SessionState:
    """Cursor, per-position outcomes and active-time clock for one text.

    Positions before the cursor are always CORRECT and positions after it are
    always UNTYPED. The slot under the cursor carries a pending INCORRECT
    mark after a miss, or CORRECTED after backing over a missed position.
    Only ``classifier.classify`` should call the ``_record_*`` methods.
    """

    def __init__(
        self,
        target: TargetText,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.target = target
        self._clock = clock
        self._cursor = 0
        self._outcomes: list[Outcome] = [UNTYPED] * len(target)
        self._misses: list[int] = [0] * len(target)
        self.started_at: dt.datetime | None = None
        self._elapsed = 0.0
        self._running_since: float | None = None

    @classmethod
    def restore(
        cls,
        target: TargetText,
        cursor: int,
        outcomes: list[Outcome],
        misses: list[int],
        elapsed: float,
        started_at: dt.datetime | None,
        clock: Callable[[], float] = time.monotonic,
    ) -> SessionState:
        """Rebuild a paused state from persisted parts, validating invariants."""
        if not 0 <= cursor <= len(target):
            raise ValueError(f"cursor {cursor} outside 0..{len(target)}")
        if len(outcomes) != len(target) or len(misses) != len(target):
            raise ValueError("outcome/miss record length does not match text")
        if elapsed < 0 or any(count < 0 for count in misses):
            raise ValueError("negative elapsed time or miss count")
        for i, outcome in enumerate(outcomes):
            if i < cursor:
                ok = outcome.mark is Mark.CORRECT
            elif i == cursor:
                ok = outcome.mark in _CURSOR_MARKS
            else:
                ok = outcome.mark is Mark.UNTYPED
            if not ok:
                raise ValueError(f"outcome {outcome.mark.name} not allowed at {i} with cursor {cursor}")
            if (outcome.mark is Mark.INCORRECT) != (outcome.observed is not None):
                raise ValueError(f"observed char mismatch at {i}")
        if cursor > 0 and started_at is None:
            raise ValueError("progress recorded without a start time")

        state = cls(target, clock=clock)
        state._cursor = cursor
        state._outcomes = list(outcomes)
        state._misses = list(misses)
        state._elapsed = float(elapsed)
        state.started_at = started_at
        return state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def phase(self) -> Phase:
        if self.is_complete():
            return Phase.COMPLETE
        if self.started_at is None:
            return Phase.NOT_STARTED
        return Phase.ACTIVE

    @property
    def running(self) -> bool:
        return self._running_since is not None

    def current_char(self) -> str | None:
        if self.is_complete():
            return None
        return self.target[self._cursor]

    def is_complete(self) -> bool:
        return self._cursor == len(self.target)

    def outcome_at(self, index: int) -> Outcome:
        return self._outcomes[index]

    def misses_at(self, index: int) -> int:
        return self._misses[index]

    def outcomes(self) -> list[Outcome]:
        return list(self._outcomes)

    def misses(self) -> list[int]:
        return list(self._misses)

    def elapsed(self) -> float:
        """Active seconds, including the interval currently running."""
        if self._running_since is None:
            return self._elapsed
        return self._elapsed + max(self._clock() - self._running_since, 0.0)

    def pause(self) -> None:
        if self._running_since is None:
            return
        self._elapsed = self.elapsed()
        self._running_since = None

    def resume(self) -> None:
        if self._running_since is not None or self.started_at is None or self.is_complete():
            return
        self._running_since = self._clock()

    # Mutation entry points for the classifier.

    def _record_keystroke(self) -> None:
        if self.started_at is None:
            self.started_at = dt.datetime.now(dt.timezone.utc)
        self.resume()

    def _record_match(self) -> None:
        self._outcomes[self._cursor] = CORRECT
        self._cursor += 1
        if self.is_complete():
            self.pause()

    def _record_miss(self, observed: str) -> None:
        self._outcomes[self._cursor] = Outcome.incorrect(observed)
        self._misses[self._cursor] += 1

    def _record_backspace(self) -> None:
        if self._cursor < len(self.target):
            self._outcomes[self._cursor] = UNTYPED
        self._cursor -= 1
        self._outcomes[self._cursor] = CORRECTED if self._misses[self._cursor] else UNTYPED
