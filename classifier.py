from __future__ import annotations

from enum import Enum
import logging

from session import SessionState


logger = logging.getLogger(__name__)

BACKSPACE = "\b"


class Verdict(Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    CORRECTION = "correction"
    IGNORED = "ignored"


def classify(state: SessionState, key: str) -> Verdict:
    """Apply one keystroke to ``state`` and report how it was judged.

    The cursor only moves forward on an exact match; a miss is recorded at
    the cursor and has to be retyped before the session moves on.
    """
    if len(key) != 1:
        raise ValueError(f"expected a single character, got {key!r}")
    if state.is_complete():
        return Verdict.IGNORED

    if key == BACKSPACE:
        if state.cursor == 0:
            return Verdict.IGNORED
        state._record_backspace()
        return Verdict.CORRECTION

    state._record_keystroke()
    if key == state.current_char():
        state._record_match()
        if state.is_complete():
            logger.info("text completed after %.1fs", state.elapsed())
        return Verdict.CORRECT

    state._record_miss(key)
    return Verdict.INCORRECT
