import pytest

from classifier import classify
from corpus import TargetText
from metrics import SPEED_UNIT, snapshot
from session import SessionState


def test_fresh_session_has_undefined_metrics() -> None:
    snap = snapshot(SessionState(TargetText("cat")))

    assert snap.completed == 0
    assert snap.attempts == 0
    assert snap.accuracy is None
    assert snap.speed is None
    assert snap.wpm is None
    assert snap.elapsed == 0.0


def test_misses_at_the_cursor_do_not_count_until_completed(clock) -> None:
    state = SessionState(TargetText("cat"), clock=clock)
    classify(state, "x")

    snap = snapshot(state)
    assert snap.accuracy is None
    assert snap.errors == 0

    classify(state, "c")
    snap = snapshot(state)
    assert snap.errors == 1
    assert snap.attempts == 2
    assert snap.accuracy == 0.5


def test_speed_is_chars_per_minute_of_active_time(clock) -> None:
    state = SessionState(TargetText("cat"), clock=clock)
    classify(state, "c")
    clock.advance(30.0)
    classify(state, "a")
    clock.advance(30.0)
    classify(state, "t")

    snap = snapshot(state)
    assert snap.elapsed == pytest.approx(60.0)
    assert snap.speed == pytest.approx(3.0)
    assert snap.speed_unit == SPEED_UNIT
    assert snap.wpm == pytest.approx(0.6)


def test_zero_elapsed_reports_undefined_speed(clock) -> None:
    state = SessionState(TargetText("cat"), clock=clock)
    classify(state, "c")

    snap = snapshot(state)
    assert snap.completed == 1
    assert snap.accuracy == 1.0
    assert snap.speed is None


def test_snapshot_mid_session_excludes_paused_time(clock) -> None:
    state = SessionState(TargetText("abcd"), clock=clock)
    classify(state, "a")
    clock.advance(15.0)
    classify(state, "b")
    state.pause()
    clock.advance(600.0)

    snap = snapshot(state)
    assert snap.completed == 2
    assert snap.speed == pytest.approx(8.0)
