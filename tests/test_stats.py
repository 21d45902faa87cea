from pathlib import Path

from classifier import classify
from corpus import TargetText
from metrics import snapshot
from session import SessionState
from stats import SessionRecord, StatsStore


def _finished(text: str, keys: str, clock) -> SessionState:
    state = SessionState(TargetText(text), clock=clock)
    for key in keys:
        classify(state, key)
        clock.advance(1.0)
    return state


def test_record_from_finished_session(clock) -> None:
    state = _finished("cat", "cxat", clock)

    record = SessionRecord.from_session(state, snapshot(state), "cat.txt")

    assert record.source == "cat.txt"
    assert record.fingerprint == state.target.fingerprint
    assert record.text_len == 3
    assert record.errors == 1
    assert record.accuracy == 0.75
    assert record.duration_s == 3.0
    assert record.speed == 60.0
    assert record.wpm == 12.0
    assert record.started_at


def test_append_and_filter_sessions(tmp_path: Path, clock) -> None:
    store = StatsStore(tmp_path / "history" / "stats.json")
    cat = _finished("cat", "cat", clock)
    dog = _finished("dog", "dog", clock)

    store.append_session(SessionRecord.from_session(cat, snapshot(cat), "cat.txt"))
    store.append_session(SessionRecord.from_session(dog, snapshot(dog), "dog.txt"))
    store.append_session(SessionRecord.from_session(cat, snapshot(cat), "cat.txt"))

    assert len(store.load()["sessions"]) == 3
    runs = store.sessions_for(cat.target.fingerprint)
    assert [run["source"] for run in runs] == ["cat.txt", "cat.txt"]


def test_missing_or_malformed_history_is_empty(tmp_path: Path) -> None:
    path = tmp_path / "stats.json"
    store = StatsStore(path)
    assert store.load() == {"sessions": []}

    path.write_text("{oops", encoding="utf-8")
    assert store.load() == {"sessions": []}

    path.write_text('{"sessions": 3}', encoding="utf-8")
    assert store.load() == {"sessions": []}


def test_undecodable_history_is_empty(tmp_path: Path) -> None:
    path = tmp_path / "stats.json"
    path.write_bytes(b"\xff\xfe garbage")
    assert StatsStore(path).load() == {"sessions": []}


def test_sessions_for_skips_entries_that_are_not_records(tmp_path: Path) -> None:
    path = tmp_path / "stats.json"
    path.write_text('{"sessions": [3, "x", null, {"fingerprint": "abc", "source": "a.txt"}]}', encoding="utf-8")

    assert StatsStore(path).sessions_for("abc") == [{"fingerprint": "abc", "source": "a.txt"}]
