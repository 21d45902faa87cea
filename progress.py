from __future__ import annotations

import datetime as dt
import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any

from corpus import TargetText
from session import Mark, Outcome, SessionState


logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
PROGRESS_SUFFIX = ".progress.json"

_MARKS_BY_CODE = {mark.value: mark for mark in Mark}


class PersistError(OSError):
    """Progress could not be written to disk."""


class ForeignProgressError(ValueError):
    """The progress file was written for a different text."""


def default_progress_path(story: Path) -> Path:
    """``notes.txt`` -> ``notes.progress.json`` in the same directory."""
    return Path(story).with_suffix(PROGRESS_SUFFIX)


def write_json_atomic(path: Path, data: Any) -> None:
    """Write ``data`` to a temp file beside ``path`` and rename it into place."""
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def encode_state(state: SessionState) -> dict[str, Any]:
    outcomes = state.outcomes()
    misses = state.misses()
    return {
        "version": FORMAT_VERSION,
        "fingerprint": state.target.fingerprint,
        "length": len(state.target),
        "cursor": state.cursor,
        "outcomes": "".join(outcome.mark.value for outcome in outcomes),
        "observed": {
            str(i): outcome.observed for i, outcome in enumerate(outcomes) if outcome.observed is not None
        },
        "misses": {str(i): count for i, count in enumerate(misses) if count},
        "elapsed": state.elapsed(),
        "started_at": state.started_at.isoformat() if state.started_at else None,
    }


def decode_state(data: Any, target: TargetText) -> SessionState:
    """Rebuild a state for ``target``; raises on any mismatch or bad field."""
    if not isinstance(data, dict):
        raise ValueError("progress record is not an object")
    if data.get("version") != FORMAT_VERSION:
        raise ValueError(f"unsupported progress version {data.get('version')!r}")
    if data.get("fingerprint") != target.fingerprint:
        raise ForeignProgressError("progress belongs to a different text")
    if data.get("length") != len(target):
        raise ValueError("progress length does not match text")

    codes = data["outcomes"]
    if not isinstance(codes, str):
        raise ValueError("outcomes must be a string of marks")
    observed = {}
    for key, value in data.get("observed", {}).items():
        if not isinstance(value, str) or len(value) != 1:
            raise ValueError(f"observed entry {key!r} is not a single character")
        observed[int(key)] = value
    outcomes = []
    for i, code in enumerate(codes):
        mark = _MARKS_BY_CODE[code]
        outcomes.append(Outcome(mark, observed.get(i)) if mark is Mark.INCORRECT else Outcome(mark))

    misses = [0] * len(target)
    for key, count in data.get("misses", {}).items():
        index = int(key)
        if not 0 <= index < len(target):
            raise IndexError(f"miss count recorded at {index} outside the text")
        misses[index] = int(count)

    started_raw = data.get("started_at")
    started_at = dt.datetime.fromisoformat(started_raw) if started_raw else None
    cursor = data["cursor"]
    if not isinstance(cursor, int) or isinstance(cursor, bool):
        raise ValueError("cursor must be an integer")

    return SessionState.restore(
        target,
        cursor=cursor,
        outcomes=outcomes,
        misses=misses,
        elapsed=float(data.get("elapsed", 0.0)),
        started_at=started_at,
    )


class ProgressStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self, target: TargetText) -> SessionState | None:
        """Saved state for ``target``, or None when there is nothing usable."""
        if not self.path.exists():
            logger.info("no progress file at %s", self.path)
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("ignoring unreadable progress file %s: %s", self.path, exc)
            return None
        try:
            state = decode_state(data, target)
        except ForeignProgressError as exc:
            logger.info("ignoring progress file %s: %s", self.path, exc)
            return None
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("ignoring malformed progress file %s: %s", self.path, exc)
            return None
        logger.info("resuming at %d/%d from %s", state.cursor, len(target), self.path)
        return state

    def save(self, state: SessionState) -> None:
        try:
            write_json_atomic(self.path, encode_state(state))
        except OSError as exc:
            raise PersistError(f"cannot save progress to {self.path}: {exc}") from exc
        logger.info("saved progress %d/%d to %s", state.cursor, len(state.target), self.path)
