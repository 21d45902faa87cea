from __future__ import annotations

from dataclasses import dataclass, asdict
import datetime as dt
import json
import logging
from pathlib import Path
from typing import Any
import uuid

from metrics import Snapshot
from progress import write_json_atomic
from session import SessionState


logger = logging.getLogger(__name__)

STATS_DIR = Path.home() / ".typing-tutor"
STATS_FILE = STATS_DIR / "stats.json"


@dataclass
class SessionRecord:
    id: str
    started_at: str
    ended_at: str
    duration_s: float
    source: str
    fingerprint: str
    text_len: int
    errors: int
    accuracy: float
    speed: float
    wpm: float

    @classmethod
    def from_session(cls, state: SessionState, snap: Snapshot, source: str) -> SessionRecord:
        return cls(
            id=str(uuid.uuid4()),
            started_at=state.started_at.isoformat() if state.started_at else "",
            ended_at=dt.datetime.now(dt.timezone.utc).isoformat(),
            duration_s=snap.elapsed,
            source=source,
            fingerprint=state.target.fingerprint,
            text_len=len(state.target),
            errors=snap.errors,
            accuracy=snap.accuracy or 0.0,
            speed=snap.speed or 0.0,
            wpm=snap.wpm or 0.0,
        )


class StatsStore:
    def __init__(self, path: Path = STATS_FILE) -> None:
        self.path = path

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"sessions": []}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("ignoring unreadable history %s: %s", self.path, exc)
            return {"sessions": []}
        if not isinstance(data, dict) or not isinstance(data.get("sessions"), list):
            return {"sessions": []}
        return data

    def append_session(self, record: SessionRecord) -> None:
        data = self.load()
        data["sessions"].append(asdict(record))
        self._save(data)
        logger.info("recorded session %s for %s", record.id, record.source)

    def sessions_for(self, fingerprint: str) -> list[dict[str, Any]]:
        return [s for s in self.load()["sessions"] if isinstance(s, dict) and s.get("fingerprint") == fingerprint]

    def _save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        write_json_atomic(self.path, data)
