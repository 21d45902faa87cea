from __future__ import annotations

from dataclasses import dataclass, field
import hashlib
import logging
from pathlib import Path


logger = logging.getLogger(__name__)

RETURN_GLYPH = "↩"

_REPLACEMENTS = {
    "—": "-",
    "–": "-",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
}


class CorpusError(ValueError):
    """The practice text could not be loaded."""


@dataclass(frozen=True)
class TargetText:
    text: str
    fingerprint: str = field(init=False)
    _line_starts: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.text:
            raise CorpusError("practice text is empty")
        digest = hashlib.sha256(self.text.encode("utf-8")).hexdigest()
        starts = [0] + [i + 1 for i, ch in enumerate(self.text) if ch == RETURN_GLYPH]
        object.__setattr__(self, "fingerprint", digest)
        object.__setattr__(self, "_line_starts", tuple(starts))

    def __len__(self) -> int:
        return len(self.text)

    def __getitem__(self, index):
        return self.text[index]

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_col(self, index: int) -> tuple[int, int]:
        """Zero-based (line, column) of ``index``; the end position is allowed."""
        if not 0 <= index <= len(self.text):
            raise IndexError(index)
        line = 0
        for i, start in enumerate(self._line_starts):
            if start > index:
                break
            line = i
        return line, index - self._line_starts[line]

    def word_bounds(self, index: int) -> tuple[int, int]:
        """Half-open span of the word around ``index``.

        Whitespace and the return glyph separate words. A separator position
        yields an empty span at that index.
        """
        if not 0 <= index < len(self.text):
            raise IndexError(index)
        if _is_separator(self.text[index]):
            return index, index
        start = index
        while start > 0 and not _is_separator(self.text[start - 1]):
            start -= 1
        end = index
        while end < len(self.text) and not _is_separator(self.text[end]):
            end += 1
        return start, end


def _is_separator(ch: str) -> bool:
    return ch.isspace() or ch == RETURN_GLYPH


def normalize_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n").rstrip()
    for src, dst in _REPLACEMENTS.items():
        text = text.replace(src, dst)
    return text.replace("\n", RETURN_GLYPH)


def load_text(path: Path) -> TargetText:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CorpusError(f"cannot read {path}: {exc}") from exc
    text = normalize_text(raw)
    if not text:
        raise CorpusError(f"{path} contains no text to practice")
    target = TargetText(text)
    logger.info("loaded %s (%d chars, fingerprint %s)", path, len(target), target.fingerprint[:12])
    return target
