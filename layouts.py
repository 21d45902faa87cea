from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


BLANK = "\0"

# Column offset of the cursor-layer keypad on the 3l layout.
CUR_COLUMN_OFFSET = 6

_SHIFTED = dict(zip("`1234567890[]',./=\\-;", '~!@#$%^&*(){}"<>?+|_:'))


class Modifier(Enum):
    SHIFT = "shift"
    SYM = "sym"
    CUR = "cur"


@dataclass(frozen=True)
class Location:
    row: int
    col: int
    modifier: Modifier | None = None


def shifted(ch: str) -> str:
    return _SHIFTED.get(ch, ch.upper())


@dataclass(frozen=True)
class Layout:
    name: str
    base: tuple[str, ...]
    sym: tuple[str, ...] = ()
    cur: tuple[str, ...] = ()

    def locate(self, ch: str) -> Location | None:
        """Where ``ch`` sits on the board, checking base, sym, cur then shift."""
        if ch == BLANK:
            return None
        found = _find(self.base, ch)
        if found:
            return Location(*found)
        found = _find(self.sym, ch)
        if found:
            return Location(*found, Modifier.SYM)
        found = _find(self.cur, ch)
        if found:
            row, col = found
            return Location(row, col + CUR_COLUMN_OFFSET, Modifier.CUR)
        for row_i, row in enumerate(self.base):
            for col_i, key in enumerate(row):
                if key != BLANK and shifted(key) == ch:
                    return Location(row_i, col_i, Modifier.SHIFT)
        return None

    @property
    def width(self) -> int:
        return max(len(row) for row in self.base)


def _find(layer: tuple[str, ...], ch: str) -> tuple[int, int] | None:
    for row_i, row in enumerate(layer):
        col_i = row.find(ch)
        if col_i >= 0:
            return row_i, col_i
    return None


QWERTY = Layout(
    name="QWERTY",
    base=(
        "`1234567890[]\0",
        "\0qwertyuiop[]\\",
        "\0asdfghjkl;'\0\0",
        "\0zxcvbnm,./\0\0\0",
    ),
)

DVORAK = Layout(
    name="Dvorak",
    base=(
        "`1234567890[]\0",
        "\0',.pyfgcr/=\\\0",
        "\0aoeuidhtns-\0\0",
        "\0;qjkxbmwvz\0\0\0",
    ),
)

THREE_L = Layout(
    name="3l",
    base=(
        "qfuyzxkcwb",
        "oheaidrtns",
        ",m.j;glpv\0",
    ),
    sym=(
        '"_[]^!<>=&',
        "/-{}*?()':",
        "#$|~`+%\\@",
    ),
    cur=(
        "\x00123",
        "\x00456",
        "0789",
    ),
)

LAYOUTS = {"qwerty": QWERTY, "dvorak": DVORAK, "3l": THREE_L}
_CYCLE = (QWERTY, DVORAK, THREE_L)


def next_layout(layout: Layout) -> Layout:
    return _CYCLE[(_CYCLE.index(layout) + 1) % len(_CYCLE)]
