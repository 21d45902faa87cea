from __future__ import annotations

import argparse
import datetime as dt
import logging
from pathlib import Path
import sys
import time

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Static
from rich.console import Console, Group
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from classifier import BACKSPACE, Verdict, classify
from corpus import RETURN_GLYPH, CorpusError, load_text
from layouts import LAYOUTS, QWERTY, Layout, Location, Modifier, next_layout
from metrics import Snapshot, snapshot
from progress import PersistError, ProgressStore, default_progress_path
from session import Mark, SessionState
from stats import STATS_DIR, SessionRecord, StatsStore


logger = logging.getLogger(__name__)

LOG_FILE = STATS_DIR / "typing-drill.log"
IDLE_PAUSE_S = 10.0
KEY_WIDTH = 3


def render_window(state: SessionState, width: int) -> Text:
    """One line of text around the cursor: typed, current, upcoming."""
    text = state.target.text
    cursor = state.cursor
    span = max(width // 3, 1)
    start = max(cursor - span, 0)
    prefix = text[start:cursor]
    rendered = Text(no_wrap=True)
    rendered.append(prefix, style="grey50")
    if state.is_complete():
        return rendered

    current = text[cursor]
    outcome = state.outcome_at(cursor)
    if outcome.mark is Mark.INCORRECT:
        style = "bold white on dark_red"
    elif outcome.mark is Mark.CORRECTED:
        style = "bold black on yellow"
    else:
        style = "bold underline white"
    rendered.append(current, style=style)
    rest = max(2 * span - len(prefix), 0)
    rendered.append(text[cursor + 1:cursor + 1 + rest], style="grey70")
    return rendered


def render_keyboard(layout: Layout, location: Location | None) -> Text:
    rendered = Text(no_wrap=True)
    for row_i, row in enumerate(layout.base):
        for col_i, key in enumerate(row):
            label = "" if key == "\0" else key
            hit = location is not None and location.row == row_i and location.col == col_i
            style = "bold black on green" if hit else "bold white on rgb(48,72,144)"
            rendered.append(label.center(KEY_WIDTH), style=style)
            rendered.append(" ")
        rendered.append("\n")
    for modifier in Modifier:
        hit = location is not None and location.modifier is modifier
        style = "bold black on green" if hit else "bold white on rgb(48,72,144)"
        rendered.append(f" {modifier.value} ", style=style)
        rendered.append(" ")
    return rendered


def describe(snap: Snapshot, state: SessionState) -> str:
    accuracy = "--" if snap.accuracy is None else f"{snap.accuracy * 100.0:.1f}%"
    speed = "--" if snap.speed is None else f"{snap.speed:.0f} {snap.speed_unit} ({snap.wpm:.1f} wpm)"
    minutes, seconds = divmod(int(snap.elapsed), 60)
    line, col = state.target.line_col(state.cursor)
    paused = "  [paused]" if state.started_at and not state.running and not state.is_complete() else ""
    return (
        f"Accuracy: {accuracy}  Speed: {speed}  Time: {minutes}:{seconds:02d}  "
        f"Line {line + 1}, col {col + 1}  {snap.completed}/{len(state.target)}{paused}"
    )


class SummaryScreen(Screen):
    BINDINGS = [("escape", "app.quit_drill", "Quit"), ("enter", "back", "Back")]

    def __init__(self, record: SessionRecord, history: list[dict]) -> None:
        super().__init__()
        self.record = record
        self.history = history

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="summary"):
            yield Static("Text complete", id="summary-title")
            yield Static(f"Speed: {self.record.speed:.0f} chars/min ({self.record.wpm:.1f} wpm)", id="summary-speed")
            yield Static(f"Accuracy: {self.record.accuracy * 100.0:.1f}%", id="summary-accuracy")
            yield Static(f"Errors: {self.record.errors}", id="summary-errors")
            yield Static(f"Duration: {self.record.duration_s:.1f}s", id="summary-duration")
            yield Static(self._history_table(), id="summary-history")
        yield Footer()

    def _history_table(self) -> Group:
        table = Table(show_header=True, box=None, show_edge=False, pad_edge=False)
        table.add_column("Finished", width=20, no_wrap=True)
        table.add_column("WPM", justify="right", width=6, no_wrap=True)
        table.add_column("Accuracy", justify="right", width=10, no_wrap=True)
        runs = [s for s in self.history if isinstance(s, dict)]
        for session in sorted(runs, key=lambda s: str(s.get("ended_at", "")), reverse=True):
            ended = str(session.get("ended_at", ""))
            try:
                ended = dt.datetime.fromisoformat(ended).astimezone().strftime("%Y-%m-%d %H:%M")
            except ValueError:
                pass
            table.add_row(ended, f"{session.get('wpm', 0.0):.1f}", f"{session.get('accuracy', 0.0) * 100.0:.1f}%")
        return Group(f"Runs of this text: {len(runs)}", table)

    def action_back(self) -> None:
        self.app.pop_screen()


class DrillApp(App):
    CSS = """
    #drill, #summary {
        padding: 1 2;
    }

    #story {
        height: 3;
        border: round $primary;
        content-align: center middle;
    }

    #metrics {
        height: auto;
        margin: 1 0;
        color: $text-muted;
    }

    #keyboard {
        border: round $secondary;
        padding: 1;
        content-align: center middle;
    }

    #summary-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    TITLE = "Typing Drill"
    BINDINGS = [
        ("escape", "quit_drill", "Quit"),
        ("ctrl+n", "next_layout", "Next layout"),
        ("ctrl+t", "toggle_hints", "Toggle hints"),
        Binding("tab", "type_tab", "Tab", show=False, priority=True),
    ]

    def __init__(
        self,
        state: SessionState,
        source: str,
        layout: Layout = QWERTY,
        hints: bool = True,
        stats_store: StatsStore | None = None,
    ) -> None:
        super().__init__()
        self.state = state
        self.source = source
        self.keyboard_layout = layout
        self.hints = hints
        self.stats_store = stats_store or StatsStore()
        self._last_input = time.monotonic()

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="drill"):
            self._story = Static("", id="story")
            self._metrics = Static("", id="metrics")
            self._keyboard = Static("", id="keyboard")
            yield self._story
            yield self._metrics
            yield self._keyboard
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = self.source
        self.set_interval(1.0, self._tick)
        self._refresh_views()

    def on_key(self, event: events.Key) -> None:
        if event.key == "backspace":
            key = BACKSPACE
        elif event.key == "enter":
            key = RETURN_GLYPH
        elif event.is_printable and event.character:
            key = event.character
        else:
            return
        event.stop()
        self._type(key)

    def action_type_tab(self) -> None:
        self._type("\t")

    def _type(self, key: str) -> None:
        self._last_input = time.monotonic()
        verdict = classify(self.state, key)
        if verdict is Verdict.CORRECT and self.state.is_complete():
            self._finish()
        self._refresh_views()

    def on_app_blur(self, event: events.AppBlur) -> None:
        self.state.pause()
        self._refresh_views()

    def _tick(self) -> None:
        if self.state.running and time.monotonic() - self._last_input > IDLE_PAUSE_S:
            logger.debug("pausing after %.0fs idle", IDLE_PAUSE_S)
            self.state.pause()
        self._refresh_views()

    def _finish(self) -> None:
        record = SessionRecord.from_session(self.state, snapshot(self.state), self.source)
        try:
            self.stats_store.append_session(record)
        except OSError as exc:
            logger.warning("could not record session history: %s", exc)
        history = self.stats_store.sessions_for(record.fingerprint)
        self.push_screen(SummaryScreen(record, history))

    def _refresh_views(self) -> None:
        width = self._story.size.width or 60
        self._story.update(render_window(self.state, width))
        self._metrics.update(describe(snapshot(self.state), self.state))
        keyboard = self._keyboard
        keyboard.display = self.hints
        if self.hints:
            current = self.state.current_char()
            location = self.keyboard_layout.locate(current) if current else None
            keyboard.border_title = f"Layout - {self.keyboard_layout.name}"
            keyboard.update(render_keyboard(self.keyboard_layout, location))

    def action_next_layout(self) -> None:
        self.keyboard_layout = next_layout(self.keyboard_layout)
        logger.info("switched to %s layout", self.keyboard_layout.name)
        self._refresh_views()

    def action_toggle_hints(self) -> None:
        self.hints = not self.hints
        self._refresh_views()

    def action_quit_drill(self) -> None:
        self.state.pause()
        self.exit()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typing-drill",
        description="Type a text file character by character and resume where you left off.",
    )
    parser.add_argument("story", type=Path, help="plain text file to practice on")
    parser.add_argument(
        "--progress",
        type=Path,
        default=None,
        help="progress file to read and write (default: <story>.progress.json)",
    )
    parser.add_argument("--layout", choices=sorted(LAYOUTS), default="qwerty", help="keyboard layout for hints")
    parser.add_argument("--no-hints", action="store_true", help="start with the keyboard hints hidden")
    parser.add_argument("--log-file", type=Path, default=LOG_FILE, help=f"log destination (default: {LOG_FILE})")
    parser.add_argument("--verbose", action="store_true", help="log debug messages")
    return parser


def setup_logging(log_file: Path, verbose: bool = False) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.FileHandler(log_file, encoding="utf-8")],
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console(stderr=True)
    try:
        setup_logging(args.log_file, args.verbose)
    except OSError as exc:
        console.print(f"[yellow]Logging disabled:[/] {escape(str(exc))}")

    try:
        target = load_text(args.story)
    except CorpusError as exc:
        logger.error("%s", exc)
        console.print(f"[bold red]Error:[/] {escape(str(exc))}")
        return 1

    store = ProgressStore(args.progress or default_progress_path(args.story))
    state = store.load(target) or SessionState(target)
    drill = DrillApp(state, str(args.story), layout=LAYOUTS[args.layout], hints=not args.no_hints)
    drill.run()
    if drill.return_code:
        logger.error("session ended abnormally (return code %s); progress not saved", drill.return_code)
        console.print("[bold red]Session crashed; progress from this run was not saved.[/]")
        return drill.return_code

    try:
        store.save(state)
    except PersistError as exc:
        logger.error("%s", exc)
        console.print(f"[bold red]Progress not saved:[/] {escape(str(exc))}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
