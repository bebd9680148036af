"""Deck - a TUI for indexing projects and trying searches interactively."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.widgets import (
    Button,
    DataTable,
    DirectoryTree,
    Footer,
    Header,
    Input,
    Label,
    Log,
    Rule,
    Static,
)

from codecontext.config import Settings
from codecontext.handlers import ToolHandlers
from codecontext.indexing import FileOutcome, FileStatus


@dataclass
class RunStats:
    """Statistics tracked during an indexing run."""

    files_seen: int = 0
    files_indexed: int = 0
    files_unchanged: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    chunks: int = 0
    total_bytes: int = 0
    current_file: str = ""
    status: str = "idle"
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def elapsed(self) -> str:
        if not self.start_time:
            return "00:00"
        end = self.end_time or datetime.now()
        minutes, seconds = divmod(int((end - self.start_time).total_seconds()), 60)
        return f"{minutes:02d}:{seconds:02d}"

    def record(self, outcome: FileOutcome) -> None:
        self.files_seen += 1
        self.total_bytes += outcome.size_bytes
        self.current_file = outcome.path
        if outcome.status is FileStatus.INDEXED:
            self.files_indexed += 1
            self.chunks += outcome.chunks
        elif outcome.status is FileStatus.UNCHANGED:
            self.files_unchanged += 1
        elif outcome.status is FileStatus.FAILED:
            self.files_failed += 1
        else:
            self.files_skipped += 1


class StatsPanel(Static):
    """Live statistics for the current run."""

    def compose(self) -> ComposeResult:
        yield Static(id="stats-content")

    def on_mount(self) -> None:
        self.update_display(RunStats())

    def update_display(self, stats: RunStats) -> None:
        status_color = {
            "idle": "dim",
            "running": "green",
            "complete": "cyan",
            "error": "red",
        }.get(stats.status, "white")

        self.query_one("#stats-content", Static).update(f"""[b]STATUS[/b]  [{status_color}]{stats.status.upper()}[/]

[b]TIME[/b]    {stats.elapsed}

[b]FILES[/b]
  Seen        [cyan]{stats.files_seen:,}[/]
  Indexed     [green]{stats.files_indexed:,}[/]
  Unchanged   [blue]{stats.files_unchanged:,}[/]
  Skipped     [dim]{stats.files_skipped:,}[/]
  Failed      [red]{stats.files_failed:,}[/]

[b]CHUNKS[/b]    [magenta]{stats.chunks:,}[/]
[b]SIZE[/b]      [cyan]{stats.total_bytes / 1024:.1f} KB[/]""")


class FileLogTable(DataTable):
    """Per-file outcomes of the current run."""

    STATUS_STYLES = {
        FileStatus.INDEXED: "[green]indexed[/]",
        FileStatus.UNCHANGED: "[blue]unchanged[/]",
        FileStatus.SKIPPED: "[dim]skipped[/]",
        FileStatus.FAILED: "[red]failed[/]",
    }

    def on_mount(self) -> None:
        self.add_columns("File", "Status", "Chunks", "Size")
        self.cursor_type = "row"

    def add_outcome(self, outcome: FileOutcome) -> None:
        status = self.STATUS_STYLES[outcome.status]
        if outcome.reason is not None:
            status += f" [dim]({outcome.reason.value})[/]"
        size = outcome.size_bytes
        size_str = f"{size / 1024:.1f}KB" if size >= 1024 else f"{size}B"
        name = Path(outcome.path).name
        if len(name) > 30:
            name = name[:27] + "..."
        self.add_row(name, status, str(outcome.chunks or "--"), size_str)
        self.scroll_end()


class ProjectTable(DataTable):
    """Projects currently held by the registry."""

    def on_mount(self) -> None:
        self.add_columns("Project", "Files", "Chunks")
        self.cursor_type = "row"

    def refresh_projects(self, handlers: ToolHandlers) -> None:
        self.clear()
        for project_root in handlers.registry.get_all_roots():
            root = handlers.registry.get_root(project_root)
            if root is not None:
                self.add_row(
                    Path(project_root).name, str(len(root.files)), str(root.chunk_count)
                )


class Deck(App):
    """The Code Context Deck."""

    class FileIndexed(Message):
        def __init__(self, outcome: FileOutcome) -> None:
            self.outcome = outcome
            super().__init__()

    CSS = """
    #main-container {
        layout: horizontal;
        height: 100%;
    }

    #left-panel {
        width: 38;
        background: $surface-darken-1;
        border-right: solid $primary-darken-2;
        padding: 1;
    }

    #center-panel {
        width: 1fr;
        padding: 1;
    }

    #right-panel {
        width: 34;
        background: $surface-darken-1;
        border-left: solid $primary-darken-2;
        padding: 1;
    }

    StatsPanel {
        height: auto;
        padding: 1;
        background: $surface-darken-2;
        border: round $primary;
        margin-bottom: 1;
    }

    #action-buttons {
        layout: horizontal;
        height: 3;
        margin-bottom: 1;
    }

    #action-buttons Button {
        margin-right: 1;
    }

    FileLogTable {
        height: 1fr;
        border: round $primary-darken-1;
    }

    ProjectTable {
        height: 12;
        border: round $accent;
    }

    #log-panel {
        height: 14;
        border: round $primary-darken-2;
        background: $surface-darken-2;
    }

    .section-title {
        text-style: bold;
        margin-bottom: 1;
    }

    DirectoryTree {
        height: 1fr;
        border: round $primary-darken-1;
        background: $surface-darken-2;
    }
    """

    BINDINGS = [
        Binding("i", "index", "Index", show=True),
        Binding("r", "refresh_index", "Refresh", show=True),
        Binding("f", "force_index", "Force index", show=True),
        Binding("s", "search", "Search", show=True),
        Binding("c", "clear", "Clear log", show=True),
        Binding("q", "quit", "Quit", show=True),
        Binding("d", "toggle_dark", "Toggle Dark Mode"),
    ]

    TITLE = "Code Context Deck"
    SUB_TITLE = "Index & Search Console"

    def __init__(self, handlers: ToolHandlers) -> None:
        super().__init__()
        self.handlers = handlers
        self.stats = RunStats()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Container(id="main-container"):
            with Vertical(id="left-panel"):
                yield Label("RUN", classes="section-title")
                yield StatsPanel()
                yield Label("Project Path")
                yield Input(placeholder="Project directory...", id="path-input")
                yield Label("Query")
                yield Input(placeholder="What are you looking for?", id="query-input")
                with Horizontal(id="action-buttons"):
                    yield Button("INDEX", id="index-btn", variant="success")
                    yield Button("Search", id="search-btn", variant="primary")
                yield Rule()
                yield Label("PROJECTS", classes="section-title")
                yield ProjectTable(id="projects")

            with Vertical(id="center-panel"):
                yield Label("FILES", classes="section-title")
                yield FileLogTable(id="file-log")
                yield Rule()
                yield Label("LOG", classes="section-title")
                yield Log(id="log-panel", highlight=True, auto_scroll=True)

            with Vertical(id="right-panel"):
                yield Label("FILE BROWSER", classes="section-title")
                yield DirectoryTree(Path.cwd(), id="dir-tree")

        yield Footer()

    async def on_mount(self) -> None:
        await self.handlers.startup()
        self.query_one(ProjectTable).refresh_projects(self.handlers)
        self._log(f"Registry: {self.handlers.registry.snapshot_path}")
        self._log("Enter a project path and press INDEX, or a query and press Search")

    async def on_unmount(self) -> None:
        await self.handlers.aclose()

    def _log(self, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.query_one("#log-panel", Log).write_line(f"[{timestamp}] {message}")

    def on_deck_file_indexed(self, event: FileIndexed) -> None:
        self.stats.record(event.outcome)
        self.query_one(StatsPanel).update_display(self.stats)
        self.query_one("#file-log", FileLogTable).add_outcome(event.outcome)

    def on_directory_tree_directory_selected(
        self, event: DirectoryTree.DirectorySelected
    ) -> None:
        self.query_one("#path-input", Input).value = str(event.path)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "index-btn":
            self.action_index()
        elif event.button.id == "search-btn":
            self.action_search()

    def action_clear(self) -> None:
        self.stats = RunStats()
        self.query_one(StatsPanel).update_display(self.stats)
        self.query_one("#file-log", FileLogTable).clear()
        self.query_one("#log-panel", Log).clear()
        self._log("Cleared - ready for new run")

    def action_index(self) -> None:
        self._start_index(force=False)

    def action_refresh_index(self) -> None:
        self._start_index(force=False, refresh=True)

    def action_force_index(self) -> None:
        self._start_index(force=True)

    def _start_index(self, force: bool, refresh: bool = False) -> None:
        path = self.query_one("#path-input", Input).value.strip()
        if not path:
            self._log("ERROR: No project path specified")
            return
        self.run_index(path, force, refresh)

    def action_search(self) -> None:
        query = self.query_one("#query-input", Input).value.strip()
        if not query:
            self._log("ERROR: No query specified")
            return
        path = self.query_one("#path-input", Input).value.strip() or "all"
        self.run_search(path, query)

    @work(exclusive=True, group="engine")
    async def run_index(self, path: str, force: bool, refresh: bool) -> None:
        """Run an indexing pass, streaming per-file outcomes into the UI."""
        self.stats = RunStats(status="running", start_time=datetime.now())
        self.query_one(StatsPanel).update_display(self.stats)
        mode = " (force)" if force else " (refresh)" if refresh else ""
        self._log(f"Indexing {path}{mode}")

        result = await self.handlers.index_codebase(
            path,
            force=force,
            refresh=refresh,
            on_file=lambda outcome: self.post_message(self.FileIndexed(outcome)),
        )

        self.stats = replace(
            self.stats,
            status="error" if result.is_error else "complete",
            current_file="",
            end_time=datetime.now(),
        )
        self.query_one(StatsPanel).update_display(self.stats)
        for line in result.text.splitlines():
            self._log(line)
        self.query_one(ProjectTable).refresh_projects(self.handlers)

    @work(exclusive=True, group="search")
    async def run_search(self, path: str, query: str) -> None:
        self._log(f"Searching {path} for: {query}")
        result = await self.handlers.search_code(path, query, cross_project=path == "all")
        for line in result.text.splitlines():
            self._log(line)


def main(settings: Settings | None = None) -> None:
    """Run the Deck TUI."""
    handlers = ToolHandlers.from_settings(settings or Settings.from_env())
    Deck(handlers).run()


if __name__ == "__main__":
    main()
