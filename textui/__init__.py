"""TextUI - Textual-based terminal UI for CaseFile."""

import threading
from typing import Callable, List, Optional

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Header, Footer, Static, RichLog, ProgressBar, Label
from textual.binding import Binding

from casefile import CaseFile, __version__
from workflows import (
    CaseState,
    ConfirmAllReviews,
    Workspace,
    compute_analysis_stats,
    has_pending_review,
    is_combined_complete,
    needs_review,
    run_local_analysis,
    REVIEWED,
)
from workflows.evidence import combined_members, linked_group

STATUS_COLORS = {
    "synced": "green",
    "partial": "yellow",
    "outdated": "red",
    "analyzing": "blue",
    "empty": "dim",
}


def format_groups(state: CaseState) -> List[str]:
    """Rich-markup lines describing every group and its files."""
    lines: List[str] = []
    for group in state.groups:
        if group.is_sink:
            badge = "[dim]unclassified[/dim]"
        elif group.status == REVIEWED:
            badge = "[green]reviewed[/green]"
        elif needs_review(group):
            badge = "[yellow]needs review[/yellow]"
        else:
            badge = "[dim]pending[/dim]"
        changed = " [yellow]*[/yellow]" if group.has_changes else ""
        lines.append(f"[bold]{escape(group.title)}[/bold] {badge}{changed} "
                     f"({len(group.active_files)} files, {group.page_count} pages)")
        for f in group.files:
            marks = ""
            if f.is_new:
                marks += " [cyan]new[/cyan]"
            if f.is_removed:
                marks += " [red]removed[/red]"
            if f.is_analyzed:
                marks += " [green]analyzed[/green]"
            lines.append(f"  {escape(f.name)} [dim]{f.pages}p {f.display_size}[/dim]{marks}")
    return lines


def format_evidence(state: CaseState) -> List[str]:
    """Rich-markup lines for checklist slots and combined groups."""
    lines: List[str] = []
    for ev in state.evidence:
        mark = "[green]✓[/green]" if ev.is_uploaded else "[red]✗[/red]"
        required = "" if ev.is_mandatory else " [dim](optional)[/dim]"
        group = linked_group(state, ev)
        target = f" → {escape(group.title)}" if group else ""
        lines.append(f"{mark} {escape(ev.name)}{required}{target}")
    for combined in state.combined:
        complete = is_combined_complete(state, combined)
        mark = "[green]✓[/green]" if complete else "[red]✗[/red]"
        attention = " [yellow]pending review[/yellow]" if has_pending_review(state, combined) else ""
        members = combined_members(state, combined)
        uploaded = sum(1 for ev in members if ev.is_uploaded)
        lines.append(f"{mark} {escape(combined.name)} [dim]({combined.relationship}, "
                     f"{uploaded}/{len(members)})[/dim]{attention}")
    return lines


def format_case(state: CaseState) -> str:
    """Full left-panel text for a snapshot."""
    stats = compute_analysis_stats(state)
    color = STATUS_COLORS.get(stats.status, "white")
    lines = [f"Analysis: [{color}]{stats.status}[/{color}] "
             f"[dim]({stats.total_analyzed}/{stats.total_ready} ready analyzed, "
             f"{stats.pending_review} pending review)[/dim]", ""]
    lines.extend(format_groups(state))
    evidence_lines = format_evidence(state)
    if evidence_lines:
        lines.extend(["", "[bold]Evidence[/bold]"])
        lines.extend(evidence_lines)
    return "\n".join(lines)


class HeaderInfo(Static):
    """Header widget showing the upload manifest and checklist."""

    def __init__(self, source: str = "", checklist: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self.source = source
        self.checklist = checklist

    def compose(self) -> ComposeResult:
        yield Static(f"Uploads: {self.source}", id="source-line")
        yield Static(f"Checklist: {self.checklist}", id="checklist-line")


class CaseFileApp(App):
    """Textual app for CaseFile with groups, filings and activity panels."""

    CSS = """
    Screen {
        layout: grid;
        grid-size: 1;
        grid-rows: auto 1fr auto;
    }

    #header-info {
        height: auto;
        padding: 0 1;
        background: $surface;
        border-bottom: solid $primary;
    }

    #main-content {
        height: 1fr;
    }

    #groups-panel {
        width: 2fr;
        border-right: solid $primary;
    }

    #filings-panel {
        width: 1fr;
        border-right: solid $primary;
    }

    #activity-panel {
        width: 1fr;
    }

    .panel-title {
        height: 1;
        background: $primary;
        color: $text;
        text-align: center;
        text-style: bold;
    }

    .log-panel {
        height: 1fr;
    }

    #footer-bar {
        height: 3;
        padding: 0 1;
        background: $surface;
        border-top: solid $primary;
    }

    #progress-container {
        height: 1;
        margin-top: 1;
    }

    #progress-bar {
        width: 1fr;
    }

    #progress-label {
        width: auto;
        min-width: 15;
        text-align: right;
        margin-left: 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit"),
        Binding("r", "confirm_all", "Confirm all"),
        Binding("a", "analyze", "Analyze"),
    ]

    def __init__(self, workspace: Workspace, source: str = "", checklist: str = "",
                 process_func: Optional[Callable[[], None]] = None) -> None:
        super().__init__()
        self.workspace = workspace
        self.source = source
        self.checklist = checklist
        self._process_func = process_func
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._ui_thread: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield HeaderInfo(self.source, self.checklist, id="header-info")

        with Horizontal(id="main-content"):
            with Vertical(id="groups-panel"):
                yield Static("DOCUMENT GROUPS", classes="panel-title")
                with VerticalScroll(classes="log-panel"):
                    yield Static("", id="groups-view")

            with Vertical(id="filings-panel"):
                yield Static("RECENT FILINGS", classes="panel-title")
                yield RichLog(id="filing-log", classes="log-panel", highlight=True, markup=True)

            with Vertical(id="activity-panel"):
                yield Static("ACTIVITY LOG", classes="panel-title")
                yield RichLog(id="activity-log", classes="log-panel", highlight=True, markup=True)

        with Horizontal(id="footer-bar"):
            with Horizontal(id="progress-container"):
                yield ProgressBar(id="progress-bar", total=100, show_eta=False)
                yield Label("analysis idle", id="progress-label")

        yield Footer()

    def on_mount(self) -> None:
        """Wire up CaseFile UI references and workspace change notifications."""
        self.title = f"CaseFile v{__version__}"
        self.theme = "textual-light"
        self._ui_thread = threading.get_ident()

        CaseFile.set_app(self)
        self._unsubscribe = self.workspace.subscribe(self._on_change)
        self.show_state(self.workspace.snapshot)

        if self._process_func:
            self._run_in_background(self._process_func)

    def on_unmount(self) -> None:
        """Clear CaseFile UI references and stop listening to the workspace."""
        if self._unsubscribe:
            self._unsubscribe()
        CaseFile.set_app(None)

    def _run_in_background(self, func: Callable[[], None]) -> None:
        thread = threading.Thread(target=func, daemon=True)
        thread.start()

    def _on_change(self, state: CaseState) -> None:
        if threading.get_ident() == self._ui_thread:
            self.show_state(state)
        else:
            self.call_from_thread(self.show_state, state)

    def show_state(self, state: CaseState) -> None:
        """Redraw the groups panel and analysis status for a snapshot."""
        self.query_one("#groups-view", Static).update(format_case(state))
        if not state.analysis.is_analyzing:
            self.query_one("#progress-label", Label).update(
                f"analysis {compute_analysis_stats(state).status}"
            )

    def add_summary(self, line1: str, line2: str) -> None:
        """Add a filing entry to the filings log."""
        log = self.query_one("#filing-log", RichLog)
        log.write(f"{line1}\n{line2}\n")

    def add_activity(self, message: str) -> None:
        """Add a message to the activity log."""
        log = self.query_one("#activity-log", RichLog)
        log.write(message)

    def set_progress(self, percent: int) -> None:
        """Update the progress bar."""
        bar = self.query_one("#progress-bar", ProgressBar)
        bar.update(total=100, progress=percent)
        self.query_one("#progress-label", Label).update(f"analyzing {percent}%")

    def action_confirm_all(self) -> None:
        """Confirm every group's review."""
        def confirm() -> None:
            if self.workspace.dispatch(ConfirmAllReviews()):
                CaseFile.print_right("[green]All groups confirmed[/green]")
        self._run_in_background(confirm)

    def action_analyze(self) -> None:
        """Run an analysis over the ready documents."""
        def analyze() -> None:
            if not run_local_analysis(self.workspace):
                CaseFile.print_right("[yellow]Nothing ready to analyze[/yellow]")
        self._run_in_background(analyze)
