"""
Log Viewer Components Module - UI widgets and panels

Handles:
- Search controls (plain text / regex) with inline pattern errors
- Level and source filter controls
- Stream, reload, export and navigation actions
- Per level statistics panel
- Status line (visible lines, stream state, service process)
"""
from typing import Optional

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.widgets import Button, Checkbox, Input, Label, Select, Static

from AMC.sysmon.process_handling import ServiceStatus

from .log_parser import LogLevel
from .log_stats import LogStatistics
from .stream_controller import StreamState

LEVEL_OPTIONS = [
    ("All levels", "all"),
    ("DEBUG", LogLevel.DEBUG.value),
    ("INFO", LogLevel.INFO.value),
    ("WARN", LogLevel.WARN.value),
    ("ERROR", LogLevel.ERROR.value),
]

BAR_WIDTH = 20


class LogSearchPanel(Vertical):
    """Search controls for the log viewer"""

    def compose(self) -> ComposeResult:
        """Compose the search panel"""
        with Horizontal(classes="control-row"):
            yield Label("[bold]Search:[/bold]", classes="control-label")
            yield Input(placeholder="Search logs...", id="log-search-input")
            yield Checkbox("Regex", id="regex-checkbox")
            yield Button("Clear", id="clear-search-btn", variant="default")
        yield Static("", id="regex-error", classes="error-text")

    def on_mount(self) -> None:
        self.query_one("#regex-error", Static).display = False

    def show_error(self, message: Optional[str]) -> None:
        """
        Show or hide the invalid pattern message

        Args:
            message: Text to show, None hides the message
        """
        error = self.query_one("#regex-error", Static)
        error.update(message or "")
        error.display = message is not None


class LogFilterPanel(Horizontal):
    """Log level and source filtering controls"""

    def compose(self) -> ComposeResult:
        """Compose the filter panel"""
        yield Label("[bold]Level:[/bold]", classes="control-label")
        yield Select(LEVEL_OPTIONS, value="all", allow_blank=False, id="log-level-select")
        yield Label("[bold]Source:[/bold]", classes="control-label")
        yield Input(placeholder="module prefix...", id="log-source-input")
        yield Button("Reset Filters", id="reset-filters-btn", variant="default")


class LogControlPanel(Horizontal):
    """Stream toggle and view actions"""

    stream_state: reactive[StreamState] = reactive(StreamState.STOPPED)

    def compose(self) -> ComposeResult:
        """Compose the control panel"""
        yield Button("▶ Start", id="stream-toggle-btn", variant="success")
        yield Button("⟳ Reload", id="reload-logs-btn", variant="primary")
        yield Button("Statistics", id="stats-toggle-btn", variant="default")
        yield Button("💾 Export", id="export-logs-btn", variant="default")
        yield Button("⬆ Top", id="jump-top-btn", variant="default")
        yield Button("⬇ Bottom", id="jump-bottom-btn", variant="default")

    def watch_stream_state(self, state: StreamState) -> None:
        """Reflect the stream state on the toggle button"""
        button = self.query_one("#stream-toggle-btn", Button)
        if state == StreamState.STREAMING:
            button.label = "■ Stop"
            button.variant = "error"
            button.disabled = False
        elif state in (StreamState.STARTING, StreamState.STOP_PENDING):
            button.label = "… Starting" if state == StreamState.STARTING else "… Stopping"
            button.disabled = True
        else:
            button.label = "▶ Start"
            button.variant = "success"
            button.disabled = False


class LogStatsPanel(Vertical):
    """Display per level statistics of the filtered view"""

    statistics: reactive[LogStatistics] = reactive(LogStatistics, always_update=True)

    def compose(self) -> ComposeResult:
        """Compose the stats panel"""
        yield Label("[bold]Log Statistics[/bold]", classes="panel-title")
        yield Static(self._format_stats(), id="stats-content")

    def _format_stats(self) -> str:
        """Format statistics for display"""
        stats = self.statistics
        rows = [f"Total: {stats.total}"]
        for level in (LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR, LogLevel.UNKNOWN):
            percent = stats.percent(level)
            filled = round(percent / 100 * BAR_WIDTH)
            bar = "█" * filled + "░" * (BAR_WIDTH - filled)
            rows.append(
                f"[{level.color}]{level.label:<8}[/] {stats.count(level):>6} "
                f"[{level.color}]{bar}[/] {percent:5.1f}%"
            )
        return "\n".join(rows)

    def watch_statistics(self, value: LogStatistics) -> None:
        """Update display when statistics change"""
        try:
            self.query_one("#stats-content", Static).update(self._format_stats())
        except NoMatches:
            # Not composed yet
            pass


class LogStatusBar(Static):
    """One line summary under the log list"""

    visible_count: reactive[int] = reactive(0)
    total_count: reactive[int] = reactive(0)
    stream_state: reactive[StreamState] = reactive(StreamState.STOPPED)
    service: reactive[Optional[ServiceStatus]] = reactive(None)
    missed_batches: reactive[int] = reactive(0)

    def render(self) -> Text:
        parts = [f"Showing {self.visible_count} of {self.total_count} lines"]
        if self.stream_state == StreamState.STREAMING:
            parts.append("[green]● Live[/green]")
        else:
            parts.append(f"Stream: {self.stream_state.value.replace('_', ' ')}")
        if self.service is not None:
            parts.append(f"Service: {self.service.describe()}")
        if self.missed_batches:
            parts.append(f"[yellow]Missed batches: {self.missed_batches}[/yellow]")
        return Text.from_markup(" | ".join(parts))
