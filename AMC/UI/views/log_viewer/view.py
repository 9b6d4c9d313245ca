"""
Log Viewer View Module - Main UI orchestration

Handles:
- Main view composition and layout
- Initial history load and stream reconciliation on mount
- Live lines from the stream service (thread safe message hand-off)
- Debounced search and filter coordination
- Statistics, export and service status
- Event handlers for all UI interactions
"""
import logging
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.css.query import NoMatches
from textual.message import Message
from textual.timer import Timer
from textual.widgets import Button, Checkbox, Input, Label, Select

from AMC.config import Settings
from AMC.errors import ExportFailed
from AMC.log_analysis.notification import Notification
from AMC.sysmon.log_stream import LogStreamBackend
from AMC.sysmon.process_handling import ServiceProbe, ServiceStatus

from .components import (
    LogControlPanel,
    LogFilterPanel,
    LogSearchPanel,
    LogStatsPanel,
    LogStatusBar,
)
from .log_buffer import LogBuffer
from .log_export import export_lines
from .log_filter import FilteredView, FilterState, filter_lines
from .log_parser import LogLine
from .log_stats import RunningStatistics
from .log_table import LogListView
from .stream_controller import StreamController, StreamState

SERVICE_STATUS_INTERVAL = 5.0


class LogViewerView(Vertical):
    """
    Live log monitor for the managed service

    Features:
    - Initial load of the most recent lines, optional live tailing
    - Stream state survives remounts and restarts (persisted intent)
    - Search (plain/regex), level and source filters
    - Per level statistics of the filtered view
    - Export of the filtered view to a text file
    - Virtualized rendering for long sessions
    """

    class LinesAppended(Message):
        """New lines are waiting in the session buffer"""

    class StreamStateChanged(Message):
        def __init__(self, state: StreamState) -> None:
            super().__init__()
            self.state = state

    def __init__(self, service: LogStreamBackend, store, settings: Settings,
                 probe: Optional[ServiceProbe] = None, **kwargs):
        """
        Initialize the log viewer

        Args:
            service: Log stream service (shared, outlives the view)
            store: Durable key/value store for the stream intent
            settings: Console settings
            probe: Optional lookup of the service process for the status line
        """
        super().__init__(**kwargs)
        self.settings = settings
        self.probe = probe
        self.logger = logging.getLogger(__name__)

        self.buffer = LogBuffer()
        self.controller = StreamController(
            service,
            store,
            self.buffer,
            notifier=self._show_notification,
            timeout=settings.call_timeout,
        )
        self.controller.on_lines = self._lines_arrived
        self.controller.on_state_change = self._state_changed

        # Derived state, rebuilt on filter change, extended on append
        self.filter_state = FilterState()
        self.filtered = FilteredView(self.filter_state)
        self.running_stats = RunningStatistics()
        self._synced_count = 0
        self._synced_generation = self.buffer.generation

        self._search_timer: Optional[Timer] = None
        self._status_timer: Optional[Timer] = None

    def compose(self) -> ComposeResult:
        """Compose the log viewer layout"""
        with Container(id="log-viewer-controls"):
            yield LogSearchPanel(id="log-search-panel")
            yield LogFilterPanel(id="log-filter-panel")
            yield LogControlPanel(id="log-control-panel")

        with Horizontal(id="log-viewer-content"):
            with Vertical(classes="main-panel", id="log-main-panel"):
                yield Label("[bold]Service Logs[/bold]", classes="section-title")
                yield LogListView(id="log-list")
                yield LogStatusBar(id="log-status-bar")

            with Vertical(classes="right-panel", id="log-sidebar"):
                yield LogStatsPanel(id="log-stats-panel")

    def on_mount(self) -> None:
        """Load history, then reconcile the stream state"""
        self.query_one("#log-sidebar").display = False
        self._initialize()
        if self.probe is not None:
            self._refresh_service_status()
            self._status_timer = self.set_interval(SERVICE_STATUS_INTERVAL, self._refresh_service_status)

    def on_unmount(self) -> None:
        """Clean up when view is unmounted"""
        if self._search_timer:
            self._search_timer.stop()
            self._search_timer = None
        if self._status_timer:
            self._status_timer.stop()
            self._status_timer = None

        # Keep the service tailing, the next mount reattaches
        self.controller.on_lines = None
        self.controller.on_state_change = None
        self.controller.detach()

    # Workers

    @work(group="log-stream")
    async def _initialize(self) -> None:
        await self.controller.load_history(self.settings.initial_lines)
        await self.controller.reconcile()

    @work(group="log-stream")
    async def _toggle_stream(self) -> None:
        await self.controller.toggle()

    @work(group="log-stream")
    async def _reload(self) -> None:
        self.query_one("#log-list", LogListView).reset_position()
        loaded = await self.controller.reload(self.settings.initial_lines)
        # An empty history emits no lines, the cleared buffer still has to show
        self._sync_from_buffer()
        if loaded:
            self.notify(f"Reloaded {len(self.buffer)} log lines", severity="information")

    @work(exclusive=True, thread=True, group="service-probe")
    def _refresh_service_status(self) -> None:
        status = self.probe.status()
        self.app.call_from_thread(self._show_service_status, status)

    # Controller callbacks

    def _lines_arrived(self, lines: List[LogLine]) -> None:
        """Called from the stream service's threads"""
        self.post_message(self.LinesAppended())

    def _state_changed(self, state: StreamState) -> None:
        self.post_message(self.StreamStateChanged(state))

    def _show_notification(self, notification: Notification) -> None:
        self.notify(notification.message, severity=notification.severity)

    def _show_service_status(self, status: ServiceStatus) -> None:
        try:
            self.query_one("#log-status-bar", LogStatusBar).service = status
        except NoMatches:
            pass

    @on(LinesAppended)
    def handle_lines_appended(self) -> None:
        self._sync_from_buffer()

    @on(StreamStateChanged)
    def handle_stream_state_changed(self, event: StreamStateChanged) -> None:
        self.query_one("#log-control-panel", LogControlPanel).stream_state = event.state
        self.query_one("#log-status-bar", LogStatusBar).stream_state = event.state

    # Derived view maintenance

    def _sync_from_buffer(self) -> None:
        """Bring the filtered view up to date with the buffer"""
        if self.buffer.generation != self._synced_generation:
            self._rebuild_view()
            return

        new_lines = self.buffer.lines_since(self._synced_count)
        if not new_lines:
            return
        self._synced_count += len(new_lines)

        accepted = self.filtered.extend(new_lines)
        self.running_stats.add(accepted)
        table = self.query_one("#log-list", LogListView)
        table.append_lines(accepted, streaming=self.controller.is_streaming)
        self._update_stats()

    def _rebuild_view(self) -> None:
        """Recompute the filtered view from a buffer snapshot"""
        self._synced_generation = self.buffer.generation
        snapshot = self.buffer.snapshot()
        self._synced_count = len(snapshot)

        self.filtered = filter_lines(snapshot, self.filter_state)
        self.running_stats.reset()
        self.running_stats.add(self.filtered)

        search_panel = self.query_one("#log-search-panel", LogSearchPanel)
        search_panel.show_error(str(self.filtered.error) if self.filtered.error else None)

        table = self.query_one("#log-list", LogListView)
        table.set_lines(self.filtered, streaming=self.controller.is_streaming)
        self._update_stats()

    def _update_stats(self) -> None:
        """Update statistics panel and status line"""
        self.query_one("#log-stats-panel", LogStatsPanel).statistics = self.running_stats.snapshot()

        status = self.query_one("#log-status-bar", LogStatusBar)
        status.visible_count = len(self.filtered)
        status.total_count = self._synced_count
        status.missed_batches = self.controller.missed_batches

    def _read_filter_state(self) -> FilterState:
        return FilterState(
            search=self.query_one("#log-search-input", Input).value,
            use_regex=self.query_one("#regex-checkbox", Checkbox).value,
            level=self.query_one("#log-level-select", Select).value,
            source=self.query_one("#log-source-input", Input).value.strip(),
        )

    def _apply_filters(self) -> None:
        """Apply current search and filter controls"""
        if self._search_timer:
            self._search_timer.stop()
            self._search_timer = None

        state = self._read_filter_state()
        if state == self.filter_state:
            return
        self.filter_state = state
        self._rebuild_view()

    def _schedule_filters(self) -> None:
        if self._search_timer:
            self._search_timer.stop()
        # Debounce - wait after the last keystroke
        self._search_timer = self.set_timer(self.settings.search_debounce, self._apply_filters)

    # Event Handlers

    @on(Input.Changed, "#log-search-input")
    def handle_search_changed(self, event: Input.Changed) -> None:
        """Handle search input changes with debouncing"""
        self._schedule_filters()

    @on(Input.Changed, "#log-source-input")
    def handle_source_changed(self, event: Input.Changed) -> None:
        self._schedule_filters()

    @on(Checkbox.Changed, "#regex-checkbox")
    def handle_regex_changed(self, event: Checkbox.Changed) -> None:
        self._apply_filters()

    @on(Select.Changed, "#log-level-select")
    def handle_level_changed(self, event: Select.Changed) -> None:
        self._apply_filters()

    @on(Button.Pressed, "#clear-search-btn")
    def handle_clear_search(self) -> None:
        """Handle clear search button"""
        self.query_one("#log-search-input", Input).value = ""
        self._apply_filters()

    @on(Button.Pressed, "#reset-filters-btn")
    def handle_reset_filters(self) -> None:
        """Handle reset filters button"""
        self.query_one("#log-search-input", Input).value = ""
        self.query_one("#log-source-input", Input).value = ""
        self.query_one("#regex-checkbox", Checkbox).value = False
        self.query_one("#log-level-select", Select).value = "all"
        self._apply_filters()
        self.notify("Filters reset", severity="information")

    @on(Button.Pressed, "#stream-toggle-btn")
    def handle_toggle_stream(self) -> None:
        """Handle start/stop button"""
        self._toggle_stream()

    @on(Button.Pressed, "#reload-logs-btn")
    def handle_reload(self) -> None:
        """Handle reload button"""
        self._reload()

    @on(Button.Pressed, "#stats-toggle-btn")
    def handle_toggle_statistics(self) -> None:
        sidebar = self.query_one("#log-sidebar")
        sidebar.display = not sidebar.display

    @on(Button.Pressed, "#jump-top-btn")
    def handle_jump_top(self) -> None:
        """Handle jump to top button"""
        self.query_one("#log-list", LogListView).jump_to_top()

    @on(Button.Pressed, "#jump-bottom-btn")
    def handle_jump_bottom(self) -> None:
        """Handle jump to bottom button"""
        self.query_one("#log-list", LogListView).jump_to_bottom()

    @on(Button.Pressed, "#export-logs-btn")
    def handle_export(self) -> None:
        """Handle export button"""
        self._export_logs()

    def focus_search(self) -> None:
        self.query_one("#log-search-input", Input).focus()

    def _export_logs(self) -> None:
        """Export the filtered view to a text file"""
        if not len(self.filtered):
            self.notify("No log entries to export", severity="warning")
            return

        try:
            path = export_lines(self.filtered, self.filter_state, self.settings.export_dir)
        except ExportFailed as e:
            self.logger.error(str(e))
            self.notify(f"Export failed: {e}", severity="error")
            return

        self.notify(f"Exported {len(self.filtered)} lines to {path.name}", severity="information")
