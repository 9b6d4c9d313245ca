"""
AMC Main Application - Agent Management Console using Textual
"""
import logging
from typing import Optional

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header, TabbedContent, TabPane

from AMC.config import Settings, load_settings
from AMC.database.database import SettingsStore
from AMC.sysmon.log_stream import LogStreamBackend, LogStreamService
from AMC.sysmon.process_handling import ServiceProbe
from AMC.UI.views.log_viewer import LogViewerView


class ConsoleApp(App):
    """Agent Management Console - Terminal UI Application"""

    TITLE = "AMC - Agent Management Console"
    CSS_PATH = "console.tcss"
    AUTO_FOCUS = "#log-list"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("s", "toggle_stream", "Start/Stop"),
        ("r", "reload_logs", "Reload"),
        ("e", "export_logs", "Export"),
        ("i", "toggle_statistics", "Statistics"),
        ("g", "jump_top", "Top"),
        ("b", "jump_bottom", "Bottom"),
        ("slash", "focus_search", "Search"),
    ]

    def __init__(self, settings: Optional[Settings] = None,
                 service: Optional[LogStreamBackend] = None,
                 store=None, probe: Optional[ServiceProbe] = None, **kwargs):
        """
        Initialize the console

        Args:
            settings: Console settings (read from the environment if omitted)
            service: Log stream service, one per process
            store: Durable key/value store for UI state
            probe: Service process lookup for the status line
        """
        super().__init__(**kwargs)
        self.settings = settings or load_settings()
        if service is None:
            service = LogStreamService(self.settings.log_file, self.settings.poll_interval)
        self.service = service
        self.store = store if store is not None else SettingsStore(self.settings.state_db)
        self.probe = probe
        self.logger = logging.getLogger(__name__)

    def compose(self) -> ComposeResult:
        """Compose the main UI layout"""
        yield Header(show_clock=True)

        with TabbedContent(initial="log-viewer"):
            with TabPane("Logs", id="log-viewer"):
                yield LogViewerView(
                    self.service,
                    self.store,
                    self.settings,
                    probe=self.probe,
                    id="log-viewer-view",
                )

        yield Footer()

    def on_mount(self) -> None:
        self.logger.info(f"Console started, watching {self.settings.log_file}")

    def on_unmount(self) -> None:
        """Stop the tailing threads, the persisted intent restarts them next launch"""
        shutdown = getattr(self.service, "shutdown", None)
        if shutdown is not None:
            shutdown()
        self.logger.info("Console stopped")

    def _log_view(self) -> LogViewerView:
        return self.query_one("#log-viewer-view", LogViewerView)

    def action_toggle_stream(self) -> None:
        """Start or stop live streaming"""
        self._log_view().handle_toggle_stream()

    def action_reload_logs(self) -> None:
        """Reload the most recent lines"""
        self._log_view().handle_reload()

    def action_export_logs(self) -> None:
        """Export the filtered view"""
        self._log_view().handle_export()

    def action_toggle_statistics(self) -> None:
        self._log_view().handle_toggle_statistics()

    def action_jump_top(self) -> None:
        self._log_view().handle_jump_top()

    def action_jump_bottom(self) -> None:
        self._log_view().handle_jump_bottom()

    def action_focus_search(self) -> None:
        self._log_view().focus_search()


def run_app(settings: Optional[Settings] = None, store=None) -> None:
    """Entry point to run the AMC application"""
    settings = settings or load_settings()
    app = ConsoleApp(settings=settings, store=store, probe=ServiceProbe(settings.service_name))
    app.run()


if __name__ == "__main__":
    run_app()
