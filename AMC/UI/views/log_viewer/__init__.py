"""
Log Viewer Package - Live log monitoring for the managed service

This package provides the log monitor with:
- Level classification and line parsing of the service's log format
- Live tailing with persisted stream intent and reconciliation
- Search (plain text / regex), level and source filtering
- Per level statistics of the filtered view
- Virtualized rendering for long sessions
- Export of the filtered view to a text file

Package Structure:
- view: Main view orchestration (LogViewerView)
- components: UI panels and controls (LogSearchPanel, LogFilterPanel, etc.)
- log_table: Virtualized log list widget (LogListView)
- viewport: Scroll window and autoscroll policy (Viewport)
- stream_controller: Stream state machine (StreamController)
- log_buffer: Session buffer (LogBuffer)
- log_filter / log_stats: Filtered view and statistics
- log_parser: Level classification and parsing (LogLevel, LogLine)
- log_export: Text export
"""

from .view import LogViewerView

from .components import (
    LogControlPanel,
    LogFilterPanel,
    LogSearchPanel,
    LogStatsPanel,
    LogStatusBar,
)
from .log_table import LogListView
from .viewport import Viewport, visible_window
from .stream_controller import StreamController, StreamState
from .log_buffer import LogBuffer
from .log_filter import FilteredView, FilterState, build_matcher, filter_lines
from .log_stats import LogStatistics, RunningStatistics, aggregate
from .log_parser import LogLevel, LogLine, ParsedLine, classify_level, extract_source, parse_line
from .log_export import build_export_filename, export_lines

__all__ = [
    # Main view
    'LogViewerView',

    # UI components
    'LogSearchPanel',
    'LogFilterPanel',
    'LogControlPanel',
    'LogStatsPanel',
    'LogStatusBar',
    'LogListView',

    # Core components
    'Viewport',
    'visible_window',
    'StreamController',
    'StreamState',
    'LogBuffer',
    'FilteredView',
    'FilterState',
    'build_matcher',
    'filter_lines',
    'RunningStatistics',
    'aggregate',
    'classify_level',
    'parse_line',
    'extract_source',
    'build_export_filename',
    'export_lines',

    # Data models
    'LogStatistics',
    'LogLevel',
    'LogLine',
    'ParsedLine',
]
