"""
Log List Module - Virtualized list of log lines

Handles:
- Line API rendering: only the rows inside the scroll window are drawn
- Color-coded levels and dimmed timestamps
- Append without re-rendering existing rows
- Autoscroll to the newest line while streaming
"""
from typing import Iterable, List, Optional, Tuple

from rich.cells import cell_len
from rich.control import strip_control_codes
from rich.segment import Segment
from rich.style import Style
from textual.cache import LRUCache
from textual.geometry import Size
from textual.scroll_view import ScrollView
from textual.strip import Strip

from .log_parser import LogLine
from .viewport import Viewport, visible_window

TIMESTAMP_STYLE = Style(dim=True)


def row_text(line: LogLine) -> Tuple[Optional[str], str]:
    """Timestamp and body exactly as drawn in a row"""
    return line.timestamp, strip_control_codes(line.body.expandtabs(4))


class LogListView(ScrollView, can_focus=True):
    """
    Scrollable view over the filtered log lines

    Rendering cost per frame depends on the widget height only. Rendered rows
    are cached by line number until the row set is replaced.
    """

    DEFAULT_CSS = """
    LogListView {
        height: 1fr;
    }
    """

    def __init__(self, **kwargs):
        """Initialize the log list"""
        super().__init__(**kwargs)
        self.rows: List[LogLine] = []
        self.viewport = Viewport()
        self._max_width = 0
        self._strip_cache = LRUCache(maxsize=2048)

    # Data

    def set_lines(self, lines: Iterable[LogLine], streaming: bool) -> None:
        """
        Replace every row, e.g. after a filter change or reload

        Args:
            lines: The new filtered view
            streaming: Whether live streaming is active (controls autoscroll)
        """
        self.rows = list(lines)
        self._strip_cache.clear()
        self._max_width = max((self._line_width(line) for line in self.rows), default=0)
        self._sync(streaming)

    def append_lines(self, lines: Iterable[LogLine], streaming: bool) -> None:
        """Append rows that passed the filter"""
        lines = list(lines)
        if not lines:
            return
        self.rows.extend(lines)
        self._max_width = max(self._max_width, max(self._line_width(line) for line in lines))
        self._sync(streaming)

    def reset_position(self) -> None:
        """Next data change scrolls to the newest line again"""
        self.viewport.reset()

    def _sync(self, streaming: bool) -> None:
        self.virtual_size = Size(self._max_width, len(self.rows))
        self.viewport.height = self.size.height
        # The user may have scrolled since the last sync, clamped below
        self.viewport.offset = round(self.scroll_y)

        if self.viewport.on_data_changed(len(self.rows), streaming):
            self.scroll_end(animate=False)
        else:
            self.scroll_to(y=self.viewport.offset, animate=False)
        self.refresh()

    @staticmethod
    def _line_width(line: LogLine) -> int:
        timestamp, body = row_text(line)
        if timestamp:
            return cell_len(timestamp) + 1 + cell_len(body)
        return cell_len(body)

    # Navigation

    def jump_to_top(self) -> None:
        self.viewport.scroll_to_top()
        self.scroll_home(animate=False)

    def jump_to_bottom(self) -> None:
        self.viewport.scroll_to_end()
        self.scroll_end(animate=False)

    def visible_lines(self) -> List[LogLine]:
        window = visible_window(len(self.rows), round(self.scroll_y), self.size.height)
        return self.rows[window.start:window.stop]

    # Rendering

    def _render_row(self, line: LogLine) -> Strip:
        segments = []
        timestamp, body = row_text(line)
        if timestamp:
            segments.append(Segment(timestamp, TIMESTAMP_STYLE))
            segments.append(Segment(" "))
        segments.append(Segment(body, Style.parse(line.level.color)))
        return Strip(segments).apply_style(self.rich_style)

    def render_line(self, y: int) -> Strip:
        scroll_x, scroll_y = self.scroll_offset
        index = scroll_y + y
        width = self.size.width

        if index >= len(self.rows):
            return Strip.blank(width, self.rich_style)

        line = self.rows[index]
        strip = self._strip_cache.get(line.line_number)
        if strip is None:
            strip = self._render_row(line)
            self._strip_cache.set(line.line_number, strip)

        return strip.crop(scroll_x, scroll_x + width).extend_cell_length(width, self.rich_style)
