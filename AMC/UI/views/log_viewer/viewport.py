"""
Viewport Module - Windowed view over a long, growing list

Rendering cost depends on the window height, never on the total number of
lines. Any renderer (the Textual list, a test, a plain terminal) can drive
the same Viewport.
"""
from typing import Sequence, TypeVar

T = TypeVar("T")


def visible_window(total: int, offset: int, height: int) -> range:
    """
    Indices visible for a given scroll offset

    Args:
        total: Number of items in the list
        offset: Index of the first visible row (clamped into range)
        height: Number of rows available

    Returns:
        range [lo, hi) of visible indices
    """
    if total <= 0 or height <= 0:
        return range(0, 0)
    max_offset = max(0, total - height)
    lo = min(max(offset, 0), max_offset)
    hi = min(lo + height, total)
    return range(lo, hi)


class Viewport:
    """
    Scroll position and autoscroll policy for an append-only list

    - Initially pinned to the end (most recent line)
    - New data while streaming scrolls to the end
    - New data while not streaming never moves the offset
    """

    def __init__(self, height: int = 0):
        self.total = 0
        self.height = max(height, 0)
        self.offset = 0
        self._pending_initial_scroll = True

    @property
    def max_offset(self) -> int:
        return max(0, self.total - self.height)

    @property
    def at_end(self) -> bool:
        return self.offset >= self.max_offset

    def window(self) -> range:
        return visible_window(self.total, self.offset, self.height)

    def visible(self, items: Sequence[T]) -> Sequence[T]:
        window = self.window()
        return items[window.start:window.stop]

    def resize(self, height: int) -> None:
        pinned = self.at_end
        self.height = max(height, 0)
        if pinned:
            self.offset = self.max_offset
        else:
            self._clamp()

    def scroll_to(self, offset: int) -> None:
        self.offset = offset
        self._clamp()

    def scroll_by(self, delta: int) -> None:
        self.scroll_to(self.offset + delta)

    def scroll_to_end(self) -> None:
        self.offset = self.max_offset

    def scroll_to_top(self) -> None:
        self.offset = 0

    def on_data_changed(self, total: int, streaming: bool) -> bool:
        """
        Apply the autoscroll policy after the list changed

        Args:
            total: New number of items
            streaming: Whether live streaming is active

        Returns:
            True if the viewport moved to the end
        """
        self.total = max(total, 0)
        if streaming or self._pending_initial_scroll:
            self.scroll_to_end()
            if self.total > 0:
                self._pending_initial_scroll = False
            return True
        self._clamp()
        return False

    def reset(self) -> None:
        """Forget the position, the next data change scrolls to the end"""
        self.total = 0
        self.offset = 0
        self._pending_initial_scroll = True

    def _clamp(self) -> None:
        self.offset = min(max(self.offset, 0), self.max_offset)
