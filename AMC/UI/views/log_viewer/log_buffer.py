"""
Log Buffer Module - Append-only session buffer of raw log lines

One writer (the stream controller, plus the initial bulk load) and many
readers (filtering, statistics, rendering). Batches are delivered from the
stream service's threads, so append and read go through a lock.
"""
import threading
from typing import Iterable, Iterator, List

from .log_parser import LogLine


class LogBuffer:
    """Ordered, unbounded, in-memory sequence of LogLine"""

    def __init__(self):
        self._lines: List[LogLine] = []
        self._lock = threading.Lock()
        # Incremented on every clear so readers can detect a reload
        self.generation = 0

    def append(self, raw_lines: Iterable[str]) -> List[LogLine]:
        """
        Append raw lines in order

        Args:
            raw_lines: Raw text lines, already split

        Returns:
            The LogLine records that were appended
        """
        with self._lock:
            start = len(self._lines) + 1
            added = [
                LogLine(line_number=start + offset, raw=raw)
                for offset, raw in enumerate(raw_lines)
            ]
            self._lines.extend(added)
        return added

    def clear(self) -> None:
        with self._lock:
            self._lines = []
            self.generation += 1

    def snapshot(self) -> List[LogLine]:
        """Copy of the current contents, safe to iterate while appends continue"""
        with self._lock:
            return list(self._lines)

    def lines_since(self, count: int) -> List[LogLine]:
        """Lines appended after the first `count` lines"""
        with self._lock:
            return self._lines[count:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def __iter__(self) -> Iterator[LogLine]:
        return iter(self.snapshot())

    def __getitem__(self, index):
        with self._lock:
            return self._lines[index]
