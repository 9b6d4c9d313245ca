"""
Log Statistics Module - Per level counts and percentages

The statistics panel always describes the filtered view. Counts can be
accumulated incrementally while streaming; a snapshot is identical to
aggregating the same lines from scratch.
"""
from typing import Dict, Iterable

from pydantic import BaseModel

from .log_parser import LogLevel, LogLine


class LogStatistics(BaseModel):
    total: int = 0
    counts: Dict[str, int] = {level.value: 0 for level in LogLevel}
    percents: Dict[str, float] = {level.value: 0.0 for level in LogLevel}

    def count(self, level: LogLevel) -> int:
        return self.counts[level.value]

    def percent(self, level: LogLevel) -> float:
        return self.percents[level.value]


class RunningStatistics:
    """Counter buckets per classified level"""

    def __init__(self):
        self.total = 0
        self._counts: Dict[LogLevel, int] = {level: 0 for level in LogLevel}

    def add(self, lines: Iterable[LogLine]) -> None:
        for line in lines:
            self._counts[line.level] += 1
            self.total += 1

    def reset(self) -> None:
        self.total = 0
        for level in self._counts:
            self._counts[level] = 0

    def snapshot(self) -> LogStatistics:
        total = self.total
        counts = {level.value: count for level, count in self._counts.items()}
        # total == 0 reports 0% in every bucket
        percents = {
            level.value: (count / total * 100) if total > 0 else 0.0
            for level, count in self._counts.items()
        }
        return LogStatistics(total=total, counts=counts, percents=percents)


def aggregate(lines: Iterable[LogLine]) -> LogStatistics:
    """
    Count lines per level in a single pass

    Args:
        lines: Usually the current filtered view

    Returns:
        LogStatistics with total, counts and percentages
    """
    running = RunningStatistics()
    running.add(lines)
    return running.snapshot()
