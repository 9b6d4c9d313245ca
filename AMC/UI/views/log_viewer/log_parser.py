"""
Log Parser Module - Level classification and line parsing

Handles:
- Log level identification (DEBUG, INFO, WARNING, ERROR) from "| LEVEL |" markers
- Leading timestamp extraction ("YYYY-MM-DD HH:MM:SS[.fff]")
- Source field extraction for the managed service's pipe-delimited format
- The LogLine record held by the session buffer
"""
import re
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Optional


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    UNKNOWN = "unknown"

    @property
    def color(self) -> str:
        """Get color representation for this log level"""
        colors = {
            LogLevel.DEBUG: "grey50",
            LogLevel.INFO: "dodger_blue2",
            LogLevel.WARN: "dark_orange",
            LogLevel.ERROR: "red",
            LogLevel.UNKNOWN: "default",
        }
        return colors.get(self, "default")

    @property
    def label(self) -> str:
        return self.name


# Probe order matters: the first marker found wins
LEVEL_PATTERNS = (
    (LogLevel.DEBUG, re.compile(r'\|\s*DEBUG\s*\|', re.IGNORECASE)),
    (LogLevel.INFO, re.compile(r'\|\s*INFO\s*\|', re.IGNORECASE)),
    (LogLevel.WARN, re.compile(r'\|\s*WARNING\s*\|', re.IGNORECASE)),
    (LogLevel.ERROR, re.compile(r'\|\s*ERROR\s*\|', re.IGNORECASE)),
)

TIMESTAMP_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}(?:\.\d{1,3})?')

# "2024-01-01 10:00:00.123 | INFO     | nanobot.agent.loop:run:42 - message"
SOURCE_PATTERN = re.compile(r'^[^|]*\|[^|]*\|\s*(?P<source>[^|\s]+)\s+-\s')


def classify_level(line: str) -> LogLevel:
    """
    Classify a raw log line by its level marker

    Args:
        line: Raw log text

    Returns:
        The first matching LogLevel, or LogLevel.UNKNOWN
    """
    for level, pattern in LEVEL_PATTERNS:
        if pattern.search(line):
            return level
    return LogLevel.UNKNOWN


@dataclass(frozen=True)
class ParsedLine:
    """Timestamp / body split of a raw line"""
    timestamp: Optional[str]
    body: str


def parse_line(line: str) -> ParsedLine:
    """
    Split a leading timestamp off a raw line

    A line without a timestamp at offset 0 is not an error, it simply has
    no timestamp.

    Args:
        line: Raw log text

    Returns:
        ParsedLine with the timestamp substring (or None) and the remainder
    """
    match = TIMESTAMP_PATTERN.match(line)
    if not match:
        return ParsedLine(timestamp=None, body=line)

    timestamp = match.group(0)
    return ParsedLine(timestamp=timestamp, body=line[len(timestamp):].lstrip())


def extract_source(line: str) -> str:
    """Return the "module:function:line" field of a pipe-delimited line, or ''"""
    match = SOURCE_PATTERN.match(line)
    return match.group('source') if match else ""


@dataclass(frozen=True)
class LogLine:
    """A raw line as appended to the session buffer"""
    line_number: int
    raw: str

    def __str__(self) -> str:
        return self.raw

    @cached_property
    def level(self) -> LogLevel:
        return classify_level(self.raw)

    @cached_property
    def parsed(self) -> ParsedLine:
        return parse_line(self.raw)

    @property
    def timestamp(self) -> Optional[str]:
        return self.parsed.timestamp

    @property
    def body(self) -> str:
        return self.parsed.body

    @cached_property
    def source(self) -> str:
        return extract_source(self.raw)
