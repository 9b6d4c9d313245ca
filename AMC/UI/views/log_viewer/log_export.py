"""
Log Export Module - Writes the filtered view to a plain text file

Handles:
- Filenames that encode the export time and the active filters
- Newline-joined raw text content
- All-or-nothing writes (temporary file, then rename)
"""
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from AMC.errors import ExportFailed

from .log_filter import ALL_LEVELS, FilterState
from .log_parser import LogLine

logger = logging.getLogger(__name__)


def build_export_filename(state: FilterState, now: Optional[datetime] = None) -> str:
    """
    Name an export so that exports under different filters do not collide

    Args:
        state: Filter state the lines were selected with
        now: Export time (defaults to the current time)

    Returns:
        e.g. "logs-2024-01-01T10-30-00-error-filtered.txt"
    """
    now = now or datetime.now()
    filename = f"logs-{now.strftime('%Y-%m-%dT%H-%M-%S')}"
    if state.level != ALL_LEVELS:
        filename += f"-{state.level}"
    if state.search:
        filename += "-filtered"
    return filename + ".txt"


def render_export(lines: Iterable[LogLine]) -> str:
    return "\n".join(line.raw for line in lines)


def export_lines(lines: Iterable[LogLine], state: FilterState, directory: Path,
                 now: Optional[datetime] = None) -> Path:
    """
    Write the given (filtered) lines to a new text file

    Args:
        lines: The currently filtered view
        state: Active filters, encoded in the filename
        directory: Destination directory, created if missing
        now: Export time used in the filename

    Returns:
        Path of the written file

    Raises:
        ExportFailed: the file could not be written; nothing is left behind
    """
    directory = Path(directory).expanduser()
    target = directory / build_export_filename(state, now)
    content = render_export(lines)

    tmp_path = None
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".export-", suffix=".tmp", dir=str(directory))
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, target)
    except OSError as e:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise ExportFailed(f"Could not write {target.name}", e) from e

    logger.info(f"Exported log view to {target}")
    return target
