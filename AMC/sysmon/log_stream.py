"""
Log Stream Service - Tails the managed service's log file and pushes new lines

Handles:
- Bulk fetch of the last N lines
- Start/stop of live tailing (watchdog observer plus a polling fallback)
- Truncation/rotation and partial trailing lines
- Subscription handles for push delivery of line batches
"""
import asyncio
import logging
import os
import threading
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from AMC.errors import StreamUnavailable


@dataclass(frozen=True)
class LogBatch:
    """One delivery of new raw lines, in emission order"""
    lines: List[str] = field(default_factory=list)
    seq: Optional[int] = None


BatchCallback = Callable[[LogBatch], None]


class Subscription:
    """Handle for a push subscription. Cancelling is idempotent."""

    def __init__(self, on_cancel: Callable[[], None]):
        self._on_cancel = on_cancel
        self._active = True
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._on_cancel()


class LogStreamBackend(Protocol):
    """Capabilities the log monitor needs from whatever tails the service log"""

    async def fetch_logs(self, limit: int) -> dict: ...

    async def start_stream(self) -> None: ...

    async def stop_stream(self) -> None: ...

    async def is_streaming(self) -> bool: ...

    def subscribe(self, callback: BatchCallback) -> Subscription: ...


class LogTail:
    """
    Reads lines appended to a file since the last read

    Attributes:
        path: File being tailed
        offset: Byte position already consumed
        partial: Trailing bytes not yet terminated by a newline
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.offset = 0
        self.partial = b""

    def seek_end(self) -> None:
        """Start tailing from the current end of file"""
        self.offset = self.path.stat().st_size if self.path.exists() else 0
        self.partial = b""

    def read_new_lines(self) -> List[str]:
        if not self.path.exists():
            return []

        size = self.path.stat().st_size

        # Truncated or rotated, start over from the top
        if size < self.offset:
            self.offset = 0
            self.partial = b""

        if size == self.offset:
            return []

        with self.path.open("rb") as f:
            f.seek(self.offset)
            data = f.read()
            self.offset = f.tell()

        parts = (self.partial + data).split(b"\n")

        # Last element is empty when the chunk ended on a newline. Only complete
        # lines are decoded, a multibyte character may span two reads.
        self.partial = parts.pop()
        return [part.rstrip(b"\r").decode("utf-8", errors="replace") for part in parts]


class LogFileEventHandler(FileSystemEventHandler):
    """Forwards modifications of a single file to a callback"""

    def __init__(self, log_path: Path, callback: Callable[[], None]):
        super().__init__()
        self.log_path = Path(log_path).resolve()
        self.callback = callback

    def _is_log_file(self, event) -> bool:
        if event.is_directory:
            return False
        return Path(os.fsdecode(event.src_path)).resolve() == self.log_path

    def on_modified(self, event):
        if self._is_log_file(event):
            self.callback()

    def on_created(self, event):
        if self._is_log_file(event):
            self.callback()


class LogStreamService:
    """
    Local implementation of the log stream capabilities

    Watches the log file with a watchdog observer and also polls it, since
    some platforms and editors do not produce modify events reliably.
    Batches are delivered on the observer or polling thread.
    """

    def __init__(self, log_path: Path, poll_interval: float = 2.0):
        self.log_path = Path(log_path).expanduser()
        self.poll_interval = poll_interval
        self.logger = logging.getLogger(__name__)

        self._tail = LogTail(self.log_path)
        self._subscribers: Dict[int, BatchCallback] = {}
        self._subscribers_lock = threading.Lock()
        self._next_subscriber_id = 0

        # Serializes read + delivery so batches leave in order
        self._drain_lock = threading.Lock()
        self._seq = 0

        self._observer: Optional[Observer] = None
        self._poll_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False

    # Bulk fetch

    def read_last_lines(self, limit: int) -> dict:
        if not self.log_path.exists():
            return {"lines": [], "total": 0, "showing": 0}

        total = 0
        with open(self.log_path, "r", encoding="utf-8", errors="replace") as f:
            last = deque(maxlen=max(limit, 0))
            for line in f:
                total += 1
                last.append(line.rstrip("\r\n"))

        return {"lines": list(last), "total": total, "showing": len(last)}

    async def fetch_logs(self, limit: int) -> dict:
        """
        Read the last `limit` lines of the log file

        Returns:
            {"lines": [...], "total": int, "showing": int}
        """
        return await asyncio.to_thread(self.read_last_lines, limit)

    # Stream lifecycle

    async def start_stream(self) -> None:
        if self._running:
            return

        try:
            await asyncio.to_thread(self._open_stream)
        except OSError as e:
            await asyncio.to_thread(self._close_stream)
            raise StreamUnavailable(f"Cannot tail {self.log_path}", e) from e

    async def stop_stream(self) -> None:
        if not self._running:
            raise StreamUnavailable("No log stream is running")
        await asyncio.to_thread(self._close_stream)

    async def is_streaming(self) -> bool:
        return self._running

    def _open_stream(self) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.log_path.exists():
            self.log_path.touch()

        with self._drain_lock:
            self._tail.seek_end()

        self._stop_event.clear()

        self._observer = Observer()
        handler = LogFileEventHandler(self.log_path, self._drain)
        self._observer.schedule(handler, str(self.log_path.parent), recursive=False)
        self._observer.start()

        self._poll_thread = threading.Thread(target=self._poll_loop, daemon=True)
        self._poll_thread.start()

        self._running = True
        self.logger.info(f"Tailing {self.log_path} (poll every {self.poll_interval}s)")

    def _close_stream(self) -> None:
        self._stop_event.set()

        if self._observer is not None:
            self._observer.stop()
            if self._observer.is_alive():
                self._observer.join(timeout=3)
            self._observer = None

        if self._poll_thread is not None and self._poll_thread.is_alive():
            self._poll_thread.join(timeout=self.poll_interval + 1)
        self._poll_thread = None

        if self._running:
            self.logger.info(f"Stopped tailing {self.log_path}")
        self._running = False

    def shutdown(self) -> None:
        """Stop tailing when the application exits"""
        if self._running:
            self._close_stream()

    # Delivery

    def subscribe(self, callback: BatchCallback) -> Subscription:
        with self._subscribers_lock:
            subscriber_id = self._next_subscriber_id
            self._next_subscriber_id += 1
            self._subscribers[subscriber_id] = callback

        def _remove():
            with self._subscribers_lock:
                self._subscribers.pop(subscriber_id, None)

        return Subscription(_remove)

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            self._drain()

    def _drain(self) -> None:
        """Read whatever is new and push it to every subscriber"""
        with self._drain_lock:
            if self._stop_event.is_set():
                return
            try:
                lines = self._tail.read_new_lines()
            except OSError as e:
                self.logger.error(f"Error reading {self.log_path}: {e}")
                return

            if not lines:
                return

            self._seq += 1
            batch = LogBatch(lines=lines, seq=self._seq)

            with self._subscribers_lock:
                callbacks = list(self._subscribers.values())

            self.logger.debug(f"Delivering batch {batch.seq} ({len(lines)} lines) to {len(callbacks)} subscriber(s)")
            for callback in callbacks:
                try:
                    callback(batch)
                except Exception as e:
                    self.logger.error(f"Subscriber failed on batch {batch.seq}: {e}", exc_info=True)
