"""
Shared fixtures: an in-memory log stream service and settings pointed at tmp_path
"""
import asyncio
from typing import Dict, List, Optional

import pytest

from AMC.config import Settings
from AMC.database.database import MemoryStore
from AMC.errors import StreamUnavailable
from AMC.sysmon.log_stream import BatchCallback, LogBatch, Subscription


class FakeLogService:
    """Scriptable stand-in for LogStreamService"""

    def __init__(self, lines: Optional[List[str]] = None, streaming: bool = False):
        self.lines = list(lines or [])
        self.streaming = streaming
        self.callbacks: Dict[int, BatchCallback] = {}
        self._next_id = 0

        self.start_calls = 0
        self.stop_calls = 0
        self.subscribe_calls = 0

        self.fail_fetch: Optional[Exception] = None
        self.fail_start: Optional[Exception] = None
        self.fail_stop: Optional[Exception] = None
        self.fail_status: Optional[Exception] = None
        self.start_delay = 0.0
        self.stop_delay = 0.0

    async def fetch_logs(self, limit: int) -> dict:
        if self.fail_fetch:
            raise self.fail_fetch
        shown = self.lines[-limit:] if limit > 0 else []
        return {"lines": shown, "total": len(self.lines), "showing": len(shown)}

    async def start_stream(self) -> None:
        self.start_calls += 1
        if self.start_delay:
            await asyncio.sleep(self.start_delay)
        if self.fail_start:
            raise self.fail_start
        self.streaming = True

    async def stop_stream(self) -> None:
        self.stop_calls += 1
        if self.stop_delay:
            await asyncio.sleep(self.stop_delay)
        if self.fail_stop:
            raise self.fail_stop
        if not self.streaming:
            raise StreamUnavailable("No log stream is running")
        self.streaming = False

    async def is_streaming(self) -> bool:
        if self.fail_status:
            raise self.fail_status
        return self.streaming

    def subscribe(self, callback: BatchCallback) -> Subscription:
        self.subscribe_calls += 1
        subscriber_id = self._next_id
        self._next_id += 1
        self.callbacks[subscriber_id] = callback
        return Subscription(lambda: self.callbacks.pop(subscriber_id, None))

    def emit(self, lines: List[str], seq: Optional[int] = None) -> None:
        batch = LogBatch(lines=list(lines), seq=seq)
        for callback in list(self.callbacks.values()):
            callback(batch)

    @property
    def subscriber_count(self) -> int:
        return len(self.callbacks)


SAMPLE_LINES = [
    "2024-01-01 10:00:00.001 | DEBUG    | nanobot.agent.loop:run:10 - tick",
    "2024-01-01 10:00:01.002 | INFO     | nanobot.agent.loop:run:12 - agent started",
    "2024-01-01 10:00:02.003 | WARNING  | nanobot.channels.telegram:send:88 - retrying",
    "2024-01-01 10:00:03.004 | ERROR    | nanobot.providers.litellm:call:41 - timeout",
    "plain line without markers",
]


@pytest.fixture
def sample_lines():
    return list(SAMPLE_LINES)


@pytest.fixture
def fake_service():
    return FakeLogService(lines=SAMPLE_LINES)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        log_file=tmp_path / "logs" / "nanobot.log",
        state_db=tmp_path / "state.db",
        export_dir=tmp_path / "exports",
        app_log_dir=tmp_path / "app_log",
        initial_lines=500,
        poll_interval=0.05,
        call_timeout=1.0,
        search_debounce=0.01,
    )
