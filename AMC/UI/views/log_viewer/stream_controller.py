"""
Stream Controller Module - Live tailing state machine

Handles:
- Start/stop of live log streaming against the stream service
- Reconciliation of persisted stream intent with the service's actual state
- Subscription lifecycle (attach, release) and event delivery into the buffer
- Initial history load and explicit reload
- Translation of service failures into notifications
"""
import asyncio
import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

from AMC.config import AUTO_START_KEY, STREAM_INTENT_KEY
from AMC.errors import (
    ConsoleError,
    FetchFailed,
    StreamStartFailed,
    StreamStopFailed,
    StreamUnavailable,
)
from AMC.log_analysis.notification import Notification
from AMC.sysmon.log_stream import LogBatch, LogStreamBackend, Subscription

from .log_buffer import LogBuffer
from .log_parser import LogLine


class StreamState(Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    STREAMING = "streaming"
    STOP_PENDING = "stop_pending"
    ERROR = "error"


class StreamController:
    """
    Owns the on/off state of live tailing for one log view

    The subscription only exists while STARTING, STREAMING or STOP_PENDING.
    Batches are appended to the buffer under an event lock that is also held
    while the subscription is released, so nothing is appended after stop()
    returns.
    """

    def __init__(self, backend: LogStreamBackend, store, buffer: Optional[LogBuffer] = None,
                 notifier: Optional[Callable[[Notification], None]] = None,
                 timeout: float = 10.0):
        """
        Initialize the controller

        Args:
            backend: Stream service providing fetch/start/stop/is_streaming/subscribe
            store: Durable key/value store with get/set/remove
            buffer: Session buffer to append to (a new one if omitted)
            notifier: Receives user visible notifications
            timeout: Seconds allowed for each service call
        """
        self.backend = backend
        self.store = store
        self.buffer = buffer if buffer is not None else LogBuffer()
        self.notifier = notifier
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

        self.state = StreamState.STOPPED
        self.last_error: Optional[ConsoleError] = None

        # Listeners, may be called from the stream service's threads
        self.on_state_change: Optional[Callable[[StreamState], None]] = None
        self.on_lines: Optional[Callable[[List[LogLine]], None]] = None

        self._subscription: Optional[Subscription] = None
        self._event_lock = threading.RLock()
        self._attach_count = 0
        self._active_attach: Optional[int] = None

        # Sequence tracking for batches that carry a seq number
        self._last_seq: Optional[int] = None
        self.missed_batches = 0
        self.duplicate_batches = 0

    @property
    def is_streaming(self) -> bool:
        return self.state == StreamState.STREAMING

    @property
    def persisted_intent(self) -> bool:
        return self.store.get(STREAM_INTENT_KEY) == "true"

    # Service calls

    async def _call(self, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise StreamUnavailable(f"Log service did not answer within {self.timeout}s") from e

    # Public operations

    async def load_history(self, limit: int) -> bool:
        """
        One-time bulk load of recent lines into the buffer

        Args:
            limit: Maximum number of lines to fetch

        Returns:
            True if the fetch succeeded
        """
        try:
            result = await self._call(self.backend.fetch_logs(limit))
        except Exception as e:
            self._report(FetchFailed("Failed to load logs", e))
            return False

        lines = result.get("lines") or []
        added = self.buffer.append(lines)
        self.logger.info(f"Loaded {len(added)} historical log lines")
        self._emit_lines(added)
        return True

    async def reload(self, limit: int) -> bool:
        """Clear the session buffer and fetch history again"""
        self.buffer.clear()
        return await self.load_history(limit)

    async def start(self) -> bool:
        """
        Begin live streaming

        Returns:
            True if the controller ends up streaming
        """
        if self.state != StreamState.STOPPED:
            return self.state == StreamState.STREAMING

        self._set_state(StreamState.STARTING)
        try:
            await self._call(self.backend.start_stream())
            self._attach()
        except asyncio.CancelledError:
            self._release_subscription()
            self._set_state(StreamState.STOPPED)
            raise
        except Exception as e:
            self._release_subscription()
            self._persist_intent(False)
            self._fail(StreamStartFailed("Failed to start log monitoring", e))
            return False

        self._set_state(StreamState.STREAMING)
        self._persist_intent(True)
        self._notify("information", "Log monitoring started")
        return True

    async def stop(self) -> bool:
        """
        End live streaming

        The subscription is released even if the service call fails or
        times out, and the controller always ends in STOPPED.

        Returns:
            True if the service acknowledged the stop
        """
        if self.state != StreamState.STREAMING:
            return self.state == StreamState.STOPPED

        self._set_state(StreamState.STOP_PENDING)
        error: Optional[ConsoleError] = None
        try:
            await self._call(self.backend.stop_stream())
        except asyncio.CancelledError:
            self._set_state(StreamState.STOPPED)
            raise
        except Exception as e:
            error = StreamStopFailed("Failed to stop log monitoring", e)
        finally:
            self._release_subscription()
            self._persist_intent(False)

        if error is not None:
            self._fail(error)
            return False

        self._set_state(StreamState.STOPPED)
        self._notify("information", "Log monitoring stopped")
        return True

    async def toggle(self) -> bool:
        if self.state == StreamState.STREAMING:
            return await self.stop()
        return await self.start()

    async def reconcile(self) -> StreamState:
        """
        Bring local stream state in line with the service, once per mount

        | intent | service | result                                  |
        | true   | false   | start fresh, STOPPED on failure         |
        | false  | true    | attach without start, persist intent    |
        | true   | true    | attach                                  |
        | false  | false   | nothing                                 |

        Returns:
            The state after reconciliation
        """
        if self.state != StreamState.STOPPED:
            return self.state

        try:
            if self._consume_auto_start():
                self.logger.info("Auto-start requested, starting log monitoring")
                await self.start()
                return self.state

            intent = self.persisted_intent
            actual = await self._call(self.backend.is_streaming())
            self.logger.info(f"Reconciling stream state: intent={intent} service={actual}")

            if intent and not actual:
                await self.start()
            elif actual:
                self._attach()
                self._set_state(StreamState.STREAMING)
                if not intent:
                    self._persist_intent(True)
        except Exception as e:
            self.logger.error(f"Stream reconciliation failed: {e}", exc_info=True)
            self._release_subscription()
            self._persist_intent(False)
            self._set_state(StreamState.STOPPED)

        return self.state

    def detach(self) -> None:
        """
        Drop the subscription without touching the service or the persisted
        intent, used when the view goes away while the service keeps tailing
        """
        self._release_subscription()
        if self.state != StreamState.STOPPED:
            self._set_state(StreamState.STOPPED)

    # Subscription handling

    def _attach(self) -> None:
        with self._event_lock:
            self._attach_count += 1
            attach_id = self._attach_count
            self._active_attach = attach_id
            self._last_seq = None

        try:
            subscription = self.backend.subscribe(lambda batch: self._on_batch(attach_id, batch))
        except Exception:
            with self._event_lock:
                self._active_attach = None
            raise

        with self._event_lock:
            self._subscription = subscription
        self.logger.debug(f"Attached subscription #{attach_id}")

    def _release_subscription(self) -> None:
        with self._event_lock:
            subscription = self._subscription
            self._subscription = None
            self._active_attach = None
            if subscription is None:
                return
            try:
                subscription.cancel()
            except Exception as e:
                self.logger.warning(f"Error cancelling log subscription: {e}")

    def _on_batch(self, attach_id: int, batch: LogBatch) -> None:
        with self._event_lock:
            if attach_id != self._active_attach:
                return

            if batch.seq is not None:
                if self._last_seq is not None:
                    if batch.seq <= self._last_seq:
                        self.duplicate_batches += 1
                        self.logger.warning(f"Dropping duplicate batch {batch.seq}")
                        return
                    if batch.seq > self._last_seq + 1:
                        missed = batch.seq - self._last_seq - 1
                        self.missed_batches += missed
                        self.logger.warning(f"Missed {missed} batch(es) before {batch.seq}")
                self._last_seq = batch.seq

            added = self.buffer.append(batch.lines)

        self._emit_lines(added)

    # Helpers

    def _emit_lines(self, added: List[LogLine]) -> None:
        if added and self.on_lines is not None:
            self.on_lines(added)

    def _set_state(self, state: StreamState) -> None:
        if state == self.state:
            return
        self.logger.debug(f"Stream state {self.state.value} -> {state.value}")
        self.state = state
        if self.on_state_change is not None:
            self.on_state_change(state)

    def _fail(self, error: ConsoleError) -> None:
        self._set_state(StreamState.ERROR)
        self._report(error)
        self._set_state(StreamState.STOPPED)

    def _report(self, error: ConsoleError) -> None:
        self.last_error = error
        self.logger.error(str(error))
        if self.notifier is not None:
            self.notifier(Notification.from_error(error))

    def _notify(self, severity: str, message: str) -> None:
        if self.notifier is not None:
            self.notifier(Notification(severity=severity, message=message))

    def _persist_intent(self, streaming: bool) -> None:
        try:
            self.store.set(STREAM_INTENT_KEY, "true" if streaming else "false")
        except Exception as e:
            self.logger.error(f"Could not persist stream intent: {e}")

    def _consume_auto_start(self) -> bool:
        if self.store.get(AUTO_START_KEY) != "true":
            return False
        self.store.remove(AUTO_START_KEY)
        return True
