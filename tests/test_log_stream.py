"""
Tests for the log stream service (file tailing with watchdog and polling)
"""
import asyncio
import threading

import pytest

from AMC.errors import StreamUnavailable
from AMC.sysmon.log_stream import LogStreamService, LogTail, Subscription


def append(path, text):
    with open(path, "a", encoding="utf-8") as f:
        f.write(text)


async def wait_for(predicate, timeout=5.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            return False
        await asyncio.sleep(0.02)
    return True


class TestLogTail:
    """Test LogTail"""

    def test_reads_only_new_lines(self, tmp_path):
        log = tmp_path / "app.log"
        log.write_text("old 1\nold 2\n", encoding="utf-8")
        tail = LogTail(log)
        tail.seek_end()

        append(log, "new 1\nnew 2\n")

        assert tail.read_new_lines() == ["new 1", "new 2"]
        assert tail.read_new_lines() == []

    def test_partial_line_is_held_back(self, tmp_path):
        log = tmp_path / "app.log"
        log.touch()
        tail = LogTail(log)
        tail.seek_end()

        append(log, "complete\nhalf")
        assert tail.read_new_lines() == ["complete"]

        append(log, " done\n")
        assert tail.read_new_lines() == ["half done"]

    def test_multibyte_character_split_across_writes(self, tmp_path):
        log = tmp_path / "app.log"
        log.touch()
        tail = LogTail(log)
        tail.seek_end()

        encoded = "café ok\n".encode("utf-8")
        cut = encoded.index(b"\xc3") + 1
        with open(log, "ab") as f:
            f.write(encoded[:cut])
        assert tail.read_new_lines() == []

        with open(log, "ab") as f:
            f.write(encoded[cut:])
        assert tail.read_new_lines() == ["café ok"]

    def test_crlf_line_endings(self, tmp_path):
        log = tmp_path / "app.log"
        log.touch()
        tail = LogTail(log)
        log.write_bytes(b"one\r\ntwo\r\n")
        assert tail.read_new_lines() == ["one", "two"]

    def test_truncation_restarts_from_top(self, tmp_path):
        log = tmp_path / "app.log"
        log.write_text("a long first generation of the file\n", encoding="utf-8")
        tail = LogTail(log)
        tail.seek_end()

        log.write_text("rotated\n", encoding="utf-8")

        assert tail.read_new_lines() == ["rotated"]

    def test_missing_file(self, tmp_path):
        tail = LogTail(tmp_path / "missing.log")
        tail.seek_end()
        assert tail.read_new_lines() == []

    def test_invalid_utf8_is_replaced(self, tmp_path):
        log = tmp_path / "app.log"
        log.touch()
        tail = LogTail(log)
        log.write_bytes(b"bad \xff byte\n")
        assert tail.read_new_lines() == ["bad \ufffd byte"]


class TestSubscription:
    """Test Subscription"""

    def test_cancel_is_idempotent(self):
        calls = []
        subscription = Subscription(lambda: calls.append(1))
        subscription.cancel()
        subscription.cancel()
        assert calls == [1]
        assert not subscription.active


class TestFetchLogs:
    """Test bulk fetch"""

    @pytest.mark.asyncio
    async def test_last_lines(self, tmp_path):
        log = tmp_path / "app.log"
        log.write_text("".join(f"line {i}\n" for i in range(10)), encoding="utf-8")
        service = LogStreamService(log)

        result = await service.fetch_logs(3)

        assert result == {"lines": ["line 7", "line 8", "line 9"], "total": 10, "showing": 3}

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        service = LogStreamService(tmp_path / "nope.log")
        result = await service.fetch_logs(500)
        assert result["lines"] == []
        assert result["total"] == 0


class TestStreaming:
    """Test live tailing"""

    @pytest.fixture
    def service(self, tmp_path):
        svc = LogStreamService(tmp_path / "logs" / "app.log", poll_interval=0.05)
        yield svc
        svc.shutdown()

    @pytest.mark.asyncio
    async def test_start_creates_file_and_delivers(self, service):
        received = []
        lock = threading.Lock()

        def on_batch(batch):
            with lock:
                received.extend(batch.lines)

        service.subscribe(on_batch)
        await service.start_stream()

        assert await service.is_streaming()
        assert service.log_path.exists()

        append(service.log_path, "hello\nworld\n")

        assert await wait_for(lambda: len(received) == 2)
        assert received == ["hello", "world"]

    @pytest.mark.asyncio
    async def test_existing_content_is_not_redelivered(self, service):
        service.log_path.parent.mkdir(parents=True)
        service.log_path.write_text("before start\n", encoding="utf-8")
        received = []
        service.subscribe(lambda batch: received.extend(batch.lines))

        await service.start_stream()
        append(service.log_path, "after start\n")

        assert await wait_for(lambda: received == ["after start"])

    @pytest.mark.asyncio
    async def test_batches_are_sequenced(self, service):
        seqs = []
        service.subscribe(lambda batch: seqs.append(batch.seq))
        await service.start_stream()

        append(service.log_path, "one\n")
        assert await wait_for(lambda: len(seqs) == 1)
        append(service.log_path, "two\n")
        assert await wait_for(lambda: len(seqs) == 2)

        assert seqs == [1, 2]

    @pytest.mark.asyncio
    async def test_cancelled_subscription_receives_nothing(self, service):
        received = []
        subscription = service.subscribe(lambda batch: received.extend(batch.lines))
        await service.start_stream()
        subscription.cancel()

        append(service.log_path, "ignored\n")
        await asyncio.sleep(0.3)

        assert received == []

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_block_others(self, service):
        received = []

        def broken(batch):
            raise RuntimeError("boom")

        service.subscribe(broken)
        service.subscribe(lambda batch: received.extend(batch.lines))
        await service.start_stream()

        append(service.log_path, "still delivered\n")

        assert await wait_for(lambda: received == ["still delivered"])

    @pytest.mark.asyncio
    async def test_stop(self, service):
        await service.start_stream()
        await service.stop_stream()
        assert not await service.is_streaming()

    @pytest.mark.asyncio
    async def test_start_and_stop_run_off_the_event_loop(self, service, mocker):
        loop_thread = threading.get_ident()
        threads = []
        open_stream = service._open_stream
        close_stream = service._close_stream

        def record(method):
            def wrapper():
                threads.append(threading.get_ident())
                method()
            return wrapper

        mocker.patch.object(service, "_open_stream", side_effect=record(open_stream))
        mocker.patch.object(service, "_close_stream", side_effect=record(close_stream))

        await service.start_stream()
        await service.stop_stream()

        assert len(threads) == 2
        assert loop_thread not in threads

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self, service):
        with pytest.raises(StreamUnavailable):
            await service.stop_stream()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, service):
        await service.start_stream()
        observer = service._observer
        await service.start_stream()
        assert service._observer is observer

    @pytest.mark.asyncio
    async def test_unusable_path(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("", encoding="utf-8")
        service = LogStreamService(blocker / "app.log")

        with pytest.raises(StreamUnavailable):
            await service.start_stream()
        assert not await service.is_streaming()
