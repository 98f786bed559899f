"""Tests for the write half of a pipe."""

from __future__ import annotations

import asyncio
import gc
import logging
from collections.abc import Callable

import pytest

from async_pipe import PipeBrokenError, PipeClosedError, PipeReader, PipeWriter
from tests.async_pipe.helpers import settle

PipeFactory = Callable[..., tuple[PipeWriter, PipeReader]]


class TestWrite:
    """Tests for PipeWriter.write()."""

    def test_write_returns_accepted_count(self, make_pipe: PipeFactory) -> None:
        """An unbounded write is accepted in full."""

        async def run_test() -> int:
            writer, _reader = make_pipe()
            return await writer.write(b"hello")

        assert asyncio.run(run_test()) == 5

    def test_partial_write_on_bounded_pipe(self, make_pipe: PipeFactory) -> None:
        """A bounded write may accept fewer bytes than offered."""

        async def run_test() -> int:
            writer, _reader = make_pipe(capacity=3)
            return await writer.write(b"hello")

        assert asyncio.run(run_test()) == 3

    def test_write_accepts_any_bytes_like(self, make_pipe: PipeFactory) -> None:
        """bytearray and memoryview are accepted like bytes."""

        async def run_test() -> bytes:
            writer, reader = make_pipe()
            await writer.write(bytearray(b"ab"))
            await writer.write(memoryview(b"cd"))
            writer.close()
            return await reader.read()

        assert asyncio.run(run_test()) == b"abcd"

    def test_write_suspends_while_full(self, make_pipe: PipeFactory) -> None:
        """A write on a full pipe waits for the reader."""

        async def run_test() -> None:
            writer, reader = make_pipe(capacity=2)
            await writer.write(b"ab")

            task = asyncio.create_task(writer.write(b"cd"))
            await settle()
            assert not task.done()
            assert writer._state._pending_writer is not None

            assert await reader.read(1) == b"a"
            assert await asyncio.wait_for(task, timeout=1.0) == 1

        asyncio.run(run_test())

    def test_write_after_reader_closed_raises(self, make_pipe: PipeFactory) -> None:
        """A write to a pipe with no reader fails at once."""

        async def run_test() -> None:
            writer, reader = make_pipe()
            reader.close()
            with pytest.raises(PipeBrokenError):
                await asyncio.wait_for(writer.write(b"data"), timeout=1.0)

        asyncio.run(run_test())

    def test_suspended_write_fails_when_reader_closes(self, make_pipe: PipeFactory) -> None:
        """Closing the reader wakes a waiting writer with a broken pipe."""

        async def run_test() -> None:
            writer, reader = make_pipe(capacity=1)
            await writer.write(b"a")
            task = asyncio.create_task(writer.write(b"b"))
            await settle()
            assert not task.done()

            reader.close()

            with pytest.raises(PipeBrokenError):
                await asyncio.wait_for(task, timeout=1.0)
            assert writer.is_broken

        asyncio.run(run_test())

    def test_write_after_own_close_raises(self, make_pipe: PipeFactory) -> None:
        """Using a closed writer is misuse."""

        async def run_test() -> None:
            writer, _reader = make_pipe()
            writer.close()
            with pytest.raises(PipeClosedError):
                await writer.write(b"data")
            with pytest.raises(PipeClosedError):
                await writer.flush()

        asyncio.run(run_test())

    def test_cancelled_write_is_retryable(self, make_pipe: PipeFactory) -> None:
        """Cancelling a waiting write leaves the pipe usable."""

        async def run_test() -> None:
            writer, reader = make_pipe(capacity=2)
            await writer.write(b"ab")
            task = asyncio.create_task(writer.write(b"cd"))
            await settle()

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            assert writer._state._pending_writer is None

            assert await reader.read() == b"ab"
            assert await writer.write(b"cd") == 2
            assert await reader.read() == b"cd"

        asyncio.run(run_test())

    def test_write_timeout_composes(self, make_pipe: PipeFactory) -> None:
        """External timeouts interrupt a write that cannot make progress."""

        async def run_test() -> None:
            writer, _reader = make_pipe(capacity=1)
            await writer.write(b"a")
            with pytest.raises(TimeoutError):
                async with asyncio.timeout(0.01):
                    await writer.write(b"b")

        asyncio.run(run_test())


class TestWriteAll:
    """Tests for PipeWriter.write_all()."""

    def test_write_all_waits_for_reader(self, make_pipe: PipeFactory) -> None:
        """write_all pushes a payload larger than the capacity."""

        async def run_test() -> bytes:
            writer, reader = make_pipe(capacity=4)
            task = asyncio.create_task(writer.write_all(b"0123456789"))
            await settle()
            assert not task.done()
            assert writer._state.buffered == 4

            received = bytearray()
            while len(received) < 10:
                received += await reader.read()
            await task
            return bytes(received)

        assert asyncio.run(run_test()) == b"0123456789"

    def test_write_all_empty(self, make_pipe: PipeFactory) -> None:
        """Writing nothing completes at once."""

        async def run_test() -> None:
            writer, _reader = make_pipe(capacity=1)
            await writer.write(b"x")
            await asyncio.wait_for(writer.write_all(b""), timeout=1.0)

        asyncio.run(run_test())

    def test_write_all_broken_midway(self, make_pipe: PipeFactory) -> None:
        """A reader closing partway through fails the rest of the payload."""

        async def run_test() -> None:
            writer, reader = make_pipe(capacity=2)
            task = asyncio.create_task(writer.write_all(b"abcdef"))
            await settle()
            assert await reader.read(2) == b"ab"
            await settle()
            reader.close()
            with pytest.raises(PipeBrokenError):
                await asyncio.wait_for(task, timeout=1.0)

        asyncio.run(run_test())


class TestClose:
    """Tests for closing and disposing of the writer."""

    def test_close_is_idempotent(self, make_pipe: PipeFactory) -> None:
        """Closing twice is safe."""
        writer, _reader = make_pipe()
        writer.close()
        writer.close()
        assert writer.is_closed

    def test_close_wakes_suspended_write(self, make_pipe: PipeFactory) -> None:
        """Closing the writer while a write waits on a full pipe fails that write."""

        async def run_test() -> None:
            writer, reader = make_pipe(capacity=1)
            await writer.write(b"a")
            task = asyncio.create_task(writer.write(b"b"))
            await settle()
            assert not task.done()

            writer.close()

            with pytest.raises(PipeClosedError):
                await asyncio.wait_for(task, timeout=1.0)
            assert await reader.read() == b"a"
            assert await reader.read() == b""

        asyncio.run(run_test())

    def test_shutdown_closes(self, make_pipe: PipeFactory) -> None:
        """shutdown() is an awaitable close()."""

        async def run_test() -> bool:
            writer, _reader = make_pipe()
            await writer.shutdown()
            return writer._state.writer_closed

        assert asyncio.run(run_test()) is True

    def test_flush_is_noop(self, make_pipe: PipeFactory) -> None:
        """Flushing changes nothing."""

        async def run_test() -> int:
            writer, _reader = make_pipe()
            await writer.write(b"abc")
            await writer.flush()
            return writer._state.buffered

        assert asyncio.run(run_test()) == 3

    def test_context_manager_closes(self, make_pipe: PipeFactory) -> None:
        """Leaving an async with block closes the writer."""

        async def run_test() -> PipeWriter:
            writer, _reader = make_pipe()
            async with writer:
                await writer.write(b"x")
            return writer

        assert asyncio.run(run_test()).is_closed

    def test_drop_closes_write_end(self, make_pipe: PipeFactory) -> None:
        """Garbage collecting the writer closes its end."""
        writer, reader = make_pipe()
        state = writer._state
        del writer
        gc.collect()
        assert state.writer_closed
        assert not reader.is_closed

    def test_finalizer_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing close during finalization logs a warning instead of raising."""

        class ExplodingState:
            def close_write(self) -> None:
                raise RuntimeError("state is gone")

        writer = PipeWriter(ExplodingState())  # type: ignore[arg-type]
        with caplog.at_level(logging.WARNING, logger="async_pipe.writer"):
            del writer
            gc.collect()

        assert "state is gone" in caplog.text

    def test_repr(self, make_pipe: PipeFactory) -> None:
        """The repr shows the open/closed status."""
        writer, _reader = make_pipe()
        assert "open" in repr(writer)
        writer.close()
        assert "closed" in repr(writer)
