"""
Shared state of a pipe and the suspension/wakeup protocol.

Both handles of a pipe reference one `PipeState`. It owns the byte buffer, the
closed flag of each end, and one waker slot per end. Every mutation happens under
a `threading.Lock`, so the two ends may be driven from event loops in different
threads.

Suspension protocol (writer side shown, the reader side is symmetric):
    1. `try_write` appends what fits. `None` means the buffer is full.
    2. The writer creates a `Waker` and calls `register_pending_writer`.
       Registration re-checks readiness under the lock. If space was freed in
       between, nothing is stored and the writer retries at once.
    3. Otherwise the writer awaits the waker's future.
    4. `try_read` (or `close_read`) takes the waker out of its slot and fires it.
       Closing an end fires both slots, so a task parked on the end being closed
       wakes up too and finds its handle closed.
    5. The writer wakes up and goes back to step 1.

Wakers are removed under the lock and fired after it is released. Firing goes
through `loop.call_soon_threadsafe`, so the lock is never held across a
suspension and never taken by a callback.

Single slot per side:
    The pipe is single-producer, single-consumer. A second task waiting on the same
    end replaces the first task's waker. The replaced task is never woken by the
    counterpart and stays suspended until it is cancelled. Callers sharing an end
    between tasks must serialize access.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field

from .config import PipeConfig
from .exceptions import PipeBrokenError, PipeClosedError

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class Waker:
    """
    The stored continuation of one suspended pipe operation.

    Wraps a future bound to the event loop of the suspended task. The waker can
    be fired from any thread, any number of times. Only the first firing has an
    effect, and firing after the future was cancelled does nothing.
    """

    loop: asyncio.AbstractEventLoop
    """Event loop the suspended task runs on."""

    future: asyncio.Future[None]
    """Future the suspended task awaits."""

    @classmethod
    def for_current_task(cls) -> Waker:
        """Create a waker for the task running on the current event loop."""
        loop = asyncio.get_running_loop()
        return cls(loop=loop, future=loop.create_future())

    def wake(self) -> None:
        """Resume the suspended task."""
        if self.loop.is_closed():
            # The task can never run again, so there is nothing to resume.
            return
        try:
            self.loop.call_soon_threadsafe(_resolve, self.future)
        except RuntimeError:
            # Lost a race with loop shutdown.
            logger.debug("Dropping wake-up for a closed event loop")

    async def wait(self) -> None:
        """Suspend until woken."""
        await self.future


def _resolve(future: asyncio.Future[None]) -> None:
    """Complete a waker future unless it was cancelled or already woken."""
    if not future.done():
        future.set_result(None)


def _wake_all(wakers: tuple[Waker | None, ...]) -> None:
    for waker in wakers:
        if waker is not None:
            waker.wake()


@dataclass(slots=True, eq=False, weakref_slot=True)
class PipeState:
    """
    Lock-guarded buffer and close flags shared by a writer and a reader.

    Return conventions of the non-blocking operations:
        - An int is the number of bytes transferred. For reads, 0 is end-of-stream.
        - None means "would block": the caller should register a waker and wait.
    """

    config: PipeConfig = field(default_factory=PipeConfig)
    """Capacity policy of this pipe."""

    _buffer: bytearray = field(default_factory=bytearray)
    """Bytes written but not yet read, oldest first."""

    _writer_closed: bool = False
    """True once the writer end is closed. Never reverts."""

    _reader_closed: bool = False
    """True once the reader end is closed. Never reverts."""

    _pending_writer: Waker | None = None
    """Writer suspended on a full buffer."""

    _pending_reader: Waker | None = None
    """Reader suspended on an empty buffer."""

    _lock: threading.Lock = field(default_factory=threading.Lock)
    """Guards every field above."""

    @property
    def capacity(self) -> int | None:
        """Maximum buffered bytes, or None if unbounded."""
        return self.config.capacity

    @property
    def buffered(self) -> int:
        """Number of bytes waiting to be read."""
        with self._lock:
            return len(self._buffer)

    @property
    def available(self) -> int | None:
        """Free buffer space in bytes, or None if unbounded."""
        capacity = self.config.capacity
        if capacity is None:
            return None
        with self._lock:
            return capacity - len(self._buffer)

    @property
    def writer_closed(self) -> bool:
        """True once the writer end is closed."""
        with self._lock:
            return self._writer_closed

    @property
    def reader_closed(self) -> bool:
        """True once the reader end is closed."""
        with self._lock:
            return self._reader_closed

    @property
    def is_drained(self) -> bool:
        """True if the writer is closed and every byte has been read."""
        with self._lock:
            return self._writer_closed and not self._buffer

    def try_write(self, data: bytes | bytearray | memoryview) -> int | None:
        """
        Append as much of `data` as the capacity allows.

        Args:
            data: Bytes to append.

        Returns:
            Number of bytes accepted, or None if the buffer is full.

        Raises:
            PipeBrokenError: If the reader end is closed.
            PipeClosedError: If the writer end is closed.
        """
        with self._lock:
            if self._writer_closed:
                raise PipeClosedError("writer")
            if self._reader_closed:
                raise PipeBrokenError("Pipe reader end is closed")

            accepted = len(data)
            capacity = self.config.capacity
            if capacity is not None:
                accepted = min(accepted, capacity - len(self._buffer))

            if accepted == 0:
                return None if len(data) else 0

            self._buffer += data[:accepted]
            waker, self._pending_reader = self._pending_reader, None

        if waker is not None:
            waker.wake()
        return accepted

    def try_read(self, dest: bytearray | memoryview) -> int | None:
        """
        Move up to `len(dest)` bytes from the front of the buffer into `dest`.

        Args:
            dest: Writable buffer to fill.

        Returns:
            Number of bytes copied. 0 means end-of-stream (or an empty `dest`).
            None if the buffer is empty and the writer is still open.

        Raises:
            PipeClosedError: If the reader end is closed.
        """
        with self._lock:
            if self._reader_closed:
                raise PipeClosedError("reader")
            if not self._buffer:
                if self._writer_closed or len(dest) == 0:
                    return 0
                return None

            filled = min(len(dest), len(self._buffer))
            dest[:filled] = self._buffer[:filled]
            del self._buffer[:filled]
            waker = None
            if filled:
                waker, self._pending_writer = self._pending_writer, None

        if waker is not None:
            waker.wake()
        return filled

    def register_pending_writer(self, waker: Waker) -> bool:
        """
        Park a writer until buffer space frees up or the reader closes.

        Replaces any waker already stored for the writer end.

        Returns:
            True if the waker was stored. False if the writer would not block
            right now, in which case it should retry instead of waiting.
        """
        with self._lock:
            if self._writer_closed or self._reader_closed or not self.config.is_bounded:
                return False
            if len(self._buffer) < self.config.capacity:
                return False
            self._pending_writer = waker
            return True

    def register_pending_reader(self, waker: Waker) -> bool:
        """
        Park a reader until data arrives or the writer closes.

        Replaces any waker already stored for the reader end.

        Returns:
            True if the waker was stored. False if the reader would not block
            right now, in which case it should retry instead of waiting.
        """
        with self._lock:
            if self._reader_closed or self._writer_closed or self._buffer:
                return False
            self._pending_reader = waker
            return True

    def discard_pending_writer(self, waker: Waker) -> None:
        """Forget `waker` if it is still the stored writer waker."""
        with self._lock:
            if self._pending_writer is waker:
                self._pending_writer = None

    def discard_pending_reader(self, waker: Waker) -> None:
        """Forget `waker` if it is still the stored reader waker."""
        with self._lock:
            if self._pending_reader is waker:
                self._pending_reader = None

    def close_write(self) -> None:
        """
        Mark the writer end closed and wake both pending wakers.

        The reader drains what is buffered, then observes end-of-stream. A write
        still suspended on this end wakes up to find its handle closed.
        """
        with self._lock:
            if self._writer_closed:
                return
            self._writer_closed = True
            wakers = (self._pending_reader, self._pending_writer)
            self._pending_reader = self._pending_writer = None

        logger.debug("Pipe writer closed")
        _wake_all(wakers)

    def close_read(self) -> None:
        """
        Mark the reader end closed and wake both pending wakers.

        Buffered bytes can no longer be read by anyone and are discarded.
        The woken writer observes a broken pipe. A read still suspended on this
        end wakes up to find its handle closed.
        """
        with self._lock:
            if self._reader_closed:
                return
            self._reader_closed = True
            discarded = len(self._buffer)
            self._buffer.clear()
            wakers = (self._pending_writer, self._pending_reader)
            self._pending_writer = self._pending_reader = None

        logger.debug("Pipe reader closed, discarded %d buffered bytes", discarded)
        _wake_all(wakers)
