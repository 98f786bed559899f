"""The read half of a pipe."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType

from .exceptions import PipeClosedError
from .state import PipeState, Waker

logger = logging.getLogger(__name__)


class PipeReader:
    """
    The consumer end of a pipe.

    Reads remove bytes from the front of the shared buffer and suspend while it
    is empty. Once the writer is closed and the buffer is drained, every read
    returns no data. That is end-of-stream, not an error.

    Closing the reader breaks the pipe: pending and future writes fail with
    `PipeBrokenError`. The reader is also closed when it is garbage collected.

    Usage:
        data = bytearray()
        await reader.read_to_end(data)

        async for chunk in reader:
            handle(chunk)
    """

    __slots__ = ("_state", "_closed", "__weakref__")

    def __init__(self, state: PipeState) -> None:
        """Initialize the reader over the given shared state."""
        self._state = state
        self._closed = False

    def __repr__(self) -> str:
        status = "closed" if self._closed else "open"
        return f"<PipeReader {status} buffered={self._state.buffered}>"

    @property
    def is_closed(self) -> bool:
        """True once this reader was closed."""
        return self._closed

    @property
    def at_eof(self) -> bool:
        """True if the writer is closed and nothing is left to read."""
        return self._state.is_drained

    def is_flushed(self) -> bool:
        """True if every byte written so far has been consumed by this reader."""
        return self._state.buffered == 0

    def _check_open(self) -> None:
        if self._closed:
            raise PipeClosedError("reader")

    async def readinto(self, dest: bytearray | memoryview) -> int:
        """
        Read bytes into the front of `dest`.

        Suspends while the buffer is empty and the writer is open.

        Args:
            dest: Writable buffer. At most len(dest) bytes are stored.

        Returns:
            Number of bytes stored. 0 means end-of-stream, or an empty `dest`.

        Raises:
            PipeClosedError: If this reader was already closed.
        """
        view = memoryview(dest).cast("B")
        if view.readonly:
            raise TypeError("readinto() requires a writable buffer")
        while True:
            self._check_open()
            filled = self._state.try_read(view)
            if filled is not None:
                return filled
            await self._park()

    async def read(self, n: int = -1) -> bytes:
        """
        Read up to `n` bytes.

        Args:
            n: Maximum bytes to read. -1 reads everything buffered at the moment
                bytes become available.

        Returns:
            At least one byte unless `n` is 0. Empty bytes indicates end-of-stream.

        Raises:
            PipeClosedError: If this reader was already closed.
        """
        while True:
            self._check_open()
            available = max(self._state.buffered, 1)
            size = min(n, available) if n >= 0 else available
            dest = bytearray(size)
            filled = self._state.try_read(dest)
            if filled is not None:
                del dest[filled:]
                return bytes(dest)
            await self._park()

    async def readexactly(self, n: int) -> bytes:
        """
        Read exactly `n` bytes.

        Raises:
            asyncio.IncompleteReadError: If end-of-stream arrives before `n`
                bytes. The bytes read so far are in its `partial` attribute.
            PipeClosedError: If this reader was already closed.
        """
        result = bytearray(n)
        view = memoryview(result)
        received = 0
        while received < n:
            filled = await self.readinto(view[received:])
            if filled == 0:
                raise asyncio.IncompleteReadError(bytes(view[:received]), n)
            received += filled
        return bytes(result)

    async def read_to_end(self, sink: bytearray) -> int:
        """
        Read until end-of-stream, appending everything to `sink`.

        Returns:
            Number of bytes appended.

        Raises:
            PipeClosedError: If this reader was already closed.
        """
        chunk = bytearray(self._state.config.read_chunk)
        view = memoryview(chunk)
        total = 0
        while True:
            filled = await self.readinto(view)
            if filled == 0:
                return total
            sink.extend(view[:filled])
            total += filled

    async def _park(self) -> None:
        """Wait until the writer adds bytes or closes."""
        waker = Waker.for_current_task()
        if not self._state.register_pending_reader(waker):
            return
        try:
            await waker.wait()
        finally:
            self._state.discard_pending_reader(waker)

    def close(self) -> None:
        """
        Close the reader. Safe to call more than once.

        Any bytes still buffered are discarded and the writer sees a broken pipe.
        """
        if self._closed:
            return
        self._closed = True
        self._state.close_read()

    def __aiter__(self) -> PipeReader:
        """Return self as async iterator."""
        return self

    async def __anext__(self) -> bytes:
        """
        Yield the next chunk of at most `read_chunk` bytes.

        Raises:
            StopAsyncIteration: At end-of-stream.
        """
        chunk = await self.read(self._state.config.read_chunk)
        if not chunk:
            raise StopAsyncIteration
        return chunk

    async def __aenter__(self) -> PipeReader:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception as exc:
            logger.warning("PipeReader: failed to close the pipe on finalization: %s", exc)
