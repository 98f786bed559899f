"""The write half of a pipe."""

from __future__ import annotations

import logging
from types import TracebackType

from .exceptions import PipeBrokenError, PipeClosedError
from .state import PipeState, Waker

logger = logging.getLogger(__name__)


class PipeWriter:
    """
    The producer end of a pipe.

    Writes append to the shared buffer and never suspend on an unbounded pipe.
    On a bounded pipe, a write suspends while the buffer is full and resumes as
    the reader drains it.

    Closing the writer lets the reader drain what is buffered and then observe
    end-of-stream. The writer is also closed when it is garbage collected.

    Usage:
        writer, reader = pipe()
        async with writer:
            await writer.write_all(b"hello world")
    """

    __slots__ = ("_state", "_closed", "__weakref__")

    def __init__(self, state: PipeState) -> None:
        """Initialize the writer over the given shared state."""
        self._state = state
        self._closed = False

    def __repr__(self) -> str:
        status = "closed" if self._closed else "open"
        return f"<PipeWriter {status} buffered={self._state.buffered}>"

    @property
    def is_closed(self) -> bool:
        """True once this writer was closed."""
        return self._closed

    @property
    def is_broken(self) -> bool:
        """True if the reader end is closed and writes can never succeed."""
        return self._state.reader_closed

    def _check_open(self) -> None:
        if self._closed:
            raise PipeClosedError("writer")

    async def write(self, data: bytes | bytearray | memoryview) -> int:
        """
        Write as much of `data` as the pipe accepts.

        Suspends while a bounded pipe is full. Returns as soon as at least one
        byte was accepted.

        Args:
            data: Bytes to write.

        Returns:
            Number of bytes accepted. 0 only if `data` is empty.

        Raises:
            PipeBrokenError: If the reader end is closed, before or during the wait.
            PipeClosedError: If this writer was already closed.
        """
        view = memoryview(data).cast("B")
        while True:
            self._check_open()
            try:
                accepted = self._state.try_write(view)
            except PipeBrokenError:
                logger.debug("Write of %d bytes hit a broken pipe", len(view))
                raise

            if accepted is not None:
                return accepted

            await self._park()

    async def write_all(self, data: bytes | bytearray | memoryview) -> None:
        """
        Write every byte of `data`, suspending as often as needed.

        Raises:
            PipeBrokenError: If the reader end closes before all bytes are written.
                Bytes written before that may or may not have been read.
            PipeClosedError: If this writer was already closed.
        """
        view = memoryview(data).cast("B")
        while view:
            accepted = await self.write(view)
            view = view[accepted:]

    async def flush(self) -> None:
        """
        Flush the writer.

        Written bytes go straight into the shared buffer, so there is nothing to push.
        """
        self._check_open()

    async def _park(self) -> None:
        """Wait until the reader frees buffer space or closes."""
        waker = Waker.for_current_task()
        if not self._state.register_pending_writer(waker):
            return
        try:
            await waker.wait()
        finally:
            self._state.discard_pending_writer(waker)

    def close(self) -> None:
        """
        Close the writer. Safe to call more than once.

        The reader still receives every buffered byte, then end-of-stream.
        """
        if self._closed:
            return
        self._closed = True
        self._state.close_write()

    async def shutdown(self) -> None:
        """Close the writer (awaitable alias of `close`)."""
        self.close()

    async def __aenter__(self) -> PipeWriter:
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
            logger.warning("PipeWriter: failed to close the pipe on finalization: %s", exc)
