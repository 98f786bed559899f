"""
Byte sink and byte source capabilities.

Code that only needs "somewhere to write bytes" or "somewhere to read bytes"
should depend on these protocols rather than on the pipe handles. Any object with
matching coroutines fits, which lets tests swap in fakes such as a slow producer.

The runtime_checkable decorator allows isinstance() checks.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .config import DEFAULT_READ_CHUNK


@runtime_checkable
class AsyncByteSink(Protocol):
    """
    An asynchronous destination for a byte stream.

    Example usage:
        await sink.write_all(b"payload")
        await sink.flush()
        await sink.shutdown()
    """

    async def write(self, data: bytes) -> int:
        """
        Write some of `data`, suspending while the sink cannot accept any.

        Returns:
            Number of bytes accepted, possibly fewer than len(data).

        Raises:
            BrokenPipeError: If the consuming side is gone.
        """
        ...

    async def write_all(self, data: bytes) -> None:
        """
        Write every byte of `data`.

        Raises:
            BrokenPipeError: If the consuming side is gone.
        """
        ...

    async def flush(self) -> None:
        """Push out any bytes held by the sink itself."""
        ...

    async def shutdown(self) -> None:
        """Signal that no more bytes will be written."""
        ...


@runtime_checkable
class AsyncByteSource(Protocol):
    """
    An asynchronous origin of a byte stream.

    Reads may return fewer bytes than asked for. An empty read means
    end-of-stream and is not an error.
    """

    async def readinto(self, dest: bytearray | memoryview) -> int:
        """
        Fill the front of `dest`, suspending while no bytes are available.

        Returns:
            Number of bytes stored. 0 means end-of-stream.
        """
        ...

    async def read(self, n: int = -1) -> bytes:
        """
        Read up to `n` bytes. -1 means whatever is available.

        Returns:
            Read data. Empty bytes indicates end-of-stream.
        """
        ...

    async def read_to_end(self, sink: bytearray) -> int:
        """
        Append everything until end-of-stream to `sink`.

        Returns:
            Number of bytes appended.
        """
        ...


async def copy_stream(
    source: AsyncByteSource,
    sink: AsyncByteSink,
    chunk_size: int = DEFAULT_READ_CHUNK,
) -> int:
    """
    Pump every byte from `source` into `sink` until end-of-stream.

    The sink is neither flushed nor shut down. That stays with the caller.

    Args:
        source: Stream to drain.
        sink: Stream to fill.
        chunk_size: Maximum bytes moved per read.

    Returns:
        Number of bytes copied.

    Raises:
        BrokenPipeError: If the sink's consumer goes away mid-copy.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    buffer = bytearray(chunk_size)
    view = memoryview(buffer)
    total = 0
    while True:
        filled = await source.readinto(view)
        if filled == 0:
            return total
        await sink.write_all(bytes(view[:filled]))
        total += filled
