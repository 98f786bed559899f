"""
In-memory asynchronous pipes.

A pipe is a unidirectional byte stream with exactly one writer end and one reader
end, usable by asyncio tasks on the same or on different event loops and threads.
No OS descriptor is involved.

Lifecycle:
    - Open: both ends open. Writes buffer bytes, reads drain them.
    - Writer closed: the reader drains what is left, then reads return b"".
    - Reader closed: every pending or future write raises PipeBrokenError.

Example:
    writer, reader = pipe()

    async def produce() -> None:
        async with writer:
            await writer.write_all(b"hello world")

    task = asyncio.create_task(produce())
    data = bytearray()
    await reader.read_to_end(data)
    await task
"""

from __future__ import annotations

from .config import DEFAULT_CAPACITY, DEFAULT_READ_CHUNK, PipeConfig
from .exceptions import PipeBrokenError, PipeClosedError, PipeError
from .protocols import AsyncByteSink, AsyncByteSource, copy_stream
from .reader import PipeReader
from .state import PipeState
from .writer import PipeWriter


def pipe(
    config: PipeConfig | None = None,
    *,
    capacity: int | None = None,
) -> tuple[PipeWriter, PipeReader]:
    """
    Create a connected writer and reader.

    Args:
        config: Pipe configuration. Defaults to an unbounded pipe.
        capacity: Shortcut for `PipeConfig(capacity=capacity)`.

    Returns:
        The writer end and the reader end, sharing one buffer.

    Raises:
        ValueError: If both `config` and `capacity` are given.
        pydantic.ValidationError: If `capacity` is not a positive integer.
    """
    if config is not None and capacity is not None:
        raise ValueError("Pass either config or capacity, not both")
    if config is None:
        config = PipeConfig(capacity=capacity)

    state = PipeState(config=config)
    return PipeWriter(state), PipeReader(state)


__all__ = [
    # Constants
    "DEFAULT_CAPACITY",
    "DEFAULT_READ_CHUNK",
    # Configuration
    "PipeConfig",
    # Errors
    "PipeError",
    "PipeBrokenError",
    "PipeClosedError",
    # Capabilities
    "AsyncByteSink",
    "AsyncByteSource",
    "copy_stream",
    # Pipe
    "PipeReader",
    "PipeWriter",
    "pipe",
]
