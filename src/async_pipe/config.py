"""
Pipe configuration.

A pipe has a single tunable policy, its capacity. Unbounded pipes never apply
backpressure; bounded pipes suspend the writer once `capacity` bytes are buffered
and resume it as the reader drains.
"""

from typing import Final

from pydantic import Field

from async_pipe.types import StrictBaseModel

DEFAULT_CAPACITY: Final[int | None] = None
"""Buffered byte limit. None means unbounded."""

DEFAULT_READ_CHUNK: Final = 64 * 1024
"""Chunk size used when draining a pipe to the end or iterating over it."""


class PipeConfig(StrictBaseModel):
    """Runtime configuration for a pipe."""

    capacity: int | None = Field(default=DEFAULT_CAPACITY, ge=1)
    """Maximum bytes held in the shared buffer before writers are suspended."""

    read_chunk: int = Field(default=DEFAULT_READ_CHUNK, ge=1)
    """Bytes requested per read by `read_to_end` and async iteration."""

    @property
    def is_bounded(self) -> bool:
        """True if writers can be suspended by backpressure."""
        return self.capacity is not None
