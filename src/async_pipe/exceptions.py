"""Exception hierarchy for in-memory pipes."""

from __future__ import annotations


class PipeError(Exception):
    """
    Base exception for all pipe errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class PipeBrokenError(PipeError, BrokenPipeError):
    """
    Raised when writing to a pipe whose reader end is closed.

    Also a builtin `BrokenPipeError`, so callers that handle OS pipes the usual
    way handle this one too. The condition is terminal: retrying never succeeds.
    """


class PipeClosedError(PipeError, ValueError):
    """
    Raised when a handle is used after it was closed.

    This is caller misuse, like I/O on a closed file object, not a stream condition.

    Attributes:
        end: Which handle was misused ("reader" or "writer").
    """

    def __init__(self, end: str) -> None:
        self.end = end
        super().__init__(f"I/O operation on closed pipe {end}")
