"""
Shared pytest fixtures for pipe tests.

Provides pipe and shared-state factories.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from async_pipe import PipeConfig, PipeReader, PipeWriter, pipe
from async_pipe.state import PipeState


@pytest.fixture
def make_pipe() -> Callable[..., tuple[PipeWriter, PipeReader]]:
    """
    Factory fixture for connected writer/reader pairs.

    Returns a callable that creates pipes with an optional capacity.
    """

    def _make(capacity: int | None = None) -> tuple[PipeWriter, PipeReader]:
        return pipe(capacity=capacity)

    return _make


@pytest.fixture
def make_state() -> Callable[..., PipeState]:
    """
    Factory fixture for bare shared state, without handles.

    Returns a callable that creates state with an optional capacity.
    """

    def _make(capacity: int | None = None) -> PipeState:
        return PipeState(config=PipeConfig(capacity=capacity))

    return _make
