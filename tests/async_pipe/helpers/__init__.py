"""Test helpers for async_pipe unit tests."""

from __future__ import annotations

import asyncio

from .mocks import CollectingSink, RecordingWaker, SlowSource


async def settle(rounds: int = 5) -> None:
    """Give every runnable task on the current loop a few chances to run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


__all__ = [
    "CollectingSink",
    "RecordingWaker",
    "SlowSource",
    "settle",
]
