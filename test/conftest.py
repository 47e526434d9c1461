"""
Pytest configuration and shared fixtures for the Exploding Kitten client.
"""

import asyncio
import os
import sys

import pytest

# Add src to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from exploding_kitten.client.session import SessionStore  # noqa: E402

_CLOSE = object()


class FakeChannel:
    """Stand-in for a websocket connection: async-iterable frames + close()."""

    def __init__(self):
        self._queue = None
        self.closed = False

    @property
    def queue(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue()
        return self._queue

    def push(self, frame) -> None:
        self.queue.put_nowait(frame)

    def fail(self, exc: BaseException) -> None:
        self.queue.put_nowait(exc)

    def drop(self) -> None:
        """Server side close."""
        self.queue.put_nowait(_CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.queue.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.queue.put_nowait(_CLOSE)


class FakeConnector:
    """Returns the queued outcomes in order; exceptions are raised, channels returned."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0
        self.urls = []
        self.channels = []

    async def __call__(self, url):
        self.calls += 1
        self.urls.append(url)
        outcome = self.outcomes.pop(0) if self.outcomes else FakeChannel()
        if isinstance(outcome, BaseException):
            raise outcome
        self.channels.append(outcome)
        return outcome


async def settle(rounds: int = 10) -> None:
    """Let pending callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def sample_leaderboard():
    return [
        {"username": "bob", "wins": 3, "losses": 1},
        {"username": "carol", "wins": "2", "losses": "5"},
    ]
