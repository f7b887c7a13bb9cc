"""Pytest configuration and fixtures."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

import pytest

from listview.retrieval.client import FetchResult


class ManualHandle:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-time stand-in for the event loop's call_later."""

    def __init__(self):
        self.now = 0.0
        self._handles: List[ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(round(self.now + delay, 6), callback)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> List[ManualHandle]:
        return [h for h in self._handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in time order."""
        target = round(self.now + seconds, 6)
        while True:
            due = sorted((h for h in self.pending if h.when <= target), key=lambda h: h.when)
            if not due:
                break
            handle = due[0]
            self._handles.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target


@dataclass
class PendingCall:
    params: Dict[str, str]
    issued_at: float
    future: Any = field(repr=False)

    def succeed(self, rows: List[Dict[str, Any]], total_count: int) -> None:
        self.future.set_result(FetchResult(rows=rows, total_count=total_count, status_code=200))

    def fail(self, error: Exception) -> None:
        self.future.set_exception(error)


class FakeEndpoint:
    """Async fetcher whose responses are resolved by the test, in any order."""

    def __init__(self, scheduler: ManualScheduler):
        self.scheduler = scheduler
        self.calls: List[PendingCall] = []

    async def __call__(self, params):
        future = asyncio.get_running_loop().create_future()
        self.calls.append(PendingCall(params=dict(params), issued_at=self.scheduler.now, future=future))
        return await future


async def settle(rounds: int = 5) -> None:
    """Let spawned fetch tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def endpoint(scheduler):
    return FakeEndpoint(scheduler)
