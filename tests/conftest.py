import asyncio
from typing import Optional

import pytest

from beststories.cache import ExpiringCache
from beststories.models import ErrorKind, ItemRecord
from beststories.source import UpstreamError


class FakeClock:
    """Manually advanced clock for forcing cache expiry."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSource:
    """
    Stand-in for SourceClient.

    `items` maps id -> record, or -> an exception to raise. `delays` maps id
    -> seconds to sleep before answering (falling back to `delay`). Counts
    calls and tracks the peak number of concurrent fetch_item bodies.
    """

    def __init__(
        self,
        ids: list[int] | Exception | None = None,
        items: Optional[dict[int, ItemRecord | Exception | None]] = None,
        delay: float = 0.0,
        delays: Optional[dict[int, float]] = None,
        candidate_delay: float = 0.0,
    ) -> None:
        self.ids = ids if ids is not None else []
        self.items = items or {}
        self.delay = delay
        self.delays = delays or {}
        self.candidate_delay = candidate_delay
        self.candidate_calls = 0
        self.item_calls: dict[int, int] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_candidate_ids(self) -> list[int]:
        self.candidate_calls += 1
        if self.candidate_delay:
            await asyncio.sleep(self.candidate_delay)
        if isinstance(self.ids, Exception):
            raise self.ids
        return list(self.ids)

    async def fetch_item(self, item_id: int) -> Optional[ItemRecord]:
        self.item_calls[item_id] = self.item_calls.get(item_id, 0) + 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(item_id, self.delay)
            if delay:
                await asyncio.sleep(delay)
            result = self.items.get(item_id)
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> ExpiringCache:
    return ExpiringCache(clock=clock)


@pytest.fixture
def fake_source():
    """Factory for FakeSource doubles."""
    return FakeSource


@pytest.fixture
def upstream_error():
    """Factory: upstream_error(ErrorKind.NETWORK) -> UpstreamError."""

    def make(kind: ErrorKind = ErrorKind.NETWORK, message: str = "connection refused"):
        return UpstreamError(kind, message)

    return make


@pytest.fixture
def make_record():
    """Factory for raw item records: make_record("Title", 10, by="pg")."""

    def make(title: str = "A story", score: int = 1, **extra) -> ItemRecord:
        rec: ItemRecord = {"title": title, "score": score, "type": "story"}
        rec.update(extra)  # type: ignore[typeddict-item]
        return rec

    return make
