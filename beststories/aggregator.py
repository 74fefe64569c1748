from __future__ import annotations

import asyncio
from typing import Optional

from beststories.constants import MAX_CANDIDATES, MAX_CONCURRENT_FETCHES
from beststories.fetching import CandidateResolver, ItemFetcher
from beststories.logging_config import get_logger
from beststories.models import Story

logger = get_logger(__name__)


class TopStoriesAggregator:
    """
    Fetches the candidate list, resolves each item through a bounded worker
    pool and returns the highest-scoring stories.

    The fetch slots are shared by every top_stories call on this instance, so
    at most MAX_CONCURRENT_FETCHES item fetches are in flight at any time.
    """

    def __init__(
        self,
        resolver: CandidateResolver,
        fetcher: ItemFetcher,
        max_candidates: int = MAX_CANDIDATES,
        max_concurrency: int = MAX_CONCURRENT_FETCHES,
    ) -> None:
        self.resolver = resolver
        self.fetcher = fetcher
        self.max_candidates = max_candidates
        self.max_concurrency = max_concurrency
        self._slots = asyncio.Semaphore(max_concurrency)

    async def _worker(
        self,
        queue: asyncio.Queue[tuple[int, int]],
        results: list[Optional[Story]],
    ) -> None:
        while True:
            try:
                pos, item_id = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            async with self._slots:
                results[pos] = await self.fetcher.resolve_item(item_id)

    async def fetch_all(self, ids: list[int]) -> list[Optional[Story]]:
        """Resolve every id; results line up with ids by position."""
        results: list[Optional[Story]] = [None] * len(ids)
        if not ids:
            return results

        queue: asyncio.Queue[tuple[int, int]] = asyncio.Queue()
        for pos, item_id in enumerate(ids):
            queue.put_nowait((pos, item_id))

        workers = [
            asyncio.create_task(self._worker(queue, results))
            for _ in range(min(self.max_concurrency, len(ids)))
        ]
        await asyncio.gather(*workers)
        return results

    async def top_stories(self, count: int) -> list[Story]:
        ids = await self.resolver.resolve_candidates()
        if not ids:
            logger.info("no candidate ids available")
            return []

        ids = ids[: self.max_candidates]
        results = await self.fetch_all(ids)
        stories = [s for s in results if s is not None]

        # sorted() is stable and results follow candidate order, so equal
        # scores keep their upstream position.
        ranked = sorted(stories, key=lambda s: s.score, reverse=True)
        logger.info(
            "ranked top stories",
            candidates=len(ids),
            valid=len(stories),
            count=count,
        )
        return ranked[:count]
