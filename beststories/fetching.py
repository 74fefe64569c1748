from __future__ import annotations

import asyncio
from typing import Callable, Optional

from beststories.cache import ExpiringCache
from beststories.constants import (
    CANDIDATE_CACHE_KEY,
    CANDIDATE_CACHE_TTL,
    FETCH_TIMEOUT,
    ITEM_CACHE_KEY_PREFIX,
    ITEM_CACHE_TTL,
)
from beststories.logging_config import get_logger
from beststories.models import ErrorKind, FetchError, Story
from beststories.source import SourceClient, UpstreamError

logger = get_logger(__name__)

ErrorHook = Callable[[FetchError], None]


def _to_fetch_error(exc: Exception, item_id: Optional[int]) -> FetchError:
    if isinstance(exc, UpstreamError):
        return FetchError(kind=exc.kind, message=exc.message, item_id=item_id)
    return FetchError(
        kind=ErrorKind.TIMEOUT, message="fetch timed out", item_id=item_id
    )


class CandidateResolver:
    """Cache-aside access to the upstream candidate id list."""

    def __init__(
        self,
        client: SourceClient,
        cache: ExpiringCache,
        ttl: float = CANDIDATE_CACHE_TTL,
        timeout: float = FETCH_TIMEOUT,
        on_error: Optional[ErrorHook] = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.ttl = ttl
        self.timeout = timeout
        self.on_error = on_error

    async def resolve_candidates(self) -> list[int]:
        """Return the candidate ids, or an empty list if they cannot be fetched."""
        try:
            return await asyncio.wait_for(
                self.cache.get_or_populate(
                    CANDIDATE_CACHE_KEY, self.ttl, self.client.fetch_candidate_ids
                ),
                timeout=self.timeout,
            )
        except (UpstreamError, TimeoutError) as e:
            error = _to_fetch_error(e, None)
            logger.warning(
                "failed to fetch candidate ids", kind=error.kind.value, error=error.message
            )
            if self.on_error:
                self.on_error(error)
            return []


class ItemFetcher:
    """Cache-aside access to individual items, normalized to Story."""

    def __init__(
        self,
        client: SourceClient,
        cache: ExpiringCache,
        ttl: float = ITEM_CACHE_TTL,
        timeout: float = FETCH_TIMEOUT,
        on_error: Optional[ErrorHook] = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.ttl = ttl
        self.timeout = timeout
        self.on_error = on_error

    async def _fetch_story(self, item_id: int) -> Optional[Story]:
        record = await self.client.fetch_item(item_id)
        story = Story.from_record(item_id, record)
        if story is None:
            logger.debug("item is not a valid story, skipping", item_id=item_id)
        return story

    async def resolve_item(self, item_id: int) -> Optional[Story]:
        """
        Return the Story for item_id, or None.

        None covers missing or untitled records (cached for the item TTL) as
        well as fetch failures and timeouts (not cached, retried next time).
        """
        try:
            return await asyncio.wait_for(
                self.cache.get_or_populate(
                    f"{ITEM_CACHE_KEY_PREFIX}{item_id}",
                    self.ttl,
                    lambda: self._fetch_story(item_id),
                ),
                timeout=self.timeout,
            )
        except (UpstreamError, TimeoutError) as e:
            error = _to_fetch_error(e, item_id)
            logger.debug(
                "failed to fetch item",
                item_id=item_id,
                kind=error.kind.value,
                error=error.message,
            )
            if self.on_error:
                self.on_error(error)
            return None
