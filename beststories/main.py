from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from beststories.aggregator import TopStoriesAggregator
from beststories.cache import ExpiringCache
from beststories.config import Settings, get_settings
from beststories.constants import (
    COUNT_OUT_OF_RANGE_MSG,
    DEFAULT_COUNT,
    MAX_COUNT,
    MIN_COUNT,
)
from beststories.fetching import CandidateResolver, ErrorHook, ItemFetcher
from beststories.logging_config import configure_logging, get_logger
from beststories.models import Story
from beststories.source import SourceClient

logger = get_logger(__name__)


class StoryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    uri: Optional[str] = None
    posted_by: Optional[str] = Field(default=None, alias="postedBy")
    time: datetime
    score: int
    comment_count: Optional[int] = Field(default=None, alias="commentCount")

    @classmethod
    def from_story(cls, story: Story) -> StoryOut:
        return cls(
            title=story.title,
            uri=story.uri,
            posted_by=story.posted_by,
            time=story.posted_at,
            score=story.score,
            comment_count=story.comment_count,
        )


def build_aggregator(
    settings: Settings,
    client: SourceClient,
    cache: Optional[ExpiringCache] = None,
    on_error: Optional[ErrorHook] = None,
) -> TopStoriesAggregator:
    """Wire resolver, fetcher and aggregator around one shared cache."""
    cache = cache if cache is not None else ExpiringCache()
    resolver = CandidateResolver(
        client, cache, timeout=settings.fetch_timeout, on_error=on_error
    )
    fetcher = ItemFetcher(
        client, cache, timeout=settings.fetch_timeout, on_error=on_error
    )
    return TopStoriesAggregator(resolver, fetcher)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings.log_level)
    client = SourceClient(settings.base_url, timeout=settings.request_timeout)
    app.state.aggregator = build_aggregator(settings, client)
    logger.info("service started", base_url=settings.base_url)
    try:
        yield
    finally:
        await client.close()


app = FastAPI(title="HN Best Stories API", lifespan=lifespan)

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_aggregator(request: Request) -> TopStoriesAggregator:
    return request.app.state.aggregator


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/stories/top", response_model=list[StoryOut])
@app.get("/api/stories/top-{count}", response_model=list[StoryOut])
async def top_stories_route(
    count: int = DEFAULT_COUNT,
    aggregator: TopStoriesAggregator = Depends(get_aggregator),
):
    if count < MIN_COUNT or count > MAX_COUNT:
        raise HTTPException(status_code=400, detail=COUNT_OUT_OF_RANGE_MSG)
    stories = await aggregator.top_stories(count)
    return [StoryOut.from_story(s) for s in stories]
