from __future__ import annotations

import json
from typing import Any, Optional, cast

import httpx

from beststories.constants import (
    CANDIDATE_LIST_PATH,
    CONNECT_TIMEOUT,
    HN_API_BASE,
    ITEM_PATH_TEMPLATE,
    REQUEST_TIMEOUT,
)
from beststories.logging_config import get_logger
from beststories.models import ErrorKind, ItemRecord, epoch_to_datetime

logger = get_logger(__name__)

# Expected JSON type per item field; anything else is a malformed record.
_ITEM_FIELD_TYPES: dict[str, type] = {
    "id": int,
    "type": str,
    "title": str,
    "url": str,
    "by": str,
    "time": int,
    "score": int,
    "descendants": int,
}


class UpstreamError(Exception):
    """A failed or unparseable read against the upstream catalog."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"UpstreamError({self.kind.value}, {self.message!r})"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_item(item_id: int, data: Any) -> Optional[ItemRecord]:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise UpstreamError(
            ErrorKind.MALFORMED, f"item {item_id}: expected object, got {type(data).__name__}"
        )
    record: dict[str, Any] = {}
    for name, expected in _ITEM_FIELD_TYPES.items():
        value = data.get(name)
        if value is None:
            continue
        valid = _is_int(value) if expected is int else isinstance(value, expected)
        if not valid:
            raise UpstreamError(
                ErrorKind.MALFORMED,
                f"item {item_id}: field {name!r} has unexpected type {type(value).__name__}",
            )
        record[name] = value
    if "time" in record and epoch_to_datetime(record["time"]) is None:
        raise UpstreamError(
            ErrorKind.MALFORMED,
            f"item {item_id}: time {record['time']} is out of range",
        )
    return cast(ItemRecord, record)


class SourceClient:
    """
    Read-only client for the Hacker News Firebase API.

    Stateless apart from the underlying connection pool: every call issues
    exactly one GET and raises UpstreamError on failure. No retries, no caching.
    """

    def __init__(
        self,
        base_url: str = HN_API_BASE,
        timeout: float = REQUEST_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url: str = base_url.rstrip("/")
        self._owns_client = client is None
        self.client: httpx.AsyncClient = client or httpx.AsyncClient(
            headers={"User-Agent": "hn-best-stories"},
            timeout=httpx.Timeout(timeout, connect=min(timeout, CONNECT_TIMEOUT)),
        )

    async def _get_json(self, url: str) -> Any:
        try:
            resp: httpx.Response = await self.client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                ErrorKind.NETWORK, f"GET {url} returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(ErrorKind.NETWORK, f"GET {url} failed: {e!r}") from e

        if not resp.content.strip():
            raise UpstreamError(ErrorKind.MALFORMED, f"GET {url} returned an empty body")
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise UpstreamError(ErrorKind.MALFORMED, f"GET {url} returned invalid JSON") from e

    async def fetch_candidate_ids(self) -> list[int]:
        url = f"{self.base_url}{CANDIDATE_LIST_PATH}"
        logger.debug("fetching candidate ids", url=url)
        data = await self._get_json(url)
        if not isinstance(data, list) or not all(_is_int(i) for i in data):
            raise UpstreamError(
                ErrorKind.MALFORMED, f"GET {url} did not return a list of integers"
            )
        return cast(list[int], data)

    async def fetch_item(self, item_id: int) -> Optional[ItemRecord]:
        """Fetch one item record. Returns None if upstream has no such item."""
        url = f"{self.base_url}{ITEM_PATH_TEMPLATE.format(id=item_id)}"
        data = await self._get_json(url)
        return _parse_item(item_id, data)

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> SourceClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
