"""
Shard page cache for broadcast clients.

broadcast() rediscovers shards on every call, which costs one or more
DescribeStream calls per record. CachingBroadcastClient wraps any
BroadcastClient and serves DescribeStream pages from memory for a fixed
time-to-live.

Invariants:
    - Only successful describe_stream() pages are cached
    - put_records() always goes to the wrapped client
    - Expired pages are dropped on the next describe_stream() call
    - A cached topology may be stale for up to ttl_seconds after a
      split or merge; call invalidate() after resharding

How to change safely:
    - Keep the cache keyed on every describe_stream() argument
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from .base import BroadcastClient
from .types import PutRecordsRequest, PutRecordsResult, ShardPage

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str | None, int | None]


class CachingBroadcastClient:
    """BroadcastClient decorator caching DescribeStream pages.

    Attributes:
        client: Wrapped client
        ttl_seconds: How long a cached page stays valid

    Example:
        >>> client = CachingBroadcastClient(KinesisStreamClient(config), ttl_seconds=30)
        >>> await broadcast(client, request)  # describes shards
        >>> await broadcast(client, request)  # served from cache
    """

    def __init__(
        self,
        client: BroadcastClient,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.client = client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._pages: dict[CacheKey, tuple[float, ShardPage]] = {}

    @property
    def is_connected(self) -> bool:
        return getattr(self.client, "is_connected", True)

    async def connect(self) -> None:
        connect = getattr(self.client, "connect", None)
        if connect is not None:
            await connect()

    async def close(self) -> None:
        self.invalidate()
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> CachingBroadcastClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def describe_stream(
        self,
        stream_name: str,
        exclusive_start_shard_id: str | None = None,
        limit: int | None = None,
    ) -> ShardPage:
        key = (stream_name, exclusive_start_shard_id, limit)
        now = self._clock()
        self._evict_expired(now)

        cached = self._pages.get(key)
        if cached is not None:
            logger.debug("Shard page served from cache", extra={"stream": stream_name})
            return cached[1]

        page = await self.client.describe_stream(
            stream_name,
            exclusive_start_shard_id=exclusive_start_shard_id,
            limit=limit,
        )
        self._pages[key] = (now, page)
        return page

    async def put_records(self, request: PutRecordsRequest) -> PutRecordsResult:
        return await self.client.put_records(request)

    @property
    def cached_page_count(self) -> int:
        """Number of pages currently held."""
        return len(self._pages)

    def _evict_expired(self, now: float) -> None:
        expired = [
            key
            for key, (fetched_at, _) in self._pages.items()
            if now - fetched_at >= self.ttl_seconds
        ]
        for key in expired:
            del self._pages[key]

    def invalidate(self, stream_name: str | None = None) -> None:
        """Drop cached pages for one stream, or for all streams."""
        if stream_name is None:
            self._pages.clear()
            return
        for key in [k for k in self._pages if k[0] == stream_name]:
            del self._pages[key]
