"""
Shard discovery for broadcast.

gather_shards() walks DescribeStream pages until the service reports no
more shards; explicit_hash_keys() turns the shards into routing keys that
address each shard directly.

Invariants:
    - Pages are concatenated in the order returned
    - The cursor for page N+1 is the last shard ID of page N
    - An error on any page discards everything gathered so far
    - A page with HasMoreShards set but no shards raises InvalidPageError
      instead of indexing an empty list or looping forever
"""

from __future__ import annotations

import logging

from .base import ShardDescriber
from .errors import InvalidPageError
from .types import Shard

logger = logging.getLogger(__name__)


async def gather_shards(
    describer: ShardDescriber,
    stream_name: str,
    limit: int | None = None,
) -> list[Shard]:
    """Return every shard of a stream, paging through DescribeStream.

    Args:
        describer: DescribeStream capability
        stream_name: Stream to enumerate
        limit: Optional page size passed to each DescribeStream call

    Returns:
        All shards, in page order

    Raises:
        InvalidPageError: If a page claims more shards but is empty
        Exception: Whatever the describer raises, unchanged
    """
    shards: list[Shard] = []
    cursor: str | None = None
    page_number = 0
    has_more = True

    while has_more:
        page = await describer.describe_stream(
            stream_name,
            exclusive_start_shard_id=cursor,
            limit=limit,
        )
        page_number += 1
        has_more = page.has_more

        if has_more and not page.shards:
            raise InvalidPageError(
                f"DescribeStream page {page_number} for '{stream_name}' "
                "reports more shards but contains none",
                stream_name=stream_name,
                page_number=page_number,
            )

        shards.extend(page.shards)
        if page.shards:
            cursor = page.shards[-1].shard_id

        logger.debug(
            "Described shard page",
            extra={
                "stream": stream_name,
                "page": page_number,
                "page_shards": len(page.shards),
                "has_more": has_more,
            },
        )

    return shards


def explicit_hash_keys(shards: list[Shard]) -> list[str]:
    """Routing key for each shard: the start of its hash key range.

    The starting hash key always routes to the shard that owns the range.
    """
    return [shard.hash_key_range.starting_hash_key for shard in shards]
