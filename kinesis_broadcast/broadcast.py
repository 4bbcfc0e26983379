"""
Broadcast a single record to every shard of a Kinesis stream.

Kinesis normally routes a record to exactly one shard by hashing its
partition key. broadcast() instead discovers the stream's shards and
writes the record once per shard in a single PutRecords call, each entry
addressed by the shard's starting hash key.

Pipeline:
    gather_shards -> explicit_hash_keys -> fan_out_put_record_request
    -> client.put_records

Invariants:
    - Steps run sequentially; the first error ends the call
    - put_records is never called if discovery or fan-out fails
    - The PutRecords result is returned untouched, including partial
      failures (FailedRecordCount > 0)
    - No state is kept between calls; shards are rediscovered every time

How to change safely:
    - Shard caching belongs in a client decorator (see cache.py), not here
    - Throttling against shard write quotas is the caller's job; each
      broadcast costs one write per shard
"""

from __future__ import annotations

import logging

from .base import BroadcastClient
from .fanout import fan_out_put_record_request
from .shards import explicit_hash_keys, gather_shards
from .types import PutRecordRequest, PutRecordsResult

logger = logging.getLogger(__name__)


async def broadcast(
    client: BroadcastClient,
    request: PutRecordRequest,
    limit: int | None = None,
) -> PutRecordsResult:
    """Send one record to all shards of request.stream_name.

    Args:
        client: Describe and PutRecords capability
        request: Record to replicate
        limit: Optional DescribeStream page size

    Returns:
        The PutRecords result for the fan-out batch

    Raises:
        UnsupportedOptionError: If the request sets SequenceNumberForOrdering
        InvalidPageError: If DescribeStream pagination is inconsistent
        Exception: Any client error, unchanged

    Example:
        >>> request = PutRecordRequest(stream_name="orders", data=b"order-42")
        >>> result = await broadcast(client, request)
        >>> result.failed_record_count
        0
    """
    shards = await gather_shards(client, request.stream_name, limit=limit)
    keys = explicit_hash_keys(shards)
    batch = fan_out_put_record_request(request, keys)

    logger.debug(
        "Broadcasting record",
        extra={
            "stream": request.stream_name,
            "shards": len(shards),
            "bytes": len(request.data),
        },
    )

    result = await client.put_records(batch)

    logger.debug(
        "Broadcast sent",
        extra={
            "stream": request.stream_name,
            "records": len(batch.records),
            "failed": result.failed_record_count,
        },
    )
    return result


class ShardBroadcaster:
    """Broadcasts records through one client with fixed settings.

    Attributes:
        client: Describe and PutRecords capability
        describe_limit: DescribeStream page size, None for the service default

    Example:
        >>> async with KinesisStreamClient(config.kinesis) as client:
        ...     broadcaster = ShardBroadcaster(client)
        ...     await broadcaster.put_record("orders", b"order-42")
    """

    def __init__(self, client: BroadcastClient, describe_limit: int | None = None) -> None:
        self.client = client
        self.describe_limit = describe_limit

    async def put_record(
        self,
        stream_name: str,
        data: bytes,
        partition_key: str | None = None,
    ) -> PutRecordsResult:
        """Broadcast raw data to every shard of a stream."""
        request = PutRecordRequest(
            stream_name=stream_name,
            data=data,
            partition_key=partition_key,
        )
        return await self.send(request)

    async def send(self, request: PutRecordRequest) -> PutRecordsResult:
        """Broadcast a prepared PutRecord request."""
        return await broadcast(self.client, request, limit=self.describe_limit)
