"""
Capability protocols for shard broadcast.

Each pipeline step depends only on the narrowest capability it needs:
- ShardDescriber: paginated DescribeStream
- RecordBatchWriter: PutRecords
- BroadcastClient: both, as required by the broadcast orchestrator

KinesisStreamClient and InMemoryStreamClient satisfy all of them. Tests
substitute small hand-written doubles that implement only the methods a
step uses.

Invariants:
    - Capability methods return domain types (ShardPage, PutRecordsResult),
      never raw service dictionaries
    - Capability methods raise service errors unchanged

How to change safely:
    - Protocol changes require updating all implementations
    - Keep each protocol minimal; add a new protocol rather than widening one
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .types import PutRecordsRequest, PutRecordsResult, ShardPage

if TYPE_CHECKING:
    from .config import BroadcastConfig


@runtime_checkable
class ShardDescriber(Protocol):
    """Anything that can describe one page of a stream's shards."""

    @abstractmethod
    async def describe_stream(
        self,
        stream_name: str,
        exclusive_start_shard_id: str | None = None,
        limit: int | None = None,
    ) -> ShardPage:
        """Return one page of shards.

        Args:
            stream_name: Stream to describe
            exclusive_start_shard_id: Resume after this shard ID
            limit: Maximum shards in the page

        Returns:
            ShardPage with the shards and whether more remain
        """
        ...


@runtime_checkable
class RecordBatchWriter(Protocol):
    """Anything that can write a PutRecords batch."""

    @abstractmethod
    async def put_records(self, request: PutRecordsRequest) -> PutRecordsResult:
        """Write a batch of records.

        Returns:
            Per-entry outcomes, in request order
        """
        ...


@runtime_checkable
class BroadcastClient(ShardDescriber, RecordBatchWriter, Protocol):
    """Describe plus batch-write: everything broadcast() needs."""


def create_broadcast_client(config: "BroadcastConfig") -> BroadcastClient:
    """Factory function to create a broadcast client from configuration.

    Wraps the client in a shard cache when a cache TTL is configured.

    Args:
        config: Broadcast configuration

    Returns:
        Appropriate BroadcastClient implementation

    Raises:
        ValueError: If backend is not supported
    """
    from .cache import CachingBroadcastClient
    from .config import BroadcastBackend
    from .kinesis import KinesisStreamClient
    from .memory import InMemoryStreamClient

    client: BroadcastClient
    if config.backend == BroadcastBackend.KINESIS:
        client = KinesisStreamClient(config.kinesis)
    elif config.backend == BroadcastBackend.MEMORY:
        client = InMemoryStreamClient()
    else:
        raise ValueError(f"Unsupported broadcast backend: {config.backend}")

    if config.broadcast.shard_cache_ttl_seconds > 0:
        client = CachingBroadcastClient(client, config.broadcast.shard_cache_ttl_seconds)
    return client
