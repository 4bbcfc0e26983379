"""
In-memory stream client for testing.

This module provides a BroadcastClient that simulates Kinesis shard
topology and routing without AWS, for:
- Unit and integration tests
- Local development without external dependencies

Invariants:
    - Shards split the 128-bit hash key space evenly and contiguously
    - Records are routed the way Kinesis routes them: by explicit hash key
      when given, otherwise by the MD5 of the partition key
    - DescribeStream pagination honors ExclusiveStartShardId and Limit
    - All data is lost on process exit

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with the BroadcastClient protocol
    - Add features to help with testing scenarios
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any

from .errors import BroadcastConnectionError, StreamNotFoundError
from .types import (
    HashKeyRange,
    PutRecordsRequest,
    PutRecordsResult,
    PutRecordsResultEntry,
    Shard,
    ShardPage,
)

logger = logging.getLogger(__name__)

MAX_HASH_KEY = 2**128 - 1


@dataclass
class StoredRecord:
    """A record written to an in-memory shard."""

    data: bytes
    partition_key: str | None
    explicit_hash_key: str | None
    sequence_number: str


@dataclass
class InMemoryShard:
    """In-memory shard storage."""

    shard: Shard
    records: list[StoredRecord] = field(default_factory=list)
    next_sequence: int = 0
    unavailable: bool = False


def split_hash_key_space(shard_count: int) -> list[HashKeyRange]:
    """Divide the hash key space into shard_count contiguous ranges."""
    if shard_count < 0:
        raise ValueError(f"shard_count must not be negative, got {shard_count}")

    width = (MAX_HASH_KEY + 1) // shard_count if shard_count else 0
    ranges = []
    for i in range(shard_count):
        start = i * width
        end = MAX_HASH_KEY if i == shard_count - 1 else (i + 1) * width - 1
        ranges.append(HashKeyRange(starting_hash_key=str(start), ending_hash_key=str(end)))
    return ranges


class InMemoryStreamClient:
    """In-memory implementation of BroadcastClient for testing.

    Streams are created on demand with default_shard_count shards, or
    explicitly with create_stream().

    Attributes:
        default_shard_count: Shards for streams created on first use
        max_page_size: Largest DescribeStream page, like the service's 100
        calls: Capability calls made, in order, as (method, arguments)

    Example:
        >>> client = InMemoryStreamClient()
        >>> await client.connect()
        >>> client.create_stream("orders", shard_count=3)
        >>> await broadcast(client, PutRecordRequest("orders", b"hello"))
        >>> client.get_record_count("orders")
        3
    """

    def __init__(
        self,
        default_shard_count: int | None = 4,
        max_page_size: int = 100,
    ) -> None:
        """Initialize in-memory client.

        Args:
            default_shard_count: Shards for auto-created streams; None
                disables auto-creation, so unknown streams raise
                StreamNotFoundError
            max_page_size: Upper bound on shards per DescribeStream page
        """
        self.default_shard_count = default_shard_count
        self.max_page_size = max_page_size
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._streams: dict[str, list[InMemoryShard]] = {}
        self._connected = False
        self._lock = asyncio.Lock()
        self._pending_failure: BaseException | None = None

    @property
    def is_connected(self) -> bool:
        """Whether connected (always true after connect())."""
        return self._connected

    async def connect(self) -> None:
        """Connect (no-op for in-memory)."""
        self._connected = True
        logger.debug("InMemoryStreamClient connected")

    async def close(self) -> None:
        """Close and clear all data."""
        self._connected = False
        self._streams.clear()
        self.calls.clear()
        self._pending_failure = None
        logger.debug("InMemoryStreamClient closed")

    async def __aenter__(self) -> InMemoryStreamClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def create_stream(self, stream_name: str, shard_count: int) -> list[Shard]:
        """Create (or replace) a stream with evenly split shards.

        Returns:
            The new shards, in shard ID order
        """
        shards = [
            InMemoryShard(
                shard=Shard(
                    shard_id=f"shardId-{i:012d}",
                    hash_key_range=key_range,
                    starting_sequence_number=str(0),
                )
            )
            for i, key_range in enumerate(split_hash_key_space(shard_count))
        ]
        self._streams[stream_name] = shards
        return [s.shard for s in shards]

    def _get_stream(self, stream_name: str) -> list[InMemoryShard]:
        if stream_name not in self._streams:
            if self.default_shard_count is None:
                raise StreamNotFoundError(stream_name)
            self.create_stream(stream_name, self.default_shard_count)
        return self._streams[stream_name]

    def _check_ready(self) -> None:
        if not self._connected:
            raise BroadcastConnectionError("Not connected")
        if self._pending_failure is not None:
            failure, self._pending_failure = self._pending_failure, None
            raise failure

    async def describe_stream(
        self,
        stream_name: str,
        exclusive_start_shard_id: str | None = None,
        limit: int | None = None,
    ) -> ShardPage:
        """Return one page of shards after exclusive_start_shard_id."""
        self.calls.append(
            (
                "describe_stream",
                {
                    "stream_name": stream_name,
                    "exclusive_start_shard_id": exclusive_start_shard_id,
                    "limit": limit,
                },
            )
        )
        self._check_ready()

        shards = [s.shard for s in self._get_stream(stream_name)]
        if exclusive_start_shard_id is not None:
            shards = [s for s in shards if s.shard_id > exclusive_start_shard_id]

        page_size = self.max_page_size if limit is None else min(limit, self.max_page_size)
        return ShardPage(shards=shards[:page_size], has_more=len(shards) > page_size)

    async def put_records(self, request: PutRecordsRequest) -> PutRecordsResult:
        """Route each entry to its shard and store it.

        Raises:
            ValueError: If the batch is empty or a hash key is out of range,
                as the service rejects such requests
        """
        self.calls.append(("put_records", {"request": request}))
        self._check_ready()

        if not request.records:
            raise ValueError("PutRecords requires at least one record")

        results = []
        async with self._lock:
            shards = self._get_stream(request.stream_name)
            for entry in request.records:
                if entry.explicit_hash_key is not None:
                    hash_key = int(entry.explicit_hash_key)
                else:
                    hash_key = self._hash_partition_key(entry.partition_key or "")

                target = self._shard_for_hash_key(shards, hash_key)
                if target.unavailable:
                    results.append(
                        PutRecordsResultEntry(
                            error_code="ProvisionedThroughputExceededException",
                            error_message=f"Rate exceeded for shard {target.shard.shard_id}",
                        )
                    )
                    continue

                sequence_number = f"{target.next_sequence:056d}"
                target.next_sequence += 1
                target.records.append(
                    StoredRecord(
                        data=entry.data,
                        partition_key=entry.partition_key,
                        explicit_hash_key=entry.explicit_hash_key,
                        sequence_number=sequence_number,
                    )
                )
                results.append(
                    PutRecordsResultEntry(
                        shard_id=target.shard.shard_id,
                        sequence_number=sequence_number,
                    )
                )

        failed = sum(1 for r in results if not r.succeeded)
        logger.debug(
            "Records written to in-memory stream",
            extra={"stream": request.stream_name, "records": len(results), "failed": failed},
        )
        return PutRecordsResult(records=results, failed_record_count=failed)

    @staticmethod
    def _hash_partition_key(partition_key: str) -> int:
        """Kinesis maps partition keys to 128-bit integers with MD5."""
        return int(hashlib.md5(partition_key.encode("utf-8")).hexdigest(), 16)

    @staticmethod
    def _shard_for_hash_key(shards: list[InMemoryShard], hash_key: int) -> InMemoryShard:
        for candidate in shards:
            if candidate.shard.is_open and candidate.shard.hash_key_range.contains(hash_key):
                return candidate
        raise ValueError(f"Hash key {hash_key} is outside every shard's range")

    # Testing helpers

    def get_records(self, stream_name: str, shard_id: str) -> list[StoredRecord]:
        """Get all records stored in one shard (testing helper)."""
        for stored in self._streams.get(stream_name, []):
            if stored.shard.shard_id == shard_id:
                return list(stored.records)
        return []

    def get_record_count(self, stream_name: str) -> int:
        """Get total record count for a stream (testing helper)."""
        return sum(len(s.records) for s in self._streams.get(stream_name, []))

    def set_shard_unavailable(self, stream_name: str, shard_id: str, unavailable: bool = True) -> None:
        """Make writes to one shard fail per-entry (testing helper)."""
        for stored in self._get_stream(stream_name):
            if stored.shard.shard_id == shard_id:
                stored.unavailable = unavailable
                return
        raise KeyError(shard_id)

    def inject_failure(self, exception: BaseException) -> None:
        """Make the next capability call raise this exception (testing helper)."""
        self._pending_failure = exception

    def call_count(self, method: str) -> int:
        """Number of recorded calls to a capability method (testing helper)."""
        return sum(1 for name, _ in self.calls if name == method)
