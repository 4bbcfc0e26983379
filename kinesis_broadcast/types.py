"""
Request and response types for shard broadcast.

These dataclasses mirror the Kinesis Data Streams wire shapes used by the
broadcast pipeline. Each type converts to and from the boto-style
dictionaries that botocore/aiobotocore clients accept and return.

Invariants:
    - Shard always carries a starting hash key; a response without one is
      malformed and Shard.from_api raises KeyError
    - PutRecordsRequest preserves record order
    - Types are snapshots; nothing here talks to the service

How to change safely:
    - Keep field names aligned with the service API (snake_case of the
      PascalCase wire names)
    - New optional wire fields must default to None
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class HashKeyRange:
    """Range of the 128-bit hash key space owned by a shard.

    Both bounds are decimal strings of unsigned 128-bit integers.
    """

    starting_hash_key: str
    ending_hash_key: str

    def contains(self, hash_key: int) -> bool:
        """Whether the integer hash key falls inside this range."""
        return int(self.starting_hash_key) <= hash_key <= int(self.ending_hash_key)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> HashKeyRange:
        return cls(
            starting_hash_key=data["StartingHashKey"],
            ending_hash_key=data["EndingHashKey"],
        )


@dataclass(frozen=True)
class Shard:
    """A shard as reported by DescribeStream.

    Attributes:
        shard_id: Opaque shard identifier, used as the pagination cursor
        hash_key_range: Hash keys routed to this shard
        parent_shard_id: Parent shard after a split or merge
        adjacent_parent_shard_id: Second parent after a merge
        starting_sequence_number: First sequence number in the shard
        ending_sequence_number: Last sequence number, set once the shard is closed
    """

    shard_id: str
    hash_key_range: HashKeyRange
    parent_shard_id: str | None = None
    adjacent_parent_shard_id: str | None = None
    starting_sequence_number: str | None = None
    ending_sequence_number: str | None = None

    @property
    def is_open(self) -> bool:
        """Whether the shard still accepts writes."""
        return self.ending_sequence_number is None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Shard:
        """Create from a DescribeStream shard dictionary.

        Raises:
            KeyError: If ShardId or the hash key range is missing
        """
        sequence_range = data.get("SequenceNumberRange") or {}
        return cls(
            shard_id=data["ShardId"],
            hash_key_range=HashKeyRange.from_api(data["HashKeyRange"]),
            parent_shard_id=data.get("ParentShardId"),
            adjacent_parent_shard_id=data.get("AdjacentParentShardId"),
            starting_sequence_number=sequence_range.get("StartingSequenceNumber"),
            ending_sequence_number=sequence_range.get("EndingSequenceNumber"),
        )


@dataclass
class ShardPage:
    """One page of a DescribeStream response."""

    shards: list[Shard] = field(default_factory=list)
    has_more: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ShardPage:
        description = data["StreamDescription"]
        return cls(
            shards=[Shard.from_api(s) for s in description.get("Shards", [])],
            has_more=bool(description.get("HasMoreShards", False)),
        )


@dataclass
class PutRecordRequest:
    """A single-record write, the unit a caller asks to broadcast.

    Attributes:
        stream_name: Target stream
        data: Record payload
        partition_key: Partition key used for hash routing
        explicit_hash_key: Explicit routing override
        sequence_number_for_ordering: Strict-ordering token; cannot be broadcast
    """

    stream_name: str
    data: bytes
    partition_key: str | None = None
    explicit_hash_key: str | None = None
    sequence_number_for_ordering: str | None = None

    def to_api(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "StreamName": self.stream_name,
            "Data": self.data,
            "PartitionKey": self.partition_key,
        }
        if self.explicit_hash_key is not None:
            params["ExplicitHashKey"] = self.explicit_hash_key
        if self.sequence_number_for_ordering is not None:
            params["SequenceNumberForOrdering"] = self.sequence_number_for_ordering
        return params


@dataclass
class PutRecordsRequestEntry:
    """One entry of a PutRecords batch."""

    data: bytes
    explicit_hash_key: str | None = None
    partition_key: str | None = None

    def to_api(self) -> dict[str, Any]:
        """Convert to a PutRecords entry dictionary.

        The service requires PartitionKey on every entry. When only an
        explicit hash key is set, it is sent as the partition key too;
        the explicit hash key decides routing, so the value is inert.

        Raises:
            ValueError: If neither partition_key nor explicit_hash_key is set
        """
        if self.partition_key is None and self.explicit_hash_key is None:
            raise ValueError("PutRecords entry needs a partition_key or an explicit_hash_key")

        entry: dict[str, Any] = {
            "Data": self.data,
            "PartitionKey": (
                self.partition_key if self.partition_key is not None else self.explicit_hash_key
            ),
        }
        if self.explicit_hash_key is not None:
            entry["ExplicitHashKey"] = self.explicit_hash_key
        return entry


@dataclass
class PutRecordsRequest:
    """A multi-record write against one stream."""

    stream_name: str
    records: list[PutRecordsRequestEntry] = field(default_factory=list)

    def to_api(self) -> dict[str, Any]:
        return {
            "StreamName": self.stream_name,
            "Records": [r.to_api() for r in self.records],
        }


@dataclass
class PutRecordsResultEntry:
    """Outcome of one PutRecords entry."""

    shard_id: str | None = None
    sequence_number: str | None = None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error_code is None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PutRecordsResultEntry:
        return cls(
            shard_id=data.get("ShardId"),
            sequence_number=data.get("SequenceNumber"),
            error_code=data.get("ErrorCode"),
            error_message=data.get("ErrorMessage"),
        )


@dataclass
class PutRecordsResult:
    """Result of a PutRecords call.

    Entries line up with the request's records by index. The broadcast
    pipeline hands this back untouched; partial failures are for the
    caller to inspect.
    """

    records: list[PutRecordsResultEntry] = field(default_factory=list)
    failed_record_count: int = 0
    encryption_type: str | None = None

    def failed_entries(self) -> list[tuple[int, PutRecordsResultEntry]]:
        """Index and entry of every record the service rejected."""
        return [(i, r) for i, r in enumerate(self.records) if not r.succeeded]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PutRecordsResult:
        return cls(
            records=[PutRecordsResultEntry.from_api(r) for r in data.get("Records", [])],
            failed_record_count=int(data.get("FailedRecordCount", 0)),
            encryption_type=data.get("EncryptionType"),
        )
