"""
Broadcast one record to every shard of a Kinesis stream.

Kinesis routes a record to a single shard by hashing its partition key.
This package replicates a PutRecord request to all shards instead:
- Discover the stream's shards (paginated DescribeStream)
- Address each shard by its starting hash key
- Send one PutRecords batch with an entry per shard

Backends:
- AWS Kinesis via aiobotocore (production)
- In-memory (for testing)

Invariants:
    - Each broadcast rediscovers shards unless the client is wrapped in
      CachingBroadcastClient
    - Errors end the call; nothing is retried and no partial result is
      returned alongside an error
    - Partial PutRecords failures are reported in the result, not raised

How to change safely:
    - New clients must implement the BroadcastClient protocol
    - Test pagination changes against multi-page topologies
"""

from .base import (
    BroadcastClient,
    RecordBatchWriter,
    ShardDescriber,
    create_broadcast_client,
)
from .broadcast import ShardBroadcaster, broadcast
from .cache import CachingBroadcastClient
from .config import (
    BroadcastBackend,
    BroadcastConfig,
    BroadcastSettings,
    KinesisConfig,
    ObservabilityConfig,
    setup_logging,
)
from .errors import (
    BroadcastConnectionError,
    BroadcastError,
    InvalidPageError,
    StreamNotFoundError,
    UnsupportedOptionError,
)
from .fanout import fan_out_put_record_request
from .kinesis import KinesisStreamClient
from .memory import InMemoryStreamClient
from .shards import explicit_hash_keys, gather_shards
from .types import (
    HashKeyRange,
    PutRecordRequest,
    PutRecordsRequest,
    PutRecordsRequestEntry,
    PutRecordsResult,
    PutRecordsResultEntry,
    Shard,
    ShardPage,
)

__version__ = "0.1.0"

__all__ = [
    # Protocols and factory
    "ShardDescriber",
    "RecordBatchWriter",
    "BroadcastClient",
    "create_broadcast_client",
    # Pipeline
    "broadcast",
    "ShardBroadcaster",
    "gather_shards",
    "explicit_hash_keys",
    "fan_out_put_record_request",
    # Types
    "HashKeyRange",
    "Shard",
    "ShardPage",
    "PutRecordRequest",
    "PutRecordsRequest",
    "PutRecordsRequestEntry",
    "PutRecordsResult",
    "PutRecordsResultEntry",
    # Errors
    "BroadcastError",
    "UnsupportedOptionError",
    "InvalidPageError",
    "StreamNotFoundError",
    "BroadcastConnectionError",
    # Clients
    "KinesisStreamClient",
    "InMemoryStreamClient",
    "CachingBroadcastClient",
    # Configuration
    "BroadcastBackend",
    "BroadcastConfig",
    "BroadcastSettings",
    "KinesisConfig",
    "ObservabilityConfig",
    "setup_logging",
]
