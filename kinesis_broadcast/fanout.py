"""Turn one PutRecord request into a PutRecords batch addressed to every shard."""

from __future__ import annotations

from .errors import UnsupportedOptionError
from .types import PutRecordRequest, PutRecordsRequest, PutRecordsRequestEntry


def fan_out_put_record_request(
    request: PutRecordRequest,
    keys: list[str],
) -> PutRecordsRequest:
    """Build a PutRecords request with one entry per explicit hash key.

    Every entry carries the original payload. No partition key is set on
    the entries; the explicit hash key decides routing.

    Args:
        request: The single record to replicate
        keys: Explicit hash keys, one per target shard

    Returns:
        PutRecordsRequest with len(keys) entries in key order

    Raises:
        UnsupportedOptionError: If the request sets SequenceNumberForOrdering,
            which PutRecords has no way to honor
    """
    if request.sequence_number_for_ordering is not None:
        raise UnsupportedOptionError(
            "SequenceNumberForOrdering is not supported when broadcasting "
            "to all shards",
            option="sequence_number_for_ordering",
        )

    return PutRecordsRequest(
        stream_name=request.stream_name,
        records=[PutRecordsRequestEntry(data=request.data, explicit_hash_key=key) for key in keys],
    )
