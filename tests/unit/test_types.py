"""
Unit tests for request/response types.

Tests cover:
- Parsing DescribeStream and PutRecords responses
- Building PutRecord/PutRecords parameters
"""

import pytest

from kinesis_broadcast.types import (
    HashKeyRange,
    PutRecordRequest,
    PutRecordsRequest,
    PutRecordsRequestEntry,
    PutRecordsResult,
    Shard,
    ShardPage,
)


DESCRIBE_RESPONSE = {
    "StreamDescription": {
        "StreamName": "orders",
        "HasMoreShards": True,
        "Shards": [
            {
                "ShardId": "shardId-000000000000",
                "HashKeyRange": {
                    "StartingHashKey": "0",
                    "EndingHashKey": "170141183460469231731687303715884105727",
                },
                "SequenceNumberRange": {
                    "StartingSequenceNumber": "4959",
                    "EndingSequenceNumber": "4960",
                },
            },
            {
                "ShardId": "shardId-000000000002",
                "ParentShardId": "shardId-000000000000",
                "HashKeyRange": {
                    "StartingHashKey": "170141183460469231731687303715884105728",
                    "EndingHashKey": "340282366920938463463374607431768211455",
                },
                "SequenceNumberRange": {"StartingSequenceNumber": "4961"},
            },
        ],
    }
}


class TestShardPage:
    """Tests for DescribeStream parsing."""

    def test_from_api(self):
        page = ShardPage.from_api(DESCRIBE_RESPONSE)

        assert page.has_more is True
        assert [s.shard_id for s in page.shards] == [
            "shardId-000000000000",
            "shardId-000000000002",
        ]
        assert page.shards[1].parent_shard_id == "shardId-000000000000"
        assert page.shards[1].hash_key_range.starting_hash_key == (
            "170141183460469231731687303715884105728"
        )

    def test_open_and_closed_shards(self):
        """A shard with an ending sequence number is closed."""
        page = ShardPage.from_api(DESCRIBE_RESPONSE)

        assert not page.shards[0].is_open
        assert page.shards[1].is_open

    def test_missing_has_more_means_last_page(self):
        page = ShardPage.from_api({"StreamDescription": {"Shards": []}})

        assert page.shards == []
        assert page.has_more is False

    def test_missing_hash_key_range_is_fatal(self):
        """A shard without a hash key range is a malformed response."""
        with pytest.raises(KeyError):
            Shard.from_api({"ShardId": "shardId-000000000000"})


class TestHashKeyRange:
    def test_contains_bounds(self):
        key_range = HashKeyRange(starting_hash_key="100", ending_hash_key="199")

        assert key_range.contains(100)
        assert key_range.contains(199)
        assert not key_range.contains(99)
        assert not key_range.contains(200)


class TestPutRecordRequest:
    def test_to_api_minimal(self):
        request = PutRecordRequest(stream_name="orders", data=b"x", partition_key="k")

        assert request.to_api() == {"StreamName": "orders", "Data": b"x", "PartitionKey": "k"}

    def test_to_api_with_options(self):
        request = PutRecordRequest(
            stream_name="orders",
            data=b"x",
            partition_key="k",
            explicit_hash_key="5",
            sequence_number_for_ordering="9",
        )

        params = request.to_api()
        assert params["ExplicitHashKey"] == "5"
        assert params["SequenceNumberForOrdering"] == "9"


class TestPutRecordsRequest:
    def test_to_api(self):
        request = PutRecordsRequest(
            stream_name="orders",
            records=[
                PutRecordsRequestEntry(data=b"a", explicit_hash_key="100"),
                PutRecordsRequestEntry(data=b"b", partition_key="user-1"),
            ],
        )

        assert request.to_api() == {
            "StreamName": "orders",
            "Records": [
                {"Data": b"a", "PartitionKey": "100", "ExplicitHashKey": "100"},
                {"Data": b"b", "PartitionKey": "user-1"},
            ],
        }

    def test_partition_key_kept_when_set(self):
        """An explicit partition key is sent as-is alongside the hash key."""
        entry = PutRecordsRequestEntry(data=b"a", explicit_hash_key="100", partition_key="pk")

        assert entry.to_api()["PartitionKey"] == "pk"

    def test_entry_without_any_key_rejected(self):
        """An entry with neither key cannot be routed."""
        entry = PutRecordsRequestEntry(data=b"a")

        with pytest.raises(ValueError, match="partition_key or an explicit_hash_key"):
            entry.to_api()


class TestPutRecordsResult:
    def test_from_api_with_partial_failure(self):
        result = PutRecordsResult.from_api(
            {
                "FailedRecordCount": 1,
                "Records": [
                    {"ShardId": "shardId-000000000000", "SequenceNumber": "1"},
                    {
                        "ErrorCode": "ProvisionedThroughputExceededException",
                        "ErrorMessage": "Rate exceeded",
                    },
                ],
                "EncryptionType": "NONE",
            }
        )

        assert result.failed_record_count == 1
        assert result.encryption_type == "NONE"
        assert result.records[0].succeeded
        failed = result.failed_entries()
        assert len(failed) == 1
        assert failed[0][0] == 1
        assert failed[0][1].error_code == "ProvisionedThroughputExceededException"

    def test_from_api_empty(self):
        result = PutRecordsResult.from_api({"Records": []})

        assert result.records == []
        assert result.failed_record_count == 0
        assert result.failed_entries() == []
