"""
Unit tests for the aiobotocore-backed Kinesis client.

A fake aiobotocore session/client stands in for AWS.

Tests cover:
- Connection lifecycle and error mapping
- DescribeStream/PutRecords parameter building
- Service errors propagate unchanged
"""

import asyncio

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from kinesis_broadcast import kinesis as kinesis_module
from kinesis_broadcast.config import KinesisConfig
from kinesis_broadcast.errors import BroadcastConnectionError
from kinesis_broadcast.kinesis import KinesisStreamClient
from kinesis_broadcast.types import PutRecordsRequest, PutRecordsRequestEntry


def client_error(code, operation="DescribeStream"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeKinesisApi:
    """Records calls the way an aiobotocore Kinesis client receives them."""

    def __init__(self, summary_error=None, describe_error=None, summary_delay=0.0):
        self.summary_error = summary_error
        self.summary_delay = summary_delay
        self.describe_error = describe_error
        self.calls = []

    async def describe_stream_summary(self, **kwargs):
        self.calls.append(("describe_stream_summary", kwargs))
        if self.summary_delay:
            await asyncio.sleep(self.summary_delay)
        if self.summary_error is not None:
            raise self.summary_error
        return {"StreamDescriptionSummary": {"StreamName": kwargs["StreamName"]}}

    async def describe_stream(self, **kwargs):
        self.calls.append(("describe_stream", kwargs))
        if self.describe_error is not None:
            raise self.describe_error
        return {
            "StreamDescription": {
                "StreamName": kwargs["StreamName"],
                "HasMoreShards": False,
                "Shards": [
                    {
                        "ShardId": "shardId-000000000000",
                        "HashKeyRange": {"StartingHashKey": "0", "EndingHashKey": "10"},
                    }
                ],
            }
        }

    async def put_records(self, **kwargs):
        self.calls.append(("put_records", kwargs))
        return {
            "FailedRecordCount": 0,
            "Records": [
                {"ShardId": "shardId-000000000000", "SequenceNumber": str(i)}
                for i, _ in enumerate(kwargs["Records"])
            ],
        }


class FakeClientContext:
    def __init__(self, api):
        self.api = api
        self.exited = False

    async def __aenter__(self):
        return self.api

    async def __aexit__(self, *exc_info):
        self.exited = True


class FakeSession:
    def __init__(self, api):
        self.context = FakeClientContext(api)
        self.create_client_args = None

    def create_client(self, service_name, **kwargs):
        self.create_client_args = (service_name, kwargs)
        return self.context


class TestKinesisStreamClient:
    """Tests for KinesisStreamClient."""

    @pytest.fixture
    def config(self):
        return KinesisConfig(
            stream_name="orders",
            region="eu-west-1",
            endpoint_url="http://localhost:4566",
            request_timeout_seconds=5,
        )

    @pytest.fixture
    def install_session(self, monkeypatch):
        """Patch get_session to hand out a FakeSession for the given API."""

        def install(api):
            session = FakeSession(api)
            monkeypatch.setattr(kinesis_module, "get_session", lambda: session)
            return session

        return install

    @pytest.mark.asyncio
    async def test_connect_checks_stream(self, config, install_session):
        api = FakeKinesisApi()
        session = install_session(api)
        client = KinesisStreamClient(config)

        await client.connect()

        assert client.is_connected
        assert session.create_client_args == (
            "kinesis",
            {"region_name": "eu-west-1", "endpoint_url": "http://localhost:4566"},
        )
        assert api.calls == [("describe_stream_summary", {"StreamName": "orders"})]

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, config, install_session):
        session = install_session(FakeKinesisApi())

        async with KinesisStreamClient(config) as client:
            assert client.is_connected

        assert not client.is_connected
        assert session.context.exited

    @pytest.mark.asyncio
    async def test_missing_stream(self, config, install_session):
        session = install_session(
            FakeKinesisApi(summary_error=client_error("ResourceNotFoundException"))
        )
        client = KinesisStreamClient(config)

        with pytest.raises(BroadcastConnectionError, match="not found"):
            await client.connect()

        assert not client.is_connected
        assert session.context.exited

    @pytest.mark.asyncio
    async def test_unreachable_endpoint(self, config, install_session):
        install_session(
            FakeKinesisApi(
                summary_error=EndpointConnectionError(endpoint_url="http://localhost:4566")
            )
        )
        client = KinesisStreamClient(config)

        with pytest.raises(BroadcastConnectionError) as exc_info:
            await client.connect()

        assert exc_info.value.endpoint == "http://localhost:4566"

    @pytest.mark.asyncio
    async def test_other_connect_failure_releases_client(self, config, install_session):
        """Any connect failure exits the client context and leaves no usable client."""
        session = install_session(FakeKinesisApi(summary_error=NoCredentialsError()))
        client = KinesisStreamClient(config)

        with pytest.raises(BroadcastConnectionError) as exc_info:
            await client.connect()

        assert isinstance(exc_info.value.__cause__, NoCredentialsError)
        assert not client.is_connected
        assert session.context.exited
        with pytest.raises(BroadcastConnectionError):
            await client.describe_stream("orders")

    @pytest.mark.asyncio
    async def test_connect_times_out(self, install_session):
        """A hung stream check is bounded by the request timeout."""
        config = KinesisConfig(stream_name="orders", request_timeout_seconds=0.05)
        session = install_session(FakeKinesisApi(summary_delay=5.0))
        client = KinesisStreamClient(config)

        with pytest.raises(BroadcastConnectionError, match="Timed out"):
            await client.connect()

        assert not client.is_connected
        assert session.context.exited

    @pytest.mark.asyncio
    async def test_describe_requires_connection(self, config):
        client = KinesisStreamClient(config)

        with pytest.raises(BroadcastConnectionError):
            await client.describe_stream("orders")

    @pytest.mark.asyncio
    async def test_describe_stream_parameters(self, config, install_session):
        api = FakeKinesisApi()
        install_session(api)
        client = KinesisStreamClient(config)
        await client.connect()

        page = await client.describe_stream(
            "orders", exclusive_start_shard_id="shardId-000000000003", limit=10
        )

        assert api.calls[-1] == (
            "describe_stream",
            {"StreamName": "orders", "ExclusiveStartShardId": "shardId-000000000003", "Limit": 10},
        )
        assert [s.shard_id for s in page.shards] == ["shardId-000000000000"]
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_describe_stream_omits_unset_options(self, config, install_session):
        api = FakeKinesisApi()
        install_session(api)
        client = KinesisStreamClient(config)
        await client.connect()

        await client.describe_stream("orders")

        assert api.calls[-1] == ("describe_stream", {"StreamName": "orders"})

    @pytest.mark.asyncio
    async def test_service_error_propagates_unchanged(self, config, install_session):
        error = client_error("LimitExceededException")
        install_session(FakeKinesisApi(describe_error=error))
        client = KinesisStreamClient(config)
        await client.connect()

        with pytest.raises(ClientError) as exc_info:
            await client.describe_stream("orders")

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_put_records(self, config, install_session):
        api = FakeKinesisApi()
        install_session(api)
        client = KinesisStreamClient(config)
        await client.connect()
        request = PutRecordsRequest(
            stream_name="orders",
            records=[
                PutRecordsRequestEntry(data=b"x", explicit_hash_key="0"),
                PutRecordsRequestEntry(data=b"x", explicit_hash_key="5"),
            ],
        )

        result = await client.put_records(request)

        assert api.calls[-1] == (
            "put_records",
            {
                "StreamName": "orders",
                "Records": [
                    {"Data": b"x", "PartitionKey": "0", "ExplicitHashKey": "0"},
                    {"Data": b"x", "PartitionKey": "5", "ExplicitHashKey": "5"},
                ],
            },
        )
        assert [r.sequence_number for r in result.records] == ["0", "1"]
        assert result.failed_record_count == 0

    @pytest.mark.asyncio
    async def test_health_check(self, config, install_session):
        api = FakeKinesisApi()
        install_session(api)
        client = KinesisStreamClient(config)

        assert await client.health_check() is False

        await client.connect()
        assert await client.health_check() is True

        api.summary_error = client_error("ResourceNotFoundException")
        assert await client.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_uses_request_timeout(self, install_session):
        api = FakeKinesisApi()
        install_session(api)
        client = KinesisStreamClient(KinesisConfig(stream_name="orders", request_timeout_seconds=0.05))
        await client.connect()

        api.summary_delay = 5.0
        assert await client.health_check() is False
