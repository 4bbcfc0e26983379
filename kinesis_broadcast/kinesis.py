"""
AWS Kinesis client for shard broadcast.

This module provides the production BroadcastClient backed by Kinesis
Data Streams through aiobotocore.

Invariants:
    - describe_stream() and put_records() let service errors propagate
      unchanged (botocore ClientError, EndpointConnectionError)
    - Each service call is bounded by config.request_timeout_seconds
    - Retries, signing and connection pooling are left to botocore

How to change safely:
    - Test with LocalStack before deploying to AWS
    - Keep wire conversion in types.py, not here
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiobotocore.session import get_session
from botocore.exceptions import ClientError, EndpointConnectionError

from .config import KinesisConfig
from .errors import BroadcastConnectionError
from .types import PutRecordsRequest, PutRecordsResult, ShardPage

logger = logging.getLogger(__name__)


class KinesisStreamClient:
    """Kinesis Data Streams implementation of BroadcastClient.

    Uses aiobotocore for async operations with AWS Kinesis.

    Attributes:
        config: Kinesis configuration

    Example:
        >>> config = KinesisConfig(stream_name="orders", region="us-east-1")
        >>> async with KinesisStreamClient(config) as client:
        ...     result = await broadcast(client, PutRecordRequest("orders", b"hi"))
    """

    def __init__(self, config: KinesisConfig) -> None:
        self.config = config
        self._session = None
        self._client_ctx = None
        self._client: Any = None
        self._connected = False

    @property
    def is_connected(self) -> bool:
        """Whether connected to Kinesis."""
        return self._connected

    async def connect(self) -> None:
        """Connect to Kinesis.

        Creates the aiobotocore client and checks the configured stream.

        Raises:
            BroadcastConnectionError: If connection fails
        """
        if self._connected:
            return

        client_config: dict[str, Any] = {"region_name": self.config.region}
        if self.config.endpoint_url:
            client_config["endpoint_url"] = self.config.endpoint_url

        try:
            self._session = get_session()
            self._client_ctx = self._session.create_client("kinesis", **client_config)
            self._client = await self._client_ctx.__aenter__()

            await asyncio.wait_for(
                self._client.describe_stream_summary(StreamName=self.config.stream_name),
                timeout=self.config.request_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            await self._release()
            raise BroadcastConnectionError(
                f"Timed out connecting to Kinesis after {self.config.request_timeout_seconds}s",
                endpoint=self.config.endpoint_url,
            ) from e
        except EndpointConnectionError as e:
            await self._release()
            raise BroadcastConnectionError(
                f"Failed to connect to Kinesis endpoint: {e}",
                endpoint=self.config.endpoint_url,
            ) from e
        except ClientError as e:
            await self._release()
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code == "ResourceNotFoundException":
                raise BroadcastConnectionError(
                    f"Kinesis stream '{self.config.stream_name}' not found",
                    endpoint=self.config.endpoint_url,
                ) from e
            raise BroadcastConnectionError(
                f"Kinesis error: {e}", endpoint=self.config.endpoint_url
            ) from e
        except Exception as e:
            await self._release()
            raise BroadcastConnectionError(
                f"Failed to connect to Kinesis: {e}",
                endpoint=self.config.endpoint_url,
            ) from e

        self._connected = True
        logger.info(
            "Connected to Kinesis",
            extra={
                "stream": self.config.stream_name,
                "region": self.config.region,
                "endpoint": self.config.endpoint_url or "AWS",
            },
        )

    async def close(self) -> None:
        """Close the Kinesis client."""
        await self._release()
        self._connected = False
        logger.info("Kinesis connection closed")

    async def _release(self) -> None:
        if self._client_ctx is not None:
            try:
                await self._client_ctx.__aexit__(None, None, None)
            except Exception as e:
                logger.warning(f"Error closing Kinesis client: {e}")
        self._client_ctx = None
        self._client = None
        self._session = None

    async def __aenter__(self) -> KinesisStreamClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _require_client(self) -> Any:
        if self._client is None:
            raise BroadcastConnectionError(
                "Not connected to Kinesis", endpoint=self.config.endpoint_url
            )
        return self._client

    async def describe_stream(
        self,
        stream_name: str,
        exclusive_start_shard_id: str | None = None,
        limit: int | None = None,
    ) -> ShardPage:
        """Describe one page of shards with DescribeStream.

        Raises:
            BroadcastConnectionError: If not connected
            ClientError: Service errors, unchanged
            asyncio.TimeoutError: If the call exceeds the request timeout
        """
        client = self._require_client()

        params: dict[str, Any] = {"StreamName": stream_name}
        if exclusive_start_shard_id is not None:
            params["ExclusiveStartShardId"] = exclusive_start_shard_id
        if limit is not None:
            params["Limit"] = limit

        response = await asyncio.wait_for(
            client.describe_stream(**params),
            timeout=self.config.request_timeout_seconds,
        )
        return ShardPage.from_api(response)

    async def put_records(self, request: PutRecordsRequest) -> PutRecordsResult:
        """Write a batch with PutRecords.

        Raises:
            BroadcastConnectionError: If not connected
            ClientError: Service errors, unchanged
            asyncio.TimeoutError: If the call exceeds the request timeout
        """
        client = self._require_client()

        response = await asyncio.wait_for(
            client.put_records(**request.to_api()),
            timeout=self.config.request_timeout_seconds,
        )
        result = PutRecordsResult.from_api(response)

        logger.debug(
            "PutRecords completed",
            extra={
                "stream": request.stream_name,
                "records": len(request.records),
                "failed": result.failed_record_count,
            },
        )
        return result

    async def health_check(self) -> bool:
        """Check if the Kinesis connection is healthy."""
        if self._client is None:
            return False

        try:
            await asyncio.wait_for(
                self._client.describe_stream_summary(StreamName=self.config.stream_name),
                timeout=self.config.request_timeout_seconds,
            )
            return True
        except Exception:
            return False
