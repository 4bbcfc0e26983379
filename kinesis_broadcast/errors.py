"""
Error types for kinesis_broadcast.

This module defines the exceptions raised locally by the package:
- BroadcastError: Base exception
- UnsupportedOptionError: Request option that cannot be fanned out
- InvalidPageError: Inconsistent pagination metadata from DescribeStream
- StreamNotFoundError: Unknown stream (in-memory client)
- BroadcastConnectionError: Client lifecycle failures

Invariants:
    - All locally raised errors inherit from BroadcastError
    - Service/transport errors (botocore ClientError etc.) are never
      wrapped by the broadcast pipeline; they reach the caller as-is
    - Errors include context for debugging
"""

from __future__ import annotations

from typing import Any


class BroadcastError(Exception):
    """Base exception for all kinesis_broadcast errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "BROADCAST_ERROR"
        self.details = details or {}


class UnsupportedOptionError(BroadcastError):
    """A PutRecord option has no PutRecords equivalent.

    Raised when:
    - SequenceNumberForOrdering is set on a record to broadcast
    """

    def __init__(self, message: str, option: str) -> None:
        super().__init__(
            message,
            code="UNSUPPORTED_OPTION",
            details={"option": option},
        )
        self.option = option


class InvalidPageError(BroadcastError):
    """DescribeStream returned a page that cannot be paginated from.

    Raised when a page reports more shards but carries none, so there is
    no shard ID to resume from.
    """

    def __init__(
        self,
        message: str,
        stream_name: str | None = None,
        page_number: int | None = None,
    ) -> None:
        super().__init__(
            message,
            code="INVALID_PAGE",
            details={"stream_name": stream_name, "page_number": page_number},
        )
        self.stream_name = stream_name
        self.page_number = page_number


class StreamNotFoundError(BroadcastError):
    """Stream does not exist."""

    def __init__(self, stream_name: str) -> None:
        super().__init__(
            f"Stream '{stream_name}' not found",
            code="STREAM_NOT_FOUND",
            details={"stream_name": stream_name},
        )
        self.stream_name = stream_name


class BroadcastConnectionError(BroadcastError):
    """Failed to connect to the stream service.

    Raised when:
    - The endpoint is unreachable
    - The configured stream does not exist
    - A client is used before connect()
    """

    def __init__(self, message: str, endpoint: str | None = None) -> None:
        super().__init__(
            message,
            code="CONNECTION_ERROR",
            details={"endpoint": endpoint},
        )
        self.endpoint = endpoint
