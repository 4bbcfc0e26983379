"""
Configuration management for kinesis_broadcast.

All configuration is done via environment variables. The broadcast
pipeline itself takes no configuration; these settings drive the concrete
clients built by create_broadcast_client() and application logging.

Invariants:
    - All settings have sensible defaults for local development
    - Credentials come from the AWS credential chain and are never read here

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Validate new numeric settings in BroadcastConfig.validate()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum

import json_log_formatter

logger = logging.getLogger(__name__)


class BroadcastBackend(Enum):
    """Supported stream client backends."""

    KINESIS = "kinesis"
    MEMORY = "memory"


def _optional_int(name: str) -> int | None:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class KinesisConfig:
    """AWS Kinesis client configuration.

    Attributes:
        stream_name: Stream checked on connect()
        region: AWS region
        endpoint_url: Custom endpoint URL (for LocalStack testing)
        request_timeout_seconds: Timeout applied to each service call
    """

    stream_name: str = "broadcast"
    region: str = "us-east-1"
    endpoint_url: str | None = None
    request_timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> KinesisConfig:
        """Load configuration from environment variables."""
        return cls(
            stream_name=os.getenv("KINESIS_STREAM_NAME", "broadcast"),
            region=os.getenv("AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")),
            endpoint_url=os.getenv("KINESIS_ENDPOINT_URL"),
            request_timeout_seconds=float(os.getenv("KINESIS_REQUEST_TIMEOUT", "30")),
        )


@dataclass(frozen=True)
class BroadcastSettings:
    """Broadcast behavior.

    Attributes:
        describe_limit: DescribeStream page size (None = service default)
        shard_cache_ttl_seconds: Cache shard pages this long (0 disables)
    """

    describe_limit: int | None = None
    shard_cache_ttl_seconds: float = 0.0

    @classmethod
    def from_env(cls) -> BroadcastSettings:
        """Load configuration from environment variables."""
        return cls(
            describe_limit=_optional_int("BROADCAST_DESCRIBE_LIMIT"),
            shard_cache_ttl_seconds=float(os.getenv("BROADCAST_SHARD_CACHE_TTL", "0")),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class BroadcastConfig:
    """Complete configuration.

    Attributes:
        backend: Which stream client to build
        kinesis: Kinesis configuration (if backend is KINESIS)
        broadcast: Broadcast behavior
        observability: Logging configuration
    """

    backend: BroadcastBackend = BroadcastBackend.KINESIS
    kinesis: KinesisConfig = field(default_factory=KinesisConfig)
    broadcast: BroadcastSettings = field(default_factory=BroadcastSettings)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> BroadcastConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If configuration is invalid
        """
        backend_str = os.getenv("BROADCAST_BACKEND", "kinesis").lower()
        try:
            backend = BroadcastBackend(backend_str)
        except ValueError:
            raise ValueError(
                f"Invalid BROADCAST_BACKEND '{backend_str}'. Must be one of: kinesis, memory"
            )

        config = cls(
            backend=backend,
            kinesis=KinesisConfig.from_env(),
            broadcast=BroadcastSettings.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any value is out of range
        """
        errors = []

        limit = self.broadcast.describe_limit
        if limit is not None and limit <= 0:
            errors.append(f"BROADCAST_DESCRIBE_LIMIT must be positive, got {limit}")
        if self.broadcast.shard_cache_ttl_seconds < 0:
            errors.append("BROADCAST_SHARD_CACHE_TTL must not be negative")
        if self.kinesis.request_timeout_seconds <= 0:
            errors.append("KINESIS_REQUEST_TIMEOUT must be positive")
        if self.backend == BroadcastBackend.KINESIS and not self.kinesis.stream_name:
            errors.append("KINESIS_STREAM_NAME is required for the kinesis backend")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors))

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Broadcast configuration loaded",
            extra={
                "backend": self.backend.value,
                "kinesis_stream": self.kinesis.stream_name
                if self.backend == BroadcastBackend.KINESIS
                else None,
                "kinesis_region": self.kinesis.region,
                "kinesis_endpoint": self.kinesis.endpoint_url or "AWS",
                "describe_limit": self.broadcast.describe_limit,
                "shard_cache_ttl_seconds": self.broadcast.shard_cache_ttl_seconds,
                "log_level": self.observability.log_level,
            },
        )


def setup_logging(config: BroadcastConfig) -> None:
    """Configure root logging for an application that broadcasts.

    Args:
        config: Broadcast configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("aiobotocore").setLevel(logging.WARNING)
