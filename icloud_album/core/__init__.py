"""
Core module for icloud-album.

This module provides the foundational components used throughout the library:
    - exceptions: Error taxonomy for token, network and payload failures
    - config: Configuration loading and validation
    - logger: Logging helpers
    - retry: Generic retry/backoff executor
    - decoder: Severity-aware tolerant JSON decoding

Usage:
    from icloud_album.core import (
        Config, load_config,
        RetryExecutor, RetryPolicy, BackoffStrategy,
        decode, DecodeEvents, FieldSpec, Severity, Shape,
        get_logger, setup_logging,
        ICloudAlbumError, SchemaViolationError,
    )
"""

from icloud_album.core.exceptions import (
    ClientRejectedError,
    ConfigError,
    DecodeError,
    ICloudAlbumError,
    InvalidTokenError,
    RateLimitedError,
    SchemaViolationError,
    StreamRequestError,
    TransientNetworkError,
    is_retryable,
)
from icloud_album.core.logger import (
    get_logger,
    log_decode_warning,
    setup_logging,
    shutdown_logging,
)
from icloud_album.core.retry import (
    BackoffStrategy,
    RetryExecutor,
    RetryPolicy,
    RetryStats,
)
from icloud_album.core.decoder import (
    DecodeEvents,
    FieldSpec,
    LenientCoercionWarning,
    Severity,
    Shape,
    coerce_integer,
    decode,
)
from icloud_album.core.config import (
    Config,
    HttpConfig,
    LoggingConfig,
    RetryConfig,
    StreamConfig,
    load_config,
)

__all__ = [
    # Config
    "Config",
    "StreamConfig",
    "HttpConfig",
    "RetryConfig",
    "LoggingConfig",
    "load_config",
    # Exceptions
    "ICloudAlbumError",
    "ConfigError",
    "InvalidTokenError",
    "StreamRequestError",
    "TransientNetworkError",
    "RateLimitedError",
    "ClientRejectedError",
    "DecodeError",
    "SchemaViolationError",
    "is_retryable",
    # Logger
    "setup_logging",
    "get_logger",
    "log_decode_warning",
    "shutdown_logging",
    # Retry
    "BackoffStrategy",
    "RetryPolicy",
    "RetryStats",
    "RetryExecutor",
    # Decoder
    "Severity",
    "Shape",
    "FieldSpec",
    "LenientCoercionWarning",
    "DecodeEvents",
    "decode",
    "coerce_integer",
]
