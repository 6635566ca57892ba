"""
Configuration management for icloud-album.

This module handles loading, validating, and providing access to the
configuration stored in config.yaml. Every section is optional: a missing
file at the default location, a missing section or a missing field all
fall back to the defaults below.

The configuration file contains:
    - Shared-streams host settings (partition domain, asset batch size)
    - HTTP transport settings (timeout, connection pool, user agent)
    - Retry policy for data-fetching calls
    - Logging level and optional log directory for the CLI

Example config.yaml:
    stream:
      host_domain: "icloud.com"
      asset_chunk_size: 25

    http:
      timeout: 30
      pool_size: 10
      user_agent: "icloud-album/0.1"

    retry:
      max_attempts: 3
      strategy: "exponential"   # constant | linear | exponential | exponential_jitter
      base_delay: 0.5
      jitter_bound: null
      max_retry_after: 60

    logging:
      level: "INFO"
      directory: null
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from icloud_album.core.exceptions import ConfigError
from icloud_album.core.retry import BackoffStrategy, RetryPolicy


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_USER_AGENT = "icloud-album/0.1"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class StreamConfig:
    """
    Shared-streams endpoint configuration.

    Attributes:
        host_domain: Domain appended to the partition host,
                     giving https://pNN-sharedstreams.<host_domain>/.
        asset_chunk_size: Maximum photo guids per webasseturls request.
    """
    host_domain: str = "icloud.com"
    asset_chunk_size: int = 25


@dataclass(frozen=True)
class HttpConfig:
    """
    HTTP transport configuration.

    Attributes:
        timeout: Per-request timeout in seconds.
        pool_size: Connection pool size of the shared requests.Session.
        user_agent: User-Agent header sent with every request.
    """
    timeout: float = 30.0
    pool_size: int = 10
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class RetryConfig:
    """
    Retry policy configuration.

    Attributes:
        max_attempts: Total attempts per call, including the first.
        strategy: Backoff strategy.
        base_delay: Base delay in seconds.
        jitter_bound: Optional cap for jittered delays, in seconds.
        max_retry_after: Longest Retry-After wait honoured, in seconds.
    """
    max_attempts: int = 3
    strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    base_delay: float = 0.5
    jitter_bound: float | None = None
    max_retry_after: float = 60.0

    def to_policy(self) -> RetryPolicy:
        """Build the RetryPolicy used by RetryExecutor."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            strategy=self.strategy,
            base_delay=self.base_delay,
            jitter_bound=self.jitter_bound,
            max_retry_after=self.max_retry_after
        )


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration used by the CLI.

    Attributes:
        level: Console log level name.
        directory: Directory for log files, or None for console only.
    """
    level: str = "INFO"
    directory: Path | None = None


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() or Config.default(); immutable.

    Example:
        config = load_config()
        print(f"Timeout: {config.http.timeout}s")
        print(f"Retry: {config.retry.max_attempts} attempts")
    """
    stream: StreamConfig = field(default_factory=StreamConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def default(cls) -> "Config":
        """Return the built-in defaults."""
        return cls()


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in the current working
                     directory and uses defaults when it is not there.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is not found, the file has
                     invalid YAML syntax, or contains invalid values.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        if explicit:
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                details={"file_path": str(config_path)}
            )
        return Config.default()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file parses to None
    if raw_config is None:
        return Config.default()

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return Config(
        stream=_parse_stream_config(_section(raw_config, "stream")),
        http=_parse_http_config(_section(raw_config, "http")),
        retry=_parse_retry_config(_section(raw_config, "retry")),
        logging=_parse_logging_config(_section(raw_config, "logging"))
    )


def _section(raw_config: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a section dict, or {} when absent."""
    section = raw_config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _positive_int(section: dict[str, Any], key: str, name: str, default: int) -> int:
    value = section.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(
            f"'{name}' must be a positive integer",
            details={"field": name, "value": value}
        )
    return value


def _non_negative_number(
    section: dict[str, Any],
    key: str,
    name: str,
    default: float | None
) -> float | None:
    value = section.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) \
            or not math.isfinite(value) or value < 0:
        raise ConfigError(
            f"'{name}' must be a finite non-negative number",
            details={"field": name, "value": value}
        )
    return float(value)


def _non_empty_string(section: dict[str, Any], key: str, name: str, default: str) -> str:
    value = section.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{name}' must be a non-empty string",
            details={"field": name}
        )
    return value.strip()


def _parse_stream_config(section: dict[str, Any]) -> StreamConfig:
    """Parse the 'stream' section."""
    defaults = StreamConfig()
    host_domain = _non_empty_string(section, "host_domain", "stream.host_domain", defaults.host_domain)
    return StreamConfig(
        host_domain=host_domain.strip("./"),
        asset_chunk_size=_positive_int(
            section, "asset_chunk_size", "stream.asset_chunk_size", defaults.asset_chunk_size
        )
    )


def _parse_http_config(section: dict[str, Any]) -> HttpConfig:
    """Parse the 'http' section."""
    defaults = HttpConfig()
    timeout = _non_negative_number(section, "timeout", "http.timeout", defaults.timeout)
    if not timeout:
        raise ConfigError(
            "'http.timeout' must be greater than zero",
            details={"field": "http.timeout", "value": timeout}
        )
    return HttpConfig(
        timeout=timeout,
        pool_size=_positive_int(section, "pool_size", "http.pool_size", defaults.pool_size),
        user_agent=_non_empty_string(section, "user_agent", "http.user_agent", defaults.user_agent)
    )


def _parse_retry_config(section: dict[str, Any]) -> RetryConfig:
    """
    Parse the 'retry' section.

    Raises:
        ConfigError: If the strategy name is unknown or a number is invalid.
    """
    defaults = RetryConfig()

    raw_strategy = section.get("strategy")
    strategy = defaults.strategy
    if raw_strategy is not None:
        try:
            strategy = BackoffStrategy(str(raw_strategy).strip().lower())
        except ValueError:
            valid = ", ".join(s.value for s in BackoffStrategy)
            raise ConfigError(
                f"'retry.strategy' must be one of: {valid}",
                details={"field": "retry.strategy", "value": raw_strategy}
            ) from None

    return RetryConfig(
        max_attempts=_positive_int(section, "max_attempts", "retry.max_attempts", defaults.max_attempts),
        strategy=strategy,
        base_delay=_non_negative_number(section, "base_delay", "retry.base_delay", defaults.base_delay),
        jitter_bound=_non_negative_number(section, "jitter_bound", "retry.jitter_bound", None),
        max_retry_after=_non_negative_number(
            section, "max_retry_after", "retry.max_retry_after", defaults.max_retry_after
        )
    )


def _parse_logging_config(section: dict[str, Any]) -> LoggingConfig:
    """Parse the 'logging' section."""
    level = _non_empty_string(section, "level", "logging.level", "INFO").upper()
    if level not in LOG_LEVELS:
        raise ConfigError(
            f"'logging.level' must be one of: {', '.join(LOG_LEVELS)}",
            details={"field": "logging.level", "value": level}
        )

    directory = None
    raw_directory = section.get("directory")
    if raw_directory is not None:
        if not isinstance(raw_directory, str) or not raw_directory.strip():
            raise ConfigError(
                "'logging.directory' must be a string path or null",
                details={"field": "logging.directory"}
            )
        directory = Path(raw_directory.strip()).expanduser().resolve()

    return LoggingConfig(level=level, directory=directory)
