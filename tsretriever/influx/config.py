"""
InfluxDB Client Configuration.

Centralized configuration for the chunked query retriever.
"""

import os
from typing import Dict, Any
from dataclasses import dataclass, field

from tsretriever.config.constants import (
  DEFAULT_CHUNK_SIZE,
  DEFAULT_CONNECT_TIMEOUT,
  DEFAULT_KEEPALIVE_EXPIRY,
  DEFAULT_MAX_CONNECTIONS,
  DEFAULT_MAX_KEEPALIVE_CONNECTIONS,
  DEFAULT_QUERY_TIMEOUT,
)


@dataclass
class InfluxClientConfig:
  """Configuration for InfluxDB query clients."""

  # Connection settings
  base_url: str = ""
  database: str = ""
  username: str = ""
  password: str = ""

  # Overall limit for one query, including every chunked read
  timeout: float = DEFAULT_QUERY_TIMEOUT
  connect_timeout: float = DEFAULT_CONNECT_TIMEOUT

  # Query settings
  chunk_size: int = DEFAULT_CHUNK_SIZE
  epoch: str = ""

  # Connection pool settings
  max_connections: int = DEFAULT_MAX_CONNECTIONS
  max_keepalive_connections: int = DEFAULT_MAX_KEEPALIVE_CONNECTIONS
  keepalive_expiry: float = DEFAULT_KEEPALIVE_EXPIRY

  # Request settings
  headers: Dict[str, str] = field(default_factory=dict)
  verify_ssl: bool = True

  @classmethod
  def from_env(cls, prefix: str = "INFLUX_CLIENT_") -> "InfluxClientConfig":
    """
    Create configuration from environment variables.

    Args:
        prefix: Environment variable prefix

    Returns:
        InfluxClientConfig instance
    """
    config = cls()

    env_mappings = {
      "base_url": "BASE_URL",
      "database": "DATABASE",
      "username": "USERNAME",
      "password": "PASSWORD",
      "timeout": "TIMEOUT",
      "connect_timeout": "CONNECT_TIMEOUT",
      "chunk_size": "CHUNK_SIZE",
      "epoch": "EPOCH",
      "max_connections": "MAX_CONNECTIONS",
      "max_keepalive_connections": "MAX_KEEPALIVE_CONNECTIONS",
      "keepalive_expiry": "KEEPALIVE_EXPIRY",
      "verify_ssl": "VERIFY_SSL",
    }

    for attr, env_suffix in env_mappings.items():
      env_var = prefix + env_suffix
      value = os.environ.get(env_var)

      if value is not None:
        attr_type = type(getattr(config, attr))
        if attr_type is bool:
          setattr(config, attr, value.lower() in ("true", "1", "yes"))
        elif attr_type in (int, float):
          setattr(config, attr, attr_type(value))
        else:
          setattr(config, attr, value)

    return config

  def with_overrides(self, **kwargs: Any) -> "InfluxClientConfig":
    """
    Create a new config with overridden values.

    Args:
        **kwargs: Values to override

    Returns:
        New InfluxClientConfig instance
    """
    config_dict: Dict[str, Any] = {
      "base_url": self.base_url,
      "database": self.database,
      "username": self.username,
      "password": self.password,
      "timeout": self.timeout,
      "connect_timeout": self.connect_timeout,
      "chunk_size": self.chunk_size,
      "epoch": self.epoch,
      "max_connections": self.max_connections,
      "max_keepalive_connections": self.max_keepalive_connections,
      "keepalive_expiry": self.keepalive_expiry,
      "headers": self.headers.copy(),
      "verify_ssl": self.verify_ssl,
    }
    config_dict.update(kwargs)
    return InfluxClientConfig(**config_dict)

  def has_credentials(self) -> bool:
    """Whether a Basic auth header should be sent."""
    return bool(self.username.strip() or self.password.strip())
