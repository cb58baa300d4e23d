"""
Centralized environment variable configuration.

This module provides a single source of truth for all environment variables,
with type conversions and default values.

Organization:
- Helper functions for type-safe env var access
- Core application settings
- InfluxDB connection settings
"""

import os

from .constants import DEFAULT_CONNECT_TIMEOUT, DEFAULT_QUERY_TIMEOUT


# ==========================================================================
# HELPER FUNCTIONS FOR TYPE-SAFE ENVIRONMENT VARIABLE ACCESS
# ==========================================================================


def get_int_env(key: str, default: int) -> int:
  """
  Get an integer environment variable with safe type conversion.

  Args:
      key: Environment variable name
      default: Default value if not set or invalid

  Returns:
      Integer value from environment or default
  """
  try:
    return int(os.getenv(key, str(default)))
  except (ValueError, TypeError):
    # Use print instead of logger to avoid circular import
    print(f"Warning: Invalid {key} value, using default: {default}")
    return default


def get_float_env(key: str, default: float) -> float:
  """
  Get a float environment variable with safe type conversion.

  Args:
      key: Environment variable name
      default: Default value if not set or invalid

  Returns:
      Float value from environment or default
  """
  try:
    return float(os.getenv(key, str(default)))
  except (ValueError, TypeError):
    print(f"Warning: Invalid {key} value, using default: {default}")
    return default


def get_bool_env(key: str, default: bool = False) -> bool:
  """Get a boolean environment variable."""
  value = os.getenv(key, str(default)).lower()
  return value in ("true", "1", "yes", "on")


def get_str_env(key: str, default: str = "") -> str:
  """Get a string environment variable."""
  return os.getenv(key, default)


# ==========================================================================
# MAIN CONFIGURATION CLASS
# ==========================================================================


class EnvConfig:
  """
  Centralized environment variable configuration.

  Values are read once at import time.
  """

  # ==========================================================================
  # CORE APPLICATION SETTINGS
  # ==========================================================================

  ENVIRONMENT = get_str_env("ENVIRONMENT", "dev")
  LOG_LEVEL = get_str_env("LOG_LEVEL", "INFO")

  # ==========================================================================
  # INFLUXDB CONFIGURATION
  # ==========================================================================

  INFLUX_URL = get_str_env("INFLUX_URL", "")
  INFLUX_DATABASE = get_str_env("INFLUX_DATABASE", "")
  INFLUX_USERNAME = get_str_env("INFLUX_USERNAME", "")
  INFLUX_PASSWORD = get_str_env("INFLUX_PASSWORD", "")
  INFLUX_TIMEOUT = get_float_env("INFLUX_TIMEOUT", DEFAULT_QUERY_TIMEOUT)
  INFLUX_CONNECT_TIMEOUT = get_float_env(
    "INFLUX_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT
  )
  INFLUX_CHUNK_SIZE = get_int_env("INFLUX_CHUNK_SIZE", 0)
  INFLUX_VERIFY_SSL = get_bool_env("INFLUX_VERIFY_SSL", True)

  # ==========================================================================
  # HELPER METHODS
  # ==========================================================================

  @classmethod
  def is_development(cls) -> bool:
    """Check if running in development environment."""
    return cls.ENVIRONMENT.lower() in ["dev", "development", "local"]

  @classmethod
  def is_test(cls) -> bool:
    """Check if running in test environment."""
    return cls.ENVIRONMENT.lower() in ["test", "testing"]


# ==========================================================================
# SINGLETON INSTANCE
# ==========================================================================

# Create a singleton instance for easy import
env = EnvConfig()
