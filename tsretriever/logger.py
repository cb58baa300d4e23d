"""
tsretriever Unified Logging

Initializes the structured logging configuration once and exposes the
package loggers:

- logger: general application logger
- influx_logger: query execution against the time-series database
"""

import logging

from .config import env
from .config.logging import (
  setup_logging,
  get_logger,
  log_database_query,
  log_error,
)

setup_logging()

logger = get_logger("tsretriever")

if env.is_development():
  # Connection-level chatter from the HTTP stack
  logging.getLogger("httpx").setLevel(logging.WARNING)
  logging.getLogger("httpcore").setLevel(logging.WARNING)

influx_logger = get_logger("tsretriever.influx")


__all__ = [
  "logger",
  "influx_logger",
  "get_logger",
  "log_database_query",
  "log_error",
]
