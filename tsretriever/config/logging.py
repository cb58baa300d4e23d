"""
Structured logging for tsretriever.

Deployed environments get one JSON object per record, split between stderr
(errors) and stdout (everything operational), so query timings and failures
can be searched by field. Development gets plain console lines.
"""

import json
import logging
import logging.config
import traceback
from datetime import datetime, timezone
from typing import Any

from tsretriever.config.constants import SLOW_QUERY_THRESHOLD_MS
from tsretriever.config.env import EnvConfig

# Record attributes copied into the JSON entry when a caller sets them via extra=
_OPTIONAL_FIELDS = (
  "action",
  "database",
  "query_type",
  "duration_ms",
  "status_code",
  "row_count",
)


class StructuredFormatter(logging.Formatter):
  """JSON formatter with searchable component, query and error fields."""

  def format(self, record: logging.LogRecord) -> str:
    log_entry: dict[str, Any] = {
      "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
      .isoformat()
      .replace("+00:00", "Z"),
      "level": record.levelname,
      "component": getattr(record, "component", record.name),
      "message": record.getMessage(),
    }

    for field in _OPTIONAL_FIELDS:
      if hasattr(record, field):
        log_entry[field] = getattr(record, field)

    if record.levelno >= logging.ERROR:
      if record.exc_info:
        exc_type, exc_value, _ = record.exc_info
        log_entry["error"] = {
          "type": exc_type.__name__ if exc_type else "Unknown",
          "message": str(exc_value) if exc_value else "",
          "traceback": traceback.format_exception(*record.exc_info),
        }
      if hasattr(record, "error_category"):
        log_entry["error_category"] = record.error_category

    if hasattr(record, "metadata"):
      log_entry["metadata"] = record.metadata

    return json.dumps(log_entry, default=str, separators=(",", ":"))


class TieredLogFilter:
  """
  Split records between the stderr and stdout handlers.

  critical: ERROR and above
  operational: INFO and WARNING
  """

  def __init__(self, tier: str):
    self.tier = tier

  def filter(self, record: logging.LogRecord) -> bool:
    if self.tier == "critical":
      return record.levelno >= logging.ERROR
    return logging.INFO <= record.levelno < logging.ERROR


# Package logger level per deployed environment; anything else is dev
_ENVIRONMENT_LEVELS = {
  "prod": "INFO",
  "staging": "INFO",
  "test": "WARNING",
}


def get_logging_config(environment: str | None = None) -> dict[str, Any]:
  """
  Generate logging configuration based on environment.

  Deployed environments write structured JSON, errors to stderr and
  operational records to stdout. Dev writes plain text to the console at
  LOG_LEVEL (DEBUG when unset).
  """
  env = environment or EnvConfig.ENVIRONMENT
  default_level = _ENVIRONMENT_LEVELS.get(env) or EnvConfig.LOG_LEVEL or "DEBUG"

  deployed = env != "dev"
  app_handlers = ["critical", "operational"] if deployed else ["console"]
  http_handlers = ["operational"] if deployed else ["console"]

  loggers: dict[str, Any] = {
    name: {"level": default_level, "handlers": list(app_handlers), "propagate": False}
    for name in ("tsretriever", "tsretriever.influx")
  }
  # Connection-level chatter from the HTTP stack
  for name in ("httpx", "httpcore"):
    loggers[name] = {
      "level": "WARNING",
      "handlers": list(http_handlers),
      "propagate": False,
    }

  return {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
      "structured": {"()": StructuredFormatter},
      "simple": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
    },
    "filters": {
      "critical_filter": {"()": TieredLogFilter, "tier": "critical"},
      "operational_filter": {"()": TieredLogFilter, "tier": "operational"},
    },
    "handlers": {
      "critical": {
        "class": "logging.StreamHandler",
        "level": "ERROR",
        "formatter": "structured",
        "filters": ["critical_filter"],
        "stream": "ext://sys.stderr",
      },
      "operational": {
        "class": "logging.StreamHandler",
        "level": "INFO",
        "formatter": "structured",
        "filters": ["operational_filter"],
        "stream": "ext://sys.stdout",
      },
      "console": {
        "class": "logging.StreamHandler",
        "level": default_level,
        "formatter": "structured" if deployed else "simple",
        "stream": "ext://sys.stdout",
      },
    },
    "loggers": loggers,
    "root": {
      "level": "WARNING",
      "handlers": ["critical"] if deployed else ["console"],
    },
  }


def setup_logging(environment: str | None = None) -> None:
  """Initialize structured logging configuration."""
  config = get_logging_config(environment)
  logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
  """Get a logger with structured logging capabilities."""
  return logging.getLogger(name)


def log_database_query(
  logger: logging.Logger,
  database: str,
  query_type: str,
  duration_ms: float,
  row_count: int | None = None,
  metadata: dict[str, Any] | None = None,
) -> None:
  """Log database query with performance metrics."""
  extra: dict[str, Any] = {
    "component": "database",
    "action": "query_executed",
    "database": database,
    "query_type": query_type,
    "duration_ms": duration_ms,
    "metadata": metadata or {},
  }

  if row_count is not None:
    extra["row_count"] = row_count

  if duration_ms > SLOW_QUERY_THRESHOLD_MS:
    logger.warning(
      f"Slow {query_type} query on {database} ({duration_ms:.2f}ms)", extra=extra
    )
  else:
    logger.info(f"{query_type} query on {database} ({duration_ms:.2f}ms)", extra=extra)


def log_error(
  logger: logging.Logger,
  error: Exception,
  component: str,
  action: str,
  error_category: str = "application",
  metadata: dict[str, Any] | None = None,
) -> None:
  """Log error with structured data for easy searching."""
  logger.error(
    f"Error in {component}.{action}: {error!s}",
    exc_info=error,
    extra={
      "component": component,
      "action": action,
      "error_category": error_category,
      "metadata": metadata or {},
    },
  )
