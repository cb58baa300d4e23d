"""
InfluxDB Retriever - Command-line interface

Usage:
    python -m tsretriever.influx query "SELECT * FROM cpu WHERE time > now() - 1h"
    python -m tsretriever.influx query "SELECT mean(value) FROM cpu" \
        --filter "GROUP BY time(1m)" --format json

Connection settings default to INFLUX_URL, INFLUX_DATABASE, INFLUX_USERNAME
and INFLUX_PASSWORD.
"""

import argparse
import json
import signal

from tsretriever.logger import logger, log_error
from tsretriever.config import env
from .cancellation import CancellationToken
from .exceptions import InfluxAPIError, InfluxQueryCancelledError
from .sync_client import InfluxSyncRetriever


def build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(description="InfluxDB chunked query client")
  parser.add_argument(
    "--url", default=env.INFLUX_URL or "http://localhost:8086", help="InfluxDB URL"
  )
  parser.add_argument(
    "--database", default=env.INFLUX_DATABASE, help="Target database name"
  )
  parser.add_argument("--username", default=env.INFLUX_USERNAME, help="Username")
  parser.add_argument("--password", default=env.INFLUX_PASSWORD, help="Password")
  parser.add_argument(
    "--timeout",
    type=float,
    default=env.INFLUX_TIMEOUT,
    help="Overall query timeout in seconds",
  )

  subparsers = parser.add_subparsers(dest="command", help="Available commands")

  query_parser = subparsers.add_parser("query", help="Execute an InfluxQL query")
  query_parser.add_argument("influxql", help="InfluxQL query to execute")
  query_parser.add_argument("--filter", help="Filter text appended to the query")
  query_parser.add_argument(
    "--chunk-size",
    type=int,
    default=env.INFLUX_CHUNK_SIZE,
    help="Points per chunk (0 leaves it to the server)",
  )
  query_parser.add_argument(
    "--format", choices=["json", "table"], default="table", help="Output format"
  )

  return parser


def main(argv=None) -> int:
  """Main CLI interface."""
  parser = build_parser()
  args = parser.parse_args(argv)

  if not args.command:
    parser.print_help()
    return 1

  if not args.database:
    logger.error("A database is required (--database or INFLUX_DATABASE)")
    return 1

  cancellation = CancellationToken()
  previous_handler = signal.signal(
    signal.SIGINT, lambda signum, frame: cancellation.cancel("interrupted")
  )

  try:
    with InfluxSyncRetriever(
      base_url=args.url,
      database=args.database,
      username=args.username,
      password=args.password,
      timeout=args.timeout,
      connect_timeout=env.INFLUX_CONNECT_TIMEOUT,
      chunk_size=args.chunk_size,
      verify_ssl=env.INFLUX_VERIFY_SSL,
    ) as retriever:
      rows = retriever.execute(
        lambda: args.influxql,
        list,
        cancellation,
        (lambda: args.filter) if args.filter else None,
      )

    if args.format == "json":
      print(json.dumps(rows, indent=2, default=str))
    else:
      if not rows:
        print("No results returned.")
        return 0

      for row in rows:
        print(" | ".join("" if value is None else str(value) for value in row))

      print(f"\n{len(rows)} rows returned")

    return 0

  except InfluxQueryCancelledError as e:
    logger.error(f"Query aborted: {e}")
    return 1
  except InfluxAPIError as e:
    log_error(
      logger,
      e,
      component="influx",
      action="query",
      error_category=type(e).__name__,
      metadata={"status_code": e.status_code, "response": e.response_data},
    )
    return 1
  finally:
    signal.signal(signal.SIGINT, previous_handler)


if __name__ == "__main__":
  exit(main())
