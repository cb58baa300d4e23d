#!/usr/bin/env python3
"""
InfluxDB retriever module entry point.

    python -m tsretriever.influx --help
    python -m tsretriever.influx query "SELECT * FROM cpu LIMIT 10"
"""

if __name__ == "__main__":
  from tsretriever.influx.cli import main

  exit(main())
