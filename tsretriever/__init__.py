"""
tsretriever - streaming retrieval of time-series records over HTTP.

Executes chunked InfluxQL queries against an InfluxDB-compatible `/query`
endpoint and converts the streamed rows into caller-defined records.
"""

__version__ = "0.1.0"
