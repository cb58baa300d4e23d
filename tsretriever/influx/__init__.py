"""
InfluxDB Retriever - chunked query execution over the HTTP API.

This module provides an asynchronous retriever (and a blocking wrapper)
that streams chunked `/query` responses and converts rows into records.
"""

from .cancellation import CancellationToken
from .client import InfluxDataRetriever
from .config import InfluxClientConfig
from .decoder import ResponseDecoder, aiter_documents, decode_stream, iter_rows
from .exceptions import (
  InfluxAPIError,
  InfluxClientError,
  InfluxDecodeError,
  InfluxQueryCancelledError,
  InfluxQueryError,
  InfluxServerError,
  InfluxTimeoutError,
  InfluxTransportError,
)
from .models import ResponseDocument, ResultBlock, Row, Series
from .sync_client import InfluxSyncRetriever

__all__ = [
  "CancellationToken",
  "InfluxAPIError",
  "InfluxClientConfig",
  "InfluxClientError",
  "InfluxDataRetriever",
  "InfluxDecodeError",
  "InfluxQueryCancelledError",
  "InfluxQueryError",
  "InfluxServerError",
  "InfluxSyncRetriever",
  "InfluxTimeoutError",
  "InfluxTransportError",
  "ResponseDecoder",
  "ResponseDocument",
  "ResultBlock",
  "Row",
  "Series",
  "aiter_documents",
  "decode_stream",
  "iter_rows",
]
