"""
InfluxDB Client Exceptions.

Defines the exception hierarchy for chunked query execution.
"""

from typing import Optional, Dict, Any


class InfluxAPIError(Exception):
  """Base exception for all InfluxDB client errors."""

  def __init__(
    self,
    message: str,
    status_code: Optional[int] = None,
    response_data: Optional[Dict[str, Any]] = None,
  ):
    super().__init__(message)
    self.status_code = status_code
    self.response_data = response_data


class InfluxTransportError(InfluxAPIError):
  """
  The HTTP exchange failed.

  Examples: connection refused, connection dropped mid-stream,
  non-success status code.
  """

  pass


class InfluxClientError(InfluxTransportError):
  """
  The server rejected the request.

  Examples: 400 Bad Request (InfluxQL parse error), 401 Unauthorized,
  404 Not Found
  """

  pass


class InfluxServerError(InfluxTransportError):
  """
  The server failed while handling the request.

  Examples: 500 Internal Server Error, 503 Service Unavailable
  """

  pass


class InfluxDecodeError(InfluxAPIError):
  """The response body is not a valid sequence of query result documents."""

  pass


class InfluxQueryError(InfluxAPIError):
  """
  The server reported an error inside a successful response body.

  InfluxDB answers some failing statements (unknown database, bad
  function arguments) with status 200 and an ``error`` field.
  """

  def __init__(
    self,
    message: str,
    statement_id: Optional[int] = None,
    response_data: Optional[Dict[str, Any]] = None,
  ):
    super().__init__(message, response_data=response_data)
    self.statement_id = statement_id


class InfluxQueryCancelledError(InfluxAPIError):
  """The query was aborted by the caller or by a failure while reading it."""

  pass


class InfluxTimeoutError(InfluxQueryCancelledError):
  """The query exceeded the configured timeout."""

  pass
