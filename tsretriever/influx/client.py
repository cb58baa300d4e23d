"""
Asynchronous InfluxDB Query Retriever.

Executes one chunked InfluxQL query per call and turns the streamed rows
into caller-defined records. The read loop runs as its own task so the
caller only waits on its completion, its cancellation token, or the
overall timeout, whichever comes first.
"""

import asyncio
import base64
import json
import time
from contextlib import aclosing
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import httpx

from tsretriever.logger import influx_logger as logger, log_database_query
from .cancellation import CancellationToken
from .config import InfluxClientConfig
from .decoder import aiter_documents, iter_rows
from .exceptions import (
  InfluxAPIError,
  InfluxClientError,
  InfluxQueryCancelledError,
  InfluxServerError,
  InfluxTimeoutError,
  InfluxTransportError,
)
from .models import Row

T = TypeVar("T")

QueryBuilder = Callable[[], str]
RowParser = Callable[[Row], Optional[T]]


class InfluxDataRetriever:
  """Asynchronous client for chunked InfluxDB queries."""

  def __init__(
    self,
    base_url: Optional[str] = None,
    database: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    timeout: Optional[float] = None,
    config: Optional[InfluxClientConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
  ):
    """
    Initialize the retriever.

    Args:
        base_url: Base URL of the InfluxDB HTTP API
        database: Database (table) queried by ``execute``
        username: Basic auth user; no auth header when user and password are blank
        password: Basic auth password
        timeout: Overall limit for one query in seconds (default 5 minutes)
        config: Client configuration
        transport: Optional httpx transport (used for testing and proxies)
        **kwargs: Additional config overrides
    """
    from tsretriever.config import env

    self.config = config or InfluxClientConfig.from_env()

    overrides: Dict[str, Any] = {
      "base_url": base_url or self.config.base_url or env.INFLUX_URL,
      "database": database or self.config.database or env.INFLUX_DATABASE,
      "username": username
      if username is not None
      else self.config.username or env.INFLUX_USERNAME,
      "password": password
      if password is not None
      else self.config.password or env.INFLUX_PASSWORD,
    }
    if timeout is not None:
      overrides["timeout"] = timeout
    overrides.update(kwargs)
    overrides["base_url"] = (overrides["base_url"] or "").rstrip("/")
    self.config = self.config.with_overrides(**overrides)

    if not self.config.base_url:
      raise ValueError("base_url must be provided or set in environment")
    if not self.config.database:
      raise ValueError("database must be provided or set in environment")

    headers = {
      "Accept": "application/json",
      "Accept-Encoding": "gzip, deflate",
    }
    headers.update(self.config.headers)
    if self.config.has_credentials():
      credentials = f"{self.config.username}:{self.config.password}".encode("utf-8")
      headers["Authorization"] = f"Basic {base64.b64encode(credentials).decode('ascii')}"
      logger.debug("InfluxDataRetriever configured with basic auth")

    limits = httpx.Limits(
      max_connections=self.config.max_connections,
      max_keepalive_connections=self.config.max_keepalive_connections,
      keepalive_expiry=self.config.keepalive_expiry,
    )

    # The overall query limit is enforced in execute(); httpx only bounds
    # the connect phase and each individual read.
    self.client = httpx.AsyncClient(
      base_url=self.config.base_url,
      timeout=httpx.Timeout(
        self.config.timeout or None, connect=self.config.connect_timeout
      ),
      limits=limits,
      headers=headers,
      verify=self.config.verify_ssl,
      transport=transport,
    )
    self._closed = False

  async def __aenter__(self):
    """Async context manager entry."""
    return self

  async def __aexit__(self, exc_type, exc_val, exc_tb):
    """Async context manager exit."""
    await self.close()

  @property
  def closed(self) -> bool:
    return self._closed

  async def close(self) -> None:
    """Close the HTTP client. Safe to call more than once."""
    if self._closed:
      return
    self._closed = True
    await self.client.aclose()

  def build_query_params(self, query: str) -> Dict[str, str]:
    """
    Build the `/query` parameters for a chunked read.

    Args:
        query: InfluxQL text

    Returns:
        Query string parameters (URL-encoded by httpx)
    """
    params = {
      "db": self.config.database,
      "q": query,
      "chunked": "true",
    }
    if self.config.chunk_size:
      params["chunk_size"] = str(self.config.chunk_size)
    if self.config.epoch:
      params["epoch"] = self.config.epoch
    return params

  @staticmethod
  def _build_query(
    query_builder: QueryBuilder, filter_builder: Optional[QueryBuilder]
  ) -> str:
    filters = filter_builder() if filter_builder is not None else ""
    query = query_builder()
    if filters and filters.strip():
      query = f"{query} {filters.strip()}"
    return query

  def _handle_response_error(
    self, status_code: int, response_data: Optional[Dict[str, Any]] = None
  ) -> InfluxAPIError:
    """
    Convert HTTP status code to appropriate exception.

    Args:
        status_code: HTTP status code
        response_data: Response body data

    Returns:
        Appropriate InfluxAPIError subclass
    """
    error_message = "Query request failed"
    if response_data and isinstance(response_data, dict):
      error_message = (
        response_data.get("error") or response_data.get("detail") or error_message
      )
    error_message = f"HTTP {status_code}: {error_message}"

    if status_code >= 500:
      return InfluxServerError(error_message, status_code, response_data)
    elif status_code >= 400:
      return InfluxClientError(error_message, status_code, response_data)
    # 1xx and 3xx: the query never reached a result stream
    return InfluxTransportError(error_message, status_code, response_data)

  @staticmethod
  def _error_data(body: bytes) -> Dict[str, Any]:
    try:
      data = json.loads(body)
    except ValueError:
      return {"error": body.decode("utf-8", errors="replace")[:500]}
    return data if isinstance(data, dict) else {"error": str(data)}

  async def execute(
    self,
    query_builder: QueryBuilder,
    row_parser: RowParser,
    cancellation: Optional[CancellationToken] = None,
    filter_builder: Optional[QueryBuilder] = None,
  ) -> List[T]:
    """
    Execute one chunked query and parse every streamed row.

    Args:
        query_builder: Returns the InfluxQL text; called exactly once
        row_parser: Maps one row to a record, or None to discard the row
        cancellation: Token the caller can cancel to abort the query
        filter_builder: Returns filter text appended to the query; called once

    Returns:
        Parsed records in arrival order (callers must not rely on the order)

    Raises:
        InfluxQueryCancelledError: The caller cancelled the query
        InfluxTimeoutError: The query exceeded the configured timeout
        InfluxTransportError: Connection failure or non-success status
        InfluxDecodeError: Malformed response body
        InfluxQueryError: Error reported inside the response body
        Exception: Anything raised by ``row_parser`` or the builders
    """
    if self._closed:
      raise RuntimeError("InfluxDataRetriever is closed")
    if cancellation is not None:
      cancellation.raise_if_cancelled()

    query = self._build_query(query_builder, filter_builder)
    logger.debug(f"Executing chunked query on {self.config.database}: {query}")

    token = CancellationToken.linked(cancellation)
    loop = asyncio.get_running_loop()
    cancel_requested = loop.create_future()

    def _resolve() -> None:
      if not cancel_requested.done():
        cancel_requested.set_result(None)

    def _wake() -> None:
      # cancel() may arrive from any thread
      if not loop.is_closed():
        loop.call_soon_threadsafe(_resolve)

    unregister = token.register(_wake)
    start = time.perf_counter()
    task = asyncio.create_task(self._read(query, row_parser, token))

    try:
      try:
        done, _ = await asyncio.wait(
          {task, cancel_requested},
          timeout=self.config.timeout or None,
          return_when=asyncio.FIRST_COMPLETED,
        )
      except asyncio.CancelledError:
        token.cancel("caller task cancelled")
        await self._abandon(task)
        raise

      if task not in done:
        caller_cancelled = cancellation is not None and cancellation.cancelled
        if cancel_requested in done and not caller_cancelled:
          # Internal failure: the read task is already unwinding with its
          # own exception
          records, row_count = await task
        elif cancel_requested in done:
          await self._abandon(task)
          raise InfluxQueryCancelledError(
            f"Query cancelled: {token.reason}" if token.reason else "Query cancelled"
          )
        else:
          token.cancel("timeout")
          await self._abandon(task)
          raise InfluxTimeoutError(
            f"Query exceeded timeout of {self.config.timeout}s"
          )
      else:
        records, row_count = task.result()
    except InfluxTimeoutError as e:
      logger.warning(f"Query on {self.config.database} timed out: {e}")
      raise
    except InfluxQueryCancelledError as e:
      logger.info(f"Query on {self.config.database} cancelled: {e}")
      raise
    except Exception as e:
      logger.warning(
        f"Query on {self.config.database} failed: {type(e).__name__}: {e}"
      )
      raise
    finally:
      unregister()
      token.detach()
      if not cancel_requested.done():
        cancel_requested.cancel()

    log_database_query(
      logger,
      self.config.database,
      "chunked",
      (time.perf_counter() - start) * 1000,
      row_count=len(records),
      metadata={"rows_read": row_count},
    )
    return records

  @staticmethod
  async def _abandon(task: "asyncio.Task[Any]") -> None:
    """Cancel the read task and wait until it has released the response."""
    task.cancel()
    try:
      await task
    except (asyncio.CancelledError, InfluxQueryCancelledError):
      pass

  async def _read(
    self, query: str, row_parser: RowParser, token: CancellationToken
  ) -> Tuple[List[Any], int]:
    """
    Stream the query response and parse its rows.

    Any failure cancels ``token`` before it propagates, so nothing else
    keeps working on a query that is being abandoned.
    """
    records: List[Any] = []
    row_count = 0
    params = self.build_query_params(query)

    try:
      token.raise_if_cancelled()
      async with self.client.stream("GET", "/query", params=params) as response:
        token.raise_if_cancelled()
        if not response.is_success:
          body = await response.aread()
          raise self._handle_response_error(
            response.status_code, self._error_data(body)
          )

        async with aclosing(aiter_documents(response.aiter_bytes())) as documents:
          async for document in documents:
            token.raise_if_cancelled()
            for row in iter_rows(document):
              token.raise_if_cancelled()
              row_count += 1
              record = row_parser(row)
              if record is not None:
                records.append(record)
    except httpx.TimeoutException as e:
      token.cancel(f"timeout: {e}")
      raise InfluxTimeoutError(f"Request timeout: {e}") from e
    except httpx.HTTPError as e:
      token.cancel(f"transport error: {e}")
      raise InfluxTransportError(f"Transport error: {e}") from e
    except Exception as e:
      token.cancel(f"{type(e).__name__}: {e}")
      raise

    token.raise_if_cancelled()
    return records, row_count
