"""
Synchronous wrapper for InfluxDataRetriever.

This module provides a blocking interface around the async retriever for
use in CLI tools, scripts and other synchronous contexts.
"""

import asyncio
import concurrent.futures
from typing import List, Optional

from .cancellation import CancellationToken
from .client import InfluxDataRetriever, QueryBuilder, RowParser, T


class InfluxSyncRetriever:
  """Synchronous wrapper around the async InfluxDataRetriever."""

  def __init__(self, base_url: Optional[str] = None, **kwargs):
    """
    Initialize sync retriever with an async retriever underneath.

    The async retriever's connection pool lives on a private event loop
    owned by this wrapper, so it stays usable across ``execute`` calls.
    """
    self._loop = asyncio.new_event_loop()
    self._retriever = InfluxDataRetriever(base_url=base_url, **kwargs)
    self._closed = False

  def __enter__(self):
    """Context manager entry."""
    return self

  def __exit__(self, exc_type, exc_val, exc_tb):
    """Context manager exit."""
    self.close()

  @property
  def config(self):
    return self._retriever.config

  def _run_async(self, coro):
    """Run a coroutine on the private loop and return its result."""
    try:
      asyncio.get_running_loop()
    except RuntimeError:
      # No running loop in this thread, drive ours directly
      return self._loop.run_until_complete(coro)

    # Called from async code: drive the private loop from a worker thread
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
      future = executor.submit(self._loop.run_until_complete, coro)
      return future.result()

  def close(self) -> None:
    """Close the retriever and its event loop. Safe to call more than once."""
    if self._closed:
      return
    self._closed = True
    try:
      self._run_async(self._retriever.close())
    finally:
      self._loop.close()

  def execute(
    self,
    query_builder: QueryBuilder,
    row_parser: RowParser,
    cancellation: Optional[CancellationToken] = None,
    filter_builder: Optional[QueryBuilder] = None,
  ) -> List[T]:
    """
    Execute one chunked query, blocking until it completes.

    ``cancellation`` may be cancelled from another thread while this call
    blocks. See ``InfluxDataRetriever.execute`` for the full contract.
    """
    if self._closed:
      raise RuntimeError("InfluxSyncRetriever is closed")
    return self._run_async(
      self._retriever.execute(query_builder, row_parser, cancellation, filter_builder)
    )
