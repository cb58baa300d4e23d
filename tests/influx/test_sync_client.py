"""Tests for InfluxSyncRetriever."""

import asyncio
import threading
from unittest.mock import patch

import httpx
import pytest

from tsretriever.influx.cancellation import CancellationToken
from tsretriever.influx.config import InfluxClientConfig
from tsretriever.influx.exceptions import InfluxClientError, InfluxQueryCancelledError
from tsretriever.influx.sync_client import InfluxSyncRetriever


def _retriever(handler) -> InfluxSyncRetriever:
  return InfluxSyncRetriever(
    base_url="http://influx.test:8086",
    database="telemetry",
    config=InfluxClientConfig(),
    transport=httpx.MockTransport(handler),
  )


class TestInfluxSyncRetriever:
  """Test cases for the blocking wrapper."""

  def test_execute(self, make_document, make_series):
    body = make_document(make_series([["t1", 1], ["t2", 2]]))

    with _retriever(lambda request: httpx.Response(200, content=body)) as retriever:
      records = retriever.execute(lambda: "SELECT * FROM cpu", lambda row: row[1])
      again = retriever.execute(lambda: "SELECT * FROM cpu", lambda row: row[1])

    assert records == [1, 2]
    assert again == [1, 2]

  def test_config_property(self):
    retriever = _retriever(lambda request: httpx.Response(200))
    try:
      assert retriever.config.database == "telemetry"
    finally:
      retriever.close()

  def test_errors_propagate(self):
    retriever = _retriever(
      lambda request: httpx.Response(400, json={"error": "bad query"})
    )
    try:
      with pytest.raises(InfluxClientError, match="bad query"):
        retriever.execute(lambda: "SELEC", list)
    finally:
      retriever.close()

  def test_cancel_from_another_thread(self, make_document, make_series):
    first = make_document(make_series([["t1", 1]]))

    async def stalled():
      yield first
      await asyncio.sleep(3600)

    retriever = _retriever(lambda request: httpx.Response(200, content=stalled()))
    token = CancellationToken()
    timer = threading.Timer(0.3, token.cancel, args=("operator abort",))
    timer.start()
    try:
      with pytest.raises(InfluxQueryCancelledError, match="operator abort"):
        retriever.execute(lambda: "SELECT * FROM cpu", list, token)
    finally:
      timer.cancel()
      retriever.close()

  def test_close_is_idempotent(self):
    retriever = _retriever(lambda request: httpx.Response(200))

    retriever.close()
    retriever.close()

    with pytest.raises(RuntimeError, match="closed"):
      retriever.execute(lambda: "SELECT 1", list)

  @pytest.mark.asyncio
  async def test_usable_from_async_code(self, make_document, make_series):
    body = make_document(make_series([["t1", 1]]))
    retriever = _retriever(lambda request: httpx.Response(200, content=body))
    try:
      assert retriever.execute(lambda: "SELECT * FROM cpu", list) == [["t1", 1]]
    finally:
      retriever.close()

  def test_close_closes_loop_even_if_client_close_fails(self):
    retriever = _retriever(lambda request: httpx.Response(200))

    with patch.object(
      retriever._retriever, "close", side_effect=RuntimeError("close failed")
    ):
      with pytest.raises(RuntimeError, match="close failed"):
        retriever.close()

    assert retriever._loop.is_closed()
