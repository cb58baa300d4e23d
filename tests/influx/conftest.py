import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import httpx
import pytest

from tsretriever.influx.client import InfluxDataRetriever
from tsretriever.influx.config import InfluxClientConfig

BASE_URL = "http://influx.test:8086"
DATABASE = "telemetry"


def _series(
  rows: Optional[List[List[Any]]],
  name: str = "cpu",
  columns: Optional[List[str]] = None,
) -> Dict[str, Any]:
  return {
    "name": name,
    "columns": columns or ["time", "value"],
    "values": rows,
  }


def _document(*series_list: Dict[str, Any], statement_id: int = 0) -> bytes:
  block: Dict[str, Any] = {"statement_id": statement_id}
  if series_list:
    block["series"] = list(series_list)
  return (json.dumps({"results": [block]}) + "\n").encode("utf-8")


@pytest.fixture
def make_series():
  """Build one series dict: make_series(rows, name=..., columns=...)."""
  return _series


@pytest.fixture
def make_document():
  """Serialize one newline-terminated chunked response document."""
  return _document


@pytest.fixture
async def make_retriever():
  """Build retrievers backed by an httpx.MockTransport handler."""
  created: List[InfluxDataRetriever] = []

  def _make(handler, **overrides) -> InfluxDataRetriever:
    config = InfluxClientConfig(base_url=BASE_URL, database=DATABASE)
    retriever = InfluxDataRetriever(
      config=config,
      transport=httpx.MockTransport(handler),
      **overrides,
    )
    created.append(retriever)
    return retriever

  yield _make

  for retriever in created:
    await retriever.close()


@pytest.fixture
def mock_stream():
  """Build a mocked `client.stream()` context manager around body chunks."""

  def _make(chunks: List[bytes], status_code: int = 200, error_body: bytes = b""):
    response = AsyncMock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.aread.return_value = error_body

    async def mock_aiter_bytes():
      for chunk in chunks:
        yield chunk

    response.aiter_bytes = mock_aiter_bytes

    stream = AsyncMock()
    stream.__aenter__.return_value = response
    stream.__aexit__.return_value = None
    return stream

  return _make
