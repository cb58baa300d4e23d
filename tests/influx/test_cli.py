"""Tests for the InfluxDB retriever command-line interface."""

import json
from unittest.mock import patch

import pytest

from tsretriever.influx import cli
from tsretriever.influx.cancellation import CancellationToken
from tsretriever.influx.exceptions import (
  InfluxClientError,
  InfluxQueryCancelledError,
)


@pytest.fixture
def mock_retriever_cls():
  with patch("tsretriever.influx.cli.InfluxSyncRetriever") as mock_cls:
    yield mock_cls


def _execute(mock_cls):
  return mock_cls.return_value.__enter__.return_value.execute


class TestCLI:
  """Test cases for cli.main."""

  def test_no_command_prints_help(self, capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()

  def test_requires_database(self, mock_retriever_cls):
    assert cli.main(["--database", "", "query", "SELECT 1"]) == 1
    mock_retriever_cls.assert_not_called()

  def test_query_table_output(self, mock_retriever_cls, capsys):
    _execute(mock_retriever_cls).return_value = [
      ["2024-01-01T00:00:00Z", "web-1", 0.5],
      ["2024-01-01T00:00:10Z", None, 0.7],
    ]

    exit_code = cli.main(
      [
        "--url",
        "http://influx:8086",
        "--database",
        "telemetry",
        "--timeout",
        "30",
        "query",
        "SELECT * FROM cpu",
        "--filter",
        "WHERE time > now() - 1h",
        "--chunk-size",
        "100",
      ]
    )

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "2024-01-01T00:00:00Z | web-1 | 0.5" in out
    assert "2024-01-01T00:00:10Z |  | 0.7" in out
    assert "2 rows returned" in out

    kwargs = mock_retriever_cls.call_args.kwargs
    assert kwargs["base_url"] == "http://influx:8086"
    assert kwargs["database"] == "telemetry"
    assert kwargs["timeout"] == 30.0
    assert kwargs["chunk_size"] == 100

    query_builder, row_parser, token, filter_builder = (
      _execute(mock_retriever_cls).call_args.args
    )
    assert query_builder() == "SELECT * FROM cpu"
    assert row_parser is list
    assert isinstance(token, CancellationToken)
    assert filter_builder() == "WHERE time > now() - 1h"

  def test_query_without_filter(self, mock_retriever_cls):
    _execute(mock_retriever_cls).return_value = []

    cli.main(["--database", "telemetry", "query", "SELECT 1"])

    assert _execute(mock_retriever_cls).call_args.args[3] is None

  def test_query_passes_verify_ssl_from_env(self, mock_retriever_cls, monkeypatch):
    _execute(mock_retriever_cls).return_value = []
    monkeypatch.setattr(cli.env, "INFLUX_VERIFY_SSL", False)

    cli.main(["--database", "telemetry", "query", "SELECT 1"])

    assert mock_retriever_cls.call_args.kwargs["verify_ssl"] is False

  def test_query_json_output(self, mock_retriever_cls, capsys):
    _execute(mock_retriever_cls).return_value = [["2024-01-01T00:00:00Z", 1]]

    exit_code = cli.main(
      ["--database", "telemetry", "query", "SELECT * FROM cpu", "--format", "json"]
    )

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == [["2024-01-01T00:00:00Z", 1]]

  def test_query_no_results(self, mock_retriever_cls, capsys):
    _execute(mock_retriever_cls).return_value = []

    assert cli.main(["--database", "telemetry", "query", "SELECT 1"]) == 0
    assert "No results returned." in capsys.readouterr().out

  def test_api_error_returns_failure(self, mock_retriever_cls):
    _execute(mock_retriever_cls).side_effect = InfluxClientError(
      "HTTP 400: error parsing query", 400, {"error": "error parsing query"}
    )

    assert cli.main(["--database", "telemetry", "query", "SELEC"]) == 1

  def test_cancelled_query_returns_failure(self, mock_retriever_cls):
    _execute(mock_retriever_cls).side_effect = InfluxQueryCancelledError(
      "Query cancelled: interrupted"
    )

    assert cli.main(["--database", "telemetry", "query", "SELECT 1"]) == 1

  def test_sigint_handler_is_restored(self, mock_retriever_cls):
    _execute(mock_retriever_cls).return_value = []

    with patch("tsretriever.influx.cli.signal.signal") as mock_signal:
      mock_signal.return_value = "previous"
      cli.main(["--database", "telemetry", "query", "SELECT 1"])

    assert mock_signal.call_count == 2
    assert mock_signal.call_args_list[1].args == (cli.signal.SIGINT, "previous")

  def test_sigint_cancels_the_query_token(self, mock_retriever_cls):
    _execute(mock_retriever_cls).return_value = []

    with patch("tsretriever.influx.cli.signal.signal") as mock_signal:
      cli.main(["--database", "telemetry", "query", "SELECT 1"])

    handler = mock_signal.call_args_list[0].args[1]
    token = _execute(mock_retriever_cls).call_args.args[2]
    handler(2, None)
    assert token.cancelled is True
    assert token.reason == "interrupted"
