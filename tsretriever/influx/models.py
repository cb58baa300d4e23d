"""
Response models for chunked InfluxDB query results.

Each document in a chunked response has the shape::

    {"results": [{"statement_id": 0,
                  "series": [{"name": "cpu",
                              "columns": ["time", "value"],
                              "values": [["2024-01-01T00:00:00Z", 0.5]]}]}]}

Row values are kept exactly as decoded from JSON. Timestamp strings are not
converted; interpreting them is left to the row parser.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

Row = List[Any]


class Series(BaseModel):
  """One measurement series within a statement result."""

  model_config = ConfigDict(extra="ignore")

  name: str = Field("", description="Measurement name")
  columns: List[str] = Field(default_factory=list, description="Column names")
  values: Optional[List[Row]] = Field(None, description="Rows, positional to columns")
  tags: Optional[Dict[str, str]] = Field(None, description="GROUP BY tag values")
  partial: bool = Field(False, description="More rows follow in a later chunk")


class ResultBlock(BaseModel):
  """Result of one statement of the query."""

  model_config = ConfigDict(extra="ignore")

  statement_id: int = Field(0, description="Index of the statement in the query")
  series: Optional[List[Series]] = Field(None, description="Series returned")
  error: Optional[str] = Field(None, description="Statement-level error message")
  partial: bool = Field(False, description="More chunks follow for this statement")


class ResponseDocument(BaseModel):
  """One top-level JSON document of the response stream."""

  model_config = ConfigDict(extra="ignore")

  results: Optional[List[ResultBlock]] = Field(
    None, description="One block per statement"
  )
  error: Optional[str] = Field(None, description="Query-level error message")
