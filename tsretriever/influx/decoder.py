"""
Incremental decoder for chunked query responses.

A chunked `/query` response is not one JSON value: the server writes one
complete JSON object per chunk, back to back, as results become available.
``ResponseDecoder`` accepts the body in arbitrarily sized byte pieces and
hands back each top-level object as soon as its closing brace arrives.

Object boundaries are found by scanning the raw bytes for ``{``, ``}``,
``"`` and ``\\``. All four are ASCII and never occur inside a multi-byte
UTF-8 sequence, so splits in the middle of a character, a string, an escape
or a number are all handled without decoding partial text.
"""

import json
import re
from typing import Any, AsyncIterable, AsyncIterator, Dict, Iterable, Iterator, List

from pydantic import ValidationError

from .exceptions import InfluxDecodeError, InfluxQueryError
from .models import ResponseDocument, Row

_UTF8_BOM = b"\xef\xbb\xbf"
_OPEN_BRACE = ord("{")
_CLOSE_BRACE = ord("}")
_QUOTE = ord('"')

# Next byte that is not inter-document whitespace
_NON_WHITESPACE = re.compile(rb"[^ \t\r\n]")
# Next byte that changes nesting or enters a string
_STRUCTURAL = re.compile(rb'[{}"]')
# Next byte that ends a string or starts an escape
_STRING_SPECIAL = re.compile(rb'["\\]')


class ResponseDecoder:
  """
  Split a byte stream of concatenated JSON objects into decoded objects.

  Usage::

      decoder = ResponseDecoder()
      for piece in body:
          for obj in decoder.feed(piece):
              ...
      decoder.close()
  """

  def __init__(self) -> None:
    self._buffer = bytearray()
    self._pos = 0  # scan position within the buffer
    self._start = -1  # buffer index of the open document's first byte
    self._depth = 0
    self._in_string = False
    self._escape = False
    self._offset = 0  # stream offset of buffer[0], for error messages
    self._bom_checked = False

  @property
  def in_document(self) -> bool:
    """Whether a document has been opened but not yet completed."""
    return self._depth > 0

  def feed(self, data: bytes) -> List[Dict[str, Any]]:
    """
    Consume the next piece of the stream.

    Args:
        data: Raw response bytes, split anywhere

    Returns:
        Objects completed by this piece, in stream order

    Raises:
        InfluxDecodeError: If the stream is not a sequence of JSON objects
    """
    if not data:
      return []

    buf = self._buffer
    buf.extend(data)

    if not self._bom_checked:
      if len(buf) < len(_UTF8_BOM) and _UTF8_BOM.startswith(bytes(buf)):
        return []
      if buf.startswith(_UTF8_BOM):
        del buf[: len(_UTF8_BOM)]
        self._offset += len(_UTF8_BOM)
      self._bom_checked = True

    documents: List[Dict[str, Any]] = []
    consumed = 0
    i = self._pos
    n = len(buf)

    while i < n:
      if self._depth == 0:
        match = _NON_WHITESPACE.search(buf, i)
        if match is None:
          i = n
          consumed = n
          break
        i = match.start()
        if buf[i] != _OPEN_BRACE:
          raise InfluxDecodeError(
            f"Unexpected byte {bytes(buf[i : i + 1])!r} between documents "
            f"at offset {self._offset + i}"
          )
        self._start = i
        self._depth = 1
        i += 1
        continue

      if self._in_string:
        if self._escape:
          # Escaped byte carried over from the previous piece
          self._escape = False
          i += 1
          continue
        match = _STRING_SPECIAL.search(buf, i)
        if match is None:
          i = n
          break
        i = match.start()
        if buf[i] == _QUOTE:
          self._in_string = False
          i += 1
        elif i + 1 < n:
          i += 2
        else:
          self._escape = True
          i = n
        continue

      match = _STRUCTURAL.search(buf, i)
      if match is None:
        i = n
        break
      i = match.start()
      byte = buf[i]
      i += 1
      if byte == _QUOTE:
        self._in_string = True
      elif byte == _OPEN_BRACE:
        self._depth += 1
      else:
        self._depth -= 1
        if self._depth == 0:
          raw = buf[self._start : i]
          documents.append(self._parse(raw, self._offset + self._start))
          self._start = -1
          consumed = i

    # Drop everything before the current document (or all of it)
    if self._depth > 0:
      consumed = self._start
    if consumed:
      del buf[:consumed]
      self._offset += consumed
      i -= consumed
      if self._start >= 0:
        self._start -= consumed
    self._pos = i
    return documents

  def close(self) -> None:
    """
    Signal end of stream.

    Raises:
        InfluxDecodeError: If the stream ended inside a document or a
            byte-order mark
    """
    if not self._bom_checked and self._buffer:
      raise InfluxDecodeError(
        f"Response ended inside a byte-order mark: {bytes(self._buffer)!r}"
      )
    if self._depth > 0 or self._in_string:
      raise InfluxDecodeError(
        f"Response ended inside a document starting at offset "
        f"{self._offset + max(self._start, 0)}"
      )

  @staticmethod
  def _parse(raw: bytearray, offset: int) -> Dict[str, Any]:
    try:
      return json.loads(bytes(raw))
    except ValueError as e:
      raise InfluxDecodeError(
        f"Malformed JSON document at offset {offset}: {e}"
      ) from e


def parse_document(obj: Dict[str, Any]) -> ResponseDocument:
  """
  Validate a decoded object as a response document.

  Raises:
      InfluxDecodeError: If the object does not have the result shape
  """
  try:
    return ResponseDocument.model_validate(obj)
  except ValidationError as e:
    raise InfluxDecodeError(
      f"Unexpected response document shape: {e.error_count()} validation errors",
      response_data=obj,
    ) from e


def decode_stream(chunks: Iterable[bytes]) -> Iterator[ResponseDocument]:
  """Decode response documents from an iterable of byte pieces."""
  decoder = ResponseDecoder()
  for chunk in chunks:
    for obj in decoder.feed(chunk):
      yield parse_document(obj)
  decoder.close()


async def aiter_documents(
  chunks: AsyncIterable[bytes],
) -> AsyncIterator[ResponseDocument]:
  """Decode response documents from an async iterable of byte pieces."""
  decoder = ResponseDecoder()
  async for chunk in chunks:
    for obj in decoder.feed(chunk):
      yield parse_document(obj)
  decoder.close()


def iter_rows(document: ResponseDocument) -> Iterator[Row]:
  """
  Yield every row of a document in document order.

  Blocks without series and series without values contribute nothing.

  Raises:
      InfluxQueryError: If the document or one of its blocks carries an error
  """
  if document.error:
    raise InfluxQueryError(document.error)

  for block in document.results or []:
    if block.error:
      raise InfluxQueryError(block.error, statement_id=block.statement_id)
    if not block.series:
      continue
    for series in block.series:
      if series.values:
        yield from series.values
