"""
Cooperative cancellation for query execution.

A ``CancellationToken`` is a one-shot, thread-safe flag with callbacks. The
retriever derives a linked token from the caller's token for every query:
the linked token fires when the caller cancels, and the retriever can also
fire it on its own when the read fails, without touching the caller's token.
"""

import threading
from typing import Callable, List, Optional

from .exceptions import InfluxQueryCancelledError

Callback = Callable[[], None]


class CancellationToken:
  """One-shot cancellation signal that can be shared across threads."""

  def __init__(self) -> None:
    self._lock = threading.Lock()
    self._cancelled = False
    self._reason: Optional[str] = None
    self._callbacks: List[Callback] = []
    self._parent_links: List[Callable[[], None]] = []

  @classmethod
  def linked(cls, *parents: Optional["CancellationToken"]) -> "CancellationToken":
    """
    Create a token that is cancelled when any parent is cancelled.

    Cancelling the returned token does not cancel the parents.

    Args:
        *parents: Upstream tokens; ``None`` entries are ignored

    Returns:
        New linked CancellationToken
    """
    token = cls()
    for parent in parents:
      if parent is None:
        continue
      token._parent_links.append(
        parent.register(lambda p=parent: token.cancel(p.reason))
      )
    return token

  @property
  def cancelled(self) -> bool:
    return self._cancelled

  @property
  def reason(self) -> Optional[str]:
    return self._reason

  def cancel(self, reason: Optional[str] = None) -> bool:
    """
    Request cancellation.

    Args:
        reason: Optional description recorded on the first call

    Returns:
        True if this call cancelled the token, False if it already was
    """
    with self._lock:
      if self._cancelled:
        return False
      self._cancelled = True
      self._reason = reason
      callbacks, self._callbacks = self._callbacks, []

    for callback in callbacks:
      callback()
    return True

  def register(self, callback: Callback) -> Callable[[], None]:
    """
    Run ``callback`` once when the token is cancelled.

    The callback runs immediately, on the calling thread, if the token is
    already cancelled. Otherwise it runs on the thread that calls
    ``cancel()``.

    Returns:
        A function that unregisters the callback
    """
    with self._lock:
      if not self._cancelled:
        self._callbacks.append(callback)
        return lambda: self._unregister(callback)

    callback()
    return lambda: None

  def _unregister(self, callback: Callback) -> None:
    with self._lock:
      try:
        self._callbacks.remove(callback)
      except ValueError:
        pass

  def detach(self) -> None:
    """Stop listening to the parent tokens."""
    links, self._parent_links = self._parent_links, []
    for unregister in links:
      unregister()

  def raise_if_cancelled(self) -> None:
    """
    Raises:
        InfluxQueryCancelledError: If the token has been cancelled
    """
    if self._cancelled:
      message = "Query cancelled"
      if self._reason:
        message = f"{message}: {self._reason}"
      raise InfluxQueryCancelledError(message)
