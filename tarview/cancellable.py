"""A reader wrapper that stops reading once its context is cancelled."""

from __future__ import annotations

import threading
from typing import Any, Optional


class CancelledError(Exception):
    """Raised by reads made after the context was cancelled."""


class Context:
    """A cancellation signal shared between a caller and readers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._err: Optional[CancelledError] = None

    def cancel(self) -> None:
        with self._lock:
            if self._err is None:
                self._err = CancelledError("context canceled")

    def err(self) -> Optional[CancelledError]:
        with self._lock:
            return self._err


class Cancellable:
    """Reads from reader while respecting ctx.

    The first failure, end of stream or cancellation included, is remembered
    and every later read reports it again. Cancellation does not interrupt a
    read already blocked in the underlying reader. Not thread safe.
    """

    def __init__(self, ctx: Context, reader: Any) -> None:
        self._ctx = ctx
        self._reader = reader
        self._err: Optional[BaseException] = None
        self._eof = False

    def read(self, size: int = -1) -> bytes:
        if self._err is not None:
            raise self._err
        if self._eof:
            return b""
        err = self._ctx.err()
        if err is not None:
            self._err = err
            raise err
        try:
            data = self._reader.read(size)
        except Exception as exc:
            self._err = exc
            raise
        if size is None or size < 0 or (size > 0 and not data):
            self._eof = True
        return data