"""A byte-ceiling wrapper around a readable stream."""

from __future__ import annotations

import io
import threading
from typing import Protocol

from ipfsctl.errors import FetchCancelled


class ReadCloser(Protocol):
    def read(self, size: int = -1, /) -> bytes: ...

    def close(self) -> None: ...


class LimitReadCloser(io.RawIOBase):
    """Yield at most *limit* bytes from *raw*, then report end-of-stream.

    Closing closes *raw* exactly once, however often ``close()`` is called.
    When *cancel* is set, the next read closes *raw* and raises FetchCancelled.
    """

    def __init__(self, raw: ReadCloser, limit: int, cancel: threading.Event | None = None) -> None:
        super().__init__()
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        self.raw = raw
        self.limit = limit
        self.consumed = 0
        self._cancel = cancel

    @property
    def remaining(self) -> int:
        return self.limit - self.consumed

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        if self._cancel is not None and self._cancel.is_set():
            self.close()
            raise FetchCancelled("fetch cancelled")
        want = min(len(buffer), self.remaining)
        if want <= 0:
            return 0
        data = self.raw.read(want)[:want]
        n = len(data)
        buffer[:n] = data
        self.consumed += n
        return n

    def close(self) -> None:
        if self.closed:
            return
        try:
            self.raw.close()
        finally:
            super().close()
