"""Readers that virtually concatenate several underlying readers."""

from __future__ import annotations

import bisect
import io
import os
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from .serr import PrefixErr, gather_prefixed


class InvalidSizeError(Exception):
    """A reader returned more bytes than its declared size."""

    def __init__(self, message: str = "invalid size") -> None:
        super().__init__(message)


class MultiReadError(Exception):
    """Details of a failed read from one of the concatenated readers."""

    def __init__(
        self,
        index: int,
        reader_off: int,
        total_off: int,
        buf_len: int,
        err: BaseException,
        cause: str,
    ) -> None:
        super().__init__(index, reader_off, total_off, buf_len, err, cause)
        self.index = index
        self.reader_off = reader_off
        self.total_off = total_off
        self.buf_len = buf_len
        self.err = err
        self.cause = cause
        self.__cause__ = err

    def __str__(self) -> str:
        return (
            f"MultiReadError: idx = {self.index}, off = {self.reader_off}, "
            f"err = {self.err}, cause = {self.cause}"
        )


@dataclass
class SizedReaderAt:
    """A reader-at together with the number of bytes it holds."""

    reader: Any
    size: int


class _FileReaderAt:
    """Random access over a seekable file object."""

    def __init__(self, f: Any) -> None:
        self._f = f
        self._lock = threading.Lock()

    def read_at(self, size: int, off: int) -> bytes:
        with self._lock:
            self._f.seek(off)
            return self._f.read(size)

    def close(self) -> None:
        self._f.close()


def sized_readers_from_file_like(files: Iterable[Any]) -> list[SizedReaderAt]:
    """Build sized readers from file objects, taking sizes from their stat."""
    out = []
    for f in files:
        stat = getattr(f, "stat", None)
        st = stat() if callable(stat) else os.fstat(f.fileno())
        reader = f if hasattr(f, "read_at") else _FileReaderAt(f)
        out.append(SizedReaderAt(reader, st.st_size))
    return out


def sized_readers_from_read_at_sizer(readers: Iterable[Any]) -> list[SizedReaderAt]:
    """Build sized readers from reader-ats that report their own size()."""
    return [SizedReaderAt(r, r.size()) for r in readers]


class MultiReadAtSeekCloser:
    """Concatenation of sized readers supporting read, read_at, seek and close."""

    def __init__(self, readers: Iterable[SizedReaderAt]) -> None:
        self._readers = list(readers)
        self._heads: list[int] = []
        total = 0
        for entry in self._readers:
            self._heads.append(total)
            total += entry.size
        self._upper = total
        self._off = 0
        self._idx = 0

    def __enter__(self) -> "MultiReadAtSeekCloser":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _search(self, off: int, lo: int = 0) -> int:
        if lo >= len(self._readers):
            return -1
        j = bisect.bisect_right(self._heads, off, lo=lo) - 1
        if j >= lo and off < self._heads[j] + self._readers[j].size:
            return j
        return -1

    def _fetch(self, i: int, size: int, off: int) -> bytes:
        reader_off = off - self._heads[i]
        try:
            return self._readers[i].reader.read_at(size, reader_off)
        except Exception as exc:
            raise MultiReadError(i, reader_off, off, size, exc, "read error") from exc

    def _check(self, i: int, data: bytes, size: int, off: int) -> None:
        reader_off = off - self._heads[i]
        rem = self._readers[i].size - reader_off
        if len(data) > rem:
            raise MultiReadError(i, reader_off, off, size, InvalidSizeError(), "read more")
        if not data and rem > 0:
            raise MultiReadError(
                i, reader_off, off, size, EOFError("unexpected EOF"), "read less"
            )

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            parts = []
            while self._off < self._upper:
                parts.append(self.read(self._upper - self._off))
            return b"".join(parts)
        if self._off >= self._upper or size == 0:
            return b""
        i = self._search(self._off, self._idx)
        if i < 0:
            i = self._search(self._off)
        off = self._off
        data = self._fetch(i, size, off)
        self._idx = i
        self._off += len(data)
        self._check(i, data, size, off)
        return data

    def read_at(self, size: int, off: int) -> bytes:
        """Read up to size bytes at off; a short result means the end was reached."""
        if off < 0 or off >= self._upper:
            return b""
        remaining = self._upper - off
        if size is None or size < 0 or size > remaining:
            size = remaining
        parts = []
        while size > 0:
            i = self._search(off)
            data = self._fetch(i, size, off)
            self._check(i, data, size, off)
            parts.append(data)
            off += len(data)
            size -= len(data)
        return b"".join(parts)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            pass
        elif whence == io.SEEK_CUR:
            offset += self._off
        elif whence == io.SEEK_END:
            offset += self._upper
        else:
            raise ValueError(f"Seek: invalid whence: {whence}")
        if offset < 0:
            raise ValueError("Seek: negative position")
        self._off = offset
        if offset >= self._upper:
            self._idx = len(self._readers)
        else:
            self._idx = self._search(offset)
        return offset

    def tell(self) -> int:
        return self._off

    def close(self) -> None:
        """Close every reader that can be closed, raising their gathered errors."""
        pairs = []
        for i, entry in enumerate(self._readers):
            closer = getattr(entry.reader, "close", None)
            if callable(closer):
                pairs.append(PrefixErr(f"index {i}: ", _call_close(closer)))
        err = gather_prefixed(pairs)
        if err is not None:
            raise err


def _call_close(closer: Any) -> Optional[BaseException]:
    try:
        closer()
    except Exception as exc:
        return exc
    return None


class MultiReadCloser:
    """Sequential concatenation of readers that closes all of them on close."""

    def __init__(self, *readers: Any) -> None:
        self._readers = readers
        self._idx = 0

    def __enter__(self) -> "MultiReadCloser":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            parts = [r.read() for r in self._readers[self._idx:]]
            self._idx = len(self._readers)
            return b"".join(parts)
        if size == 0:
            return b""
        while self._idx < len(self._readers):
            data = self._readers[self._idx].read(size)
            if data:
                return data
            self._idx += 1
        return b""

    def close(self) -> None:
        pairs = [
            PrefixErr(f"index {i}: ", _call_close(r.close))
            for i, r in enumerate(self._readers)
        ]
        err = gather_prefixed(pairs)
        if err is not None:
            raise err