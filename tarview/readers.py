"""Basic random-access readers: a byte repeater, a section view and an in-memory source."""

from __future__ import annotations

import io
from typing import Any


class ByteRepeater:
    """Endlessly yields the same byte; combine with SectionReader to bound it."""

    def __init__(self, b: int | bytes) -> None:
        if isinstance(b, (bytes, bytearray)):
            if len(b) != 1:
                raise ValueError("ByteRepeater needs exactly one byte")
            b = b[0]
        if not 0 <= b <= 255:
            raise ValueError(f"byte value out of range: {b}")
        self._b = bytes([b])

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            raise ValueError("ByteRepeater is endless; size must be non-negative")
        return self._b * size

    def read_at(self, size: int, off: int) -> bytes:
        if size < 0:
            raise ValueError("size must be non-negative")
        return self._b * size


class BytesReaderAt:
    """Random-access reads over an in-memory byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    def __len__(self) -> int:
        return len(self._data)

    def read_at(self, size: int, off: int) -> bytes:
        if off < 0:
            raise ValueError("negative offset")
        if size < 0:
            raise ValueError("size must be non-negative")
        return self._data[off:off + size]


class SectionReader:
    """A readable, seekable window of n bytes starting at off in a reader-at."""

    def __init__(self, r: Any, off: int, n: int) -> None:
        self._r = r
        self._base = off
        self._off = off
        self._limit = off + max(n, 0)

    def size(self) -> int:
        return self._limit - self._base

    def read(self, size: int = -1) -> bytes:
        if self._off >= self._limit:
            return b""
        remaining = self._limit - self._off
        if size is None or size < 0 or size > remaining:
            size = remaining
        data = self._r.read_at(size, self._off)
        self._off += len(data)
        return data

    def read_at(self, size: int, off: int) -> bytes:
        if off < 0 or off >= self.size():
            return b""
        off += self._base
        remaining = self._limit - off
        if size is None or size < 0 or size > remaining:
            size = remaining
        return self._r.read_at(size, off)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            offset += self._base
        elif whence == io.SEEK_CUR:
            offset += self._off
        elif whence == io.SEEK_END:
            offset += self._limit
        else:
            raise ValueError(f"invalid whence: {whence}")
        if offset < self._base:
            raise ValueError("invalid offset")
        self._off = offset
        return offset - self._base

    def tell(self) -> int:
        return self._off - self._base