"""Low-level pieces of the tar format: numeric fields and GNU sparse maps."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

BLOCK_SIZE = 512
NAME_SIZE = 100
PREFIX_SIZE = 155

PAX_GNU_SPARSE = "GNU.sparse."
PAX_GNU_SPARSE_NUM_BLOCKS = "GNU.sparse.numblocks"
PAX_GNU_SPARSE_OFFSET = "GNU.sparse.offset"
PAX_GNU_SPARSE_NUM_BYTES = "GNU.sparse.numbytes"
PAX_GNU_SPARSE_MAP = "GNU.sparse.map"
PAX_GNU_SPARSE_NAME = "GNU.sparse.name"
PAX_GNU_SPARSE_MAJOR = "GNU.sparse.major"
PAX_GNU_SPARSE_MINOR = "GNU.sparse.minor"
PAX_GNU_SPARSE_SIZE = "GNU.sparse.size"
PAX_GNU_SPARSE_REAL_SIZE = "GNU.sparse.realsize"

_INT64_MAX = (1 << 63) - 1
_INT64_MIN = -(1 << 63)
_DECIMAL = re.compile(r"[+-]?[0-9]+")
_OCTAL = re.compile(r"[0-7]+")


class HeaderError(Exception):
    """The archive holds an invalid tar header."""

    def __init__(self, message: str = "archive/tar: invalid tar header") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class SparseEntry:
    """A fragment of a sparse file: offset and length."""

    offset: int
    length: int

    @property
    def end_offset(self) -> int:
        return self.offset + self.length


def invert_sparse_entries(src: Sequence[SparseEntry], size: int) -> list[SparseEntry]:
    """Convert data fragments to hole fragments (or back) for a file of size bytes."""
    dst: list[SparseEntry] = []
    pre_offset = 0
    for cur in src:
        if cur.length == 0:
            continue
        length = cur.offset - pre_offset
        if length > 0:
            dst.append(SparseEntry(pre_offset, length))
        pre_offset = cur.end_offset
    dst.append(SparseEntry(pre_offset, size - pre_offset))
    return dst


def parse_string(b: bytes) -> str:
    """Decode a NUL-terminated field; the whole field if there is no NUL."""
    end = b.find(b"\x00")
    if end >= 0:
        b = b[:end]
    return b.decode("utf-8", errors="surrogateescape")


def parse_numeric(b: bytes) -> int:
    """Parse a base-256 or octal numeric field; raises HeaderError on failure."""
    if b and b[0] & 0x80:
        inv = 0xFF if b[0] & 0x40 else 0x00
        x = 0
        for i, c in enumerate(b):
            c ^= inv
            if i == 0:
                c &= 0x7F
            if x >> 56:
                raise HeaderError()
            x = ((x << 8) | c) & 0xFFFFFFFFFFFFFFFF
        if x >> 63:
            raise HeaderError()
        return ~x if inv == 0xFF else x
    return parse_octal(b)


def parse_octal(b: bytes) -> int:
    """Parse an octal field padded with spaces or NULs."""
    b = b.strip(b" \x00")
    if not b:
        return 0
    text = parse_string(b)
    if not _OCTAL.fullmatch(text):
        raise HeaderError()
    x = int(text, 8)
    if x >= 1 << 64:
        raise HeaderError()
    return x - (1 << 64) if x > _INT64_MAX else x


def _parse_int(text: str) -> int:
    if not _DECIMAL.fullmatch(text):
        raise HeaderError()
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise HeaderError()
    return value


def _parse_count(text: str) -> int:
    n = _parse_int(text)
    if n < 0 or 2 * n > _INT64_MAX:
        raise HeaderError()
    return n


def must_read_full(r: Any, size: int) -> bytes:
    """Read exactly size bytes from r; EOFError if the stream ends first."""
    parts = []
    got = 0
    while got < size:
        chunk = r.read(size - got)
        if not chunk:
            raise EOFError("unexpected EOF")
        parts.append(chunk)
        got += len(chunk)
    return b"".join(parts)


def read_gnu_sparse_map_1x0(r: Any) -> list[SparseEntry]:
    """Read a GNU 1.0 sparse map stored in blocks at the start of the data."""
    buf = bytearray()
    newlines = 0

    def feed(n: int) -> None:
        nonlocal newlines
        while newlines < n:
            blk = must_read_full(r, BLOCK_SIZE)
            buf.extend(blk)
            newlines += blk.count(b"\n")

    def next_token() -> str:
        nonlocal newlines
        newlines -= 1
        end = buf.index(b"\n")
        token = bytes(buf[:end])
        del buf[: end + 1]
        return token.decode("utf-8", errors="surrogateescape")

    feed(1)
    num_entries = _parse_count(next_token())
    feed(2 * num_entries)
    spd = []
    for _ in range(num_entries):
        offset = _parse_int(next_token())
        length = _parse_int(next_token())
        spd.append(SparseEntry(offset, length))
    return spd


def read_gnu_sparse_map_0x1(pax_hdrs: Mapping[str, str]) -> list[SparseEntry]:
    """Read a GNU 0.1 sparse map from PAX records."""
    num_entries = _parse_count(pax_hdrs.get(PAX_GNU_SPARSE_NUM_BLOCKS, ""))
    sparse_map = pax_hdrs.get(PAX_GNU_SPARSE_MAP, "").split(",")
    if sparse_map == [""]:
        sparse_map = []
    if len(sparse_map) != 2 * num_entries:
        raise HeaderError()
    pairs = zip(sparse_map[0::2], sparse_map[1::2])
    return [SparseEntry(_parse_int(off), _parse_int(length)) for off, length in pairs]


def sparse_size(entries: Optional[Sequence[SparseEntry]]) -> int:
    """Total length of the given fragments."""
    return sum(e.length for e in entries or ())