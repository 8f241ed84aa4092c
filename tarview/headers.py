"""Locate each tar entry's header and body within a random-access source."""

from __future__ import annotations

import io
import posixpath
import tarfile
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional

from .readers import SectionReader
from .tarformat import (
    BLOCK_SIZE,
    PAX_GNU_SPARSE_MAJOR,
    PAX_GNU_SPARSE_MAP,
    PAX_GNU_SPARSE_MINOR,
    HeaderError,
    SparseEntry,
    invert_sparse_entries,
    must_read_full,
    parse_numeric,
    read_gnu_sparse_map_0x1,
    read_gnu_sparse_map_1x0,
    sparse_size,
)

_NO_BODY_TYPES = frozenset(
    {
        tarfile.LNKTYPE,
        tarfile.SYMTYPE,
        tarfile.CHRTYPE,
        tarfile.BLKTYPE,
        tarfile.DIRTYPE,
        tarfile.FIFOTYPE,
        tarfile.CONTTYPE,
        tarfile.XHDTYPE,
        tarfile.XGLTYPE,
        tarfile.GNUTYPE_LONGNAME,
        tarfile.GNUTYPE_LONGLINK,
    }
)
_SKIPPED_HEADER_TYPES = frozenset(
    {tarfile.XHDTYPE, tarfile.XGLTYPE, tarfile.GNUTYPE_LONGNAME, tarfile.GNUTYPE_LONGLINK}
)


@dataclass
class HeaderOffset:
    """A tar header with the byte ranges of its header blocks and body."""

    h: tarfile.TarInfo
    header_start: int = 0
    header_end: int = 0
    body_start: int = 0
    body_end: int = 0
    holes: Optional[list[SparseEntry]] = None


class _ReaderAtFile:
    """A seekable file object over a reader-at."""

    _CHUNK = 1 << 20

    def __init__(self, r: Any) -> None:
        self._r = r
        self._pos = 0

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            parts = []
            while True:
                chunk = self.read(self._CHUNK)
                if not chunk:
                    return b"".join(parts)
                parts.append(chunk)
        data = self._r.read_at(size, self._pos)
        self._pos += len(data)
        return data

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_CUR:
            offset += self._pos
        elif whence != io.SEEK_SET:
            raise ValueError(f"unsupported whence: {whence}")
        if offset < 0:
            raise ValueError("negative position")
        self._pos = offset
        return offset

    def tell(self) -> int:
        return self._pos


def _align(n: int) -> int:
    return n + ((-n) & (BLOCK_SIZE - 1))


def iter_headers(r: Any) -> Iterator[HeaderOffset]:
    """Yield every entry of the tar archive held by reader-at r, in order."""
    first = r.read_at(BLOCK_SIZE, 0)
    if not first.strip(b"\x00"):
        return
    try:
        tf = tarfile.open(fileobj=_ReaderAtFile(r), mode="r:")
    except tarfile.TarError as exc:
        raise HeaderError(f"read tar archive: {exc}") from exc

    prev: Optional[HeaderOffset] = None
    while True:
        try:
            info = tf.next()
        except tarfile.TarError as exc:
            raise HeaderError(f"read tar archive: {exc}") from exc
        if info is None:
            return
        hh = HeaderOffset(h=info, header_end=info.offset_data, body_start=info.offset_data)
        if prev is not None:
            hh.header_start = _align(prev.body_end)
        try:
            hh.holes = reconstruct_sparse(r, hh)
        except (HeaderError, EOFError, ValueError):
            hh.holes = None

        if info.type in _NO_BODY_TYPES:
            hh.body_end = hh.body_start
        else:
            hh.body_end = hh.body_start + info.size - sparse_size(hh.holes)
        yield hh
        prev = hh


def collect_header_offsets(headers: Iterable[HeaderOffset]) -> dict[str, HeaderOffset]:
    """Map cleaned entry names to headers; later duplicates replace earlier ones."""
    return {posixpath.normpath(ho.h.name or "."): ho for ho in headers}


def _lenient_numeric(b: bytes) -> int:
    try:
        return parse_numeric(b)
    except HeaderError:
        return 0


def reconstruct_sparse(r: Any, hdr: HeaderOffset) -> Optional[list[SparseEntry]]:
    """Return the holes of a sparse entry, or None when it is not sparse."""
    if hdr.h.type == tarfile.XGLTYPE:
        return None
    sr = SectionReader(r, hdr.header_start, hdr.header_end - hdr.header_start)
    while True:
        blk = sr.read(BLOCK_SIZE)
        if not blk:
            return None
        if len(blk) < BLOCK_SIZE:
            raise EOFError("unexpected EOF")
        if blk[156:157] in _SKIPPED_HEADER_TYPES:
            sr.seek(_align(_lenient_numeric(blk[124:136])), io.SEEK_CUR)
            continue
        return _handle_sparse_file(sr, hdr, blk)


def _handle_sparse_file(sr: Any, hdr: HeaderOffset, blk: bytes) -> Optional[list[SparseEntry]]:
    if hdr.h.type == tarfile.GNUTYPE_SPARSE:
        spd = read_old_gnu_sparse_map(sr, blk)
    else:
        spd = read_gnu_sparse_pax_headers(sr, hdr)
    if spd is None:
        return None
    return invert_sparse_entries(spd, hdr.h.size)


def read_old_gnu_sparse_map(sr: Any, blk: bytes) -> list[SparseEntry]:
    """Read the sparse map of an old GNU sparse header and its extension blocks."""
    array = blk[386:386 + 24 * 4 + 1]
    spd = []
    while True:
        max_entries = len(array) // 24
        for start in range(0, max_entries * 24, 24):
            entry = array[start:start + 24]
            if entry[0] == 0:
                break
            spd.append(SparseEntry(parse_numeric(entry[:12]), parse_numeric(entry[12:24])))
        if array[max_entries * 24] > 0:
            array = must_read_full(sr, BLOCK_SIZE)
            continue
        return spd


def read_gnu_sparse_pax_headers(sr: Any, hdr: Any) -> Optional[list[SparseEntry]]:
    """Read a PAX-style GNU sparse map; None if the entry is not such a file."""
    records = hdr.h.pax_headers or {}
    major = records.get(PAX_GNU_SPARSE_MAJOR, "")
    minor = records.get(PAX_GNU_SPARSE_MINOR, "")
    if major == "0" and minor in ("0", "1"):
        is_1x0 = False
    elif major == "1" and minor == "0":
        is_1x0 = True
    elif major or minor:
        return None
    elif records.get(PAX_GNU_SPARSE_MAP, ""):
        is_1x0 = False
    else:
        return None
    if is_1x0:
        return read_gnu_sparse_map_1x0(sr)
    return read_gnu_sparse_map_0x1(records)