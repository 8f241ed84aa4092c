"""Build a readable, seekable view of one tar entry's content."""

from __future__ import annotations

from typing import Any

from .headers import HeaderOffset
from .multi_read import MultiReadAtSeekCloser, SizedReaderAt
from .readers import ByteRepeater, SectionReader


def make_reader(ra: Any, h: HeaderOffset) -> Any:
    """Return a reader over the entry's content, filling sparse holes with zeros."""
    if h.holes is None:
        return SectionReader(ra, h.body_start, h.body_end - h.body_start)

    readers: list[SizedReaderAt] = []
    cur = 0
    size = 0
    prev_end = 0
    for hole in h.holes:
        space = hole.offset - prev_end
        if space != 0:
            data = SectionReader(ra, h.body_start + cur, space)
            cur += space
            readers.append(SizedReaderAt(data, data.size()))
            size += data.size()
        zeros = SectionReader(ByteRepeater(0), 0, hole.length)
        readers.append(SizedReaderAt(zeros, zeros.size()))
        size += hole.length
        prev_end = hole.offset + hole.length

    if h.h.size > size:
        zeros = SectionReader(ByteRepeater(0), 0, h.h.size - size)
        readers.append(SizedReaderAt(zeros, zeros.size()))

    return MultiReadAtSeekCloser(readers)