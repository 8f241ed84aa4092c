"""A read-only file system view over a tar archive held in a reader-at."""

from __future__ import annotations

import errno
import posixpath
import tarfile
import time
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union

from .entries import Dir, FileInfo, OpenDir, OpenFile
from .headers import HeaderOffset, collect_header_offsets, iter_headers

_REG_TYPES = {tarfile.REGTYPE, tarfile.AREGTYPE, tarfile.GNUTYPE_SPARSE}
_DEV_TYPES = {tarfile.CHRTYPE, tarfile.BLKTYPE, tarfile.FIFOTYPE}


def valid_path(name: str) -> bool:
    """Report whether name is an unrooted, slash-separated, clean path."""
    if name == ".":
        return True
    if not name:
        return False
    return all(part not in ("", ".", "..") for part in name.split("/"))


@dataclass
class FsOption:
    """Options for TarFS; allow_dev adds char, block and fifo entries as files."""

    allow_dev: bool = False
    _handle_symlink: bool = field(default=False, repr=False)


class TarFS:
    """Open files and directories stored in a tar archive."""

    def __init__(self, r: Any, opt: Optional[FsOption] = None) -> None:
        if opt is None:
            opt = FsOption()
        self._r = r
        headers = collect_header_offsets(iter_headers(r))
        root_header = headers.pop(".", None)
        if root_header is None:
            info = tarfile.TarInfo("./")
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            info.mtime = int(time.time())
            root_header = HeaderOffset(h=info)
        self._root = Dir(root_header)

        for key in sorted(headers):
            if key.startswith(".."):
                continue
            typ = headers[key].h.type
            if typ in _REG_TYPES or typ == tarfile.DIRTYPE:
                pass
            elif typ == tarfile.SYMTYPE:
                if not opt._handle_symlink:
                    continue
            elif typ in _DEV_TYPES:
                if not opt.allow_dev:
                    continue
            else:
                continue
            self._root.add_child(key, headers[key])

    def open(self, name: str) -> Union[OpenDir, OpenFile]:
        if not valid_path(name):
            raise OSError(errno.EINVAL, "invalid argument", name)
        try:
            ent = self._root.open_child(name)
        except OSError as exc:
            exc.filename = name
            raise
        return ent.open(self._r, name)

    def walk(self, top: str = ".") -> Iterator[tuple[str, FileInfo]]:
        """Yield (path, info) for top and everything below it, in lexical order."""
        with self.open(top) as f:
            info = f.stat()
            children = sorted(f.read_dir(-1), key=lambda e: e.name) if info.is_dir() else []
        yield top, info
        for child in children:
            path = child.name if top == "." else f"{top}/{child.name}"
            yield from self.walk(path)