"""Directory and file entries of a tar file system, and their open handles."""

from __future__ import annotations

import errno
import io
import posixpath
import stat as stat_mod
import tarfile
import threading
from datetime import datetime, timezone
from typing import Any, Optional, Union

from .headers import HeaderOffset
from .reader import make_reader

_TYPE_BITS = {
    tarfile.DIRTYPE: stat_mod.S_IFDIR,
    tarfile.SYMTYPE: stat_mod.S_IFLNK,
    tarfile.CHRTYPE: stat_mod.S_IFCHR,
    tarfile.BLKTYPE: stat_mod.S_IFBLK,
    tarfile.FIFOTYPE: stat_mod.S_IFIFO,
}


class FileInfo:
    """Stat-like description of a tar entry."""

    def __init__(self, h: tarfile.TarInfo) -> None:
        self.header = h
        if h.isdir():
            self.name = posixpath.basename(posixpath.normpath(h.name or ".")) or "."
        else:
            self.name = posixpath.basename(h.name)
        self.size = h.size
        self.mode = (h.mode & 0o7777) | _TYPE_BITS.get(h.type, stat_mod.S_IFREG)
        self.mtime = datetime.fromtimestamp(h.mtime, timezone.utc)

    def is_dir(self) -> bool:
        return stat_mod.S_ISDIR(self.mode)

    def format(self) -> str:
        """Render as "<mode> <size> <time> <name>", dirs ending in "/"."""
        name = self.name + ("/" if self.is_dir() else "")
        when = self.mtime.strftime("%Y-%m-%d %H:%M:%S")
        return f"{stat_mod.filemode(self.mode)} {self.size} {when} {name}"

    def __repr__(self) -> str:
        return f"FileInfo({self.format()!r})"


def _closed_error() -> ValueError:
    return ValueError("file already closed")


def _invalid(path: str, msg: str) -> OSError:
    return OSError(errno.EINVAL, msg, path)


def _implicit_dir_header(name: str) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name)
    info.type = tarfile.DIRTYPE
    info.mode = 0o755
    info.mtime = 0
    return info


class Dir:
    """A directory node holding children in insertion order."""

    def __init__(self, h: Optional[HeaderOffset] = None) -> None:
        self.h = h
        self.files: dict[str, Union["Dir", "File"]] = {}
        self.ordered: list[Union["Dir", "File"]] = []

    def header(self) -> tarfile.TarInfo:
        if self.h is None:
            return _implicit_dir_header(".")
        return self.h.h

    def add_child(self, name: str, hdr: HeaderOffset) -> None:
        head, sep, rest = name.partition("/")
        if sep:
            child = self.files.get(head)
            if child is None:
                child = Dir(HeaderOffset(h=_implicit_dir_header(head)))
                self.files[head] = child
                self.ordered.append(child)
            if not isinstance(child, Dir):
                raise NotADirectoryError(errno.ENOTDIR, "not a directory", head)
            child.add_child(rest, hdr)
            return
        if hdr.h.type == tarfile.DIRTYPE:
            existing = self.files.get(head)
            if isinstance(existing, Dir):
                existing.h = hdr
                return
            ent: Union[Dir, File] = Dir(hdr)
        else:
            ent = File(hdr)
        self.files[head] = ent
        self.ordered.append(ent)

    def open_child(self, name: str) -> Union["Dir", "File"]:
        if name == ".":
            return self
        head, sep, rest = name.partition("/")
        child = self.files.get(head)
        if child is None:
            raise FileNotFoundError(errno.ENOENT, "file does not exist", head)
        if sep:
            if isinstance(child, Dir):
                return child.open_child(rest)
            raise NotADirectoryError(errno.ENOTDIR, "not a directory", head)
        return child

    def open(self, r: Any, path: str) -> "OpenDir":
        return OpenDir(self, path)


class File:
    """A regular (or device) file node."""

    def __init__(self, h: HeaderOffset) -> None:
        self.h = h

    def header(self) -> tarfile.TarInfo:
        return self.h.h

    def open(self, r: Any, path: str) -> "OpenFile":
        return OpenFile(self, make_reader(r, self.h), path)


class _Handle:
    def __init__(self, path: str) -> None:
        self.name = path
        self._mu = threading.Lock()
        self._closed = False

    def _check_closed(self) -> None:
        with self._mu:
            if self._closed:
                raise _closed_error()

    def _mark_closed(self) -> None:
        # Closing twice is harmless.
        with self._mu:
            self._closed = True

    def __enter__(self) -> Any:
        return self

    def __exit__(self, *exc: object) -> None:
        self._mark_closed()


class OpenDir(_Handle):
    """An open directory with a read_dir cursor."""

    def __init__(self, d: Dir, path: str) -> None:
        super().__init__(path)
        self._dir = d
        self._cursor = 0

    def stat(self) -> FileInfo:
        self._check_closed()
        return FileInfo(self._dir.header())

    def read(self, size: int = -1) -> bytes:
        self._check_closed()
        raise IsADirectoryError(errno.EISDIR, "is a directory", self.name)

    def read_at(self, size: int, off: int) -> bytes:
        self._check_closed()
        raise IsADirectoryError(errno.EISDIR, "is a directory", self.name)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_closed()
        with self._mu:
            self._cursor = 0
            if whence == io.SEEK_SET:
                if offset < 0:
                    raise _invalid(self.name, f"negative offset {offset}")
            elif whence == io.SEEK_CUR:
                if offset != 0:
                    raise _invalid(self.name, "invalid argument")
            elif whence == io.SEEK_END:
                if offset > 0:
                    raise _invalid(self.name, f"positive offset {offset}")
                self._cursor = len(self._dir.ordered)
            else:
                raise _invalid(self.name, f"unknown whence {whence}")
            return 0

    def close(self) -> None:
        """Close the directory; closing again is allowed."""
        self._mark_closed()

    def read_dir(self, n: int = -1) -> list[FileInfo]:
        """Return up to n entries (all remaining if n <= 0); EOFError when exhausted and n > 0."""
        with self._mu:
            if self._closed:
                raise _closed_error()
            total = len(self._dir.ordered)
            if self._cursor >= total:
                if n <= 0:
                    return []
                raise EOFError("end of directory")
            end = total if n <= 0 else min(total, self._cursor + n)
            out = [FileInfo(e.header()) for e in self._dir.ordered[self._cursor:end]]
            self._cursor = end
            return out


class OpenFile(_Handle):
    """An open file supporting read, read_at and seek."""

    def __init__(self, f: File, reader: Any, path: str) -> None:
        super().__init__(path)
        self._file = f
        self._r = reader
        self._read_mu = threading.Lock()

    def stat(self) -> FileInfo:
        self._check_closed()
        return FileInfo(self._file.header())

    def read(self, size: int = -1) -> bytes:
        self._check_closed()
        with self._read_mu:
            return self._r.read(size)

    def read_at(self, size: int, off: int) -> bytes:
        self._check_closed()
        return self._r.read_at(size, off)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_closed()
        with self._read_mu:
            return self._r.seek(offset, whence)

    def close(self) -> None:
        """Close the file; closing again is allowed."""
        self._mark_closed()