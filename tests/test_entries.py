import io
import tarfile

import pytest

from tarview.entries import Dir, File, FileInfo
from tarview.headers import HeaderOffset
from tarview.readers import BytesReaderAt


def _ho(name, typ=tarfile.REGTYPE, size=0, start=0):
    info = tarfile.TarInfo(name)
    info.type = typ
    info.size = size
    info.mode = 0o755 if typ == tarfile.DIRTYPE else 0o644
    info.mtime = 0
    return HeaderOffset(h=info, body_start=start, body_end=start + size)


def _tree():
    root = Dir(_ho(".", tarfile.DIRTYPE))
    root.add_child("a", _ho("a", tarfile.DIRTYPE))
    root.add_child("a/x", _ho("a/x", size=3, start=0))
    root.add_child("b", _ho("b", size=4, start=3))
    return root


DATA = BytesReaderAt(b"xyzbbbb")


def test_open_child_file_and_read():
    root = _tree()
    ent = root.open_child("a/x")
    assert isinstance(ent, File)
    with ent.open(DATA, "a/x") as f:
        assert f.read() == b"xyz"
        assert f.read_at(2, 1) == b"yz"
        assert f.seek(-1, io.SEEK_END) == 2
        assert f.read() == b"z"


def test_missing_and_notdir():
    root = _tree()
    with pytest.raises(FileNotFoundError):
        root.open_child("nope")
    with pytest.raises(NotADirectoryError):
        root.open_child("b/c")


def test_dir_read_errors_and_read_dir():
    root = _tree()
    d = root.open(DATA, ".")
    with pytest.raises(IsADirectoryError):
        d.read(1)
    first = d.read_dir(1)
    assert [e.name for e in first] == ["a"]
    rest = d.read_dir(5)
    assert [e.name for e in rest] == ["b"]
    with pytest.raises(EOFError):
        d.read_dir(1)
    assert d.read_dir(-1) == []
    d.seek(0)
    assert [e.name for e in d.read_dir(0)] == ["a", "b"]


def test_dir_seek_invalid():
    d = _tree().open(DATA, ".")
    with pytest.raises(OSError):
        d.seek(1, io.SEEK_CUR)
    with pytest.raises(OSError):
        d.seek(-1, io.SEEK_SET)


def test_closed_handle():
    root = _tree()
    f = root.open_child("b").open(DATA, "b")
    f.close()
    f.close()
    with pytest.raises(ValueError):
        f.read(1)
    d = root.open(DATA, ".")
    d.close()
    with pytest.raises(ValueError):
        d.stat()


def test_fileinfo_format_dir():
    info = FileInfo(_ho("./", tarfile.DIRTYPE).h)
    assert info.is_dir()
    assert info.format().startswith("drwxr-xr-x 0 ")
    assert info.format().endswith(" ./")
    finfo = FileInfo(_ho("a/x", size=3).h)
    assert finfo.format().startswith("-rw-r--r-- 3 ")
    assert not finfo.is_dir()


def test_implicit_parent_created():
    root = Dir(_ho(".", tarfile.DIRTYPE))
    root.add_child("p/q", _ho("p/q", size=3))
    p = root.open_child("p")
    assert isinstance(p, Dir)
    assert p.open(DATA, "p").stat().is_dir()