# tarview

`tarview` opens an uncompressed tar archive as a read-only file system.
Nothing gets extracted. The headers are scanned once, and after that every
file reads straight from the archive at the right offset. Open files support
`read`, `read_at` and `seek`. GNU and PAX sparse files come back with their
holes filled with zeros.

The package also contains the small reader building blocks that the file
system is built from:

- `tarview.multi_read.MultiReadAtSeekCloser` joins several sized
  random-access readers into one virtual stream that you can seek in.
- `tarview.multi_read.MultiReadCloser` reads a list of readers one after
  another and closes all of them together.
- `tarview.cancellable.Cancellable` wraps a reader so that reads stop once a
  `Context` has been cancelled.
- `tarview.readers` provides `ByteRepeater`, `SectionReader` and
  `BytesReaderAt`.

A "reader-at" in this package is any object with a `read_at(size, off)`
method that returns bytes.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Browsing an archive

```python
from tarview.fs import TarFS
from tarview.readers import BytesReaderAt

with open("tree.tar", "rb") as fh:
    archive = BytesReaderAt(fh.read())

fsys = TarFS(archive)

for path, info in fsys.walk("."):
    with fsys.open(path) as f:
        if not info.is_dir():
            print(path, info.format(), f.read())
        else:
            print(path, info.format())
```

`TarFS.walk(top)` yields `(path, FileInfo)` pairs for `top` and everything
below it, with the children of each directory in name order.
`FileInfo.format()` renders an entry as `<mode> <size> <time> <name>`, and
directory names end in `/`.

`TarFS.open` takes slash-separated paths relative to the archive root, with
`"."` as the root itself. `valid_path` decides which names are accepted. An
invalid name raises `OSError` (`EINVAL`). A missing name raises
`FileNotFoundError`. Going through a file as if it were a directory raises
`NotADirectoryError`.

The handles you get back are `OpenFile` or `OpenDir` and can be used as
context managers. Closing twice is allowed. Any other call on a closed handle
raises `ValueError`. Calling `read` or `read_at` on a directory raises
`IsADirectoryError`.

`OpenDir.read_dir(n)` returns up to `n` entries, or all of the remaining ones
when `n <= 0`, in the order they were added. Once the directory is exhausted,
a positive `n` raises `EOFError` and `n <= 0` returns an empty list. Seeking a
directory only resets or exhausts that cursor.

If an archive holds the same name more than once, as happens after an
incremental update, the last entry wins. Names that climb above the root are
ignored. Parent directories that have no entry of their own are created
implicitly.

### Options

`FsOption(allow_dev=True)` also includes character devices, block devices
and FIFOs, and treats them as plain files. Without it those entries are left
out.

### What it does not do

- It reads only uncompressed tar data. Decompress gzip or other formats
  yourself first, for example into a `BytesReaderAt`.
- Symbolic links and hard links are not exposed. Those entries are skipped.
- It is read-only. It has no command-line tool and cannot write archives.

## Concatenating readers

```python
from tarview.multi_read import MultiReadAtSeekCloser, SizedReaderAt
from tarview.readers import BytesReaderAt

parts = [b"hello, ", b"tar", b"view"]
r = MultiReadAtSeekCloser([SizedReaderAt(BytesReaderAt(p), len(p)) for p in parts])

r.read_at(5, 7)   # b"tarvi"
r.seek(-4, 2)
r.read(4)         # b"view"
r.close()
```

When a reader returns more bytes than its declared size, or none while bytes
are still expected, you get a `MultiReadError`. It records the reader's
index, the offsets involved and the underlying error (`InvalidSizeError` or
`EOFError`). The helpers `sized_readers_from_file_like` and
`sized_readers_from_read_at_sizer` build the `SizedReaderAt` list for you
from open files or from readers that have a `size()` method.

## Cancellable reads

```python
import io
from tarview.cancellable import Cancellable, Context

ctx = Context()
r = Cancellable(ctx, io.BytesIO(b"data"))
r.read(2)      # b"da"
ctx.cancel()
r.read(2)      # raises CancelledError, and so does every later read
```

## Errors from many closers

`tarview.serr` combines several errors into one `GatheredError`, using
`gather`, `gather_checked`, `gather_prefixed` and `prefix`.
`MultiReadAtSeekCloser.close` and `MultiReadCloser.close` rely on it, so one
failed close does not hide the others.