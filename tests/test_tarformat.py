import io
import tarfile

import pytest
from hypothesis import given, strategies as st

from tarview.tarformat import (
    HeaderError,
    SparseEntry,
    invert_sparse_entries,
    must_read_full,
    parse_numeric,
    parse_octal,
    parse_string,
    read_gnu_sparse_map_0x1,
    read_gnu_sparse_map_1x0,
)


def test_invert_documented_example():
    spd = [SparseEntry(2, 5), SparseEntry(18, 3)]
    assert invert_sparse_entries(spd, 25) == [
        SparseEntry(0, 2),
        SparseEntry(7, 11),
        SparseEntry(21, 4),
    ]


def test_invert_round_trip():
    holes = [SparseEntry(0, 2), SparseEntry(7, 11), SparseEntry(21, 4)]
    inverted = invert_sparse_entries(holes, 25)
    assert invert_sparse_entries(inverted, 25) == holes


def test_invert_empty_is_whole_file():
    assert invert_sparse_entries([], 10) == [SparseEntry(0, 10)]


def test_parse_string():
    assert parse_string(b"abc\x00def") == "abc"
    assert parse_string(b"abc") == "abc"


def test_parse_octal_padded():
    assert parse_octal(b"0000644\x00") == 0o644
    assert parse_octal(b"  \x00\x00") == 0


def test_parse_octal_invalid():
    with pytest.raises(HeaderError):
        parse_octal(b"12 9")


def test_parse_numeric_base256_minus_one():
    assert parse_numeric(b"\xff" * 8) == -1


def test_parse_numeric_overflow():
    with pytest.raises(HeaderError):
        parse_numeric(b"\x80" + b"\xff" * 8)


@given(st.integers(min_value=0, max_value=8**11 - 1))
def test_octal_round_trip(n):
    assert parse_numeric(tarfile.itn(n, 12, tarfile.GNU_FORMAT)) == n


@given(st.integers(min_value=-(2**63), max_value=2**63 - 1))
def test_base256_round_trip(n):
    field = tarfile.itn(n, 12, tarfile.GNU_FORMAT)
    assert parse_numeric(field) == n


def test_must_read_full_short():
    with pytest.raises(EOFError):
        must_read_full(io.BytesIO(b"abc"), 10)
    assert must_read_full(io.BytesIO(b"abcdef"), 4) == b"abcd"


def test_sparse_map_1x0():
    data = b"2\n2\n5\n18\n3\n".ljust(512, b"\x00")
    r = io.BytesIO(data + b"tail")
    assert read_gnu_sparse_map_1x0(r) == [SparseEntry(2, 5), SparseEntry(18, 3)]
    assert r.read() == b"tail"


def test_sparse_map_1x0_bad_count():
    with pytest.raises(HeaderError):
        read_gnu_sparse_map_1x0(io.BytesIO(b"-1\n".ljust(512, b"\x00")))


def test_sparse_map_1x0_truncated():
    with pytest.raises(EOFError):
        read_gnu_sparse_map_1x0(io.BytesIO(b"3\n1\n".ljust(512, b"\x00")))


def test_sparse_map_0x1():
    hdrs = {"GNU.sparse.numblocks": "2", "GNU.sparse.map": "2,5,18,3"}
    assert read_gnu_sparse_map_0x1(hdrs) == [SparseEntry(2, 5), SparseEntry(18, 3)]


def test_sparse_map_0x1_empty():
    assert read_gnu_sparse_map_0x1({"GNU.sparse.numblocks": "0", "GNU.sparse.map": ""}) == []


@pytest.mark.parametrize(
    "hdrs",
    [
        {"GNU.sparse.numblocks": "3", "GNU.sparse.map": "2,5,18,3"},
        {"GNU.sparse.numblocks": "x", "GNU.sparse.map": ""},
        {"GNU.sparse.numblocks": "1", "GNU.sparse.map": "a,b"},
        {},
    ],
)
def test_sparse_map_0x1_errors(hdrs):
    with pytest.raises(HeaderError):
        read_gnu_sparse_map_0x1(hdrs)