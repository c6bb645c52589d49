import io
from io import SEEK_CUR, SEEK_END, UnsupportedOperation
from zipfile import ZIP_DEFLATED, ZipFile

from pytest import fixture, mark, raises

from range_reader.fileobj import RangeReaderFile

from .data import EXAMPLE_CONTENT, EXAMPLE_FILE_LENGTH, EXAMPLE_ZIP_URL
from .share import FakeServer, make_reader

ZIP_MEMBERS = {
    "example_text_file.txt": b"P <=> NP\n",
    "data/example.bin": EXAMPLE_CONTENT,
    "data/zeros.bin": bytes(10_000),
}


def make_zip() -> bytes:
    buf = io.BytesIO()
    with ZipFile(buf, "w", compression=ZIP_DEFLATED) as zf:
        for name, data in ZIP_MEMBERS.items():
            zf.writestr(name, data)
    return buf.getvalue()


@fixture
def reader():
    with make_reader() as r:
        yield r


@fixture
def raw(reader):
    return RangeReaderFile(reader)


def test_zip_namelist():
    server = FakeServer(content=make_zip())
    with make_reader(server, url=EXAMPLE_ZIP_URL) as r:
        with ZipFile(r.open()) as zf:
            assert zf.namelist() == list(ZIP_MEMBERS)
            assert zf.read("data/example.bin") == EXAMPLE_CONTENT
            assert zf.read("example_text_file.txt") == ZIP_MEMBERS["example_text_file.txt"]
    assert len(server.requests) > 1
    # Only ever range requests (the whole archive is never asked for)
    assert all(h and h.startswith("bytes=") for h in server.range_headers)


def test_read_all(reader):
    with reader.open() as f:
        assert f.read() == EXAMPLE_CONTENT
    assert not reader.closed


def test_open_buffer_size(reader):
    f = reader.open(buffer_size=100)
    assert f.read(10) == EXAMPLE_CONTENT[:10]
    assert f.raw.tell() == 100


@mark.parametrize(
    "position,whence,expected",
    [
        (10, io.SEEK_SET, 10),
        (-10, SEEK_END, EXAMPLE_FILE_LENGTH - 10),
        (0, SEEK_END, EXAMPLE_FILE_LENGTH),
        (5, SEEK_CUR, 5),
        (5000, io.SEEK_SET, 5000),
    ],
)
def test_seek(raw, position, whence, expected):
    assert raw.seek(position, whence) == expected
    assert raw.tell() == expected


def test_seek_and_read(raw):
    raw.seek(-48, SEEK_END)
    assert raw.read(100) == EXAMPLE_CONTENT[-48:]
    assert raw.tell() == EXAMPLE_FILE_LENGTH
    assert raw.read(10) == b""


def test_readinto(raw):
    raw.seek(100)
    buf = bytearray(10)
    assert raw.readinto(buf) == 10
    assert bytes(buf) == EXAMPLE_CONTENT[100:110]
    assert raw.tell() == 110


@mark.parametrize("position,whence", [(-1, io.SEEK_SET), (-10, SEEK_CUR), (-5000, SEEK_END)])
def test_seek_negative(raw, position, whence):
    with raises(ValueError, match="Negative seek position"):
        raw.seek(position, whence)
    assert raw.tell() == 0


def test_seek_invalid_whence(raw):
    with raises(ValueError, match="Invalid whence"):
        raw.seek(0, 3)


def test_seek_end_unknown_size():
    with make_reader(FakeServer(unknown_length=True)) as r:
        raw = RangeReaderFile(r)
        with raises(UnsupportedOperation):
            raw.seek(-10, SEEK_END)
        raw.seek(2040)
        assert raw.read(100) == EXAMPLE_CONTENT[2040:]


def test_modes(raw):
    assert raw.readable()
    assert raw.seekable()
    assert not raw.writable()


def test_close(reader):
    raw = RangeReaderFile(reader)
    raw.close()
    assert raw.closed
    assert not reader.closed
    with raises(ValueError):
        raw.seek(0)
    with raises(ValueError):
        raw.readinto(bytearray(1))


def test_close_reader(reader):
    with RangeReaderFile(reader, close_reader=True) as raw:
        raw.read(1)
    assert reader.closed
