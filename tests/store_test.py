import os
from concurrent.futures import ThreadPoolExecutor

from pytest import fixture, mark, raises

from range_reader.errors import StoreLimitExceededError
from range_reader.store import (
    FileStore,
    LimitedIterator,
    LimitedStore,
    MemoryStore,
    Store,
    default_store,
    iter_store,
)
from range_reader.types import ReadResult

from .data import EXAMPLE_CONTENT

TEN = b"0123456789"
TWENTY = b"0123456789abcdefghij"


def chunked(data: bytes, size: int):
    return (data[i : i + size] for i in range(0, len(data), size))


def read_all(store) -> bytes:
    return b"".join(iter_store(store))


@fixture
def file_store(tmp_path):
    store = FileStore(dir=str(tmp_path))
    yield store
    store.close()


@fixture(params=["memory", "file"])
def simple_store(request, tmp_path):
    store = MemoryStore() if request.param == "memory" else FileStore(dir=str(tmp_path))
    yield store
    store.close()


def test_stores_are_stores(tmp_path):
    for store in [MemoryStore(), FileStore(dir=str(tmp_path)), default_store()]:
        assert isinstance(store, Store)


@mark.parametrize("chunk_size", [1, 7, 4096])
def test_fill_and_size(simple_store, chunk_size):
    count = simple_store.fill(chunked(EXAMPLE_CONTENT, chunk_size))
    assert count == simple_store.size == len(EXAMPLE_CONTENT)
    assert read_all(simple_store) == EXAMPLE_CONTENT


@mark.parametrize(
    "offset,length,expected",
    [
        (0, 4, ReadResult(4, False)),
        (6, 4, ReadResult(4, False)),
        (8, 4, ReadResult(2, True)),
        (10, 4, ReadResult(0, True)),
        (50, 4, ReadResult(0, True)),
        (3, 0, ReadResult(0, False)),
    ],
)
def test_read_at(simple_store, offset, length, expected):
    simple_store.fill([TEN])
    buf = bytearray(length)
    assert simple_store.read_at(buf, offset) == expected
    assert bytes(buf[: expected.count]) == TEN[offset : offset + expected.count]


def test_read_at_negative_offset(simple_store):
    simple_store.fill([TEN])
    with raises(ValueError):
        simple_store.read_at(bytearray(1), -1)


def test_read_at_readonly_buffer(simple_store):
    simple_store.fill([TEN])
    with raises(TypeError):
        simple_store.read_at(b"\x00", 0)


def test_refill_replaces(simple_store):
    simple_store.fill([TWENTY])
    simple_store.fill([TEN[:3]])
    assert simple_store.size == 3
    assert read_all(simple_store) == b"012"


def test_close_idempotent(simple_store):
    simple_store.close()  # never filled
    simple_store.fill([TEN])
    simple_store.close()
    simple_store.close()
    assert simple_store.size == 0
    assert simple_store.read_at(bytearray(4), 0) == ReadResult(0, True)


def test_unfilled_read(simple_store):
    assert simple_store.read_at(bytearray(4), 0) == ReadResult(0, True)


def test_concurrent_reads(simple_store):
    simple_store.fill(chunked(EXAMPLE_CONTENT, 100))

    def read(offset):
        buf = bytearray(64)
        count, _ = simple_store.read_at(buf, offset)
        return offset, bytes(buf[:count])

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(read, range(0, len(EXAMPLE_CONTENT), 32)))
    for offset, data in results:
        assert data == EXAMPLE_CONTENT[offset : offset + 64]


def test_file_store_temp_file(file_store, tmp_path):
    assert file_store.path is None
    file_store.fill([TEN])
    first_path = file_store.path
    assert os.path.dirname(first_path) == str(tmp_path)
    assert os.path.basename(first_path).startswith("range-reader-")
    with open(first_path, "rb") as f:
        assert f.read() == TEN
    file_store.fill([TWENTY])
    assert not os.path.exists(first_path)
    second_path = file_store.path
    assert os.path.exists(second_path)
    file_store.close()
    assert not os.path.exists(second_path)
    assert file_store.path is None
    assert file_store.size == 0


def test_store_context_manager(tmp_path):
    with FileStore(dir=str(tmp_path)) as store:
        store.fill([TEN])
        path = store.path
    assert not os.path.exists(path)


## Limited stores


@fixture
def limited_store():
    return LimitedStore(MemoryStore(), 10, MemoryStore())


def test_limited_store_within_limit(limited_store):
    assert limited_store.fill([TEN[:5]]) == 5
    assert limited_store.active is limited_store.primary
    assert limited_store.primary.size == 5
    assert limited_store.secondary.size == 0
    assert read_all(limited_store) == TEN[:5]


def test_limited_store_exactly_at_limit(limited_store):
    limited_store.fill(chunked(TEN, 5))
    assert limited_store.active is limited_store.primary
    assert read_all(limited_store) == TEN


@mark.parametrize("chunk_size", [1, 3, 10, 20])
def test_limited_store_over_limit(limited_store, chunk_size):
    assert limited_store.fill(chunked(TWENTY, chunk_size)) == 20
    assert limited_store.active is limited_store.secondary
    assert limited_store.secondary.size == 20
    assert limited_store.primary.size == 0  # closed
    assert limited_store.size == 20
    assert read_all(limited_store) == TWENTY


def test_limited_store_reads_source_once(limited_store):
    pulled = []

    def source():
        for chunk in chunked(TWENTY, 4):
            pulled.append(chunk)
            yield chunk

    limited_store.fill(source())
    assert b"".join(pulled) == TWENTY


def test_limited_store_without_secondary():
    primary = MemoryStore()
    store = LimitedStore(primary, 10)
    with raises(StoreLimitExceededError) as exc_info:
        store.fill([TWENTY])
    assert exc_info.value.limit == 10
    assert store.active is None
    assert store.size == 0
    assert primary.size == 0
    buf = bytearray(b"\xff" * 4)
    assert store.read_at(buf, 0) == ReadResult(0, True)
    assert buf == bytearray(b"\xff" * 4)  # nothing partial copied


def test_limited_store_refill(limited_store):
    limited_store.fill([TWENTY])
    limited_store.fill([TEN[:5]])
    assert limited_store.active is limited_store.primary
    assert limited_store.secondary.size == 0
    assert read_all(limited_store) == TEN[:5]


def test_limited_store_close(limited_store):
    limited_store.fill([TWENTY])
    limited_store.close()
    limited_store.close()
    assert limited_store.active is None
    assert limited_store.secondary.size == 0
    assert limited_store.read_at(bytearray(1), 0) == ReadResult(0, True)


def test_limited_store_negative_limit():
    with raises(ValueError):
        LimitedStore(MemoryStore(), -1)


def test_default_store_tiers():
    store = default_store(memory_limit=10, file_limit=100)
    file_tier = store.secondary
    assert isinstance(store.primary, MemoryStore)
    assert isinstance(file_tier.primary, FileStore)
    assert file_tier.secondary is None
    store.fill([TEN[:5]])
    assert store.active is store.primary
    store.fill(chunked(EXAMPLE_CONTENT[:50], 8))
    assert store.active is file_tier
    assert file_tier.active is file_tier.primary
    path = file_tier.primary.path
    assert os.path.exists(path)
    assert read_all(store) == EXAMPLE_CONTENT[:50]
    with raises(StoreLimitExceededError) as exc_info:
        store.fill(chunked(EXAMPLE_CONTENT, 8))
    assert exc_info.value.limit == 100
    assert not os.path.exists(path)
    assert store.read_at(bytearray(8), 0) == ReadResult(0, True)
    store.close()


def test_limited_iterator():
    bounded = LimitedIterator(chunked(TWENTY, 3), 10)
    assert b"".join(bounded) == TEN
    assert bounded.overflowed()
    assert b"".join(bounded.rest()) == TWENTY[10:]


@mark.parametrize("data", [b"", TEN[:5], TEN])
def test_limited_iterator_within_limit(data):
    bounded = LimitedIterator(chunked(data, 3), 10)
    assert b"".join(bounded) == data
    assert not bounded.overflowed()
    assert b"".join(bounded.rest()) == b""


def test_iter_store_chunks(simple_store):
    simple_store.fill([TWENTY])
    assert list(iter_store(simple_store, chunk_size=8)) == [
        TWENTY[:8],
        TWENTY[8:16],
        TWENTY[16:],
    ]
    assert b"".join(iter_store(simple_store, size=5)) == TWENTY[:5]
