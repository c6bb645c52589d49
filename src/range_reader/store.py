r""":mod:`range_reader.store` provides the buffers a
:class:`~range_reader.reader.RangeReader` falls back on when a server answers a
range request with the entire resource (status 200) rather than partial
content (status 206).

A :class:`~range_reader.store.Store` is filled once from an iterable of byte
chunks (such as ``httpx.Response.iter_raw()``) and then read by position,
concurrently if need be. Three stores are provided:

- :class:`~range_reader.store.MemoryStore` keeps the bytes in memory
- :class:`~range_reader.store.FileStore` keeps the bytes in a temporary file
- :class:`~range_reader.store.LimitedStore` fills a 'primary' store up to a
  limit, and if the limit is exceeded either moves everything to a 'secondary'
  store or raises :class:`~range_reader.errors.StoreLimitExceededError`

Since a :class:`~range_reader.store.LimitedStore` is itself a store, these
compose into tiers, as in :func:`~range_reader.store.default_store`:

    >>> from range_reader.store import FileStore, LimitedStore, MemoryStore
    >>> store = LimitedStore(
    ...     MemoryStore(), 1024 * 1024, LimitedStore(FileStore(), 1024 ** 3)
    ... )

which buffers up to 1 MiB in memory, then up to 1 GiB on disk, then gives up.
"""

from __future__ import annotations

import os
import tempfile
import threading
from itertools import chain
from typing import Iterable, Iterator, Protocol, runtime_checkable

from .errors import StoreLimitExceededError
from .log_utils import log
from .types import ReadResult

__all__ = [
    "Store",
    "MemoryStore",
    "FileStore",
    "LimitedStore",
    "LimitedIterator",
    "default_store",
    "iter_store",
    "CHUNK_SIZE",
    "DEFAULT_MEMORY_LIMIT",
    "DEFAULT_FILE_LIMIT",
    "TEMP_PREFIX",
]

CHUNK_SIZE = 64 * 1024
DEFAULT_MEMORY_LIMIT = 1024 * 1024  # 1 MiB
DEFAULT_FILE_LIMIT = 1024 * 1024 * 1024  # 1 GiB
TEMP_PREFIX = "range-reader-"


@runtime_checkable
class Store(Protocol):
    """
    A byte container that is filled once and then read by position.
    """

    @property
    def size(self) -> int:
        """The number of bytes held."""
        ...

    def fill(self, stream: Iterable[bytes]) -> int:
        """
        Consume ``stream`` (once), replacing anything held before, and return
        the number of bytes held. Must not be called concurrently with itself.
        """
        ...

    def read_at(self, buffer, offset: int) -> ReadResult:
        """
        Copy up to ``len(buffer)`` bytes starting at ``offset`` into ``buffer``.
        Safe to call concurrently once filled.
        """
        ...

    def close(self) -> None:
        """Release the bytes held. Safe to call more than once."""
        ...


def writable_view(buffer) -> memoryview:
    """
    A flat, writable :class:`memoryview` onto ``buffer`` (e.g. a
    :class:`bytearray`), as the destination of a positional read.
    """
    view = memoryview(buffer)
    if view.readonly:
        raise TypeError("Buffer must be writable (e.g. a bytearray)")
    return view.cast("B") if view.format != "B" or view.ndim != 1 else view


def check_offset(offset: int) -> None:
    if offset < 0:
        raise ValueError(f"Negative offset {offset}")


def iter_store(
    store: Store, size: int | None = None, chunk_size: int = CHUNK_SIZE
) -> Iterator[bytes]:
    """
    Stream the first ``size`` bytes held by ``store`` (by default all of them)
    back out as chunks of at most ``chunk_size`` bytes.
    """
    remaining = store.size if size is None else size
    offset = 0
    buf = bytearray(chunk_size)
    while remaining > 0:
        view = memoryview(buf)[: min(chunk_size, remaining)]
        count, eof = store.read_at(view, offset)
        if count:
            yield bytes(view[:count])
        offset += count
        remaining -= count
        if eof or not count:
            break


class MemoryStore:
    """
    A store backed by a :class:`bytearray`.
    """

    def __init__(self):
        self._buf = bytearray()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__} ⠶ {self.size} bytes"

    @property
    def size(self) -> int:
        return len(self._buf)

    def fill(self, stream: Iterable[bytes]) -> int:
        # A fresh buffer, so views still held by readers of old contents are unaffected
        self._buf = bytearray()
        for chunk in stream:
            self._buf += chunk
        return len(self._buf)

    def read_at(self, buffer, offset: int) -> ReadResult:
        check_offset(offset)
        out = writable_view(buffer)
        if not len(out):
            return ReadResult(0)
        with memoryview(self._buf) as data:
            chunk = data[offset : offset + len(out)]
            count = len(chunk)
            out[:count] = chunk
        return ReadResult(count, count < len(out))

    def close(self) -> None:
        self._buf = bytearray()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class FileStore:
    """
    A store backed by a temporary file, created on each
    :meth:`~range_reader.store.FileStore.fill` (deleting the previous one) and
    deleted on :meth:`~range_reader.store.FileStore.close`.
    """

    def __init__(self, dir: str | None = None, prefix: str = TEMP_PREFIX):
        """
        Args:
          dir    : The directory to create temporary files in (by default, the
                   platform's temporary directory)
          prefix : The prefix of the temporary file names
        """
        self.dir = dir
        self.prefix = prefix
        self._file = None
        self._size = 0
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__} ⠶ {self.size} bytes @ {self.path}"

    @property
    def path(self) -> str | None:
        """The path of the current temporary file, or ``None`` if there is none."""
        return None if self._file is None else self._file.name

    @property
    def size(self) -> int:
        return self._size

    def fill(self, stream: Iterable[bytes]) -> int:
        self.close()
        self._file = tempfile.NamedTemporaryFile(
            prefix=self.prefix, suffix=".tmp", dir=self.dir, delete=False
        )
        for chunk in stream:
            self._file.write(chunk)
            self._size += len(chunk)
        self._file.flush()
        log.debug(f"Stored {self._size} bytes in {self._file.name}")
        return self._size

    def read_at(self, buffer, offset: int) -> ReadResult:
        check_offset(offset)
        out = writable_view(buffer)
        if not len(out):
            return ReadResult(0)
        count = 0
        with self._lock:
            if self._file is None:
                return ReadResult(0, True)
            self._file.seek(offset)
            while count < len(out):
                n = self._file.readinto(out[count:])
                if not n:
                    break
                count += n
        return ReadResult(count, count < len(out))

    def close(self) -> None:
        with self._lock:
            if self._file is None:
                return
            file, self._file = self._file, None
            self._size = 0
            try:
                file.close()
            finally:
                os.remove(file.name)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class LimitedIterator:
    """
    Iterate over the chunks of ``source`` up to a total of ``limit`` bytes,
    splitting the chunk that crosses the limit and keeping its remainder, so
    that the rest of the source can still be read via
    :meth:`~range_reader.store.LimitedIterator.rest`.
    """

    def __init__(self, source: Iterator[bytes], limit: int):
        self.source = source
        self.remaining = limit
        self.pending = b""
        self.exhausted = False

    def __iter__(self) -> Iterator[bytes]:
        while self.remaining > 0:
            chunk = next(self.source, None)
            if chunk is None:
                self.exhausted = True
                return
            if len(chunk) > self.remaining:
                chunk, self.pending = chunk[: self.remaining], chunk[self.remaining :]
            self.remaining -= len(chunk)
            if chunk:
                yield chunk

    def overflowed(self) -> bool:
        """
        Whether the source holds more than ``limit`` bytes. Once the limit is
        reached this reads ahead by (at most) one non-empty chunk.
        """
        if self.pending:
            return True
        if self.exhausted:
            return False
        for chunk in self.source:
            if chunk:
                self.pending = chunk
                return True
        self.exhausted = True
        return False

    def rest(self) -> Iterator[bytes]:
        """The chunks of the source beyond the limit."""
        return chain([self.pending] if self.pending else [], self.source)


class LimitedStore:
    """
    A store which fills a ``primary`` store with up to ``limit`` bytes. If the
    source holds more than that, either the ``secondary`` store is filled with
    everything instead (without reading the source twice), or if there is no
    secondary store :class:`~range_reader.errors.StoreLimitExceededError` is
    raised and nothing is kept.

    The store being read from is the
    :attr:`~range_reader.store.LimitedStore.active` one.
    """

    def __init__(self, primary: Store, limit: int, secondary: Store | None = None):
        if limit < 0:
            raise ValueError(f"Negative limit {limit}")
        self.primary = primary
        self.limit = limit
        self.secondary = secondary
        self._active: Store | None = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__} ⠶ {self.limit} bytes in {self.primary!r}, "
            f"then {self.secondary!r}"
        )

    @property
    def active(self) -> Store | None:
        """The store holding the bytes, or ``None`` if there are none."""
        return self._active

    @property
    def size(self) -> int:
        return 0 if self._active is None else self._active.size

    def fill(self, stream: Iterable[bytes]) -> int:
        self.close()
        bounded = LimitedIterator(iter(stream), self.limit)
        self._active = self.primary
        count = self.primary.fill(bounded)
        if not bounded.overflowed():
            return count
        if self.secondary is None:
            self._active = None
            self.primary.close()
            raise StoreLimitExceededError(limit=self.limit)
        log.debug(f"Store limit of {self.limit} bytes exceeded, using {self.secondary!r}")
        self._active = self.secondary
        try:
            replay = chain(iter_store(self.primary, count), bounded.rest())
            return self.secondary.fill(replay)
        finally:
            self.primary.close()

    def read_at(self, buffer, offset: int) -> ReadResult:
        if self._active is None:
            check_offset(offset)
            return ReadResult(0, len(writable_view(buffer)) > 0)
        return self._active.read_at(buffer, offset)

    def close(self) -> None:
        if self._active is not None:
            active, self._active = self._active, None
            active.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def default_store(
    memory_limit: int = DEFAULT_MEMORY_LIMIT, file_limit: int = DEFAULT_FILE_LIMIT
) -> LimitedStore:
    """
    Create a store which buffers up to ``memory_limit`` bytes (1 MiB) in memory,
    and if that is exceeded up to ``file_limit`` bytes (1 GiB) in a temporary
    file. The store must be closed when no longer used.
    """
    return LimitedStore(
        MemoryStore(), memory_limit, LimitedStore(FileStore(), file_limit)
    )
