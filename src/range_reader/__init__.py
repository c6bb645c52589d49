r"""
:mod:`range_reader` provides random access to the bytes of a remote file
through HTTP `range requests
<https://developer.mozilla.org/en-US/docs/Web/HTTP/Range_requests>`_, without
downloading the whole file. Each read sends one GET request for exactly the
bytes wanted, which makes it suitable for formats read 'from the middle', such
as a ZIP archive (whose file list is at the end).

A :class:`~range_reader.reader.RangeReader` is initialised by providing:

- a GET request (:class:`httpx.Request`) for the file, used as a prototype
  for every request the reader sends (its headers and timeout are kept)
- (optionally) a client (:class:`httpx.Client`), or else a fresh one
  is created
- (optionally) a :class:`~range_reader.store.Store` to buffer the file in if
  the server does not support range requests

or more simply, from a URL:

    >>> from range_reader import RangeReader, _EXAMPLE_URL
    >>> r = RangeReader.from_url(_EXAMPLE_URL) # doctest: +SKIP
    >>> r # doctest: +SKIP
    RangeReader ⠶ 11 bytes @ 'example_text_file.txt' from github.com
    >>> buf = bytearray(4) # doctest: +SKIP
    >>> r.read_at(buf, 7) # doctest: +SKIP
    ReadResult(count=4, eof=False)
    >>> r.read_at(buf, 9) # doctest: +SKIP
    ReadResult(count=2, eof=True)

Upon initialisation the reader requests the first byte of the file, which
determines the total file length
(:attr:`~range_reader.reader.RangeReader.size`), and notes the
``last-modified`` and ``etag`` headers. If any later response disagrees with
these (meaning the file changed on the server), the read raises
:class:`~range_reader.errors.ValidationFailedError`.

Reads past the end of the file are clamped to it: the bytes that exist are
returned, and the ``eof`` flag of the :class:`~range_reader.types.ReadResult`
is set.

For libraries which expect a file object, :meth:`~range_reader.reader.RangeReader.open`
gives a seekable buffered one:

    >>> from zipfile import ZipFile
    >>> from range_reader import _EXAMPLE_ZIP_URL
    >>> r = RangeReader.from_url(_EXAMPLE_ZIP_URL) # doctest: +SKIP
    >>> ZipFile(r.open()).namelist() # doctest: +SKIP
    ['example_text_file.txt']

When a server does not support range requests it sends the entire file in
reply to the first request. With a store, such as the tiered
:func:`~range_reader.store.default_store` (1 MiB in memory, then up to 1 GiB
in a temporary file), the file is buffered once and then read from locally.
Without one, :class:`~range_reader.errors.RangeUnsupportedError` is raised.

    >>> from range_reader import default_store
    >>> r = RangeReader.from_url(_EXAMPLE_URL, store=default_store()) # doctest: +SKIP
"""

# Get classes into package namespace but exclude from __all__ so Sphinx can access types

from . import content_range, errors, http_utils, metadata, range_utils, store
from .content_range import ContentRange, parse_content_range
from .errors import (
    ConstructionError,
    ContentRangeParseError,
    ProtocolError,
    RangeReaderError,
    RangeUnsupportedError,
    StoreLimitExceededError,
    TransportError,
    ValidationFailedError,
)
from .fileobj import RangeReaderFile
from .metadata import Metadata
from .reader import RangeReader
from .store import FileStore, LimitedStore, MemoryStore, Store, default_store
from .types import ReadResult

__all__ = [
    "reader",
    "store",
    "content_range",
    "metadata",
    "errors",
    "fileobj",
    "http_utils",
    "range_utils",
    "types",
]

__author__ = "Louis Maddox"
__license__ = "MIT"
__description__ = "Random access to remote files via range requests."
__url__ = "https://github.com/lmmx/range-reader"
__uri__ = __url__
__email__ = "louismmx@gmail.com"
__version__ = "0.1.0"

_EXAMPLE_DATA_URL = "https://github.com/lmmx/range-streams/raw/master/data/"
_EXAMPLE_URL = f"{_EXAMPLE_DATA_URL}example_text_file.txt"
_EXAMPLE_ZIP_URL = f"{_EXAMPLE_DATA_URL}example_text_file.txt.zip"
