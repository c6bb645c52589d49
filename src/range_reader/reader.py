r""":mod:`range_reader.reader` exposes a class
:class:`~range_reader.reader.RangeReader`, which reads bytes at any position of
a remote file by sending one HTTP `range request
<https://developer.mozilla.org/en-US/docs/Web/HTTP/Range_requests>`_ per read,
copying the partial content received into the caller's buffer.

The reader is created from a 'prototype' GET request, which is copied (never
modified) for every read, so a single reader can be read from by many threads
at once. On creation a single byte is requested, to check that the server
supports range requests and to note the size, ``last-modified``, ``etag`` and
``content-type`` of the file. Every later response is checked against these,
and if they differ (i.e. the file changed) the read fails with
:class:`~range_reader.errors.ValidationFailedError`.

If the server ignores the range and sends the whole file, the reader can only
be created if a :class:`~range_reader.store.Store` is given to buffer it in,
in which case all reads are served from the store.
"""

from __future__ import annotations

from dataclasses import replace
from io import DEFAULT_BUFFER_SIZE, BufferedReader
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Mapping

MYPY = False  # when using mypy will be overrided as True
if MYPY or not TYPE_CHECKING:  # pragma: no cover
    import httpx  # avoid importing to Sphinx type checker

from ranges import Range

from .content_range import ContentRange, parse_content_range
from .errors import (
    ContentLengthMismatchError,
    ContentRangeParseError,
    InvalidContentRangeError,
    InvalidMethodError,
    MissingContentRangeError,
    RangeMismatchError,
    RangeUnsupportedError,
    TransportError,
    UnexpectedStatusError,
    ValidationFailedError,
)
from .fileobj import RangeReaderFile
from .http_utils import IDENTITY_ENCODING, content_length, range_header
from .log_utils import log, set_up_logging
from .metadata import Metadata
from .range_utils import byte_range, clamp_range, range_len, range_termini
from .store import Store, check_offset, writable_view
from .types import ReadResult

__all__ = ["RangeReader"]


class RangeReader:
    """
    Random access to the bytes of a remote file, via HTTP range requests.

    Only the bytes asked for are transferred. Reads never overlap in state,
    so :meth:`~range_reader.reader.RangeReader.read_at` may be called from
    multiple threads concurrently.
    """

    def __init__(
        self,
        request,  # don't hint httpx.Request (Sphinx gives error)
        client=None,  # don't hint httpx.Client (Sphinx gives error)
        store: Store | None = None,
        close_client: bool | None = None,
        verbose: bool = False,
    ):
        """
        Set up a reader for the file requested by ``request``, and probe it with
        a request for its first byte. If the probe fails, the exception it
        raised is propagated unchanged (e.g.
        :class:`~range_reader.errors.RangeUnsupportedError` or a
        :class:`~range_reader.errors.ProtocolError`) and no reader is created.
        Only a non-GET ``request`` raises a
        :class:`~range_reader.errors.ConstructionError`, before anything is
        sent: catch :class:`~range_reader.errors.RangeReaderError` to handle
        every failure to set up a reader.

        By default (if ``client`` is left as ``None``) a fresh
        :class:`httpx.Client` will be created, and closed along with the
        reader.

        Args:
          request      : (:class:`httpx.Request`) The prototype GET request.
                         Any timeout attached to it (in its ``extensions``) applies
                         to every request the reader sends.
          client       : (:class:`httpx.Client` | ``None``) The HTTPX client to
                         send requests with
          store        : (:class:`~range_reader.store.Store` | ``None``) Where to
                         buffer the file if the server does not support range
                         requests. Closed along with the reader.
          close_client : (:class:`bool` | ``None``) Whether to close the client
                         when the reader is closed (by default, only if the
                         client was created by the reader)
          verbose      : (:class:`bool`) Whether to log to the console
        """
        if verbose:
            set_up_logging(quiet=False)
        if request.method != "GET":
            raise InvalidMethodError(method=request.method)
        self.close_client = client is None if close_client is None else close_client
        self.set_client(client=client)
        self.request = request
        self.store = store
        self._metadata = Metadata()
        self._buffered = False
        self._closed = False
        try:
            # Make a 1 byte range request to see if they are supported or not,
            # storing the file metadata to validate later responses against.
            self._read_at(writable_view(bytearray(1)), 0, probe=True)
        except Exception:
            self.close()
            raise
        log.debug(f"Opened {self!r}")

    @classmethod
    def from_url(
        cls,
        url: str,
        client=None,
        store: Store | None = None,
        headers: Mapping[str, str] | None = None,
        timeout=None,
        verbose: bool = False,
    ) -> RangeReader:
        """
        Set up a reader for the file at ``url``, building the prototype request
        with :meth:`httpx.Client.build_request` (so the client's default headers
        and timeout apply). As for any prototype, the ``accept-encoding`` of
        every request sent is ``identity``.

        Args:
          url     : (:class:`str`) The URL of the file to be read
          client  : (:class:`httpx.Client` | ``None``) The HTTPX client to use,
                    or ``None`` to create one (closed along with the reader)
          store   : (:class:`~range_reader.store.Store` | ``None``) Where to
                    buffer the file if the server does not support range
                    requests
          headers : Extra headers for every request
          timeout : A :class:`httpx.Timeout` (or number of seconds) for every
                    request, instead of the client's
          verbose : (:class:`bool`) Whether to log to the console
        """
        close_client = client is None
        if client is None:
            client = httpx.Client()
        extra = {} if timeout is None else {"timeout": timeout}
        request = client.build_request("GET", url, headers=headers, **extra)
        return cls(
            request,
            client=client,
            store=store,
            close_client=close_client,
            verbose=verbose,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__} ⠶ {self.size} bytes @ "
            f"'{self.name}' from {self.domain}"
        )

    def set_client(self, client) -> None:
        """
        Check the client type explicitly, creating a fresh client if none is given.

        Args:
          client : (:class:`httpx.Client` | ``None``) The client to be used for all
                   HTTP requests made by the reader. If ``None``, a fresh one will
                   be created.
        """
        if client is None:
            client = httpx.Client()
        elif not isinstance(client, httpx.Client):
            raise TypeError(f"{client=} is not a HTTPX client")
        self.client = client

    @property
    def name(self) -> str:
        """The file name at the end of the URL path."""
        return PurePosixPath(self.request.url.path).name

    @property
    def domain(self) -> str:
        return self.request.url.host

    @property
    def metadata(self) -> Metadata:
        """The metadata of the file, as given in response to the probe."""
        return self._metadata

    @property
    def size(self) -> int:
        """The size of the file in bytes, or ``-1`` if the server did not say."""
        return self._metadata.size

    @property
    def content_type(self) -> str:
        return self._metadata.content_type

    @property
    def last_modified(self) -> str:
        return self._metadata.last_modified

    @property
    def etag(self) -> str:
        return self._metadata.etag

    @property
    def buffered(self) -> bool:
        """
        Whether the server did not support range requests, so the file was
        buffered in the :attr:`~range_reader.reader.RangeReader.store`.
        """
        return self._buffered

    @property
    def closed(self) -> bool:
        return self._closed

    def copy_request(self):  # returns httpx.Request
        """
        Copy the prototype request, with its own headers which may be modified.
        The extensions (which carry any timeout) are kept. The
        ``accept-encoding`` is always ``identity``: a server offered gzip may
        ignore the range and send the whole file compressed, and the
        ``content-length`` must count the bytes copied.
        """
        request = self.request
        headers = request.headers.copy()
        headers.update(IDENTITY_ENCODING)
        return httpx.Request(
            method=request.method,
            url=request.url,
            headers=headers,
            extensions=dict(request.extensions),
        )

    def send(self, request):  # returns httpx.Response
        """
        Send a request, leaving the response stream to be manually closed.
        """
        try:
            return self.client.send(request, stream=True)
        except httpx.RequestError as exc:
            raise TransportError(request=request, cause=exc) from exc

    def read_at(self, buffer, offset: int) -> ReadResult:
        """
        Read ``len(buffer)`` bytes from the file starting at position ``offset``
        into ``buffer`` (a writable bytes-like object such as a
        :class:`bytearray`).

        If the end of the file is reached, the bytes available are copied and the
        result's ``eof`` flag is set: this is not an error, and reading at or
        beyond the end of a file of known size returns ``ReadResult(0, True)``
        without sending a request.

        Args:
          buffer : The buffer to read into
          offset : The position in the file of the first byte to read

        Raises:
          TransportError        : if the request could not be sent
          ProtocolError         : if the response could not be used
          ValidationFailedError : if the file has changed
          RangeUnsupportedError : if the server stopped supporting range requests
        """
        if self._closed:
            raise ValueError("I/O operation on closed reader")
        check_offset(offset)
        return self._read_at(writable_view(buffer), offset)

    def read_bytes(self, offset: int, size: int) -> bytes:
        """
        Read (at most) ``size`` bytes from the file starting at position
        ``offset``. Fewer bytes are returned only at the end of the file.
        """
        buf = bytearray(size)
        count, _ = self.read_at(buf, offset)
        return bytes(buf[:count])

    def open(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> BufferedReader:
        """
        A seekable, read-only binary file object onto the file, e.g. for
        :class:`zipfile.ZipFile`. Closing it does not close the reader.

        Args:
          buffer_size : The size of the read buffer (each buffer refill is one
                        range request)
        """
        return BufferedReader(RangeReaderFile(self), buffer_size=buffer_size)

    def _read_at(self, buffer: memoryview, offset: int, probe: bool = False) -> ReadResult:
        if not len(buffer):
            return ReadResult(0)
        if self._buffered:
            return self.store.read_at(buffer, offset)
        rng = byte_range(offset, len(buffer))
        clamped = False
        if not probe and self.size != -1 and rng.end > self.size:
            # Some servers reply "416 Range Not Satisfiable" past the end of the file
            rng = clamp_range(rng, self.size)
            if rng.isempty():
                return ReadResult(0, True)
            buffer = buffer[: range_len(rng)]
            clamped = True
        request = self.copy_request()
        request.headers.update(range_header(rng))
        log.debug(f"Requesting {request.headers['range']} of {request.url}")
        response = self.send(request)
        try:
            result = self._handle_response(request, response, buffer, offset, rng, probe)
        finally:
            response.close()
        return ReadResult(result.count, True) if clamped else result

    def _handle_response(
        self,
        request,
        response,
        buffer: memoryview,
        offset: int,
        rng: Range,
        probe: bool,
    ) -> ReadResult:
        if response.status_code not in (200, 206):
            raise UnexpectedStatusError(request=request, response=response)
        content_range = None
        if response.status_code == 206:
            content_range = self.content_range(request, response)
        self.validate(Metadata.from_response(response, content_range), probe=probe)
        if response.status_code == 200:
            return self._fill_store(request, response, buffer, offset, probe)
        return self._copy_partial(request, response, buffer, rng, content_range)

    def content_range(self, request, response) -> ContentRange:
        """
        Parse the ``content-range`` header required on a partial content response.
        """
        value = response.headers.get("content-range", "")
        if not value:
            raise MissingContentRangeError(request=request, response=response)
        try:
            return parse_content_range(value)
        except ContentRangeParseError as exc:
            raise InvalidContentRangeError(
                request=request, response=response, value=value
            ) from exc

    def validate(self, received: Metadata, probe: bool = False) -> None:
        """
        Store the metadata of the probe response, or check the metadata of any
        later response against it.
        """
        if probe:
            self._metadata = received
        elif not self._metadata.matches(received):
            raise ValidationFailedError(expected=self._metadata, received=received)

    def _fill_store(
        self, request, response, buffer: memoryview, offset: int, probe: bool
    ) -> ReadResult:
        if not probe:
            raise RangeUnsupportedError(lost=True)
        if self.store is None:
            raise RangeUnsupportedError()
        # Only reached from __init__, before the reader can be shared between threads
        log.debug(f"Server does not support range requests, buffering in {self.store!r}")
        try:
            count = self.store.fill(response.iter_raw())
        except httpx.RequestError as exc:
            raise TransportError(request=request, cause=exc) from exc
        self._buffered = True
        if self.size == -1:
            self._metadata = replace(self._metadata, size=count)
        elif self.size != count:
            log.warning(f"Buffered {count} bytes but content-length was {self.size}")
        return self.store.read_at(buffer, offset)

    def _copy_partial(
        self,
        request,
        response,
        buffer: memoryview,
        rng: Range,
        content_range: ContentRange,
    ) -> ReadResult:
        first, last, _ = content_range
        req_first, req_last = range_termini(rng)
        if first != req_first or last > req_last:
            raise RangeMismatchError(
                request=request,
                response=response,
                requested=(req_first, req_last),
                received=(first, last),
            )
        expected = last - first + 1
        declared = content_length(response.headers)
        if declared != expected:
            raise ContentLengthMismatchError(
                request=request, response=response, expected=expected, declared=declared
            )
        count = self._copy_body(request, response, buffer[:expected])
        return ReadResult(count, count < len(buffer))

    def _copy_body(self, request, response, buffer: memoryview) -> int:
        count = 0
        try:
            for chunk in response.iter_raw():
                n = min(len(chunk), len(buffer) - count)
                buffer[count : count + n] = chunk[:n]
                count += n
                if count == len(buffer):
                    break
        except httpx.RemoteProtocolError as exc:
            # The body ended before its content-length: treat as the end of the data
            log.debug(f"Response body ended after {count} bytes: {exc}")
        except httpx.RequestError as exc:
            raise TransportError(request=request, cause=exc) from exc
        return count

    def close(self) -> None:
        """
        Close the :attr:`~range_reader.reader.RangeReader.store` (if any), and
        the client if it was created by the reader. Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        try:
            if self.store is not None:
                self.store.close()
        finally:
            if self.close_client:
                self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
