r"""
Exceptions raised by :mod:`range_reader`.

Every failure raised by a :class:`~range_reader.reader.RangeReader` or a
:class:`~range_reader.store.Store` derives from
:class:`~range_reader.errors.RangeReaderError`, and carries the context of the
failure as attributes (the request and response involved, the ranges or
metadata compared) rather than only in its message. The
`Content-Range <https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers/Content-Range>`_
parser raises :class:`~range_reader.errors.ContentRangeParseError`, a
:class:`ValueError`.

Reaching the end of the remote resource is not an error: it is reported by
the ``eof`` flag of a :class:`~range_reader.types.ReadResult`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    import httpx

    from .metadata import Metadata

__all__ = [
    "RangeReaderError",
    "ConstructionError",
    "InvalidMethodError",
    "TransportError",
    "ProtocolError",
    "UnexpectedStatusError",
    "MissingContentRangeError",
    "InvalidContentRangeError",
    "RangeMismatchError",
    "ContentLengthMismatchError",
    "ValidationFailedError",
    "RangeUnsupportedError",
    "StoreLimitExceededError",
    "ContentRangeParseError",
    "UnsupportedUnitError",
]


class RangeReaderError(Exception):
    """Base class for errors raised by a reader or a store."""


class ConstructionError(RangeReaderError):
    """
    The :class:`~range_reader.reader.RangeReader` could not be set up from
    the arguments it was given.
    """


class InvalidMethodError(ConstructionError):
    """
    The prototype request used any HTTP method other than GET.
    """

    def __init__(self, *, method: str):
        super().__init__(f"Invalid HTTP method {method!r}: only GET is supported")
        self.method = method


class TransportError(RangeReaderError):
    """
    The request could not be completed at the network level. The
    underlying ``httpx`` exception is available as
    :attr:`~range_reader.errors.TransportError.cause` (and as ``__cause__``).
    """

    def __init__(self, *, request: httpx.Request, cause: Exception):
        super().__init__(f"HTTP request to {request.url} failed: {cause}")
        self.request = request
        self.cause = cause


class ProtocolError(RangeReaderError):
    """
    The server answered, but not with a response that can satisfy a range
    read.
    """

    def __init__(self, message: str, *, request: httpx.Request, response: httpx.Response):
        super().__init__(message)
        self.request = request
        self.response = response


class UnexpectedStatusError(ProtocolError):
    """
    The response had a status code other than 200 (OK) or 206 (Partial Content).
    """

    def __init__(self, *, request: httpx.Request, response: httpx.Response):
        self.status_code = response.status_code
        self.status_text = f"{response.status_code} {response.reason_phrase}".strip()
        super().__init__(
            f"HTTP request error: {self.status_text}",
            request=request,
            response=response,
        )


class MissingContentRangeError(ProtocolError):
    """
    A 206 (Partial Content) response had no ``content-range`` header.
    """

    def __init__(self, *, request: httpx.Request, response: httpx.Response):
        super().__init__(
            "No content-range header in partial response",
            request=request,
            response=response,
        )


class InvalidContentRangeError(ProtocolError):
    """
    The ``content-range`` header of a 206 (Partial Content) response could not
    be parsed.
    """

    def __init__(self, *, request: httpx.Request, response: httpx.Response, value: str):
        super().__init__(
            f"Invalid content-range header {value!r}",
            request=request,
            response=response,
        )
        self.value = value


class RangeMismatchError(ProtocolError):
    """
    The server returned a different (or larger) byte window than was requested.
    Both ranges are inclusive ``(first, last)`` pairs.
    """

    def __init__(
        self,
        *,
        request: httpx.Request,
        response: httpx.Response,
        requested: tuple[int, int],
        received: tuple[int, int],
    ):
        super().__init__(
            "Received different range than requested "
            f"(req={requested[0]}-{requested[1]}, resp={received[0]}-{received[1]})",
            request=request,
            response=response,
        )
        self.requested = requested
        self.received = received


class ContentLengthMismatchError(ProtocolError):
    """
    The ``content-length`` of a partial response did not match the length of
    the range given in its ``content-range`` header. ``declared`` is ``-1`` if
    the response had no ``content-length``.
    """

    def __init__(
        self,
        *,
        request: httpx.Request,
        response: httpx.Response,
        expected: int,
        declared: int,
    ):
        super().__init__(
            f"Content-length mismatch in http response ({expected=}, {declared=})",
            request=request,
            response=response,
        )
        self.expected = expected
        self.declared = declared


class ValidationFailedError(RangeReaderError):
    """
    The remote resource changed since the reader was created: the size,
    ``last-modified`` or ``etag`` of a response no longer matches those of
    the first response.
    """

    def __init__(self, *, expected: Metadata, received: Metadata):
        super().__init__("Validation failed: the remote resource has changed")
        self.expected = expected
        self.received = received


class RangeUnsupportedError(RangeReaderError):
    """
    The server does not support range requests and there is no
    :class:`~range_reader.store.Store` to buffer the resource in.

    If ``lost`` is ``True``, the server supported range requests when the
    reader was created but has since answered a range request with the full
    resource. This is never recovered from.
    """

    def __init__(self, *, lost: bool = False):
        if lost:
            msg = "Server suddenly stopped supporting range requests"
        else:
            msg = "Server does not support range requests"
        super().__init__(msg)
        self.lost = lost


class StoreLimitExceededError(RangeReaderError):
    """
    A :class:`~range_reader.store.LimitedStore` was filled with more than its
    limit and has no secondary store to fall back to.
    """

    def __init__(self, *, limit: int):
        super().__init__(f"Store size limit reached ({limit} bytes)")
        self.limit = limit


class ContentRangeParseError(ValueError):
    """
    A ``content-range`` header value could not be parsed.
    """

    def __init__(self, message: str, *, value: str):
        super().__init__(f"{message}: {value!r}")
        self.value = value


class UnsupportedUnitError(ContentRangeParseError):
    """
    A ``content-range`` header value used a unit other than ``bytes``.
    """

    def __init__(self, *, value: str, unit: str):
        super().__init__(f"Unsupported unit {unit!r}", value=value)
        self.unit = unit
