r"""When preparing a HTTP GET request, the HTTP `range request
<https://developer.mozilla.org/en-US/docs/Web/HTTP/Range_requests>`_
header is given as a :class:`dict`, for example:

.. code-block:: python

    {"range": "bytes=0-1"}

would request the two bytes at positions ``0`` and ``1`` (i.e. the inclusive
interval ``[0,1]``).

Every request sent by a :class:`~range_reader.reader.RangeReader` asks for
a non-empty range, so unlike an open-ended request (``bytes=0-``) both termini
are always given.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:  # pragma: no cover
    from ranges import Range

from .range_utils import range_termini

__all__ = [
    "byte_range_from_range_obj",
    "range_header",
    "content_length",
    "IDENTITY_ENCODING",
]

# Bodies are copied byte for byte, so they must never be compressed in transit
IDENTITY_ENCODING = {"accept-encoding": "identity"}


def byte_range_from_range_obj(rng: Range) -> str:
    """Prepare the byte range substring for a HTTP `range request
    <https://developer.mozilla.org/en-US/docs/Web/HTTP/Range_requests>`_.

    For example:

      >>> from ranges import Range
      >>> from range_reader.http_utils import byte_range_from_range_obj
      >>> byte_range_from_range_obj(Range(0,2))
      '0-1'

    Args:
      rng : non-empty range of the bytes to be requested (0-based)

    Returns:
      A hyphen-separated string of the inclusive start and end positions.
    """
    start_byte, end_byte = range_termini(rng)
    return f"{start_byte}-{end_byte}"


def range_header(rng: Range) -> dict[str, str]:
    """
    Prepare a :class:`dict` to update the headers of a ``httpx.Request`` with,
    with a single key ``range`` whose value is the byte range.

    For example:

      >>> from ranges import Range
      >>> from range_reader.http_utils import range_header
      >>> range_header(Range(0,2))
      {'range': 'bytes=0-1'}

    Args:
      rng : non-empty range of the bytes to be requested (0-based)
    """
    byte_range = byte_range_from_range_obj(rng)
    return {"range": f"bytes={byte_range}"}


def content_length(headers: Mapping[str, str]) -> int:
    """
    Read the ``content-length`` header as an integer, or ``-1`` if it is absent
    or is not a plain decimal number.
    """
    value = headers.get("content-length", "").strip()
    if not value.isascii() or not value.isdigit():
        return -1
    return int(value)
