r"""
Parse the value of a `Content-Range
<https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers/Content-Range>`_
header, as sent by a server in reply to a range request. The three forms
recognised are:

.. code-block:: text

    bytes 42-1233/1234
    bytes 42-1233/*
    bytes */1234

The header value is split into 'tokens' on whitespace and on the ``-`` and ``/``
delimiters, so the forms above give four, four, and three tokens respectively.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from .errors import ContentRangeParseError, UnsupportedUnitError

__all__ = ["ContentRange", "parse_content_range", "UNIT", "WILDCARD"]

UNIT = "bytes"
WILDCARD = "*"

_DELIMITERS = re.compile(r"[\s/-]+")
_DIGITS = re.compile(r"[0-9]+")


class ContentRange(NamedTuple):
    """
    The inclusive byte positions ``[first, last]`` of a partial response, and
    the total ``length`` of the resource it was taken from. Unknown values are
    given as ``-1``.
    """

    first: int
    last: int
    length: int


def _parse_int(token: str, value: str, field: str) -> int:
    if _DIGITS.fullmatch(token) is None:
        raise ContentRangeParseError(f"Can't parse {field} {token!r}", value=value)
    return int(token)


def parse_content_range(value: str) -> ContentRange:
    """Parse a ``content-range`` header value.

    For example:

      >>> from range_reader.content_range import parse_content_range
      >>> parse_content_range("bytes 42-1233/1234")
      ContentRange(first=42, last=1233, length=1234)
      >>> parse_content_range("bytes 42-1233/*")
      ContentRange(first=42, last=1233, length=-1)
      >>> parse_content_range("bytes */1234")
      ContentRange(first=-1, last=-1, length=1234)

    Args:
      value : The header value

    Raises:
      UnsupportedUnitError   : if the unit is anything but ``bytes``
      ContentRangeParseError : for any other malformed value. No partial result
                               is ever returned.
    """
    tokens = [t for t in _DELIMITERS.split(value) if t]
    if not tokens:
        raise ContentRangeParseError("Empty content-range", value=value)
    unit, *fields = tokens
    if unit != UNIT:
        raise UnsupportedUnitError(value=value, unit=unit)
    if len(fields) == 3:
        first = _parse_int(fields[0], value, "first")
        last = _parse_int(fields[1], value, "last")
        if fields[2] == WILDCARD:
            length = -1
        else:
            length = _parse_int(fields[2], value, "length")
        if first > last:
            raise ContentRangeParseError("First byte after last byte", value=value)
        if length != -1 and last >= length:
            raise ContentRangeParseError("Last byte beyond length", value=value)
        return ContentRange(first, last, length)
    if len(fields) == 2:
        if fields[0] != WILDCARD:
            raise ContentRangeParseError("Unsupported field", value=value)
        length = _parse_int(fields[1], value, "length")
        return ContentRange(-1, -1, length)
    raise ContentRangeParseError("Content-range parse error", value=value)
