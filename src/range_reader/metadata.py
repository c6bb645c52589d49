r"""
:mod:`range_reader.metadata` captures the identity of a remote resource from the
headers of a response, so that a :class:`~range_reader.reader.RangeReader` can
notice the resource changing between two reads.

Entity tags are compared as `strong validators
<https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers/ETag>`_: a weak tag
(``W/"..."``) or an empty tag never matches, since neither guarantees that the
bytes are unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    import httpx

    from .content_range import ContentRange

from .http_utils import content_length

__all__ = ["Metadata", "etag_strong_match"]


def etag_strong_match(a: str, b: str) -> bool:
    """
    Whether two entity tags match under strong comparison: equal, non-empty,
    and not weak (a strong tag starts with a double quote).

      >>> from range_reader.metadata import etag_strong_match
      >>> etag_strong_match('"abc"', '"abc"')
      True
      >>> etag_strong_match('W/"abc"', 'W/"abc"')
      False
    """
    return a == b and a != "" and a[0] == '"'


@dataclass(frozen=True)
class Metadata:
    """
    The size, ``last-modified``, ``etag`` and ``content-type`` of a remote
    resource. An unknown ``size`` is ``-1``; missing headers are empty strings.
    """

    size: int = -1
    last_modified: str = ""
    etag: str = ""
    content_type: str = ""

    @classmethod
    def from_response(
        cls, response: httpx.Response, content_range: ContentRange | None = None
    ) -> Metadata:
        """
        Derive the metadata of the resource from a response. The size is read
        from the ``content-length`` of a full (200) response, or from the total
        length in the parsed ``content-range`` of a partial (206) response.

        Args:
          response      : The received ``httpx.Response``
          content_range : The parsed ``content-range`` header of a partial
                          response, if any
        """
        headers = response.headers
        if response.status_code == 200:
            size = content_length(headers)
        elif content_range is not None:
            size = content_range.length
        else:
            size = -1
        return cls(
            size=size,
            last_modified=headers.get("last-modified", ""),
            etag=headers.get("etag", ""),
            content_type=headers.get("content-type", ""),
        )

    def matches(self, other: Metadata) -> bool:
        """
        Whether ``other`` describes the same resource: same size and
        ``last-modified``, and a strongly matching ``etag``. The
        ``content-type`` is not compared.
        """
        return (
            self.size == other.size
            and self.last_modified == other.last_modified
            and etag_strong_match(self.etag, other.etag)
        )
