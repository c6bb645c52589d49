from __future__ import annotations

from typing import NamedTuple

__all__ = ["ReadResult"]


class ReadResult(NamedTuple):
    """
    The outcome of a positional read: the number of bytes copied into the
    caller's buffer, and whether the end of the data was reached (which is
    always the case when ``count`` is less than the buffer length).
    """

    count: int
    eof: bool = False
