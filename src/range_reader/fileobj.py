from __future__ import annotations

from io import SEEK_CUR, SEEK_END, SEEK_SET, RawIOBase, UnsupportedOperation
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    # absolute imports for Sphinx
    import range_reader  # for RangeReader

__all__ = ["RangeReaderFile"]


class RangeReaderFile(RawIOBase):
    """
    A seekable, read-only raw binary file object onto a
    :class:`~range_reader.reader.RangeReader`, keeping its own cursor position.
    Wrap it in a :class:`io.BufferedReader` (as
    :meth:`~range_reader.reader.RangeReader.open` does) to avoid sending a range
    request for every small read.
    """

    def __init__(self, reader: range_reader.RangeReader, close_reader: bool = False):
        """
        Args:
          reader       : The reader to read from
          close_reader : Whether closing the file also closes the reader
        """
        super().__init__()
        self.reader = reader
        self.close_reader = close_reader
        self._pos = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._pos

    def seek(self, position: int, whence: int = SEEK_SET) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file")
        if whence == SEEK_SET:
            new_pos = position
        elif whence == SEEK_CUR:
            new_pos = self._pos + position
        elif whence == SEEK_END:
            if self.reader.size == -1:
                raise UnsupportedOperation("Size of the remote file is unknown")
            new_pos = self.reader.size + position
        else:
            raise ValueError(f"Invalid whence ({whence}, should be 0, 1 or 2)")
        if new_pos < 0:
            raise ValueError(f"Negative seek position {new_pos}")
        self._pos = new_pos
        return self._pos

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file")
        count, _ = self.reader.read_at(buffer, self._pos)
        self._pos += count
        return count

    def close(self) -> None:
        if not self.closed and self.close_reader:
            self.reader.close()
        super().close()
