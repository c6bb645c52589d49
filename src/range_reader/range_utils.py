from __future__ import annotations

__all__ = [
    "byte_range",
    "clamp_range",
    "range_termini",
    "range_len",
]

from ranges import Range


def byte_range(offset: int, length: int) -> Range:
    """Create the half-closed ``[offset, offset+length)`` :class:`~ranges.Range`
    covering a read of ``length`` bytes at ``offset``.

    Args:
      offset : The position of the first byte to read (0-based)
      length : The number of bytes to read
    """
    if not all(map(lambda x: isinstance(x, int), (offset, length))):
        raise TypeError("Ranges must be discrete: use integers for offset and length")
    if offset < 0:
        raise ValueError(f"Negative offset {offset}")
    if length < 0:
        raise ValueError(f"Negative length {length}")
    return Range(offset, offset + length)


def clamp_range(rng: Range, size: int) -> Range:
    """Shorten ``rng`` so that it ends no later than ``size``, the total length
    of the resource. The result is the empty range if ``rng`` starts at or
    after ``size``.

    Args:
      rng  : A half-closed :class:`~ranges.Range`
      size : The length of the resource, which must be known (non-negative)
    """
    if rng.isempty() or rng.start >= size:
        return Range(0, 0)
    if rng.end <= size:
        return rng
    return Range(rng.start, size)


def range_termini(rng: Range) -> tuple[int, int]:
    """Get the inclusive start and end positions ``[start,end]``
    from a :class:`ranges.Range`. These are referred to as the
    'termini', and are the positions sent in a range request header.

    Args:
      rng : A :class:`~ranges.Range` (which by default will be
            half-closed, i.e. not inclusive of the end position).
    """
    if rng.isempty():
        raise ValueError("Empty range has no termini")
    # If range is not empty then can compare regardless of if interval is closed/open
    start = rng.start if rng.include_start else rng.start + 1
    end = rng.end if rng.include_end else rng.end - 1
    return start, end


def range_len(rng: Range) -> int:
    """Get the number of bytes in a :class:`~ranges.Range`.

    Args:
      rng : A :class:`~ranges.Range` (which by default will be
            half-closed, i.e. not inclusive of the end position).
    """
    if rng.isempty():
        return 0
    rmin, rmax = range_termini(rng)
    return rmax - rmin + 1
