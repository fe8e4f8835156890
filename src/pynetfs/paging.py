"""
Fixed-stride paging over a table of records.

A table of ``count`` records is exposed as a virtual text file of
``count + 1`` lines (line 0 is the header), each exactly ``line_width``
bytes. Sizes are computed arithmetically and reads render only the lines
overlapping the requested window.
"""

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def line_count(count: int) -> int:
    """Number of lines in a table file, header included."""
    return count + 1


def file_size(count: int, line_width: int) -> int:
    """Virtual file size for ``count`` records. Never renders anything."""
    return line_count(count) * line_width


def _window(offset: int, length: int | None, size: int) -> tuple[int, int]:
    offset = max(offset, 0)
    if length is None:
        return offset, size
    return offset, min(offset + max(length, 0), size)


def read_bytes(data: bytes, offset: int, length: int | None = None) -> bytes:
    """Read a window of a static in-memory document."""
    start, end = _window(offset, length, len(data))
    if start >= end:
        return b""
    return data[start:end]


def read_lines(
    render: Callable[[int, T], bytes],
    line_width: int,
    header: bytes,
    entries: Sequence[T],
    offset: int,
    length: int | None = None,
) -> bytes:
    """
    Read ``[offset, offset + length)`` of a fixed-width table file.

    Args:
        render: Renders record ``i`` (zero-based) as exactly ``line_width`` bytes.
        line_width: Width of every line, header included.
        header: The already rendered header line.
        entries: The records, in snapshot order.
        offset: Byte offset into the virtual file.
        length: Number of bytes wanted, or None to read to the end.

    Returns:
        The requested bytes. Reads at or past the end return b"".
    """
    size = file_size(len(entries), line_width)
    start, end = _window(offset, length, size)
    if start >= end:
        return b""

    first_line = start // line_width
    last_line = (end - 1) // line_width
    buffer = bytearray()
    for line in range(first_line, last_line + 1):
        data = header if line == 0 else render(line - 1, entries[line - 1])
        if len(data) != line_width:
            raise ValueError(f"line {line} is {len(data)} bytes, expected {line_width}")
        buffer += data

    shift = start - first_line * line_width
    logger.debug("rendered lines %d..%d for window %d:%d", first_line, last_line, start, end)
    return bytes(buffer[shift : shift + end - start])
