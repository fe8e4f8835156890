"""Fixed-width line rendering for the connection tables."""

from datetime import UTC, datetime
from enum import Enum

from pynetfs.models import NetEntry, ProcessInfo
from pynetfs.resolver import ProcessResolver

NO_TIME = " " * 20 + "***"

_COLUMNS = f"{'#':>4}{'PID':>7} {'Proto':<5}  {'State':<11}  {'Src':<28}  {'Dst':<28}"
HEADER = f"{_COLUMNS} Process"
HEADER_VERBOSE = f"{_COLUMNS} {'Process':<20} {'Time':<23}  {'Object Address':<16}  Process Path"


class RenderMode(Enum):
    """Rendering modes for the connection table, one per virtual file."""

    COMPACT = "compact"
    VERBOSE = "verbose"

    @property
    def line_width(self) -> int:
        return 128 if self is RenderMode.COMPACT else 278

    @property
    def header(self) -> str:
        return HEADER if self is RenderMode.COMPACT else HEADER_VERBOSE

    @property
    def file_name(self) -> str:
        return "netstat.txt" if self is RenderMode.COMPACT else "netstat-v.txt"


def fixed_width(text: str, width: int) -> bytes:
    """
    Encode text as one newline-terminated line of exactly ``width`` bytes.

    Content beyond ``width - 1`` bytes is dropped from the right without
    splitting a UTF-8 sequence; shorter content is padded with spaces.
    """
    data = text.encode("utf-8")
    limit = width - 1
    if len(data) > limit:
        data = data[:limit].decode("utf-8", errors="ignore").encode("utf-8")
    return data.ljust(limit, b" ") + b"\n"


def format_time(timestamp: float) -> str:
    """Format a POSIX timestamp as a 23 character UTC string.

    Missing timestamps and timestamps outside the range datetime can
    represent both render as ``NO_TIME``.
    """
    if not timestamp:
        return NO_TIME
    try:
        when = datetime.fromtimestamp(timestamp, UTC)
    except (OverflowError, ValueError, OSError):
        return NO_TIME
    return when.strftime("%Y-%m-%d %H:%M:%S UTC")


def render_header(mode: RenderMode) -> bytes:
    return fixed_width(mode.header, mode.line_width)


def render_line(
    mode: RenderMode,
    index: int,
    entry: NetEntry,
    process: ProcessInfo | None,
) -> bytes:
    """Render one connection entry as a fixed-width line for the given mode."""
    name = process.name if process else ""
    if mode is RenderMode.COMPACT:
        text = f"{index:04x}{entry.pid:7d} {entry.text} {name}"
    else:
        path = process.path if process else ""
        text = (
            f"{index:04x}{entry.pid:7d} {entry.text} {name:<20} "
            f"{format_time(entry.created)}  {entry.va_obj:016x}  {path}"
        )
    return fixed_width(text, mode.line_width)


class LineRenderer:
    """Callable renderer binding a mode to a process resolver."""

    def __init__(self, mode: RenderMode, resolver: ProcessResolver) -> None:
        self.mode = mode
        self._resolver = resolver

    @property
    def line_width(self) -> int:
        return self.mode.line_width

    def header(self) -> bytes:
        return render_header(self.mode)

    def __call__(self, index: int, entry: NetEntry) -> bytes:
        with self._resolver.resolve(entry.pid) as process:
            return render_line(self.mode, index, entry, process)
