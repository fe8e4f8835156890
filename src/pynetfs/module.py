"""The /sys/net virtual directory: a netstat-like view of the connection table."""

from __future__ import annotations

import logging

from pynetfs.errors import InvalidTargetError
from pynetfs.models import ModuleInfo, VfsEntry
from pynetfs.paging import file_size, read_bytes, read_lines
from pynetfs.render import LineRenderer, RenderMode
from pynetfs.resolver import ProcessResolver, PsutilProcessResolver
from pynetfs.source import NetMapSource
from pynetfs.timeline import TIMELINE_NAME, TimelineSink, export_timeline

logger = logging.getLogger(__name__)

README_NAME = "readme.txt"

README = (
    "Information about the sys/net module\n"
    "====================================\n"
    "The sys/net module lists network connections in a netstat-like way.\n"
    "netstat.txt holds one 128 byte line per connection: index, PID,\n"
    "protocol, state, source, destination and owning process.\n"
    "netstat-v.txt holds one 278 byte line per connection and adds the\n"
    "creation time, object address and process path.\n"
    "Line 0 of both files is a column header. The table files are only\n"
    "present while a connection table snapshot is available.\n"
).encode("utf-8")


class NetModule:
    """
    Virtual directory exposing the connection table as fixed-width text files.

    Every call acquires its own snapshot from the source and releases it
    before returning; the module keeps no state between calls.
    """

    info = ModuleInfo(
        path="/sys/net",
        root_module=True,
        timeline_name=TIMELINE_NAME,
        timeline_file_text="timeline_net.txt",
        timeline_file_json="timeline_net.json",
        files=(README_NAME, RenderMode.COMPACT.file_name, RenderMode.VERBOSE.file_name),
    )

    def __init__(self, source: NetMapSource, resolver: ProcessResolver | None = None) -> None:
        self._source = source
        self._resolver = resolver if resolver is not None else PsutilProcessResolver()
        self._modes = {mode.file_name: mode for mode in RenderMode}

    @property
    def source(self) -> NetMapSource:
        return self._source

    def list(self, path: str = "") -> list[VfsEntry]:
        """List the files of ``path``. Only the module root has files."""
        if path.strip("/"):
            return []

        entries = [VfsEntry(README_NAME, len(README))]
        with self._source.acquire() as net_map:
            if net_map is not None:
                entries.extend(
                    VfsEntry(mode.file_name, file_size(net_map.count, mode.line_width))
                    for mode in RenderMode
                )
        return entries

    def read(self, path: str, offset: int = 0, length: int | None = None) -> bytes:
        """
        Read ``length`` bytes at ``offset`` from the file at ``path``.

        Raises:
            InvalidTargetError: ``path`` is not a file of this module.
        """
        name = path.strip("/")
        if name == README_NAME:
            return read_bytes(README, offset, length)

        mode = self._modes.get(name)
        if mode is None:
            raise InvalidTargetError(path)

        with self._source.acquire() as net_map:
            if net_map is None:
                return b""
            renderer = LineRenderer(mode, self._resolver)
            return read_lines(
                renderer,
                mode.line_width,
                renderer.header(),
                net_map.entries,
                offset,
                length,
            )

    def size(self, path: str) -> int | None:
        """Size of the file at ``path``, or None if it is not currently listed."""
        name = path.strip("/")
        for entry in self.list():
            if entry.name == name:
                return entry.size
        return None

    def timeline(self, sink: TimelineSink) -> int:
        """Export connection creation events to ``sink``."""
        return export_timeline(self._source, sink)
