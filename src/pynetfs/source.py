"""Connection table sources for pynetfs."""

import json
import logging
import socket
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from queue import Queue
from typing import Any

import psutil

from pynetfs.errors import SnapshotFormatError
from pynetfs.models import NetEntry, NetMap

logger = logging.getLogger(__name__)

CONNECTION_KINDS = ("inet", "inet4", "inet6", "tcp", "tcp4", "tcp6", "udp", "udp4", "udp6")


class NetMapSource(ABC):
    """
    Supplier of connection table snapshots.

    Subclasses implement ``get_net_map``; callers use ``acquire`` so the
    snapshot is only held for the duration of one request.
    """

    @abstractmethod
    def get_net_map(self) -> NetMap | None:
        """Current snapshot, or None when the table is unavailable."""

    @contextmanager
    def acquire(self) -> Iterator[NetMap | None]:
        """Borrow the current snapshot, or None when the table is unavailable."""
        net_map = self.get_net_map()
        if net_map is None:
            logger.debug("connection table unavailable")
        try:
            yield net_map
        finally:
            logger.debug("released snapshot of %d entries", len(net_map) if net_map else 0)


class StaticNetMapSource(NetMapSource):
    """Source that always hands out the same snapshot (or none)."""

    def __init__(self, net_map: NetMap | None) -> None:
        self._net_map = net_map

    def get_net_map(self) -> NetMap | None:
        return self._net_map


def format_address(addr: Any, family: int) -> str:
    """Format a psutil address tuple as ``ip:port``."""
    if not addr:
        return "***"
    ip, port = addr[0], addr[1]
    if family == socket.AF_INET6:
        return f"[{ip}]:{port}"
    return f"{ip}:{port}"


def format_proto(family: int, sock_type: int) -> str:
    proto = "TCP" if sock_type == socket.SOCK_STREAM else "UDP"
    return f"{proto}v6" if family == socket.AF_INET6 else f"{proto}v4"


def process_create_time(pid: int) -> float:
    """Start time of ``pid`` as a POSIX timestamp, or 0.0 if it cannot be read."""
    if pid <= 0:
        return 0.0
    try:
        proc = psutil.Process(pid)
        with proc.oneshot():
            return proc.create_time()
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return 0.0


class ConnectionMonitor(NetMapSource):
    """
    Connection table source that polls psutil.net_connections().

    Runs in a separate daemon thread and publishes each new snapshot
    atomically, optionally pushing it to a thread-safe Queue as well.
    Connections appearing after the first poll are stamped with the time
    they were first seen; connections already open at the first poll are
    stamped with their owner process's start time, a lower bound on when
    they were opened.
    """

    def __init__(
        self,
        update_queue: Queue[NetMap] | None = None,
        poll_rate: float = 2.0,
        kind: str = "tcp",
    ) -> None:
        """
        Initialize the ConnectionMonitor.

        Args:
            update_queue: Optional queue each new snapshot is pushed to.
            poll_rate: How often to poll the connection table (in seconds).
            kind: psutil connection kind, e.g. "tcp" or "inet".
        """
        if kind not in CONNECTION_KINDS:
            raise ValueError(f"unsupported connection kind: {kind!r}")
        self._queue = update_queue
        self._poll_rate = max(0.1, poll_rate)
        self._kind = kind
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._net_map: NetMap | None = None
        self._first_seen: dict[tuple, float] | None = None

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def get_net_map(self) -> NetMap | None:
        return self._net_map

    def start(self) -> None:
        """Start the polling thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="ConnectionMonitor",
        )
        self._thread.start()
        logger.info("connection monitor started (kind=%s, poll_rate=%.1fs)", self._kind, self._poll_rate)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the polling thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("connection monitor stopped")

    def refresh(self) -> NetMap | None:
        """Collect and publish one snapshot synchronously."""
        # Collection and publication share the lock so snapshots publish in order
        with self._lock:
            try:
                net_map = self._collect_net_map()
            except psutil.AccessDenied:
                logger.warning("access denied listing %s connections", self._kind)
                return self._net_map

            self._net_map = net_map
            if self._queue is not None:
                self._queue.put(net_map)
            return net_map

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                self.refresh()
            except Exception:
                # Keep the loop alive; the previous snapshot stays published
                logger.exception("failed to collect connection table")

            # Wait for poll_rate seconds or until stop is requested
            self._stop_event.wait(timeout=self._poll_rate)

    def _collect_net_map(self) -> NetMap:
        """
        Collect an immutable snapshot of the current connection table.

        Must be called with ``_lock`` held.
        """
        connections = psutil.net_connections(kind=self._kind)
        now = time.time()
        entries: list[NetEntry] = []

        first_poll = self._first_seen is None
        previous = self._first_seen or {}
        seen: dict[tuple, float] = {}
        start_times: dict[int, float] = {}

        for conn in connections:
            pid = conn.pid or 0
            key = (pid, conn.family, conn.type, tuple(conn.laddr or ()), tuple(conn.raddr or ()))
            if key in previous:
                created = previous[key]
            elif first_poll:
                # Already open before monitoring began: its owner's start is a lower bound
                if pid not in start_times:
                    start_times[pid] = process_create_time(pid)
                created = start_times[pid]
            else:
                created = now
            seen[key] = created
            status = conn.status if conn.status != psutil.CONN_NONE else ""
            entries.append(
                NetEntry.build(
                    pid=pid,
                    proto=format_proto(conn.family, conn.type),
                    state=status,
                    src=format_address(conn.laddr, conn.family),
                    dst=format_address(conn.raddr, conn.family),
                    va_obj=conn.fd if conn.fd and conn.fd > 0 else 0,
                    created=created,
                )
            )

        self._first_seen = seen
        return NetMap(entries=tuple(entries), captured=now)


def dump_net_map(net_map: NetMap, path: Path | str) -> None:
    """Write a snapshot to a JSON file."""
    data = {
        "captured": net_map.captured,
        "entries": [asdict(entry) for entry in net_map],
    }
    Path(path).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def load_net_map(path: Path | str) -> NetMap:
    """Read a snapshot written by ``dump_net_map``."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        entries = tuple(
            NetEntry(
                pid=int(item["pid"]),
                text=str(item["text"]),
                va_obj=int(item.get("va_obj", 0)),
                created=float(item.get("created", 0.0)),
                proto=str(item.get("proto", "")),
                state=str(item.get("state", "")),
                src=str(item.get("src", "")),
                dst=str(item.get("dst", "")),
            )
            for item in data["entries"]
        )
        return NetMap(entries=entries, captured=float(data.get("captured", 0.0)))
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise SnapshotFormatError(f"cannot load snapshot {path}: {exc}") from exc
