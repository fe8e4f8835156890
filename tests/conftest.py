"""Shared fixtures and fakes for pynetfs tests."""

import socket
from collections import namedtuple
from collections.abc import Iterator
from contextlib import contextmanager, nullcontext

import psutil
import pytest

from pynetfs.models import NetEntry, NetMap, ProcessInfo
from pynetfs.module import NetModule
from pynetfs.resolver import ProcessResolver
from pynetfs.source import NetMapSource


sconn = namedtuple("sconn", ["fd", "family", "type", "laddr", "raddr", "status", "pid"])
addr = namedtuple("addr", ["ip", "port"])

LISTENER = sconn(3, socket.AF_INET, socket.SOCK_STREAM, addr("0.0.0.0", 22), (), psutil.CONN_LISTEN, 100)
CLIENT = sconn(-1, socket.AF_INET6, socket.SOCK_STREAM, addr("::1", 50000), addr("::1", 8080), psutil.CONN_ESTABLISHED, None)


class FakeProcess:
    """Stand-in for psutil.Process: PID 100 started at a fixed time, others are gone."""

    def __init__(self, pid: int) -> None:
        if pid != 100:
            raise psutil.NoSuchProcess(pid)
        self.pid = pid

    def oneshot(self):
        return nullcontext()

    def create_time(self) -> float:
        return 1_600_000_000.0


class CountingSource(NetMapSource):
    """Source that records how many snapshots are currently borrowed."""

    def __init__(self, net_map: NetMap | None) -> None:
        self.net_map = net_map
        self.acquired = 0
        self.active = 0

    def get_net_map(self) -> NetMap | None:
        return self.net_map

    @contextmanager
    def acquire(self) -> Iterator[NetMap | None]:
        self.acquired += 1
        self.active += 1
        try:
            yield self.net_map
        finally:
            self.active -= 1


class CountingResolver(ProcessResolver):
    """Resolver over a fixed mapping that tracks outstanding borrows."""

    def __init__(self, processes: dict[int, ProcessInfo]) -> None:
        self.processes = processes
        self.resolved: list[int] = []
        self.active = 0

    @contextmanager
    def resolve(self, pid: int) -> Iterator[ProcessInfo | None]:
        self.resolved.append(pid)
        self.active += 1
        try:
            yield self.processes.get(pid)
        finally:
            self.active -= 1


@pytest.fixture
def entries() -> tuple[NetEntry, ...]:
    return (
        NetEntry.build(
            pid=4,
            proto="TCPv4",
            state="LISTEN",
            src="0.0.0.0:445",
            dst="***",
            va_obj=0xFFFFA00012345678,
            created=1_600_000_000.0,
        ),
        NetEntry.build(
            pid=1234,
            proto="TCPv4",
            state="ESTABLISHED",
            src="192.168.1.10:50123",
            dst="140.82.112.4:443",
            va_obj=0xFFFFA00087654321,
        ),
        NetEntry.build(
            pid=999,
            proto="TCPv6",
            state="ESTABLISHED",
            src="[::1]:50124",
            dst="[::1]:8080",
            created=1_600_000_100.0,
        ),
    )


@pytest.fixture
def net_map(entries) -> NetMap:
    return NetMap(entries=entries, captured=1_600_000_200.0)


@pytest.fixture
def resolver() -> CountingResolver:
    return CountingResolver(
        {
            4: ProcessInfo(name="System", path=""),
            1234: ProcessInfo(name="firefox.exe", path="\\Device\\HarddiskVolume2\\Program Files\\Mozilla Firefox\\firefox.exe"),
        }
    )


@pytest.fixture
def source(net_map) -> CountingSource:
    return CountingSource(net_map)


@pytest.fixture
def module(source, resolver) -> NetModule:
    return NetModule(source, resolver)
