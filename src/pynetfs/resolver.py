"""Owner PID to process metadata resolution."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import psutil

from pynetfs.models import ProcessInfo

logger = logging.getLogger(__name__)


class ProcessResolver:
    """
    Resolves an owner PID to display metadata.

    ``resolve`` is a scoped borrow: the yielded ``ProcessInfo`` (or None when
    the process is gone) is only valid inside the ``with`` block.
    """

    @contextmanager
    def resolve(self, pid: int) -> Iterator[ProcessInfo | None]:
        yield None


class StaticProcessResolver(ProcessResolver):
    """Resolver backed by a fixed PID mapping."""

    def __init__(self, processes: dict[int, ProcessInfo] | None = None) -> None:
        self._processes = dict(processes or {})

    @contextmanager
    def resolve(self, pid: int) -> Iterator[ProcessInfo | None]:
        yield self._processes.get(pid)


class PsutilProcessResolver(ProcessResolver):
    """
    Resolver for live processes using psutil.

    Handles NoSuchProcess, ZombieProcess and AccessDenied gracefully: a
    vanished process resolves to None and an unreadable executable path
    resolves to an empty string.
    """

    @contextmanager
    def resolve(self, pid: int) -> Iterator[ProcessInfo | None]:
        yield self._lookup(pid)

    def _lookup(self, pid: int) -> ProcessInfo | None:
        if pid <= 0:
            return None
        try:
            proc = psutil.Process(pid)
            # Use oneshot() so name and exe come from one read of the process
            with proc.oneshot():
                name = proc.name() or ""
                try:
                    path = proc.exe() or ""
                except (psutil.AccessDenied, psutil.ZombieProcess):
                    path = ""
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            logger.debug("pid %d not resolvable", pid)
            return None
        return ProcessInfo(name=name, path=path)
