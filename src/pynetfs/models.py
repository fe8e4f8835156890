"""Data models for pynetfs."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


@dataclass(slots=True, frozen=True)
class NetEntry:
    """Immutable record of one network connection."""

    pid: int
    text: str  # pre-formatted "Proto  State  Src  Dst" description
    va_obj: int = 0  # object / handle address, 0 if unknown
    created: float = 0.0  # POSIX timestamp, 0.0 if unknown
    proto: str = ""
    state: str = ""
    src: str = ""
    dst: str = ""

    @classmethod
    def build(
        cls,
        pid: int,
        proto: str,
        state: str,
        src: str,
        dst: str,
        va_obj: int = 0,
        created: float = 0.0,
    ) -> "NetEntry":
        """Create an entry and derive its description text from the columns."""
        text = f"{proto:<5}  {state:<11}  {src:<28}  {dst:<28}"
        return cls(
            pid=pid,
            text=text,
            va_obj=va_obj,
            created=created,
            proto=proto,
            state=state,
            src=src,
            dst=dst,
        )


@dataclass(slots=True, frozen=True)
class NetMap:
    """Point-in-time ordered snapshot of the connection table."""

    entries: tuple[NetEntry, ...] = ()
    captured: float = 0.0

    @property
    def count(self) -> int:
        return len(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> NetEntry:
        return self.entries[index]

    def __iter__(self) -> Iterator[NetEntry]:
        return iter(self.entries)


@dataclass(slots=True, frozen=True)
class ProcessInfo:
    """Display metadata resolved for an owner PID."""

    name: str = ""
    path: str = ""


@dataclass(slots=True, frozen=True)
class VfsEntry:
    """A virtual file as shown in a directory listing."""

    name: str
    size: int


class TimelineAction(Enum):
    """Timeline event kinds."""

    CREATE = "CRE"
    MODIFY = "MOD"
    READ = "RD"
    DELETE = "DEL"


@dataclass(slots=True, frozen=True)
class TimelineEvent:
    """One timestamped event handed to a timeline sink."""

    timestamp: float
    action: TimelineAction
    pid: int
    value: int
    text: str


@dataclass(slots=True, frozen=True)
class ModuleInfo:
    """Registration details a plugin manager needs to mount a module."""

    path: str
    root_module: bool = True
    timeline_name: str = ""
    timeline_file_text: str = ""
    timeline_file_json: str = ""
    files: tuple[str, ...] = field(default_factory=tuple)
