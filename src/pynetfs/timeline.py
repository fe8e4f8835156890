"""Timeline export of connection creation events."""

import json
import logging
from collections.abc import Iterator, Sequence
from typing import Protocol, TextIO

from pynetfs.models import NetMap, TimelineAction, TimelineEvent
from pynetfs.render import format_time
from pynetfs.source import NetMapSource

logger = logging.getLogger(__name__)

TIMELINE_NAME = "Net"


class TimelineSink(Protocol):
    """Receiver of timeline events."""

    def add_entry(self, timestamp: float, action: TimelineAction, pid: int, value: int, text: str) -> None: ...

    def add_entries_sql(self, statements: Sequence[str]) -> None: ...


def extract(net_map: NetMap) -> Iterator[TimelineEvent]:
    """
    Yield one CREATE event per entry with a timestamp and description.

    Events follow snapshot order; entries missing either are skipped.
    """
    for entry in net_map:
        if entry.created and entry.text:
            yield TimelineEvent(
                timestamp=entry.created,
                action=TimelineAction.CREATE,
                pid=entry.pid,
                value=entry.va_obj,
                text=entry.text,
            )


def export_timeline(source: NetMapSource, sink: TimelineSink) -> int:
    """Feed the events of the current snapshot to ``sink``. Returns the event count."""
    count = 0
    with source.acquire() as net_map:
        if net_map is None:
            return 0
        for event in extract(net_map):
            sink.add_entry(event.timestamp, event.action, event.pid, event.value, event.text)
            count += 1
    logger.debug("exported %d timeline events", count)
    return count


class ListTimelineSink:
    """Sink that keeps events and bulk statements in memory."""

    def __init__(self) -> None:
        self.events: list[TimelineEvent] = []
        self.statements: list[str] = []

    def add_entry(self, timestamp: float, action: TimelineAction, pid: int, value: int, text: str) -> None:
        self.events.append(TimelineEvent(timestamp, action, pid, value, text))

    def add_entries_sql(self, statements: Sequence[str]) -> None:
        self.statements.extend(statements)


class JsonTimelineSink:
    """Sink writing one JSON object per event to a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def add_entry(self, timestamp: float, action: TimelineAction, pid: int, value: int, text: str) -> None:
        record = {
            "type": TIMELINE_NAME.lower(),
            "time": format_time(timestamp),
            "timestamp": timestamp,
            "action": action.value,
            "pid": pid,
            "num": value,
            "hex": f"{value:x}",
            "desc": text.strip(),
        }
        self._stream.write(json.dumps(record) + "\n")

    def add_entries_sql(self, statements: Sequence[str]) -> None:
        for statement in statements:
            self._stream.write(json.dumps({"type": TIMELINE_NAME.lower(), "sql": statement}) + "\n")


class TextTimelineSink:
    """Sink writing fixed-column text lines to a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def add_entry(self, timestamp: float, action: TimelineAction, pid: int, value: int, text: str) -> None:
        self._stream.write(
            f"{format_time(timestamp)}  {TIMELINE_NAME:<6}{action.value:<4}{pid:7d} {value:16x} {text.rstrip()}\n"
        )

    def add_entries_sql(self, statements: Sequence[str]) -> None:
        for statement in statements:
            self._stream.write(f"-- {statement}\n")
