"""pynetfs CLI - netstat-like virtual files over the connection table.

Commands:
    pynetfs ls [PATH]              list the virtual directory with sizes
    pynetfs cat NAME               read a window of a virtual file
    pynetfs timeline               export connection creation events
    pynetfs snapshot OUTPUT        capture live connections to JSON
    pynetfs tui                    interactive browser
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from queue import Queue

import click

from pynetfs.config import NetFsConfig, load_config
from pynetfs.errors import NetFsError
from pynetfs.logger_config import setup_logger
from pynetfs.models import NetMap
from pynetfs.module import NetModule
from pynetfs.source import ConnectionMonitor, NetMapSource, StaticNetMapSource, dump_net_map, load_net_map
from pynetfs.timeline import JsonTimelineSink, TextTimelineSink

logger = logging.getLogger(__name__)


@dataclass
class _State:
    cfg: NetFsConfig
    snapshot: Path | None


def _live_monitor(cfg: NetFsConfig, update_queue: Queue[NetMap] | None = None) -> ConnectionMonitor:
    return ConnectionMonitor(update_queue, poll_rate=cfg.poll_rate, kind=cfg.kind)


def _source(state: _State) -> NetMapSource:
    """Offline snapshot if one was given, otherwise one live poll."""
    try:
        if state.snapshot is not None:
            return StaticNetMapSource(load_net_map(state.snapshot))
    except NetFsError as exc:
        raise click.ClickException(str(exc)) from exc
    monitor = _live_monitor(state.cfg)
    monitor.refresh()
    return monitor


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="pynetfs")
@click.option("--config", "config_dir", default=None, type=click.Path(file_okay=False), help="Directory holding pynetfs.toml")
@click.option("--snapshot", default=None, type=click.Path(exists=True, dir_okay=False), help="Project a saved snapshot instead of live connections")
@click.option("--log-level", default=None, type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.pass_context
def cli(ctx: click.Context, config_dir: str | None, snapshot: str | None, log_level: str | None) -> None:
    """pynetfs - connection table as fixed-width virtual files."""
    try:
        cfg = load_config(config_dir)
    except NetFsError as exc:
        raise click.ClickException(str(exc)) from exc
    if log_level:
        cfg.log_level = log_level.upper()
    setup_logger("pynetfs", cfg.level, cfg.log_file or None)
    ctx.obj = _State(cfg=cfg, snapshot=Path(snapshot) if snapshot else None)


# ---------------------------------------------------------------------------
# pynetfs ls / cat
# ---------------------------------------------------------------------------


@cli.command("ls")
@click.argument("path", default="")
@click.pass_obj
def ls_cmd(state: _State, path: str) -> None:
    """List the files of the virtual directory."""
    module = NetModule(_source(state))
    for entry in module.list(path):
        click.echo(f"{entry.size:>10}  {entry.name}")


@cli.command("cat")
@click.argument("name")
@click.option("--offset", default=0, show_default=True, type=click.IntRange(min=0))
@click.option("--length", default=None, type=click.IntRange(min=0), help="Bytes to read (default: to end of file)")
@click.pass_obj
def cat_cmd(state: _State, name: str, offset: int, length: int | None) -> None:
    """Write a window of a virtual file to stdout."""
    module = NetModule(_source(state))
    try:
        data = module.read(name, offset, length)
    except NetFsError as exc:
        raise click.ClickException(str(exc)) from exc
    stream = click.get_binary_stream("stdout")
    stream.write(data)
    stream.flush()


# ---------------------------------------------------------------------------
# pynetfs timeline / snapshot
# ---------------------------------------------------------------------------


@cli.command("timeline")
@click.option("--format", "fmt", default="text", show_default=True, type=click.Choice(["text", "json"]))
@click.pass_obj
def timeline_cmd(state: _State, fmt: str) -> None:
    """Export connection creation events to stdout."""
    module = NetModule(_source(state))
    sink = JsonTimelineSink(sys.stdout) if fmt == "json" else TextTimelineSink(sys.stdout)
    count = module.timeline(sink)
    logger.info("wrote %d timeline events", count)


@cli.command("snapshot")
@click.argument("output", type=click.Path(dir_okay=False, writable=True))
@click.pass_obj
def snapshot_cmd(state: _State, output: str) -> None:
    """Capture the connection table to a JSON file."""
    source = _source(state)
    with source.acquire() as net_map:
        if net_map is None:
            raise click.ClickException("connection table unavailable")
        dump_net_map(net_map, output)
        click.echo(f"Saved {net_map.count} connections to {output}")


# ---------------------------------------------------------------------------
# pynetfs tui
# ---------------------------------------------------------------------------


@cli.command("tui")
@click.pass_obj
def tui_cmd(state: _State) -> None:
    """Browse the virtual directory interactively."""
    from pynetfs.app import NetFsApp

    if state.snapshot is not None:
        app = NetFsApp(NetModule(_source(state)), page_lines=state.cfg.tui.page_lines)
    else:
        update_queue: Queue[NetMap] = Queue()
        monitor = _live_monitor(state.cfg, update_queue)
        app = NetFsApp(
            NetModule(monitor),
            monitor=monitor,
            update_queue=update_queue,
            page_lines=state.cfg.tui.page_lines,
        )
    app.run()


def main() -> None:
    """Entry point for the pynetfs command."""
    cli()


if __name__ == "__main__":
    main()
