"""NetFsConfig: optional pynetfs.toml settings.

pynetfs.toml example:

    [pynetfs]
    poll_rate = 2.0      # seconds between connection polls
    kind = "tcp"         # psutil.net_connections kind
    log_level = "INFO"
    log_file = ""        # empty = console only

    [tui]
    page_lines = 32
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pynetfs.errors import ConfigError
from pynetfs.source import CONNECTION_KINDS

CONFIG_FILENAME = "pynetfs.toml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class TuiConfig:
    page_lines: int = 32


@dataclass
class NetFsConfig:
    """Resolved pynetfs configuration."""

    poll_rate: float = 2.0
    kind: str = "tcp"
    log_level: str = "INFO"
    log_file: str = ""
    tui: TuiConfig = field(default_factory=TuiConfig)

    @property
    def level(self) -> int:
        return getattr(logging, self.log_level)


def load_config(root: Path | str | None = None) -> NetFsConfig:
    """Load pynetfs.toml from ``root`` (default: cwd). A missing file yields defaults."""
    config_path = Path(root or Path.cwd()) / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"{config_path}: {exc}") from exc

    return parse_config(raw)


def parse_config(raw: dict[str, Any]) -> NetFsConfig:
    """Build and validate a NetFsConfig from a parsed TOML document."""
    section = raw.get("pynetfs", {})
    tui_section = raw.get("tui", {})

    try:
        cfg = NetFsConfig(
            poll_rate=float(section.get("poll_rate", 2.0)),
            kind=str(section.get("kind", "tcp")),
            log_level=str(section.get("log_level", "INFO")).upper(),
            log_file=str(section.get("log_file", "")),
            tui=TuiConfig(page_lines=int(tui_section.get("page_lines", 32))),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid config value: {exc}") from exc

    if cfg.poll_rate <= 0:
        raise ConfigError(f"poll_rate must be positive, got {cfg.poll_rate}")
    if cfg.kind not in CONNECTION_KINDS:
        raise ConfigError(f"kind must be one of {', '.join(CONNECTION_KINDS)}, got {cfg.kind!r}")
    if cfg.log_level not in _LOG_LEVELS:
        raise ConfigError(f"unknown log_level {cfg.log_level!r}")
    if cfg.tui.page_lines < 1:
        raise ConfigError(f"tui.page_lines must be at least 1, got {cfg.tui.page_lines}")
    return cfg
