"""Exceptions raised by pynetfs."""


class NetFsError(Exception):
    """Base class for pynetfs errors."""


class InvalidTargetError(NetFsError):
    """The requested virtual path is not a file of this module."""

    def __init__(self, path: str) -> None:
        super().__init__(f"invalid target: {path!r}")
        self.path = path


class SnapshotFormatError(NetFsError):
    """A stored connection snapshot could not be parsed."""


class ConfigError(NetFsError):
    """The configuration file holds an invalid value."""
