"""pynetfs - interactive Textual browser for the /sys/net virtual directory."""

from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from pynetfs.errors import NetFsError
from pynetfs.models import NetMap, VfsEntry
from pynetfs.module import NetModule
from pynetfs.render import RenderMode
from pynetfs.source import ConnectionMonitor

# Page size for files that are not fixed-width tables
_TEXT_PAGE_BYTES = 4096


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


class FileTable(Container):
    """Container for the virtual directory listing."""

    DEFAULT_CSS = """
    FileTable {
        height: auto;
        max-height: 8;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize FileTable."""
        super().__init__(*args, **kwargs)
        self._current_names: set[str] = set()

    def compose(self) -> ComposeResult:
        """Compose the file table."""
        yield DataTable(id="file-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#file-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Name", key="name", width=16)
        table.add_column("Size", key="size", width=8)
        table.add_column("Bytes", key="bytes")

    def update_files(self, entries: list[VfsEntry]) -> None:
        """
        Update the listing with new entries.

        Uses update_cell for files that are already listed.
        """
        table = self.query_one("#file-table", DataTable)
        new_names = {entry.name for entry in entries}

        for name in self._current_names - new_names:
            table.remove_row(name)

        for entry in entries:
            if entry.name in self._current_names:
                table.update_cell(entry.name, "size", format_bytes(entry.size))
                table.update_cell(entry.name, "bytes", str(entry.size))
            else:
                table.add_row(entry.name, format_bytes(entry.size), str(entry.size), key=entry.name)

        self._current_names = new_names


class FileViewer(Static):
    """Shows one page of the selected virtual file."""

    DEFAULT_CSS = """
    FileViewer {
        height: 1fr;
        padding: 0 1;
        overflow: auto;
    }
    """


class NetFsApp(App):
    """Main pynetfs application."""

    TITLE = "pynetfs"
    SUB_TITLE = "Connection Table Browser"

    CSS = """
    Screen {
        layout: vertical;
    }

    #status {
        dock: top;
        height: 1;
        background: $surface;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("pagedown", "next_page", "Next page"),
        ("pageup", "previous_page", "Previous page"),
        ("r", "refresh", "Refresh"),
    ]

    def __init__(
        self,
        module: NetModule,
        monitor: ConnectionMonitor | None = None,
        update_queue: Queue[NetMap] | None = None,
        page_lines: int = 32,
    ) -> None:
        """Initialize the NetFsApp."""
        super().__init__()
        self._module = module
        self._monitor = monitor
        self._update_queue = update_queue
        self._page_lines = page_lines
        self._current: str | None = None
        self._offset = 0

    @property
    def current_file(self) -> str | None:
        return self._current

    @property
    def offset(self) -> int:
        return self._offset

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static(id="status")
        yield FileTable()
        yield FileViewer(id="viewer", markup=False)
        yield Footer()

    def on_mount(self) -> None:
        """Start the monitor (if any) and show the listing."""
        if self._monitor is not None:
            self._monitor.start()
        # Wait for the file table to set up its columns
        self.call_after_refresh(self._refresh_listing)
        if self._update_queue is not None:
            self.set_interval(0.5, self._check_for_updates)

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        """Switch the viewer to the highlighted file."""
        name = event.row_key.value
        if name != self._current:
            self._current = name
            self._offset = 0
            self._show_page()

    def page_size(self, name: str) -> int:
        """Bytes per page: whole lines for the table files."""
        for mode in RenderMode:
            if mode.file_name == name:
                return mode.line_width * self._page_lines
        return _TEXT_PAGE_BYTES

    def _check_for_updates(self) -> None:
        """Drain the monitor queue and refresh the view if a snapshot arrived."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self._refresh_listing()

    def _refresh_listing(self) -> None:
        entries = self._module.list()
        self.query_one(FileTable).update_files(entries)
        self.query_one("#status", Static).update(
            "  ".join(f"{entry.name} {entry.size}" for entry in entries)
        )
        if self._current is not None and self._current not in {entry.name for entry in entries}:
            self._current = None
            self._offset = 0
        if self._current is None and entries:
            self._current = entries[0].name
        self._show_page()

    def _show_page(self) -> None:
        viewer = self.query_one("#viewer", FileViewer)
        if self._current is None:
            viewer.update("")
            return
        try:
            data = self._module.read(self._current, self._offset, self.page_size(self._current))
        except NetFsError as exc:
            self.notify(str(exc), severity="error")
            return
        viewer.update(data.decode("utf-8", errors="replace"))

    def action_next_page(self) -> None:
        """Advance the viewer by one page unless it is at the end of the file."""
        if self._current is None:
            return
        size = self._module.size(self._current) or 0
        step = self.page_size(self._current)
        if self._offset + step < size:
            self._offset += step
            self._show_page()

    def action_previous_page(self) -> None:
        """Move the viewer back by one page."""
        if self._current is None:
            return
        self._offset = max(0, self._offset - self.page_size(self._current))
        self._show_page()

    def action_refresh(self) -> None:
        """Re-read the connection table now."""
        if self._monitor is not None:
            self._monitor.refresh()
        self._refresh_listing()

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        if self._monitor is not None:
            self._monitor.stop()
        self.exit()
