"""Tests for the pynetfs Textual browser."""

from queue import Queue

import pytest

from conftest import CountingSource
from pynetfs.app import FileTable, NetFsApp, format_bytes
from pynetfs.models import NetMap, VfsEntry
from pynetfs.module import NetModule


def test_format_bytes_bytes():
    """Test format_bytes with byte values."""
    assert "B" in format_bytes(500)


def test_format_bytes_kilobytes():
    """Test format_bytes with kilobyte values."""
    result = format_bytes(2048)
    assert "K" in result


def test_format_bytes_megabytes():
    """Test format_bytes with megabyte values."""
    result = format_bytes(5242880)
    assert "M" in result


def test_page_size(module):
    """Test pages hold whole table lines."""
    app = NetFsApp(module, page_lines=2)

    assert app.page_size("netstat.txt") == 256
    assert app.page_size("netstat-v.txt") == 556
    assert app.page_size("readme.txt") == 4096


@pytest.mark.asyncio
async def test_app_creation(module):
    """Test NetFsApp can be instantiated."""
    app = NetFsApp(module)
    assert app.title == "pynetfs"
    assert app.sub_title == "Connection Table Browser"


@pytest.mark.asyncio
async def test_app_compose(module):
    """Test NetFsApp composes correctly."""
    app = NetFsApp(module)
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#status") is not None
        assert pilot.app.query_one("#file-table") is not None
        assert pilot.app.query_one("#viewer") is not None


@pytest.mark.asyncio
async def test_app_lists_files(module):
    """Test the listing shows every file of the module."""
    app = NetFsApp(module)
    async with app.run_test() as pilot:
        await pilot.pause(0.1)
        file_table = pilot.app.query_one(FileTable)

        assert file_table._current_names == {"readme.txt", "netstat.txt", "netstat-v.txt"}
        assert app.current_file == "readme.txt"


@pytest.mark.asyncio
async def test_app_quit_binding(module):
    """Test that 'q' binding triggers quit."""
    app = NetFsApp(module)
    async with app.run_test() as pilot:
        await pilot.press("q")
        # App should be exiting
        assert pilot.app._exit


@pytest.mark.asyncio
async def test_paging_through_table(module):
    """Test next/previous page move the viewer offset by whole pages."""
    app = NetFsApp(module, page_lines=2)
    async with app.run_test() as pilot:
        await pilot.pause(0.1)
        app._current = "netstat.txt"

        app.action_next_page()
        assert app.offset == 256

        # netstat.txt is 512 bytes, so there is no third page
        app.action_next_page()
        assert app.offset == 256

        app.action_previous_page()
        assert app.offset == 0

        app.action_previous_page()
        assert app.offset == 0


@pytest.mark.asyncio
async def test_unavailable_source_lists_readme_only(resolver):
    """Test the browser works while no snapshot is available."""
    app = NetFsApp(NetModule(CountingSource(None), resolver))
    async with app.run_test() as pilot:
        await pilot.pause(0.1)
        file_table = pilot.app.query_one(FileTable)

        assert file_table._current_names == {"readme.txt"}


@pytest.mark.asyncio
async def test_queue_update_refreshes_listing(resolver):
    """Test a snapshot arriving on the queue updates the listing."""
    source = CountingSource(None)
    update_queue: Queue[NetMap] = Queue()
    app = NetFsApp(NetModule(source, resolver), update_queue=update_queue)
    async with app.run_test() as pilot:
        await pilot.pause(0.1)

        source.net_map = NetMap()
        update_queue.put(source.net_map)
        app._check_for_updates()
        await pilot.pause(0.1)

        file_table = pilot.app.query_one(FileTable)
        assert file_table._current_names == {"readme.txt", "netstat.txt", "netstat-v.txt"}


@pytest.mark.asyncio
async def test_file_table_removes_old_files(module):
    """Test FileTable drops files that are no longer listed."""
    app = NetFsApp(module)
    async with app.run_test() as pilot:
        await pilot.pause(0.1)
        file_table = pilot.app.query_one(FileTable)

        file_table.update_files([VfsEntry("readme.txt", 10)])

        assert file_table._current_names == {"readme.txt"}
