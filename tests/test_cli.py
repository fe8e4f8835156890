"""Tests for the pynetfs command line."""

import json

import psutil
import pytest
from click.testing import CliRunner

from conftest import LISTENER, FakeProcess
from pynetfs.cli import cli
from pynetfs.module import README
from pynetfs.source import dump_net_map, load_net_map


@pytest.fixture
def capture(net_map, tmp_path):
    path = tmp_path / "capture.json"
    dump_net_map(net_map, path)
    return path


def run(capture, tmp_path, *args):
    runner = CliRunner()
    return runner.invoke(
        cli,
        ["--config", str(tmp_path), "--log-level", "ERROR", "--snapshot", str(capture), *args],
    )


def test_ls(capture, tmp_path):
    """Test ls prints every file with its size."""
    result = run(capture, tmp_path, "ls")

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines == [
        f"{len(README):>10}  readme.txt",
        f"{512:>10}  netstat.txt",
        f"{1112:>10}  netstat-v.txt",
    ]


def test_ls_subdirectory(capture, tmp_path):
    result = run(capture, tmp_path, "ls", "nested")

    assert result.exit_code == 0
    assert result.stdout == ""


def test_cat_window(capture, tmp_path):
    """Test cat writes exactly the requested window."""
    full = run(capture, tmp_path, "cat", "netstat.txt")
    window = run(capture, tmp_path, "cat", "netstat.txt", "--offset", "130", "--length", "128")

    assert full.exit_code == 0
    assert len(full.stdout_bytes) == 512
    assert window.stdout_bytes == full.stdout_bytes[130:258]


def test_cat_unknown_file(capture, tmp_path):
    """Test cat on an unknown name fails with an error message."""
    result = run(capture, tmp_path, "cat", "nope.txt")

    assert result.exit_code == 1
    assert "invalid target" in result.output


def test_timeline_json(capture, tmp_path):
    """Test timeline --format json writes one event per line."""
    result = run(capture, tmp_path, "timeline", "--format", "json")

    assert result.exit_code == 0, result.output
    records = [json.loads(line) for line in result.stdout.splitlines()]
    assert [record["pid"] for record in records] == [4, 999]


def test_timeline_text(capture, tmp_path):
    result = run(capture, tmp_path, "timeline")

    assert result.exit_code == 0, result.output
    assert len(result.stdout.splitlines()) == 2


def test_snapshot_copy(capture, net_map, tmp_path):
    """Test snapshot saves the projected table."""
    output = tmp_path / "copy.json"

    result = run(capture, tmp_path, "snapshot", str(output))

    assert result.exit_code == 0, result.output
    assert "Saved 3 connections" in result.stdout
    assert load_net_map(output) == net_map


def test_bad_snapshot_file(tmp_path):
    """Test an unreadable snapshot is reported, not raised."""
    bad = tmp_path / "bad.json"
    bad.write_text("[]")

    result = run(bad, tmp_path, "ls")

    assert result.exit_code == 1
    assert "cannot load snapshot" in result.output


def test_live_timeline(monkeypatch, tmp_path):
    """Test a live one-shot timeline reports connections open before the poll."""

    monkeypatch.setattr(psutil, "net_connections", lambda kind: [LISTENER])
    monkeypatch.setattr(psutil, "Process", FakeProcess)

    result = CliRunner().invoke(
        cli, ["--config", str(tmp_path), "--log-level", "ERROR", "timeline", "--format", "json"]
    )

    assert result.exit_code == 0, result.output
    records = [json.loads(line) for line in result.stdout.splitlines()]
    assert [record["pid"] for record in records] == [100]
    assert records[0]["time"] == "2020-09-13 12:26:40 UTC"
