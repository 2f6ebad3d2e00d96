"""Tests for the command line entry point."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from gdoc.__main__ import build_syncer, main, serve
from gdoc.config import Settings
from gdoc.sync import Syncer, SyncState


def test_main_rejects_missing_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_USER", raising=False)
    assert main() == 1


def test_build_syncer(tmp_path: Path) -> None:
    settings = Settings.from_env(
        {"GITHUB_TOKEN": "t", "GITHUB_USER": "acme", "GODOC_ROOT": str(tmp_path), "GITHUB_POLL_INTERVAL": "10m"}
    )
    syncer = build_syncer(settings)
    assert isinstance(syncer, Syncer)
    assert syncer.state is SyncState.IDLE
    assert syncer.interval().total_seconds() == 600


def test_serve_fails_without_godoc(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A missing renderer stops the syncer too and exits non-zero."""
    monkeypatch.setenv("PATH", str(tmp_path / "empty-bin"))
    root = tmp_path / "goroot"
    settings = Settings.from_env({"GITHUB_TOKEN": "t", "GITHUB_USER": "acme", "GODOC_ROOT": str(root)})

    assert asyncio.run(asyncio.wait_for(serve(settings), timeout=10)) == 1
    assert root.is_dir()


def test_main_rejects_out_of_range_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    monkeypatch.setenv("GITHUB_USER", "acme")
    monkeypatch.setenv("GITHUB_POLL_INTERVAL", "100000000000h")
    assert main() == 1
