"""Tests for environment-driven configuration."""

from pathlib import Path

import pytest

from storage_inspect import config


def test_defaults(monkeypatch) -> None:
    for name in (
        "STORAGE_INSPECT_SYS_BLOCK",
        "STORAGE_INSPECT_SYS_USB",
        "STORAGE_INSPECT_DEV_ROOT",
        "STORAGE_INSPECT_WATCH_INTERVAL",
    ):
        monkeypatch.delenv(name, raising=False)

    assert config.sys_block_path() == Path("/sys/block")
    assert config.sys_usb_path() == Path("/sys/bus/usb/devices")
    assert config.dev_root_path() == Path("/dev")
    assert config.watch_interval() == config.DEFAULT_WATCH_INTERVAL == 2.0


def test_path_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("STORAGE_INSPECT_SYS_BLOCK", str(tmp_path / "block"))
    monkeypatch.setenv("STORAGE_INSPECT_SYS_USB", f"  {tmp_path / 'usb'}  ")
    monkeypatch.setenv("STORAGE_INSPECT_DEV_ROOT", "   ")

    assert config.sys_block_path() == tmp_path / "block"
    assert config.sys_usb_path() == tmp_path / "usb"
    assert config.dev_root_path() == Path("/dev")


@pytest.mark.parametrize("value", ["abc", "0", "-1", ""])
def test_invalid_watch_interval_falls_back(monkeypatch, value) -> None:
    monkeypatch.setenv("STORAGE_INSPECT_WATCH_INTERVAL", value)

    assert config.watch_interval() == config.DEFAULT_WATCH_INTERVAL


def test_watch_interval_override(monkeypatch) -> None:
    monkeypatch.setenv("STORAGE_INSPECT_WATCH_INTERVAL", "0.25")

    assert config.watch_interval() == 0.25
