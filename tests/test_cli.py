"""Tests for CLI entry point."""

import json

import pytest

from storage_inspect import storage_inspect
from tests.fakes import SATA_LINK, USB_HUB, USB_LINK, FakeSysfs


@pytest.fixture
def host(sysfs: FakeSysfs, tmp_path, monkeypatch) -> FakeSysfs:
    """Point the CLI at the fake tree with no diagnostic tools on PATH."""

    empty_bin = tmp_path / "bin"
    empty_bin.mkdir()
    dev_root = tmp_path / "dev"
    dev_root.mkdir()
    monkeypatch.setenv("PATH", str(empty_bin))
    monkeypatch.setenv("STORAGE_INSPECT_SYS_BLOCK", str(sysfs.block))
    monkeypatch.setenv("STORAGE_INSPECT_SYS_USB", str(sysfs.usb_devices))
    monkeypatch.setenv("STORAGE_INSPECT_DEV_ROOT", str(dev_root))
    sysfs.add_block(
        "sda",
        link=SATA_LINK,
        size="2000000",
        queue__rotational="0",
        device__model="Samsung SSD 860",
    )
    sysfs.add_block("sdb", link=USB_LINK, size="100", removable="1")
    sysfs.add_usb_node(USB_HUB + "/1-1/1-1.2", idVendor="05ac", product="iPhone")
    return sysfs


def test_cli_lists_all_devices(host, capsys) -> None:
    assert storage_inspect.main([]) == 0

    out = capsys.readouterr().out
    assert out.startswith("Hardware Storage Device Detection Tool\n")
    assert "Device: sda\n" in out
    assert "Device: sdb [USB Device]\n" in out
    assert "Total devices found: 2" in out
    assert "=== Storage Device Information for /dev/sda ===" in out
    assert "Model: Samsung SSD 860" in out
    assert "=== Storage Device Information for /dev/sdb ===" in out
    assert out.count("=== SMART Status ===") == 2
    assert out.index("Total devices found: 2") < out.index("/dev/sda ===")
    assert "=== All Connected USB Devices ===" in out
    assert "--- USB Device 1-1.2 ---" in out
    assert "Note: Some information may require elevated privileges" in out


def test_cli_single_device(host, capsys) -> None:
    assert storage_inspect.main(["sda"]) == 0

    out = capsys.readouterr().out
    assert "=== Storage Device Information for /dev/sda ===" in out
    assert "Model: Samsung SSD 860" in out
    assert "Size: 0.95 GB" in out
    assert "Cannot check SMART status (smartctl not available)" in out


def test_cli_usb_device_report(host, capsys) -> None:
    storage_inspect.main(["sdb"])

    out = capsys.readouterr().out
    assert "Interface: USB" in out
    assert "Apple Device Detected [VENDOR_ID]" in out


def test_cli_usb_roster(host, capsys) -> None:
    assert storage_inspect.main(["--usb"]) == 0

    out = capsys.readouterr().out
    assert "Mobile: Apple Device Detected [VENDOR_ID]" in out
    assert "Total USB devices analyzed: 1" in out
    assert "Available Storage Devices" not in out


def test_cli_json_device(host, capsys) -> None:
    assert storage_inspect.main(["--json", "sdb"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["device_id"] == "sdb"
    assert payload["descriptor"]["transport"] == "USB"
    assert payload["mobile"]["vendor_label"] == "Apple"


def test_cli_json_inventory(host, capsys) -> None:
    storage_inspect.main(["--json"])

    payload = json.loads(capsys.readouterr().out)
    assert sorted(entry["device_id"] for entry in payload["roster"]) == ["sda", "sdb"]
    assert payload["usb"]["devices"][0]["name"] == "1-1.2"


def test_cli_unreadable_namespace(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.setenv("STORAGE_INSPECT_SYS_BLOCK", str(tmp_path / "absent"))
    monkeypatch.setenv("PATH", str(tmp_path))

    assert storage_inspect.main([]) == 0

    assert "Cannot access /sys/block directory" in capsys.readouterr().out


def test_cli_watch_prints_changes(host, monkeypatch, capsys) -> None:
    seen = {}

    def fake_watch(on_change, *, sys_block, interval):
        seen["sys_block"] = sys_block
        seen["interval"] = interval
        on_change(("sda", "sdb"), ("sda",))
        raise KeyboardInterrupt

    monkeypatch.setenv("STORAGE_INSPECT_WATCH_INTERVAL", "0.5")
    monkeypatch.setattr(storage_inspect.monitor, "watch", fake_watch)

    assert storage_inspect.main(["--watch"]) == 0

    out = capsys.readouterr().out
    assert seen == {"sys_block": host.block, "interval": 0.5}
    assert "Monitoring for storage device changes" in out
    assert "*** Device change detected! ***" in out
    assert "Removed: sdb" in out
    assert "Updated device list:" in out
    assert "Device: sdb [USB Device]" in out
    assert "Monitoring stopped." in out


def test_cli_help(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        storage_inspect.main(["--help"])

    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "--usb" in out
    assert "--watch" in out
