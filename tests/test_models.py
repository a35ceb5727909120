"""Tests for report data model helpers."""

from pathlib import Path

from storage_inspect.ata import AtaIdentity, CommandSet1, CommandSet2
from storage_inspect.models import (
    BusPath,
    DeviceCategory,
    DeviceDescriptor,
    Media,
    SecurityReport,
    SecuritySection,
    Transport,
    format_capacity,
)


def test_format_capacity_uses_binary_gigabytes() -> None:
    assert format_capacity(2000000 * 512) == "0.95 GB"
    assert format_capacity(1024**3) == "1.00 GB"


def test_category_precedence() -> None:
    assert DeviceDescriptor("a", Transport.NVME, Media.FLASH).category is DeviceCategory.NVME
    assert (
        DeviceDescriptor("b", Transport.USB, Media.ROTATIONAL).category
        is DeviceCategory.USB_MASS_STORAGE
    )
    assert DeviceDescriptor("c", Transport.SATA, Media.ROTATIONAL).category is DeviceCategory.HDD
    assert DeviceDescriptor("d", Transport.MMC, Media.FLASH).category is DeviceCategory.SSD
    assert DeviceDescriptor("e").category is DeviceCategory.UNKNOWN


def test_bus_path_ancestors_nearest_first() -> None:
    bus_path = BusPath(
        link="../devices/usb1/1-1/block/sdb",
        directory=Path("/sys/devices/usb1/1-1/block/sdb"),
        nodes=("devices", "usb1", "1-1", "block", "sdb"),
    )

    assert str(bus_path) == "devices/usb1/1-1/block/sdb"
    assert bus_path.ancestors() == [
        Path("/sys/devices/usb1/1-1/block/sdb"),
        Path("/sys/devices/usb1/1-1/block"),
        Path("/sys/devices/usb1/1-1"),
        Path("/sys/devices/usb1"),
        Path("/sys/devices"),
    ]


def test_security_report_lookup() -> None:
    report = SecurityReport(kind="ata", sections=[SecuritySection("HPA"), SecuritySection("DCO")])

    assert report.section_names == ["HPA", "DCO"]
    assert report.section("DCO").name == "DCO"
    assert report.section("Sanitize") is None


def test_security_report_payload_carries_identity() -> None:
    identity = AtaIdentity(
        command_set_1=CommandSet1.SECURITY,
        command_set_2=CommandSet2.HOST_PROTECTED_AREA,
        model="ST1000DM010",
        serial="Z9A0",
        firmware="CC43",
    )

    payload = SecurityReport(kind="ata", identity=identity).to_payload()

    assert payload["identity"] == {
        "model": "ST1000DM010",
        "serial": "Z9A0",
        "firmware": "CC43",
        "command_set_1": 0x0002,
        "command_set_2": 0x0400,
    }
    assert SecurityReport(kind="nvme").to_payload()["identity"] is None
