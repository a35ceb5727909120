"""Text and JSON rendering of assembled reports."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from .models import (
    DeviceReport,
    FeatureStatus,
    Inventory,
    Media,
    MobileClassification,
    RosterEntry,
    SecurityReport,
    SecuritySection,
    Transport,
    UsbDescriptor,
    UsbInventory,
    format_capacity,
)

__all__ = [
    "NO_DEVICES_HINT",
    "dump_json",
    "render_inventory",
    "render_report",
    "render_roster",
    "render_usb_inventory",
]

NO_DEVICES_HINT = "No storage devices found. Try running with sudo for better detection."

_MEDIA_LABELS = {
    Media.ROTATIONAL: "HDD (Rotational)",
    Media.FLASH: "SSD/Flash (Non-rotational)",
}

_INTERFACE_LABELS = {
    Transport.NVME: "NVMe",
    Transport.SATA: "SATA",
    Transport.USB: "USB",
    Transport.MMC: "MMC/SD",
    Transport.VIRTIO: "VirtIO (Virtual)",
}

_STATUS_MARKS = {
    FeatureStatus.SUPPORTED: "Supported",
    FeatureStatus.NOT_SUPPORTED: "Not Supported",
    FeatureStatus.UNKNOWN: "Unknown",
}


def _yes_no(value: Optional[bool]) -> Optional[str]:
    if value is None:
        return None
    return "Yes" if value else "No"


def _field(lines: List[str], label: str, value: Any) -> None:
    if value is not None:
        lines.append(f"{label}: {value}")


def _section_lines(section: SecuritySection) -> List[str]:
    lines = [f"{section.name}: {_STATUS_MARKS[section.status]}"]
    lines.extend(f"  {detail}" for detail in section.details)
    return lines


def _render_usb(usb: UsbDescriptor) -> List[str]:
    lines = ["", "=== USB Device Analysis ==="]
    _field(lines, "USB Device Path", usb.node)
    _field(lines, "Vendor ID", usb.vendor_id)
    _field(lines, "Product ID", usb.product_id)
    _field(lines, "Manufacturer", usb.manufacturer)
    _field(lines, "Product", usb.product)
    _field(lines, "Serial Number", usb.serial)
    _field(lines, "USB Version", usb.usb_version)
    if usb.speed_mbps is not None:
        lines.append(f"Speed: {usb.speed_mbps:g} Mbps")
    if usb.device_class is not None:
        lines.append(f"Device Class: 0x{usb.device_class:02x} ({usb.device_class_label})")
    return lines


def _render_mobile(mobile: MobileClassification) -> List[str]:
    lines = ["", "=== Mobile Device Detection ===", "Device Type Analysis:"]
    if mobile.is_mobile:
        lines.append(f"  {mobile.description} [{mobile.matched_by.value}]")
    else:
        lines.append(f"  - {mobile.description}")
        lines.append("  - May be a USB storage device, hub, or other peripheral")
        return lines
    if mobile.transfer_protocols or mobile.bridge_devices:
        lines.extend(["", "=== Mobile Device Features ==="])
    if mobile.transfer_protocols:
        lines.append("Transfer Protocols:")
        lines.extend(f"  {line}" for line in mobile.transfer_protocols)
    if mobile.bridge_devices:
        lines.append("ADB Device Check:")
        lines.extend(f"  {line}" for line in mobile.bridge_devices)
    return lines


def _render_security(security: SecurityReport) -> List[str]:
    if security.kind == "nvme":
        header = "=== NVMe Security Features & Reserved Spaces ==="
    else:
        header = "=== HPA/DCO Analysis ==="
    lines = ["", header]
    lines.extend(security.notes)
    for section in security.sections:
        lines.extend(_section_lines(section))
    return lines


def render_report(report: DeviceReport) -> List[str]:
    """Return the text lines describing one device report."""

    descriptor = report.descriptor
    lines = [f"=== Storage Device Information for /dev/{descriptor.device_id} ==="]
    _field(lines, "Device Type", _MEDIA_LABELS.get(descriptor.media))
    lines.append(f"Category: {descriptor.category.value}")
    _field(lines, "Model", descriptor.model)
    _field(lines, "Vendor", descriptor.vendor)
    _field(lines, "Serial", descriptor.serial)
    _field(lines, "Firmware Revision", descriptor.firmware_revision)
    if descriptor.size_bytes is not None:
        lines.append(f"Size: {format_capacity(descriptor.size_bytes)}")
    if descriptor.physical_block_size is not None:
        lines.append(f"Physical Block Size: {descriptor.physical_block_size} bytes")
    if descriptor.logical_block_size is not None:
        lines.append(f"Logical Block Size: {descriptor.logical_block_size} bytes")
    _field(lines, "Interface", _INTERFACE_LABELS.get(descriptor.transport))
    _field(lines, "Bus Path", report.bus_path)
    _field(lines, "Removable", _yes_no(descriptor.removable))
    _field(lines, "Read-Only", _yes_no(descriptor.read_only))

    if report.usb is not None:
        lines.extend(_render_usb(report.usb))
    if report.mobile is not None:
        lines.extend(_render_mobile(report.mobile))

    lines.extend(_render_security(report.security))

    if report.reserved_space is not None:
        lines.extend(["", "=== SSD Firmware Reserved Space Analysis ==="])
        lines.extend(_section_lines(report.reserved_space))

    lines.extend(["", "=== SMART Status ==="])
    lines.append(f"Overall Health: {report.smart.status.value}")
    lines.extend(report.smart.lines)
    return lines


def render_roster(roster: Sequence[RosterEntry]) -> List[str]:
    lines = ["=== Available Storage Devices ==="]
    for entry in roster:
        suffix = " [USB Device]" if entry.is_usb else ""
        lines.append(f"Device: {entry.device_id}{suffix}")
    if not roster:
        lines.append(NO_DEVICES_HINT)
    else:
        lines.append(f"Total devices found: {len(roster)}")
    return lines


def render_inventory(inventory: Inventory) -> List[str]:
    """Return the roster followed by every device report in roster order."""

    lines = render_roster(inventory.roster)
    for device_report in inventory.reports:
        lines.append("")
        lines.extend(render_report(device_report))
    return lines


def render_usb_inventory(usb_inventory: UsbInventory) -> List[str]:
    """Return the USB roster with each device's mobile classification."""

    lines = ["=== All Connected USB Devices ==="]
    if usb_inventory.overview_available:
        lines.append("USB Device Overview (via lsusb):")
        lines.extend(f"  {line}" for line in usb_inventory.overview)
        lines.append("")
    lines.append("Detailed USB Device Analysis:")
    if not usb_inventory.accessible:
        lines.append("Cannot access USB device information")
        return lines
    for entry in usb_inventory.devices:
        descriptor = entry.descriptor
        lines.extend(["", f"--- USB Device {entry.name} ---"])
        _field(lines, "Vendor ID", descriptor.vendor_id)
        _field(lines, "Product ID", descriptor.product_id)
        _field(lines, "Manufacturer", descriptor.manufacturer)
        _field(lines, "Product", descriptor.product)
        if descriptor.speed_mbps is not None:
            lines.append(f"Speed: {descriptor.speed_mbps:g} Mbps")
        if entry.mobile.is_mobile:
            lines.append(f"Mobile: {entry.mobile.description} [{entry.mobile.matched_by.value}]")
            lines.extend(f"  {line}" for line in entry.mobile.transfer_protocols)
            lines.extend(f"  {line}" for line in entry.mobile.bridge_devices)
    if not usb_inventory.devices:
        lines.append("No USB devices found.")
    else:
        lines.extend(["", f"Total USB devices analyzed: {len(usb_inventory.devices)}"])
    return lines


def dump_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)
