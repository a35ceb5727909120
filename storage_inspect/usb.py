"""USB descriptor reading and the USB device roster."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .environment import ProbeEnvironment
from .logging_utils import log_event
from .mobile import identify
from .models import UsbDescriptor, UsbDeviceEntry, UsbInventory
from .probe import PASSTHROUGH, ToolProbe
from .sysfs import AttributeReader

__all__ = ["enumerate_usb_devices", "read_usb_descriptor"]


def _parse_speed(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        log_event("storage_inspect.usb.malformed", attribute="speed", value=value)
        return None


def read_usb_descriptor(reader: AttributeReader, node: Path) -> UsbDescriptor:
    """Read the descriptor attributes exposed by the USB device ``node``."""

    vendor_id = reader.read_node(node, "idVendor")
    product_id = reader.read_node(node, "idProduct")
    return UsbDescriptor(
        node=Path(node),
        vendor_id=vendor_id.lower() if vendor_id else None,
        product_id=product_id.lower() if product_id else None,
        manufacturer=reader.read_node(node, "manufacturer"),
        product=reader.read_node(node, "product"),
        serial=reader.read_node(node, "serial"),
        usb_version=reader.read_node(node, "version"),
        speed_mbps=_parse_speed(reader.read_node(node, "speed")),
        device_class=reader.read_node_int(node, "bDeviceClass", base=16),
    )


def _usb_device_dirs(sys_usb: Path, reader: AttributeReader) -> List[Path]:
    # Root hubs (usb1) carry no '-' and interfaces (1-1:1.0) carry no idVendor.
    entries = sorted(sys_usb.iterdir(), key=lambda entry: entry.name)
    return [
        entry
        for entry in entries
        if "-" in entry.name and reader.read_node(entry, "idVendor") is not None
    ]


def enumerate_usb_devices(env: ProbeEnvironment | None = None) -> UsbInventory:
    """List every attached USB device with its mobile classification."""

    env = env or ProbeEnvironment()
    probe = ToolProbe(env)
    reader = AttributeReader(env.sys_block)
    inventory = UsbInventory()

    overview = probe.run("lsusb", [], [PASSTHROUGH])
    inventory.overview_available = overview.available
    inventory.overview = list(overview.matched_lines)

    try:
        directories = _usb_device_dirs(env.sys_usb_devices, reader)
    except OSError as exc:
        log_event(
            "storage_inspect.usb.enumeration_failed",
            sys_usb=env.sys_usb_devices,
            error=str(exc),
        )
        inventory.accessible = False
        return inventory

    for directory in directories:
        descriptor = read_usb_descriptor(reader, directory)
        inventory.devices.append(
            UsbDeviceEntry(
                name=directory.name,
                descriptor=descriptor,
                mobile=identify(descriptor, probe),
            )
        )
    log_event("storage_inspect.usb.enumerated", count=len(inventory.devices))
    return inventory
