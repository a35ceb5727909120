"""Assemble per-device reports from every information source."""

from __future__ import annotations

from typing import List

from . import mobile, security, usb
from .classifier import classify
from .environment import ProbeEnvironment
from .logging_utils import log_event
from .models import DeviceReport, Inventory, RosterEntry, Transport
from .probe import ToolProbe
from .sysfs import AttributeReader, EnumerationError
from .topology import TopologyResolver

__all__ = [
    "EnumerationError",
    "build_all_reports",
    "build_inventory",
    "build_report",
    "build_roster",
    "enumerate_device_ids",
]

# Loop, RAM and device-mapper nodes have no physical device behind them.
_EXCLUDED_PREFIXES = ("loop", "ram", "zram", "dm-")


def build_report(device_id: str, env: ProbeEnvironment | None = None) -> DeviceReport:
    """Inspect ``device_id`` and return its assembled report.

    Every source is optional. A missing attribute, tool or permission leaves
    the corresponding field ``None`` or ``UNKNOWN`` with an explanatory line.
    """

    env = env or ProbeEnvironment()
    reader = AttributeReader(env.sys_block)
    resolver = TopologyResolver(reader)
    probe = ToolProbe(env)

    bus_path = resolver.resolve(device_id)
    descriptor = classify(device_id, reader, bus_path=bus_path)

    usb_descriptor = None
    classification = None
    if descriptor.transport is Transport.USB:
        node = resolver.find_usb_node(bus_path)
        if node is not None:
            usb_descriptor = usb.read_usb_descriptor(reader, node)
            classification = mobile.identify(usb_descriptor, probe)

    security_report = security.analyze_security(descriptor, env, reader=reader, probe=probe)
    reserved_space = security.analyze_reserved_space(descriptor, probe)
    report = DeviceReport(
        descriptor=descriptor,
        security=security_report,
        smart=security.smart_health(descriptor, probe),
        bus_path=bus_path,
        usb=usb_descriptor,
        mobile=classification,
        reserved_space=reserved_space,
    )
    log_event(
        "storage_inspect.report.built",
        device=device_id,
        transport=descriptor.transport,
        media=descriptor.media,
        category=descriptor.category,
        mobile=classification.is_mobile if classification is not None else None,
    )
    return report


def enumerate_device_ids(env: ProbeEnvironment | None = None) -> List[str]:
    """Return reportable device ids in namespace order.

    Raises:
        EnumerationError: when the block-device namespace cannot be listed.
    """

    env = env or ProbeEnvironment()
    reader = AttributeReader(env.sys_block)
    device_ids: List[str] = []
    for device_id in reader.list_devices():
        if device_id.startswith(_EXCLUDED_PREFIXES):
            continue
        if reader.read(device_id, "size") is None:
            log_event("storage_inspect.report.skipped", device=device_id, reason="no size")
            continue
        device_ids.append(device_id)
    return device_ids


def build_roster(env: ProbeEnvironment | None = None) -> List[RosterEntry]:
    """Return id and transport of every reportable device without probing tools."""

    env = env or ProbeEnvironment()
    resolver = TopologyResolver(AttributeReader(env.sys_block))
    return [
        RosterEntry(device_id=device_id, transport=resolver.transport(device_id))
        for device_id in enumerate_device_ids(env)
    ]


def build_all_reports(env: ProbeEnvironment | None = None) -> List[DeviceReport]:
    env = env or ProbeEnvironment()
    return [build_report(device_id, env) for device_id in enumerate_device_ids(env)]


def build_inventory(env: ProbeEnvironment | None = None) -> Inventory:
    """Return an :class:`Inventory` covering every reportable device."""

    inventory = Inventory(reports=build_all_reports(env))
    log_event("storage_inspect.report.inventory", count=len(inventory.reports))
    return inventory
