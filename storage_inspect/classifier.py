"""Classify block devices by media and transport."""

from __future__ import annotations

from typing import Optional

from .models import SECTOR_SIZE, BusPath, DeviceDescriptor, Media
from .sysfs import AttributeReader
from .topology import TopologyResolver, classify_transport


def media_from_rotational(value: Optional[str]) -> Media:
    """Map the ``queue/rotational`` attribute onto :class:`Media`."""

    if value == "1":
        return Media.ROTATIONAL
    if value == "0":
        return Media.FLASH
    return Media.UNKNOWN


def classify(
    device_id: str,
    reader: AttributeReader,
    *,
    resolver: TopologyResolver | None = None,
    bus_path: BusPath | None = None,
) -> DeviceDescriptor:
    """Build a :class:`DeviceDescriptor` for ``device_id``.

    The size attribute is always counted in 512-byte sectors, whatever the
    device reports as its logical block size. ``bus_path`` may be supplied
    when the caller already resolved the topology.
    """

    if bus_path is None:
        bus_path = (resolver or TopologyResolver(reader)).resolve(device_id)
    sectors = reader.read_int(device_id, "size")
    return DeviceDescriptor(
        device_id=device_id,
        transport=classify_transport(bus_path),
        media=media_from_rotational(reader.read(device_id, "queue/rotational")),
        model=reader.read(device_id, "device/model"),
        vendor=reader.read(device_id, "device/vendor"),
        serial=reader.read(device_id, "device/serial"),
        firmware_revision=(
            reader.read(device_id, "device/firmware_rev")
            or reader.read(device_id, "device/rev")
        ),
        size_bytes=sectors * SECTOR_SIZE if sectors is not None else None,
        logical_block_size=reader.read_int(device_id, "queue/logical_block_size"),
        physical_block_size=reader.read_int(device_id, "queue/physical_block_size"),
        removable=reader.read_flag(device_id, "removable"),
        read_only=reader.read_flag(device_id, "ro"),
    )
