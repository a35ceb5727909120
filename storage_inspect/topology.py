"""Resolve block devices to their physical bus path."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple

from .logging_utils import log_event
from .models import BusPath, Transport
from .sysfs import AttributeReader

__all__ = [
    "TopologyResolver",
    "classify_transport",
    "parse_link_target",
]

# Checked in order; the first marker found in the bus path wins, so a USB
# bridge in front of a SATA disk is reported as USB.
_TRANSPORT_MARKERS: Tuple[Tuple[str, Transport], ...] = (
    ("nvme", Transport.NVME),
    ("usb", Transport.USB),
    ("ata", Transport.SATA),
    ("mmc", Transport.MMC),
    ("virtio", Transport.VIRTIO),
)

_USB_NODE_ATTRIBUTE = "idVendor"


def parse_link_target(target: str) -> Tuple[str, ...]:
    """Split a sysfs link target into its node names, root-first.

    Raises:
        ValueError: when ``target`` is empty or names no nodes.
    """

    if not target or not target.strip():
        raise ValueError("empty topology link")
    nodes = tuple(
        part for part in PurePosixPath(target.strip()).parts if part not in ("..", ".", "/")
    )
    if not nodes:
        raise ValueError(f"topology link {target!r} names no device nodes")
    return nodes


def classify_transport(bus_path: Optional[BusPath]) -> Transport:
    """Return the transport implied by ``bus_path``."""

    if bus_path is None:
        return Transport.UNKNOWN
    text = str(bus_path)
    for marker, transport in _TRANSPORT_MARKERS:
        if marker in text:
            return transport
    return Transport.UNKNOWN


class TopologyResolver:
    """Follow ``/sys/block/<id>`` links to the devices that carry them."""

    def __init__(self, reader: AttributeReader) -> None:
        self.reader = reader

    def resolve(self, device_id: str) -> Optional[BusPath]:
        """Return the bus path for ``device_id`` or ``None`` when unresolvable."""

        link = self.reader.device_dir(device_id)
        try:
            target = os.readlink(link)
        except OSError as exc:
            log_event(
                "storage_inspect.topology.unresolved",
                device=device_id,
                error=str(exc),
            )
            return None
        try:
            nodes = parse_link_target(target)
        except ValueError as exc:
            log_event(
                "storage_inspect.topology.malformed",
                device=device_id,
                link=target,
                error=str(exc),
            )
            return None
        directory = Path(os.path.realpath(link))
        return BusPath(link=target, directory=directory, nodes=nodes)

    def transport(self, device_id: str) -> Transport:
        return classify_transport(self.resolve(device_id))

    def find_usb_node(self, bus_path: Optional[BusPath]) -> Optional[Path]:
        """Return the nearest ancestor exposing USB descriptor attributes."""

        if bus_path is None:
            return None
        # Walk leaf-first: the root hub (usb1) exposes idVendor too, so a
        # root-first walk would report the hub instead of the device.
        for directory in bus_path.ancestors():
            if self.reader.read_node(directory, _USB_NODE_ATTRIBUTE) is not None:
                return directory
        log_event("storage_inspect.topology.usb_node_missing", bus_path=str(bus_path))
        return None
