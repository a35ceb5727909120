"""Report data model shared by the inspection pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .ata import AtaIdentity

__all__ = [
    "BusPath",
    "DeviceCategory",
    "DeviceDescriptor",
    "DeviceReport",
    "FeatureStatus",
    "Inventory",
    "MatchedBy",
    "Media",
    "MobileClassification",
    "RosterEntry",
    "SecurityReport",
    "SecuritySection",
    "SmartHealth",
    "SmartReport",
    "Transport",
    "UsbDescriptor",
    "UsbDeviceEntry",
    "UsbInventory",
]

SECTOR_SIZE = 512
_GIB = 1024.0**3


def format_capacity(size_bytes: int) -> str:
    """Return ``size_bytes`` as 1024-based gigabytes (``"0.95 GB"``)."""

    return f"{size_bytes / _GIB:.2f} GB"


class Transport(enum.Enum):
    SATA = "SATA"
    NVME = "NVMe"
    USB = "USB"
    MMC = "MMC"
    VIRTIO = "VIRTIO"
    UNKNOWN = "UNKNOWN"


class Media(enum.Enum):
    ROTATIONAL = "ROTATIONAL"
    FLASH = "FLASH"
    UNKNOWN = "UNKNOWN"


class DeviceCategory(enum.Enum):
    HDD = "HDD"
    SSD = "SSD"
    NVME = "NVMe"
    USB_MASS_STORAGE = "USB_MASS_STORAGE"
    UNKNOWN = "UNKNOWN"


class MatchedBy(enum.Enum):
    VENDOR_ID = "VENDOR_ID"
    NAME_HEURISTIC = "NAME_HEURISTIC"
    NONE = "NONE"


class FeatureStatus(enum.Enum):
    SUPPORTED = "SUPPORTED"
    NOT_SUPPORTED = "NOT_SUPPORTED"
    UNKNOWN = "UNKNOWN"


class SmartHealth(enum.Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class BusPath:
    """Resolved topology link of a block device.

    ``nodes`` holds the link's path components root-first (``..`` removed);
    ``directory`` is the resolved sysfs directory of the device itself.
    """

    link: str
    directory: Path
    nodes: Tuple[str, ...]

    def __str__(self) -> str:
        return "/".join(self.nodes)

    def ancestors(self) -> List[Path]:
        """Return the directories named by ``nodes``, nearest first."""

        chain = [self.directory]
        chain.extend(list(self.directory.parents)[: max(len(self.nodes) - 1, 0)])
        return chain


@dataclass
class DeviceDescriptor:
    """Identity and geometry of a block device; every field may be absent."""

    device_id: str
    transport: Transport = Transport.UNKNOWN
    media: Media = Media.UNKNOWN
    model: Optional[str] = None
    vendor: Optional[str] = None
    serial: Optional[str] = None
    firmware_revision: Optional[str] = None
    size_bytes: Optional[int] = None
    logical_block_size: Optional[int] = None
    physical_block_size: Optional[int] = None
    removable: Optional[bool] = None
    read_only: Optional[bool] = None

    @property
    def category(self) -> DeviceCategory:
        if self.transport is Transport.NVME:
            return DeviceCategory.NVME
        if self.transport is Transport.USB:
            return DeviceCategory.USB_MASS_STORAGE
        if self.media is Media.ROTATIONAL:
            return DeviceCategory.HDD
        if self.media is Media.FLASH:
            return DeviceCategory.SSD
        return DeviceCategory.UNKNOWN

    @property
    def sectors(self) -> Optional[int]:
        if self.size_bytes is None:
            return None
        return self.size_bytes // SECTOR_SIZE

    def to_payload(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "transport": self.transport.value,
            "media": self.media.value,
            "category": self.category.value,
            "model": self.model,
            "vendor": self.vendor,
            "serial": self.serial,
            "firmware_revision": self.firmware_revision,
            "size_bytes": self.size_bytes,
            "logical_block_size": self.logical_block_size,
            "physical_block_size": self.physical_block_size,
            "removable": self.removable,
            "read_only": self.read_only,
        }


_USB_CLASS_LABELS = {
    0x00: "Defined at Interface Level",
    0x01: "Audio",
    0x02: "Communications",
    0x03: "HID - Human Interface Device",
    0x06: "Still Image",
    0x07: "Printer",
    0x08: "Mass Storage",
    0x09: "Hub",
    0x0A: "CDC-Data",
    0x0E: "Video",
    0xEF: "Miscellaneous",
    0xFF: "Vendor Specific",
}


@dataclass
class UsbDescriptor:
    """Descriptor attributes of the USB device node above a block device."""

    node: Optional[Path] = None
    vendor_id: Optional[str] = None
    product_id: Optional[str] = None
    manufacturer: Optional[str] = None
    product: Optional[str] = None
    serial: Optional[str] = None
    usb_version: Optional[str] = None
    speed_mbps: Optional[float] = None
    device_class: Optional[int] = None

    @property
    def device_class_label(self) -> Optional[str]:
        if self.device_class is None:
            return None
        return _USB_CLASS_LABELS.get(self.device_class, "Unknown")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "node": str(self.node) if self.node is not None else None,
            "vendor_id": self.vendor_id,
            "product_id": self.product_id,
            "manufacturer": self.manufacturer,
            "product": self.product,
            "serial": self.serial,
            "usb_version": self.usb_version,
            "speed_mbps": self.speed_mbps,
            "device_class": self.device_class,
            "device_class_label": self.device_class_label,
        }


@dataclass
class MobileClassification:
    """Outcome of the mobile-phone heuristics for one USB device."""

    is_mobile: bool
    matched_by: MatchedBy = MatchedBy.NONE
    vendor_label: Optional[str] = None
    description: str = ""
    transfer_protocols: List[str] = field(default_factory=list)
    bridge_devices: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "is_mobile": self.is_mobile,
            "matched_by": self.matched_by.value,
            "vendor_label": self.vendor_label,
            "description": self.description,
            "transfer_protocols": list(self.transfer_protocols),
            "bridge_devices": list(self.bridge_devices),
        }


@dataclass
class SecuritySection:
    """One named feature check with its status and supporting lines."""

    name: str
    status: FeatureStatus = FeatureStatus.UNKNOWN
    details: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "details": list(self.details),
        }


@dataclass
class SecurityReport:
    """Ordered feature sections for either the ``ata`` or ``nvme`` probe set."""

    kind: str
    sections: List[SecuritySection] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    identity: Optional[AtaIdentity] = None

    def section(self, name: str) -> Optional[SecuritySection]:
        for entry in self.sections:
            if entry.name == name:
                return entry
        return None

    @property
    def section_names(self) -> List[str]:
        return [entry.name for entry in self.sections]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "sections": [entry.to_payload() for entry in self.sections],
            "notes": list(self.notes),
            "identity": self.identity.to_payload() if self.identity else None,
        }


@dataclass
class SmartReport:
    status: SmartHealth = SmartHealth.UNKNOWN
    available: bool = False
    lines: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "available": self.available,
            "lines": list(self.lines),
        }


@dataclass
class DeviceReport:
    """Everything learned about one device during a single inspection."""

    descriptor: DeviceDescriptor
    security: SecurityReport
    smart: SmartReport
    bus_path: Optional[BusPath] = None
    usb: Optional[UsbDescriptor] = None
    mobile: Optional[MobileClassification] = None
    reserved_space: Optional[SecuritySection] = None

    @property
    def device_id(self) -> str:
        return self.descriptor.device_id

    def to_payload(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "bus_path": str(self.bus_path) if self.bus_path is not None else None,
            "descriptor": self.descriptor.to_payload(),
            "usb": self.usb.to_payload() if self.usb is not None else None,
            "mobile": self.mobile.to_payload() if self.mobile is not None else None,
            "security": self.security.to_payload(),
            "reserved_space": (
                self.reserved_space.to_payload() if self.reserved_space is not None else None
            ),
            "smart": self.smart.to_payload(),
        }


@dataclass(frozen=True)
class RosterEntry:
    device_id: str
    transport: Transport

    @property
    def is_usb(self) -> bool:
        return self.transport is Transport.USB

    def to_payload(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "transport": self.transport.value,
            "is_usb": self.is_usb,
        }


@dataclass
class Inventory:
    """Result of inspecting every enumerable block device."""

    reports: List[DeviceReport] = field(default_factory=list)

    @property
    def roster(self) -> List[RosterEntry]:
        return [
            RosterEntry(device_id=report.device_id, transport=report.descriptor.transport)
            for report in self.reports
        ]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "roster": [entry.to_payload() for entry in self.roster],
            "reports": [report.to_payload() for report in self.reports],
        }


@dataclass
class UsbDeviceEntry:
    name: str
    descriptor: UsbDescriptor
    mobile: MobileClassification

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "descriptor": self.descriptor.to_payload(),
            "mobile": self.mobile.to_payload(),
        }


@dataclass
class UsbInventory:
    """Plain ``lsusb`` overview plus every USB device found in sysfs."""

    overview_available: bool = False
    overview: List[str] = field(default_factory=list)
    devices: List[UsbDeviceEntry] = field(default_factory=list)
    accessible: bool = True

    def to_payload(self) -> Dict[str, Any]:
        return {
            "overview_available": self.overview_available,
            "overview": list(self.overview),
            "accessible": self.accessible,
            "devices": [entry.to_payload() for entry in self.devices],
        }
