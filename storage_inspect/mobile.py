"""Mobile-phone identification for USB devices."""

from __future__ import annotations

from typing import Optional, Tuple

from .logging_utils import log_event
from .models import MatchedBy, MobileClassification, UsbDescriptor
from .probe import ADB_DEVICES, LSUSB_MOBILE_PROTOCOLS, ToolProbe

__all__ = [
    "MOBILE_VENDORS",
    "NAME_KEYWORD_GROUPS",
    "classify_mobile",
    "identify",
    "normalise_vendor_id",
]

# USB-IF vendor ids of handset manufacturers.
MOBILE_VENDORS = {
    "04e8": "Samsung",
    "05ac": "Apple",
    "18d1": "Google/Android",
    "0bb4": "HTC",
    "22b8": "Motorola",
    "0fce": "Sony Ericsson",
    "19d2": "ZTE",
    "12d1": "Huawei",
    "2717": "Xiaomi",
    "2a70": "OnePlus",
}

# (label, description, lower-case keywords); the first group that matches wins.
NAME_KEYWORD_GROUPS: Tuple[Tuple[Optional[str], str, Tuple[str, ...]], ...] = (
    ("Samsung", "Samsung Mobile Device (by name)", ("samsung", "galaxy")),
    ("Apple", "Apple Mobile Device (by name)", ("apple", "iphone", "ipad", "ipod")),
    ("Android", "Android Device (by name)", ("google", "android", "pixel")),
    (None, "Mobile Device (by description)", ("phone", "mobile")),
)

_NOT_MOBILE_DESCRIPTION = "Not identified as a mobile device"
_ADB_MISSING = "ADB not available (install android-tools)"


def normalise_vendor_id(vendor_id: Optional[str]) -> Optional[str]:
    """Return ``vendor_id`` as four lower-case hex digits without ``0x``."""

    if vendor_id is None:
        return None
    value = vendor_id.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    return value or None


def classify_mobile(descriptor: UsbDescriptor) -> MobileClassification:
    """Decide whether ``descriptor`` describes a phone or tablet.

    The vendor id table is consulted first; manufacturer and product strings
    are only searched when the vendor id is unknown.
    """

    vendor_id = normalise_vendor_id(descriptor.vendor_id)
    if vendor_id is not None and vendor_id in MOBILE_VENDORS:
        label = MOBILE_VENDORS[vendor_id]
        return MobileClassification(
            is_mobile=True,
            matched_by=MatchedBy.VENDOR_ID,
            vendor_label=label,
            description=f"{label} Device Detected",
        )

    haystack = " ".join(
        text for text in (descriptor.manufacturer, descriptor.product) if text
    ).lower()
    if haystack:
        for label, description, keywords in NAME_KEYWORD_GROUPS:
            if any(keyword in haystack for keyword in keywords):
                return MobileClassification(
                    is_mobile=True,
                    matched_by=MatchedBy.NAME_HEURISTIC,
                    vendor_label=label,
                    description=description,
                )

    return MobileClassification(
        is_mobile=False,
        matched_by=MatchedBy.NONE,
        description=_NOT_MOBILE_DESCRIPTION,
    )


def _transfer_protocols(probe: ToolProbe) -> list[str]:
    result = probe.run("lsusb", ["-v"], [LSUSB_MOBILE_PROTOCOLS])
    if not result.available:
        return ["lsusb not available; transfer protocols unknown"]
    if not result.matched_lines:
        return ["Standard USB protocols detected"]
    return [line.strip() for line in result.matched_lines]


def _bridge_devices(probe: ToolProbe) -> list[str]:
    if not probe.has_tool("adb"):
        return [_ADB_MISSING]
    result = probe.run("adb", ["devices"], [ADB_DEVICES])
    if not result.available:
        return ["ADB device listing failed"]
    if not result.matched_lines:
        return ["No ADB devices detected (may need USB debugging enabled)"]
    return [f"ADB Device: {line.strip()}" for line in result.matched_lines]


def identify(descriptor: UsbDescriptor, probe: ToolProbe | None = None) -> MobileClassification:
    """Classify ``descriptor`` and, for phones, gather best-effort extras."""

    classification = classify_mobile(descriptor)
    log_event(
        "storage_inspect.mobile.classified",
        node=descriptor.node,
        vendor_id=descriptor.vendor_id,
        is_mobile=classification.is_mobile,
        matched_by=classification.matched_by,
    )
    if not classification.is_mobile or probe is None:
        return classification
    classification.transfer_protocols = _transfer_protocols(probe)
    classification.bridge_devices = _bridge_devices(probe)
    return classification
