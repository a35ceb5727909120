"""Security feature, reserved-area and SMART analysis.

The probe set depends on the transport: NVMe devices are inspected with
``nvme`` (nvme-cli), everything else is treated as a potential ATA device and
checked through the ``HDIO_GET_IDENTITY`` identity block and ``hdparm``. Each
probe fills its own report section; a missing tool or insufficient privilege
degrades that section to an explicit status line and never the whole report.
"""

from __future__ import annotations

from typing import List, Optional

from .ata import AtaIdentity, parse_identity
from .environment import ProbeEnvironment
from .logging_utils import log_event
from .models import (
    DeviceDescriptor,
    FeatureStatus,
    SecurityReport,
    SecuritySection,
    SmartHealth,
    SmartReport,
    Transport,
    format_capacity,
)
from .probe import (
    HDPARM_DCO,
    HDPARM_FIRMWARE_RESERVED,
    HDPARM_MAX_SECTORS,
    HDPARM_SECURITY,
    NVME_CONTROLLER,
    NVME_FIRMWARE_LOG,
    NVME_FIRMWARE_RESERVED,
    NVME_NAMESPACE_DETAIL,
    NVME_SECURITY,
    PASSTHROUGH,
    SMART_HEALTH,
    ProbeResult,
    ToolProbe,
)
from .sysfs import AttributeReader

__all__ = [
    "ATA_SECTIONS",
    "NVME_SECTIONS",
    "RESERVED_SECTION",
    "analyze_ata",
    "analyze_nvme",
    "analyze_reserved_space",
    "analyze_security",
    "is_nvme",
    "scsi_type_label",
    "smart_health",
]

HPA = "HPA"
DCO = "DCO"
SECURITY_SUBSYSTEM = "Security-subsystem"
SANITIZE = "Sanitize"
ATA_SECTIONS = (HPA, DCO, SECURITY_SUBSYSTEM, SANITIZE)

CONTROLLER_FEATURES = "Controller-features"
NAMESPACE_DETAILS = "Namespace-details"
FIRMWARE_LOG = "Firmware-log"
SECURITY_CAPABILITIES = "Security-capabilities"
NVME_SECTIONS = (CONTROLLER_FEATURES, NAMESPACE_DETAILS, FIRMWARE_LOG, SECURITY_CAPABILITIES)

RESERVED_SECTION = "Firmware-reserved"

PRIVILEGE_HINT = "try running as root"

_SCSI_TYPES = {
    0: "Direct Access - Disk",
    5: "CD-ROM",
    7: "Optical Memory",
}


def scsi_type_label(device_type: int) -> str:
    """Name the SCSI peripheral device type code."""

    return _SCSI_TYPES.get(device_type, "Other")


def is_nvme(descriptor: DeviceDescriptor) -> bool:
    """Return ``True`` when ``descriptor`` should get the NVMe probe set."""

    return descriptor.transport is Transport.NVME or descriptor.device_id.startswith("nvme")


def _probe_section(
    name: str,
    results: List[ProbeResult],
    *,
    placeholder: str,
    unavailable: str,
) -> SecuritySection:
    """Fold one or more probe results into a report section."""

    if not any(result.available for result in results):
        return SecuritySection(name, FeatureStatus.UNKNOWN, [unavailable])
    lines = [line.strip() for result in results for line in result.matched_lines]
    if not lines:
        return SecuritySection(name, FeatureStatus.UNKNOWN, [placeholder])
    return SecuritySection(name, FeatureStatus.SUPPORTED, lines)


# NVMe ---------------------------------------------------------------------


def _namespace_section(
    namespaces: ProbeResult,
    detail: ProbeResult,
    *,
    unavailable: str,
) -> SecuritySection:
    if not (namespaces.available or detail.available):
        return SecuritySection(NAMESPACE_DETAILS, FeatureStatus.UNKNOWN, [unavailable])
    details: List[str] = []
    if not namespaces.available:
        details.append(unavailable)
    elif namespaces.matched_lines:
        details.extend(line.strip() for line in namespaces.matched_lines)
    else:
        details.append("No additional namespaces found")
    if not detail.available:
        details.append(unavailable)
    elif detail.matched_lines:
        details.extend(line.strip() for line in detail.matched_lines)
    else:
        details.append("No namespace details reported")
    found = bool(namespaces.matched_lines or detail.matched_lines)
    status = FeatureStatus.SUPPORTED if found else FeatureStatus.UNKNOWN
    return SecuritySection(NAMESPACE_DETAILS, status, details)


def _nvme_degraded(descriptor: DeviceDescriptor, reader: AttributeReader) -> SecurityReport:
    device_id = descriptor.device_id
    firmware = reader.read(device_id, "device/firmware_rev") or descriptor.firmware_revision
    model = reader.read(device_id, "device/model") or descriptor.model
    details = ["nvme-cli tool not found; falling back to basic NVMe analysis"]
    if firmware:
        details.append(f"Firmware Revision: {firmware}")
    if model:
        details.append(f"Model: {model}")
    unavailable = "Unavailable: install nvme-cli for detailed NVMe analysis"
    report = SecurityReport(kind="nvme")
    report.sections.append(SecuritySection(CONTROLLER_FEATURES, FeatureStatus.UNKNOWN, details))
    for name in NVME_SECTIONS[1:]:
        report.sections.append(SecuritySection(name, FeatureStatus.UNKNOWN, [unavailable]))
    return report


def analyze_nvme(
    descriptor: DeviceDescriptor,
    reader: AttributeReader,
    probe: ToolProbe,
) -> SecurityReport:
    """Run the NVMe probe set for ``descriptor``."""

    if not probe.has_tool("nvme"):
        log_event("storage_inspect.security.nvme_degraded", device=descriptor.device_id)
        report = _nvme_degraded(descriptor, reader)
    else:
        path = probe.env.device_path(descriptor.device_id)
        failed = f"Unavailable: nvme query failed ({PRIVILEGE_HINT})"
        controller = probe.run("nvme", ["id-ctrl", path], [NVME_CONTROLLER])
        namespaces = probe.run("nvme", ["list-ns", path], [PASSTHROUGH])
        namespace_detail = probe.run("nvme", ["id-ns", path], [NVME_NAMESPACE_DETAIL])
        firmware_log = probe.run(
            "nvme", ["get-log", path, "--log-id=0x03", "--log-len=512"], [NVME_FIRMWARE_LOG]
        )
        security = probe.run("nvme", ["id-ctrl", path], [NVME_SECURITY])

        report = SecurityReport(
            kind="nvme",
            sections=[
                _probe_section(
                    CONTROLLER_FEATURES,
                    [controller],
                    placeholder="Standard NVMe controller detected",
                    unavailable=failed,
                ),
                _namespace_section(namespaces, namespace_detail, unavailable=failed),
                _probe_section(
                    FIRMWARE_LOG,
                    [firmware_log],
                    placeholder="No explicit firmware log entries found",
                    unavailable=failed,
                ),
                _probe_section(
                    SECURITY_CAPABILITIES,
                    [security],
                    placeholder="Standard security features available",
                    unavailable=failed,
                ),
            ],
        )
    report.notes.extend(
        [
            "HPA/DCO Status: Not applicable for NVMe devices",
            "Some reserved areas may not be visible without vendor-specific tools",
        ]
    )
    return report


# ATA ----------------------------------------------------------------------


def _read_identity(descriptor: DeviceDescriptor, probe: ToolProbe) -> Optional[AtaIdentity]:
    device_path = probe.env.device_path(descriptor.device_id)
    block = probe.env.read_identity(device_path)
    if block is None:
        return None
    try:
        return parse_identity(block)
    except ValueError as exc:
        log_event(
            "storage_inspect.security.identity_malformed",
            device=descriptor.device_id,
            error=str(exc),
        )
        return None


def _size_note(descriptor: DeviceDescriptor) -> Optional[str]:
    if descriptor.size_bytes is None:
        return None
    return f"Device Size: {descriptor.size_bytes} bytes ({format_capacity(descriptor.size_bytes)})"


def _ata_fallback(descriptor: DeviceDescriptor, reader: AttributeReader) -> SecurityReport:
    report = SecurityReport(kind="ata")
    report.notes.append(
        f"Not an ATA device or unable to get ATA identity ({PRIVILEGE_HINT})"
    )
    capacity = _size_note(descriptor)
    if capacity:
        report.notes.append(capacity)
    device_type = reader.read_int(descriptor.device_id, "device/type")
    if device_type is not None:
        report.notes.append(f"SCSI Device Type: {device_type} ({scsi_type_label(device_type)})")
    report.notes.append("HPA/DCO Status: Not applicable for this device type")
    for name in ATA_SECTIONS:
        report.sections.append(
            SecuritySection(name, FeatureStatus.UNKNOWN, ["ATA identity unavailable"])
        )
    return report


def _live_lines(result: ProbeResult, *, missing: str, empty: str) -> List[str]:
    if not result.available:
        return [missing]
    if not result.matched_lines:
        return [empty]
    return [line.strip() for line in result.matched_lines]


def _hpa_section(identity: AtaIdentity, probe: ToolProbe, path: str) -> SecuritySection:
    if not identity.hpa_supported:
        return SecuritySection(HPA, FeatureStatus.NOT_SUPPORTED, ["HPA Feature Not Supported"])
    details = ["HPA Feature Supported"]
    details.extend(
        _live_lines(
            probe.run("hdparm", ["-N", path], [HDPARM_MAX_SECTORS]),
            missing="Unable to get detailed HPA info (hdparm not available)",
            empty="hdparm reported no max-sectors information",
        )
    )
    return SecuritySection(HPA, FeatureStatus.SUPPORTED, details)


def _dco_section(identity: AtaIdentity, probe: ToolProbe, path: str) -> SecuritySection:
    if not identity.dco_supported:
        return SecuritySection(DCO, FeatureStatus.NOT_SUPPORTED, ["DCO Feature Not Supported"])
    details = [
        "DCO Feature Supported",
        "Warning: DCO may hide true device capacity and features",
    ]
    details.extend(
        _live_lines(
            probe.run("hdparm", ["--dco-identify", path], [HDPARM_DCO]),
            missing="Unable to get detailed DCO info (hdparm not available)",
            empty="hdparm reported no DCO information",
        )
    )
    return SecuritySection(DCO, FeatureStatus.SUPPORTED, details)


def _security_section(identity: AtaIdentity, probe: ToolProbe, path: str) -> SecuritySection:
    if not identity.security_supported:
        return SecuritySection(
            SECURITY_SUBSYSTEM,
            FeatureStatus.NOT_SUPPORTED,
            ["Security Feature Set Not Supported"],
        )
    details = ["Security Feature Set Supported"]
    details.extend(
        _live_lines(
            probe.run("hdparm", ["-I", path], [HDPARM_SECURITY]),
            missing="Unable to get live security status (hdparm not available)",
            empty="hdparm reported no security status",
        )
    )
    return SecuritySection(SECURITY_SUBSYSTEM, FeatureStatus.SUPPORTED, details)


def _sanitize_section(identity: AtaIdentity) -> SecuritySection:
    if identity.sanitize_supported:
        return SecuritySection(SANITIZE, FeatureStatus.SUPPORTED, ["Sanitize Feature Supported"])
    return SecuritySection(SANITIZE, FeatureStatus.NOT_SUPPORTED, ["Sanitize Feature Not Supported"])


def analyze_ata(
    descriptor: DeviceDescriptor,
    reader: AttributeReader,
    probe: ToolProbe,
) -> SecurityReport:
    """Run the ATA probe set for ``descriptor``."""

    identity = _read_identity(descriptor, probe)
    if identity is None:
        log_event("storage_inspect.security.ata_fallback", device=descriptor.device_id)
        return _ata_fallback(descriptor, reader)

    path = probe.env.device_path(descriptor.device_id)
    report = SecurityReport(kind="ata", identity=identity)
    report.notes.append("ATA Device Detected")
    if identity.model:
        report.notes.append(f"Identity Model: {identity.model}")
    if identity.firmware:
        report.notes.append(f"Identity Firmware: {identity.firmware}")
    if descriptor.size_bytes is not None:
        report.notes.append(
            f"Accessible Capacity: {descriptor.sectors} sectors "
            f"({format_capacity(descriptor.size_bytes)})"
        )
    report.sections.extend(
        [
            _hpa_section(identity, probe, path),
            _dco_section(identity, probe, path),
            _security_section(identity, probe, path),
            _sanitize_section(identity),
        ]
    )
    return report


def analyze_security(
    descriptor: DeviceDescriptor,
    env: ProbeEnvironment | None = None,
    *,
    reader: AttributeReader | None = None,
    probe: ToolProbe | None = None,
) -> SecurityReport:
    """Pick and run the probe set matching the device's transport."""

    env = env or (probe.env if probe is not None else ProbeEnvironment())
    reader = reader or AttributeReader(env.sys_block)
    probe = probe or ToolProbe(env)
    if is_nvme(descriptor):
        report = analyze_nvme(descriptor, reader, probe)
    else:
        report = analyze_ata(descriptor, reader, probe)
    log_event(
        "storage_inspect.security.analyzed",
        device=descriptor.device_id,
        kind=report.kind,
        sections={section.name: section.status for section in report.sections},
    )
    return report


# Reserved space -------------------------------------------------------------


def analyze_reserved_space(
    descriptor: DeviceDescriptor,
    probe: ToolProbe,
) -> SecuritySection:
    """Report firmware-reserved and vendor areas the device admits to."""

    path = probe.env.device_path(descriptor.device_id)
    if is_nvme(descriptor):
        if not probe.has_tool("nvme"):
            details = ["nvme-cli tool not found; basic capacity only"]
            if descriptor.size_bytes is not None:
                details.append(
                    f"Total Capacity: {format_capacity(descriptor.size_bytes)} "
                    f"({descriptor.sectors} sectors)"
                )
            return SecuritySection(RESERVED_SECTION, FeatureStatus.UNKNOWN, details)
        section = _probe_section(
            RESERVED_SECTION,
            [probe.run("nvme", ["id-ctrl", path], [NVME_FIRMWARE_RESERVED])],
            placeholder="No explicit firmware reserved areas reported",
            unavailable=f"Unavailable: nvme id-ctrl failed ({PRIVILEGE_HINT})",
        )
        section.details.append(
            "NVMe over-provisioning and firmware areas may not be directly visible"
        )
        return section

    if not probe.has_tool("hdparm"):
        return SecuritySection(
            RESERVED_SECTION,
            FeatureStatus.UNKNOWN,
            ["hdparm tool not found; limited SATA analysis available"],
        )
    section = _probe_section(
        RESERVED_SECTION,
        [probe.run("hdparm", ["-I", path], [HDPARM_FIRMWARE_RESERVED])],
        placeholder="No explicit firmware reserved info found",
        unavailable=f"Unavailable: hdparm -I failed ({PRIVILEGE_HINT})",
    )
    section.details.append("SATA firmware areas require vendor-specific tools for detailed analysis")
    return section


# SMART ----------------------------------------------------------------------


def _smart_status(lines: List[str]) -> SmartHealth:
    if any("FAILED" in line for line in lines):
        return SmartHealth.FAILED
    for line in lines:
        if "PASSED" in line:
            return SmartHealth.PASSED
        if "SMART Health Status" in line and line.rstrip().endswith("OK"):
            return SmartHealth.PASSED
    return SmartHealth.UNKNOWN


def smart_health(descriptor: DeviceDescriptor, probe: ToolProbe) -> SmartReport:
    """Ask ``smartctl`` for the overall health verdict."""

    if not probe.has_tool("smartctl"):
        return SmartReport(
            status=SmartHealth.UNKNOWN,
            available=False,
            lines=["Cannot check SMART status (smartctl not available)"],
        )
    path = probe.env.device_path(descriptor.device_id)
    # smartctl's exit status is a bitmask; a failing disk sets bit 3.
    result = probe.run("smartctl", ["-H", path], [SMART_HEALTH], allow_nonzero=True)
    if not result.available:
        return SmartReport(
            status=SmartHealth.UNKNOWN,
            available=False,
            lines=[f"Cannot check SMART status ({PRIVILEGE_HINT})"],
        )
    lines = [line.strip() for line in result.matched_lines]
    status = _smart_status(lines)
    if not lines:
        lines = ["SMART information not available (device doesn't support SMART)"]
    log_event("storage_inspect.security.smart", device=descriptor.device_id, status=status)
    return SmartReport(status=status, available=True, lines=lines)
