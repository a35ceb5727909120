"""External diagnostic tool invocation with named line filters.

Every call site filters tool output through a :class:`LineFilter` from the
catalogue below rather than an ad-hoc grep, so the set of facts extracted from
each tool is reviewable in one place. Bump :data:`FILTERS_VERSION` when a
catalogue entry changes meaning.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

from .environment import CommandOutput, ProbeEnvironment
from .logging_utils import log_event

__all__ = [
    "FILTERS_VERSION",
    "LineFilter",
    "ProbeResult",
    "ToolProbe",
]

FILTERS_VERSION = 1


@dataclass(frozen=True)
class LineFilter:
    """Keep lines containing any of ``keywords`` and none of ``excludes``.

    Matching is case-sensitive substring search against the tool's native
    text. A filter without keywords accepts every line not excluded.
    """

    name: str
    keywords: Tuple[str, ...] = ()
    excludes: Tuple[str, ...] = ()

    def matches(self, line: str) -> bool:
        if any(word in line for word in self.excludes):
            return False
        if not self.keywords:
            return True
        return any(word in line for word in self.keywords)


def _both_cases(*words: str) -> Tuple[str, ...]:
    variants: List[str] = []
    for word in words:
        for variant in (word.lower(), word.capitalize(), word.upper()):
            if variant not in variants:
                variants.append(variant)
    return tuple(variants)


PASSTHROUGH = LineFilter("passthrough")

# hdparm
HDPARM_MAX_SECTORS = LineFilter(
    "hdparm.max_sectors", ("max sectors", "HPA", "sectors", "enabled")
)
HDPARM_DCO = LineFilter("hdparm.dco", ("Real max sectors", "DCO"))
HDPARM_SECURITY = LineFilter(
    "hdparm.security", ("Security", "enabled", "locked", "erase")
)
HDPARM_FIRMWARE_RESERVED = LineFilter(
    "hdparm.firmware_reserved", _both_cases("firmware", "reserved", "vendor")
)

# smartctl
SMART_HEALTH = LineFilter(
    "smartctl.health",
    ("SMART overall-health", "SMART Health Status", "PASSED", "FAILED"),
)

# nvme-cli
NVME_CONTROLLER = LineFilter(
    "nvme.controller",
    ("oacs", "fuses", "Format NVM", "Crypto Erase", "Sanitize", "firmware"),
)
NVME_NAMESPACE_DETAIL = LineFilter(
    "nvme.namespace_detail", ("nsze", "ncap", "nuse", "lbaf", "ms", "pi")
)
NVME_FIRMWARE_LOG = LineFilter(
    "nvme.firmware_log", ("firmware", "Firmware", "reserved")
)
NVME_SECURITY = LineFilter(
    "nvme.security", _both_cases("security", "sanitize", "crypto", "format")
)
NVME_FIRMWARE_RESERVED = LineFilter(
    "nvme.firmware_reserved", ("firmware", "Firmware", "reserved", "vendor")
)

# lsusb / adb
LSUSB_MOBILE_PROTOCOLS = LineFilter(
    "lsusb.mobile_protocols", ("MTP", "PTP", "Android", "iPhone")
)
ADB_DEVICES = LineFilter("adb.devices", ("device",), ("List of devices",))


@dataclass
class ProbeResult:
    """Outcome of one tool invocation.

    ``available`` is ``False`` when the tool is missing or the invocation
    failed; ``matched_lines`` is then empty.
    """

    available: bool
    matched_lines: List[str] = field(default_factory=list)
    returncode: int | None = None


class ToolProbe:
    """Run diagnostic tools through a :class:`ProbeEnvironment`."""

    def __init__(self, env: ProbeEnvironment | None = None) -> None:
        self.env = env or ProbeEnvironment()

    def has_tool(self, tool: str) -> bool:
        return self.env.which(tool) is not None

    def run(
        self,
        tool: str,
        args: Sequence[str],
        filters: Iterable[LineFilter] = (PASSTHROUGH,),
        *,
        allow_nonzero: bool = False,
    ) -> ProbeResult:
        """Invoke ``tool`` with ``args`` and keep lines matching any filter."""

        cmd = [tool, *args]
        filter_list = list(filters)
        if not self.has_tool(tool):
            log_event("storage_inspect.probe.missing", command=cmd)
            return ProbeResult(available=False)
        result: CommandOutput = self.env.run(cmd)
        failed = result.returncode is None or (
            result.returncode != 0 and not allow_nonzero
        )
        if failed:
            log_event(
                "storage_inspect.probe.failed",
                command=cmd,
                returncode=result.returncode,
            )
            return ProbeResult(available=False, returncode=result.returncode)
        matched = [
            line.rstrip()
            for line in result.stdout.splitlines()
            if line.strip() and any(entry.matches(line) for entry in filter_list)
        ]
        log_event(
            "storage_inspect.probe.run",
            command=cmd,
            returncode=result.returncode,
            filters=[entry.name for entry in filter_list],
            filters_version=FILTERS_VERSION,
            matched=len(matched),
        )
        return ProbeResult(available=True, matched_lines=matched, returncode=result.returncode)
