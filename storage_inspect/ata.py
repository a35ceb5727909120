"""ATA IDENTIFY DEVICE data as returned by the ``HDIO_GET_IDENTITY`` ioctl.

The kernel hands back a 512-byte ``struct hd_driveid``: 256 little-endian
16-bit words laid out as in the ATA IDENTIFY DEVICE response, with the model,
serial and firmware strings already converted to normal byte order. Only the
fields the security analysis consults are decoded here.
"""

from __future__ import annotations

import enum
import fcntl
import os
import struct
from dataclasses import dataclass
from typing import Optional

from .logging_utils import log_event

__all__ = [
    "AtaIdentity",
    "CommandSet1",
    "CommandSet2",
    "HDIO_GET_IDENTITY",
    "IDENTITY_SIZE",
    "parse_identity",
    "read_identity_block",
]

HDIO_GET_IDENTITY = 0x030D
IDENTITY_SIZE = 512

# Word offsets within hd_driveid.
_WORD_SERIAL = 10
_SERIAL_WORDS = 10
_WORD_FW_REV = 23
_FW_REV_WORDS = 4
_WORD_MODEL = 27
_MODEL_WORDS = 20
_WORD_COMMAND_SET_1 = 82
_WORD_COMMAND_SET_2 = 83


class CommandSet1(enum.IntFlag):
    """Bits tested in ``hd_driveid.command_set_1``."""

    SECURITY = 0x0002


class CommandSet2(enum.IntFlag):
    """Bits tested in ``hd_driveid.command_set_2``."""

    HOST_PROTECTED_AREA = 0x0400
    DEVICE_CONFIGURATION_OVERLAY = 0x0800
    SANITIZE = 0x1000


@dataclass(frozen=True)
class AtaIdentity:
    """Decoded subset of an ATA identity block."""

    command_set_1: CommandSet1
    command_set_2: CommandSet2
    model: str = ""
    serial: str = ""
    firmware: str = ""

    @classmethod
    def from_words(
        cls,
        command_set_1: int,
        command_set_2: int,
        *,
        model: str = "",
        serial: str = "",
        firmware: str = "",
    ) -> "AtaIdentity":
        return cls(
            command_set_1=CommandSet1(command_set_1 & 0xFFFF),
            command_set_2=CommandSet2(command_set_2 & 0xFFFF),
            model=model,
            serial=serial,
            firmware=firmware,
        )

    @property
    def hpa_supported(self) -> bool:
        return CommandSet2.HOST_PROTECTED_AREA in self.command_set_2

    @property
    def dco_supported(self) -> bool:
        return CommandSet2.DEVICE_CONFIGURATION_OVERLAY in self.command_set_2

    @property
    def security_supported(self) -> bool:
        return CommandSet1.SECURITY in self.command_set_1

    @property
    def sanitize_supported(self) -> bool:
        return CommandSet2.SANITIZE in self.command_set_2

    def to_payload(self) -> dict[str, object]:
        """Return a JSON-serialisable representation of the identity."""

        return {
            "model": self.model,
            "serial": self.serial,
            "firmware": self.firmware,
            "command_set_1": int(self.command_set_1),
            "command_set_2": int(self.command_set_2),
        }


def _identity_string(block: bytes, word: int, count: int) -> str:
    raw = block[word * 2 : (word + count) * 2]
    return raw.decode("ascii", errors="replace").strip(" \x00")


def parse_identity(block: bytes) -> AtaIdentity:
    """Decode ``block`` into an :class:`AtaIdentity`.

    Raises:
        ValueError: when ``block`` is shorter than a full identity structure.
    """

    if len(block) < IDENTITY_SIZE:
        raise ValueError(
            f"ATA identity block is {len(block)} bytes, expected {IDENTITY_SIZE}"
        )
    (command_set_1,) = struct.unpack_from("<H", block, _WORD_COMMAND_SET_1 * 2)
    (command_set_2,) = struct.unpack_from("<H", block, _WORD_COMMAND_SET_2 * 2)
    return AtaIdentity.from_words(
        command_set_1,
        command_set_2,
        model=_identity_string(block, _WORD_MODEL, _MODEL_WORDS),
        serial=_identity_string(block, _WORD_SERIAL, _SERIAL_WORDS),
        firmware=_identity_string(block, _WORD_FW_REV, _FW_REV_WORDS),
    )


def read_identity_block(device_path: str) -> Optional[bytes]:
    """Return the raw identity block for ``device_path`` or ``None``.

    Opening the device usually needs root. A permission error, a missing
    node and a device that does not answer ``HDIO_GET_IDENTITY`` (NVMe, SCSI,
    virtio, ...) all collapse to ``None``.
    """

    buf = bytearray(IDENTITY_SIZE)
    try:
        fd = os.open(device_path, os.O_RDONLY | os.O_NONBLOCK)
    except OSError as exc:
        log_event("storage_inspect.ata.open_failed", device=device_path, error=str(exc))
        return None
    try:
        fcntl.ioctl(fd, HDIO_GET_IDENTITY, buf, True)
    except OSError as exc:
        log_event("storage_inspect.ata.identity_unavailable", device=device_path, error=str(exc))
        return None
    finally:
        os.close(fd)
    return bytes(buf)
