"""Attribute access for the sysfs block-device namespace."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .logging_utils import log_event

__all__ = ["AttributeReader", "EnumerationError", "read_text"]


class EnumerationError(RuntimeError):
    """Raised when the block-device namespace itself cannot be listed."""


def read_text(path: Path) -> Optional[str]:
    """Return the stripped contents of ``path`` or ``None``.

    Missing files, permission errors, undecodable bytes and empty files are all
    reported as ``None``; none of them is an error for the caller.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    text = text.strip()
    return text or None


class AttributeReader:
    """Read attributes keyed by ``(device_id, attribute path)``.

    Args:
        sys_block: Path to ``/sys/block`` (overridable for tests).
    """

    def __init__(self, sys_block: Path = Path("/sys/block")) -> None:
        self.sys_block = Path(sys_block)

    def device_dir(self, device_id: str) -> Path:
        return self.sys_block / device_id

    def exists(self, device_id: str) -> bool:
        return self.device_dir(device_id).exists()

    def read(self, device_id: str, attribute: str) -> Optional[str]:
        return read_text(self.device_dir(device_id) / attribute)

    def read_int(self, device_id: str, attribute: str, *, base: int = 10) -> Optional[int]:
        """Return ``attribute`` parsed as an integer; malformed means absent."""

        return self._parse_int(
            self.read(device_id, attribute),
            base=base,
            device=device_id,
            attribute=attribute,
        )

    def read_flag(self, device_id: str, attribute: str) -> Optional[bool]:
        value = self.read(device_id, attribute)
        if value == "1":
            return True
        if value == "0":
            return False
        return None

    def read_node(self, directory: Path, attribute: str) -> Optional[str]:
        """Read ``attribute`` from an arbitrary sysfs node directory."""

        return read_text(Path(directory) / attribute)

    def read_node_int(self, directory: Path, attribute: str, *, base: int = 10) -> Optional[int]:
        return self._parse_int(
            self.read_node(directory, attribute),
            base=base,
            device=str(directory),
            attribute=attribute,
        )

    def list_devices(self) -> List[str]:
        """Return device ids in the order the namespace yields them.

        Raises:
            EnumerationError: when ``sys_block`` cannot be listed.
        """

        try:
            return [entry.name for entry in self.sys_block.iterdir()]
        except OSError as exc:
            log_event(
                "storage_inspect.sysfs.enumeration_failed",
                sys_block=self.sys_block,
                error=str(exc),
            )
            raise EnumerationError(f"cannot list {self.sys_block}: {exc}") from exc

    @staticmethod
    def _parse_int(
        value: Optional[str], *, base: int, device: str, attribute: str
    ) -> Optional[int]:
        if value is None:
            return None
        try:
            return int(value, base)
        except ValueError:
            log_event(
                "storage_inspect.sysfs.malformed",
                device=device,
                attribute=attribute,
                value=value,
            )
            return None
