"""Injectable access to the host for every probe the reports rely on."""

from __future__ import annotations

from dataclasses import dataclass
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence

from . import ata, config
from .logging_utils import log_event

__all__ = ["CommandOutput", "ProbeEnvironment"]


@dataclass
class CommandOutput:
    """Minimal command result container for dependency injection.

    ``returncode`` is ``None`` when the process could not be started.
    """

    stdout: str
    returncode: Optional[int] = 0


class ProbeEnvironment:
    """Encapsulate external interactions for device inspection.

    Every argument is optional; the defaults talk to the running host. Tests
    substitute fakes for ``run``, ``which`` and ``read_identity`` and point the
    filesystem roots at a temporary sysfs tree.
    """

    def __init__(
        self,
        *,
        run: Callable[[Sequence[str]], CommandOutput] | None = None,
        which: Callable[[str], Optional[str]] | None = None,
        read_identity: Callable[[str], Optional[bytes]] | None = None,
        sys_block: Path | None = None,
        sys_usb_devices: Path | None = None,
        dev_root: Path | None = None,
    ) -> None:
        self.run = run or self._default_run
        self.which = which or shutil.which
        self.read_identity = read_identity or ata.read_identity_block
        self.sys_block = Path(sys_block) if sys_block is not None else config.sys_block_path()
        self.sys_usb_devices = (
            Path(sys_usb_devices) if sys_usb_devices is not None else config.sys_usb_path()
        )
        self.dev_root = Path(dev_root) if dev_root is not None else config.dev_root_path()

    def device_path(self, device_id: str) -> str:
        """Return the device node path for ``device_id`` (``/dev/sda``)."""

        return str(self.dev_root / device_id)

    @staticmethod
    def _default_run(cmd: Sequence[str]) -> CommandOutput:
        try:
            completed = subprocess.run(
                list(cmd),
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as exc:
            log_event("storage_inspect.environment.spawn_failed", command=list(cmd), error=str(exc))
            return CommandOutput(stdout="", returncode=None)
        return CommandOutput(stdout=completed.stdout, returncode=completed.returncode)
