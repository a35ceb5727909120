"""Runtime configuration resolved from environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from .logging_utils import log_event

_DEFAULT_SYS_BLOCK = Path("/sys/block")
_DEFAULT_SYS_USB = Path("/sys/bus/usb/devices")
_DEFAULT_DEV_ROOT = Path("/dev")
DEFAULT_WATCH_INTERVAL = 2.0


def _path_override(name: str, default: Path) -> Path:
    override = os.environ.get(name)
    if override and override.strip():
        return Path(override.strip())
    return default


def sys_block_path() -> Path:
    """Return the block-device namespace root (``/sys/block``)."""

    return _path_override("STORAGE_INSPECT_SYS_BLOCK", _DEFAULT_SYS_BLOCK)


def sys_usb_path() -> Path:
    """Return the USB device namespace root (``/sys/bus/usb/devices``)."""

    return _path_override("STORAGE_INSPECT_SYS_USB", _DEFAULT_SYS_USB)


def dev_root_path() -> Path:
    """Return the directory holding device nodes (``/dev``)."""

    return _path_override("STORAGE_INSPECT_DEV_ROOT", _DEFAULT_DEV_ROOT)


def watch_interval() -> float:
    """Return the monitor poll delay in seconds.

    Unparseable or non-positive values fall back to
    :data:`DEFAULT_WATCH_INTERVAL`.
    """

    value = os.environ.get("STORAGE_INSPECT_WATCH_INTERVAL")
    if value is None or value.strip() == "":
        return DEFAULT_WATCH_INTERVAL
    try:
        interval = float(value)
    except ValueError:
        log_event("storage_inspect.config.invalid_interval", value=value)
        return DEFAULT_WATCH_INTERVAL
    if interval <= 0:
        log_event("storage_inspect.config.invalid_interval", value=value)
        return DEFAULT_WATCH_INTERVAL
    return interval
