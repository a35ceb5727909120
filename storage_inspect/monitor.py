"""Poll the block-device namespace for additions and removals."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Optional, Tuple

from .logging_utils import log_event

__all__ = ["snapshot", "watch"]

Snapshot = Tuple[str, ...]


def snapshot(sys_block: Path) -> Snapshot:
    """Return the sorted device ids under ``sys_block``.

    An unreadable namespace yields an empty snapshot so that a transient
    failure shows up as a change rather than stopping the monitor.
    """

    try:
        return tuple(sorted(entry.name for entry in Path(sys_block).iterdir()))
    except OSError as exc:
        log_event("storage_inspect.monitor.unreadable", sys_block=sys_block, error=str(exc))
        return ()


def watch(
    on_change: Callable[[Snapshot, Snapshot], None],
    *,
    sys_block: Path,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
    iterations: Optional[int] = None,
) -> None:
    """Call ``on_change(previous, current)`` whenever the device set changes.

    Runs until interrupted unless ``iterations`` limits the number of polls.
    """

    previous = snapshot(sys_block)
    log_event("storage_inspect.monitor.started", sys_block=sys_block, devices=previous)
    polls = 0
    while iterations is None or polls < iterations:
        sleep(interval)
        polls += 1
        current = snapshot(sys_block)
        if current == previous:
            continue
        log_event(
            "storage_inspect.monitor.changed",
            added=sorted(set(current) - set(previous)),
            removed=sorted(set(previous) - set(current)),
        )
        on_change(previous, current)
        previous = current
