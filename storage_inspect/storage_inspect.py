"""CLI entry point for storage-inspect."""

import argparse
import sys
from typing import Iterable, Sequence

from . import config, monitor, render, report, usb
from .environment import ProbeEnvironment
from .sysfs import EnumerationError

BANNER = "Hardware Storage Device Detection Tool"
ENUMERATION_FAILED = "Cannot access /sys/block directory"

_EPILOG = """\
examples:
  storage-inspect              show all storage devices
  storage-inspect sda          show info for /dev/sda
  storage-inspect nvme0n1      show info for /dev/nvme0n1
  storage-inspect --usb        list all USB devices including mobile phones
  storage-inspect --watch      monitor for device changes

HPA/DCO detection requires root privileges and the hdparm/smartctl tools.
Mobile device analysis may use adb for Android devices.
"""

_CLOSING_NOTE = (
    "Note: Some information may require elevated privileges (sudo) to access.",
    "      Use --usb option to see detailed USB device analysis.",
)


def _emit(lines: Iterable[str]) -> None:
    for line in lines:
        print(line)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storage-inspect",
        description="Storage device hardware detection tool",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "device",
        nargs="?",
        help="Specific device to analyze (e.g. sda, nvme0n1)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-u",
        "--usb",
        action="store_true",
        help="List all USB devices including mobile phones",
    )
    mode.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="Monitor for storage device changes",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print structured JSON instead of text",
    )
    return parser


def _show_device(device: str, env: ProbeEnvironment, *, as_json: bool) -> None:
    device_report = report.build_report(device, env)
    if as_json:
        print(render.dump_json(device_report.to_payload()))
        return
    _emit(render.render_report(device_report))


def _show_usb(env: ProbeEnvironment, *, as_json: bool) -> None:
    usb_inventory = usb.enumerate_usb_devices(env)
    if as_json:
        print(render.dump_json(usb_inventory.to_payload()))
        return
    _emit(render.render_usb_inventory(usb_inventory))


def _show_all(env: ProbeEnvironment, *, as_json: bool) -> None:
    try:
        inventory = report.build_inventory(env)
    except EnumerationError:
        print(ENUMERATION_FAILED)
        return
    usb_inventory = usb.enumerate_usb_devices(env)
    if as_json:
        payload = inventory.to_payload()
        payload["usb"] = usb_inventory.to_payload()
        print(render.dump_json(payload))
        return
    _emit(render.render_inventory(inventory))
    print()
    _emit(render.render_usb_inventory(usb_inventory))


def _print_roster(env: ProbeEnvironment) -> None:
    try:
        roster = report.build_roster(env)
    except EnumerationError:
        print(ENUMERATION_FAILED)
        return
    _emit(render.render_roster(roster))


def _run_watch(env: ProbeEnvironment) -> None:
    print("=== Storage Device Monitor ===")
    print("Monitoring for storage device changes... (Press Ctrl+C to stop)", flush=True)

    def on_change(previous: Sequence[str], current: Sequence[str]) -> None:
        print()
        print("*** Device change detected! ***")
        for device in sorted(set(current) - set(previous)):
            print(f"Added: {device}")
        for device in sorted(set(previous) - set(current)):
            print(f"Removed: {device}")
        print()
        print("Updated device list:")
        _print_roster(env)
        print()
        print("Continuing to monitor...", flush=True)

    try:
        monitor.watch(
            on_change,
            sys_block=env.sys_block,
            interval=config.watch_interval(),
        )
    except KeyboardInterrupt:
        print()
        print("Monitoring stopped.")


def main(argv: list[str] | None = None) -> int:
    """Run the storage-inspect tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.json:
        print(BANNER)
        print("=" * len(BANNER))
        print()

    env = ProbeEnvironment()
    if args.watch:
        _run_watch(env)
        return 0
    if args.usb:
        _show_usb(env, as_json=args.json)
        return 0
    if args.device:
        _show_device(args.device, env, as_json=args.json)
    else:
        _show_all(env, as_json=args.json)

    if not args.json:
        print()
        _emit(_CLOSING_NOTE)
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
