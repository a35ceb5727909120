"""Tests for mobile-phone identification."""

import pytest

from storage_inspect.environment import CommandOutput
from storage_inspect.mobile import (
    MOBILE_VENDORS,
    classify_mobile,
    identify,
    normalise_vendor_id,
)
from storage_inspect.models import MatchedBy, UsbDescriptor
from storage_inspect.probe import ToolProbe
from tests.fakes import make_env


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("05AC", "05ac"), ("0x04E8", "04e8"), (" 18d1\n", "18d1"), ("", None), (None, None)],
)
def test_normalise_vendor_id(raw, expected) -> None:
    assert normalise_vendor_id(raw) == expected


def test_vendor_table_has_ten_entries() -> None:
    assert len(MOBILE_VENDORS) == 10
    assert MOBILE_VENDORS["05ac"] == "Apple"
    assert MOBILE_VENDORS["2a70"] == "OnePlus"


def test_vendor_id_match() -> None:
    result = classify_mobile(UsbDescriptor(vendor_id="05ac", product="Mass Storage"))

    assert result.is_mobile
    assert result.matched_by is MatchedBy.VENDOR_ID
    assert result.vendor_label == "Apple"
    assert result.description == "Apple Device Detected"


def test_vendor_id_wins_over_name() -> None:
    result = classify_mobile(
        UsbDescriptor(vendor_id="12d1", manufacturer="Samsung", product="Galaxy S9")
    )

    assert result.matched_by is MatchedBy.VENDOR_ID
    assert result.vendor_label == "Huawei"


@pytest.mark.parametrize(
    ("manufacturer", "product", "label"),
    [
        ("SAMSUNG", None, "Samsung"),
        (None, "galaxy tab", "Samsung"),
        ("Apple Inc.", None, "Apple"),
        (None, "iPad Air", "Apple"),
        ("Google", None, "Android"),
        (None, "Pixel 7", "Android"),
        (None, "Smart PHONE", None),
        ("Acme Mobile", None, None),
    ],
)
def test_name_heuristic(manufacturer, product, label) -> None:
    result = classify_mobile(
        UsbDescriptor(vendor_id="abcd", manufacturer=manufacturer, product=product)
    )

    assert result.is_mobile
    assert result.matched_by is MatchedBy.NAME_HEURISTIC
    assert result.vendor_label == label


def test_first_matching_group_wins() -> None:
    result = classify_mobile(UsbDescriptor(manufacturer="Samsung", product="Android Phone"))

    assert result.vendor_label == "Samsung"


def test_not_mobile() -> None:
    result = classify_mobile(
        UsbDescriptor(vendor_id="0781", manufacturer="SanDisk", product="Cruzer Blade")
    )

    assert not result.is_mobile
    assert result.matched_by is MatchedBy.NONE
    assert result.vendor_label is None
    assert result.transfer_protocols == []


def test_missing_descriptor_fields_are_not_mobile() -> None:
    assert classify_mobile(UsbDescriptor()).matched_by is MatchedBy.NONE


def test_identify_collects_extras_for_phones(sysfs) -> None:
    env = make_env(
        sysfs,
        {
            ("lsusb", "-v"): CommandOutput(
                "Bus 001 Device 004: ID 18d1:4ee1 Google Inc. Nexus/Pixel Device (MTP)\n"
                "      iInterface 5 MTP\n"
                "  bInterfaceClass 8 Mass Storage\n"
            ),
            ("adb", "devices"): CommandOutput(
                "List of devices attached\n1A2B3C4D\tdevice\n\n"
            ),
        },
        tools=("lsusb", "adb"),
    )

    result = identify(UsbDescriptor(vendor_id="18d1"), ToolProbe(env))

    assert result.vendor_label == "Google/Android"
    assert result.transfer_protocols == [
        "Bus 001 Device 004: ID 18d1:4ee1 Google Inc. Nexus/Pixel Device (MTP)",
        "iInterface 5 MTP",
    ]
    assert result.bridge_devices == ["ADB Device: 1A2B3C4D\tdevice"]


def test_identify_without_tools(sysfs) -> None:
    env = make_env(sysfs)

    result = identify(UsbDescriptor(vendor_id="04e8"), ToolProbe(env))

    assert result.transfer_protocols == ["lsusb not available; transfer protocols unknown"]
    assert result.bridge_devices == ["ADB not available (install android-tools)"]


def test_identify_placeholders_when_nothing_matches(sysfs) -> None:
    env = make_env(
        sysfs,
        {
            ("lsusb", "-v"): CommandOutput("Bus 001 Device 001: ID 1d6b:0002 hub\n"),
            ("adb", "devices"): CommandOutput("List of devices attached\n"),
        },
        tools=("lsusb", "adb"),
    )

    result = identify(UsbDescriptor(vendor_id="04e8"), ToolProbe(env))

    assert result.transfer_protocols == ["Standard USB protocols detected"]
    assert result.bridge_devices == [
        "No ADB devices detected (may need USB debugging enabled)"
    ]


def test_identify_skips_tools_for_other_devices(sysfs) -> None:
    calls: list = []
    env = make_env(sysfs, tools=("lsusb", "adb"), calls=calls)

    result = identify(UsbDescriptor(vendor_id="0781"), ToolProbe(env))

    assert not result.is_mobile
    assert calls == []


def test_vendor_id_case_is_normalised() -> None:
    upper = classify_mobile(UsbDescriptor(vendor_id="04E8"))
    lower = classify_mobile(UsbDescriptor(vendor_id="04e8"))

    assert upper == lower
    assert upper.vendor_label == "Samsung"


def test_unknown_vendor_falls_through_to_name() -> None:
    result = classify_mobile(UsbDescriptor(vendor_id="0000", product="Pixel 7"))

    assert result.is_mobile
    assert result.matched_by is MatchedBy.NAME_HEURISTIC
    assert result.vendor_label == "Android"
