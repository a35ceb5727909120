"""Tests for ATA identity decoding."""

import pytest

from storage_inspect import ata
from storage_inspect.ata import AtaIdentity, CommandSet1, CommandSet2, parse_identity
from tests.fakes import identity_block


def test_parse_identity_strings_and_flags() -> None:
    block = identity_block(
        0x0002,
        0x0400 | 0x1000,
        model="WDC WD10EZEX-08WN4A0",
        serial="WD-WCC6Y0000000",
        firmware="01.01A01",
    )

    identity = parse_identity(block)

    assert identity.model == "WDC WD10EZEX-08WN4A0"
    assert identity.serial == "WD-WCC6Y0000000"
    assert identity.firmware == "01.01A01"
    assert identity.security_supported
    assert identity.hpa_supported
    assert not identity.dco_supported
    assert identity.sanitize_supported


@pytest.mark.parametrize(
    ("command_set_2", "hpa", "dco", "sanitize"),
    [
        (0x0000, False, False, False),
        (0x0400, True, False, False),
        (0x0800, False, True, False),
        (0x1000, False, False, True),
        (0x1C00, True, True, True),
    ],
)
def test_command_set_2_bits(command_set_2, hpa, dco, sanitize) -> None:
    identity = AtaIdentity.from_words(0, command_set_2)

    assert identity.hpa_supported is hpa
    assert identity.dco_supported is dco
    assert identity.sanitize_supported is sanitize
    assert identity.security_supported is False


def test_flag_values() -> None:
    assert CommandSet1.SECURITY == 0x0002
    assert CommandSet2.HOST_PROTECTED_AREA == 0x0400
    assert CommandSet2.DEVICE_CONFIGURATION_OVERLAY == 0x0800
    assert CommandSet2.SANITIZE == 0x1000


def test_unrelated_bits_do_not_set_features() -> None:
    identity = AtaIdentity.from_words(0xFFFD, 0x03FF)

    assert not identity.security_supported
    assert not identity.hpa_supported
    assert not identity.dco_supported
    assert not identity.sanitize_supported


def test_short_block_is_rejected() -> None:
    with pytest.raises(ValueError):
        parse_identity(b"\x00" * 100)


def test_payload() -> None:
    payload = AtaIdentity.from_words(0x0002, 0x0800, model="M").to_payload()

    assert payload["command_set_1"] == 2
    assert payload["command_set_2"] == 0x0800
    assert payload["model"] == "M"


def test_read_identity_block_missing_node(tmp_path) -> None:
    assert ata.read_identity_block(str(tmp_path / "sdz")) is None


def test_read_identity_block_not_a_block_device(tmp_path) -> None:
    regular = tmp_path / "plain"
    regular.write_bytes(b"")

    assert ata.read_identity_block(str(regular)) is None
