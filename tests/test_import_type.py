from __future__ import annotations

import base58
import pytest

from solwallet.errors import InvalidBytesLength, KeypairError
from solwallet.wallet.keypair import ImportKind, ImportType


def _byte_list(count: int, spaces: bool = False) -> str:
    sep = ", " if spaces else ","
    return "[" + sep.join(str(i % 256) for i in range(count)) + "]"


def test_bracket_list_of_64_is_private_key():
    parsed = ImportType.parse(_byte_list(64))
    assert parsed.kind is ImportKind.PRIVATE_KEY
    assert parsed.data == bytes(range(64))


def test_bracket_list_of_32_is_secret_key():
    parsed = ImportType.parse("  " + _byte_list(32, spaces=True) + "\n")
    assert parsed.kind is ImportKind.SECRET_KEY
    assert parsed.data == bytes(range(32))


@pytest.mark.parametrize("count", [0, 1, 31, 33, 63, 65, 128])
def test_bracket_list_of_other_length_fails(count):
    with pytest.raises(InvalidBytesLength) as excinfo:
        ImportType.parse(_byte_list(count))
    assert excinfo.value.length == count
    assert "32 bytes" in str(excinfo.value)
    assert "64 bytes" in str(excinfo.value)


def test_base58_of_64_bytes_is_private_key():
    encoded = base58.b58encode(bytes(range(1, 65))).decode()
    parsed = ImportType.parse(encoded)
    assert parsed.kind is ImportKind.PRIVATE_KEY
    assert parsed.data == bytes(range(1, 65))


def test_base58_of_32_bytes_is_secret_key():
    encoded = base58.b58encode(bytes(range(1, 33))).decode()
    assert ImportType.parse(f" {encoded} ").kind is ImportKind.SECRET_KEY


def test_base58_of_other_length_fails():
    encoded = base58.b58encode(bytes(range(1, 11))).decode()
    with pytest.raises(InvalidBytesLength) as excinfo:
        ImportType.parse(encoded)
    assert excinfo.value.length == 10


@pytest.mark.parametrize("raw", ["[1, 2, x]", "[256" + ",0" * 31 + "]", "[-1" + ",0" * 31 + "]"])
def test_bad_byte_values_fail(raw):
    with pytest.raises(KeypairError):
        ImportType.parse(raw)


@pytest.mark.parametrize("item", ["1_0", "+5", "\u0663", "0x1f", " ", "1.0"])
def test_non_decimal_byte_items_fail(item):
    with pytest.raises(KeypairError):
        ImportType.parse("[" + item + ",0" * 31 + "]")


def test_invalid_base58_fails():
    with pytest.raises(KeypairError):
        ImportType.parse("0OIl" * 10)


def test_repr_hides_key_material():
    parsed = ImportType.parse(_byte_list(32))
    assert repr(parsed) == "ImportType(kind='secret_key', data=<32 bytes>)"
