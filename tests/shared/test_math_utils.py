from decimal import Decimal

from dexledger.shared.addresses import (
    ADDRESS_ZERO,
    normalize_address,
    pair_lookup_id,
    topic_to_address,
)
from dexledger.shared.math_utils import convert_token_to_decimal, exponent_to_decimal, safe_div


def test_exponent_to_decimal():
    assert exponent_to_decimal(0) == 1
    assert exponent_to_decimal(6) == 1_000_000


def test_convert_token_to_decimal():
    assert convert_token_to_decimal(1_500_000, 6) == Decimal("1.5")
    assert convert_token_to_decimal(10 ** 18, 18) == 1


def test_zero_decimals_is_identity():
    assert convert_token_to_decimal(42, 0) == 42


def test_safe_div():
    assert safe_div(Decimal(1), Decimal(4)) == Decimal("0.25")
    assert safe_div(Decimal(1), Decimal(0)) == 0


def test_normalize_address():
    assert normalize_address("0xABCDEF0000000000000000000000000000000001") == (
        "0xabcdef0000000000000000000000000000000001"
    )
    assert normalize_address(None) == ADDRESS_ZERO
    assert normalize_address("") == ADDRESS_ZERO


def test_topic_to_address():
    topic = "0x000000000000000000000000" + "Ab" * 20
    assert topic_to_address(topic) == "0x" + "ab" * 20


def test_pair_lookup_id_symmetric():
    a, b = "0x" + "0a" * 20, "0x" + "0b" * 20
    assert pair_lookup_id(a, b) == pair_lookup_id(b, a) == a + b


def test_wide_amounts_scale_exactly():
    raw = 12345678901234567890123456789
    assert convert_token_to_decimal(raw, 18) == Decimal("12345678901.234567890123456789")
    max_uint = 2 ** 256 - 1
    assert convert_token_to_decimal(max_uint, 18) == Decimal(f"{max_uint}E-18")


def test_wide_division_keeps_digits():
    result = safe_div(Decimal(2 ** 112), Decimal(3))
    assert len(result.as_tuple().digits) == 80
