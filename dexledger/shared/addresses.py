"""Address constants and normalization."""
from __future__ import annotations

ADDRESS_ZERO = "0x0000000000000000000000000000000000000000"
NULL_ETH_VALUE = "0x0000000000000000000000000000000000000000000000000000000000000001"


def normalize_address(address: str | None) -> str:
    """Lower-case hex address; None (contract creation) maps to the zero address."""
    if not address:
        return ADDRESS_ZERO
    return address.lower()


def topic_to_address(topic: str) -> str:
    """Extract the address packed into the low 20 bytes of a 32-byte log topic."""
    return "0x" + topic[-40:].lower()


def is_null_eth_value(value: str) -> bool:
    return value == NULL_ETH_VALUE


def pair_lookup_id(token_a: str, token_b: str) -> str:
    """Order-independent key for a token pair."""
    a, b = token_a.lower(), token_b.lower()
    if int(a, 16) < int(b, 16):
        return a + b
    return b + a
