"""Decimal helpers for token amount normalization and safe ratios.

Raw on-chain amounts are uint256 (up to 78 digits), well past the default
28-digit decimal context. Every ledger computation runs under
``LEDGER_CONTEXT`` so a raw amount scaled by its decimals stays exact.
"""
from __future__ import annotations

import functools
from decimal import Context, Decimal, localcontext

ZERO = Decimal(0)
ONE = Decimal(1)

LEDGER_CONTEXT = Context(prec=80)


def ledger_precision(func):
    """Run ``func`` under LEDGER_CONTEXT."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with localcontext(LEDGER_CONTEXT):
            return func(*args, **kwargs)
    return wrapper


def exponent_to_decimal(decimals: int) -> Decimal:
    """Return 10 ** decimals as an exact Decimal."""
    return Decimal(10) ** decimals


@ledger_precision
def convert_token_to_decimal(amount: int, decimals: int) -> Decimal:
    """Scale a raw integer token amount to human units.

    Zero decimals is a no-op normalization.
    """
    if decimals == 0:
        return Decimal(amount)
    return Decimal(amount) / exponent_to_decimal(decimals)


@ledger_precision
def safe_div(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, resolving a zero denominator to zero instead of raising."""
    if denominator == 0:
        return ZERO
    return numerator / denominator
