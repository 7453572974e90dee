"""Resolve which address actually funded a swap."""
from __future__ import annotations

from dexledger.ledger.identity import IntermediaryRegistry


def resolve_creditor(
    registry: IntermediaryRegistry,
    swap_sender: str,
    transfer_from: str,
    tx_target: str,
) -> str:
    """Return the economic party behind a swap.

    Args:
        registry: Router allow-list.
        swap_sender: ``sender`` argument of the pair's Swap event.
        transfer_from: Originating account of the transaction.
        tx_target: Top-level ``to`` of the transaction (zero address for
            contract creation).

    A router called directly by the trader forwards the trader's tokens, so
    the origin pays. A router called by some other contract is being driven
    by that contract, which is taken to be the payer. A swap sent straight
    to the pair is paid by its sender.
    """
    if registry.is_intermediary(swap_sender):
        if registry.is_intermediary(tx_target):
            return transfer_from
        return tx_target
    return swap_sender
