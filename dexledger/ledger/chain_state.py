"""Per-transaction multi-hop swap state.

One flag per transaction says whether a chained swap is open. Legs that
continue an open chain leave it open; the terminal leg closes it.
"""
from __future__ import annotations

import logging

from dexledger.db.transaction_repo import TransactionRepo
from dexledger.ledger.events import EventMeta
from dexledger.models import Transaction

log = logging.getLogger("ledger")


def get_or_create_transaction(repo: TransactionRepo, meta: EventMeta) -> Transaction:
    transaction = repo.get(meta.tx_hash)
    if transaction is None:
        transaction = Transaction(
            id=meta.tx_hash,
            block_number=meta.block_number,
            timestamp=meta.timestamp,
        )
    return transaction


def is_chain_open(transaction: Transaction) -> bool:
    return transaction.chain_in_progress


def open_chain(transaction: Transaction) -> None:
    if transaction.chain_in_progress:
        log.debug(f"Continuing multiswap txn for tx {transaction.id}")
        return
    transaction.chain_in_progress = True
    log.info(f"Starting multiswap txn for tx {transaction.id}")


def close_chain(transaction: Transaction, beneficiary: str) -> None:
    """Mark the chain finished; records who received the final output."""
    if transaction.chain_in_progress:
        transaction.chain_beneficiary = beneficiary
        log.info(f"Closing multiswap txn for tx {transaction.id} beneficiary {beneficiary}")
    transaction.chain_in_progress = False


def append_leg(transaction: Transaction, leg_id: str) -> None:
    transaction.swaps = transaction.swaps + [leg_id]
