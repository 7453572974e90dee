"""CRUD operations for the transactions and swaps tables."""
from __future__ import annotations

from dexledger.db.records import EntityRepo
from dexledger.models import SwapLeg, Transaction


class TransactionRepo(EntityRepo[Transaction]):
    table = "transactions"
    model = Transaction
    kind = "transaction"


class SwapRepo(EntityRepo[SwapLeg]):
    table = "swaps"
    model = SwapLeg
    kind = "swap"

    def list_for_transaction(self, transaction_id: str) -> list[SwapLeg]:
        """Swap legs of one transaction in log order."""
        legs = self._select_where("transaction_id = ?", (transaction_id,))
        return sorted(legs, key=lambda leg: leg.log_index)
