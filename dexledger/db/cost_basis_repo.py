"""CRUD operations for the cost_basis table."""
from __future__ import annotations

from dexledger.db.records import EntityRepo
from dexledger.models import Position


class CostBasisRepo(EntityRepo[Position]):
    table = "cost_basis"
    model = Position
    kind = "cost basis"

    def list_for_user(self, user_address: str) -> list[Position]:
        """All positions of one user, for reporting."""
        return self._select_where("user_address = ?", (user_address.lower(),))
