"""CRUD operations for the pairs and pair_lookup tables."""
from __future__ import annotations

from dexledger.db.records import EntityRepo
from dexledger.models import Pair
from dexledger.shared.addresses import pair_lookup_id


class PairRepo(EntityRepo[Pair]):
    table = "pairs"
    model = Pair
    kind = "pair"

    def save_lookup(self, pair: Pair) -> None:
        """Register the pair under its order-independent token key."""
        self.conn.execute(
            "INSERT OR IGNORE INTO pair_lookup (id, pair_id) VALUES (?, ?)",
            (pair_lookup_id(pair.token0, pair.token1), pair.id),
        )

    def find_by_tokens(self, token_a: str, token_b: str) -> Pair | None:
        row = self.conn.execute(
            "SELECT pair_id FROM pair_lookup WHERE id = ?",
            (pair_lookup_id(token_a, token_b),),
        ).fetchone()
        return self.get(row[0]) if row else None

    def list_ids(self) -> list[str]:
        return [r[0] for r in self.conn.execute("SELECT id FROM pairs ORDER BY id").fetchall()]
