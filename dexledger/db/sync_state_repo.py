"""Indexer cursor persisted alongside the ledger records."""
from __future__ import annotations

import sqlite3

LAST_BLOCK_KEY = "last_block"


class SyncStateRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get_last_block(self) -> int | None:
        row = self.conn.execute(
            "SELECT value FROM sync_state WHERE key = ?", (LAST_BLOCK_KEY,)
        ).fetchone()
        return int(row[0]) if row else None

    def set_last_block(self, block_number: int) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO sync_state (key, value) VALUES (?, ?)",
            (LAST_BLOCK_KEY, str(block_number)),
        )
