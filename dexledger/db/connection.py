"""Opening the ledger store.

One SQLite file holds every entity the indexer derives from pair events:
tokens, pairs and their lookup keys, the factory and price bundle,
transactions with their swap legs, per-user cost-basis positions, and the
indexer cursor in ``sync_state``. All DDL is idempotent, so opening an
existing ledger never touches its rows.
"""
from __future__ import annotations

import sqlite3
from pathlib import Path

SCHEMA_PATH = Path(__file__).parent / "schema.sql"
MEMORY = ":memory:"


def apply_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA_PATH.read_text())
    conn.commit()


def get_connection(db_path: Path | str) -> sqlite3.Connection:
    """Open the ledger at ``db_path``, creating tables on first use.

    File-backed ledgers run in WAL mode so ``report`` and ``position`` can
    read while ``index`` commits block windows. ``":memory:"`` opens a
    throwaway ledger.
    """
    if str(db_path) == MEMORY:
        conn = sqlite3.connect(MEMORY)
    else:
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        # a lost window after power loss is re-indexed from the cursor
        conn.execute("PRAGMA synchronous=NORMAL")
    apply_schema(conn)
    return conn
