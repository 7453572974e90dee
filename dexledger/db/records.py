"""Shared get/save plumbing for dataclass-backed tables.

Repositories expose point lookup by id and upsert by id; nothing here scans.
"""
from __future__ import annotations

import json
import sqlite3
from dataclasses import astuple, fields
from decimal import Decimal
from typing import Any, ClassVar, Generic, TypeVar, get_origin, get_type_hints

T = TypeVar("T")


class MissingEntityError(LookupError):
    """A record that an earlier event must have created is absent.

    Continuing would corrupt cumulative aggregates, so this is never
    swallowed by the ledger.
    """

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"No {kind} entity populated for {key}")


def _encode(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, list):
        return json.dumps(value)
    return value


class EntityRepo(Generic[T]):
    table: ClassVar[str]
    model: ClassVar[type]
    kind: ClassVar[str]

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._columns = [f.name for f in fields(self.model)]
        self._hints = get_type_hints(self.model)

    def _decode(self, row: tuple) -> T:
        values = {}
        for name, raw in zip(self._columns, row):
            hint = self._hints[name]
            if raw is None:
                values[name] = None
            elif hint is Decimal:
                values[name] = Decimal(raw)
            elif hint is bool:
                values[name] = bool(raw)
            elif get_origin(hint) is list:
                values[name] = json.loads(raw)
            else:
                values[name] = raw
        return self.model(**values)

    def get(self, entity_id: str) -> T | None:
        row = self.conn.execute(
            f"SELECT {', '.join(self._columns)} FROM {self.table} WHERE id = ?",
            (entity_id,),
        ).fetchone()
        return self._decode(row) if row else None

    def get_or_fail(self, entity_id: str) -> T:
        record = self.get(entity_id)
        if record is None:
            raise MissingEntityError(self.kind, entity_id)
        return record

    def exists(self, entity_id: str) -> bool:
        row = self.conn.execute(
            f"SELECT 1 FROM {self.table} WHERE id = ?", (entity_id,)
        ).fetchone()
        return row is not None

    def save(self, record: T) -> None:
        """Insert or replace the record keyed by its id."""
        placeholders = ", ".join("?" for _ in self._columns)
        self.conn.execute(
            f"INSERT OR REPLACE INTO {self.table} ({', '.join(self._columns)}) "
            f"VALUES ({placeholders})",
            tuple(_encode(v) for v in astuple(record)),
        )

    def _select_where(self, clause: str, params: tuple) -> list[T]:
        rows = self.conn.execute(
            f"SELECT {', '.join(self._columns)} FROM {self.table} WHERE {clause}",
            params,
        ).fetchall()
        return [self._decode(r) for r in rows]
