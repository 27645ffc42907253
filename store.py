"""
Data-access layer.

All entity reads and writes go through ``Store`` so that the table policies in
``policies.py`` are checked uniformly before any row is returned or changed.
"""

import json
import re
import sqlite3
import uuid
from typing import Dict, Iterable, List, Optional, Set

from database_schemas import JSON_COLUMNS
from errors import NotFound
from policies import (
    DELETE, INSERT, UPDATE_CHECK, UPDATE_USING,
    PolicyContext, authorize, visible,
)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")
_columns_cache: Dict[str, Set[str]] = {}


def new_id() -> str:
    return str(uuid.uuid4())


def _encode(table: str, values: dict) -> dict:
    json_cols = JSON_COLUMNS.get(table, set())
    return {k: json.dumps(v) if k in json_cols and v is not None else v for k, v in values.items()}


def _decode(table: str, row: sqlite3.Row) -> dict:
    data = dict(row)
    for col in JSON_COLUMNS.get(table, ()):
        if data.get(col) is not None:
            data[col] = json.loads(data[col])
    return data


class Store:
    def __init__(self, conn: sqlite3.Connection, actor_id: Optional[str] = None):
        self.conn = conn
        self.actor_id = actor_id
        self.ctx = PolicyContext(actor_id=actor_id, cursor=conn.cursor())

    # -- helpers -----------------------------------------------------------

    def columns(self, table: str) -> Set[str]:
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Invalid table name: {table}")
        if table not in _columns_cache:
            rows = self.conn.execute(f"PRAGMA table_info({table})").fetchall()
            if not rows:
                raise ValueError(f"Unknown table: {table}")
            _columns_cache[table] = {r[1] for r in rows}
        return _columns_cache[table]

    def _check_columns(self, table: str, names: Iterable[str]):
        known = self.columns(table)
        unknown = [n for n in names if n not in known]
        if unknown:
            raise ValueError(f"Unknown column(s) for {table}: {unknown}")

    def _where(self, table: str, where: Optional[dict]):
        if not where:
            return "", []
        self._check_columns(table, where)
        clauses, params = [], []
        for col, value in where.items():
            if isinstance(value, (list, tuple, set)):
                value = list(value)
                if not value:
                    clauses.append("0")
                    continue
                clauses.append(f"{col} IN ({', '.join('?' for _ in value)})")
                params.extend(value)
            elif value is None:
                clauses.append(f"{col} IS NULL")
            else:
                clauses.append(f"{col} = ?")
                params.append(value)
        return " WHERE " + " AND ".join(clauses), params

    def _fetch(self, table: str, where: Optional[dict]) -> List[dict]:
        clause, params = self._where(table, where)
        rows = self.conn.execute(f"SELECT * FROM {table}{clause}", params).fetchall()
        return [_decode(table, r) for r in rows]

    # -- reads -------------------------------------------------------------

    def select(self, table: str, where: Optional[dict] = None, order_by: Optional[str] = None,
               limit: Optional[int] = None, offset: int = 0) -> List[dict]:
        """Rows of ``table`` the actor may see. ``order_by`` is "col" or "col DESC"."""
        clause, params = self._where(table, where)
        sql = f"SELECT * FROM {table}{clause}"
        if order_by:
            col, _, direction = order_by.partition(" ")
            self._check_columns(table, [col])
            direction = "DESC" if direction.upper() == "DESC" else "ASC"
            sql += f" ORDER BY {col} {direction}, rowid {direction}"
        rows = [_decode(table, r) for r in self.conn.execute(sql, params).fetchall()]
        rows = [r for r in rows if visible(self.ctx, table, r)]
        if offset:
            rows = rows[offset:]
        if limit is not None:
            rows = rows[:limit]
        return rows

    def get(self, table: str, **keys) -> Optional[dict]:
        rows = self.select(table, where=keys)
        return rows[0] if rows else None

    def get_or_404(self, table: str, label: str = "Row", **keys) -> dict:
        row = self.get(table, **keys)
        if row is None:
            raise NotFound(f"{label} not found")
        return row

    def count(self, table: str, where: Optional[dict] = None) -> int:
        return len(self.select(table, where=where))

    # -- writes ------------------------------------------------------------

    def insert(self, table: str, values: dict) -> dict:
        values = dict(values)
        if "id" in self.columns(table) and not values.get("id"):
            values["id"] = new_id()
        self._check_columns(table, values)
        authorize(self.ctx, table, INSERT, values)
        encoded = _encode(table, values)
        cols = list(encoded)
        cursor = self.conn.execute(
            f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)})",
            [encoded[c] for c in cols]
        )
        stored = self.conn.execute(f"SELECT * FROM {table} WHERE rowid = ?", (cursor.lastrowid,)).fetchone()
        return _decode(table, stored)

    def update(self, table: str, keys: dict, changes: dict, action: Optional[str] = None) -> dict:
        """Update matching rows. A named ``action`` replaces the owner checks
        with that policy, for narrow writes such as tallies."""
        current = self._fetch(table, keys)
        if not current:
            raise NotFound(f"{table} row not found")
        self._check_columns(table, changes)
        for row in current:
            if action is not None:
                authorize(self.ctx, table, action, row)
                continue
            authorize(self.ctx, table, UPDATE_USING, row)
            authorize(self.ctx, table, UPDATE_CHECK, {**row, **changes})
        encoded = _encode(table, changes)
        assignments = [f"{c} = ?" for c in encoded]
        params = list(encoded.values())
        if "updated_at" in self.columns(table) and "updated_at" not in encoded:
            assignments.append("updated_at = strftime('%Y-%m-%d %H:%M:%f', 'now')")
        if assignments:
            clause, where_params = self._where(table, keys)
            self.conn.execute(f"UPDATE {table} SET {', '.join(assignments)}{clause}", params + where_params)
        return self._fetch(table, keys)[0]

    def delete(self, table: str, missing_ok: bool = False, **keys) -> int:
        current = self._fetch(table, keys)
        if not current:
            if missing_ok:
                return 0
            raise NotFound(f"{table} row not found")
        for row in current:
            authorize(self.ctx, table, DELETE, row)
        clause, params = self._where(table, keys)
        self.conn.execute(f"DELETE FROM {table}{clause}", params)
        return len(current)
