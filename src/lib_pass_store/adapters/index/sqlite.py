"""Persistent metadata index adapter backed by ``sqlite3``.

Purpose
-------
Provide the key-value bookkeeping a protocol front-end keeps next to the
encrypted files (collection labels, item attributes, aliases). Nothing secret
is stored here.

Key behaviours
--------------
* One sqlite table per namespace, ``(key TEXT PRIMARY KEY, value TEXT)``, with
  values stored as JSON documents.
* Tables are created lazily on the first :meth:`SqliteIndex.put`. Reads against
  a table that does not exist yet go through
  :func:`~lib_pass_store.domain.errors.missing_table_as_default`, so a fresh
  index behaves like an empty one rather than a corrupt one.
* Every ``sqlite3`` failure surfaces as
  :class:`~lib_pass_store.domain.errors.PersistentIndexError`.
"""

from __future__ import annotations

import json
import re
import sqlite3
from pathlib import Path
from typing import Any, Final

from ...domain.errors import MISSING, missing_table_as_default, require_found, translate_errors
from ...observability import log_debug

_TABLE_NAME: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SqliteIndex:
    """SQLite-backed key-value index organised in named tables."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        with translate_errors():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SqliteIndex":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def get(self, table: str, key: str, default: Any = MISSING) -> Any:
        """Return the decoded value stored under *key* in *table*.

        A missing table or a missing key yields *default* when supplied and the
        not-found :class:`IoError` otherwise.
        """

        name = _table(table)

        def lookup() -> sqlite3.Row | None:
            return self._conn.execute(f"SELECT value FROM {name} WHERE key = ?", (key,)).fetchone()

        row = missing_table_as_default(lookup, default=None)
        if row is None and default is not MISSING:
            return default
        return json.loads(require_found(row, f"{table}/{key}")["value"])

    def put(self, table: str, key: str, value: Any) -> None:
        """Store *value* (JSON-serialisable) under *key*, creating *table* if needed."""

        name = _table(table)
        with translate_errors():
            self._conn.execute(f"CREATE TABLE IF NOT EXISTS {name} (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
            self._conn.execute(
                f"INSERT OR REPLACE INTO {name} (key, value) VALUES (?, ?)",
                (key, json.dumps(value, sort_keys=True)),
            )
            self._conn.commit()
        log_debug("index_put", operation="index", path=f"{table}/{key}")

    def delete(self, table: str, key: str) -> bool:
        """Remove *key* from *table*; return whether a row was deleted."""

        name = _table(table)

        def remove() -> int:
            cursor = self._conn.execute(f"DELETE FROM {name} WHERE key = ?", (key,))
            self._conn.commit()
            return cursor.rowcount

        return missing_table_as_default(remove, default=0) > 0

    def keys(self, table: str) -> list[str]:
        """Return every key in *table*, sorted; an absent table has no keys."""

        name = _table(table)

        def scan() -> list[str]:
            rows = self._conn.execute(f"SELECT key FROM {name} ORDER BY key").fetchall()
            return [row["key"] for row in rows]

        return missing_table_as_default(scan, default=[])


def _table(name: str) -> str:
    """Validate *name* for interpolation into SQL and return it quoted.

    Examples
    --------
    >>> _table("collections")
    '"collections"'
    >>> _table("drop table x")
    Traceback (most recent call last):
    ...
    ValueError: Invalid index table name: 'drop table x'
    """

    if not _TABLE_NAME.match(name):
        raise ValueError(f"Invalid index table name: {name!r}")
    return f'"{name}"'
